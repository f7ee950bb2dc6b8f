"""Configuration: frozen ClientConfig resolved once at client construction.

Resolution order per field is explicit argument, then environment, then the
backend default. Only :func:`resolve_config` reads the environment; the rest
of the package consumes the resolved :class:`ClientConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import os
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from dotenv import load_dotenv

from castor.errors import ConfigurationError
from castor.types import HttpOptions

if TYPE_CHECKING:
    from collections.abc import Mapping

_USE_VERTEXAI_ENV = "GOOGLE_GENAI_USE_VERTEXAI"
_PROJECT_ENV = "GOOGLE_CLOUD_PROJECT"
_LOCATION_ENVS = ("GOOGLE_CLOUD_LOCATION", "GOOGLE_CLOUD_REGION")
_API_KEY_ENVS = ("GOOGLE_API_KEY", "GEMINI_API_KEY")
_GEMINI_BASE_URL_ENV = "GOOGLE_GEMINI_BASE_URL"
_VERTEX_BASE_URL_ENV = "GOOGLE_VERTEX_BASE_URL"

_ENV_KEYS = (
    _USE_VERTEXAI_ENV,
    _PROJECT_ENV,
    *_LOCATION_ENVS,
    *_API_KEY_ENVS,
    _GEMINI_BASE_URL_ENV,
    _VERTEX_BASE_URL_ENV,
)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/"
GEMINI_API_VERSION = "v1beta"
VERTEX_API_VERSION = "v1beta1"


class Backend(str, Enum):
    """Which deployment of the service a client talks to."""

    GEMINI_API = "gemini_api"
    VERTEX_AI = "vertex_ai"

    @property
    def label(self) -> str:
        return "Gemini API" if self is Backend.GEMINI_API else "Vertex AI"


@runtime_checkable
class Credentials(Protocol):
    """Source of OAuth2 access tokens for Vertex AI.

    Refreshing tokens is the implementation's responsibility; the client asks
    for a token once per request or session.
    """

    async def token(self) -> str: ...


@dataclass(frozen=True)
class StaticCredentials:
    """Credentials backed by a fixed access token."""

    access_token: str

    async def token(self) -> str:
        return self.access_token

    def __repr__(self) -> str:
        return "StaticCredentials(access_token=[REDACTED])"


@dataclass(frozen=True)
class BaseUrls:
    """Replacement default base URLs, used when no explicit URL is given."""

    gemini_url: str | None = None
    vertex_url: str | None = None


def _coerce_bool(v: str) -> bool:
    """Convert string to boolean using common conventions."""
    return v.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ClientConfig:
    """Immutable, fully resolved client configuration.

    Build one with :func:`resolve_config`; constructing it directly skips
    environment lookup but still validates the backend invariants.
    """

    backend: Backend
    api_key: str | None = None
    project: str | None = None
    location: str | None = None
    credentials: Credentials | None = None
    http_options: HttpOptions = field(default_factory=HttpOptions)

    def __post_init__(self) -> None:
        """Validate backend-specific requirements."""
        if self.api_key and (self.project or self.location):
            raise ConfigurationError(
                "project/location and api_key are mutually exclusive",
                hint="Use api_key for the Gemini API, or project/location for Vertex AI.",
            )
        if self.backend is Backend.GEMINI_API:
            if not self.api_key:
                raise ConfigurationError(
                    "API key required for the Gemini API",
                    hint="Set GOOGLE_API_KEY environment variable or pass api_key=...",
                )
        else:
            if not self.project or not self.location:
                raise ConfigurationError(
                    "project and location are required for Vertex AI",
                    hint="Set GOOGLE_CLOUD_PROJECT and GOOGLE_CLOUD_LOCATION or pass them explicitly.",
                )
            if self.credentials is None:
                raise ConfigurationError(
                    "credentials are required for Vertex AI",
                    hint="Pass credentials=... exposing an async token() method.",
                )
        if not self.http_options.base_url or not self.http_options.api_version:
            raise ConfigurationError(
                "http_options must carry a resolved base_url and api_version",
                hint="Build the configuration with resolve_config().",
            )

    @property
    def vertexai(self) -> bool:
        return self.backend is Backend.VERTEX_AI

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"ClientConfig(backend={self.backend.value!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"project={self.project!r}, location={self.location!r}, "
            f"base_url={self.http_options.base_url!r}, "
            f"api_version={self.http_options.api_version!r})"
        )

    __repr__ = __str__


def load_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect the non-empty configuration variables.

    With no mapping given, ``.env`` is loaded into ``os.environ`` first.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ
    return {key: environ[key] for key in _ENV_KEYS if environ.get(key)}


def _first(env: Mapping[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        if env.get(key):
            return env[key]
    return None


def default_base_url(backend: Backend, location: str | None) -> str:
    if backend is Backend.GEMINI_API:
        return GEMINI_BASE_URL
    if location == "global":
        return "https://aiplatform.googleapis.com/"
    return f"https://{location}-aiplatform.googleapis.com/"


def resolve_config(
    *,
    api_key: str | None = None,
    vertexai: bool | None = None,
    project: str | None = None,
    location: str | None = None,
    credentials: Credentials | None = None,
    http_options: HttpOptions | None = None,
    base_urls: BaseUrls | None = None,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Resolve a :class:`ClientConfig` from arguments, environment and defaults.

    Args:
        api_key: Gemini API key. Falls back to ``GOOGLE_API_KEY``.
        vertexai: Explicit backend choice. Falls back to
            ``GOOGLE_GENAI_USE_VERTEXAI``, then the Gemini API.
        project: Vertex AI project. Falls back to ``GOOGLE_CLOUD_PROJECT``.
        location: Vertex AI location. Falls back to ``GOOGLE_CLOUD_LOCATION``
            and ``GOOGLE_CLOUD_REGION``.
        credentials: Token source for Vertex AI.
        http_options: Base URL, API version, headers and timeout overrides.
        base_urls: Replacement default base URLs for this client.
        environ: Environment mapping; defaults to ``os.environ`` after
            loading ``.env``.

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: When the backend requirements are not met.
    """
    env = load_env(environ)
    if api_key and (project or location):
        raise ConfigurationError(
            "project/location and api_key are mutually exclusive",
            hint="Pass either api_key or project/location, not both.",
        )

    if vertexai is None:
        vertexai = _coerce_bool(env.get(_USE_VERTEXAI_ENV, ""))
    backend = Backend.VERTEX_AI if vertexai else Backend.GEMINI_API

    if backend is Backend.VERTEX_AI:
        # An API key from the environment never applies to Vertex AI.
        project = project or env.get(_PROJECT_ENV)
        location = location or _first(env, _LOCATION_ENVS)
    else:
        if project or location:
            raise ConfigurationError(
                "project/location are only supported by Vertex AI",
                hint="Pass vertexai=True or drop project/location.",
            )
        api_key = api_key or _first(env, _API_KEY_ENVS)

    options = http_options or HttpOptions()
    base_url = options.base_url
    if not base_url and base_urls is not None:
        base_url = base_urls.vertex_url if vertexai else base_urls.gemini_url
    if not base_url:
        base_url = env.get(_VERTEX_BASE_URL_ENV if vertexai else _GEMINI_BASE_URL_ENV)
    if not base_url:
        base_url = default_base_url(backend, location)

    resolved = options.model_copy(
        update={
            "base_url": base_url,
            "api_version": options.api_version
            or (VERTEX_API_VERSION if vertexai else GEMINI_API_VERSION),
        }
    )
    return ClientConfig(
        backend=backend,
        api_key=api_key,
        project=project,
        location=location,
        credentials=credentials,
        http_options=resolved,
    )
