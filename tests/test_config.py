"""Configuration resolution: explicit arguments, environment, defaults."""

from __future__ import annotations

import pytest

from castor.config import (
    Backend,
    BaseUrls,
    ClientConfig,
    StaticCredentials,
    resolve_config,
)
from castor.errors import ConfigurationError
from castor.types import HttpOptions

pytestmark = pytest.mark.unit

_CREDS = StaticCredentials("s3cr3t")


def test_gemini_defaults() -> None:
    cfg = resolve_config(api_key="k", environ={})
    assert cfg.backend is Backend.GEMINI_API
    assert cfg.http_options.base_url == "https://generativelanguage.googleapis.com/"
    assert cfg.http_options.api_version == "v1beta"
    assert cfg.vertexai is False


def test_vertex_defaults_use_regional_endpoint() -> None:
    cfg = resolve_config(
        vertexai=True, project="p", location="europe-west4", credentials=_CREDS, environ={}
    )
    assert cfg.backend is Backend.VERTEX_AI
    assert cfg.http_options.base_url == "https://europe-west4-aiplatform.googleapis.com/"
    assert cfg.http_options.api_version == "v1beta1"


def test_vertex_global_location_endpoint() -> None:
    cfg = resolve_config(
        vertexai=True, project="p", location="global", credentials=_CREDS, environ={}
    )
    assert cfg.http_options.base_url == "https://aiplatform.googleapis.com/"


def test_api_key_from_environment() -> None:
    cfg = resolve_config(environ={"GOOGLE_API_KEY": "env-key"})
    assert cfg.api_key == "env-key"
    assert resolve_config(environ={"GEMINI_API_KEY": "g"}).api_key == "g"


def test_explicit_api_key_takes_precedence() -> None:
    cfg = resolve_config(api_key="explicit", environ={"GOOGLE_API_KEY": "env-key"})
    assert cfg.api_key == "explicit"


def test_backend_selected_from_environment() -> None:
    env = {
        "GOOGLE_GENAI_USE_VERTEXAI": "true",
        "GOOGLE_CLOUD_PROJECT": "p",
        "GOOGLE_CLOUD_REGION": "us-east1",
        "GOOGLE_API_KEY": "ignored",
    }
    cfg = resolve_config(credentials=_CREDS, environ=env)
    assert cfg.backend is Backend.VERTEX_AI
    assert (cfg.project, cfg.location) == ("p", "us-east1")
    # An environment API key never leaks into a Vertex AI configuration.
    assert cfg.api_key is None


def test_explicit_vertexai_false_overrides_environment() -> None:
    cfg = resolve_config(
        api_key="k", vertexai=False, environ={"GOOGLE_GENAI_USE_VERTEXAI": "1"}
    )
    assert cfg.backend is Backend.GEMINI_API


def test_missing_api_key_raises_clear_error() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        resolve_config(environ={})
    assert "API key" in str(exc_info.value)
    assert exc_info.value.hint is not None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"project": "p", "credentials": _CREDS},
        {"location": "l", "credentials": _CREDS},
        {"project": "p", "location": "l"},
    ],
)
def test_vertex_requirements(kwargs: dict) -> None:
    with pytest.raises(ConfigurationError):
        resolve_config(vertexai=True, environ={}, **kwargs)


def test_api_key_and_project_are_mutually_exclusive() -> None:
    with pytest.raises(ConfigurationError, match="mutually exclusive"):
        resolve_config(api_key="k", project="p", environ={})


def test_project_without_vertex_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="only supported by Vertex AI"):
        resolve_config(project="p", environ={"GOOGLE_API_KEY": "k"})


def test_base_url_precedence() -> None:
    env = {"GOOGLE_GEMINI_BASE_URL": "https://env.example/"}
    urls = BaseUrls(gemini_url="https://override.example/")

    explicit = resolve_config(
        api_key="k",
        http_options=HttpOptions(base_url="https://explicit.example/"),
        base_urls=urls,
        environ=env,
    )
    assert explicit.http_options.base_url == "https://explicit.example/"
    assert resolve_config(api_key="k", base_urls=urls, environ=env).http_options.base_url == (
        "https://override.example/"
    )
    assert resolve_config(api_key="k", environ=env).http_options.base_url == "https://env.example/"


def test_http_options_are_preserved() -> None:
    cfg = resolve_config(
        api_key="k",
        http_options=HttpOptions(api_version="v1", headers={"X-A": "1"}, timeout=3.0),
        environ={},
    )
    assert cfg.http_options.api_version == "v1"
    assert cfg.http_options.headers == {"X-A": "1"}
    assert cfg.http_options.timeout == 3.0


def test_dotenv_is_loaded_only_without_explicit_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []
    monkeypatch.setattr("castor.config.load_dotenv", lambda *a, **k: calls.append(1) or False)
    monkeypatch.setenv("GOOGLE_API_KEY", "from-os")

    resolve_config(environ={"GOOGLE_API_KEY": "k"})
    assert calls == []
    assert resolve_config().api_key == "from-os"
    assert calls == [1]


def test_config_is_frozen_and_redacted() -> None:
    cfg = resolve_config(api_key="super-secret", environ={})
    assert "super-secret" not in repr(cfg)
    assert "[REDACTED]" in str(cfg)
    with pytest.raises(AttributeError):
        cfg.api_key = "other"  # type: ignore[misc]
    assert "s3cr3t" not in repr(_CREDS)


def test_direct_construction_validates() -> None:
    with pytest.raises(ConfigurationError, match="http_options"):
        ClientConfig(backend=Backend.GEMINI_API, api_key="k")
