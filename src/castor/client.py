"""Client entry point wiring configuration, transport and resources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from castor._api_client import ApiClient
from castor.chats import Chats
from castor.config import resolve_config
from castor.converters import ConverterSet
from castor.files import Files
from castor.live import AsyncLive
from castor.models import Models

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping
    from types import TracebackType

    import httpx

    from castor.config import BaseUrls, ClientConfig, Credentials
    from castor.live import WebSocketConnection
    from castor.types import HttpOptions

logger = logging.getLogger(__name__)


class Client:
    """Async client for the Gemini API or Vertex AI.

    Configuration is resolved once here; see :func:`castor.config.resolve_config`
    for the environment variables consulted.

    Example:
        async with Client(api_key="...") as client:
            response = await client.models.generate_content(
                model="gemini-2.0-flash", contents="Why is the sky blue?"
            )
            print(response.text)
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        vertexai: bool | None = None,
        project: str | None = None,
        location: str | None = None,
        credentials: Credentials | None = None,
        http_options: HttpOptions | None = None,
        base_urls: BaseUrls | None = None,
        environ: Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        live_connector: Callable[[str, dict[str, str]], Awaitable[WebSocketConnection]]
        | None = None,
    ) -> None:
        self.config: ClientConfig = resolve_config(
            api_key=api_key,
            vertexai=vertexai,
            project=project,
            location=location,
            credentials=credentials,
            http_options=http_options,
            base_urls=base_urls,
            environ=environ,
        )
        logger.debug("Client configured: %s", self.config)
        self._api_client = ApiClient(self.config, http_client=http_client)
        converters = ConverterSet(self.config)
        self.models = Models(self._api_client, converters)
        self.files = Files(self._api_client, converters)
        self.chats = Chats(self.models)
        self.live = AsyncLive(self._api_client, converters, live_connector)

    @property
    def vertexai(self) -> bool:
        return self.config.vertexai

    async def aclose(self) -> None:
        """Close the owned HTTP connection pool."""
        await self._api_client.aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
