"""Realtime bidirectional sessions over WebSocket.

A session runs ``CONNECTING -> HANDSHAKING -> OPEN -> CLOSED``. Drive
receiving and sending from separate tasks; one sender and one receiver at a
time.
"""

from __future__ import annotations

import contextlib
from enum import Enum
import json
import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from castor._bridge import from_node, to_node
from castor._http import API_KEY_HEADER
from castor._paths import encode_query
from castor.errors import (
    ConfigurationError,
    LiveSessionError,
    ResponseFormatError,
    TransportError,
)
from castor.types import (
    Blob,
    Content,
    FunctionResponse,
    LiveClientContent,
    LiveClientMessage,
    LiveClientRealtimeInput,
    LiveClientToolResponse,
    LiveConnectConfig,
    LiveServerMessage,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from castor._api_client import ApiClient
    from castor.converters import ConverterSet
    from castor.types import HttpOptions

logger = logging.getLogger(__name__)

_GEMINI_PATH = "ws/google.ai.generativelanguage.{version}.GenerativeService.BidiGenerateContent"
_VERTEX_PATH = "ws/google.cloud.aiplatform.{version}.LlmBidiService/BidiGenerateContent"


class SessionState(str, Enum):
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    OPEN = "open"
    CLOSED = "closed"


class WebSocketConnection(Protocol):
    """The part of a websockets client connection a session uses."""

    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...


async def websockets_connector(url: str, headers: dict[str, str]) -> WebSocketConnection:
    """Open a connection with the ``websockets`` library."""
    return await ws_connect(url, additional_headers=headers)


def build_live_url(api_client: ApiClient, options: HttpOptions) -> str:
    """Socket URL for the client's backend; ``ws``/``wss`` schemes are kept."""
    base_url = options.base_url or ""
    try:
        parsed = httpx.URL(base_url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(f"invalid base URL {base_url!r}: {exc}") from exc
    scheme = parsed.scheme if parsed.scheme in ("ws", "wss") else "wss"
    netloc = parsed.netloc.decode("ascii")
    base_path = parsed.path.rstrip("/")
    version = options.api_version
    if api_client.vertexai:
        return f"{scheme}://{netloc}{base_path}/{_VERTEX_PATH.format(version=version)}"
    path = _GEMINI_PATH.format(version=version)
    query = encode_query({"key": api_client.config.api_key})
    return f"{scheme}://{netloc}{base_path}/{path}?{query}"


class AsyncSession:
    """An open realtime session.

    Example:
        async with client.live.connect(model="gemini-2.0-flash-live-001") as session:
            await session.send_client_content(turns=Content.from_text("Hello"))
            async for message in session:
                print(message.text)
    """

    def __init__(self, connection: WebSocketConnection, converters: ConverterSet) -> None:
        self._ws = connection
        self._converters = converters
        self.state = SessionState.CONNECTING

    def _ensure_open(self) -> None:
        if self.state is not SessionState.OPEN:
            raise LiveSessionError(f"session is {self.state.value}, expected open")

    async def _fail(self, action: str, exc: BaseException) -> TransportError:
        logger.warning("Live session %s failed: %s", action, exc)
        await self.close()
        return TransportError(f"live session {action} failed: {exc}", operation=f"live.{action}")

    async def _write(self, frame: dict[str, Any]) -> None:
        try:
            await self._ws.send(json.dumps(frame))
        except (WebSocketException, OSError) as exc:
            raise await self._fail("send", exc) from exc

    async def _read(self) -> LiveServerMessage | None:
        """Read one frame; None on a normal close."""
        try:
            raw = await self._ws.recv()
        except ConnectionClosedOK:
            await self.close()
            return None
        except (WebSocketException, OSError) as exc:
            raise await self._fail("receive", exc) from exc
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        try:
            node = json.loads(text)
        except ValueError as exc:
            raise ResponseFormatError(f"invalid live frame: {text[:200]!r}") from exc
        if not isinstance(node, dict):
            raise ResponseFormatError(f"live frame is not an object: {text[:200]!r}")
        if "error" in node:
            raise LiveSessionError(f"server reported an error: {node['error']}")
        return from_node(LiveServerMessage, self._converters.from_wire("LiveServerMessage", node))

    async def _handshake(self, setup: dict[str, Any]) -> LiveServerMessage:
        self.state = SessionState.HANDSHAKING
        await self._write(setup)
        ack = await self._read()
        if ack is None:
            raise LiveSessionError("connection closed before setup completed")
        self.state = SessionState.OPEN
        return ack

    async def send(self, message: LiveClientMessage | dict[str, Any]) -> None:
        """Send one client message; setup frames are rejected here."""
        self._ensure_open()
        if isinstance(message, dict):
            message = from_node(LiveClientMessage, message)
        if message.setup is not None:
            raise LiveSessionError("setup can only be sent while connecting")
        node = self._converters.to_wire("LiveSendParameters", {"input": to_node(message)})
        node.pop("input", None)
        await self._write(node)

    async def send_client_content(
        self,
        *,
        turns: Content | list[Content] | None = None,
        turn_complete: bool = True,
    ) -> None:
        if isinstance(turns, Content):
            turns = [turns]
        await self.send(
            LiveClientMessage(
                client_content=LiveClientContent(turns=turns, turn_complete=turn_complete)
            )
        )

    async def send_realtime_input(self, *, media_chunks: list[Blob]) -> None:
        await self.send(
            LiveClientMessage(realtime_input=LiveClientRealtimeInput(media_chunks=media_chunks))
        )

    async def send_tool_response(
        self, *, function_responses: FunctionResponse | list[FunctionResponse]
    ) -> None:
        if isinstance(function_responses, FunctionResponse):
            function_responses = [function_responses]
        await self.send(
            LiveClientMessage(
                tool_response=LiveClientToolResponse(function_responses=function_responses)
            )
        )

    async def receive(self) -> LiveServerMessage:
        """Read exactly one server message."""
        self._ensure_open()
        message = await self._read()
        if message is None:
            raise LiveSessionError("session closed by the server")
        return message

    def __aiter__(self) -> AsyncIterator[LiveServerMessage]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[LiveServerMessage]:
        while self.state is SessionState.OPEN:
            message = await self._read()
            if message is None:
                return
            yield message

    async def close(self) -> None:
        """Close the socket; safe to call more than once."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        with contextlib.suppress(WebSocketException, OSError):
            await self._ws.close()
        logger.debug("Live session closed")


class AsyncLive:
    """Entry point for realtime sessions."""

    def __init__(
        self,
        api_client: ApiClient,
        converters: ConverterSet,
        connector: Callable[[str, dict[str, str]], Awaitable[WebSocketConnection]] | None = None,
    ) -> None:
        self._api_client = api_client
        self._converters = converters
        self._connector = connector or websockets_connector

    @contextlib.asynccontextmanager
    async def connect(
        self,
        *,
        model: str,
        config: LiveConnectConfig | None = None,
        http_options: HttpOptions | None = None,
    ) -> AsyncIterator[AsyncSession]:
        """Open a session, complete the setup handshake and yield it.

        The session is closed when the block exits, including on error.
        """
        setup = self._converters.to_wire(
            "LiveConnectParameters", to_node({"model": model, "config": config})
        )
        setup.pop("config", None)
        options = self._api_client.http_options(http_options)
        url = build_live_url(self._api_client, options)
        headers = await self._api_client.headers(options)
        # The Gemini key travels in the URL.
        headers.pop(API_KEY_HEADER, None)

        logger.debug("Connecting live session for %s", model)
        try:
            connection = await self._connector(url, headers)
        except (WebSocketException, OSError) as exc:
            raise TransportError(f"live connect failed: {exc}", operation="live.connect") from exc

        session = AsyncSession(connection, self._converters)
        try:
            await session._handshake(setup)
            yield session
        finally:
            await session.close()
