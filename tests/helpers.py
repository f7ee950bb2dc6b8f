"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: scripted HTTP and WebSocket peers so
suites never touch the network.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
import json
from typing import Any

import httpx
from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks; an exception item is raised."""

    def __init__(self, chunks: list[bytes | BaseException]) -> None:
        self._chunks = chunks
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def sse_body(*records: dict[str, Any]) -> bytes:
    return b"".join(b"data: " + json.dumps(r).encode() + b"\r\n\r\n" for r in records)


@dataclass
class RecordingTransport:
    """Scripted ``httpx.MockTransport``.

    Queue responses (or exceptions) in order; every request is recorded with
    its body already read.
    """

    responses: list[httpx.Response | BaseException] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)

    def add_json(
        self, body: Any, status: int = 200, headers: dict[str, str] | None = None
    ) -> None:
        self.responses.append(httpx.Response(status, json=body, headers=headers))

    def add_text(self, text: str, status: int = 200, headers: dict[str, str] | None = None) -> None:
        self.responses.append(httpx.Response(status, text=text, headers=headers))

    def add_bytes(self, content: bytes, status: int = 200) -> None:
        self.responses.append(httpx.Response(status, content=content))

    def add_stream(self, chunks: list[bytes | BaseException]) -> ChunkStream:
        stream = ChunkStream(chunks)
        self.responses.append(
            httpx.Response(200, stream=stream, headers={"content-type": "text/event-stream"})
        )
        return stream

    def add_error(self, exc: BaseException) -> None:
        self.responses.append(exc)

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"unexpected request {request.method} {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@dataclass
class FakeWebSocket:
    """Scripted WebSocket peer.

    ``incoming`` frames are returned by ``recv`` in order (exceptions are
    raised); once empty, ``recv`` reports a normal close.
    """

    incoming: list[str | bytes | BaseException] = field(default_factory=list)
    sent: list[str] = field(default_factory=list)
    send_error: BaseException | None = None
    close_calls: int = 0

    async def send(self, message: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)

    async def recv(self) -> str | bytes:
        if not self.incoming:
            raise ConnectionClosedOK(Close(1000, ""), Close(1000, ""), True)
        item = self.incoming.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.close_calls += 1

    def sent_json(self) -> list[Any]:
        return [json.loads(frame) for frame in self.sent]


@dataclass
class FakeConnector:
    """Live connector returning one ``FakeWebSocket`` and recording the call."""

    socket: FakeWebSocket = field(default_factory=FakeWebSocket)
    url: str | None = None
    headers: dict[str, str] | None = None

    async def __call__(self, url: str, headers: dict[str, str]) -> FakeWebSocket:
        self.url = url
        self.headers = headers
        return self.socket
