"""Server-sent-event decoding and the pull-based response stream."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx

from castor.errors import ResponseFormatError, TransportError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from types import TracebackType

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DATA_PREFIX = b"data:"
# A blank line ends a record; tolerate CRLF and bare LF.
_RECORD_SEPARATOR = re.compile(rb"\r?\n\r?\n")


async def iter_sse_records(chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Split a byte stream into raw records on blank lines.

    Blank records (extra empty lines) are skipped. A trailing record without
    a terminating blank line is still produced when the stream ends.
    """
    buffer = b""
    async for chunk in chunks:
        buffer += chunk
        while True:
            match = _RECORD_SEPARATOR.search(buffer)
            if match is None:
                break
            record, buffer = buffer[: match.start()], buffer[match.end() :]
            if record.strip():
                yield record
    if buffer.strip():
        yield buffer


def decode_sse_record(record: bytes) -> dict[str, Any]:
    """Decode one ``data:`` record into a JSON object."""
    stripped = record.strip()
    if not stripped.startswith(_DATA_PREFIX):
        raise ResponseFormatError(
            f"invalid stream chunk: {stripped[:200].decode('utf-8', 'replace')!r}"
        )
    payload = stripped[len(_DATA_PREFIX) :]
    try:
        value = json.loads(payload)
    except ValueError as exc:
        raise ResponseFormatError(
            f"error unmarshalling data chunk {payload[:200].decode('utf-8', 'replace')!r}: {exc}"
        ) from exc
    if not isinstance(value, dict):
        raise ResponseFormatError(f"stream record is not an object: {value!r}")
    return value


class ResponseStream(Generic[T]):
    """Lazy, forward-only sequence of decoded stream records.

    Iterate with ``async for``; leaving early is fine, but call
    :meth:`aclose` (or use ``async with``) to release the response body.
    Records produced before a failing one remain valid.
    """

    def __init__(
        self,
        response: httpx.Response,
        transform: Callable[[dict[str, Any]], T],
    ) -> None:
        self._response = response
        self._transform = transform
        self._records = iter_sse_records(response.aiter_bytes())
        self._closed = False

    def __aiter__(self) -> ResponseStream[T]:
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        try:
            record = await self._records.__anext__()
            return self._transform(decode_sse_record(record))
        except httpx.RequestError as exc:
            await self.aclose()
            raise TransportError(
                f"reading stream from {self._response.request.url} failed: {exc}",
                operation="stream",
            ) from exc
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Release the underlying response; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._records.aclose()
        await self._response.aclose()
        logger.debug("Closed stream for %s", self._response.request.url)

    async def __aenter__(self) -> ResponseStream[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
