"""HTTP transport pipeline: build, send, classify, deserialize.

``ApiClient`` speaks untyped nodes only. Resource modules convert to and from
the wire shape around it.
"""

from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING, Any, BinaryIO, TypeVar

import httpx

from castor._http import (
    API_KEY_HEADER,
    AUTHORIZATION_HEADER,
    CLIENT_HEADER,
    CLIENT_IDENTIFIER,
    CONTENT_TYPE_HEADER,
    UPLOAD_CHUNK_SIZE,
    UPLOAD_COMMAND_HEADER,
    UPLOAD_CONTENT_LENGTH_HEADER,
    UPLOAD_CONTENT_TYPE_HEADER,
    UPLOAD_OFFSET_HEADER,
    UPLOAD_PROTOCOL_HEADER,
    UPLOAD_SIZE_RECEIVED_HEADER,
    UPLOAD_STATUS_HEADER,
    UPLOAD_URL_HEADER,
    USER_AGENT_HEADER,
)
from castor._streaming import ResponseStream
from castor.errors import (
    APIError,
    ConfigurationError,
    ResponseFormatError,
    TransportError,
)
from castor.types import HttpOptions

if TYPE_CHECKING:
    from collections.abc import Callable

    from castor.config import ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def merge_http_options(base: HttpOptions, override: HttpOptions | None) -> HttpOptions:
    """Overlay per-call options on client options; headers are merged."""
    if override is None:
        return base
    headers = {**(base.headers or {}), **(override.headers or {})}
    return HttpOptions(
        base_url=override.base_url or base.base_url,
        api_version=override.api_version or base.api_version,
        headers=headers or None,
        timeout=override.timeout if override.timeout is not None else base.timeout,
    )


def _parse_json_body(response: httpx.Response) -> dict[str, Any]:
    text = response.text
    if not text.strip():
        return {}
    try:
        body = json.loads(text)
    except ValueError as exc:
        raise ResponseFormatError(
            f"response from {response.request.url} is not valid JSON: {text[:200]!r}"
        ) from exc
    if not isinstance(body, dict):
        raise ResponseFormatError(f"response body is not an object: {text[:200]!r}")
    return body


class ApiClient:
    """Authenticated HTTP access to one backend.

    Owns the ``httpx.AsyncClient`` unless one is injected.
    """

    def __init__(
        self, config: ClientConfig, *, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.http_options.timeout)

    @property
    def vertexai(self) -> bool:
        return self.config.vertexai

    def http_options(self, override: HttpOptions | None = None) -> HttpOptions:
        return merge_http_options(self.config.http_options, override)

    def build_url(
        self, method: str, path: str, options: HttpOptions, *, include_version: bool = True
    ) -> str:
        """Join base URL, API version and path without doubled slashes."""
        base_url = options.base_url or ""
        try:
            parsed = httpx.URL(base_url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise ConfigurationError(f"invalid base URL {base_url!r}: {exc}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ConfigurationError(
                f"invalid base URL {base_url!r}",
                hint="Base URLs look like https://generativelanguage.googleapis.com/",
            )

        path = path.lstrip("/")
        if self.vertexai and not path.startswith("projects/"):
            is_base_model_query = method.upper() == "GET" and path.startswith(
                "publishers/google/models"
            )
            if not is_base_model_query:
                path = f"projects/{self.config.project}/locations/{self.config.location}/{path}"

        segments = [base_url.rstrip("/")]
        if include_version and options.api_version:
            segments.append(options.api_version.strip("/"))
        segments.append(path)
        return "/".join(segments)

    async def auth_headers(self) -> dict[str, str]:
        """API key header for key auth, bearer token for credentials."""
        if self.config.api_key:
            return {API_KEY_HEADER: self.config.api_key}
        if self.config.credentials is not None:
            token = await self.config.credentials.token()
            return {AUTHORIZATION_HEADER: f"Bearer {token}"}
        return {}

    async def headers(
        self,
        options: HttpOptions,
        *,
        json_body: bool = True,
        extra: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Headers for a call: client identity, auth, ``extra``, then caller overrides."""
        headers: dict[str, str] = {}
        if json_body:
            headers[CONTENT_TYPE_HEADER] = "application/json"
        headers[USER_AGENT_HEADER] = CLIENT_IDENTIFIER
        headers[CLIENT_HEADER] = CLIENT_IDENTIFIER
        headers.update(await self.auth_headers())
        headers.update(extra or {})
        headers.update(options.headers or {})
        return headers

    async def build_request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        http_options: HttpOptions | None = None,
        *,
        headers: dict[str, str] | None = None,
        include_version: bool = True,
    ) -> httpx.Request:
        """Build the request; an empty body sends no payload at all.

        ``headers`` are protocol headers added before the caller overrides.
        """
        options = self.http_options(http_options)
        url = self.build_url(method, path, options, include_version=include_version)
        request_headers = await self.headers(options, extra=headers)
        content = json.dumps(body).encode("utf-8") if body else None
        extra: dict[str, Any] = {}
        if options.timeout is not None:
            extra["timeout"] = options.timeout
        return self._http.build_request(
            method.upper(), url, headers=request_headers, content=content, **extra
        )

    async def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        logger.debug("%s %s", request.method, request.url)
        try:
            response = await self._http.send(request, stream=stream)
        except httpx.RequestError as exc:
            raise TransportError(
                f"{request.method} {request.url} failed: {exc}",
                operation=f"{request.method} {request.url.path}",
            ) from exc
        if response.status_code >= 400:
            try:
                await response.aread()
            finally:
                await response.aclose()
            raise APIError.from_response(response)
        return response

    async def request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        http_options: HttpOptions | None = None,
    ) -> dict[str, Any]:
        """Send a unary request and return the decoded JSON body."""
        request = await self.build_request(method, path, body, http_options)
        response = await self._send(request)
        return _parse_json_body(response)

    async def request_streamed(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None,
        http_options: HttpOptions | None,
        transform: Callable[[dict[str, Any]], T],
    ) -> ResponseStream[T]:
        """Send a request whose body is a server-sent-event stream.

        Errors in the status line surface here; record errors surface while
        iterating the returned stream.
        """
        request = await self.build_request(method, path, body, http_options)
        response = await self._send(request, stream=True)
        return ResponseStream(response, transform)

    async def create_upload_session(
        self,
        path: str,
        body: dict[str, Any],
        *,
        size: int,
        mime_type: str,
        http_options: HttpOptions | None = None,
    ) -> str:
        """Start a resumable upload and return the session URL.

        The start request goes to ``upload/{version}/{path}``.
        """
        options = self.http_options(http_options)
        request = await self.build_request(
            "post",
            f"upload/{options.api_version}/{path}",
            body,
            http_options,
            headers={
                UPLOAD_PROTOCOL_HEADER: "resumable",
                UPLOAD_COMMAND_HEADER: "start",
                UPLOAD_CONTENT_LENGTH_HEADER: str(size),
                UPLOAD_CONTENT_TYPE_HEADER: mime_type,
            },
            include_version=False,
        )
        response = await self._send(request)
        upload_url = response.headers.get(UPLOAD_URL_HEADER)
        if not upload_url:
            raise ResponseFormatError(
                "upload session response did not include an upload URL",
                hint=f"Expected the {UPLOAD_URL_HEADER} response header.",
            )
        return upload_url

    async def upload_file(
        self,
        source: bytes | BinaryIO,
        upload_url: str,
        *,
        http_options: HttpOptions | None = None,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
    ) -> dict[str, Any]:
        """Send ``source`` to a resumable upload session, chunk by chunk.

        Args:
            source: Bytes or a binary file object positioned at the start.
            upload_url: Session URL returned by the start request.
            http_options: Extra headers and timeout for the chunk requests.
            chunk_size: Bytes per chunk; the last chunk may be shorter.

        Returns:
            The decoded body of the finalize response.
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        stream = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
        options = self.http_options(http_options)
        base_headers = await self.headers(options, json_body=False)
        extra: dict[str, Any] = {}
        if options.timeout is not None:
            extra["timeout"] = options.timeout

        offset = 0
        while True:
            chunk = stream.read(chunk_size) or b""
            final = len(chunk) < chunk_size
            headers = {
                **base_headers,
                UPLOAD_COMMAND_HEADER: "upload, finalize" if final else "upload",
                UPLOAD_OFFSET_HEADER: str(offset),
                "Content-Length": str(len(chunk)),
            }
            request = self._http.build_request(
                "POST", upload_url, headers=headers, content=chunk, **extra
            )
            response = await self._send(request)
            offset += len(chunk)
            self._check_received(response, offset)

            status = response.headers.get(UPLOAD_STATUS_HEADER)
            logger.debug("Uploaded %d bytes (status=%s)", offset, status)
            if final:
                if status != "final":
                    raise ResponseFormatError(
                        f"upload was not finalized, server status {status!r} after {offset} bytes"
                    )
                return _parse_json_body(response)
            if status != "active":
                raise ResponseFormatError(
                    f"upload stopped early with server status {status!r} after {offset} bytes"
                )

    @staticmethod
    def _check_received(response: httpx.Response, offset: int) -> None:
        received = response.headers.get(UPLOAD_SIZE_RECEIVED_HEADER)
        if received is None:
            return
        try:
            received_bytes = int(received)
        except ValueError as exc:
            raise ResponseFormatError(f"invalid upload size header {received!r}") from exc
        if received_bytes != offset:
            raise ResponseFormatError(
                f"upload offset mismatch: server received {received_bytes} bytes, sent {offset}"
            )

    async def download_file(
        self, path: str, http_options: HttpOptions | None = None
    ) -> bytes:
        """GET ``path`` and return the raw body bytes."""
        request = await self.build_request("get", path, None, http_options)
        response = await self._send(request)
        return response.content

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
