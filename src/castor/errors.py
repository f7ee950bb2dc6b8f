"""Exception hierarchy for Castor."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from castor._http import RETRYABLE_STATUS_CODES

if TYPE_CHECKING:
    from collections.abc import Iterator

    import httpx


class CastorError(Exception):
    """Base exception for all Castor errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(CastorError):
    """Client configuration could not be resolved or is inconsistent."""


class TransportError(CastorError):
    """The network call itself failed (connection, DNS, TLS, socket).

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(
        self, message: str, *, operation: str | None = None, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.operation = operation


class ResponseFormatError(CastorError):
    """A successful response body or stream record could not be decoded."""


class ConversionError(CastorError, ValueError):
    """A value cannot be converted for the active backend or typed model."""


class LiveSessionError(CastorError):
    """Realtime session used out of order, or the server reported an error."""


class APIError(CastorError):
    """The backend answered with an error status.

    Carries the parsed error envelope (``code``, ``message``, ``status``,
    ``details``). When the body is not an envelope, ``message`` is the raw
    body text and ``status`` the HTTP status line phrase.
    """

    def __init__(
        self,
        code: int,
        message: str,
        *,
        status: str = "",
        details: list[dict[str, Any]] | None = None,
        response: httpx.Response | None = None,
        hint: str | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status = status
        self.details = details or []
        self.response = response
        super().__init__(
            f"Error {code}, Message: {message}, Status: {status}, Details: {self.details}",
            hint=hint,
        )

    @property
    def status_code(self) -> int:
        if self.response is not None:
            return self.response.status_code
        return self.code

    @property
    def retryable(self) -> bool:
        """True for throttling, timeout and 5xx statuses."""
        return self.status_code in RETRYABLE_STATUS_CODES

    @property
    def retry_after_s(self) -> float | None:
        """Server-requested delay from ``Retry-After`` or a ``RetryInfo`` detail."""
        if self.response is not None:
            header = self.response.headers.get("retry-after")
            if header:
                try:
                    return max(0.0, float(header))
                except ValueError:
                    pass
        for detail in self.details:
            if "RetryInfo" not in str(detail.get("@type", "")):
                continue
            delay = detail.get("retryDelay")
            if isinstance(delay, str) and delay.endswith("s"):
                try:
                    return float(delay[:-1])
                except ValueError:
                    continue
        return None

    @classmethod
    def from_response(cls, response: httpx.Response) -> APIError:
        """Build the matching error kind from a response with status >= 400."""
        error_cls: type[APIError] = ServerError if response.status_code >= 500 else ClientError
        text = response.text
        try:
            payload = json.loads(text)
        except ValueError:
            payload = None
        envelope = payload.get("error") if isinstance(payload, dict) else None
        if not isinstance(envelope, dict):
            return error_cls(
                response.status_code,
                text,
                status=f"{response.status_code} {response.reason_phrase}".strip(),
                response=response,
            )
        details = envelope.get("details")
        return error_cls(
            _error_code(envelope.get("code"), response.status_code),
            str(envelope.get("message", "")),
            status=str(envelope.get("status", "")),
            details=details if isinstance(details, list) else None,
            response=response,
        )


def _error_code(code: Any, fallback: int) -> int:
    if isinstance(code, bool):
        return fallback
    if isinstance(code, int):
        return code or fallback
    if isinstance(code, str) and code.strip().isdigit():
        return int(code) or fallback
    return fallback


class ClientError(APIError):
    """Request was rejected by the backend (HTTP 4xx)."""


class ServerError(APIError):
    """Backend failed to serve the request (HTTP 5xx)."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
