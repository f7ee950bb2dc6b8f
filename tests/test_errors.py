from __future__ import annotations

import httpx
import pytest

from castor.errors import (
    APIError,
    CastorError,
    ClientError,
    ConversionError,
    ServerError,
    TransportError,
)

pytestmark = pytest.mark.unit


def _response(status: int, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", "https://x.test/v1/m"), **kwargs)


def test_envelope_is_parsed_into_client_error() -> None:
    body = {
        "error": {
            "code": 400,
            "message": "bad field",
            "status": "INVALID_ARGUMENT",
            "details": [{"@type": "type.googleapis.com/google.rpc.BadRequest"}],
        }
    }
    err = APIError.from_response(_response(400, json=body))

    assert isinstance(err, ClientError)
    assert (err.code, err.message, err.status) == (400, "bad field", "INVALID_ARGUMENT")
    assert err.details == body["error"]["details"]
    assert str(err).startswith("Error 400, Message: bad field, Status: INVALID_ARGUMENT")


def test_server_errors_are_distinct() -> None:
    err = APIError.from_response(_response(503, json={"error": {"code": 503, "message": "busy"}}))
    assert isinstance(err, ServerError)
    assert not isinstance(err, ClientError)
    assert err.status_code == 503


@pytest.mark.parametrize("code", ["INVALID", None, "", True, 0, "0", {"n": 1}])
def test_unusable_envelope_code_falls_back_to_http_status(code: object) -> None:
    body = {"error": {"code": code, "message": "m"}}
    err = APIError.from_response(_response(400, json=body))
    assert isinstance(err, ClientError)
    assert (err.code, err.message) == (400, "m")


def test_numeric_string_envelope_code_is_parsed() -> None:
    err = APIError.from_response(_response(503, json={"error": {"code": "503", "message": "m"}}))
    assert isinstance(err, ServerError)
    assert err.code == 503


def test_non_envelope_body_uses_raw_text_and_status_phrase() -> None:
    err = APIError.from_response(_response(404, text="<html>nope</html>"))
    assert isinstance(err, ClientError)
    assert err.message == "<html>nope</html>"
    assert err.status == "404 Not Found"


def test_retry_after_from_header_and_retry_info() -> None:
    with_header = APIError.from_response(
        _response(429, json={"error": {"code": 429}}, headers={"Retry-After": "3"})
    )
    assert with_header.retry_after_s == 3.0

    detail = {"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "8s"}
    with_info = APIError(429, "slow down", details=[detail])
    assert with_info.retry_after_s == 8.0
    assert APIError(500, "x").retry_after_s is None


def test_retryable_follows_status() -> None:
    assert APIError(429, "slow").retryable is True
    assert APIError(503, "busy").retryable is True
    assert APIError(400, "bad").retryable is False
    assert APIError.from_response(_response(404, text="gone")).retryable is False


def test_subclass_hierarchy() -> None:
    """Every library error is catchable as CastorError; conversion errors are ValueErrors."""
    assert issubclass(ClientError, APIError)
    assert issubclass(APIError, CastorError)
    assert issubclass(TransportError, CastorError)
    assert issubclass(ConversionError, ValueError)


def test_hints_and_operations_are_kept() -> None:
    err = TransportError("down", operation="POST /v1/x", hint="check network")
    assert err.operation == "POST /v1/x"
    assert err.hint == "check network"
    assert str(err) == "down"
