"""Small HTTP-related constants shared across Castor.

Kept free of package imports so any module can use it.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
import platform

try:
    LIBRARY_VERSION = version("castor-genai")
except PackageNotFoundError:
    LIBRARY_VERSION = "0.0.0+unknown"

# Sent as both User-Agent and x-goog-api-client.
CLIENT_IDENTIFIER = f"castor-genai/{LIBRARY_VERSION} gl-python/{platform.python_version()}"

CONTENT_TYPE_HEADER = "Content-Type"
USER_AGENT_HEADER = "User-Agent"
CLIENT_HEADER = "x-goog-api-client"
API_KEY_HEADER = "x-goog-api-key"
AUTHORIZATION_HEADER = "Authorization"

UPLOAD_PROTOCOL_HEADER = "X-Goog-Upload-Protocol"
UPLOAD_COMMAND_HEADER = "X-Goog-Upload-Command"
UPLOAD_OFFSET_HEADER = "X-Goog-Upload-Offset"
UPLOAD_STATUS_HEADER = "X-Goog-Upload-Status"
UPLOAD_URL_HEADER = "X-Goog-Upload-URL"
UPLOAD_SIZE_RECEIVED_HEADER = "X-Goog-Upload-Size-Received"
UPLOAD_CONTENT_LENGTH_HEADER = "X-Goog-Upload-Header-Content-Length"
UPLOAD_CONTENT_TYPE_HEADER = "X-Goog-Upload-Header-Content-Type"

UPLOAD_CHUNK_SIZE = 8 * 1024 * 1024

# Status codes the opt-in retry helper treats as transient.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})
