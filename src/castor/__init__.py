"""Castor: one async client for the Gemini API and Vertex AI.

Public API:
    - Client: configuration, HTTP transport and resources
    - types: backend-agnostic request and response models
    - errors: exception hierarchy
    - RetryPolicy / retry_async: opt-in retries for unary calls
"""

from __future__ import annotations

import logging

from castor import types
from castor.client import Client
from castor.config import Backend, BaseUrls, ClientConfig, Credentials, StaticCredentials
from castor.errors import (
    APIError,
    CastorError,
    ClientError,
    ConfigurationError,
    ConversionError,
    LiveSessionError,
    ResponseFormatError,
    ServerError,
    TransportError,
)
from castor.pagers import AsyncPager
from castor.retry import RetryPolicy, retry_async

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("castor-genai")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("castor").addHandler(logging.NullHandler())

__all__ = [
    "APIError",
    "AsyncPager",
    "Backend",
    "BaseUrls",
    "CastorError",
    "Client",
    "ClientConfig",
    "ClientError",
    "ConfigurationError",
    "ConversionError",
    "Credentials",
    "LiveSessionError",
    "ResponseFormatError",
    "RetryPolicy",
    "ServerError",
    "StaticCredentials",
    "TransportError",
    "retry_async",
    "types",
]
