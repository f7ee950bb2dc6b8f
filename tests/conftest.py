"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, shared client
fixtures, and automatic API test skipping. Fixtures in the first sections are
autouse.
"""

from __future__ import annotations

import logging
import os

import pytest

from castor import Client, StaticCredentials
from tests.helpers import RecordingTransport

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr("castor.config.load_dotenv", lambda *_args, **_kwargs: False)


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean environment for each test.

    Clears GOOGLE_* and GEMINI_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith(("GOOGLE_", "GEMINI_")):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def transport() -> RecordingTransport:
    """A scripted HTTP transport; queue responses before calling the client."""
    return RecordingTransport()


@pytest.fixture
def gemini_client(transport: RecordingTransport) -> Client:
    return Client(api_key="test-key", environ={}, http_client=transport.client())


@pytest.fixture
def vertex_client(transport: RecordingTransport) -> Client:
    return Client(
        vertexai=True,
        project="my-project",
        location="us-central1",
        credentials=StaticCredentials("test-token"),
        environ={},
        http_client=transport.client(),
    )


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


# =============================================================================
# API Test Configuration
# =============================================================================

# Cheapest model that supports every call the API tests make.
_GEMINI_TEST_MODEL = "gemini-2.0-flash-lite"


@pytest.fixture
def gemini_api_key():
    """Return GEMINI_API_KEY or skip the test if unavailable."""
    key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY not set")
    return key


@pytest.fixture
def gemini_test_model():
    """Return the model to use for Gemini API tests."""
    return _GEMINI_TEST_MODEL
