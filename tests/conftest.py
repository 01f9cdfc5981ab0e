"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Infrastructure: respx_mock, mock_settings, mock_logfire, logfire_capture
2. Webhook: recorded_events, dispatcher, webhook_payload, test_client
3. Outbound: sender, sample_message
"""

import os
from unittest.mock import Mock, patch

import pytest

# Logfire warns on every call when it is not configured
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import httpx
import logfire
import pytest_asyncio
import respx

from fbmessenger.config import Settings
from fbmessenger.models.objects import Message, User
from fbmessenger.services.dispatcher import WebhookDispatcher
from fbmessenger.services.sender import Sender

TEST_ENDPOINT = "https://graph.test/v18.0/me/messages"


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    with respx.mock:
        yield respx


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock application settings."""
    settings = Settings(
        facebook_page_access_token="test-page-token",
        facebook_verify_tokens="good,also-good",
        messenger_endpoint=TEST_ENDPOINT,
        env="local",
        logfire_token=None,
        sentry_dsn=None,
    )

    monkeypatch.setattr("fbmessenger.config.get_settings", lambda: settings)
    # Patch where get_settings is used
    monkeypatch.setattr("fbmessenger.main.get_settings", lambda: settings)
    monkeypatch.setattr("fbmessenger.services.sender.get_settings", lambda: settings)
    monkeypatch.setattr("fbmessenger.services.dispatcher.get_settings", lambda: settings)
    return settings


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Replaces the module attributes our code calls, so every
    ``logfire.<name>(...)`` call is recorded on the returned mock.
    """
    mock_logfire_module = Mock()
    for attr in [
        "info",
        "debug",
        "warn",
        "error",
        "configure",
        "instrument_fastapi",
        "instrument_pydantic",
        "instrument_httpx",
    ]:
        monkeypatch.setattr(logfire, attr, getattr(mock_logfire_module, attr))
    return mock_logfire_module


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    Yields a list of (level, args, kwargs) tuples.
    """
    captured_logs = []

    def capture(level):
        def _capture(*args, **kwargs):
            captured_logs.append((level, args, kwargs))

        return _capture

    with (
        patch("logfire.debug", side_effect=capture("debug")),
        patch("logfire.info", side_effect=capture("info")),
        patch("logfire.warn", side_effect=capture("warn")),
        patch("logfire.error", side_effect=capture("error")),
    ):
        yield captured_logs


# =============================================================================
# Webhook
# =============================================================================


@pytest.fixture
def recorded_events():
    """List that collects every event handed to the listener."""
    return []


@pytest.fixture
def dispatcher(recorded_events, mock_logfire):
    """Dispatcher accepting the verify token "good"."""
    return WebhookDispatcher(recorded_events.append, verify_tokens={"good"})


@pytest.fixture
def webhook_payload():
    """Build a webhook POST body holding the given callbacks in one entry."""

    def _build(*callbacks, page_id="P1", time=100, object="page"):
        return {
            "object": object,
            "entry": [{"id": page_id, "time": time, "messaging": list(callbacks)}],
        }

    return _build


@pytest.fixture
def test_client(mock_settings, mock_logfire, recorded_events):
    """FastAPI TestClient whose events land in recorded_events."""
    from fastapi.testclient import TestClient

    from fbmessenger.main import create_app

    app = create_app(listener=recorded_events.append, settings=mock_settings)
    return TestClient(app)


# =============================================================================
# Outbound
# =============================================================================


@pytest_asyncio.fixture
async def sender():
    """Sender posting to TEST_ENDPOINT with a dedicated client."""
    async with httpx.AsyncClient() as client:
        yield Sender("test-page-token", client=client, endpoint=TEST_ENDPOINT)


@pytest.fixture
def sample_message():
    return Message(recipient=User(id="user-123"), text="Hello")
