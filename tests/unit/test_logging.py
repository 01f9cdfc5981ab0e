"""Tests for structured logging with Logfire."""

import logging

import pytest
from fastapi import FastAPI

from fbmessenger.logging_config import mask_pii, redact_tokens, setup_logfire
from fbmessenger.main import log_event
from fbmessenger.models.events import (
    AccountLinked,
    Metadata,
    VerificationFailed,
)


class TestMaskPII:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            ("", ""),
            ("abc", "***"),
            ("abcd", "****"),
            ("abcdef", "ab**ef"),
        ],
    )
    def test_mask_pii(self, value, expected):
        assert mask_pii(value) == expected

    def test_custom_mask_char(self):
        assert mask_pii("secret", mask_char="#") == "se##et"


class TestRedactTokens:
    def test_redacts_known_keys(self):
        data = {"access_token": "abcdefgh", "recipient": "user-1"}
        redacted = redact_tokens(data)
        assert redacted["access_token"] == "ab****gh"
        assert redacted["recipient"] == "user-1"
        # Input is left untouched
        assert data["access_token"] == "abcdefgh"

    def test_redacts_nested(self):
        redacted = redact_tokens({"extra": {"authorization_code": "code-1234"}})
        assert redacted["extra"]["authorization_code"] == "co*****34"

    def test_non_string_values_kept(self):
        assert redact_tokens({"token": 123}) == {"token": 123}


class TestSetupLogfire:
    def test_configures_and_instruments(self, mock_logfire, mock_settings):
        app = FastAPI()

        setup_logfire(app, mock_settings)

        mock_logfire.configure.assert_called_once()
        assert mock_logfire.configure.call_args.kwargs["environment"] == "local"
        assert "token" not in mock_logfire.configure.call_args.kwargs
        mock_logfire.instrument_fastapi.assert_called_once_with(app)
        mock_logfire.instrument_pydantic.assert_called_once()
        mock_logfire.instrument_httpx.assert_called_once()

    def test_passes_token(self, mock_logfire, mock_settings):
        settings = mock_settings.model_copy(update={"logfire_token": "lf-token"})

        setup_logfire(None, settings)

        assert mock_logfire.configure.call_args.kwargs["token"] == "lf-token"
        mock_logfire.instrument_fastapi.assert_not_called()

    def test_sets_log_level(self, mock_logfire, mock_settings, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        settings = mock_settings.model_copy(update={"log_level": "debug"})

        setup_logfire(None, settings)

        assert calls[0]["level"] == logging.DEBUG


class TestLogEvent:
    """Test the default event listener."""

    def test_logs_event_type_and_masks_codes(self, logfire_capture):
        event = AccountLinked(
            metadata=Metadata(page_id="P1", sender_id="U1"),
            authorization_code="secret-code",
        )

        log_event(event)

        level, args, kwargs = logfire_capture[0]
        assert level == "info"
        assert kwargs["event_type"] == "AccountLinked"
        assert kwargs["metadata"]["page_id"] == "P1"
        assert kwargs["authorization_code"] != "secret-code"

    def test_verification_failure_without_error_object(self, logfire_capture):
        log_event(VerificationFailed(token="bad-token"))

        _, _, kwargs = logfire_capture[0]
        assert "error" not in kwargs
        assert kwargs["token"] == mask_pii("bad-token")
