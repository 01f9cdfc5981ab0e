"""Tests for the messenger CLI."""

import json
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from fbmessenger.cli.messenger_cli import app
from fbmessenger.models.objects import PhoneNumber, SenderAction, User
from fbmessenger.models.responses import MessageResponse
from fbmessenger.services.sender import MessengerAPIError, Sender

runner = CliRunner()


class TestDryRun:
    """--dry-run prints the rendered body without sending."""

    def test_send_text_dry_run(self):
        result = runner.invoke(app, ["send-text", "user-1", "Hello", "--dry-run"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "recipient": {"id": "user-1"},
            "message": {"text": "Hello"},
        }

    def test_send_text_phone_and_notification(self):
        result = runner.invoke(
            app,
            [
                "send-text",
                "+15551234567",
                "Hi",
                "--phone",
                "--notification-type",
                "SILENT_PUSH",
                "--dry-run",
            ],
        )

        assert result.exit_code == 0
        body = json.loads(result.output)
        assert body["recipient"] == {"phone_number": "+15551234567"}
        assert body["notification_type"] == "SILENT_PUSH"

    def test_send_attachment_dry_run(self):
        result = runner.invoke(
            app,
            ["send-attachment", "user-1", "image", "https://x/cat.png", "--reusable", "--dry-run"],
        )

        assert result.exit_code == 0
        assert json.loads(result.output)["message"] == {
            "attachment": {
                "type": "image",
                "payload": {"url": "https://x/cat.png", "is_reusable": True},
            }
        }

    def test_unknown_media_type_rejected(self):
        result = runner.invoke(
            app, ["send-attachment", "user-1", "hologram", "https://x", "--dry-run"]
        )
        assert result.exit_code != 0


class TestSend:
    """Sending goes through the Sender built from settings."""

    @patch("fbmessenger.cli.messenger_cli._send", new_callable=AsyncMock)
    def test_send_text_success(self, mock_send):
        mock_send.return_value = MessageResponse(recipient_id="user-1", message_id="mid.1")

        result = runner.invoke(app, ["send-text", "user-1", "Hello"])

        assert result.exit_code == 0
        assert "mid.1" in result.output
        message = mock_send.call_args.args[0]
        assert message.recipient == User(id="user-1")
        assert message.text == "Hello"

    @patch("fbmessenger.cli.messenger_cli._send", new_callable=AsyncMock)
    def test_send_text_api_error(self, mock_send):
        mock_send.side_effect = MessengerAPIError(
            "Invalid OAuth access token", type="OAuthException", code=190
        )

        result = runner.invoke(app, ["send-text", "user-1", "Hello"])

        assert result.exit_code == 1
        assert "190" in result.output
        assert "Invalid OAuth access token" in result.output

    @patch("fbmessenger.cli.messenger_cli.get_sender")
    def test_send_action(self, mock_get_sender):
        sender = AsyncMock(spec=Sender)
        sender.__aenter__.return_value = sender
        mock_get_sender.return_value = sender

        result = runner.invoke(app, ["send-action", "+1555", "typing_on", "--phone"])

        assert result.exit_code == 0
        sender.send_action.assert_awaited_once_with(
            PhoneNumber(phone_number="+1555"), SenderAction.TYPING_ON
        )
        sender.__aexit__.assert_awaited_once()

    @patch("fbmessenger.cli.messenger_cli.get_sender")
    def test_send_action_error(self, mock_get_sender):
        sender = AsyncMock(spec=Sender)
        sender.__aenter__.return_value = sender
        sender.send_action.side_effect = MessengerAPIError("denied", code=10)
        mock_get_sender.return_value = sender

        result = runner.invoke(app, ["send-action", "user-1", "mark_seen"])

        assert result.exit_code == 1
        assert "denied" in result.output
