"""Typer-based CLI for sending messages through the Send API."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv

from fbmessenger.models.objects import (
    Message,
    MultimediaAttachment,
    MultimediaType,
    NotificationType,
    PhoneNumber,
    Recipient,
    SenderAction,
    User,
    dump_json,
)
from fbmessenger.models.responses import MessageResponse
from fbmessenger.services.sender import MessengerAPIError, Sender, get_sender

app = typer.Typer(help="Send Messenger messages from the command line.")


def _load_env() -> None:
    """Load .env then .env.local from the current directory."""
    cwd = Path.cwd()
    load_dotenv(cwd / ".env")
    load_dotenv(cwd / ".env.local", override=True)


def _recipient(value: str, phone: bool) -> Recipient:
    return PhoneNumber(phone_number=value) if phone else User(id=value)


async def _send(message: Message, sender: Sender | None = None) -> MessageResponse:
    async with sender or get_sender() as client:
        return await client.send_message(message)


def _deliver(message: Message, dry_run: bool) -> None:
    """Send a message, or print its body when dry-running, and report the outcome."""
    if dry_run:
        typer.echo(dump_json(message).decode("utf-8"))
        return

    _load_env()
    try:
        response = asyncio.run(_send(message))
    except MessengerAPIError as e:
        typer.secho(
            f"Send API error {e.code} ({e.type or 'unknown'}): {e.message}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    typer.secho(
        f"Sent message {response.message_id or '-'} to {response.recipient_id or '-'}",
        fg=typer.colors.GREEN,
    )


@app.command("send-text")
def send_text(
    recipient: str = typer.Argument(..., help="PSID, or phone number with --phone"),
    text: str = typer.Argument(..., help="Message text"),
    phone: bool = typer.Option(False, "--phone", help="Address by phone number"),
    notification_type: NotificationType | None = typer.Option(
        None, "--notification-type", case_sensitive=False
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the request body only"),
):
    """Send a text message."""
    message = Message(
        recipient=_recipient(recipient, phone),
        text=text,
        notification_type=notification_type,
    )
    _deliver(message, dry_run)


@app.command("send-attachment")
def send_attachment(
    recipient: str = typer.Argument(..., help="PSID, or phone number with --phone"),
    media_type: MultimediaType = typer.Argument(..., case_sensitive=False),
    url: str = typer.Argument(..., help="Public URL of the file"),
    reusable: bool = typer.Option(False, "--reusable", help="Save the attachment for reuse"),
    phone: bool = typer.Option(False, "--phone", help="Address by phone number"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the request body only"),
):
    """Send an audio, file, image or video attachment by URL."""
    message = Message(
        recipient=_recipient(recipient, phone),
        attachment=MultimediaAttachment(type=media_type, url=url, reusable=reusable),
    )
    _deliver(message, dry_run)


@app.command("send-action")
def send_action(
    recipient: str = typer.Argument(..., help="PSID, or phone number with --phone"),
    action: SenderAction = typer.Argument(..., case_sensitive=False),
    phone: bool = typer.Option(False, "--phone", help="Address by phone number"),
):
    """Send a sender action (mark_seen, typing_on, typing_off)."""
    _load_env()

    async def _run() -> None:
        async with get_sender() as sender:
            await sender.send_action(_recipient(recipient, phone), action)

    try:
        asyncio.run(_run())
    except MessengerAPIError as e:
        typer.secho(f"Send API error {e.code}: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"Sent {action.value} to {recipient}", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
