"""Webhook callback dispatching.

This module turns one inbound webhook request into typed events:

1. GET requests run the verification handshake and emit
   VerificationFailed or VerificationCompleted
2. POST requests are parsed as a whole; every callback of every entry is
   classified into exactly one event and handed to the listener, in order
3. Any other method is rejected with 405 and emits nothing

The dispatcher is framework-agnostic. ``fbmessenger.api.webhook`` exposes
it as a FastAPI router.

Payload signatures (X-Hub-Signature) are not verified; callbacks are
accepted as received.
"""

import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import logfire
from pydantic import ValidationError

from fbmessenger.config import Settings, get_settings
from fbmessenger.constants import (
    ACCOUNT_LINKED_STATUS,
    CHALLENGE_PARAM,
    VERIFY_TOKEN_PARAM,
)
from fbmessenger.logging_config import mask_pii
from fbmessenger.models.events import (
    AccountLinked,
    AccountLinking,
    AccountUnlinked,
    Callback,
    CallbackEvent,
    CallbackUnsupported,
    Event,
    Metadata,
    PostbackReceived,
    VerificationCompleted,
    VerificationFailed,
    WebhookPayload,
)

EventListener = Callable[[Event], Awaitable[None] | None]


@dataclass(frozen=True)
class WebhookResponse:
    """HTTP status and plain-text body to answer a webhook request with."""

    status_code: int
    body: str = ""


def _with_metadata(event: CallbackEvent, metadata: Metadata) -> Event:
    return event.model_copy(update={"metadata": metadata})


def _postback_event(postback: PostbackReceived, metadata: Metadata) -> Event:
    referral = postback.referral
    if referral is not None:
        referral = _with_metadata(referral, metadata)
    return postback.model_copy(update={"metadata": metadata, "referral": referral})


def _account_linking_event(linking: AccountLinking, metadata: Metadata) -> Event:
    if linking.status == ACCOUNT_LINKED_STATUS:
        return AccountLinked(
            metadata=metadata, authorization_code=linking.authorization_code
        )
    return AccountUnlinked(metadata=metadata)


# Checked in order; the first populated field decides the event
CALLBACK_CLASSIFIERS: tuple[tuple[str, Callable[[Any, Metadata], Event]], ...] = (
    ("message", _with_metadata),
    ("delivery", _with_metadata),
    ("read", _with_metadata),
    ("postback", _postback_event),
    ("account_linking", _account_linking_event),
    ("optin", _with_metadata),
    ("referral", _with_metadata),
)


def classify(callback: Callback, page_id: str) -> Event:
    """
    Turn one callback into its event.

    Args:
        callback: Parsed element of an entry's messaging array
        page_id: ID of the enclosing entry

    Returns:
        The event of the first known field present on the callback, or
        CallbackUnsupported carrying the callback's unknown fields
    """
    metadata = Metadata(
        page_id=page_id,
        sender_id=callback.sender.id,
        recipient_id=callback.recipient.id,
        timestamp=callback.timestamp,
    )
    for field_name, build in CALLBACK_CLASSIFIERS:
        value = getattr(callback, field_name)
        if value is not None:
            return build(value, metadata)
    return CallbackUnsupported(metadata=metadata, extra=dict(callback.model_extra or {}))


class WebhookDispatcher:
    """Handles webhook requests and emits their events to a listener.

    The listener may be a plain function or a coroutine function. It is
    called once per event, and each call completes before the next callback
    is processed, so a slow listener delays the webhook response.

    Example:
        >>> events = []
        >>> dispatcher = WebhookDispatcher(events.append, verify_tokens={"secret"})
        >>> await dispatcher.verify("secret", "1234")
        WebhookResponse(status_code=200, body='1234')
        >>> events
        [VerificationCompleted(challenge='1234')]
    """

    def __init__(self, listener: EventListener, verify_tokens: Iterable[str] = ()):
        """Initialize the dispatcher.

        Args:
            listener: Receives every event
            verify_tokens: Accepted verification tokens. When empty, every
                verification attempt fails.
        """
        self._listener = listener
        self._verify_tokens = frozenset(verify_tokens)

    @property
    def verify_tokens(self) -> frozenset[str]:
        return self._verify_tokens

    async def handle(
        self, method: str, query: Mapping[str, str], body: bytes = b""
    ) -> WebhookResponse:
        """Handle one webhook request of any method."""
        method = method.upper()
        if method == "GET":
            return await self.verify(
                query.get(VERIFY_TOKEN_PARAM, ""), query.get(CHALLENGE_PARAM, "")
            )
        if method == "POST":
            return await self.receive(body)
        return WebhookResponse(status_code=405)

    async def verify(self, verify_token: str, challenge: str) -> WebhookResponse:
        """Answer the verification handshake, echoing the challenge on success."""
        if verify_token not in self._verify_tokens:
            logfire.info("Webhook verification failed", token=mask_pii(verify_token))
            await self._emit(VerificationFailed(token=verify_token))
            return WebhookResponse(status_code=403)

        logfire.info("Webhook verified successfully")
        await self._emit(VerificationCompleted(challenge=challenge))
        return WebhookResponse(status_code=200, body=challenge)

    async def receive(self, body: bytes) -> WebhookResponse:
        """Parse a callback delivery and emit one event per callback."""
        try:
            payload = WebhookPayload.model_validate_json(body)
        except ValidationError as e:
            logfire.info(
                "Rejected malformed webhook payload",
                error_count=e.error_count(),
                body_length=len(body),
            )
            return WebhookResponse(status_code=400)

        dispatched = 0
        for entry in payload.entry:
            for callback in entry.messaging:
                event = classify(callback, entry.id)
                logfire.debug(
                    "Dispatching webhook event",
                    page_id=entry.id,
                    event_type=type(event).__name__,
                )
                await self._emit(event)
                dispatched += 1

        logfire.info(
            "Webhook callbacks dispatched",
            object=payload.object,
            entry_count=len(payload.entry),
            event_count=dispatched,
        )
        return WebhookResponse(status_code=200)

    async def _emit(self, event: Event) -> None:
        result = self._listener(event)
        if inspect.isawaitable(result):
            await result


def get_webhook_dispatcher(
    listener: EventListener, settings: Settings | None = None
) -> WebhookDispatcher:
    """Build a WebhookDispatcher accepting the configured verify tokens."""
    settings = settings or get_settings()
    return WebhookDispatcher(listener, verify_tokens=settings.verify_tokens)
