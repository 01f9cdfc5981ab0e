"""Inbound webhook events and the callback envelope they are parsed from."""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VerifyTokenMismatchError(Exception):
    """The verify token of a handshake is not one of the accepted tokens."""


# Fixed error carried by every VerificationFailed event
VERIFY_TOKEN_MISMATCH = VerifyTokenMismatchError("verify token mismatch")


class Metadata(BaseModel):
    """Where and when a callback occurred. Filled in by the dispatcher."""

    model_config = ConfigDict(frozen=True)

    page_id: str = ""
    sender_id: str = ""
    recipient_id: str = ""
    timestamp: int = 0


class WireModel(BaseModel):
    """Base class of models parsed from webhook JSON.

    A JSON ``null`` on a declared field is read as the field's default, so
    ``"payload": null`` and a missing ``payload`` parse the same way.
    Unknown keys are left as received.
    """

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _null_as_default(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        declared = set(cls.model_fields)
        declared.update(f.alias for f in cls.model_fields.values() if f.alias)
        return {
            key: value
            for key, value in data.items()
            if value is not None or key not in declared
        }


class CallbackEvent(WireModel):
    """Base class of events parsed from POST callbacks."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    metadata: Metadata = Field(default_factory=Metadata)

    @field_validator("metadata", mode="before")
    @classmethod
    def _ignore_wire_metadata(cls, value: Any) -> Metadata:
        # Payload keys named "metadata" (e.g. on message echoes) are not ours
        return value if isinstance(value, Metadata) else Metadata()


# =============================================================================
# Message attachments
# =============================================================================


class Coordinates(WireModel):
    lat: float = 0.0
    long: float = 0.0


class AttachmentPayload(WireModel):
    """Payload of a received attachment: a file URL or a location."""

    model_config = ConfigDict(frozen=True, extra="allow")

    url: str | None = None
    coordinates: Coordinates | None = None


class AttachmentInfo(WireModel):
    type: str = ""
    payload: AttachmentPayload = Field(default_factory=AttachmentPayload)

    @property
    def is_multimedia(self) -> bool:
        return self.payload.url is not None

    @property
    def is_location(self) -> bool:
        return self.payload.coordinates is not None


class QuickReplyPayload(WireModel):
    payload: str = ""


# =============================================================================
# Callback events
# =============================================================================


class MessageReceived(CallbackEvent):
    """A message has been sent to the page."""

    message_id: str = Field(default="", alias="mid")
    seq: int = 0
    text: str | None = None
    sticker_id: int | None = None
    attachments: tuple[AttachmentInfo, ...] = ()
    quick_reply: QuickReplyPayload | None = None

    @property
    def has_attachments(self) -> bool:
        return len(self.attachments) > 0

    @property
    def is_quick_reply(self) -> bool:
        """Whether the message was sent by tapping a quick reply."""
        return self.quick_reply is not None


class MessageDelivered(CallbackEvent):
    """Messages sent by the page have been delivered."""

    message_ids: tuple[str, ...] = Field(default=(), alias="mids")
    watermark: int = 0
    seq: int = 0


class MessageRead(CallbackEvent):
    """Messages sent by the page have been read by the user."""

    watermark: int = 0
    seq: int = 0


class ReferralUsed(CallbackEvent):
    """An m.me link with a ref parameter was followed in an existing thread.

    New threads carry the referral inside ``PostbackReceived`` instead.
    """

    type: str | None = None
    reference: str | None = Field(default=None, alias="ref")
    source: str | None = None


class PostbackReceived(CallbackEvent):
    """A postback button, Get Started button or persistent menu item was tapped."""

    title: str | None = None
    payload: str | None = None
    referral: ReferralUsed | None = None


class AccountLinked(CallbackEvent):
    authorization_code: str = ""


class AccountUnlinked(CallbackEvent):
    """An account was unlinked. ``authorization_code`` is always empty."""

    authorization_code: str = ""


class OptInTapped(CallbackEvent):
    """The Send-to-Messenger plugin has been tapped."""

    reference: str | None = Field(default=None, alias="ref")


class CallbackUnsupported(CallbackEvent):
    """A callback with none of the known fields. ``extra`` holds its raw fields."""

    extra: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Verification events (GET handshake only)
# =============================================================================


class VerificationFailed(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    token: str
    error: VerifyTokenMismatchError = VERIFY_TOKEN_MISMATCH


class VerificationCompleted(BaseModel):
    model_config = ConfigDict(frozen=True)

    challenge: str


Event = Union[
    MessageReceived,
    MessageDelivered,
    MessageRead,
    PostbackReceived,
    AccountLinked,
    AccountUnlinked,
    OptInTapped,
    ReferralUsed,
    CallbackUnsupported,
    VerificationFailed,
    VerificationCompleted,
]


# =============================================================================
# Webhook envelope
# =============================================================================


class Party(WireModel):
    id: str = ""


class AccountLinking(WireModel):
    status: str = ""
    authorization_code: str = ""


class Callback(WireModel):
    """One element of an entry's ``messaging`` array.

    Unknown top-level keys are kept in ``model_extra``.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    sender: Party = Field(default_factory=Party)
    recipient: Party = Field(default_factory=Party)
    timestamp: int = 0
    message: MessageReceived | None = None
    delivery: MessageDelivered | None = None
    read: MessageRead | None = None
    postback: PostbackReceived | None = None
    account_linking: AccountLinking | None = None
    optin: OptInTapped | None = None
    referral: ReferralUsed | None = None


class WebhookEntry(WireModel):
    id: str = ""
    time: int = 0
    messaging: tuple[Callback, ...] = ()


class WebhookPayload(WireModel):
    """Body of a webhook POST."""

    object: str = ""
    entry: tuple[WebhookEntry, ...] = ()
