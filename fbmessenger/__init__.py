"""Facebook Messenger Platform client library and webhook receiver."""

from fbmessenger.models.events import (
    VERIFY_TOKEN_MISMATCH,
    AccountLinked,
    AccountUnlinked,
    AttachmentInfo,
    CallbackUnsupported,
    Event,
    MessageDelivered,
    MessageRead,
    MessageReceived,
    Metadata,
    OptInTapped,
    PostbackReceived,
    ReferralUsed,
    VerificationCompleted,
    VerificationFailed,
    VerifyTokenMismatchError,
)
from fbmessenger.models.objects import (
    AccountLinkButton,
    AccountUnlinkButton,
    ButtonTemplate,
    CallButton,
    Element,
    GenericTemplate,
    ListTemplate,
    ListTopElementStyle,
    Message,
    MultimediaAttachment,
    MultimediaType,
    NotificationType,
    PhoneNumber,
    PostbackButton,
    QuickReply,
    SenderAction,
    ShareButton,
    URLButton,
    User,
    WebviewHeightRatio,
    dump_json,
)
from fbmessenger.models.responses import MessageResponse
from fbmessenger.services.dispatcher import WebhookDispatcher, WebhookResponse
from fbmessenger.services.sender import MessengerAPIError, Sender

__all__ = [
    "VERIFY_TOKEN_MISMATCH",
    "AccountLinkButton",
    "AccountLinked",
    "AccountUnlinkButton",
    "AccountUnlinked",
    "AttachmentInfo",
    "ButtonTemplate",
    "CallButton",
    "CallbackUnsupported",
    "Element",
    "Event",
    "GenericTemplate",
    "ListTemplate",
    "ListTopElementStyle",
    "Message",
    "MessageDelivered",
    "MessageRead",
    "MessageReceived",
    "MessageResponse",
    "MessengerAPIError",
    "Metadata",
    "MultimediaAttachment",
    "MultimediaType",
    "NotificationType",
    "OptInTapped",
    "PhoneNumber",
    "PostbackButton",
    "PostbackReceived",
    "QuickReply",
    "ReferralUsed",
    "Sender",
    "SenderAction",
    "ShareButton",
    "URLButton",
    "User",
    "VerificationCompleted",
    "VerificationFailed",
    "VerifyTokenMismatchError",
    "WebhookDispatcher",
    "WebhookResponse",
    "WebviewHeightRatio",
    "dump_json",
]
