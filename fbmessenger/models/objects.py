"""Outbound Messenger objects and their Send API JSON rendering.

Every object is an immutable Pydantic model with a single ``render()``
operation that returns a plain JSON-compatible tree (dicts, lists, strings,
numbers and booleans only). ``dump_json()`` is the one place where a rendered
tree is turned into wire bytes.

Omission rules shared by all objects:
- optional fields that are unset (``None``) or empty strings are left out
- boolean flags are only emitted when true
- nothing is ever rendered as ``null``

The variant sets (recipients, attachments, buttons) are closed unions fixed
by the Messenger Platform schema.
"""

import json
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

JSONValue = Union[
    None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]
]


def _compact(**fields: Any) -> dict[str, JSONValue]:
    """Keep only the fields that carry a value."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in fields.items()
        if value is not None and value != ""
    }


def dump_json(value: "MessengerObject | JSONValue") -> bytes:
    """Serialize an object (or an already rendered tree) to wire bytes."""
    if isinstance(value, MessengerObject):
        value = value.render()
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


class MessengerObject(BaseModel):
    """Base class for everything that renders into a Send API body."""

    model_config = ConfigDict(frozen=True)

    def render(self) -> dict[str, JSONValue]:
        raise NotImplementedError


# =============================================================================
# Enumerations
# =============================================================================


class NotificationType(str, Enum):
    """How the receiver is notified about a message."""

    REGULAR = "REGULAR"
    SILENT_PUSH = "SILENT_PUSH"
    NO_PUSH = "NO_PUSH"


class MultimediaType(str, Enum):
    AUDIO = "audio"
    FILE = "file"
    IMAGE = "image"
    VIDEO = "video"


class ListTopElementStyle(str, Enum):
    """Style of the first element of a list template."""

    LARGE = "large"
    COMPACT = "compact"


class WebviewHeightRatio(str, Enum):
    """Height of the webview opened by a URL button.

    Values render exactly as given. ``TALL`` is the platform's documented
    spelling of the middle ratio.
    """

    COMPACT = "compact"
    TAIL = "tail"
    FULL = "full"
    TALL = "tall"


class SenderAction(str, Enum):
    """Sender actions shown in the conversation thread."""

    MARK_SEEN = "mark_seen"
    # Typing indicators are turned off automatically after 20 seconds
    TYPING_ON = "typing_on"
    TYPING_OFF = "typing_off"


# =============================================================================
# Recipients
# =============================================================================


class User(MessengerObject):
    """Recipient addressed by page-scoped user ID (PSID)."""

    id: str

    def render(self) -> dict[str, JSONValue]:
        return {"id": self.id}


class PhoneNumber(MessengerObject):
    """Recipient addressed by phone number."""

    phone_number: str

    def render(self) -> dict[str, JSONValue]:
        return {"phone_number": self.phone_number}


Recipient = Union[User, PhoneNumber]


# =============================================================================
# Buttons
# =============================================================================


class URLButton(MessengerObject):
    """Opens a web page, optionally in the Messenger webview.

    ``title`` is optional so the button can be used as an element's
    ``default_action``, where the platform rejects titles.
    """

    type: Literal["web_url"] = "web_url"
    url: str
    title: str | None = None
    webview_height_ratio: WebviewHeightRatio | None = None
    messenger_extensions: bool = False
    fallback_url: str | None = None

    def render(self) -> dict[str, JSONValue]:
        src = _compact(
            type=self.type,
            title=self.title,
            url=self.url,
            webview_height_ratio=self.webview_height_ratio,
        )
        if self.messenger_extensions:
            src["messenger_extensions"] = True
        src.update(_compact(fallback_url=self.fallback_url))
        return src


class PostbackButton(MessengerObject):
    """Sends ``payload`` back to the webhook as a postback callback."""

    type: Literal["postback"] = "postback"
    title: str
    payload: str

    def render(self) -> dict[str, JSONValue]:
        return {"type": self.type, "title": self.title, "payload": self.payload}


class CallButton(MessengerObject):
    """Dials ``phone_number`` when tapped."""

    type: Literal["phone_number"] = "phone_number"
    title: str
    phone_number: str

    def render(self) -> dict[str, JSONValue]:
        return {"type": self.type, "title": self.title, "payload": self.phone_number}


class ShareButton(MessengerObject):
    type: Literal["element_share"] = "element_share"

    def render(self) -> dict[str, JSONValue]:
        return {"type": self.type}


class AccountLinkButton(MessengerObject):
    """Starts the account linking flow at ``url``."""

    type: Literal["account_link"] = "account_link"
    url: str

    def render(self) -> dict[str, JSONValue]:
        return {"type": self.type, "url": self.url}


class AccountUnlinkButton(MessengerObject):
    type: Literal["account_unlink"] = "account_unlink"

    def render(self) -> dict[str, JSONValue]:
        return {"type": self.type}


Button = Annotated[
    Union[
        URLButton,
        PostbackButton,
        CallButton,
        ShareButton,
        AccountLinkButton,
        AccountUnlinkButton,
    ],
    Field(discriminator="type"),
]


def _render_buttons(buttons: tuple[MessengerObject, ...]) -> list[JSONValue]:
    return [button.render() for button in buttons]


# =============================================================================
# Template elements
# =============================================================================


class Element(MessengerObject):
    """One item of a generic or list template."""

    title: str
    subtitle: str | None = None
    item_url: str | None = None
    image_url: str | None = None
    buttons: tuple[Button, ...] = ()
    default_action: Button | None = None

    def render(self) -> dict[str, JSONValue]:
        src: dict[str, JSONValue] = {"title": self.title}
        src.update(
            _compact(
                subtitle=self.subtitle,
                item_url=self.item_url,
                image_url=self.image_url,
            )
        )
        if self.buttons:
            src["buttons"] = _render_buttons(self.buttons)
        if self.default_action is not None:
            src["default_action"] = self.default_action.render()
        return src


# =============================================================================
# Attachments
# =============================================================================


class MultimediaAttachment(MessengerObject):
    """Audio, file, image or video sent by URL or by a saved attachment ID.

    A set ``attachment_id`` takes precedence: ``url`` and ``reusable`` are
    then ignored.
    """

    type: MultimediaType
    url: str | None = None
    attachment_id: str | None = None
    reusable: bool = False

    def render(self) -> dict[str, JSONValue]:
        if self.attachment_id:
            payload: dict[str, JSONValue] = {"attachment_id": self.attachment_id}
        else:
            payload = _compact(url=self.url)
            if self.reusable:
                payload["is_reusable"] = True
        return {"type": self.type.value, "payload": payload}


class ButtonTemplate(MessengerObject):
    template_type: Literal["button"] = "button"
    text: str
    buttons: tuple[Button, ...] = ()

    def render(self) -> dict[str, JSONValue]:
        return {
            "type": "template",
            "payload": {
                "template_type": self.template_type,
                "text": self.text,
                "buttons": _render_buttons(self.buttons),
            },
        }


class GenericTemplate(MessengerObject):
    template_type: Literal["generic"] = "generic"
    elements: tuple[Element, ...] = ()

    def render(self) -> dict[str, JSONValue]:
        return {
            "type": "template",
            "payload": {
                "template_type": self.template_type,
                "elements": [element.render() for element in self.elements],
            },
        }


class ListTemplate(MessengerObject):
    template_type: Literal["list"] = "list"
    elements: tuple[Element, ...] = ()
    top_element_style: ListTopElementStyle | None = None
    buttons: tuple[Button, ...] = ()

    def render(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {"template_type": self.template_type}
        payload.update(_compact(top_element_style=self.top_element_style))
        payload["elements"] = [element.render() for element in self.elements]
        if self.buttons:
            payload["buttons"] = _render_buttons(self.buttons)
        return {"type": "template", "payload": payload}


def _attachment_kind(value: Any) -> str:
    """Pick the attachment variant: templates by ``template_type``, else media."""
    if isinstance(value, dict):
        return value.get("template_type") or "media"
    return getattr(value, "template_type", "media")


Attachment = Annotated[
    Union[
        Annotated[MultimediaAttachment, Tag("media")],
        Annotated[ButtonTemplate, Tag("button")],
        Annotated[GenericTemplate, Tag("generic")],
        Annotated[ListTemplate, Tag("list")],
    ],
    Discriminator(_attachment_kind),
]


# =============================================================================
# Messages
# =============================================================================


class QuickReply(MessengerObject):
    """A quick reply chip shown above the composer."""

    title: str | None = None
    image_url: str | None = None
    payload: str | None = None
    ask_for_location: bool = False

    def render(self) -> dict[str, JSONValue]:
        src = _compact(
            title=self.title,
            image_url=self.image_url,
            payload=self.payload,
        )
        src["content_type"] = "location" if self.ask_for_location else "text"
        return src


class Message(MessengerObject):
    """A message to send to a recipient.

    ``text`` and ``attachment`` are mutually exclusive on the wire. When both
    are set the text is sent and the attachment is dropped. Quick replies are
    only sent along with text.
    """

    recipient: Recipient
    text: str | None = None
    attachment: Attachment | None = None
    quick_replies: tuple[QuickReply, ...] = ()
    metadata: str | None = None
    notification_type: NotificationType | None = None

    def render(self) -> dict[str, JSONValue]:
        message: dict[str, JSONValue] = {}
        if self.text:
            message["text"] = self.text
            if self.quick_replies:
                message["quick_replies"] = [qr.render() for qr in self.quick_replies]
        elif self.attachment is not None:
            message["attachment"] = self.attachment.render()
        message.update(_compact(metadata=self.metadata))

        src: dict[str, JSONValue] = {
            "recipient": self.recipient.render(),
            "message": message,
        }
        src.update(_compact(notification_type=self.notification_type))
        return src


def sender_action_body(
    recipient: Recipient, action: SenderAction
) -> dict[str, JSONValue]:
    """Render the request body of a sender action."""
    return {"recipient": recipient.render(), "sender_action": SenderAction(action).value}
