"""Send messages and sender actions through the Messenger Send API."""

import time

import httpx
import logfire
from pydantic import ValidationError

from fbmessenger.config import Settings, get_settings
from fbmessenger.constants import (
    ACCESS_TOKEN_PARAM,
    DEFAULT_MESSAGES_ENDPOINT,
    FACEBOOK_API_TIMEOUT_SECONDS,
    LOG_RESPONSE_BODY_CHARS,
)
from fbmessenger.logging_config import mask_pii
from fbmessenger.models.objects import (
    JSONValue,
    Message,
    Recipient,
    SenderAction,
    dump_json,
    sender_action_body,
)
from fbmessenger.models.responses import ErrorEnvelope, MessageResponse


class MessengerAPIError(Exception):
    """The Send API answered with a non-2xx status.

    ``code`` is the platform error code, or the HTTP status code when the
    error body could not be decoded. ``status_code`` is always the HTTP
    status.
    """

    def __init__(
        self,
        message: str,
        *,
        type: str = "",
        code: int = 0,
        error_subcode: int = 0,
        fbtrace_id: str = "",
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.type = type
        self.code = code
        self.error_subcode = error_subcode
        self.fbtrace_id = fbtrace_id
        self.status_code = status_code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "MessengerAPIError":
        """Decode the platform error envelope of a failed response."""
        try:
            envelope = ErrorEnvelope.model_validate_json(response.content)
        except ValidationError as e:
            return cls(
                str(e),
                code=response.status_code,
                status_code=response.status_code,
            )
        detail = envelope.error
        return cls(
            detail.message,
            type=detail.type,
            code=detail.code,
            error_subcode=detail.error_subcode,
            fbtrace_id=detail.fbtrace_id,
            status_code=response.status_code,
        )


class Sender:
    """Messenger Send API client.

    The access token is appended to the endpoint once, at construction, and
    the resulting URL is reused for every call. Each operation makes exactly
    one POST request; there are no retries.

    Example:
        >>> async with Sender(access_token="...") as sender:
        ...     await sender.send_message(Message(recipient=User(id="123"), text="Hi"))
        MessageResponse(recipient_id='123', message_id='mid.1', attachment_id=None)
    """

    def __init__(
        self,
        access_token: str,
        *,
        client: httpx.AsyncClient | None = None,
        endpoint: str | httpx.URL | None = None,
        timeout: float = FACEBOOK_API_TIMEOUT_SECONDS,
    ):
        """Initialize the sender.

        Args:
            access_token: Facebook Page access token
            client: HTTP client to use instead of a sender-owned one
            endpoint: Send API URL override
            timeout: Timeout of the sender-owned client (seconds)
        """
        if not access_token:
            raise ValueError("access_token is required")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._endpoint = httpx.URL(endpoint or DEFAULT_MESSAGES_ENDPOINT).copy_set_param(
            ACCESS_TOKEN_PARAM, access_token
        )

    @property
    def endpoint(self) -> httpx.URL:
        """Endpoint URL including the access token query parameter."""
        return self._endpoint

    async def aclose(self) -> None:
        """Close the HTTP client if this sender created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Sender":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def send_message(self, message: Message) -> MessageResponse:
        """
        Send a message.

        Raises:
            MessengerAPIError: The Send API answered with a non-2xx status
            pydantic.ValidationError: A 2xx response body is not a JSON object
            httpx.RequestError: The request could not be completed
        """
        response = await self._post(message.render(), operation="message")
        return MessageResponse.model_validate_json(response.content)

    async def send_action(self, recipient: Recipient, action: SenderAction) -> None:
        """Send a sender action such as a typing indicator. The response body is discarded."""
        await self._post(sender_action_body(recipient, action), operation="sender_action")

    async def _post(self, body: dict[str, JSONValue], *, operation: str) -> httpx.Response:
        start_time = time.time()
        recipient = body.get("recipient") or {}

        logfire.info(
            "Sending Messenger request",
            operation=operation,
            recipient=mask_pii(next(iter(recipient.values()), None)),
        )

        response = await self._client.post(
            self._endpoint,
            content=dump_json(body),
            headers={"Content-Type": "application/json"},
        )
        elapsed = time.time() - start_time

        if not response.is_success:
            logfire.info(
                "Messenger request rejected",
                operation=operation,
                status_code=response.status_code,
                response_body=response.text[:LOG_RESPONSE_BODY_CHARS],
                response_time_ms=elapsed * 1000,
            )
            raise MessengerAPIError.from_response(response)

        logfire.info(
            "Messenger request sent",
            operation=operation,
            status_code=response.status_code,
            response_time_ms=elapsed * 1000,
        )
        return response


def get_sender(settings: Settings | None = None) -> Sender:
    """Build a Sender from application settings."""
    settings = settings or get_settings()
    return Sender(
        access_token=settings.facebook_page_access_token,
        endpoint=settings.messenger_endpoint,
        timeout=settings.facebook_api_timeout_seconds,
    )
