"""Send API response envelopes."""

from pydantic import BaseModel, ConfigDict


class MessageResponse(BaseModel):
    """Successful Send API response. Every field may be absent."""

    model_config = ConfigDict(frozen=True)

    recipient_id: str | None = None
    message_id: str | None = None
    attachment_id: str | None = None


class ErrorDetail(BaseModel):
    """The ``error`` object of a failed Graph API call."""

    message: str = ""
    type: str = ""
    code: int = 0
    error_subcode: int = 0
    fbtrace_id: str = ""


class ErrorEnvelope(BaseModel):
    error: ErrorDetail
