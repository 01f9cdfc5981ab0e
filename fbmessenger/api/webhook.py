"""Facebook webhook endpoints.

The handlers here only translate between HTTP and the WebhookDispatcher
stored on ``app.state.webhook_dispatcher``:

- GET answers the verification handshake (challenge echoed as plain text)
- POST delivers callbacks; the response is sent once every event has been
  handed to the listener
- other methods are answered with 405 by the router
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.requests import ClientDisconnect

from fbmessenger.constants import CHALLENGE_PARAM, VERIFY_TOKEN_PARAM
from fbmessenger.services.dispatcher import WebhookDispatcher, WebhookResponse

router = APIRouter()


def get_webhook_dispatcher(request: Request) -> WebhookDispatcher:
    """Dispatcher configured on the application."""
    return request.app.state.webhook_dispatcher


def _to_response(result: WebhookResponse) -> Response:
    if result.body:
        return PlainTextResponse(result.body, status_code=result.status_code)
    return Response(status_code=result.status_code)


@router.get("")
async def verify_webhook(
    request: Request,
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> Response:
    """Facebook webhook verification endpoint."""
    result = await dispatcher.verify(
        request.query_params.get(VERIFY_TOKEN_PARAM, ""),
        request.query_params.get(CHALLENGE_PARAM, ""),
    )
    return _to_response(result)


@router.post("")
async def handle_webhook(
    request: Request,
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> Response:
    """Handle incoming Facebook Messenger webhook callbacks."""
    try:
        body = await request.body()
    except ClientDisconnect:
        return Response(status_code=400)
    return _to_response(await dispatcher.receive(body))
