"""FastAPI application wiring the webhook receiver and the Send API client."""

import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration

from fbmessenger.api import webhook
from fbmessenger.config import Settings, get_settings
from fbmessenger.logging_config import redact_tokens, setup_logfire
from fbmessenger.models.events import Event
from fbmessenger.services.dispatcher import EventListener, get_webhook_dispatcher
from fbmessenger.services.sender import get_sender


def log_event(event: Event) -> None:
    """Default listener: record every event with Logfire."""
    logfire.info(
        "Messenger event received",
        event_type=type(event).__name__,
        **redact_tokens(event.model_dump(exclude={"error"})),
    )


def create_app(
    listener: EventListener | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the webhook application.

    Args:
        listener: Receives every webhook event (defaults to log_event)
        settings: Settings to use instead of the cached environment settings

    The dispatcher is configured here, once. The Send API client is opened
    in the lifespan and stored on ``app.state.sender``.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logfire(app, settings)

        # Initialize Sentry if DSN is provided
        if settings.sentry_dsn:
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=settings.sentry_traces_sample_rate,
                integrations=[FastApiIntegration()],
            )

        app.state.sender = get_sender(settings)
        logfire.info(
            "Application startup complete",
            environment=settings.env,
            verify_token_count=len(app.state.webhook_dispatcher.verify_tokens),
        )

        yield

        await app.state.sender.aclose()
        logfire.info("Application shutdown complete")

    app = FastAPI(
        title="Facebook Messenger Webhook",
        description="Messenger Platform webhook receiver and Send API client",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.webhook_dispatcher = get_webhook_dispatcher(
        listener or log_event, settings
    )

    app.include_router(webhook.router, prefix="/webhook", tags=["webhook"])

    @app.get("/health", tags=["health"])
    def health():
        """Liveness probe."""
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "fbmessenger.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "local",
    )
