from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from eventbridge_api.api.events import router as events_router
from eventbridge_api.config import Settings, get_settings
from eventbridge_api.observability.datadog import DatadogClient
from eventbridge_api.observability.middleware import RequestContextMiddleware
from eventbridge_api.services.event_bus import create_eventbridge_client


def create_app(
    settings: Settings | None = None,
    datadog: DatadogClient | None = None,
    events_client: Any | None = None,
) -> FastAPI:
    """Build the ASGI app with its observability client and EventBridge client wired in."""

    settings = settings or get_settings()
    datadog = datadog or DatadogClient.from_settings(settings)
    events_client = events_client or create_eventbridge_client(settings)

    app = FastAPI(title="EventBridge API", version="0.1.0")
    app.state.settings = settings
    app.state.datadog = datadog
    app.state.events_client = events_client

    app.add_middleware(RequestContextMiddleware, datadog=datadog)
    app.include_router(events_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
