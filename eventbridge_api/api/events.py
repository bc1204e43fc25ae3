from __future__ import annotations

import json
from time import perf_counter
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from eventbridge_api.api.dependencies import get_app_settings, get_datadog, get_events_client
from eventbridge_api.config import Settings
from eventbridge_api.models.schemas import ErrorResponse, SendEventRequest
from eventbridge_api.observability.datadog import DatadogClient
from eventbridge_api.services.event_bus import describe_error, failed_entries, put_event

router = APIRouter(tags=["events"])


@router.post("/receive-event")
async def receive_event(
    request: Request,
    datadog: DatadogClient = Depends(get_datadog),
) -> Response:
    body = await request.body()
    try:
        event: Any = json.loads(body) if body else None
    except ValueError:
        event = body.decode("utf-8", errors="replace")

    datadog.info("Event received from EventBridge", {"event": event})
    datadog.track_eventbridge_operation("receive", True)

    # Echo the exact bytes so malformed or empty bodies round-trip unchanged.
    return Response(
        content=body,
        status_code=200,
        media_type=request.headers.get("content-type", "application/json"),
    )


@router.post(
    "/send-event",
    status_code=204,
    responses={500: {"model": ErrorResponse}},
)
async def send_event(
    payload: SendEventRequest,
    settings: Settings = Depends(get_app_settings),
    datadog: DatadogClient = Depends(get_datadog),
    events_client: Any = Depends(get_events_client),
) -> Response:
    envelope = payload.to_envelope()
    context = {
        "event_bus_name": settings.event_bus_name,
        "source": envelope.source,
        "detail_type": envelope.detail_type,
    }

    start = perf_counter()
    try:
        response = await put_event(events_client, envelope, settings.event_bus_name)
    except Exception as exc:  # noqa: BLE001 - surfaced as a 500, never propagated
        elapsed_ms = (perf_counter() - start) * 1000.0
        datadog.error(
            "Failed to send event to EventBridge",
            {**context, "error": describe_error(exc), "error_type": type(exc).__name__},
        )
        datadog.track_eventbridge_operation("send", False, elapsed_ms)
        return JSONResponse(status_code=500, content=ErrorResponse(error="Failed to send event").model_dump())

    elapsed_ms = (perf_counter() - start) * 1000.0
    rejected = failed_entries(response)
    if rejected:
        datadog.warn(
            "EventBridge rejected event entries",
            {**context, "failed_entry_count": response.get("FailedEntryCount"), "entries": rejected},
        )

    event_ids = [entry.get("EventId") for entry in response.get("Entries", []) if entry.get("EventId")]
    datadog.info("Event sent to EventBridge", {**context, "event_ids": event_ids})
    datadog.track_eventbridge_operation("send", True, elapsed_ms)
    return Response(status_code=204)
