from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import ClientError
from starlette.concurrency import run_in_threadpool

from eventbridge_api.config import Settings
from eventbridge_api.models.schemas import EventEnvelope


def create_eventbridge_client(settings: Settings) -> Any:
    return boto3.client(
        "events",
        region_name=settings.aws_region,
        endpoint_url=settings.eventbridge_endpoint or None,
    )


async def put_event(client: Any, envelope: EventEnvelope, event_bus_name: str) -> dict[str, Any]:
    """Submit a single-entry batch. Raises whatever the SDK raises; no retries here."""

    entry = envelope.to_put_events_entry(event_bus_name)
    return await run_in_threadpool(client.put_events, Entries=[entry])


def failed_entries(response: dict[str, Any]) -> list[dict[str, Any]]:
    if not response.get("FailedEntryCount"):
        return []
    return [entry for entry in response.get("Entries", []) if entry.get("ErrorCode")]


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message") or str(exc)
        return f"{code}: {message}" if code else message
    return str(exc) or "Unknown error"
