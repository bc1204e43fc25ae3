from __future__ import annotations

from typing import Any

from fastapi import Request

from eventbridge_api.config import Settings
from eventbridge_api.observability.datadog import DatadogClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_datadog(request: Request) -> DatadogClient:
    return request.app.state.datadog


def get_events_client(request: Request) -> Any:
    return request.app.state.events_client
