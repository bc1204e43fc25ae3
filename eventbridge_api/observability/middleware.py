from __future__ import annotations

import uuid
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders

from eventbridge_api.observability.datadog import DatadogClient, RequestDescriptor


@dataclass(frozen=True)
class RequestTiming:
    started_at: float

    def elapsed_ms(self, now: float | None = None) -> float:
        now = perf_counter() if now is None else now
        return max((now - self.started_at) * 1000.0, 0.0)


STATE_KEY = "request_timing"


class RequestContextMiddleware:
    """Request ids, access logs and per-request Datadog metrics.

    The arrival stamp lives in the ASGI scope ``state`` so it is visible as
    ``request.state.request_timing`` and never shared between requests.
    """

    def __init__(self, app: Callable[..., Any], datadog: DatadogClient) -> None:
        self.app = app
        self.datadog = datadog

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=scope.get("path"),
            method=scope.get("method"),
        )

        self.on_request(scope)
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            try:
                self.on_response(scope, status_code)
            finally:
                structlog.contextvars.clear_contextvars()

    def on_request(self, scope: dict[str, Any]) -> RequestTiming:
        timing = RequestTiming(started_at=perf_counter())
        scope.setdefault("state", {})[STATE_KEY] = timing
        return timing

    def on_response(self, scope: dict[str, Any], status_code: int) -> float:
        timing = scope.get("state", {}).get(STATE_KEY)
        elapsed_ms = timing.elapsed_ms() if isinstance(timing, RequestTiming) else 0.0

        self.datadog.track_request(describe_request(scope), elapsed_ms, status_code)
        structlog.get_logger("access").info(
            "http_request",
            status_code=status_code,
            elapsed_ms=round(elapsed_ms, 2),
        )
        return elapsed_ms


def describe_request(scope: dict[str, Any]) -> RequestDescriptor:
    # FastAPI's router leaves the matched route in the scope after dispatch.
    route = scope.get("route")
    headers = Headers(scope=scope)
    return RequestDescriptor(
        method=str(scope.get("method", "")),
        route=getattr(route, "path", None),
        content_length=headers.get("content-length"),
    )
