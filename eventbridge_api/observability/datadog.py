"""Datadog metrics and log shipping.

Metrics go to the DogStatsD agent over UDP; log records are POSTed to the
Datadog HTTP log intake. Neither path is allowed to raise into request
handling: every failure ends as a local structlog line.
"""

from __future__ import annotations

import json
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Literal

import httpx
import structlog
from datadog.dogstatsd import DogStatsd

if TYPE_CHECKING:
    from eventbridge_api.config import Settings


EventBridgeOperation = Literal["send", "receive"]

DEFAULT_LOG_INTAKE_URL = "https://http-intake.logs.datadoghq.com/v1/input"

logger = structlog.get_logger("datadog")


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    route: str | None = None
    content_length: str | None = None

    @property
    def size(self) -> int:
        try:
            return int(self.content_length or 0)
        except (TypeError, ValueError):
            return 0


class DatadogClient:
    """Process-wide façade over DogStatsD and the Datadog log intake."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        host: str = "localhost",
        port: int = 8125,
        prefix: str = "eventbridge.api",
        tags: list[str] | None = None,
        service: str = "eventbridge-api",
        hostname: str = "localhost",
        log_intake_url: str = DEFAULT_LOG_INTAKE_URL,
        statsd: Any | None = None,
        http_client: httpx.Client | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.api_key = api_key or None
        self.service = service
        self.hostname = hostname
        self.log_intake_url = log_intake_url
        if tags is None:
            tags = ["env:development", f"service:{service}"]
        self._statsd = statsd or DogStatsd(
            host=host,
            port=port,
            namespace=prefix.rstrip(".") or None,
            constant_tags=tags,
        )
        self._http = http_client or httpx.Client(timeout=5.0)
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="datadog-logs")
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> DatadogClient:
        return cls(
            api_key=settings.dd_api_key,
            host=settings.dd_agent_host,
            port=settings.dd_agent_port,
            prefix=settings.dd_metric_prefix,
            tags=settings.global_tags,
            service=settings.dd_service,
            hostname=settings.hostname,
            log_intake_url=settings.dd_log_intake_url,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    # -- metrics primitives -------------------------------------------------

    def _emit(self, kind: str, metric: str, value: float, tags: list[str] | None) -> None:
        if self._closed:
            return
        try:
            getattr(self._statsd, kind)(metric, value, tags=tags)
        except Exception:  # noqa: BLE001 - metrics are best-effort
            logger.warning("statsd_emit_failed", metric=metric, kind=kind, exc_info=True)

    def increment(self, metric: str, value: float = 1, tags: list[str] | None = None) -> None:
        self._emit("increment", metric, value, tags)

    def gauge(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._emit("gauge", metric, value, tags)

    def histogram(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._emit("histogram", metric, value, tags)

    def timing(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._emit("timing", metric, value, tags)

    def distribution(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._emit("distribution", metric, value, tags)

    # -- log shipping -------------------------------------------------------

    def build_log_record(self, level: str, message: str, context: dict[str, Any] | None = None) -> dict[str, Any]:
        return {
            "ddsource": "python",
            "service": self.service,
            "hostname": self.hostname,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **(context or {}),
        }

    def log(self, level: str, message: str, context: dict[str, Any] | None = None) -> None:
        """Ship one record to the log intake. Blocking; never raises."""

        if not self.api_key:
            logger.warning("DD_API_KEY not set, skipping Datadog log")
            return

        try:
            body = json.dumps(self.build_log_record(level, message, context))
        except (TypeError, ValueError) as exc:
            logger.error("Could not serialize Datadog log record", error=str(exc))
            return

        try:
            response = self._http.post(
                self.log_intake_url,
                headers={"DD-API-KEY": self.api_key, "Content-Type": "application/json"},
                content=body,
            )
        except httpx.HTTPError as exc:
            logger.error("Error sending log to Datadog", error=str(exc))
            return

        if not response.is_success:
            logger.error(
                "Failed to send log to Datadog",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )

    def _submit_log(self, level: str, message: str, context: dict[str, Any] | None) -> None:
        if self._closed:
            return
        try:
            future = self._executor.submit(self.log, level, message, context)
        except RuntimeError:
            # Executor already shut down.
            return
        future.add_done_callback(_report_log_failure)

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        logger.info(message, **_local_fields(context))
        self._submit_log("info", message, context)

    def warn(self, message: str, context: dict[str, Any] | None = None) -> None:
        logger.warning(message, **_local_fields(context))
        self._submit_log("warn", message, context)

    def error(self, message: str, context: dict[str, Any] | None = None) -> None:
        logger.error(message, **_local_fields(context))
        self._submit_log("error", message, context)

    # -- semantic helpers ---------------------------------------------------

    def track_request(self, request: RequestDescriptor, duration_ms: float, status_code: int) -> None:
        tags = [
            f"method:{request.method}",
            f"route:{request.route or 'unknown'}",
            f"status:{status_code}",
        ]

        self.increment("request.count", 1, tags)
        self.timing("request.duration", duration_ms, tags)
        self.histogram("request.size", request.size, tags)

        if status_code >= 500:
            self.increment("request.error.5xx", 1, tags)
        elif status_code >= 400:
            self.increment("request.error.4xx", 1, tags)
        elif 200 <= status_code < 300:
            self.increment("request.success", 1, tags)

    def track_eventbridge_operation(
        self,
        operation: EventBridgeOperation,
        success: bool,
        duration_ms: float | None = None,
    ) -> None:
        tags = [
            f"operation:{operation}",
            f"success:{str(success).lower()}",
        ]

        self.increment(f"eventbridge.{operation}.count", 1, tags)

        # A zero duration counts as "not measured" and skips the timing.
        if duration_ms:
            self.timing(f"eventbridge.{operation}.duration", duration_ms, tags)

        if not success:
            self.increment(f"eventbridge.{operation}.error", 1, tags)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Queued log deliveries finish before the HTTP client goes away.
        self._executor.shutdown(wait=True)
        try:
            self._statsd.close_socket()
        except Exception:  # noqa: BLE001
            logger.warning("statsd_close_failed", exc_info=True)
        self._http.close()


def _local_fields(context: dict[str, Any] | None) -> dict[str, Any]:
    fields = dict(context or {})
    # structlog reserves "event" for the message.
    if "event" in fields:
        fields["event_body"] = fields.pop("event")
    return fields


def _report_log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Datadog log task failed", error=str(exc))
