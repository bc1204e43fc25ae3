"""Test doubles for the StatsD emitter, the log intake and the EventBridge client."""

from __future__ import annotations

from concurrent.futures import Executor, Future
from typing import Any

import httpx


class FakeStatsd:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, float, list[str] | None]] = []
        self.closed = False

    def _record(self, kind: str, metric: str, value: float, tags: list[str] | None = None) -> None:
        self.calls.append((kind, metric, value, tags))

    def increment(self, metric: str, value: float = 1, tags: list[str] | None = None) -> None:
        self._record("increment", metric, value, tags)

    def gauge(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._record("gauge", metric, value, tags)

    def histogram(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._record("histogram", metric, value, tags)

    def timing(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._record("timing", metric, value, tags)

    def distribution(self, metric: str, value: float, tags: list[str] | None = None) -> None:
        self._record("distribution", metric, value, tags)

    def close_socket(self) -> None:
        self.closed = True

    def named(self, metric: str) -> list[tuple[str, str, float, list[str] | None]]:
        return [call for call in self.calls if call[1] == metric]


class ImmediateExecutor(Executor):
    """Runs submitted log deliveries inline so tests can assert on them."""

    def __init__(self) -> None:
        self.submitted = 0
        self.is_shutdown = False

    def submit(self, fn, /, *args, **kwargs) -> Future:  # type: ignore[override]
        if self.is_shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self.is_shutdown = True


class LogIntake:
    """httpx.MockTransport handler standing in for the Datadog log intake."""

    def __init__(self, status_code: int = 202) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code)


class FakeEventsClient:
    def __init__(self, error: Exception | None = None, response: dict[str, Any] | None = None) -> None:
        self.error = error
        self.response = response or {"FailedEntryCount": 0, "Entries": [{"EventId": "evt-1"}]}
        self.calls: list[dict[str, Any]] = []

    def put_events(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


