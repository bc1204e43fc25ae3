from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from eventbridge_api.config import Settings, get_settings
from eventbridge_api.main import create_app
from eventbridge_api.observability.datadog import DatadogClient
from tests.fakes import FakeEventsClient, FakeStatsd, ImmediateExecutor, LogIntake


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DD_API_KEY", raising=False)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(EVENT_BUS_NAME="test-bus", HOSTNAME="test-host", NODE_ENV="test")


@pytest.fixture
def statsd() -> FakeStatsd:
    return FakeStatsd()


@pytest.fixture
def log_intake() -> LogIntake:
    return LogIntake()


@pytest.fixture
def executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def datadog(statsd: FakeStatsd, log_intake: LogIntake, executor: ImmediateExecutor) -> DatadogClient:
    return DatadogClient(
        api_key=None,
        service="eventbridge-api",
        hostname="test-host",
        statsd=statsd,
        http_client=httpx.Client(transport=httpx.MockTransport(log_intake)),
        executor=executor,
    )


@pytest.fixture
def events_client() -> FakeEventsClient:
    return FakeEventsClient()


@pytest.fixture
def app(settings: Settings, datadog: DatadogClient, events_client: FakeEventsClient) -> FastAPI:
    return create_app(settings=settings, datadog=datadog, events_client=events_client)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
