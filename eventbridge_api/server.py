"""Process entry point: bind, serve, and shut down on SIGTERM/SIGINT."""

from __future__ import annotations

import argparse
import asyncio
import signal
import socket
import sys
from types import FrameType
from typing import Any, NoReturn

import structlog
import uvicorn

from eventbridge_api.config import Settings, get_settings
from eventbridge_api.main import create_app
from eventbridge_api.observability.datadog import DatadogClient
from eventbridge_api.observability.logging import configure_logging

STATUS_GAUGE = "server.status"

logger = structlog.get_logger("server")


class RelayServer(uvicorn.Server):
    """uvicorn server that reports liveness to Datadog."""

    def __init__(self, config: uvicorn.Config, datadog: DatadogClient) -> None:
        super().__init__(config)
        self.datadog = datadog

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            host, port = self.config.host, self.config.port
            self.datadog.info(f"Server listening on {host}:{port}", {"host": host, "port": port})
            self.datadog.gauge(STATUS_GAUGE, 1)

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        if not self.should_exit:
            self.announce_shutdown(signal.Signals(sig).name)
        super().handle_exit(sig, frame)

    def announce_shutdown(self, signal_name: str) -> None:
        self.datadog.info("Shutting down server", {"signal": signal_name})
        self.datadog.gauge(STATUS_GAUGE, 0)
        self.datadog.close()


def bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def fail_startup(datadog: DatadogClient, settings: Settings, error: BaseException | str) -> NoReturn:
    datadog.error(
        "Failed to start server",
        {"host": settings.host, "port": settings.port, "error": str(error)},
    )
    datadog.gauge(STATUS_GAUGE, 0)
    datadog.close()
    sys.exit(1)


def run(
    settings: Settings | None = None,
    datadog: DatadogClient | None = None,
    events_client: Any | None = None,
) -> None:
    settings = settings or get_settings()
    datadog = datadog or DatadogClient.from_settings(settings)
    app = create_app(settings=settings, datadog=datadog, events_client=events_client)

    try:
        sock = bind_socket(settings.host, settings.port)
    except OSError as exc:
        fail_startup(datadog, settings, exc)

    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_config=None)
    server = RelayServer(config, datadog=datadog)

    # uvicorn re-raises the captured signal after serve() returns; ignore it so a
    # signal-driven shutdown still exits with status 0.
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, signal.SIG_IGN)

    try:
        asyncio.run(server.serve(sockets=[sock]))
    finally:
        sock.close()

    if not server.started:
        fail_startup(datadog, settings, "server did not finish startup")

    datadog.close()
    logger.info("server_stopped")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="HTTP relay between webhooks and AWS EventBridge")
    parser.add_argument("--host", default=None, help="Listen address (overrides HOST)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (overrides PORT)")
    args = parser.parse_args(argv)

    settings = get_settings()
    overrides = {key: value for key, value in (("host", args.host), ("port", args.port)) if value is not None}
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level, settings.log_format)
    run(settings)
