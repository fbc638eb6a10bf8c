"""
Gateway Flow - Runtime wiring

One gateway client, one live view and one poller per app, kept on
app.state so routers reach them through the request.
"""
from dataclasses import dataclass

from fastapi import FastAPI, Request

from config import settings
from gateway_client import GatewayClient
from live_view import LiveView
from poller import LogPoller


@dataclass
class Runtime:
    gateway: GatewayClient
    view: LiveView
    poller: LogPoller


def init_runtime(app: FastAPI, gateway: GatewayClient) -> Runtime:
    view = LiveView()
    runtime = Runtime(
        gateway=gateway,
        view=view,
        poller=LogPoller(gateway, view, interval_ms=settings.POLL_INTERVAL_MS),
    )
    app.state.runtime = runtime
    return runtime


def get_runtime(request: Request) -> Runtime:
    """Dependency: the app's runtime."""
    return request.app.state.runtime
