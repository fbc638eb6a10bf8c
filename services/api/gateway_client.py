"""
Gateway Flow - Remote Gateway Client

Blocking HTTP client for the demo authentication gateway. Every failure,
transport or HTTP, surfaces as GatewayError carrying the gateway's own
error message when it sent one.

Call from async code through asyncio.to_thread.
"""
from typing import Any, Optional

import requests

from log import get_logger
from metrics import track_gateway

logger = get_logger()


class GatewayError(Exception):
    """Remote gateway unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class GatewayClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    # ─── Transport ──────────────────────────────────────────

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("gateway.unreachable", method=method, path=path, error=str(e))
            raise GatewayError(f"Gateway unreachable: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            message = None
            if isinstance(data, dict):
                message = data.get("error") or data.get("message")
            message = message or f"Request failed (HTTP {resp.status_code})"
            logger.info("gateway.rejected", method=method, path=path, status=resp.status_code, error=message)
            raise GatewayError(message, status_code=resp.status_code, payload=data)

        if data is None and resp.content:
            raise GatewayError(f"Invalid JSON from gateway {path}", status_code=resp.status_code)
        return data if data is not None else {}

    def _post(self, path: str, body: dict) -> dict:
        return self._request("POST", path, json=body)

    def close(self) -> None:
        self._session.close()

    # ─── Logs ───────────────────────────────────────────────

    @track_gateway("fetch_logs")
    def fetch_logs(self) -> list:
        data = self._request("GET", "/logs")
        if isinstance(data, dict) and isinstance(data.get("logs"), list):
            data = data["logs"]
        if not isinstance(data, list):
            raise GatewayError(f"Unexpected /logs payload: {type(data).__name__}")
        return data

    @track_gateway("clear_logs")
    def clear_logs(self) -> dict:
        return self._post("/logs/clear", {})

    # ─── Protocol actions ──────────────────────────────────

    @track_gateway("register_sensor")
    def register_sensor(self, sensor_id: str) -> dict:
        return self._post("/sensor/register", {"sensorId": sensor_id})

    @track_gateway("register_user")
    def register_user(self, username: str, password: str) -> dict:
        return self._post("/user/register", {"username": username, "password": password})

    @track_gateway("bind")
    def bind(self, username: str, sensor_id: str) -> dict:
        return self._post("/bind", {"username": username, "sensorId": sensor_id})

    @track_gateway("authenticate")
    def authenticate(self, username: str, password: str, sensor_id: str) -> dict:
        return self._post(
            "/authenticate",
            {"username": username, "password": password, "sensorId": sensor_id},
        )

    # ─── Registry views ────────────────────────────────────

    @track_gateway("list_users")
    def list_users(self) -> list:
        data = self._request("GET", "/users")
        return (data.get("users") if isinstance(data, dict) else None) or []

    @track_gateway("list_sensors")
    def list_sensors(self) -> list:
        data = self._request("GET", "/sensors")
        return (data.get("sensors") if isinstance(data, dict) else None) or []

    @track_gateway("sensor_status")
    def sensor_status(self, sensor_id: str) -> Optional[dict]:
        """Status for one sensor, or None when the gateway has none."""
        try:
            return self._request("GET", "/sensor/status", params={"sensorId": sensor_id})
        except GatewayError as e:
            if e.status_code is None:
                raise
            return None
