"""
Shared fixtures: service path + an in-memory stand-in for the remote gateway.
"""
import sys
from pathlib import Path

import pytest

# Add service paths
sys.path.insert(0, str(Path(__file__).parent.parent / "services" / "api"))


class FakeGateway:
    """Records calls; serves whatever logs the test puts in ``self.logs``."""

    def __init__(self, logs=None):
        self.logs = list(logs or [])
        self.calls: list[tuple] = []
        self.fail_with = None
        self.statuses: dict[str, dict] = {}

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_with is not None:
            raise self.fail_with

    def fetch_logs(self):
        self._record("fetch_logs")
        return list(self.logs)

    def clear_logs(self):
        self._record("clear_logs")
        self.logs = []
        return {"ok": True}

    def register_sensor(self, sensor_id):
        self._record("register_sensor", sensor_id)
        return {"sid": f"sid-{sensor_id}"}

    def register_user(self, username, password):
        self._record("register_user", username, password)
        return {"did": f"did:{username}"}

    def bind(self, username, sensor_id):
        self._record("bind", username, sensor_id)
        return {"sid": f"sid-{sensor_id}-bound"}

    def authenticate(self, username, password, sensor_id):
        self._record("authenticate", username, password, sensor_id)
        self.logs = [
            {"type": "M1", "sessionId": "auth-1", "seq": 1, "ts": 100.0, "src": "user", "dst": "gateway"},
            {"type": "M2", "sessionId": "auth-1", "seq": 2, "ts": 100.2, "src": "gateway", "dst": "sensor"},
        ]
        return {"ok": True}

    def list_users(self):
        self._record("list_users")
        return [{"username": "alice", "did": "did:alice", "boundSids": []}]

    def list_sensors(self):
        self._record("list_sensors")
        return [{"sensorId": "sensor-1", "initialSid": "sid-1", "hasActiveSession": False}]

    def sensor_status(self, sensor_id):
        self._record("sensor_status", sensor_id)
        return self.statuses.get(sensor_id)

    def close(self):
        self.calls.append(("close",))


@pytest.fixture
def fake_gateway():
    return FakeGateway()
