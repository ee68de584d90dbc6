import pytest
import requests

from services import symptom_service
from services.config import ENV_VARS
from services.event_bus import bus

BASE_URL = "https://physio.test"


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeUpstream:
    """
    Stands in for the scheduling API at the requests level.
    Responses are keyed by path prefix; each value is a FakeResponse,
    a dict (200 with that body) or an exception to raise.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def respond(self, path, body=None, status_code=200):
        self.responses[path] = FakeResponse(status_code, body)

    def fail(self, path, exc):
        self.responses[path] = exc

    def _lookup(self, url):
        path = url[len(BASE_URL):]
        for prefix, resp in self.responses.items():
            if path.startswith(prefix):
                return resp
        return FakeResponse(404, {"success": False}, reason="Not Found")

    def _handle(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        resp = self._lookup(url)
        if isinstance(resp, Exception):
            raise resp
        if isinstance(resp, dict):
            return FakeResponse(200, resp)
        return resp

    def get(self, url, headers=None, params=None, timeout=None):
        return self._handle("GET", url, params=params, timeout=timeout)

    def post(self, url, headers=None, json=None, timeout=None):
        return self._handle("POST", url, json=json, timeout=timeout)

    def paths(self):
        return [c["url"][len(BASE_URL):] for c in self.calls]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    for name in ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PHYSIO_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PHYSIO_API_BASE_URL", BASE_URL)
    symptom_service.set_store(symptom_service.InMemorySymptomStore())
    bus.reset()
    yield tmp_path
    symptom_service.set_store(None)
    bus.reset()


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr(requests, "get", fake.get)
    monkeypatch.setattr(requests, "post", fake.post)
    return fake


@pytest.fixture
def events(monkeypatch):
    """Every event published during the test, in order."""
    seen = []
    original = bus.publish

    def record(name, payload, session_id=None):
        event = original(name, payload, session_id=session_id)
        seen.append(event)
        return event

    monkeypatch.setattr(bus, "publish", record)
    return seen


UPCOMING_APPOINTMENT = {
    "success": True,
    "appointment": {
        "startDateTime": "2025-03-10T10:00:00Z",
        "doctor": "Dr. Sharma",
        "consultationType": "Online",
        "status": "booked",
    },
}

MONDAY_SLOTS = {
    "success": True,
    "search_criteria": {"date": "2025-03-17"},
    "hourly_slots": {
        "slot_available_9-10": "available",
        "slot_available_10-11": "unavailable",
    },
}

BOOKING_SUCCESS = {
    "success": True,
    "appointmentInfo": {
        "appointed_doctor": "Dr. Mehta",
        "calculated_date": "2025-03-17",
        "startDateTime": "2025-03-17T10:00:00+05:30",
        "consultation_type": "Online",
        "lead_id": 4412,
        "payment_mode": "pay now",
    },
    "payment": {"short_url": "https://rzp.io/i/abc123", "reference_id": "REF-77"},
}
