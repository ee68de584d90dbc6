import pytest
from fastapi.testclient import TestClient

from conftest import BOOKING_SUCCESS, MONDAY_SLOTS, UPCOMING_APPOINTMENT
from main import app
from services.session_service import SESSION_ID_KEY


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


class TestSessions:
    def test_new_session(self, client):
        body = client.post("/api/session/new").json()
        assert body["ok"] is True
        assert client.get(f"/api/sessions/{body['session_id']}").json()["session"]["state"] == "greeting"

    def test_cookie_session_is_stable(self, client):
        first = client.get("/api/session")
        assert first.cookies.get(SESSION_ID_KEY) == first.json()["session_id"]
        second = client.get("/api/session")
        assert second.json()["session_id"] == first.json()["session_id"]

    def test_unknown_session_is_404(self, client):
        assert client.get("/api/sessions/missing").status_code == 404


class TestSymptoms:
    def test_get_requires_session(self, client):
        resp = client.get("/api/symptoms")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Session ID is required"

    def test_post_then_get(self, client):
        resp = client.post("/api/symptoms", json={"symptom": "lower back pain", "severity": 7, "sessionId": "s1"})
        body = resp.json()
        assert body["success"] is True
        assert body["sessionId"] == "s1"
        assert body["symptomRecord"]["severity"] == 7

        listed = client.get("/api/symptoms", params={"sessionId": "s1"}).json()
        assert [s["symptom"] for s in listed["symptoms"]] == ["lower back pain"]

    def test_post_without_session_generates_one(self, client):
        body = client.post("/api/symptoms", json={"symptom": "knee pain"}).json()
        assert body["sessionId"]

    def test_post_without_symptom_is_400(self, client):
        resp = client.post("/api/symptoms", json={"sessionId": "s1"})
        assert resp.status_code == 400

    def test_merge(self, client):
        client.post("/api/symptoms", json={"symptom": "back pain", "sessionId": "s1"})
        body = client.post("/api/symptoms/merge", json={
            "sessionId": "s1", "symptoms": [{"symptom": "back pain"}, {"symptom": "hip pain"}],
        }).json()
        assert [s["symptom"] for s in body["added"]] == ["hip pain"]
        assert len(body["symptoms"]) == 2


def test_appointment_lookup(client, upstream):
    upstream.respond("/follow-up-appointments/", UPCOMING_APPOINTMENT)
    body = client.get("/api/appointments", params={"phoneNumber": "9873219957"}).json()
    assert body["found"] is True
    assert body["appointment"]["time"] == "10:00 AM"


def test_appointment_lookup_failure_is_not_an_http_error(client, upstream):
    upstream.respond("/follow-up-appointments/", {}, status_code=502)
    resp = client.get("/api/appointments", params={"phoneNumber": "9873219957"})
    assert resp.status_code == 200
    assert resp.json()["ok"] is False
    assert resp.json()["error"]


class TestSlots:
    def test_missing_day_is_400(self, client, upstream):
        assert client.get("/api/slots").status_code == 400
        assert upstream.calls == []

    def test_fetch_and_select(self, client, upstream):
        upstream.respond("/fetch-slots", MONDAY_SLOTS)
        body = client.get("/api/slots", params={"selected_day": "Monday", "sessionId": "s1"}).json()
        assert body["slots"][0]["formatted"] == "9:00 AM - 10:00 AM"

        selected = client.post("/api/slots/select", json={"sessionId": "s1", "timeRange": "9-10"}).json()
        assert selected["slot_data"]["selected_start_time"] == "9:00 AM"

        assert client.post("/api/slots/select", json={"sessionId": "s1", "timeRange": "1-2"}).status_code == 400

    def test_location(self, client):
        ok = client.post("/api/location/select", json={"sessionId": "s1", "campusId": "Hyderabad"})
        assert ok.json()["slot_data"]["campus_id"] == "Hyderabad"
        bad = client.post("/api/location/select", json={"sessionId": "s1", "campusId": "Atlantis"})
        assert bad.status_code == 400


class TestAgent:
    def test_tools(self, client):
        names = [t["name"] for t in client.get("/api/agent/tools").json()["tools"]]
        assert names == ["record_symptom", "check_appointment", "fetch_slots", "book_appointment"]

    def test_unknown_function(self, client):
        body = client.post("/api/agent/function-call", json={"session_id": "s1", "function_name": "nope"}).json()
        assert body["ok"] is True
        assert body["result"] is None

    def test_function_call_books_and_ui_sees_it(self, client, upstream):
        upstream.respond("/book-appointment", BOOKING_SUCCESS)
        body = client.post("/api/agent/function-call", json={
            "session_id": "s1",
            "function_name": "book_appointment",
            "arguments": {"selected_day": "mon", "start_time": "10:00 AM", "consultation_type": "Online",
                          "patient_name": "Jane Doe", "mobile_number": "9999999999"},
        }).json()
        assert body["result"]["success"] is True

        booking = client.get("/api/bookings/current", params={"sessionId": "s1"}).json()["booking"]
        assert booking["patientName"] == "Jane Doe"

        events = client.get("/api/sessions/s1/events").json()["events"]
        assert "appointment_booked" in [e["name"] for e in events]

        client.delete("/api/bookings/current", params={"sessionId": "s1"})
        assert client.get("/api/bookings/current", params={"sessionId": "s1"}).json()["booking"] is None

    def test_llm_output_with_function_call(self, client):
        body = client.post("/api/agent/llm-output", json={
            "session_id": "s1",
            "text": '<function=record_symptom>{"symptom": "ankle sprain"}</function>',
        }).json()
        assert body["handled"] is True
        assert body["result"]["success"] is True
        assert client.get("/api/sessions/s1").json()["session"]["state"] == "symptom_intake"

    def test_llm_output_plain_text(self, client):
        body = client.post("/api/agent/llm-output", json={"session_id": "s1", "text": "Hello, I'm Riya."}).json()
        assert body["handled"] is False

    def test_events_after_cursor(self, client):
        client.post("/api/agent/function-call", json={
            "session_id": "s1", "function_name": "record_symptom", "arguments": {"symptom": "neck pain"},
        })
        first = client.get("/api/sessions/s1/events").json()
        assert first["events"]
        later = client.get("/api/sessions/s1/events", params={"after": first["last_seq"]}).json()
        assert later["events"] == []
        assert later["last_seq"] == first["last_seq"]
