import pytest

from services.errors import ValidationError
from services.event_bus import SYMPTOM_RECORDED, SYMPTOMS_MERGED
from services.symptom_service import (
    JsonFileSymptomStore,
    list_symptoms,
    merge_symptoms,
    record_symptom,
    to_agent_reply,
)


def test_record_then_list():
    """A single recorded symptom comes back with its fields and a timestamp."""
    record_symptom({"symptom": "lower back pain", "severity": 7}, "s1")
    records = list_symptoms("s1")
    assert len(records) == 1
    assert records[0]["symptom"] == "lower back pain"
    assert records[0]["severity"] == 7
    assert records[0]["sessionId"] == "s1"
    assert records[0]["timestamp"]


def test_append_order_is_kept():
    for s in ("neck stiffness", "knee pain", "shoulder ache"):
        record_symptom({"symptom": s}, "s1")
    assert [r["symptom"] for r in list_symptoms("s1")] == ["neck stiffness", "knee pain", "shoulder ache"]


def test_sessions_are_isolated():
    record_symptom({"symptom": "knee pain"}, "a")
    record_symptom({"symptom": "wrist pain"}, "b")
    assert [r["symptom"] for r in list_symptoms("a")] == ["knee pain"]


def test_unknown_or_empty_session_lists_nothing():
    assert list_symptoms("never-seen") == []
    assert list_symptoms("") == []


def test_symptom_is_required():
    with pytest.raises(ValidationError, match="Symptom is required"):
        record_symptom({"severity": 3}, "s1")
    with pytest.raises(ValidationError):
        record_symptom({"symptom": "   "}, "s1")
    assert list_symptoms("s1") == []


def test_session_id_is_required():
    with pytest.raises(ValidationError, match="Session ID is required"):
        record_symptom({"symptom": "knee pain"}, "")


@pytest.mark.parametrize("severity", [0, 11, "high", 4.5, True])
def test_bad_severity_is_rejected(severity):
    with pytest.raises(ValidationError):
        record_symptom({"symptom": "knee pain", "severity": severity}, "s1")


def test_numeric_string_severity_is_accepted():
    record = record_symptom({"symptom": "knee pain", "severity": "4"}, "s1")
    assert record["severity"] == 4


def test_merge_skips_existing_symptom():
    record_symptom({"symptom": "back pain"}, "s1")
    added = merge_symptoms([{"symptom": "back pain"}], "s1")
    assert added == []
    assert [r["symptom"] for r in list_symptoms("s1")].count("back pain") == 1


def test_merge_appends_new_and_dedupes_within_batch():
    record_symptom({"symptom": "back pain"}, "s1")
    added = merge_symptoms(
        [{"symptom": "hip pain", "severity": 5}, {"symptom": "back pain"}, {"symptom": "hip pain"}],
        "s1",
    )
    assert [r["symptom"] for r in added] == ["hip pain"]
    assert [r["symptom"] for r in list_symptoms("s1")] == ["back pain", "hip pain"]


def test_events_are_published(events):
    record_symptom({"symptom": "back pain"}, "s1")
    merge_symptoms([{"symptom": "hip pain"}], "s1")
    assert [e["name"] for e in events] == [SYMPTOM_RECORDED, SYMPTOMS_MERGED]
    assert events[1]["payload"][0]["symptom"] == "hip pain"


def test_agent_reply():
    record = record_symptom({"symptom": "back pain"}, "s1")
    reply = to_agent_reply(record)
    assert reply == {
        "success": True,
        "symptom": "back pain",
        "recorded": True,
        "message": "Successfully recorded symptom: back pain",
    }


def test_file_store_persists(tmp_path):
    store = JsonFileSymptomStore(tmp_path / "symptoms.json")
    record_symptom({"symptom": "knee pain"}, "s1", store=store)
    record_symptom({"symptom": "ankle pain"}, "s1", store=store)
    reopened = JsonFileSymptomStore(tmp_path / "symptoms.json")
    assert [r["symptom"] for r in list_symptoms("s1", store=reopened)] == ["knee pain", "ankle pain"]


def test_merge_with_invalid_record_writes_nothing(events):
    record_symptom({"symptom": "back pain"}, "s1")
    with pytest.raises(ValidationError):
        merge_symptoms([{"symptom": "knee pain"}, {"symptom": ""}], "s1")
    assert [r["symptom"] for r in list_symptoms("s1")] == ["back pain"]
    assert SYMPTOMS_MERGED not in [e["name"] for e in events]
