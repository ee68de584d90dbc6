# backend/services/symptom_service.py
"""
Append-only, per-session symptom ledger.

Records are never mutated or deleted. The storage backend sits behind
SymptomStore so the in-memory default can be swapped for a durable one.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from services.config import data_dir, load_settings
from services.errors import ValidationError
from services.event_bus import SYMPTOM_RECORDED, SYMPTOMS_MERGED, bus
from services.schemas import SymptomRecord
from services.time_utils import now_utc_iso
from utils.storage import read_json_file, write_json_file

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ("severity", "duration", "location", "triggers")


class SymptomStore:
    def append(self, key: str, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def list(self, key: str) -> List[Dict[str, Any]]:
        raise NotImplementedError


class InMemorySymptomStore(SymptomStore):
    def __init__(self):
        self._data: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self._lock = threading.Lock()

    def append(self, key, record):
        with self._lock:
            self._data[key].append(record)

    def list(self, key):
        with self._lock:
            return list(self._data.get(key, []))


class JsonFileSymptomStore(SymptomStore):
    def __init__(self, path=None):
        self.path = path or (data_dir() / "symptoms.json")
        self._lock = threading.Lock()

    def append(self, key, record):
        with self._lock:
            data = read_json_file(self.path)
            data.setdefault(key, []).append(record)
            write_json_file(self.path, data)

    def list(self, key):
        with self._lock:
            return list(read_json_file(self.path).get(key, []))


_store: Optional[SymptomStore] = None
_store_lock = threading.Lock()


def get_store() -> SymptomStore:
    global _store
    with _store_lock:
        if _store is None:
            kind = load_settings()["symptom_store"]
            _store = JsonFileSymptomStore() if kind == "file" else InMemorySymptomStore()
            logger.info("Symptom ledger using %s", type(_store).__name__)
        return _store


def set_store(store: Optional[SymptomStore]) -> None:
    global _store
    with _store_lock:
        _store = store


def _clean_severity(value):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("Severity must be an integer between 1 and 10")
    try:
        severity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Severity must be an integer between 1 and 10")
    if severity != float(value) or not 1 <= severity <= 10:
        raise ValidationError("Severity must be an integer between 1 and 10")
    return severity


def _build_record(data: Dict[str, Any], session_id: str) -> Dict[str, Any]:
    symptom = (data.get("symptom") or "")
    if not isinstance(symptom, str) or not symptom.strip():
        raise ValidationError("Symptom is required")
    if not session_id:
        raise ValidationError("Session ID is required")

    record = SymptomRecord(
        symptom=symptom.strip(),
        severity=_clean_severity(data.get("severity")),
        duration=data.get("duration") or None,
        location=data.get("location") or None,
        triggers=data.get("triggers") or None,
        timestamp=data.get("timestamp") or now_utc_iso(),
        sessionId=session_id,
    )
    return record.model_dump()


def record_symptom(data: Dict[str, Any], session_id: str, store: Optional[SymptomStore] = None) -> Dict[str, Any]:
    record = _build_record(data, session_id)
    (store or get_store()).append(session_id, record)
    logger.info("Recorded symptom %r for session %s", record["symptom"], session_id)
    bus.publish(SYMPTOM_RECORDED, record, session_id=session_id)
    return record


def list_symptoms(session_id: str, store: Optional[SymptomStore] = None) -> List[Dict[str, Any]]:
    if not session_id:
        return []
    return (store or get_store()).list(session_id)


def merge_symptoms(records: Iterable[Dict[str, Any]], session_id: str,
                   store: Optional[SymptomStore] = None) -> List[Dict[str, Any]]:
    """
    Bulk append used when an assessment concludes. Records whose symptom text
    already exists in the session (or earlier in the same batch) are skipped.
    Returns the records actually appended. The whole batch is validated
    before anything is written.
    """
    built = [_build_record(data, session_id) for data in records]
    store = store or get_store()
    seen = {r["symptom"] for r in store.list(session_id)}
    added = []
    for record in built:
        if record["symptom"] in seen:
            continue
        store.append(session_id, record)
        seen.add(record["symptom"])
        added.append(record)
    if added:
        bus.publish(SYMPTOMS_MERGED, added, session_id=session_id)
    logger.info("Merged %d new symptom(s) into session %s", len(added), session_id)
    return added


def to_agent_reply(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "symptom": record["symptom"],
        "recorded": True,
        "message": f"Successfully recorded symptom: {record['symptom']}",
    }
