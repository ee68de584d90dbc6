# backend/services/session_service.py
import logging
import secrets
import threading
from typing import Any, Dict, Optional

from services.config import data_dir
from services.time_utils import now_utc_iso
from utils.storage import StorageUnavailable, read_json_file, write_json_file

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "physiotattva_session_id"

_lock = threading.RLock()


def _sessions_file():
    return data_dir() / "sessions.json"


def new_session_id() -> str:
    return secrets.token_hex(8)


def get_or_create_session_id(store) -> str:
    """
    Return the id persisted in `store`, creating and persisting one on first use.
    `store` is anything with get_item/set_item (JsonFileStore, MappingStore).
    If the store can't be read or written, a call-scoped id is returned instead.
    """
    try:
        existing = store.get_item(SESSION_ID_KEY)
    except StorageUnavailable as e:
        logger.warning("Session storage unavailable, using in-memory id: %s", e)
        return new_session_id()
    if existing:
        return existing

    sid = new_session_id()
    try:
        store.set_item(SESSION_ID_KEY, sid)
    except StorageUnavailable as e:
        logger.warning("Could not persist session id, it will not survive reloads: %s", e)
    return sid


def load_all_sessions() -> Dict[str, Any]:
    try:
        return read_json_file(_sessions_file())
    except StorageUnavailable as e:
        logger.error("Failed to load sessions: %s", e)
        return {}


def save_all_sessions(data: dict):
    write_json_file(_sessions_file(), data)


def create_session(preferred_id: Optional[str] = None):
    """
    Create a session record. If preferred_id is provided and already used,
    the existing record is returned untouched.
    """
    with _lock:
        sessions = load_all_sessions()
        sid = preferred_id if preferred_id else new_session_id()
        if sid in sessions:
            return sessions[sid]
        sessions[sid] = {
            "id": sid,
            "created_at": now_utc_iso(),
            "state": "greeting",
            "slot_data": None,
            "current_booking": None,
            "last_appointment": None,
        }
        save_all_sessions(sessions)
        return sessions[sid]


def get_session(session_id: str):
    return load_all_sessions().get(session_id)


def get_or_create_session(session_id: str):
    return get_session(session_id) or create_session(preferred_id=session_id)


def update_session(session_id: str, **fields):
    """Write-through update of selected fields on a session record."""
    with _lock:
        sessions = load_all_sessions()
        s = sessions.get(session_id)
        if s is None:
            s = create_session(preferred_id=session_id)
            sessions = load_all_sessions()
        s.update(fields)
        sessions[session_id] = s
        save_all_sessions(sessions)
        return s


def list_sessions():
    return list(load_all_sessions().values())


def try_update_session(session_id: str, **fields) -> bool:
    """
    update_session for write-throughs that must not fail the caller.
    Returns False (and logs) when the session file can't be written.
    """
    try:
        update_session(session_id, **fields)
    except StorageUnavailable as e:
        logger.error("Could not update session %s (%s): %s", session_id, ", ".join(fields), e)
        return False
    return True
