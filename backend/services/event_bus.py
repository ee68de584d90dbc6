# backend/services/event_bus.py
"""
In-process domain event broadcast.

Components publish named events carrying their normalized result; UI surfaces
either subscribe in-process or poll the per-session log over HTTP.
"""

import logging
import threading
from collections import OrderedDict, defaultdict, deque
from typing import Any, Callable, Dict, List, Optional

from services.time_utils import now_utc_iso

logger = logging.getLogger(__name__)

SYMPTOM_RECORDED = "symptom_recorded"
SYMPTOMS_MERGED = "symptoms_merged"
APPOINTMENT_CHECKED = "appointment_checked"
SLOTS_FETCHED = "slots_fetched"
SLOT_SELECTED = "slot_selected"
LOCATION_SELECTED = "location_selected"
APPOINTMENT_BOOKED = "appointment_booked"
BOOKING_CLEARED = "booking_cleared"
FUNCTION_CALL_COMPLETED = "function_call_completed"

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    def __init__(self, max_events_per_session: int = 200, max_sessions: int = 1000):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)
        # least recently active session first
        self._log: Dict[str, deque] = OrderedDict()
        self.max_events_per_session = max_events_per_session
        self.max_sessions = max_sessions
        self._seq = 0
        self._lock = threading.Lock()

    def subscribe(self, name: str, handler: Handler) -> None:
        with self._lock:
            self._handlers[name].append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        with self._lock:
            if handler in self._handlers.get(name, []):
                self._handlers[name].remove(handler)

    def publish(self, name: str, payload: Any, session_id: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            self._seq += 1
            event = {
                "seq": self._seq,
                "name": name,
                "session_id": session_id,
                "payload": payload,
                "at": now_utc_iso(),
            }
            if session_id:
                self._append(session_id, event)
            handlers = list(self._handlers.get(name, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler for %s failed", name)
        return event

    def _append(self, session_id: str, event: Dict[str, Any]) -> None:
        log = self._log.get(session_id)
        if log is None:
            log = self._log[session_id] = deque(maxlen=self.max_events_per_session)
        self._log.move_to_end(session_id)
        log.append(event)
        while len(self._log) > self.max_sessions:
            evicted, _ = self._log.popitem(last=False)
            logger.debug("Dropped event log of idle session %s", evicted)

    def events_since(self, session_id: str, after: int = 0) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self._log.get(session_id, []) if e["seq"] > after]

    def reset(self) -> None:
        with self._lock:
            self._handlers.clear()
            self._log.clear()
            self._seq = 0


bus = EventBus()
