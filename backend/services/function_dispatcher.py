# backend/services/function_dispatcher.py
"""
Routes agent-issued function calls to the ledger, gateways and orchestrator.

Whatever goes wrong downstream, dispatch() hands the transport a JSON-ready
mapping (or None for names it doesn't know) so the dialogue can continue.
One call is in flight per session at a time.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional

from services import appointment_service, booking_service, conversation_state, slot_service, symptom_service
from services.errors import PhysioError
from services.event_bus import FUNCTION_CALL_COMPLETED, bus
from services.session_service import get_or_create_session, update_session
from utils.function_call import decode_arguments

logger = logging.getLogger(__name__)

IDLE = "idle"
DISPATCHING = "dispatching"
COMPLETED = "completed"
FAILED = "failed"

GENERIC_FAILURE_MESSAGE = "Something went wrong while handling that request. Please try again."

Handler = Callable[[Dict[str, Any], Optional[str]], Dict[str, Any]]


def _record_symptom(args, session_id):
    record = symptom_service.record_symptom(args, session_id)
    return symptom_service.to_agent_reply(record)


def _check_appointment(args, session_id):
    result = appointment_service.check_appointment(args.get("phone_number"), session_id=session_id)
    return appointment_service.to_agent_reply(result)


def _fetch_slots(args, session_id):
    return slot_service.fetch_slots(args, session_id=session_id)


def _book_appointment(args, session_id):
    return booking_service.book_appointment(args, session_id=session_id)


def default_registry() -> Dict[str, Handler]:
    return {
        "record_symptom": _record_symptom,
        "check_appointment": _check_appointment,
        "fetch_slots": _fetch_slots,
        "book_appointment": _book_appointment,
    }


class FunctionDispatcher:
    def __init__(self, registry: Optional[Dict[str, Handler]] = None, max_tracked_sessions: int = 1000):
        self.registry = registry if registry is not None else default_registry()
        # session -> [lock, number of calls holding or waiting on it]
        self._locks: Dict[str, List[Any]] = {}
        self._status: Dict[str, Dict[str, Any]] = OrderedDict()
        self.max_tracked_sessions = max_tracked_sessions
        self._guard = threading.Lock()

    def _claim_lock(self, session_id: str) -> List[Any]:
        with self._guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = self._locks[session_id] = [threading.Lock(), 0]
            entry[1] += 1
            return entry

    def _release_lock(self, session_id: str, entry: List[Any]) -> None:
        with self._guard:
            entry[1] -= 1
            if entry[1] == 0 and self._locks.get(session_id) is entry:
                del self._locks[session_id]

    def _set_status(self, session_id: str, state: str, function_name: Optional[str] = None,
                    result: Any = None, outcome: Optional[str] = None):
        with self._guard:
            self._status[session_id] = {"state": state, "function_name": function_name,
                                        "result": result, "outcome": outcome}
            self._status.move_to_end(session_id)
            while len(self._status) > self.max_tracked_sessions:
                oldest = next(iter(self._status))
                if self._status[oldest]["state"] != IDLE:
                    break
                del self._status[oldest]

    def tracked_sessions(self) -> int:
        with self._guard:
            return len(self._status)

    def status(self, session_id: str) -> Dict[str, Any]:
        with self._guard:
            return dict(self._status.get(session_id) or {"state": IDLE, "function_name": None, "result": None, "outcome": None})

    def dispatch(self, session_id: str, function_name: str, arguments: Any = None) -> Optional[Dict[str, Any]]:
        handler = self.registry.get(function_name)
        if handler is None:
            logger.info("Unhandled function call %r", function_name)
            return None

        key = session_id or ""
        entry = self._claim_lock(key)
        try:
            with entry[0]:
                result = self._run(key, session_id, function_name, handler, arguments)
        finally:
            self._release_lock(key, entry)
        return result

    def _run(self, key: str, session_id: Optional[str], function_name: str, handler: Handler,
             arguments: Any) -> Dict[str, Any]:
        self._set_status(key, DISPATCHING, function_name)
        logger.info("Function call received: %s", function_name)
        try:
            args = decode_arguments(arguments)
            result = handler(args, session_id)
        except PhysioError as e:
            logger.warning("%s failed: %s", function_name, e.message)
            result = {"success": False, "error": e.message, "message": e.message}
        except ValueError as e:
            logger.warning("%s called with bad arguments: %s", function_name, e)
            result = {"success": False, "error": str(e), "message": "The request details were not understood."}
        except Exception as e:
            logger.exception("%s raised unexpectedly", function_name)
            result = {"success": False, "error": str(e), "message": GENERIC_FAILURE_MESSAGE}

        if not isinstance(result, dict):
            logger.error("%s returned %r instead of a mapping", function_name, type(result).__name__)
            result = {"success": False, "error": "invalid handler result", "message": GENERIC_FAILURE_MESSAGE}
        success = bool(result.get("success"))
        outcome = COMPLETED if success else FAILED
        self._set_status(key, outcome, function_name, result, outcome)
        self._after_dispatch(session_id, function_name, success)
        self._set_status(key, IDLE, function_name, result, outcome)
        return result

    def _after_dispatch(self, session_id: Optional[str], function_name: str, success: bool):
        if not session_id:
            return
        try:
            session = get_or_create_session(session_id)
            stage = conversation_state.next_stage(session.get("state"), function_name, success)
            if stage != session.get("state"):
                update_session(session_id, state=stage)
            bus.publish(FUNCTION_CALL_COMPLETED,
                        {"function_name": function_name, "success": success, "stage": stage},
                        session_id=session_id)
        except Exception:
            logger.exception("Failed to record outcome of %s for session %s", function_name, session_id)


dispatcher = FunctionDispatcher()
