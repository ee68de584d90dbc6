# backend/services/slot_service.py
import logging
import re
from typing import Any, Dict, List, Optional

from services import conversation_state
from services.config import (
    CAMPUSES,
    DEFAULT_CAMPUS_ID,
    DEFAULT_CONSULTATION_TYPE,
    DEFAULT_WEEK_SELECTION,
)
from services.errors import MissingFieldError, UpstreamError, ValidationError
from services.event_bus import LOCATION_SELECTED, SLOT_SELECTED, SLOTS_FETCHED, bus
from services.physio_api import get_client
from services.schemas import Slot
from services.session_service import get_or_create_session, try_update_session, update_session
from services.time_utils import format_hour

logger = logging.getLogger(__name__)

SLOT_KEY_PREFIX = "slot_available_"
SLOT_RANGE_RE = re.compile(r'^(\d{1,2})-(\d{1,2})$')

DAY_ALIASES = {
    "mon": "mon", "monday": "mon",
    "tue": "tue", "tues": "tue", "tuesday": "tue",
    "wed": "wed", "wednesday": "wed",
    "thu": "thu", "thur": "thu", "thurs": "thu", "thursday": "thu",
    "fri": "fri", "friday": "fri",
    "sat": "sat", "saturday": "sat",
    "sun": "sun", "sunday": "sun",
}


def canonical_day(value: Optional[str]) -> str:
    """'Monday', 'MON', 'mon' -> 'mon'."""
    s = (value or "").strip().lower()
    if not s:
        raise MissingFieldError(["selected_day"], "Day of the week is required")
    return DAY_ALIASES.get(s, s[:3])


def build_slot(time_range: str) -> Optional[Dict[str, str]]:
    m = SLOT_RANGE_RE.match(time_range.strip())
    if not m:
        return None
    start_hour, end_hour = int(m.group(1)), int(m.group(2))
    if start_hour > 24 or end_hour > 24:
        return None
    slot = Slot(
        timeRange=time_range,
        start_time=format_hour(start_hour),
        formatted=f"{format_hour(start_hour)} - {format_hour(end_hour)}",
    )
    return slot.model_dump()


def parse_hourly_slots(hourly_slots: Dict[str, Any]) -> List[Dict[str, str]]:
    """Keep only slots marked "available", ordered by start hour."""
    slots = []
    for key, availability in (hourly_slots or {}).items():
        if availability != "available":
            continue
        time_range = key[len(SLOT_KEY_PREFIX):] if key.startswith(SLOT_KEY_PREFIX) else key
        slot = build_slot(time_range)
        if slot is None:
            logger.warning("Skipping malformed slot key %r", key)
            continue
        slots.append(slot)
    slots.sort(key=lambda s: int(s["timeRange"].split("-")[0]))
    return slots


def fetch_slots(args: Dict[str, Any], session_id: Optional[str] = None, client=None) -> Dict[str, Any]:
    """
    Query availability for one day. Missing selected_day raises MissingFieldError
    before any network call; upstream failures come back as success=False and
    clear the cached slot query.
    """
    day = canonical_day(args.get("selected_day"))
    week_selection = args.get("week_selection") or DEFAULT_WEEK_SELECTION
    consultation_type = args.get("consultation_type") or DEFAULT_CONSULTATION_TYPE
    campus_id = args.get("campus_id") or DEFAULT_CAMPUS_ID
    client = client or get_client()

    try:
        data = client.fetch_slots(week_selection, day, consultation_type, campus_id)
        if not data.get("success"):
            raise UpstreamError(data.get("message") or "Slot search was not successful")
    except UpstreamError as e:
        logger.warning("Slot fetch for %s (%s, %s) failed: %s", day, consultation_type, campus_id, e)
        if session_id:
            try_update_session(session_id, slot_data=None)
        result = {
            "success": False,
            "error": e.message,
            "message": "Unable to fetch available slots. Please try again or select a different day.",
        }
        if session_id:
            bus.publish(SLOTS_FETCHED, result, session_id=session_id)
        return result

    date = (data.get("search_criteria") or {}).get("date")
    slots = parse_hourly_slots(data.get("hourly_slots") or {})

    if session_id:
        try_update_session(session_id, slot_data={
            "date": date,
            "consultation_type": consultation_type,
            "campus_id": campus_id,
            "week_selection": week_selection,
            "selected_day": day,
            "available_slots": slots,
        })

    if slots:
        message = f"Found {len(slots)} available slots for {date} at {campus_id}"
    else:
        message = f"No available slots found for {date} at {campus_id}"
    result = {
        "success": True,
        "date": date,
        "slots": slots,
        "available_slots": slots,
        "total_available": len(slots),
        "consultation_type": consultation_type,
        "campus": campus_id,
        "message": message,
    }
    if session_id:
        bus.publish(SLOTS_FETCHED, result, session_id=session_id)
    return result


def get_slot_data(session_id: str) -> Optional[Dict[str, Any]]:
    return get_or_create_session(session_id).get("slot_data")


def select_slot(session_id: str, time_range: str) -> Dict[str, Any]:
    session = get_or_create_session(session_id)
    slot_data = session.get("slot_data")
    if not slot_data:
        raise ValidationError("No slot search in progress; fetch slots first")
    slot = next((s for s in slot_data.get("available_slots", []) if s["timeRange"] == time_range), None)
    if slot is None:
        raise ValidationError(f"Slot {time_range} is not among the offered slots")
    slot_data = dict(slot_data,
                     selected_timeRange=slot["timeRange"],
                     selected_start_time=slot["start_time"],
                     selected_formatted=slot["formatted"])
    update_session(session_id, slot_data=slot_data,
                   state=conversation_state.next_stage(session.get("state"), "slot_selected"))
    bus.publish(SLOT_SELECTED, {"time": slot["start_time"], "formatted": slot["formatted"]},
                session_id=session_id)
    return slot_data


def select_location(session_id: str, campus_id: str) -> Dict[str, Any]:
    if campus_id not in CAMPUSES:
        raise ValidationError(f"Unknown campus {campus_id!r}; choose one of {', '.join(CAMPUSES)}")
    session = get_or_create_session(session_id)
    slot_data = dict(session.get("slot_data") or {}, campus_id=campus_id)
    update_session(session_id, slot_data=slot_data,
                   state=conversation_state.next_stage(session.get("state"), "location_selected"))
    bus.publish(LOCATION_SELECTED, campus_id, session_id=session_id)
    return slot_data
