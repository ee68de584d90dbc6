# backend/services/appointment_service.py
"""
Appointment lookup by phone number.

The upstream returns {success, appointment?}. A missing appointment object
without an error status is treated as "no upcoming appointment", a successful
result. Network and status failures never raise to the caller: they degrade to
the same empty result with an `error` set for the UI.
"""

import logging
from typing import Any, Dict, Optional

from services.config import load_settings
from services.errors import UpstreamError
from services.event_bus import APPOINTMENT_CHECKED, bus
from services.physio_api import get_client
from services.schemas import Appointment
from services.session_service import try_update_session
from services.time_utils import format_clock_time, format_long_date, parse_iso_datetime, to_display_zone

logger = logging.getLogger(__name__)

PLACEHOLDER_PHONES = ("patient_phone_number", "patient's phone number")


def resolve_phone_number(phone_number: Optional[str], fallback: Optional[str] = None) -> str:
    if fallback is None:
        fallback = load_settings()["fallback_phone"]
    value = (phone_number or "").strip() if isinstance(phone_number, str) else str(phone_number or "")
    if not value or value in PLACEHOLDER_PHONES:
        logger.info("Using fallback phone number in place of %r", phone_number)
        return fallback
    return value


def normalize_appointment(raw: Dict[str, Any], tz_name: Optional[str] = None) -> Dict[str, Any]:
    start = to_display_zone(parse_iso_datetime(raw.get("startDateTime")), tz_name)
    appointment = Appointment(
        id=raw.get("id"),
        date=format_long_date(start),
        time=format_clock_time(start),
        doctor=raw.get("doctor"),
        type=raw.get("consultationType"),
        campus=raw.get("campus") or "Online",
        status=raw.get("status"),
        patient_name=raw.get("patientName") or raw.get("callerName"),
    )
    return appointment.model_dump()


def check_appointment(phone_number: Optional[str], session_id: Optional[str] = None,
                      client=None) -> Dict[str, Any]:
    settings = load_settings()
    phone = resolve_phone_number(phone_number, settings["fallback_phone"])
    client = client or get_client()

    result: Dict[str, Any] = {"found": False, "phone_number": phone}
    try:
        data = client.get_follow_up_appointment(phone)
        result["raw"] = data
        raw_appt = data.get("appointment") if data.get("success") else None
        if isinstance(raw_appt, dict):
            result["appointment"] = normalize_appointment(raw_appt, settings["display_timezone"])
            result["found"] = True
    except UpstreamError as e:
        logger.warning("Appointment lookup for %s failed: %s", phone, e)
        result["error"] = e.message
    except (ValueError, TypeError) as e:
        # start timestamp missing or unparseable
        logger.warning("Could not normalize appointment for %s: %s", phone, e)
        result["error"] = f"Unexpected appointment data: {e}"

    if session_id:
        try_update_session(session_id, last_appointment=result.get("appointment"))
        bus.publish(APPOINTMENT_CHECKED, result, session_id=session_id)
    return result


def to_agent_reply(result: Dict[str, Any]) -> Dict[str, Any]:
    phone = result.get("phone_number")
    appointments = [result["appointment"]] if result.get("found") else []
    reply = {
        "success": "error" not in result,
        "phone_number": phone,
        "has_appointments": bool(appointments),
        "appointments": appointments,
        "appointment_count": len(appointments),
    }
    if appointments:
        reply["message"] = f"Found {len(appointments)} upcoming appointment for phone number {phone}"
    else:
        reply["message"] = f"No upcoming appointments found for phone number {phone}"
    if "error" in result:
        reply["error"] = result["error"]
    return reply
