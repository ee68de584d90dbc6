# backend/services/booking_service.py
"""
Booking orchestration: fill defaults, validate, call the scheduling API,
persist the confirmation and broadcast it.

Defaults come from the explicit arguments first, then the cached slot query
of the session, then the baseline constants in services.config. Validation
errors are raised before the network call; everything after that is
returned as a structured result and never raised.
"""

import logging
from typing import Any, Dict, Optional

from services import conversation_state
from services.config import (
    CONSULTATION_FEES,
    DEFAULT_CAMPUS_ID,
    DEFAULT_CONSULTATION_TYPE,
    DEFAULT_PAYMENT_MODE,
    DEFAULT_SPECIALITY_ID,
    DEFAULT_WEEK_SELECTION,
    load_settings,
)
from services.errors import MissingFieldError, UpstreamError
from services.event_bus import APPOINTMENT_BOOKED, BOOKING_CLEARED, bus
from services.physio_api import get_client
from services.schemas import Booking
from services.session_service import get_or_create_session, try_update_session, update_session
from services.slot_service import canonical_day
from services.time_utils import format_clock_time, parse_iso_datetime, to_display_zone

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("selected_day", "start_time", "consultation_type", "patient_name", "mobile_number")
FAILURE_MESSAGE = "Unable to book the appointment. Please try again later."


def _pick(args: Dict[str, Any], cache: Dict[str, Any], key: str, baseline: Optional[str] = None):
    value = args.get(key)
    if isinstance(value, str):
        value = value.strip()
    return value or cache.get(key) or baseline


def resolve_booking_request(args: Dict[str, Any], slot_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    cache = slot_data or {}
    request = {
        "week_selection": _pick(args, cache, "week_selection", DEFAULT_WEEK_SELECTION),
        "selected_day": _pick(args, cache, "selected_day"),
        "start_time": _pick(args, {}, "start_time"),
        "consultation_type": _pick(args, cache, "consultation_type", DEFAULT_CONSULTATION_TYPE),
        "campus_id": _pick(args, cache, "campus_id", DEFAULT_CAMPUS_ID),
        "speciality_id": _pick(args, {}, "speciality_id", DEFAULT_SPECIALITY_ID),
        "patient_name": _pick(args, {}, "patient_name"),
        "mobile_number": _pick(args, {}, "mobile_number"),
        "payment_mode": _pick(args, {}, "payment_mode", DEFAULT_PAYMENT_MODE),
    }
    missing = [f for f in REQUIRED_FIELDS if not request[f]]
    if missing:
        raise MissingFieldError(missing, "Missing required booking information: " + ", ".join(missing))
    request["selected_day"] = canonical_day(request["selected_day"])
    request["mobile_number"] = str(request["mobile_number"])
    return request


def _text(value: Any) -> Optional[str]:
    """Upstream fields are usually strings; names sometimes arrive as {"name": ...}."""
    if value is None or value == "":
        return None
    if isinstance(value, dict) and value.get("name"):
        return str(value["name"])
    return str(value)


def build_booking(info: Dict[str, Any], payment: Dict[str, Any], request: Dict[str, Any]) -> Dict[str, Any]:
    booking = Booking(
        doctor=_text(info.get("appointed_doctor")),
        date=_text(info.get("calculated_date")),
        startDateTime=_text(info.get("startDateTime")),
        consultationType=_text(info.get("consultation_type")) or request["consultation_type"],
        patientName=request["patient_name"],
        mobileNumber=request["mobile_number"],
        paymentMode=_text(info.get("payment_mode")) or request["payment_mode"],
        paymentUrl=_text(payment.get("short_url")),
        referenceId=_text(payment.get("reference_id")),
        leadId=_text(info.get("lead_id")),
    )
    return booking.model_dump()


def _display_time(start: Optional[str], fallback: str) -> str:
    if not start:
        return fallback
    try:
        dt = to_display_zone(parse_iso_datetime(start), load_settings()["display_timezone"])
    except ValueError:
        return fallback
    return format_clock_time(dt)


def to_agent_reply(booking: Dict[str, Any], request: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "appointment_details": {
            "doctor": booking["doctor"],
            "date": booking["date"],
            "time": _display_time(booking["startDateTime"], request["start_time"]),
            "type": booking["consultationType"],
            "campus": request["campus_id"],
            "patient": booking["patientName"],
            "mobile": booking["mobileNumber"],
        },
        "payment_details": {
            "mode": booking["paymentMode"],
            "url": booking["paymentUrl"],
            "reference": booking["referenceId"],
        },
        "consultation_fee": CONSULTATION_FEES.get(booking["consultationType"]),
        "booking": booking,
        "message": f"Appointment successfully booked with {booking['doctor']} on {booking['date']}.",
    }


def _failure(error: str) -> Dict[str, Any]:
    return {"success": False, "error": error, "message": FAILURE_MESSAGE}


def book_appointment(args: Dict[str, Any], session_id: Optional[str] = None, client=None) -> Dict[str, Any]:
    session = get_or_create_session(session_id) if session_id else {}
    request = resolve_booking_request(args, session.get("slot_data"))
    client = client or get_client()
    if session_id:
        try_update_session(session_id, state=conversation_state.DETAILS_COLLECTED)

    logger.info("Booking %s %s %s for %s", request["selected_day"], request["start_time"],
                request["consultation_type"], request["patient_name"])
    try:
        data = client.book_appointment(request)
        if not data.get("success"):
            raise UpstreamError(data.get("message") or "Booking was not successful")
        info = data.get("appointmentInfo")
        if not isinstance(info, dict) or not info:
            raise UpstreamError("Unexpected response shape: booking confirmed without appointment details")
    except UpstreamError as e:
        logger.warning("Booking failed: %s", e)
        if session_id:
            try_update_session(session_id, slot_data=None)
        return _failure(e.message)

    # the upstream has booked; from here on nothing may turn this into a failure
    payment = data.get("payment") if isinstance(data.get("payment"), dict) else {}
    booking = build_booking(info, payment, request)
    reply = to_agent_reply(booking, request)
    if session_id:
        # last write wins; slot query is spent once it reached the upstream
        if not try_update_session(session_id, current_booking=booking, slot_data=None):
            logger.error("Booking %s for %s is confirmed but was not saved locally",
                         booking["referenceId"], booking["patientName"])
        bus.publish(APPOINTMENT_BOOKED, reply, session_id=session_id)
    return reply


def get_current_booking(session_id: str) -> Optional[Dict[str, Any]]:
    return get_or_create_session(session_id).get("current_booking")


def clear_booking(session_id: str) -> None:
    update_session(session_id, current_booking=None)
    bus.publish(BOOKING_CLEARED, None, session_id=session_id)
