# backend/routes/appointments_api.py
from typing import Optional

from fastapi import APIRouter, Query

from services.appointment_service import check_appointment

router = APIRouter(prefix="/api")


@router.get("/appointments")
def get_appointment(phoneNumber: Optional[str] = Query(None), sessionId: Optional[str] = Query(None)):
    """
    UI lookup of the current upcoming appointment. Upstream failures are
    reported in `error` with found=false rather than as an HTTP error, so the
    UI can offer a retry.
    """
    result = check_appointment(phoneNumber, session_id=sessionId)
    return {
        "ok": "error" not in result,
        "found": result["found"],
        "appointment": result.get("appointment"),
        "phone_number": result["phone_number"],
        "error": result.get("error"),
    }
