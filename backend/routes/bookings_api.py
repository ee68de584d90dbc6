# backend/routes/bookings_api.py
from fastapi import APIRouter, Query

from services.booking_service import clear_booking, get_current_booking

router = APIRouter(prefix="/api")


@router.get("/bookings/current")
def current_booking(sessionId: str = Query(...)):
    return {"ok": True, "booking": get_current_booking(sessionId)}


@router.delete("/bookings/current")
def dismiss_booking(sessionId: str = Query(...)):
    # user dismissed the confirmation banner
    clear_booking(sessionId)
    return {"ok": True, "booking": None}
