# backend/routes/slots_api.py
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from services.errors import ValidationError
from services.slot_service import fetch_slots, select_location, select_slot

router = APIRouter(prefix="/api")


class SlotSelect(BaseModel):
    sessionId: str
    timeRange: str


class LocationSelect(BaseModel):
    sessionId: str
    campusId: str


@router.get("/slots")
def get_slots(
    selected_day: Optional[str] = Query(None),
    week_selection: Optional[str] = Query(None),
    consultation_type: Optional[str] = Query(None),
    campus_id: Optional[str] = Query(None),
    sessionId: Optional[str] = Query(None),
):
    args = {
        "selected_day": selected_day,
        "week_selection": week_selection,
        "consultation_type": consultation_type,
        "campus_id": campus_id,
    }
    try:
        return fetch_slots(args, session_id=sessionId)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.post("/slots/select")
def choose_slot(payload: SlotSelect):
    try:
        slot_data = select_slot(payload.sessionId, payload.timeRange)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {"ok": True, "slot_data": slot_data}


@router.post("/location/select")
def choose_location(payload: LocationSelect):
    try:
        slot_data = select_location(payload.sessionId, payload.campusId)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {"ok": True, "slot_data": slot_data}
