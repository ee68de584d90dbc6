# backend/routes/symptoms_api.py
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from services.errors import ValidationError
from services.session_service import new_session_id
from services.symptom_service import list_symptoms, merge_symptoms, record_symptom

router = APIRouter(prefix="/api")


class SymptomCreate(BaseModel):
    symptom: Optional[str] = None
    severity: Optional[int] = None
    duration: Optional[str] = None
    location: Optional[str] = None
    triggers: Optional[str] = None
    sessionId: Optional[str] = None


class SymptomMerge(BaseModel):
    sessionId: str
    symptoms: List[SymptomCreate]


@router.get("/symptoms")
def get_symptoms(sessionId: Optional[str] = Query(None)):
    if not sessionId:
        raise HTTPException(status_code=400, detail="Session ID is required")
    return {"success": True, "symptoms": list_symptoms(sessionId), "sessionId": sessionId}


@router.post("/symptoms")
def create_symptom(payload: SymptomCreate):
    session_id = payload.sessionId or new_session_id()
    try:
        record = record_symptom(payload.model_dump(exclude={"sessionId"}), session_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {
        "success": True,
        "message": "Symptom recorded successfully",
        "sessionId": session_id,
        "symptomRecord": record,
    }


@router.post("/symptoms/merge")
def merge_symptom_list(payload: SymptomMerge):
    try:
        added = merge_symptoms([s.model_dump(exclude={"sessionId"}) for s in payload.symptoms], payload.sessionId)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {
        "success": True,
        "added": added,
        "symptoms": list_symptoms(payload.sessionId),
        "sessionId": payload.sessionId,
    }
