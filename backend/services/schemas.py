# backend/services/schemas.py
from typing import Optional, Union

from pydantic import BaseModel


class SymptomRecord(BaseModel):
    symptom: str
    severity: Optional[int] = None
    duration: Optional[str] = None
    location: Optional[str] = None
    triggers: Optional[str] = None
    timestamp: str
    sessionId: str


class Appointment(BaseModel):
    id: Optional[Union[int, str]] = None
    date: str
    time: str
    doctor: Optional[str] = None
    type: Optional[str] = None
    campus: str = "Online"
    status: Optional[str] = None
    patient_name: Optional[str] = None


class Slot(BaseModel):
    timeRange: str
    start_time: str
    formatted: str


class Booking(BaseModel):
    doctor: Optional[str] = None
    date: Optional[str] = None
    startDateTime: Optional[str] = None
    consultationType: Optional[str] = None
    patientName: str
    mobileNumber: str
    paymentMode: Optional[str] = None
    paymentUrl: Optional[str] = None
    referenceId: Optional[str] = None
    leadId: Optional[str] = None
