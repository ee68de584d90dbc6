# backend/services/agent_tools.py
from typing import Any, Dict, List

from services.config import CAMPUSES, CONSULTATION_TYPES, PAYMENT_MODES, WEEK_SELECTIONS

DAYS = ["mon", "tue", "wed", "thu", "fri", "sat"]

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "record_symptom",
        "description": "Record a symptom reported by the patient",
        "parameters": {
            "type": "object",
            "properties": {
                "symptom": {"type": "string", "description": "The symptom reported by the patient"},
                "severity": {
                    "type": "integer",
                    "description": "Severity of the symptom on a scale of 1-10 (if provided)",
                    "minimum": 1,
                    "maximum": 10,
                },
                "duration": {"type": "string", "description": "How long the patient has been experiencing this symptom"},
                "location": {"type": "string", "description": "The body part or area where the symptom is experienced"},
                "triggers": {"type": "string", "description": "Activities or situations that trigger or worsen the symptom"},
            },
            "required": ["symptom"],
        },
    },
    {
        "name": "check_appointment",
        "description": "Check upcoming appointments for a patient",
        "parameters": {
            "type": "object",
            "properties": {
                "phone_number": {"type": "string", "description": "The patient's phone number to look up appointments"},
            },
            "required": ["phone_number"],
        },
    },
    {
        "name": "fetch_slots",
        "description": "Fetch available appointment slots based on day and location preferences",
        "parameters": {
            "type": "object",
            "properties": {
                "week_selection": {"type": "string", "description": "Which week to check", "enum": WEEK_SELECTIONS},
                "selected_day": {"type": "string", "description": "Day of the week", "enum": DAYS},
                "consultation_type": {"type": "string", "description": "Type of consultation", "enum": CONSULTATION_TYPES},
                "campus_id": {
                    "type": "string",
                    "description": "Campus location (required for In-Person consultations)",
                    "enum": CAMPUSES,
                },
            },
            "required": ["selected_day", "consultation_type"],
        },
    },
    {
        "name": "book_appointment",
        "description": "Book an appointment for a patient",
        "parameters": {
            "type": "object",
            "properties": {
                "week_selection": {"type": "string", "description": "Which week to book", "enum": WEEK_SELECTIONS},
                "selected_day": {"type": "string", "description": "Day of the week", "enum": DAYS},
                "start_time": {
                    "type": "string",
                    "description": "Start time of the appointment",
                    "pattern": "^[0-9]{1,2}:[0-9]{2} (AM|PM)$",
                },
                "consultation_type": {"type": "string", "description": "Type of consultation", "enum": CONSULTATION_TYPES},
                "campus_id": {
                    "type": "string",
                    "description": "Campus location (required for In-Person consultations)",
                    "enum": CAMPUSES,
                },
                "speciality_id": {"type": "string", "description": "Speciality required", "default": "Physiotherapist"},
                "patient_name": {"type": "string", "description": "Name of the patient"},
                "mobile_number": {"type": "string", "description": "Mobile number of the patient"},
                "payment_mode": {"type": "string", "description": "Payment mode", "enum": PAYMENT_MODES, "default": "pay now"},
            },
            "required": ["selected_day", "start_time", "consultation_type", "patient_name", "mobile_number"],
        },
    },
]
