# backend/services/conversation_state.py
"""
Explicit stage machine for the intake -> discovery -> selection -> booking flow.

Stages only move on completed function calls or UI selections; the UI reads
the current stage from the session record instead of inferring it.
"""

from typing import Optional

GREETING = "greeting"
SYMPTOM_INTAKE = "symptom_intake"
CONSULTATION_TYPE_CHOSEN = "consultation_type_chosen"
SLOTS_OFFERED = "slots_offered"
SLOT_SELECTED = "slot_selected"
DETAILS_COLLECTED = "details_collected"
BOOKED = "booked"
FAILED = "failed"

STAGES = [GREETING, SYMPTOM_INTAKE, CONSULTATION_TYPE_CHOSEN, SLOTS_OFFERED,
          SLOT_SELECTED, DETAILS_COLLECTED, BOOKED, FAILED]


def next_stage(current: Optional[str], event: str, success: bool = True) -> str:
    """
    event is a function name (record_symptom, check_appointment, fetch_slots,
    book_appointment) or a UI selection (slot_selected, location_selected).
    """
    current = current if current in STAGES else GREETING

    if event == "record_symptom":
        # symptoms may still be added after a booking; don't rewind it
        if success and current in (GREETING, FAILED):
            return SYMPTOM_INTAKE
        return current
    if event == "check_appointment":
        return current
    if event == "location_selected":
        return CONSULTATION_TYPE_CHOSEN if success else current
    if event == "fetch_slots":
        return SLOTS_OFFERED if success else FAILED
    if event == "slot_selected":
        return SLOT_SELECTED if success else current
    if event == "details_collected":
        return DETAILS_COLLECTED
    if event == "book_appointment":
        return BOOKED if success else FAILED
    return current
