"""Allowed values for event fields, shared by models, serializers and the dashboard client."""

CALL_STATUSES = ("missed", "answered")

EVENT_SOURCES = ("simulator", "landing_call_click", "landing_form", "telephony")

NEXT_STEPS = ("call_attempt", "voicemail_left", "text_sent", "spoke_to_customer", "note")

OUTCOMES = (
    "booked",
    "reached_no_booking",
    "no_answer",
    "already_hired",
    "wrong_number",
    "call_back_later",
)

# Outcomes that count as a lost opportunity on the dashboard
LOST_OUTCOMES = ("already_hired", "wrong_number")
