"""
Lead State Engine — derives the three-state triage status from an event.

  Unhandled   → no outcome and nobody has acted on the lead yet
  In progress → no outcome, but an owner / next step / outcome was set once
  Closed      → an outcome is recorded (always wins over first_action_at)

Nothing here touches the database. The same functions run on ORM rows on the
server and on EventRecord instances in the dashboard client, so they only read
`outcome`, `first_action_at`, `created_at`, `outcome_set_at` and `overdue`.
"""
from dataclasses import dataclass
from enum import Enum

from leads.choices import LOST_OUTCOMES


class LeadState(str, Enum):
    UNHANDLED = "unhandled"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


STATE_LABELS = {
    LeadState.UNHANDLED: "Unhandled",
    LeadState.IN_PROGRESS: "In progress",
    LeadState.CLOSED: "Closed",
}


@dataclass(frozen=True)
class DerivedState:
    state: LeadState
    label: str
    overdue: bool


def derive_state(event, overdue: bool | None = None) -> DerivedState:
    """
    Derive the display state for an event.

    `overdue` comes from the SLA policy; when omitted the event's own
    `overdue` attribute is used (client records carry it from the server).
    Only an unhandled lead can be overdue.
    """
    if event.outcome:
        return DerivedState(LeadState.CLOSED, STATE_LABELS[LeadState.CLOSED], False)
    if event.first_action_at:
        return DerivedState(LeadState.IN_PROGRESS, STATE_LABELS[LeadState.IN_PROGRESS], False)

    if overdue is None:
        overdue = bool(getattr(event, "overdue", False))
    return DerivedState(LeadState.UNHANDLED, STATE_LABELS[LeadState.UNHANDLED], bool(overdue))


def outcome_response_ms(event) -> int | None:
    """Time from creation to outcome, in milliseconds. None until an outcome exists."""
    if not event.outcome or not event.outcome_set_at or not event.created_at:
        return None
    delta = event.outcome_set_at - event.created_at
    return max(0, int(delta.total_seconds() * 1000))


def format_response_time(ms: int | None) -> str | None:
    """
    Compact response time: "<1m", "42m", "3h 12m" (under 48h), "2d 1h" (48h and up).
    """
    if ms is None:
        return None
    total_minutes = max(0, ms // 60_000)
    if total_minutes < 1:
        return "<1m"
    if total_minutes < 60:
        return f"{total_minutes}m"

    total_hours, rem_minutes = divmod(total_minutes, 60)
    if total_hours < 48:
        return f"{total_hours}h {rem_minutes}m" if rem_minutes else f"{total_hours}h"

    days, rem_hours = divmod(total_hours, 24)
    return f"{days}d {rem_hours}h" if rem_hours else f"{days}d"


def summarize(events, is_overdue=None) -> dict:
    """
    Dashboard counters over a list of events (ORM rows or client records).

    `is_overdue(event) -> bool` lets the server plug in its SLA policy;
    client records already carry the flag.
    """
    counts = {
        "total": 0,
        "unhandled": 0,
        "in_progress": 0,
        "closed": 0,
        "overdue": 0,
        "booked": 0,
        "lost": 0,
    }
    for event in events:
        derived = derive_state(event, is_overdue(event) if is_overdue else None)
        counts["total"] += 1
        counts[derived.state.value] += 1
        if derived.overdue:
            counts["overdue"] += 1
        if event.outcome == "booked":
            counts["booked"] += 1
        elif event.outcome in LOST_OUTCOMES:
            counts["lost"] += 1
    return counts
