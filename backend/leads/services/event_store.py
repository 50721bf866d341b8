"""
Event Store — the only writer of call_events rows.

Inbound collaborators (click bridge, landing form, telephony webhook) create
or upsert events here; the triage service updates them through update_event().
Every multi-statement write runs inside transaction.atomic() so a reader never
sees half of a change, and database failures are re-raised as StorageError.
"""
import logging
import math
import re
from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError, transaction

from leads.choices import CALL_STATUSES, EVENT_SOURCES
from leads.exceptions import (
    EventNotFound,
    EventValidationError,
    StorageError,
    UnresolvedLeadConflict,
)
from leads.models import Event, LeadActivity
from leads.utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 200

_CALLER_NUMBER_RE = re.compile(r"^\+?\d+$")

# Fields update_event() may write. id, created_at and source never change.
UPDATABLE_FIELDS = {
    "caller_number", "status", "note",
    "owner", "next_step", "outcome", "outcome_set_at", "first_action_at",
    "to_number", "telephony_status", "direction",
    "call_duration_sec", "dial_call_duration_sec",
}


@contextmanager
def storage_errors(operation: str):
    """Re-raise database failures as StorageError, keeping the traceback in the log."""
    try:
        yield
    except IntegrityError:
        raise
    except DatabaseError as exc:
        logger.exception("Event store %s failed", operation)
        raise StorageError(f"Event store {operation} failed") from exc


# ─── Validation ───────────────────────────────────────────────────────────────

def normalize_caller_number(raw) -> str:
    return str(raw or "").strip()


def is_valid_caller_number(raw) -> bool:
    if not isinstance(raw, str):
        return False
    number = raw.strip()
    return 7 <= len(number) <= 20 and bool(_CALLER_NUMBER_RE.match(number))


def clamp_limit(raw) -> int:
    """Parse ?limit=..., falling back to 50 and clamping to [1, 200]."""
    if raw is None or raw == "":
        return DEFAULT_LIST_LIMIT
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_LIST_LIMIT
    if not math.isfinite(value):
        return DEFAULT_LIST_LIMIT
    return max(1, min(MAX_LIST_LIMIT, math.floor(value)))


def _validate_draft(caller_number, status, source):
    if not is_valid_caller_number(caller_number):
        raise EventValidationError(
            "callerNumber is required, length 7-20, and must contain only '+' and digits."
        )
    if status not in CALL_STATUSES:
        raise EventValidationError("status must be 'missed' or 'answered'.")
    if source not in EVENT_SOURCES:
        raise EventValidationError(f"source must be one of: {', '.join(EVENT_SOURCES)}.")


# ─── Reads ────────────────────────────────────────────────────────────────────

def get_event(event_id) -> Event:
    with storage_errors("read"):
        event = Event.objects.filter(id=event_id).first()
    if event is None:
        raise EventNotFound(f"Event {event_id} not found")
    return event


def list_events(limit=DEFAULT_LIST_LIMIT) -> list[Event]:
    """Most recent events first."""
    limit = clamp_limit(limit)
    with storage_errors("list"):
        return list(Event.objects.order_by("-created_at", "-id")[:limit])


# ─── Writes ───────────────────────────────────────────────────────────────────

def create_event(caller_number, status, source="simulator", note=None, **channel_fields) -> Event:
    """
    Record a new inbound interaction with all triage fields empty.
    Raises EventValidationError on a malformed number, status or source.
    """
    caller_number = normalize_caller_number(caller_number)
    _validate_draft(caller_number, status, source)

    with storage_errors("create"), transaction.atomic():
        event = Event.objects.create(
            created_at=utcnow(),
            caller_number=caller_number,
            status=status,
            source=source,
            note=note or None,
            **channel_fields,
        )
        LeadActivity.objects.create(
            event=event,
            kind="lead_created",
            actor="telephony" if source == "telephony" else "system",
            payload={"source": source, "status": status},
            description=f"{status.title()} {source.replace('_', ' ')} from {caller_number}",
        )

    logger.info("Created event %s (%s/%s) from %s", event.id, source, status, caller_number)
    return event


def update_event(event_id, **fields) -> Event:
    """Apply a partial change to one event under a row lock."""
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise EventValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    with storage_errors("update"), transaction.atomic():
        event = Event.objects.select_for_update().filter(id=event_id).first()
        if event is None:
            raise EventNotFound(f"Event {event_id} not found")
        for field, value in fields.items():
            setattr(event, field, value)
        if fields:
            event.save(update_fields=list(fields))
    return event


def delete_event(event_id, confirm_unresolved: bool = False) -> None:
    """
    Hard-delete one event. A lead without an outcome is only deleted when the
    caller explicitly confirms, so unresolved leads are never dropped by accident.
    """
    with storage_errors("delete"), transaction.atomic():
        event = Event.objects.select_for_update().filter(id=event_id).first()
        if event is None:
            raise EventNotFound(f"Event {event_id} not found")
        if not event.outcome and not confirm_unresolved:
            raise UnresolvedLeadConflict(unresolved_count=1)
        event.delete()

    logger.info("Deleted event %s (confirm_unresolved=%s)", event_id, confirm_unresolved)


def clear_all(confirm_unresolved: bool = False) -> int:
    """
    Delete every event. Refuses while any lead is unresolved unless confirmed;
    the conflict carries the unresolved count so the operator can decide.
    """
    with storage_errors("clear"), transaction.atomic():
        unresolved = Event.objects.filter(outcome__isnull=True).count()
        if unresolved and not confirm_unresolved:
            raise UnresolvedLeadConflict(
                f"{unresolved} unresolved lead(s) have no result yet; confirm to clear anyway.",
                unresolved_count=unresolved,
            )
        _, per_model = Event.objects.all().delete()
        deleted = per_model.get(Event._meta.label, 0)

    logger.info("Cleared all events (%d rows, %d unresolved)", deleted, unresolved)
    return deleted


def upsert_by_call_sid(call_sid: str, insert_defaults=None, **fields) -> tuple[Event, bool]:
    """
    Create or update the single event for one provider call.

    Successive webhook callbacks for the same call (ringing → in-progress →
    completed) land on one row. Only non-empty fields overwrite stored values;
    `insert_defaults` fill gaps on insert only and never overwrite a row.
    If two callbacks race to insert, the loser hits the unique constraint and
    falls back to updating the winner's row.
    """
    supplied = {k: v for k, v in fields.items() if v not in (None, "")}

    with storage_errors("upsert"):
        try:
            with transaction.atomic():
                return _upsert_locked(call_sid, supplied, insert_defaults or {})
        except IntegrityError:
            logger.info("Concurrent insert for call %s; retrying as update", call_sid)
            with transaction.atomic():
                return _upsert_locked(call_sid, supplied, insert_defaults or {})


def _upsert_locked(call_sid, supplied, insert_defaults) -> tuple[Event, bool]:
    event = Event.objects.select_for_update().filter(call_sid=call_sid).first()
    if event is not None:
        changed = {k: v for k, v in supplied.items() if getattr(event, k) != v}
        for field, value in changed.items():
            setattr(event, field, value)
        if changed:
            event.save(update_fields=list(changed))
        return event, False

    values = {**insert_defaults, **supplied}
    event = create_event(
        values.pop("caller_number", None),
        values.pop("status", None),
        source="telephony",
        call_sid=call_sid,
        **values,
    )
    return event, True
