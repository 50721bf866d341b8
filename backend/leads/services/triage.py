"""
Triage mutations — owner, next step and outcome for a single lead.

Every mutation locks the row, writes only the fields it changed and appends
one LeadActivity row, all inside one transaction. first_action_at is owned by
_record_first_action(); nothing else in the codebase writes it.
"""
import logging

from django.db import transaction

from leads.choices import NEXT_STEPS, OUTCOMES
from leads.exceptions import EventNotFound, EventValidationError
from leads.models import Event, LeadActivity
from leads.services.event_store import storage_errors
from leads.utils import utcnow

logger = logging.getLogger(__name__)

MAX_OWNER_LENGTH = 100


# ─── Normalisation ────────────────────────────────────────────────────────────

def normalize_owner(raw) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise EventValidationError("owner must be a string or null.")
    owner = raw.strip()
    if not owner:
        return None
    if len(owner) > MAX_OWNER_LENGTH:
        raise EventValidationError(f"owner must be at most {MAX_OWNER_LENGTH} characters.")
    return owner


def _normalize_choice(raw, allowed, field) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise EventValidationError(f"{field} must be a string or null.")
    value = raw.strip()
    if not value:
        return None
    if value not in allowed:
        raise EventValidationError(f"{field} must be one of: {', '.join(allowed)}.")
    return value


def normalize_next_step(raw) -> str | None:
    return _normalize_choice(raw, NEXT_STEPS, "next_step")


def normalize_outcome(raw) -> str | None:
    return _normalize_choice(raw, OUTCOMES, "result")


# ─── Shared helpers ───────────────────────────────────────────────────────────

def _locked_event(event_id) -> Event:
    event = Event.objects.select_for_update().filter(id=event_id).first()
    if event is None:
        raise EventNotFound(f"Event {event_id} not found")
    return event


def _record_first_action(event: Event, now, changed: list) -> None:
    """Stamp the first time anyone acted on the lead. Never overwritten."""
    if event.first_action_at is None:
        event.first_action_at = now
        changed.append("first_action_at")


def _log_activity(event, kind, payload, description):
    LeadActivity.objects.create(
        event=event,
        kind=kind,
        actor="operator",
        payload=payload,
        description=description,
    )


# ─── Mutations ────────────────────────────────────────────────────────────────

def set_owner(event_id, owner) -> Event:
    owner = normalize_owner(owner)
    now = utcnow()

    with storage_errors("set_owner"), transaction.atomic():
        event = _locked_event(event_id)
        previous = event.owner
        event.owner = owner
        changed = ["owner"]
        if owner is not None:
            _record_first_action(event, now, changed)
        event.save(update_fields=changed)

        _log_activity(
            event, "owner_set",
            {"from": previous, "to": owner},
            f"Owner set to {owner}" if owner else "Owner cleared",
        )

    logger.info("Event %s owner %r → %r", event.id, previous, owner)
    return event


def set_next_step(event_id, next_step) -> Event:
    next_step = normalize_next_step(next_step)
    now = utcnow()

    with storage_errors("set_next_step"), transaction.atomic():
        event = _locked_event(event_id)
        previous = event.next_step
        event.next_step = next_step
        changed = ["next_step"]
        if next_step is not None:
            _record_first_action(event, now, changed)
        event.save(update_fields=changed)

        _log_activity(
            event, "next_step_set",
            {"from": previous, "to": next_step},
            f"Next step: {next_step.replace('_', ' ')}" if next_step else "Next step cleared",
        )

    logger.info("Event %s next_step %r → %r", event.id, previous, next_step)
    return event


def set_outcome(event_id, outcome) -> Event:
    """
    Record or clear the result of a lead.

    outcome_set_at tracks the first time the current run of outcomes began:
    it is stamped on null → value, kept on value → other value, and cleared
    together with the outcome. Clearing never touches first_action_at, so a
    reopened lead shows as In progress rather than Unhandled.
    """
    outcome = normalize_outcome(outcome)
    now = utcnow()

    with storage_errors("set_outcome"), transaction.atomic():
        event = _locked_event(event_id)
        previous = event.outcome
        event.outcome = outcome
        changed = ["outcome"]

        if outcome is None:
            if event.outcome_set_at is not None:
                event.outcome_set_at = None
                changed.append("outcome_set_at")
        else:
            if previous is None or event.outcome_set_at is None:
                event.outcome_set_at = now
                changed.append("outcome_set_at")
            _record_first_action(event, now, changed)

        event.save(update_fields=changed)

        if outcome is None:
            _log_activity(event, "outcome_cleared", {"from": previous}, "Result cleared")
        else:
            _log_activity(
                event, "outcome_set",
                {"from": previous, "to": outcome},
                f"Result: {outcome.replace('_', ' ')}",
            )

    logger.info("Event %s outcome %r → %r", event.id, previous, outcome)
    return event
