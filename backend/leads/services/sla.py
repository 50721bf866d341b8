"""
SLA policy — decides when an unhandled lead becomes overdue.

The policy class is pluggable through settings.LEAD_SLA_POLICY (dotted path).
The default, AgeThresholdPolicy, flags any lead that is still unhandled
LEAD_SLA_MINUTES after it was created.

- get_sla_policy()         — instantiate the configured policy
- escalate_overdue_leads() — django-q task; records one "escalated" activity
                             per overdue lead so the office sees who slipped
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

from leads.models import Event, LeadActivity
from leads.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SLAStatus:
    overdue: bool
    overdue_minutes: int | None = None


NOT_OVERDUE = SLAStatus(overdue=False)


class AgeThresholdPolicy:
    """Unhandled for at least `threshold_minutes` since creation → overdue."""

    def __init__(self, threshold_minutes: int):
        self.threshold = timedelta(minutes=threshold_minutes)

    def deadline(self, event) -> datetime:
        return event.created_at + self.threshold

    def evaluate(self, event, now: datetime | None = None) -> SLAStatus:
        if event.outcome or event.first_action_at or not event.created_at:
            return NOT_OVERDUE
        now = now or utcnow()
        late_by = now - self.deadline(event)
        if late_by < timedelta(0):
            return NOT_OVERDUE
        return SLAStatus(overdue=True, overdue_minutes=int(late_by.total_seconds() // 60))

    def overdue_queryset(self, now: datetime | None = None):
        """Unhandled events already past their deadline."""
        now = now or utcnow()
        return Event.objects.filter(
            outcome__isnull=True,
            first_action_at__isnull=True,
            created_at__lte=now - self.threshold,
        )


def get_sla_policy():
    policy_cls = import_string(settings.LEAD_SLA_POLICY)
    return policy_cls(settings.LEAD_SLA_MINUTES)


# ─── django-q task: periodic escalation sweep ─────────────────────────────────

def escalate_overdue_leads() -> str:
    """
    Runs every minute via django-q Schedule (see `manage.py setup_sla_sweep`).
    Each overdue lead is escalated at most once; later triage clears it from
    the overdue set naturally.

    Returns a short status string for the task log.
    """
    policy = get_sla_policy()
    now = utcnow()

    already_escalated = LeadActivity.objects.filter(kind="escalated").values("event_id")
    candidates = policy.overdue_queryset(now).exclude(id__in=already_escalated)

    escalated = 0
    for event in candidates:
        sla = policy.evaluate(event, now)
        if not sla.overdue:
            continue
        with transaction.atomic():
            LeadActivity.objects.create(
                event=event,
                kind="escalated",
                actor="system",
                payload={"overdue_minutes": sla.overdue_minutes},
                description=f"Unhandled past SLA ({sla.overdue_minutes}m overdue)",
            )
        escalated += 1
        logger.warning(
            "Lead %s from %s is overdue by %sm with no owner, next step or result",
            event.id, event.caller_number, sla.overdue_minutes,
        )

    return f"sweep complete: {escalated} leads escalated"
