from django.db import models

from leads.choices import CALL_STATUSES, EVENT_SOURCES, NEXT_STEPS, OUTCOMES


def _choices(values):
    return [(v, v.replace("_", " ")) for v in values]


class Event(models.Model):
    """
    One inbound interaction: a missed/answered call, a call-link click on the
    landing page, or a service-request form submission.

    Triage fields (owner, next_step, outcome) start empty and are only written
    through the triage service, which also maintains first_action_at and
    outcome_set_at. The lead state shown on the dashboard is derived from
    these fields on every read and never stored.
    """

    id = models.BigAutoField(primary_key=True)
    created_at = models.DateTimeField(db_index=True)

    caller_number = models.CharField(max_length=20)
    source = models.CharField(max_length=30, choices=_choices(EVENT_SOURCES))
    status = models.CharField(max_length=20, choices=_choices(CALL_STATUSES))
    note = models.TextField(null=True, blank=True)

    # Triage
    owner = models.CharField(max_length=100, null=True, blank=True)
    next_step = models.CharField(max_length=30, null=True, blank=True, choices=_choices(NEXT_STEPS))
    outcome = models.CharField(max_length=30, null=True, blank=True, choices=_choices(OUTCOMES))
    outcome_set_at = models.DateTimeField(null=True, blank=True)
    first_action_at = models.DateTimeField(null=True, blank=True)

    # Telephony correlation (one row per provider call, updated across callbacks)
    call_sid = models.CharField(max_length=64, null=True, blank=True, unique=True)
    to_number = models.CharField(max_length=32, null=True, blank=True)
    telephony_status = models.CharField(max_length=30, null=True, blank=True)
    direction = models.CharField(max_length=30, null=True, blank=True)
    call_duration_sec = models.IntegerField(null=True, blank=True)
    dial_call_duration_sec = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "call_events"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.source}/{self.status} from {self.caller_number} at {self.created_at}"

    @property
    def is_resolved(self) -> bool:
        return bool(self.outcome)
