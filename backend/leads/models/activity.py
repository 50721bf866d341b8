import uuid
from django.db import models


class LeadActivity(models.Model):
    """
    Append-only audit trail for a call event.
    Every triage change, telephony callback and SLA escalation is recorded
    here so the dashboard can show who did what and when.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey("Event", on_delete=models.CASCADE, related_name="activity")

    kind = models.CharField(max_length=30, db_index=True)
    # Kinds: lead_created, owner_set, next_step_set, outcome_set,
    #        outcome_cleared, telephony_update, escalated

    actor = models.CharField(max_length=20)  # "operator", "system", "telephony"
    payload = models.JSONField(default=dict, blank=True)
    description = models.TextField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "lead_activity"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["event", "-created_at"], name="idx_activity_event_date"),
        ]

    def __str__(self):
        return f"{self.kind} for event={self.event_id} at {self.created_at}"
