"""
DRF serializers for API request/response validation.
Separates the dashboard JSON contract from the DB models.
"""
from rest_framework import serializers

from leads.choices import CALL_STATUSES, EVENT_SOURCES
from leads.models import Event, LeadActivity
from leads.services.lead_state import derive_state, format_response_time, outcome_response_ms
from leads.services.sla import get_sla_policy


# ─── Event Serializers ───────────────────────────────────────────────────────

class EventCreateSerializer(serializers.Serializer):
    """Payload from the simulator, the landing page bridge or a call webhook."""
    callerNumber = serializers.CharField(max_length=20, trim_whitespace=True)
    status = serializers.ChoiceField(choices=CALL_STATUSES)
    source = serializers.ChoiceField(choices=EVENT_SOURCES, required=False, default="simulator")
    note = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=2000)


class EventSerializer(serializers.ModelSerializer):
    """
    Event JSON as the dashboard reads it.

    Lead state, overdue flag and response time are derived on every read.
    Pass `sla_policy` in the context when serializing many rows so the policy
    is built once per request.
    """
    createdAt = serializers.DateTimeField(source="created_at")
    callerNumber = serializers.CharField(source="caller_number")
    callSid = serializers.CharField(source="call_sid", allow_null=True)
    toNumber = serializers.CharField(source="to_number", allow_null=True)
    telephonyStatus = serializers.CharField(source="telephony_status", allow_null=True)
    callDurationSec = serializers.IntegerField(source="call_duration_sec", allow_null=True)
    dialCallDurationSec = serializers.IntegerField(source="dial_call_duration_sec", allow_null=True)

    class Meta:
        model = Event
        fields = [
            'id', 'createdAt', 'callerNumber', 'source', 'status', 'note',
            'owner', 'next_step', 'outcome', 'outcome_set_at', 'first_action_at',
            'callSid', 'toNumber', 'telephonyStatus', 'direction',
            'callDurationSec', 'dialCallDurationSec',
        ]
        read_only_fields = fields

    def _policy(self):
        policy = self.context.get("sla_policy")
        if policy is None:
            policy = get_sla_policy()
            self.context["sla_policy"] = policy
        return policy

    def to_representation(self, instance):
        data = super().to_representation(instance)
        sla = self._policy().evaluate(instance, self.context.get("now"))
        derived = derive_state(instance, sla.overdue)
        response_ms = outcome_response_ms(instance)
        data.update({
            "overdue": derived.overdue,
            "overdue_minutes": sla.overdue_minutes if derived.overdue else None,
            "lead_state": derived.state.value,
            "lead_state_label": derived.label,
            "outcome_response_ms": response_ms,
            "outcome_response": format_response_time(response_ms),
        })
        return data


# ─── Activity Serializers ────────────────────────────────────────────────────

class LeadActivitySerializer(serializers.ModelSerializer):
    class Meta:
        model = LeadActivity
        fields = ['id', 'kind', 'actor', 'payload', 'description', 'created_at']


# ─── Triage Serializers ──────────────────────────────────────────────────────
# Enum checks and trimming live in leads.services.triage so the API and any
# other caller share one set of rules; these only shape the payload.

class OwnerUpdateSerializer(serializers.Serializer):
    event_id = serializers.IntegerField(min_value=1)
    owner = serializers.CharField(allow_null=True, allow_blank=True, trim_whitespace=False, required=False)


class NextStepUpdateSerializer(serializers.Serializer):
    event_id = serializers.IntegerField(min_value=1)
    next_step = serializers.CharField(allow_null=True, allow_blank=True, required=False)


class ResultUpdateSerializer(serializers.Serializer):
    event_id = serializers.IntegerField(min_value=1)
    result = serializers.CharField(allow_null=True, allow_blank=True, required=False)
