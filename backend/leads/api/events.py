"""
Events API — intake, listing and deletion of call events.

Intake sources:
  simulator          → the demo "simulate a call" button
  landing_call_click → the landing page call-link bridge
  landing_form       → the landing page service-request form
  telephony          → Twilio webhooks (see leads.api.telephony)
"""
import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from leads.serializers import EventCreateSerializer, EventSerializer, LeadActivitySerializer
from leads.services import event_store
from leads.services.lead_state import summarize
from leads.services.sla import get_sla_policy
from leads.utils import parse_bool, utcnow

logger = logging.getLogger(__name__)


def _serializer_context():
    return {"sla_policy": get_sla_policy(), "now": utcnow()}


class EventListCreateView(APIView):
    """List recent events and record new ones."""

    def get(self, request):
        limit = event_store.clamp_limit(request.query_params.get("limit"))
        events = event_store.list_events(limit)
        return Response(EventSerializer(events, many=True, context=_serializer_context()).data)

    def post(self, request):
        serializer = EventCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        event = event_store.create_event(
            data["callerNumber"],
            data["status"],
            source=data.get("source", "simulator"),
            note=data.get("note"),
        )
        return Response(EventSerializer(event, context=_serializer_context()).data)


class EventStatsView(APIView):
    """Dashboard counters over the most recent events (same window as the list)."""

    def get(self, request):
        limit = event_store.clamp_limit(request.query_params.get("limit"))
        events = event_store.list_events(limit)

        include_demo = parse_bool(request.query_params.get("include_demo", "true"))
        if not include_demo:
            events = [e for e in events if e.source != "simulator"]

        policy = get_sla_policy()
        now = utcnow()
        return Response(summarize(events, is_overdue=lambda e: policy.evaluate(e, now).overdue))


class EventDetailView(APIView):
    """One event with its activity timeline, or delete it."""

    def get(self, request, event_id):
        event = event_store.get_event(event_id)
        return Response({
            "event": EventSerializer(event, context=_serializer_context()).data,
            "activity": LeadActivitySerializer(event.activity.all(), many=True).data,
        })

    def delete(self, request, event_id):
        confirm = parse_bool(request.query_params.get("confirm_unresolved"))
        event_store.delete_event(event_id, confirm_unresolved=confirm)
        return Response({"ok": True})


class ClearAllView(APIView):
    """Delete every event; refuses while unresolved leads remain unless confirmed."""

    def post(self, request):
        confirm = parse_bool(request.query_params.get("confirm_unresolved"))
        deleted = event_store.clear_all(confirm_unresolved=confirm)
        return Response({"ok": True, "deleted": deleted})
