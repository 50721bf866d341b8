"""
Triage API — the three operator actions on a lead.

Each endpoint returns the canonical Event JSON after the change so the
dashboard can replace its optimistic copy in one step.
"""
from rest_framework.response import Response
from rest_framework.views import APIView

from leads.serializers import (
    EventSerializer, NextStepUpdateSerializer, OwnerUpdateSerializer, ResultUpdateSerializer,
)
from leads.services import triage
from leads.services.sla import get_sla_policy
from leads.utils import utcnow


def _event_response(event):
    context = {"sla_policy": get_sla_policy(), "now": utcnow()}
    return Response(EventSerializer(event, context=context).data)


class OwnerView(APIView):
    def post(self, request):
        serializer = OwnerUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return _event_response(triage.set_owner(data["event_id"], data.get("owner")))


class NextStepView(APIView):
    def post(self, request):
        serializer = NextStepUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return _event_response(triage.set_next_step(data["event_id"], data.get("next_step")))


class ResultView(APIView):
    """Sets or clears the outcome; `result` is the dashboard's name for it."""

    def post(self, request):
        serializer = ResultUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return _event_response(triage.set_outcome(data["event_id"], data.get("result")))
