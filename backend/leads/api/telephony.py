"""
Twilio voice webhooks.

  POST /twilio/voice  → record the inbound call, answer with TwiML
  POST /twilio/status → record a status callback, answer 204

Twilio authenticates with X-Twilio-Signature, not the dashboard key, so these
views opt out of the default permission. A storage failure is logged and the
webhook still answers so Twilio does not retry forever or drop the caller.
"""
import logging

from django.conf import settings
from django.http import HttpResponse
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from leads.exceptions import StorageError
from leads.services import telephony

logger = logging.getLogger(__name__)


class TwilioWebhookView(APIView):
    authentication_classes = []
    permission_classes = []
    parser_classes = [FormParser, MultiPartParser]

    def _params(self, request) -> dict:
        data = request.data
        return data.dict() if hasattr(data, "dict") else dict(data)

    def _signature_ok(self, request, params) -> bool:
        if not telephony.signature_required():
            return True
        ok = telephony.validate_signature(
            request.build_absolute_uri(),
            params,
            request.headers.get("X-Twilio-Signature", ""),
            settings.TWILIO_AUTH_TOKEN,
        )
        if not ok:
            logger.warning("Rejected Twilio webhook with bad signature for %s", request.path)
        return ok

    def _record(self, params):
        try:
            telephony.record_call_callback(params)
        except StorageError:
            logger.error("Twilio callback for %s not stored", params.get("CallSid"))


class VoiceWebhookView(TwilioWebhookView):
    def post(self, request):
        params = self._params(request)
        if not self._signature_ok(request, params):
            return HttpResponse("Invalid signature", status=status.HTTP_403_FORBIDDEN)

        self._record(params)
        twiml = telephony.build_voice_response(request.build_absolute_uri("/twilio/status"))
        return HttpResponse(twiml, content_type="text/xml")


class StatusCallbackView(TwilioWebhookView):
    def post(self, request):
        params = self._params(request)
        if not self._signature_ok(request, params):
            return HttpResponse("Invalid signature", status=status.HTTP_403_FORBIDDEN)

        self._record(params)
        return Response(status=status.HTTP_204_NO_CONTENT)
