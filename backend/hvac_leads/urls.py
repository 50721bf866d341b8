"""
Root URL configuration for the HVAC lead desk.

The landing page and dashboard are static assets served elsewhere; this
project only exposes the JSON API, the telephony webhooks and a health check.
"""
from django.conf import settings
from django.http import JsonResponse
from django.urls import path, include

from leads.api import telephony


def health_check(request):
    return JsonResponse({
        "status": "healthy",
        "hasDemoKey": bool(settings.DEMO_KEY),
        "twilio": {
            "validateSignature": bool(settings.TWILIO_VALIDATE_SIGNATURE),
            "hasAuthToken": bool(settings.TWILIO_AUTH_TOKEN),
            "forwardEnabled": bool(settings.TWILIO_FORWARD_TO),
        },
    })


urlpatterns = [
    path('api/', include('leads.urls')),
    path('twilio/voice', telephony.VoiceWebhookView.as_view()),
    path('twilio/status', telephony.StatusCallbackView.as_view()),
    path('health', health_check),
]
