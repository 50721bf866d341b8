"""Dashboard configuration read once on page load."""
from django.conf import settings
from rest_framework.response import Response
from rest_framework.views import APIView


class DashboardConfigView(APIView):
    def get(self, request):
        return Response({
            "ownerOptions": list(settings.DASHBOARD_OWNER_OPTIONS),
            "refreshIntervalSeconds": settings.DASHBOARD_REFRESH_SECONDS,
            "slaMinutes": settings.LEAD_SLA_MINUTES,
        })
