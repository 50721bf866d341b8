"""
Shared-secret gate for the dashboard API.

The key may arrive as ?key=..., an X-Demo-Key header, or a demo_key cookie.
With no DEMO_KEY configured the API stays closed.
"""
import hmac

from django.conf import settings
from rest_framework.permissions import BasePermission


def request_demo_key(request) -> str:
    return (
        request.query_params.get("key")
        or request.headers.get("X-Demo-Key")
        or request.COOKIES.get("demo_key")
        or ""
    )


class HasDemoKey(BasePermission):
    message = "Demo access requires DEMO_KEY. Provide ?key=... or header x-demo-key."

    def has_permission(self, request, view):
        expected = settings.DEMO_KEY
        if not expected:
            return False
        return hmac.compare_digest(request_demo_key(request).encode(), expected.encode())
