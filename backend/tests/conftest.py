import pytest
from rest_framework.test import APIClient

DEMO_KEY = "test-demo-key"


@pytest.fixture(autouse=True)
def lead_desk_settings(settings):
    settings.DEMO_KEY = DEMO_KEY
    settings.LEAD_SLA_MINUTES = 15
    settings.LEAD_SLA_POLICY = "leads.services.sla.AgeThresholdPolicy"
    settings.TWILIO_AUTH_TOKEN = ""
    settings.TWILIO_FORWARD_TO = ""
    settings.TWILIO_VALIDATE_SIGNATURE = True
    settings.DASHBOARD_OWNER_OPTIONS = ["Cody", "Sam", "Alex"]
    settings.DASHBOARD_REFRESH_SECONDS = 10
    return settings


@pytest.fixture
def api_client():
    client = APIClient()
    client.credentials(HTTP_X_DEMO_KEY=DEMO_KEY)
    return client


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def make_event(db):
    from leads.services import event_store

    def _make(caller_number="4105551234", status="missed", source="simulator", note=None):
        return event_store.create_event(caller_number, status, source=source, note=note)
    return _make
