from datetime import timedelta

import pytest

from leads.models import Event
from leads.utils import utcnow
from tests.conftest import DEMO_KEY

pytestmark = pytest.mark.django_db

EVENT_KEYS = {
    "id", "createdAt", "callerNumber", "source", "status", "note", "owner",
    "next_step", "outcome", "outcome_set_at", "first_action_at", "overdue",
    "overdue_minutes", "lead_state", "lead_state_label", "outcome_response_ms",
    "outcome_response", "callSid", "toNumber", "telephonyStatus", "direction",
    "callDurationSec", "dialCallDurationSec",
}


def create(api_client, **body):
    payload = {"callerNumber": "4105551234", "status": "missed", "source": "simulator"}
    payload.update(body)
    return api_client.post("/api/events", payload, format="json")


class TestAccess:
    def test_api_requires_demo_key(self, anon_client):
        response = anon_client.get("/api/events")
        assert response.status_code == 403
        assert "detail" in response.json()

    def test_wrong_key_is_rejected(self, anon_client):
        anon_client.credentials(HTTP_X_DEMO_KEY="nope")
        assert anon_client.get("/api/events").status_code == 403

    def test_key_accepted_from_query_and_cookie(self, anon_client):
        assert anon_client.get(f"/api/events?key={DEMO_KEY}").status_code == 200
        anon_client.cookies["demo_key"] = DEMO_KEY
        assert anon_client.get("/api/events").status_code == 200

    def test_api_closed_without_configured_key(self, api_client, settings):
        settings.DEMO_KEY = ""
        assert api_client.get("/api/events").status_code == 403

    def test_health_is_public(self, anon_client):
        response = anon_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["hasDemoKey"] is True
        assert set(body["twilio"]) == {"validateSignature", "hasAuthToken", "forwardEnabled"}


class TestEvents:
    def test_create_returns_full_event_json(self, api_client):
        response = create(api_client, note="AC not cooling")
        assert response.status_code == 200
        body = response.json()
        assert set(body) == EVENT_KEYS
        assert body["callerNumber"] == "4105551234"
        assert body["lead_state"] == "unhandled"
        assert body["lead_state_label"] == "Unhandled"
        assert body["overdue"] is False
        assert body["outcome_response"] is None

    def test_webhook_alias_creates_event(self, api_client):
        response = api_client.post(
            "/api/webhooks/call",
            {"callerNumber": "+14105551234", "status": "answered", "source": "landing_call_click"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["source"] == "landing_call_click"

    @pytest.mark.parametrize("body", [
        {"callerNumber": "abc"},
        {"callerNumber": ""},
        {"status": "busy"},
        {"source": "fax"},
    ])
    def test_create_validation(self, api_client, body):
        response = create(api_client, **body)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid"
        assert Event.objects.count() == 0

    def test_list_is_newest_first_and_limited(self, api_client):
        for i in range(5):
            create(api_client, callerNumber=f"410555123{i}")

        response = api_client.get("/api/events?limit=3")
        assert response.status_code == 200
        numbers = [row["callerNumber"] for row in response.json()]
        assert numbers == ["4105551234", "4105551233", "4105551232"]

    def test_list_ignores_bad_limit(self, api_client):
        create(api_client)
        assert len(api_client.get("/api/events?limit=banana").json()) == 1

    def test_detail_includes_activity(self, api_client):
        event_id = create(api_client).json()["id"]
        api_client.post("/api/owner", {"event_id": event_id, "owner": "Cody"}, format="json")

        body = api_client.get(f"/api/events/{event_id}").json()
        assert body["event"]["owner"] == "Cody"
        assert {a["kind"] for a in body["activity"]} == {"lead_created", "owner_set"}

    def test_detail_not_found(self, api_client):
        response = api_client.get("/api/events/9999")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_overdue_fields(self, api_client):
        event_id = create(api_client).json()["id"]
        Event.objects.filter(id=event_id).update(created_at=utcnow() - timedelta(minutes=20))

        row = api_client.get("/api/events").json()[0]
        assert row["overdue"] is True
        assert row["overdue_minutes"] >= 4
        assert row["lead_state"] == "unhandled"

    def test_stats(self, api_client):
        first = create(api_client).json()["id"]
        create(api_client, source="landing_form")
        api_client.post("/api/result", {"event_id": first, "result": "booked"}, format="json")

        stats = api_client.get("/api/events/stats").json()
        assert stats["total"] == 2
        assert stats["closed"] == 1
        assert stats["booked"] == 1
        assert stats["unhandled"] == 1

        customer_only = api_client.get("/api/events/stats?include_demo=false").json()
        assert customer_only["total"] == 1


class TestDelete:
    def test_unresolved_delete_conflicts_until_confirmed(self, api_client):
        event_id = create(api_client).json()["id"]

        response = api_client.delete(f"/api/events/{event_id}")
        assert response.status_code == 409
        assert response.json()["error"] == "unresolved"
        assert response.json()["unresolved_count"] == 1

        response = api_client.delete(f"/api/events/{event_id}?confirm_unresolved=true")
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert not Event.objects.filter(id=event_id).exists()

    def test_delete_missing(self, api_client):
        assert api_client.delete("/api/events/31337?confirm_unresolved=1").status_code == 404

    def test_clear_all(self, api_client):
        create(api_client)
        create(api_client)

        response = api_client.post("/api/clear_all")
        assert response.status_code == 409
        assert response.json()["unresolved_count"] == 2

        response = api_client.post("/api/clear_all?confirm_unresolved=true")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "deleted": 2}

    @pytest.mark.parametrize("body", [[], ["confirm_unresolved"], {"confirm_unresolved": True}])
    def test_clear_all_confirms_only_through_query(self, api_client, body):
        create(api_client)
        response = api_client.post("/api/clear_all", body, format="json")
        assert response.status_code == 409
        assert Event.objects.count() == 1


class TestTriage:
    def test_owner(self, api_client):
        event_id = create(api_client).json()["id"]
        response = api_client.post("/api/owner", {"event_id": event_id, "owner": " Sam "}, format="json")
        assert response.status_code == 200
        body = response.json()
        assert body["owner"] == "Sam"
        assert body["lead_state"] == "in_progress"
        assert body["first_action_at"] is not None

    def test_next_step_then_result_then_clear(self, api_client):
        event_id = create(api_client).json()["id"]

        body = api_client.post("/api/next_step", {"event_id": event_id, "next_step": "call_attempt"},
                               format="json").json()
        assert body["lead_state"] == "in_progress"

        body = api_client.post("/api/result", {"event_id": event_id, "result": "no_answer"},
                               format="json").json()
        assert body["lead_state"] == "closed"
        assert body["outcome_set_at"] is not None
        assert body["outcome_response"] is not None

        body = api_client.post("/api/result", {"event_id": event_id, "result": None},
                               format="json").json()
        assert body["outcome"] is None
        assert body["outcome_set_at"] is None
        assert body["lead_state"] == "in_progress"

    def test_invalid_values(self, api_client):
        event_id = create(api_client).json()["id"]
        response = api_client.post("/api/result", {"event_id": event_id, "result": "maybe"}, format="json")
        assert response.status_code == 400
        assert response.json()["error"] == "invalid"

        response = api_client.post("/api/owner", {"owner": "Sam"}, format="json")
        assert response.status_code == 400

    def test_unknown_event(self, api_client):
        response = api_client.post("/api/next_step", {"event_id": 777, "next_step": "note"}, format="json")
        assert response.status_code == 404


def test_config(api_client, settings):
    settings.DASHBOARD_OWNER_OPTIONS = ["Cody", "Sam"]
    body = api_client.get("/api/config").json()
    assert body == {"ownerOptions": ["Cody", "Sam"], "refreshIntervalSeconds": 10, "slaMinutes": 15}
