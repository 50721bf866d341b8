import json

import httpx
import pytest

from leads.client import (
    Conflict,
    LeadDeskClient,
    NotFound,
    StorageFailure,
    TransportError,
    ValidationFailed,
)
from leads.client.errors import AccessDenied

EVENT_JSON = {
    "id": 7,
    "createdAt": "2025-03-01T14:00:00Z",
    "callerNumber": "4105551234",
    "source": "landing_form",
    "status": "missed",
    "note": None,
    "owner": "Sam",
    "next_step": None,
    "outcome": None,
    "outcome_set_at": None,
    "first_action_at": "2025-03-01T14:03:00.250000Z",
    "overdue": False,
    "overdue_minutes": None,
    "lead_state": "in_progress",
    "lead_state_label": "In progress",
    "outcome_response_ms": None,
    "outcome_response": None,
    "callSid": None,
    "toNumber": None,
    "telephonyStatus": None,
    "direction": None,
    "callDurationSec": None,
    "dialCallDurationSec": None,
}


def make_client(handler):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return LeadDeskClient("https://desk.example.com/", "k3y", http_client=http)


def test_sends_demo_key_and_parses_events():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("X-Demo-Key")
        return httpx.Response(200, json=[EVENT_JSON])

    records = make_client(handler).list_events(limit=20)

    assert seen["url"] == "https://desk.example.com/api/events?limit=20"
    assert seen["key"] == "k3y"
    assert len(records) == 1
    record = records[0]
    assert record.id == 7
    assert record.caller_number == "4105551234"
    assert record.owner == "Sam"
    assert record.first_action_at.minute == 3
    assert record.created_at.tzinfo is not None


def test_record_json_roundtrip_keeps_api_keys():
    record = make_client(lambda r: httpx.Response(200, json=[EVENT_JSON])).list_events()[0]
    assert record.to_json() == EVENT_JSON


def test_triage_calls_post_expected_bodies():
    bodies = []

    def handler(request):
        bodies.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json=EVENT_JSON)

    client = make_client(handler)
    client.set_owner(7, "Sam")
    client.set_next_step(7, "text_sent")
    client.set_result(7, None)

    assert bodies == [
        ("/api/owner", {"event_id": 7, "owner": "Sam"}),
        ("/api/next_step", {"event_id": 7, "next_step": "text_sent"}),
        ("/api/result", {"event_id": 7, "result": None}),
    ]


def test_delete_passes_confirmation_flag():
    urls = []

    def handler(request):
        urls.append(str(request.url))
        return httpx.Response(200, json={"ok": True})

    client = make_client(handler)
    client.delete_event(7)
    client.delete_event(7, confirm_unresolved=True)

    assert urls == [
        "https://desk.example.com/api/events/7",
        "https://desk.example.com/api/events/7?confirm_unresolved=true",
    ]


def test_clear_all_returns_count():
    client = make_client(lambda r: httpx.Response(200, json={"ok": True, "deleted": 4}))
    assert client.clear_all(confirm_unresolved=True) == 4


@pytest.mark.parametrize("status,body,error_cls", [
    (400, {"detail": "bad", "error": "invalid"}, ValidationFailed),
    (403, {"detail": "key"}, AccessDenied),
    (404, {"detail": "gone", "error": "not_found"}, NotFound),
    (409, {"detail": "unresolved", "error": "unresolved", "unresolved_count": 3}, Conflict),
    (503, {"detail": "db", "error": "storage_error"}, StorageFailure),
    (500, "oops", StorageFailure),
])
def test_http_errors_map_to_typed_exceptions(status, body, error_cls):
    def handler(request):
        if isinstance(body, dict):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    with pytest.raises(error_cls) as exc_info:
        make_client(handler).delete_event(7)
    assert exc_info.value.status_code == status


def test_conflict_carries_unresolved_count():
    def handler(request):
        return httpx.Response(409, json={"detail": "x", "error": "unresolved", "unresolved_count": 3})

    with pytest.raises(Conflict) as exc_info:
        make_client(handler).clear_all()
    assert exc_info.value.unresolved_count == 3


def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        make_client(handler).list_events()
