"""
LeadDeskClient — thin httpx wrapper around the /api/ routes.

Every method returns parsed records or raises a DashboardApiError subclass;
callers never see raw httpx responses.
"""
import logging

import httpx

from leads.client.errors import TransportError, error_for_status
from leads.client.records import EventRecord

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class LeadDeskClient:
    def __init__(
        self,
        base_url: str,
        demo_key: str,
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._demo_key = demo_key
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=httpx.Timeout(self._timeout))
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ─── Transport ────────────────────────────────────────────────────

    def _request(self, method: str, path: str, *, params=None, json=None):
        url = f"{self._base_url}/api/{path}"
        try:
            response = self._get_client().request(
                method, url, params=params, json=json,
                headers={"X-Demo-Key": self._demo_key, "Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning("Lead desk %s %s failed: %s", method, path, exc)
            raise TransportError(str(exc)) from exc

        if response.is_success:
            return response.json() if response.content else None

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {"detail": payload}
        message = str(payload.get("detail") or f"HTTP {response.status_code}")
        raise error_for_status(response.status_code, message, payload)

    # ─── Events ───────────────────────────────────────────────────────

    def list_events(self, limit: int = 50) -> list[EventRecord]:
        rows = self._request("GET", "events", params={"limit": limit})
        return [EventRecord.from_json(row) for row in rows]

    def get_event(self, event_id: int) -> tuple[EventRecord, list]:
        data = self._request("GET", f"events/{event_id}")
        return EventRecord.from_json(data["event"]), data.get("activity", [])

    def create_event(self, caller_number: str, status: str, source: str = "simulator", note=None) -> EventRecord:
        body = {"callerNumber": caller_number, "status": status, "source": source}
        if note is not None:
            body["note"] = note
        return EventRecord.from_json(self._request("POST", "events", json=body))

    def delete_event(self, event_id: int, confirm_unresolved: bool = False) -> None:
        params = {"confirm_unresolved": "true"} if confirm_unresolved else None
        self._request("DELETE", f"events/{event_id}", params=params)

    def clear_all(self, confirm_unresolved: bool = False) -> int:
        params = {"confirm_unresolved": "true"} if confirm_unresolved else None
        data = self._request("POST", "clear_all", params=params)
        return int(data.get("deleted", 0))

    def stats(self) -> dict:
        return self._request("GET", "events/stats")

    # ─── Triage ───────────────────────────────────────────────────────

    def set_owner(self, event_id: int, owner) -> EventRecord:
        data = self._request("POST", "owner", json={"event_id": event_id, "owner": owner})
        return EventRecord.from_json(data)

    def set_next_step(self, event_id: int, next_step) -> EventRecord:
        data = self._request("POST", "next_step", json={"event_id": event_id, "next_step": next_step})
        return EventRecord.from_json(data)

    def set_result(self, event_id: int, result) -> EventRecord:
        data = self._request("POST", "result", json={"event_id": event_id, "result": result})
        return EventRecord.from_json(data)

    def get_config(self) -> dict:
        return self._request("GET", "config")
