"""
EventRecord — the dashboard's immutable copy of one Event JSON object.

Attribute names follow the model (caller_number, first_action_at, ...) so the
lead_state functions work on records exactly as they do on ORM rows.
"""
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Optional

from leads.services.lead_state import derive_state, format_response_time, outcome_response_ms

# JSON key → attribute, for keys the API renders in camelCase
_JSON_ALIASES = {
    "createdAt": "created_at",
    "callerNumber": "caller_number",
    "callSid": "call_sid",
    "toNumber": "to_number",
    "telephonyStatus": "telephony_status",
    "callDurationSec": "call_duration_sec",
    "dialCallDurationSec": "dial_call_duration_sec",
}
_ATTR_TO_JSON = {attr: key for key, attr in _JSON_ALIASES.items()}

_DATETIME_FIELDS = ("created_at", "outcome_set_at", "first_action_at")

TRIAGE_FIELDS = ("owner", "next_step", "outcome")


def parse_datetime(raw) -> Optional[datetime]:
    if raw is None or isinstance(raw, datetime):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    text = value.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


@dataclass(frozen=True)
class EventRecord:
    id: int
    created_at: datetime
    caller_number: str
    source: str
    status: str
    note: Optional[str] = None
    owner: Optional[str] = None
    next_step: Optional[str] = None
    outcome: Optional[str] = None
    outcome_set_at: Optional[datetime] = None
    first_action_at: Optional[datetime] = None
    overdue: bool = False
    overdue_minutes: Optional[int] = None
    lead_state: str = "unhandled"
    lead_state_label: str = "Unhandled"
    outcome_response_ms: Optional[int] = None
    outcome_response: Optional[str] = None
    call_sid: Optional[str] = None
    to_number: Optional[str] = None
    telephony_status: Optional[str] = None
    direction: Optional[str] = None
    call_duration_sec: Optional[int] = None
    dial_call_duration_sec: Optional[int] = None

    @classmethod
    def from_json(cls, data: dict) -> "EventRecord":
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            attr = _JSON_ALIASES.get(key, key)
            if attr in known:
                values[attr] = value
        for attr in _DATETIME_FIELDS:
            if attr in values:
                values[attr] = parse_datetime(values[attr])
        values["id"] = int(values["id"])
        values["overdue"] = bool(values.get("overdue"))
        return cls(**values)

    def to_json(self) -> dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _DATETIME_FIELDS:
                value = format_datetime(value)
            data[_ATTR_TO_JSON.get(f.name, f.name)] = value
        return data

    @property
    def is_demo(self) -> bool:
        return self.source == "simulator"

    def with_triage(self, field: str, value, now: datetime) -> "EventRecord":
        """
        Local preview of a triage change, following the server's rules so the
        row shows the right state before the canonical copy arrives.
        """
        if field not in TRIAGE_FIELDS:
            raise ValueError(f"Not a triage field: {field}")

        changes = {field: value}
        if value is not None and self.first_action_at is None:
            changes["first_action_at"] = now
        if field == "outcome":
            if value is None:
                changes["outcome_set_at"] = None
            elif self.outcome is None or self.outcome_set_at is None:
                changes["outcome_set_at"] = now

        return replace(self, **changes)._rederived()

    def without_triage(self, field: str, before: "EventRecord") -> "EventRecord":
        """Undo a local change to one triage field, restoring its value from `before`."""
        changes = {field: getattr(before, field)}
        if field == "outcome":
            changes["outcome_set_at"] = before.outcome_set_at
        if before.first_action_at is None:
            reverted = replace(self, **changes)
            if all(getattr(reverted, f) is None for f in TRIAGE_FIELDS):
                changes["first_action_at"] = None
        return replace(self, **changes)._rederived()

    def _rederived(self) -> "EventRecord":
        derived = derive_state(self, self.overdue)
        response_ms = outcome_response_ms(self)
        return replace(
            self,
            overdue=derived.overdue,
            overdue_minutes=self.overdue_minutes if derived.overdue else None,
            lead_state=derived.state.value,
            lead_state_label=derived.label,
            outcome_response_ms=response_ms,
            outcome_response=format_response_time(response_ms),
        )
