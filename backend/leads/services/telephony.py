"""
Telephony collaborator — turns Twilio voice webhooks into events.

- build_voice_response()  — TwiML for the inbound call (forward or demo message)
- record_call_callback()  — idempotent per CallSid; one Event per provider call
- validate_signature()    — X-Twilio-Signature check (HMAC-SHA1, base64)

Twilio retries callbacks and sends several per call (initiated, ringing,
answered, completed), so everything here must tolerate repeats.
"""
import base64
import hashlib
import hmac
import logging
import re
import xml.etree.ElementTree as ET

from django.conf import settings
from django.db import transaction

from leads.models import LeadActivity
from leads.services import event_store

logger = logging.getLogger(__name__)

PLACEHOLDER_CALLER = "+10000000000"

_CALL_SID_RE = re.compile(r"^CA[a-f0-9]{32}$", re.IGNORECASE)
_ANSWERED_STATUSES = ("in-progress", "completed")


def normalize_call_status(raw) -> str:
    """Map a Twilio CallStatus onto the two event statuses."""
    value = str(raw or "").strip().lower()
    return "answered" if value in _ANSWERED_STATUSES else "missed"


def is_valid_call_sid(raw) -> bool:
    return isinstance(raw, str) and bool(_CALL_SID_RE.match(raw.strip()))


def _parse_int(raw) -> int | None:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def _caller_number(raw) -> str | None:
    number = event_store.normalize_caller_number(raw)
    return number if event_store.is_valid_caller_number(number) else None


# ─── Callbacks ────────────────────────────────────────────────────────────────

def record_call_callback(params) -> tuple:
    """
    Persist one Twilio callback.

    Returns (event, created). A request without a usable CallSid cannot be
    correlated, so it is stored as a plain new event.

    Callbacks for the forwarded (dialled) leg carry their own CallSid plus the
    caller's ParentCallSid; they land on the caller's event and only update
    its status and the dialled leg's duration. DialCallStatus, sent with the
    <Dial action> callback, describes whether the forward was answered and wins
    over the caller leg's CallStatus.
    """
    call_sid = str(params.get("CallSid") or "").strip()
    parent_sid = str(params.get("ParentCallSid") or "").strip()
    raw_status = params.get("DialCallStatus") or params.get("CallStatus")

    if is_valid_call_sid(parent_sid):
        call_sid = parent_sid
        fields = {
            "caller_number": None,
            "status": normalize_call_status(raw_status),
            "telephony_status": (str(raw_status or "").strip().lower()) or None,
            "dial_call_duration_sec": _parse_int(params.get("CallDuration")),
        }
    else:
        fields = {
            "caller_number": _caller_number(params.get("From")),
            "status": normalize_call_status(raw_status),
            "to_number": (params.get("To") or "").strip() or None,
            "telephony_status": (str(raw_status or "").strip().lower()) or None,
            "direction": (params.get("Direction") or "").strip() or None,
            "call_duration_sec": _parse_int(params.get("CallDuration")),
            "dial_call_duration_sec": _parse_int(params.get("DialCallDuration")),
        }

    if not is_valid_call_sid(call_sid):
        logger.warning("Twilio callback without a valid CallSid (%r); inserting uncorrelated event", call_sid)
        extra = {k: v for k, v in fields.items() if k not in ("caller_number", "status") and v is not None}
        event = event_store.create_event(
            fields["caller_number"] or PLACEHOLDER_CALLER, fields["status"], source="telephony", **extra
        )
        return event, True

    event, created = event_store.upsert_by_call_sid(
        call_sid, insert_defaults={"caller_number": PLACEHOLDER_CALLER}, **fields
    )

    if not created:
        with event_store.storage_errors("telephony_update"), transaction.atomic():
            LeadActivity.objects.create(
                event=event,
                kind="telephony_update",
                actor="telephony",
                payload={k: v for k, v in fields.items() if v is not None},
                description=f"Call {fields['telephony_status'] or 'update'}",
            )

    logger.info(
        "Twilio %s %s for call %s (event %s)",
        "created" if created else "updated", fields["telephony_status"], call_sid, event.id,
    )
    return event, created


# ─── TwiML ────────────────────────────────────────────────────────────────────

def build_voice_response(status_callback_url: str) -> str:
    """
    TwiML for an inbound call: forward to TWILIO_FORWARD_TO or play the demo message.

    The <Dial action> callback arrives under the caller's own CallSid with the
    forward's DialCallStatus; progress callbacks for the dialled leg carry a
    ParentCallSid and are folded into the same event.
    """
    response = ET.Element("Response")
    forward_to = (settings.TWILIO_FORWARD_TO or "").strip()

    if forward_to:
        dial = ET.SubElement(response, "Dial", {
            "action": status_callback_url,
            "method": "POST",
            "statusCallback": status_callback_url,
            "statusCallbackMethod": "POST",
            "statusCallbackEvent": "initiated ringing answered completed",
        })
        dial.text = forward_to
    else:
        say = ET.SubElement(response, "Say")
        say.text = "Thanks. This number is configured for a demo. Goodbye."
        ET.SubElement(response, "Hangup")

    return '<?xml version="1.0" encoding="UTF-8"?>' + ET.tostring(response, encoding="unicode")


# ─── Signature ────────────────────────────────────────────────────────────────

def compute_signature(url: str, params, auth_token: str) -> str:
    """Twilio's scheme: full URL followed by each POST key+value, keys sorted."""
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode(), payload.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


def validate_signature(url: str, params, signature: str, auth_token: str) -> bool:
    if not signature or not auth_token:
        return False
    expected = compute_signature(url, params, auth_token)
    return hmac.compare_digest(expected.encode(), signature.encode())


def signature_required() -> bool:
    return bool(settings.TWILIO_VALIDATE_SIGNATURE and settings.TWILIO_AUTH_TOKEN)
