"""
Seed data script — populates the database with demo call events covering
every lead state (unhandled, overdue, in progress, closed).

Usage: cd backend && python seed_data.py
"""
import os
import sys
from datetime import timedelta

import django

# Setup Django
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hvac_leads.settings')
django.setup()

from leads.models import Event
from leads.services import event_store, triage
from leads.utils import utcnow


EVENTS = [
    # ─── Fresh / overdue ────────────────────────────────────────────
    {
        "caller_number": "+14105551234",
        "status": "missed",
        "source": "landing_call_click",
        "minutes_ago": 3,
    },
    {
        "caller_number": "+14105550199",
        "status": "missed",
        "source": "landing_form",
        "note": "AC blowing warm air, upstairs unit. Prefers mornings.",
        "minutes_ago": 42,
    },
    {
        "caller_number": "+14435550147",
        "status": "missed",
        "source": "telephony",
        "minutes_ago": 95,
    },

    # ─── Being worked ───────────────────────────────────────────────
    {
        "caller_number": "+14105550112",
        "status": "missed",
        "source": "telephony",
        "minutes_ago": 180,
        "owner": "Cody",
        "next_step": "voicemail_left",
    },
    {
        "caller_number": "+14435550163",
        "status": "answered",
        "source": "telephony",
        "minutes_ago": 240,
        "owner": "Sam",
        "next_step": "call_attempt",
        "outcome_then_cleared": "no_answer",
    },

    # ─── Closed ─────────────────────────────────────────────────────
    {
        "caller_number": "+14105550178",
        "status": "answered",
        "source": "landing_form",
        "note": "Furnace tune-up before winter.",
        "minutes_ago": 600,
        "owner": "Alex",
        "next_step": "spoke_to_customer",
        "outcome": "booked",
    },
    {
        "caller_number": "+14435550121",
        "status": "missed",
        "source": "telephony",
        "minutes_ago": 1500,
        "owner": "Cody",
        "outcome": "already_hired",
    },
    {
        "caller_number": "+14105550100",
        "status": "missed",
        "source": "simulator",
        "minutes_ago": 10,
    },
]


def seed():
    # Check if already seeded
    existing = Event.objects.count()
    if existing > 0:
        print(f"Database already has {existing} events. Skipping seed.")
        print("Use the dashboard's Clear all, or 'python manage.py flush --no-input', then re-seed.")
        return

    now = utcnow()
    for i, data in enumerate(EVENTS):
        event = event_store.create_event(
            data["caller_number"], data["status"],
            source=data["source"], note=data.get("note"),
        )
        # Backdate so SLA and response times look realistic
        Event.objects.filter(id=event.id).update(
            created_at=now - timedelta(minutes=data["minutes_ago"])
        )

        if data.get("owner"):
            triage.set_owner(event.id, data["owner"])
        if data.get("next_step"):
            triage.set_next_step(event.id, data["next_step"])
        if data.get("outcome_then_cleared"):
            triage.set_outcome(event.id, data["outcome_then_cleared"])
            triage.set_outcome(event.id, None)
        if data.get("outcome"):
            triage.set_outcome(event.id, data["outcome"])

        print(f"  [{i+1}/{len(EVENTS)}] {data['source']:18s} {data['status']:8s} {data['caller_number']}")

    print(f"\n{'='*50}")
    print(f"Seed complete! {len(EVENTS)} events.")
    print(f"\nRun the server: python manage.py runserver")
    print(f"Open dashboard API: http://localhost:8000/api/events?key=$DEMO_KEY")


if __name__ == "__main__":
    seed()
