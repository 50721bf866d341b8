from datetime import timedelta
from unittest import mock

import pytest

from leads.exceptions import EventNotFound, EventValidationError
from leads.services import triage
from leads.services.lead_state import LeadState, derive_state, outcome_response_ms
from leads.utils import utcnow

pytestmark = pytest.mark.django_db


def at(moment):
    """Freeze triage's clock."""
    return mock.patch("leads.services.triage.utcnow", return_value=moment)


class TestOwner:
    def test_setting_owner_is_first_action(self, make_event):
        event = make_event()
        updated = triage.set_owner(event.id, "  Cody ")
        assert updated.owner == "Cody"
        assert updated.first_action_at is not None
        assert derive_state(updated).state == LeadState.IN_PROGRESS

    def test_blank_owner_clears(self, make_event):
        event = make_event()
        triage.set_owner(event.id, "Cody")
        assert triage.set_owner(event.id, "   ").owner is None

    def test_clearing_on_untouched_lead_is_not_a_first_action(self, make_event):
        event = make_event()
        updated = triage.set_owner(event.id, None)
        assert updated.first_action_at is None
        assert derive_state(updated).state == LeadState.UNHANDLED

    def test_owner_length_limit(self, make_event):
        event = make_event()
        triage.set_owner(event.id, "x" * 100)
        with pytest.raises(EventValidationError):
            triage.set_owner(event.id, "x" * 101)

    def test_unknown_event(self):
        with pytest.raises(EventNotFound):
            triage.set_owner(999, "Cody")


class TestNextStep:
    def test_next_step_moves_lead_in_progress(self, make_event):
        event = make_event("4105551234", "missed", "simulator")
        updated = triage.set_next_step(event.id, "call_attempt")
        assert updated.next_step == "call_attempt"
        assert derive_state(updated).state == LeadState.IN_PROGRESS

    def test_rejects_unknown_step(self, make_event):
        event = make_event()
        with pytest.raises(EventValidationError):
            triage.set_next_step(event.id, "send_fax")

    def test_values_are_trimmed(self, make_event):
        event = make_event()
        assert triage.set_next_step(event.id, " text_sent ").next_step == "text_sent"


class TestOutcome:
    def test_outcome_on_untouched_lead_stamps_both_at_same_instant(self, make_event):
        event = make_event()
        moment = utcnow() + timedelta(minutes=7)
        with at(moment):
            updated = triage.set_outcome(event.id, "booked")

        updated.refresh_from_db()
        assert updated.outcome == "booked"
        assert updated.outcome_set_at == moment
        assert updated.first_action_at == moment
        assert derive_state(updated).state == LeadState.CLOSED
        assert outcome_response_ms(updated) is not None

    def test_changing_outcome_keeps_original_timestamp(self, make_event):
        event = make_event()
        first = utcnow() + timedelta(minutes=1)
        with at(first):
            triage.set_outcome(event.id, "no_answer")
        with at(first + timedelta(minutes=30)):
            updated = triage.set_outcome(event.id, "booked")

        updated.refresh_from_db()
        assert updated.outcome == "booked"
        assert updated.outcome_set_at == first

    def test_clearing_outcome_reopens_as_in_progress(self, make_event):
        event = make_event()
        triage.set_next_step(event.id, "call_attempt")
        triage.set_outcome(event.id, "no_answer")
        updated = triage.set_outcome(event.id, None)

        updated.refresh_from_db()
        assert updated.outcome is None
        assert updated.outcome_set_at is None
        assert updated.first_action_at is not None
        assert derive_state(updated).state == LeadState.IN_PROGRESS

    def test_clearing_after_outcome_only_keeps_first_action(self, make_event):
        event = make_event()
        closed = triage.set_outcome(event.id, "wrong_number")
        reopened = triage.set_outcome(event.id, "")
        assert reopened.first_action_at == closed.first_action_at
        assert derive_state(reopened).state == LeadState.IN_PROGRESS

    def test_rejects_unknown_outcome(self, make_event):
        event = make_event()
        with pytest.raises(EventValidationError):
            triage.set_outcome(event.id, "maybe")


def test_first_action_never_changes_once_set(make_event):
    event = make_event()
    start = utcnow() + timedelta(minutes=2)
    with at(start):
        triage.set_owner(event.id, "Sam")
    with at(start + timedelta(minutes=5)):
        triage.set_next_step(event.id, "text_sent")
    with at(start + timedelta(minutes=9)):
        triage.set_outcome(event.id, "booked")
    with at(start + timedelta(minutes=11)):
        triage.set_owner(event.id, None)

    event.refresh_from_db()
    assert event.first_action_at == start
    assert event.outcome_set_at == start + timedelta(minutes=9)


def test_outcome_set_at_present_iff_outcome(make_event):
    event = make_event()
    for value in ["booked", "no_answer", None, "call_back_later", "", "already_hired"]:
        updated = triage.set_outcome(event.id, value)
        updated.refresh_from_db()
        assert (updated.outcome is None) == (updated.outcome_set_at is None)


def test_every_mutation_records_activity(make_event):
    event = make_event()
    triage.set_owner(event.id, "Alex")
    triage.set_next_step(event.id, "spoke_to_customer")
    triage.set_outcome(event.id, "booked")
    triage.set_outcome(event.id, None)

    kinds = sorted(event.activity.values_list("kind", flat=True))
    assert kinds == sorted(["lead_created", "owner_set", "next_step_set", "outcome_set", "outcome_cleared"])
