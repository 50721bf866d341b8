"""
DashboardSession — one operator's view of the lead list.

Holds the cached records and reconciles optimistic triage edits with the
periodic background refresh:

  - every mutation bumps `mutation_epoch` and stays pending on its id until
    the server answers; `mutating_ids` lists ids with any save in flight
  - a refresh remembers the epoch it started at (RefreshTicket); if a mutation
    began meanwhile, the snapshot is stale and is dropped
  - rows still being saved keep their local copy when a snapshot is merged
  - a forced refresh (manual reload, recovery after a failed delete) skips
    both checks and replaces the cache

State is guarded by an RLock. Network calls run outside it so a slow request
never blocks the refresher thread from reading the session.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import NamedTuple

from leads.client.errors import Conflict, DashboardApiError
from leads.client.records import EventRecord
from leads.services.lead_state import summarize
from leads.utils import utcnow

logger = logging.getLogger(__name__)

MUTATION_PAUSE_SECONDS = 3.0


@dataclass(frozen=True)
class RefreshTicket:
    epoch: int
    started_at: float


class PendingEdit(NamedTuple):
    field: str | None  # None for a pending delete
    value: object


class DashboardSession:
    def __init__(
        self,
        client,
        *,
        limit: int = 50,
        on_change=None,
        on_error=None,
        confirm=None,
        clock=time.monotonic,
        now=utcnow,
    ):
        self.client = client
        self.limit = limit
        self.on_change = on_change
        self.on_error = on_error
        # confirm(message) -> bool; asked before deleting unresolved leads
        self.confirm = confirm or (lambda message: False)
        self._clock = clock
        self._now = now
        self._lock = threading.RLock()

        self._records: list[EventRecord] = []
        self.mutation_epoch = 0
        self._pending: dict[int, list[PendingEdit]] = {}
        self.paused_until = 0.0
        self.tab_visible = True
        self.interacting = False
        self.refresh_in_flight = False
        self.last_fetch_at = None

    # ─── Reads ────────────────────────────────────────────────────────

    @property
    def events(self) -> list[EventRecord]:
        with self._lock:
            return list(self._records)

    def get(self, event_id: int) -> EventRecord | None:
        with self._lock:
            return self._find(event_id)

    def customer_events(self) -> list[EventRecord]:
        """Rows shown to the operator; simulator clicks stay out of the list."""
        with self._lock:
            return [r for r in self._records if not r.is_demo]

    def summary(self) -> dict:
        return summarize(self.customer_events())

    @property
    def mutating_ids(self) -> set[int]:
        with self._lock:
            return set(self._pending)

    # ─── Refresh ──────────────────────────────────────────────────────

    def begin_refresh(self) -> RefreshTicket:
        with self._lock:
            self.refresh_in_flight = True
            return RefreshTicket(epoch=self.mutation_epoch, started_at=self._clock())

    def apply_snapshot(self, ticket: RefreshTicket, rows, force: bool = False) -> bool:
        """Merge a fetched list into the cache. Returns False if it was discarded."""
        with self._lock:
            self.refresh_in_flight = False
            if not force and ticket.epoch != self.mutation_epoch:
                logger.debug(
                    "Discarding snapshot from epoch %s (now %s)", ticket.epoch, self.mutation_epoch
                )
                return False

            fresh = list(rows)
            if self._pending and not force:
                local = {r.id: r for r in self._records}
                fresh = [
                    local.get(row.id, row) if row.id in self._pending else row
                    for row in fresh
                ]
            self._records = fresh
            self.last_fetch_at = self._now()
        self._notify_change()
        return True

    def abandon_refresh(self) -> None:
        with self._lock:
            self.refresh_in_flight = False

    def refresh(self, force: bool = False, silent: bool = True) -> bool:
        """Fetch the list and merge it. Returns True when the cache was replaced."""
        with self._lock:
            if self.refresh_in_flight and not force:
                return False
            ticket = self.begin_refresh()

        try:
            rows = self.client.list_events(self.limit)
        except DashboardApiError as exc:
            self.abandon_refresh()
            logger.info("Refresh failed: %s", exc)
            if not silent:
                self._notify_error(exc)
            return False
        return self.apply_snapshot(ticket, rows, force=force)

    # ─── Auto-refresh gating ──────────────────────────────────────────

    def pause_auto_refresh(self, seconds: float) -> None:
        with self._lock:
            self.paused_until = max(self.paused_until, self._clock() + seconds)

    def set_tab_visible(self, visible: bool) -> None:
        with self._lock:
            self.tab_visible = visible

    def set_interacting(self, interacting: bool) -> None:
        with self._lock:
            self.interacting = interacting

    def should_auto_refresh(self, now: float | None = None) -> bool:
        with self._lock:
            now = self._clock() if now is None else now
            if not self.tab_visible:
                return False
            if now < self.paused_until:
                return False
            if self._pending:
                return False
            if self.interacting:
                return False
            return True

    def tick(self) -> bool:
        if not self.should_auto_refresh():
            return False
        return self.refresh(silent=True)

    # ─── Triage mutations ─────────────────────────────────────────────

    def set_owner(self, event_id: int, owner) -> bool:
        owner = (owner or "").strip() or None
        return self._mutate(event_id, "owner", owner, self.client.set_owner)

    def set_next_step(self, event_id: int, next_step) -> bool:
        return self._mutate(event_id, "next_step", next_step or None, self.client.set_next_step)

    def set_outcome(self, event_id: int, outcome) -> bool:
        return self._mutate(event_id, "outcome", outcome or None, self.client.set_result)

    def _mutate(self, event_id, field, value, send) -> bool:
        """
        Optimistic save of one triage field.

        Several saves may overlap on one row. Each stays pending until its own
        response arrives; a canonical copy keeps the other pending edits on top,
        and a failure reverts only the field that failed.
        """
        edit = PendingEdit(field, value)
        with self._lock:
            previous = self._find(event_id)
            if previous is not None:
                self._put(previous.with_triage(field, value, self._now()))
            self.pause_auto_refresh(MUTATION_PAUSE_SECONDS)
            self.mutation_epoch += 1
            self._begin(event_id, edit)
        self._notify_change()

        try:
            canonical = send(event_id, value)
        except DashboardApiError as exc:
            with self._lock:
                self._finish(event_id, edit)
                current = self._find(event_id)
                if previous is not None and current is not None:
                    self._put(self._with_pending(event_id, current.without_triage(field, previous)))
            logger.info("Saving %s on event %s failed: %s", field, event_id, exc)
            self._notify_change()
            self._notify_error(exc)
            return False

        with self._lock:
            self._finish(event_id, edit)
            if not self._deleting(event_id):
                self._put(self._with_pending(event_id, canonical))
        self._notify_change()
        return True

    # ─── Deletion ─────────────────────────────────────────────────────

    def delete_event(self, event_id: int, confirm: bool = False) -> bool:
        """
        Remove a lead. When the server refuses because the lead has no result,
        `self.confirm` decides whether to retry with confirm_unresolved.
        """
        removal = PendingEdit(None, None)
        with self._lock:
            self.pause_auto_refresh(MUTATION_PAUSE_SECONDS)
            self.mutation_epoch += 1
            self._begin(event_id, removal)
            self._records = [r for r in self._records if r.id != event_id]
        self._notify_change()

        try:
            try:
                self.client.delete_event(event_id, confirm_unresolved=confirm)
            except Conflict:
                if confirm or not self.confirm("This lead has no Result yet. Delete anyway?"):
                    raise
                self.client.delete_event(event_id, confirm_unresolved=True)
        except DashboardApiError as exc:
            with self._lock:
                self._finish(event_id, removal)
            self._notify_error(exc)
            self.refresh(force=True, silent=True)
            return False

        with self._lock:
            self._finish(event_id, removal)
            self.last_fetch_at = self._now()
        return True

    def clear_all(self, confirm: bool = False) -> int | None:
        """Delete every lead. Returns the deleted count, or None if nothing was cleared."""
        with self._lock:
            self.pause_auto_refresh(MUTATION_PAUSE_SECONDS)
            self.mutation_epoch += 1

        try:
            try:
                deleted = self.client.clear_all(confirm_unresolved=confirm)
            except Conflict as exc:
                if confirm or not self.confirm(
                    f"{exc.unresolved_count} lead(s) have no Result yet. Clear anyway?"
                ):
                    raise
                deleted = self.client.clear_all(confirm_unresolved=True)
        except DashboardApiError as exc:
            self._notify_error(exc)
            self.refresh(force=True, silent=True)
            return None

        with self._lock:
            self._records = []
            self.last_fetch_at = self._now()
        self._notify_change()
        return deleted

    # ─── Internals ────────────────────────────────────────────────────

    def _find(self, event_id) -> EventRecord | None:
        for record in self._records:
            if record.id == event_id:
                return record
        return None

    def _put(self, record: EventRecord) -> None:
        for index, existing in enumerate(self._records):
            if existing.id == record.id:
                self._records[index] = record
                return
        self._records.insert(0, record)

    def _begin(self, event_id, edit: PendingEdit) -> None:
        self._pending.setdefault(event_id, []).append(edit)

    def _finish(self, event_id, edit: PendingEdit) -> None:
        edits = self._pending.get(event_id, [])
        if edit in edits:
            edits.remove(edit)
        if not edits:
            self._pending.pop(event_id, None)

    def _deleting(self, event_id) -> bool:
        return any(edit.field is None for edit in self._pending.get(event_id, ()))

    def _with_pending(self, event_id, record: EventRecord) -> EventRecord:
        """Reapply triage edits still in flight for this row, oldest first."""
        for edit in self._pending.get(event_id, ()):
            if edit.field is not None:
                record = record.with_triage(edit.field, edit.value, self._now())
        return record

    def _notify_change(self) -> None:
        if self.on_change:
            self.on_change(self)

    def _notify_error(self, exc: DashboardApiError) -> None:
        if self.on_error:
            self.on_error(exc)
