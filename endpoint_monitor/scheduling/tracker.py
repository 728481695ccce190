"""Schedule tracker — per-endpoint cron schedule and last dispatch time.

The tracker is the only owner of scheduling state. ``claim`` performs the
due check and the dispatch mark under one lock so two overlapping ticks can
never both dispatch the same occurrence.

Last dispatch is recorded when a check is dispatched, not when it finishes.
A check that runs longer than its own interval can therefore become due again
and run alongside itself, and chronically slow checks drift. Both are
accepted: checks are expected to be fast relative to their interval.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo

from croniter import croniter

from endpoint_monitor.endpoints.registry import EndpointDef
from endpoint_monitor.errors import ScheduleInvalid

logger = logging.getLogger(__name__)


@dataclass
class ScheduleState:
    expression: str
    parsed: croniter
    last_dispatch: datetime | None = None  # None = never dispatched


class ScheduleTracker:
    """Answers "is this endpoint due now" for every registered endpoint."""

    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self._tz = tz
        self._states: dict[str, ScheduleState] = {}
        self._lock = threading.Lock()

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    def register(self, endpoint: EndpointDef) -> None:
        """Parse the endpoint's schedule. Raises ScheduleInvalid on a bad expression."""
        try:
            parsed = croniter(endpoint.schedule, datetime.now(self._tz))
        except (ValueError, KeyError, TypeError) as e:
            raise ScheduleInvalid(endpoint.name, endpoint.schedule, str(e)) from e
        with self._lock:
            self._states[endpoint.name] = ScheduleState(expression=endpoint.schedule, parsed=parsed)

    def register_all(self, endpoints: Iterable[EndpointDef]) -> list[EndpointDef]:
        """Register every endpoint, logging and excluding the invalid ones.

        Returns the endpoints that will be scheduled.
        """
        accepted = []
        for endpoint in endpoints:
            try:
                self.register(endpoint)
            except ScheduleInvalid as e:
                logger.error("%s — endpoint excluded from scheduling", e)
                continue
            accepted.append(endpoint)
        return accepted

    def is_registered(self, endpoint: EndpointDef) -> bool:
        return endpoint.name in self._states

    def is_due(self, endpoint: EndpointDef, now: datetime) -> bool:
        """True iff the next occurrence after the last dispatch is at or before ``now``."""
        with self._lock:
            state = self._states.get(endpoint.name)
            return state is not None and self._is_due(state, self._aware(now))

    def mark_dispatched(self, endpoint: EndpointDef, now: datetime) -> None:
        with self._lock:
            state = self._states.get(endpoint.name)
            if state is None:
                raise KeyError(f"Endpoint {endpoint.name} has no registered schedule")
            state.last_dispatch = self._aware(now)

    def claim(self, endpoint: EndpointDef, now: datetime) -> bool:
        """Atomically check due-ness and mark dispatched. Returns True if claimed."""
        now = self._aware(now)
        with self._lock:
            state = self._states.get(endpoint.name)
            if state is None or not self._is_due(state, now):
                return False
            state.last_dispatch = now
            return True

    def last_dispatch(self, endpoint: EndpointDef) -> datetime | None:
        with self._lock:
            state = self._states.get(endpoint.name)
            return state.last_dispatch if state else None

    def next_due(self, endpoint: EndpointDef) -> datetime | None:
        """Next occurrence after the last dispatch; None if never dispatched or unregistered."""
        with self._lock:
            state = self._states.get(endpoint.name)
            if state is None or state.last_dispatch is None:
                return None
            return self._next_after(state, state.last_dispatch)

    # ── internals (caller holds the lock) ────────────────────────────────

    def _is_due(self, state: ScheduleState, now: datetime) -> bool:
        if state.last_dispatch is None:
            return True
        return self._next_after(state, state.last_dispatch) <= now

    def _next_after(self, state: ScheduleState, after: datetime) -> datetime:
        state.parsed.set_current(after.astimezone(self._tz), force=True)
        nxt = state.parsed.get_next(datetime)
        if nxt.tzinfo is None:
            nxt = nxt.replace(tzinfo=self._tz)
        return nxt

    def _aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self._tz)
        return value
