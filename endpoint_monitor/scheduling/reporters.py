"""Result reporters — sinks for finished check outcomes.

Reporters are called from the scheduler as each check completes and must be
safe under concurrent calls.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Protocol

from endpoint_monitor.checks.base import CheckOutcome

logger = logging.getLogger(__name__)


class ResultReporter(Protocol):
    def report(self, outcome: CheckOutcome) -> None: ...


class LoggingReporter:
    """One log line per outcome: INFO on success, WARNING on failure."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def report(self, outcome: CheckOutcome) -> None:
        ep = outcome.endpoint
        self._log.log(
            logging.INFO if outcome.success else logging.WARNING,
            "Check %s for %s (%s): %s in %.0fms - %s",
            ep.kind,
            ep.name,
            ep.target,
            outcome.status,
            outcome.elapsed_ms,
            outcome.message,
        )


class StatusBoard:
    """Latest outcome per endpoint, in memory only. No history is kept."""

    def __init__(self) -> None:
        self._latest: dict[str, CheckOutcome] = {}
        self._lock = threading.Lock()

    def report(self, outcome: CheckOutcome) -> None:
        with self._lock:
            self._latest[outcome.endpoint.name] = outcome

    def latest(self, name: str) -> CheckOutcome | None:
        with self._lock:
            return self._latest.get(name)

    def snapshot(self) -> dict[str, CheckOutcome]:
        with self._lock:
            return dict(self._latest)


class CompositeReporter:
    """Fans each outcome out to several reporters, in order."""

    def __init__(self, reporters: Iterable[ResultReporter]) -> None:
        self.reporters = list(reporters)

    def report(self, outcome: CheckOutcome) -> None:
        for reporter in self.reporters:
            try:
                reporter.report(outcome)
            except Exception:
                logger.exception("Reporter %s failed", type(reporter).__name__)
