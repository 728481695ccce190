"""Check scheduler — ticks, dispatches due checks concurrently, reports outcomes.

Each tick:
1. claims every endpoint whose cron occurrence has arrived (marking it
   dispatched before anything runs),
2. resolves a strategy per claimed endpoint (no match → warning, skip),
3. runs all resolved probes concurrently in a thread pool, catching any
   exception at the invocation boundary as a failed outcome,
4. reports outcomes as they complete and returns once all have finished.

The driver loop (``run_forever``) repeats ticks on a fixed cadence until its
stop event is set.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy, elapsed_since
from endpoint_monitor.endpoints.registry import EndpointDef, MonitorConfig
from endpoint_monitor.scheduling.reporters import (
    CompositeReporter,
    LoggingReporter,
    ResultReporter,
)
from endpoint_monitor.scheduling.strategies import StrategyRegistry
from endpoint_monitor.scheduling.tracker import ScheduleTracker

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SchedulerState(str, Enum):
    IDLE = "idle"
    TICKING = "ticking"
    STOPPED = "stopped"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Scheduler:
    """Cron-driven dispatcher for all configured endpoint checks."""

    def __init__(
        self,
        endpoints: Iterable[EndpointDef],
        strategies: StrategyRegistry,
        tracker: ScheduleTracker,
        reporter: ResultReporter,
        *,
        clock: Clock = utc_now,
        tick_interval: float = 30.0,
        max_workers: int = 8,
    ) -> None:
        self.endpoints = list(endpoints)
        self.strategies = strategies
        self.tracker = tracker
        self.reporter = reporter
        self.tick_interval = tick_interval
        self.state = SchedulerState.IDLE
        self._clock = clock
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="check")
        self._unresolved: set[str] = set()
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    # ── Tick ─────────────────────────────────────────────────────────────

    async def tick(self, now: datetime | None = None) -> list[CheckOutcome]:
        """Run one due-check-and-dispatch cycle. Returns outcomes in completion order."""
        now = now or self._clock()
        self.state = SchedulerState.TICKING
        try:
            dispatched = self._claim_due(now)
            if not dispatched:
                return []

            logger.info("Running %d scheduled checks", len(dispatched))
            tasks = [
                asyncio.create_task(self._invoke(endpoint, strategy), name=f"check-{endpoint.name}")
                for endpoint, strategy in dispatched
            ]
            outcomes = []
            for next_done in asyncio.as_completed(tasks):
                outcome = await next_done
                self._report(outcome)
                outcomes.append(outcome)
            return outcomes
        finally:
            if self.state is SchedulerState.TICKING:
                self.state = SchedulerState.IDLE

    def _claim_due(self, now: datetime) -> list[tuple[EndpointDef, CheckStrategy]]:
        dispatched = []
        for endpoint in self.endpoints:
            if not self.tracker.claim(endpoint, now):
                continue

            strategy = self.strategies.resolve(endpoint)
            if strategy is None:
                if endpoint.name not in self._unresolved:
                    self._unresolved.add(endpoint.name)
                    logger.warning(
                        "No check strategy found for endpoint %s with kind %s",
                        endpoint.name, endpoint.kind,
                    )
                continue

            logger.debug("Dispatching check for endpoint %s", endpoint.name)
            dispatched.append((endpoint, strategy))
        return dispatched

    async def _invoke(self, endpoint: EndpointDef, strategy: CheckStrategy) -> CheckOutcome:
        """Run one probe off the event loop; any exception becomes a failed outcome."""
        loop = asyncio.get_running_loop()
        t0 = time.perf_counter()
        try:
            return await loop.run_in_executor(self._executor, strategy.run, endpoint)
        except Exception as e:
            logger.exception("Check %s raised for endpoint %s", type(strategy).__name__, endpoint.name)
            return CheckOutcome(
                endpoint=endpoint,
                success=False,
                message=f"Unexpected error in {type(strategy).__name__}: {type(e).__name__}: {e}",
                elapsed_ms=elapsed_since(t0),
            )

    def _report(self, outcome: CheckOutcome) -> None:
        try:
            self.reporter.report(outcome)
        except Exception:
            logger.exception("Result reporter error")

    # ── Ad-hoc checks ────────────────────────────────────────────────────

    async def run_now(self, endpoint: EndpointDef) -> CheckOutcome | None:
        """Run one endpoint's check immediately, outside its schedule.

        Schedule state is left untouched. Returns None when no strategy
        handles the endpoint's kind.
        """
        strategy = self.strategies.resolve(endpoint)
        if strategy is None:
            return None
        outcome = await self._invoke(endpoint, strategy)
        self._report(outcome)
        return outcome

    # ── Driver loop ──────────────────────────────────────────────────────

    async def run_forever(
        self,
        stop_event: asyncio.Event | None = None,
        interval: float | None = None,
    ) -> None:
        """Tick every ``interval`` seconds until ``stop_event`` is set."""
        stop_event = stop_event or asyncio.Event()
        self._stop_event = stop_event
        interval = self.tick_interval if interval is None else interval
        logger.info(
            "Scheduler started: %d endpoints, tick every %ss",
            len(self.endpoints), interval,
        )
        for endpoint in self.endpoints:
            logger.info(
                "  - %s: %s check for %s (schedule: %s)%s",
                endpoint.name, endpoint.kind, endpoint.target, endpoint.schedule,
                "" if self.tracker.is_registered(endpoint) else " [excluded: invalid schedule]",
            )
        try:
            while not stop_event.is_set():
                try:
                    await self.tick()
                except Exception:
                    logger.exception("Error executing scheduled checks")

                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self.state = SchedulerState.STOPPED
            logger.info("Scheduler stopped")

    async def start(self, interval: float | None = None) -> None:
        """Run the driver loop as a background task."""
        if self._task and not self._task.done():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self.run_forever(self._stop_event, interval), name="endpoint-scheduler",
        )

    async def stop(self) -> None:
        """Signal the driver loop and wait for the current tick to finish."""
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.state = SchedulerState.STOPPED
        self.close()

    def close(self) -> None:
        """Release the probe thread pool; in-flight probes are not interrupted."""
        self._executor.shutdown(wait=False)


def build_scheduler(
    config: MonitorConfig,
    reporters: Iterable[ResultReporter] | None = None,
    *,
    strategies: StrategyRegistry | None = None,
    timezone_name: str = "UTC",
    max_workers: int = 8,
    clock: Clock = utc_now,
) -> Scheduler:
    """Wire tracker, strategies and reporters for a loaded configuration."""
    tracker = ScheduleTracker(tz=ZoneInfo(timezone_name))
    tracker.register_all(config.endpoints)
    reporter_list = list(reporters) if reporters is not None else [LoggingReporter()]
    reporter = reporter_list[0] if len(reporter_list) == 1 else CompositeReporter(reporter_list)
    return Scheduler(
        config.endpoints,
        strategies or StrategyRegistry.with_defaults(),
        tracker,
        reporter,
        clock=clock,
        tick_interval=config.scheduler.tick_interval_seconds,
        max_workers=max_workers,
    )
