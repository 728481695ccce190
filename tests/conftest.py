"""Shared test fixtures."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy
from endpoint_monitor.endpoints.registry import EndpointDef

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class StubStrategy(CheckStrategy):
    """Succeeds (or fails) immediately and remembers what it ran."""

    def __init__(self, kinds: tuple[str, ...] = ("http",), success: bool = True, delay: float = 0.0) -> None:
        self.kinds = kinds
        self.success = success
        self.delay = delay
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        t0 = time.perf_counter()
        with self._lock:
            self.calls.append(endpoint.name)
        if self.delay:
            time.sleep(self.delay)
        if self.success:
            return CheckOutcome.passed(endpoint, f"{endpoint.name} ok", t0)
        return CheckOutcome.failed(endpoint, f"{endpoint.name} down", t0)


class RaisingStrategy(CheckStrategy):
    """Breaks the never-raise contract to exercise the scheduler's isolation."""

    def __init__(self, kinds: tuple[str, ...] = ("broken",)) -> None:
        self.kinds = kinds

    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        raise RuntimeError(f"probe exploded for {endpoint.name}")


class ListReporter:
    def __init__(self) -> None:
        self.outcomes: list[CheckOutcome] = []
        self._lock = threading.Lock()

    def report(self, outcome: CheckOutcome) -> None:
        with self._lock:
            self.outcomes.append(outcome)

    @property
    def names(self) -> list[str]:
        return [o.endpoint.name for o in self.outcomes]


@pytest.fixture
def make_endpoint() -> Callable[..., EndpointDef]:
    def _make(name: str = "web-1", kind: str = "http", **kwargs: Any) -> EndpointDef:
        kwargs.setdefault("host", "localhost")
        kwargs.setdefault("port", 80)
        return EndpointDef(name=name, kind=kind, **kwargs)

    return _make


@pytest.fixture
def reporter() -> ListReporter:
    return ListReporter()
