"""Check outcome model and the strategy contract every probe implements."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from endpoint_monitor.endpoints.registry import EndpointDef


@dataclass(frozen=True)
class CheckOutcome:
    """Result of a single probe execution."""

    endpoint: EndpointDef
    success: bool
    message: str
    elapsed_ms: float
    observed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        # Outcomes always carry a diagnostic, even from a careless strategy
        if not self.message:
            fallback = "Check succeeded" if self.success else "Check failed"
            object.__setattr__(self, "message", fallback)

    @classmethod
    def passed(cls, endpoint: EndpointDef, message: str, started: float) -> CheckOutcome:
        return cls(endpoint, True, message, elapsed_since(started))

    @classmethod
    def failed(cls, endpoint: EndpointDef, message: str, started: float) -> CheckOutcome:
        return cls(endpoint, False, message, elapsed_since(started))

    @property
    def status(self) -> str:
        return "SUCCESS" if self.success else "FAILED"

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint.name,
            "kind": self.endpoint.kind,
            "success": self.success,
            "message": self.message,
            "elapsed_ms": self.elapsed_ms,
            "observed_at": self.observed_at.isoformat(),
        }


def elapsed_since(started: float) -> float:
    """Milliseconds since a ``time.perf_counter()`` reading, rounded to 0.1ms."""
    return round((time.perf_counter() - started) * 1000, 1)


class CheckStrategy(ABC):
    """A pluggable protocol probe.

    ``run`` must never raise: every failure mode is returned as a failed
    CheckOutcome, and ``endpoint.timeout_ms`` bounds how long it may take.
    """

    kinds: tuple[str, ...] = ()

    def can_handle(self, kind: str) -> bool:
        return kind.strip().lower() in self.kinds

    @abstractmethod
    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kinds={self.kinds!r})"


def timeout_seconds(endpoint: EndpointDef) -> float:
    return max(endpoint.timeout_ms, 1) / 1000

