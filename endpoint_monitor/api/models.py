"""Pydantic response models for the status API."""

from __future__ import annotations

from pydantic import BaseModel

from endpoint_monitor.checks.base import CheckOutcome


class OutcomeView(BaseModel):
    success: bool
    status: str
    message: str
    elapsed_ms: float
    observed_at: str

    @classmethod
    def from_outcome(cls, outcome: CheckOutcome) -> OutcomeView:
        return cls(
            success=outcome.success,
            status=outcome.status,
            message=outcome.message,
            elapsed_ms=outcome.elapsed_ms,
            observed_at=outcome.observed_at.isoformat(),
        )


class EndpointStatus(BaseModel):
    name: str
    kind: str
    target: str
    schedule: str
    schedule_valid: bool
    strategy: str | None = None
    last_dispatch: str | None = None
    next_due: str | None = None
    latest: OutcomeView | None = None


class MonitorHealth(BaseModel):
    ok: bool
    scheduler: str
    endpoints: int
    scheduled: int
    timestamp: str
