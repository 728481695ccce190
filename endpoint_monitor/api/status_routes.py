"""Read-only status API for the endpoint monitor.

Endpoints:
  GET  /health                       — liveness of the monitor itself
  GET  /api/endpoints                — every endpoint with schedule + latest outcome
  GET  /api/endpoints/{name}         — one endpoint
  POST /api/endpoints/{name}/check   — run that endpoint's check now
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request

from endpoint_monitor.api.models import EndpointStatus, MonitorHealth, OutcomeView
from endpoint_monitor.endpoints.registry import EndpointDef
from endpoint_monitor.scheduling.reporters import StatusBoard
from endpoint_monitor.scheduling.scheduler import Scheduler

logger = logging.getLogger(__name__)

status_router = APIRouter()


def _scheduler(request: Request) -> Scheduler:
    return request.app.state.scheduler  # type: ignore[no-any-return]


def _board(request: Request) -> StatusBoard:
    return request.app.state.board  # type: ignore[no-any-return]


def _find(scheduler: Scheduler, name: str) -> EndpointDef:
    endpoint = next((e for e in scheduler.endpoints if e.name == name), None)
    if endpoint is None:
        raise HTTPException(status_code=404, detail=f"Unknown endpoint '{name}'")
    return endpoint


def _status(scheduler: Scheduler, board: StatusBoard, endpoint: EndpointDef) -> EndpointStatus:
    tracker = scheduler.tracker
    strategy = scheduler.strategies.resolve(endpoint)
    last = tracker.last_dispatch(endpoint)
    nxt = tracker.next_due(endpoint)
    latest = board.latest(endpoint.name)
    return EndpointStatus(
        name=endpoint.name,
        kind=endpoint.kind,
        target=endpoint.target,
        schedule=endpoint.schedule,
        schedule_valid=tracker.is_registered(endpoint),
        strategy=type(strategy).__name__ if strategy else None,
        last_dispatch=last.isoformat() if last else None,
        next_due=nxt.isoformat() if nxt else None,
        latest=OutcomeView.from_outcome(latest) if latest else None,
    )


@status_router.get("/health")
def health(request: Request) -> MonitorHealth:
    scheduler = _scheduler(request)
    return MonitorHealth(
        ok=True,
        scheduler=scheduler.state.value,
        endpoints=len(scheduler.endpoints),
        scheduled=sum(1 for e in scheduler.endpoints if scheduler.tracker.is_registered(e)),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@status_router.get("/api/endpoints")
def list_endpoints(request: Request) -> list[EndpointStatus]:
    scheduler = _scheduler(request)
    board = _board(request)
    return [_status(scheduler, board, e) for e in scheduler.endpoints]


@status_router.get("/api/endpoints/{name}")
def get_endpoint(name: str, request: Request) -> EndpointStatus:
    scheduler = _scheduler(request)
    return _status(scheduler, _board(request), _find(scheduler, name))


@status_router.post("/api/endpoints/{name}/check")
async def check_endpoint(name: str, request: Request) -> OutcomeView:
    """Run a check immediately. Schedule state is not touched."""
    scheduler = _scheduler(request)
    endpoint = _find(scheduler, name)
    outcome = await scheduler.run_now(endpoint)
    if outcome is None:
        raise HTTPException(
            status_code=422,
            detail=f"No check strategy for kind '{endpoint.kind}'",
        )
    logger.info("Manual check for %s: %s", endpoint.name, outcome.status)
    return OutcomeView.from_outcome(outcome)
