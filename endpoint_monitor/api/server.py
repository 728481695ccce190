"""FastAPI server — status API with the scheduler running in its lifespan."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from endpoint_monitor import __version__
from endpoint_monitor.api.status_routes import status_router
from endpoint_monitor.config import settings
from endpoint_monitor.endpoints.registry import EndpointRegistry, SchedulerConfig
from endpoint_monitor.scheduling.reporters import LoggingReporter, StatusBoard
from endpoint_monitor.scheduling.scheduler import Scheduler, build_scheduler

logger = logging.getLogger(__name__)


def load_registry() -> EndpointRegistry:
    """Endpoint registry for the configured file, with settings as scheduler defaults."""
    return EndpointRegistry(
        path=Path(settings.endpoints_file),
        defaults=SchedulerConfig(
            enabled=settings.scheduler_enabled,
            tick_interval_seconds=settings.tick_interval_seconds,
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the scheduler on startup (unless one was injected) and run it."""
    if getattr(app.state, "scheduler", None) is None:
        config = load_registry().load()
        board = StatusBoard()
        app.state.board = board
        app.state.scheduler = build_scheduler(
            config,
            [LoggingReporter(), board],
            timezone_name=settings.schedule_timezone,
            max_workers=settings.max_concurrent_checks,
        )
        app.state.start_scheduler = config.scheduler.enabled

    scheduler: Scheduler = app.state.scheduler
    if app.state.start_scheduler:
        await scheduler.start()
    else:
        logger.info("Scheduler disabled — serving status API only")

    yield

    await scheduler.stop()


def create_app(
    scheduler: Scheduler | None = None,
    board: StatusBoard | None = None,
    start_scheduler: bool = True,
) -> FastAPI:
    app = FastAPI(
        title="Endpoint Monitor",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.scheduler = scheduler
    app.state.board = board or StatusBoard()
    app.state.start_scheduler = start_scheduler

    app.include_router(status_router)
    return app
