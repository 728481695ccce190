"""Entry point for the endpoint monitor — `endpoint-monitor` console script."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from endpoint_monitor.api.server import load_registry
from endpoint_monitor.config import settings
from endpoint_monitor.errors import ScheduleInvalid
from endpoint_monitor.scheduling.reporters import LoggingReporter
from endpoint_monitor.scheduling.scheduler import build_scheduler
from endpoint_monitor.scheduling.strategies import StrategyRegistry
from endpoint_monitor.scheduling.tracker import ScheduleTracker

console = Console()

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging() -> None:
    """Console logging plus an optional daily-rotated log file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            TimedRotatingFileHandler(log_path, when="midnight", backupCount=14, encoding="utf-8")
        )
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def run_worker() -> int:
    """Run the scheduler driver loop in the foreground until Ctrl-C."""
    registry = load_registry()
    config = registry.load()

    console.print(
        Panel.fit(
            f"[bold]Endpoint Monitor[/bold]\n"
            f"Endpoints: {len(config.endpoints)} from {settings.endpoints_file}\n"
            f"Tick:      every {config.scheduler.tick_interval_seconds}s\n"
            f"Timezone:  {settings.schedule_timezone}",
            title="endpoint-monitor",
            border_style="green",
        )
    )

    if not config.scheduler.enabled:
        console.print("[yellow]Scheduler is disabled in configuration — nothing to do.[/yellow]")
        return 0

    scheduler = build_scheduler(
        config,
        [LoggingReporter()],
        timezone_name=settings.schedule_timezone,
        max_workers=settings.max_concurrent_checks,
    )
    try:
        asyncio.run(scheduler.run_forever())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
    finally:
        scheduler.close()
    return 0


def run_server() -> int:
    """Start the status API; the scheduler runs inside its lifespan."""
    console.print(Panel("Starting Endpoint Monitor status API", style="bold green"))
    uvicorn.run(
        "endpoint_monitor.api.server:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def run_check(name: str) -> int:
    """Run one endpoint's check immediately and print the outcome."""
    registry = load_registry()
    endpoint = registry.get(name)
    if endpoint is None:
        console.print(f"[red]Unknown endpoint:[/red] {name}")
        return 2

    strategy = StrategyRegistry.with_defaults().resolve(endpoint)
    if strategy is None:
        console.print(f"[red]No check strategy for kind '{endpoint.kind}'[/red]")
        return 2

    with console.status(f"[bold green]Checking {endpoint.name}..."):
        outcome = strategy.run(endpoint)

    style = "green" if outcome.success else "red"
    console.print(
        Panel(
            f"{outcome.message}\n[dim]{outcome.elapsed_ms:.0f}ms at {outcome.observed_at:%Y-%m-%d %H:%M:%S %Z}[/dim]",
            title=f"{endpoint.name} ({endpoint.kind}) — {outcome.status}",
            border_style=style,
        )
    )
    return 0 if outcome.success else 1


def list_endpoints() -> int:
    """Table of configured endpoints and whether their schedules parse."""
    registry = load_registry()
    strategies = StrategyRegistry.with_defaults()
    tracker = ScheduleTracker()

    table = Table(title=f"Endpoints ({settings.endpoints_file})")
    table.add_column("Name", style="bold")
    table.add_column("Kind")
    table.add_column("Target")
    table.add_column("Schedule")
    table.add_column("Status")

    for endpoint in registry.endpoints:
        try:
            tracker.register(endpoint)
        except ScheduleInvalid:
            status = "[red]invalid schedule[/red]"
        else:
            if strategies.resolve(endpoint) is None:
                status = "[yellow]no strategy[/yellow]"
            else:
                status = "[green]ok[/green]"
        table.add_row(endpoint.name, endpoint.kind, endpoint.target, endpoint.schedule, status)

    console.print(table)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Endpoint Monitor")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="Run the scheduler in the foreground")
    sub.add_parser("serve", help="Start the status API with the scheduler")
    check_parser = sub.add_parser("check", help="Run one endpoint's check now")
    check_parser.add_argument("name", help="Endpoint name")
    sub.add_parser("list", help="List configured endpoints")

    args = parser.parse_args()
    configure_logging()

    if args.command == "run":
        sys.exit(run_worker())
    elif args.command == "serve":
        sys.exit(run_server())
    elif args.command == "check":
        sys.exit(run_check(args.name))
    elif args.command == "list":
        sys.exit(list_endpoints())
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
