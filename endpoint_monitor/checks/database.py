"""Database connectivity check via SQLAlchemy.

SQL Server targets also list their databases; any other dialect gets a
plain ``SELECT 1``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy
from endpoint_monitor.endpoints.registry import EndpointDef

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"mssql": 1433, "postgresql": 5432, "mysql": 3306}


def build_database_url(endpoint: EndpointDef) -> URL:
    dialect = endpoint.database_driver.split("+", 1)[0]
    if dialect == "sqlite":
        # File databases: "database" is the path, there is no server
        return URL.create(endpoint.database_driver, database=endpoint.database)
    return URL.create(
        endpoint.database_driver,
        username=endpoint.username or None,
        password=endpoint.password or None,
        host=endpoint.host,
        port=endpoint.port or DEFAULT_PORTS.get(dialect),
        database=endpoint.database or None,
    )


def connect_args(driver: str, timeout_ms: int) -> dict[str, Any]:
    """Driver-specific timeouts that together fit in ``timeout_ms``.

    pymssql splits the budget between login and query. Network drivers only
    take whole seconds, so each phase gets at least 1s; see ``driver_budget_ms``.
    """
    seconds = timeout_ms / 1000
    if driver.endswith("+pymssql"):
        login = max(1, int(seconds) // 2)
        return {"login_timeout": login, "timeout": max(1, int(seconds) - login)}
    if driver.endswith("+pyodbc"):
        return {"timeout": max(1, int(seconds))}
    if driver.startswith("sqlite"):
        return {"timeout": seconds}
    return {"connect_timeout": max(1, int(seconds))}


def driver_budget_ms(args: dict[str, Any]) -> int:
    """Worst-case wait the driver will actually apply for ``connect_args`` output."""
    return int(sum(args.values()) * 1000)


class DatabaseStrategy(CheckStrategy):
    kinds = ("database", "sqlserver")

    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        logger.debug("Testing database connectivity to %s", endpoint.target)
        t0 = time.perf_counter()
        engine = None
        args = connect_args(endpoint.database_driver, endpoint.timeout_ms)
        if driver_budget_ms(args) > endpoint.timeout_ms:
            logger.warning(
                "Driver %s only takes whole-second timeouts: endpoint %s may wait up to %dms "
                "instead of timeout_ms=%d",
                endpoint.database_driver, endpoint.name, driver_budget_ms(args), endpoint.timeout_ms,
            )
        try:
            engine = create_engine(
                build_database_url(endpoint),
                connect_args=args,
                poolclass=NullPool,
            )
            with engine.connect() as conn:
                if engine.dialect.name == "mssql":
                    names = list(
                        conn.execute(text("SELECT name FROM sys.databases ORDER BY name")).scalars()
                    )
                    message = (
                        f"Successfully connected to SQL Server at {endpoint.target} and found "
                        f"{len(names)} databases: {', '.join(names)}"
                    )
                else:
                    conn.execute(text("SELECT 1"))
                    message = (
                        f"Successfully connected to {engine.dialect.name} database "
                        f"'{endpoint.database}' at {endpoint.target}"
                    )
            return CheckOutcome.passed(endpoint, message, t0)
        except SQLAlchemyError as e:
            message = f"Database connection to {endpoint.target} failed. Error: {e}"
            logger.error(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except Exception as e:
            message = (
                f"Unexpected error testing database at {endpoint.target}. "
                f"Error: {type(e).__name__}: {e}"
            )
            logger.exception(message)
            return CheckOutcome.failed(endpoint, message, t0)
        finally:
            if engine is not None:
                engine.dispose()
