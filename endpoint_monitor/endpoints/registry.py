"""Endpoint registry — loads endpoints.yaml and provides typed models.

Accepts the native snake_case layout as well as the PascalCase/camelCase
``MonitorConfig`` layout of appsettings.json files (JSON parses as YAML).
Malformed or duplicate entries are skipped, never fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from endpoint_monitor.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE = "*/5 * * * *"
DEFAULT_TIMEOUT_MS = 5_000


# ── Data models ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EndpointDef:
    """One configured target, immutable for the process lifetime."""

    name: str
    kind: str  # port | http | certificate | database | cache
    host: str
    port: int = 0
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    schedule: str = DEFAULT_SCHEDULE

    # HTTP
    url: str = ""
    path: str = ""
    use_ssl: bool = False
    expected_status: int | None = None
    expected_content: str = ""

    # Certificate
    min_certificate_days_valid: int = 30

    # Database
    database: str = "master"
    database_driver: str = "mssql+pymssql"

    # Database / cache credentials
    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class SchedulerConfig:
    enabled: bool = True
    tick_interval_seconds: int = 30


@dataclass
class MonitorConfig:
    """Everything read from the endpoints file."""

    endpoints: list[EndpointDef] = field(default_factory=list)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


# ── Registry ─────────────────────────────────────────────────────────────────


class EndpointRegistry:
    """Loads and caches endpoint definitions from the endpoints file."""

    def __init__(self, path: Path | None = None, defaults: SchedulerConfig | None = None) -> None:
        self._path = path or Path("endpoints.yaml")
        self._defaults = defaults or SchedulerConfig()
        self._config = MonitorConfig(scheduler=_copy_scheduler(self._defaults))
        self._loaded = False

    def load(self, force: bool = False) -> MonitorConfig:
        """Parse the endpoints file and return the MonitorConfig."""
        if self._loaded and not force:
            return self._config

        self._config = MonitorConfig(scheduler=_copy_scheduler(self._defaults))
        self._loaded = True

        if not self._path.exists():
            logger.warning("Endpoints file not found: %s", self._path)
            return self._config

        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except Exception as e:
            logger.error("Failed to parse %s: %s", self._path, e)
            return self._config

        self._config = parse_monitor_config(raw, self._defaults)
        logger.info("Loaded %d endpoints from %s", len(self._config.endpoints), self._path)
        return self._config

    @property
    def endpoints(self) -> list[EndpointDef]:
        return self.load().endpoints

    @property
    def scheduler(self) -> SchedulerConfig:
        return self.load().scheduler

    def get(self, name: str) -> EndpointDef | None:
        return next((e for e in self.endpoints if e.name == name), None)

    def reload(self) -> MonitorConfig:
        """Force reload from disk."""
        return self.load(force=True)

    def to_dict(self) -> list[dict[str, Any]]:
        """Serialize all endpoints for the API (credentials omitted)."""
        return [endpoint_to_dict(e) for e in self.endpoints]


# ── Parsers ──────────────────────────────────────────────────────────────────


def parse_monitor_config(raw: Any, defaults: SchedulerConfig | None = None) -> MonitorConfig:
    """Build a MonitorConfig from the decoded file contents."""
    defaults = defaults or SchedulerConfig()
    if not isinstance(raw, dict):
        logger.error("Endpoints file must contain a mapping, got %s", type(raw).__name__)
        return MonitorConfig(scheduler=_copy_scheduler(defaults))

    top = _normalize(raw)
    # appsettings.json nests everything under "MonitorConfig"
    if isinstance(top.get("monitorconfig"), dict):
        top = _normalize(top["monitorconfig"])

    scheduler = _parse_scheduler(top.get("scheduler") or {}, defaults)

    endpoints: list[EndpointDef] = []
    seen: set[str] = set()
    for entry in top.get("endpoints") or []:
        try:
            endpoint = parse_endpoint(entry)
        except ConfigError as e:
            logger.warning("Skipping malformed endpoint entry: %s", e)
            continue
        if endpoint.name in seen:
            logger.warning("Skipping duplicate endpoint name: %s", endpoint.name)
            continue
        seen.add(endpoint.name)
        endpoints.append(endpoint)

    return MonitorConfig(endpoints=endpoints, scheduler=scheduler)


def parse_endpoint(raw: Any) -> EndpointDef:
    """Parse one endpoint entry. Raises ConfigError when it is unusable."""
    if not isinstance(raw, dict):
        raise ConfigError(f"expected a mapping, got {type(raw).__name__}")
    e = _normalize(raw)

    name = _text(e, "name")
    if not name:
        raise ConfigError("'name' is required")
    host = _text(e, "host")
    if not host:
        raise ConfigError(f"endpoint {name}: 'host' is required")
    kind = _text(e, "kind", "testtype", "type")
    if not kind:
        raise ConfigError(f"endpoint {name}: 'kind' is required")

    expected_status = _first(e, "expectedstatus", "expectedstatuscode")

    return EndpointDef(
        name=name,
        kind=kind.lower(),
        host=host,
        port=_int(e, name, 0, "port"),
        timeout_ms=_int(e, name, DEFAULT_TIMEOUT_MS, "timeoutms", "timeout"),
        schedule=_text(e, "schedule") or DEFAULT_SCHEDULE,
        url=_text(e, "url"),
        path=_text(e, "path"),
        use_ssl=_bool(e, name, False, "usessl", "ssl"),
        expected_status=_coerce_int(name, "expected_status", expected_status)
        if expected_status is not None
        else None,
        expected_content=_text(e, "expectedcontent"),
        min_certificate_days_valid=_int(e, name, 30, "mincertificatedaysvalid", "mindaysvalid"),
        database=_text(e, "database", "sqlserverdatabase") or "master",
        database_driver=_text(e, "databasedriver", "driver") or "mssql+pymssql",
        username=_text(e, "username", "sqlserverusername", "redisusername"),
        password=_text(e, "password", "sqlserverpassword", "redispassword"),
    )


def endpoint_to_dict(e: EndpointDef) -> dict[str, Any]:
    return {
        "name": e.name,
        "kind": e.kind,
        "host": e.host,
        "port": e.port,
        "timeout_ms": e.timeout_ms,
        "schedule": e.schedule,
        "url": e.url,
    }


def _parse_scheduler(raw: Any, defaults: SchedulerConfig) -> SchedulerConfig:
    if not isinstance(raw, dict):
        return _copy_scheduler(defaults)
    s = _normalize(raw)
    try:
        enabled = _coerce_bool("scheduler", "enabled", s.get("enabled", defaults.enabled))
    except ConfigError as e:
        logger.warning("Ignoring scheduler setting: %s", e)
        enabled = defaults.enabled
    interval = _first(s, "tickintervalseconds", "defaultintervalseconds", "intervalseconds")
    try:
        interval = int(interval) if interval is not None else defaults.tick_interval_seconds
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer scheduler interval: %r", interval)
        interval = defaults.tick_interval_seconds
    return SchedulerConfig(enabled=enabled, tick_interval_seconds=max(1, interval))


def _copy_scheduler(s: SchedulerConfig) -> SchedulerConfig:
    return SchedulerConfig(enabled=s.enabled, tick_interval_seconds=s.tick_interval_seconds)


def _normalize(raw: dict[str, Any]) -> dict[str, Any]:
    # "TestType", "test_type" and "testType" all become "testtype"
    return {str(k).replace("_", "").replace("-", "").lower(): v for k, v in raw.items()}


def _first(e: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if e.get(k) is not None:
            return e[k]
    return None


def _text(e: dict[str, Any], *keys: str) -> str:
    value = _first(e, *keys)
    return str(value).strip() if value is not None else ""


def _int(e: dict[str, Any], name: str, default: int, *keys: str) -> int:
    value = _first(e, *keys)
    if value is None:
        return default
    return _coerce_int(name, keys[0], value)


def _coerce_int(name: str, key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"endpoint {name}: '{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"endpoint {name}: '{key}' must be an integer, got {value!r}") from None


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _bool(e: dict[str, Any], name: str, default: bool, *keys: str) -> bool:
    value = _first(e, *keys)
    if value is None:
        return default
    return _coerce_bool(f"endpoint {name}", keys[0], value)


def _coerce_bool(owner: str, key: str, value: Any) -> bool:
    # Quoted "false" in YAML/JSON is a string, not a falsy value
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigError(f"{owner}: '{key}' must be true or false, got {value!r}")
