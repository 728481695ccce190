"""Exception types shared across the monitor."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for endpoint monitor errors."""


class ConfigError(MonitorError):
    """Raised when an endpoint entry in the configuration file is malformed."""


class ScheduleInvalid(MonitorError):
    """Raised when an endpoint's cron expression cannot be parsed."""

    def __init__(self, endpoint_name: str, expression: str, reason: str) -> None:
        self.endpoint_name = endpoint_name
        self.expression = expression
        self.reason = reason
        super().__init__(
            f"Invalid cron schedule '{expression}' for endpoint {endpoint_name}: {reason}"
        )
