"""Check strategies — one probe per endpoint kind."""

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy
from endpoint_monitor.checks.cache import CacheStrategy
from endpoint_monitor.checks.certificate import CertificateStrategy
from endpoint_monitor.checks.database import DatabaseStrategy
from endpoint_monitor.checks.http import HttpStrategy
from endpoint_monitor.checks.port import PortStrategy


def default_strategies() -> list[CheckStrategy]:
    """Built-in strategies in resolution order."""
    return [
        PortStrategy(),
        HttpStrategy(),
        CertificateStrategy(),
        DatabaseStrategy(),
        CacheStrategy(),
    ]


__all__ = [
    "CacheStrategy",
    "CertificateStrategy",
    "CheckOutcome",
    "CheckStrategy",
    "DatabaseStrategy",
    "HttpStrategy",
    "PortStrategy",
    "default_strategies",
]
