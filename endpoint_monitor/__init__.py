"""Endpoint Monitor — cron-scheduled liveness checks for ports, HTTP, TLS, databases and caches."""

__version__ = "0.1.0"
