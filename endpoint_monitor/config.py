from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Endpoint definitions (YAML, or the JSON appsettings layout)
    endpoints_file: str = "endpoints.yaml"

    # Scheduler defaults; the endpoints file's `scheduler` block overrides these
    scheduler_enabled: bool = True
    tick_interval_seconds: int = 30
    max_concurrent_checks: int = 8  # thread pool size for blocking probes
    schedule_timezone: str = "UTC"  # zone cron expressions are evaluated in

    # Status API
    api_host: str = "127.0.0.1"
    api_port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/endpoint-monitor.log"  # rotated daily; empty disables


settings = Settings()
