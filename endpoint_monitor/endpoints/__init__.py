from endpoint_monitor.endpoints.registry import (
    EndpointDef,
    EndpointRegistry,
    MonitorConfig,
    SchedulerConfig,
    parse_endpoint,
    parse_monitor_config,
)

__all__ = [
    "EndpointDef",
    "EndpointRegistry",
    "MonitorConfig",
    "SchedulerConfig",
    "parse_endpoint",
    "parse_monitor_config",
]
