"""Raw TCP port connectivity check."""

from __future__ import annotations

import logging
import socket
import time

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy, timeout_seconds
from endpoint_monitor.endpoints.registry import EndpointDef

logger = logging.getLogger(__name__)


class PortStrategy(CheckStrategy):
    kinds = ("port", "tcp")

    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        logger.debug("Testing port connectivity to %s", endpoint.target)
        t0 = time.perf_counter()
        try:
            sock = socket.create_connection(
                (endpoint.host, endpoint.port), timeout=timeout_seconds(endpoint),
            )
            sock.close()
            return CheckOutcome.passed(
                endpoint, f"Successfully connected to {endpoint.target}", t0,
            )
        except (socket.timeout, TimeoutError):
            message = f"Connection to {endpoint.target} timed out after {endpoint.timeout_ms}ms"
            logger.warning(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except OSError as e:
            message = f"Failed to connect to {endpoint.target}. Error: {e}"
            logger.error(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except Exception as e:
            message = f"Unexpected error testing {endpoint.target}. Error: {type(e).__name__}: {e}"
            logger.exception(message)
            return CheckOutcome.failed(endpoint, message, t0)
