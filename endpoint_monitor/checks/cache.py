"""Redis cache check — connect, optional AUTH/TLS, PING.

The endpoint's budget is split evenly between connecting and the socket
operations after it, and client retries are off, so a peer that stalls on
connect and then on PING still answers within ``timeout_ms``.
"""

from __future__ import annotations

import logging
import time

import redis
from redis.backoff import NoBackoff
from redis.retry import Retry

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy, timeout_seconds
from endpoint_monitor.endpoints.registry import EndpointDef

logger = logging.getLogger(__name__)

DEFAULT_REDIS_PORT = 6379


class CacheStrategy(CheckStrategy):
    kinds = ("cache", "redis")

    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        port = endpoint.port or DEFAULT_REDIS_PORT
        target = f"{endpoint.host}:{port}"
        logger.debug("Testing Redis connectivity to %s", target)
        t0 = time.perf_counter()
        phase = timeout_seconds(endpoint) / 2
        client = None
        try:
            client = redis.Redis(
                host=endpoint.host,
                port=port,
                username=endpoint.username or None,
                password=endpoint.password or None,
                ssl=endpoint.use_ssl,
                socket_connect_timeout=phase,
                socket_timeout=phase,
                retry=Retry(NoBackoff(), 0),
            )
            p0 = time.perf_counter()
            if not client.ping():
                return CheckOutcome.failed(
                    endpoint, f"Redis at {target} did not answer PING", t0,
                )
            ping_ms = (time.perf_counter() - p0) * 1000
            return CheckOutcome.passed(
                endpoint,
                f"Successfully connected to Redis at {target}. Ping response time: {ping_ms:.1f}ms",
                t0,
            )
        except redis.exceptions.TimeoutError as e:
            message = (
                f"Redis connection to {target} timed out after {endpoint.timeout_ms}ms. Error: {e}"
            )
            logger.warning(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except redis.exceptions.RedisError as e:
            message = f"Redis connection to {target} failed. Error: {e}"
            logger.error(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except Exception as e:
            message = f"Unexpected error testing Redis at {target}. Error: {type(e).__name__}: {e}"
            logger.exception(message)
            return CheckOutcome.failed(endpoint, message, t0)
        finally:
            if client is not None:
                client.close()
