"""HTTP(S) check — GET with status code and optional body assertions.

httpx timeouts apply per network operation, so a peer that trickles its body
could keep a plain ``client.get`` busy indefinitely. The response is streamed
instead and the endpoint's ``timeout_ms`` is enforced as an overall deadline
between chunks.
"""

from __future__ import annotations

import logging
import time

import httpx

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy, timeout_seconds
from endpoint_monitor.endpoints.registry import EndpointDef

logger = logging.getLogger(__name__)


class DeadlineExceeded(Exception):
    """The overall request budget ran out while the response was still arriving."""


def build_url(endpoint: EndpointDef) -> str:
    """Explicit ``url`` wins; otherwise derive one from host/port/path."""
    if endpoint.url:
        return endpoint.url
    scheme = "https" if endpoint.use_ssl else "http"
    url = f"{scheme}://{endpoint.host}"
    if endpoint.port and endpoint.port not in (80, 443):
        url += f":{endpoint.port}"
    path = endpoint.path or "/"
    if not path.startswith("/"):
        path = "/" + path
    return url + path


def fetch(client: httpx.Client, url: str, deadline: float) -> tuple[httpx.Response, str]:
    """GET ``url`` and read the whole body, giving up once ``deadline`` passes."""
    with client.stream("GET", url) as resp:
        chunks: list[bytes] = []
        if time.perf_counter() > deadline:
            raise DeadlineExceeded(url)
        for chunk in resp.iter_bytes():
            chunks.append(chunk)
            if time.perf_counter() > deadline:
                raise DeadlineExceeded(url)
        body = b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")
    return resp, body


class HttpStrategy(CheckStrategy):
    kinds = ("http",)

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._transport = transport

    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        url = build_url(endpoint)
        logger.debug("Testing HTTP connectivity to %s", url)
        t0 = time.perf_counter()
        budget = timeout_seconds(endpoint)
        try:
            with httpx.Client(
                timeout=budget, follow_redirects=True, transport=self._transport,
            ) as client:
                resp, body = fetch(client, url, t0 + budget)
        except (httpx.TimeoutException, DeadlineExceeded):
            message = f"HTTP request to {url} timed out after {endpoint.timeout_ms}ms"
            logger.warning(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except httpx.HTTPError as e:
            message = f"HTTP request to {url} failed. Error: {e}"
            logger.error(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except Exception as e:
            message = f"Unexpected error testing {url}. Error: {type(e).__name__}: {e}"
            logger.exception(message)
            return CheckOutcome.failed(endpoint, message, t0)

        if endpoint.expected_status is not None:
            success = resp.status_code == endpoint.expected_status
            message = (
                f"HTTP request to {url} returned expected status code {resp.status_code}"
                if success
                else f"HTTP request to {url} returned status code {resp.status_code}, "
                f"expected {endpoint.expected_status}"
            )
        else:
            success = resp.is_success
            message = (
                f"HTTP request to {url} succeeded with status code {resp.status_code}"
                if success
                else f"HTTP request to {url} failed with status code {resp.status_code}"
            )

        if success and endpoint.expected_content and endpoint.expected_content not in body:
            success = False
            message = f"HTTP response from {url} did not contain expected content"

        if success:
            return CheckOutcome.passed(endpoint, message, t0)
        return CheckOutcome.failed(endpoint, message, t0)
