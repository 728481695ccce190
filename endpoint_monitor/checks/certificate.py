"""TLS certificate expiry check.

The handshake accepts any certificate: the point is to read the expiry date,
not to validate the chain. The DER blob is parsed with ``cryptography``
because ``getpeercert()`` returns nothing for unverified peers.
"""

from __future__ import annotations

import logging
import socket
import ssl
import time
from datetime import datetime, timezone

from cryptography import x509

from endpoint_monitor.checks.base import CheckOutcome, CheckStrategy, timeout_seconds
from endpoint_monitor.endpoints.registry import EndpointDef

logger = logging.getLogger(__name__)

DEFAULT_TLS_PORT = 443


def fetch_certificate(host: str, port: int, timeout: float) -> bytes | None:
    """Return the peer certificate in DER form, or None if none was presented.

    ``timeout`` covers connect and handshake together.
    """
    deadline = time.perf_counter() + timeout
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.settimeout(max(deadline - time.perf_counter(), 0.001))
        with ctx.wrap_socket(sock, server_hostname=host) as ssock:
            return ssock.getpeercert(binary_form=True)


def certificate_expiry(der: bytes) -> datetime:
    cert = x509.load_der_x509_certificate(der)
    return cert.not_valid_after_utc


class CertificateStrategy(CheckStrategy):
    kinds = ("certificate", "tls")

    def run(self, endpoint: EndpointDef) -> CheckOutcome:
        port = endpoint.port or DEFAULT_TLS_PORT
        target = f"{endpoint.host}:{port}"
        logger.debug("Testing SSL certificate for %s", target)
        t0 = time.perf_counter()
        try:
            der = fetch_certificate(endpoint.host, port, timeout_seconds(endpoint))
            if not der:
                return CheckOutcome.failed(endpoint, f"No certificate found for {target}", t0)

            expiry = certificate_expiry(der)
            days_left = (expiry - datetime.now(timezone.utc)).days
        except (socket.timeout, TimeoutError):
            message = f"Connection to {target} timed out after {endpoint.timeout_ms}ms"
            logger.warning(message)
            return CheckOutcome.failed(endpoint, message, t0)
        except Exception as e:
            message = f"Failed to check certificate for {target}. Error: {type(e).__name__}: {e}"
            logger.error(message)
            return CheckOutcome.failed(endpoint, message, t0)

        minimum = endpoint.min_certificate_days_valid
        if days_left > minimum:
            return CheckOutcome.passed(
                endpoint,
                f"Certificate for {endpoint.host} is valid for {days_left} days "
                f"(expires on {expiry:%Y-%m-%d})",
                t0,
            )
        return CheckOutcome.failed(
            endpoint,
            f"Certificate for {endpoint.host} expires in {days_left} days on {expiry:%Y-%m-%d}, "
            f"which is less than the minimum of {minimum} days",
            t0,
        )
