"""Network readiness polling before the nightly run.

The nightly run often starts right after wake or login, before Wi-Fi or VPN
is up. It polls a well-known URL with HEAD requests at a fixed interval
until it answers or every attempt has failed.
"""

import logging
import re
import time
from collections.abc import Callable

import httpx

from autopkg_ops.executor import run_command

logger = logging.getLogger(__name__)

# Timeout for a single readiness probe (seconds)
PROBE_TIMEOUT = 10.0


class NetworkUnavailableError(Exception):
    """Raised when every readiness attempt failed."""

    def __init__(self, elapsed: int):
        self.elapsed = elapsed
        super().__init__(f"Network did not become available after {elapsed} seconds")


def is_reachable(url: str, client: httpx.Client) -> bool:
    """HEAD the URL; any 2xx/3xx answer counts as reachable."""
    try:
        response = client.head(url)
    except httpx.HTTPError as e:
        logger.debug(f"Readiness probe failed: {e}")
        return False
    return response.status_code < 400


def primary_ipv4() -> str | None:
    """First non-loopback IPv4 address reported by ifconfig."""
    output = run_command(["ifconfig"], timeout=10)
    for address in re.findall(r"\binet (\d+\.\d+\.\d+\.\d+)", output):
        if address != "127.0.0.1":
            return address
    return None


def dns_lookup(hostname: str, server: str) -> str | None:
    """Resolve ``hostname`` against ``server`` with dig."""
    answer = run_command(["dig", "+short", hostname, f"@{server}"], timeout=15)
    return " ".join(answer.split()) or None


def wait_for_network(
    url: str,
    max_retries: int,
    retry_interval: int,
    on_wait: Callable[[int], None] | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll ``url`` until it answers.

    Args:
        url: URL probed with HEAD requests
        max_retries: Number of attempts
        retry_interval: Seconds between attempts
        on_wait: Called with the elapsed seconds before each wait
        client: Optional httpx client (tests inject a MockTransport)
        sleep: Sleep function (tests pass a no-op)

    Returns:
        Seconds elapsed before the network answered

    Raises:
        NetworkUnavailableError: If no attempt succeeded
    """
    owns_client = client is None
    client = client or httpx.Client(timeout=PROBE_TIMEOUT, follow_redirects=True)
    elapsed = 0
    try:
        for attempt in range(1, max_retries + 1):
            if is_reachable(url, client):
                return elapsed
            if attempt == max_retries:
                break
            if on_wait is not None:
                on_wait(elapsed)
            sleep(retry_interval)
            elapsed += retry_interval
    finally:
        if owns_client:
            client.close()
    raise NetworkUnavailableError(elapsed)
