"""Health check engine — one probe strategy per service type.

Supports: Home Assistant, Jellyfin, plain HTTP GET (with optional body
match) and ICMP ping via the system ``ping`` utility. Every probe is a
single synchronous attempt bounded by a timeout and reports a CheckOutcome;
failures are outcomes, never exceptions.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import time
from dataclasses import dataclass

import httpx

from uptime_monitor.services.models import MATCH_ANY, Service, ServiceType

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0  # seconds per attempt
DEFAULT_PING_COUNT = 3


# ── Models ───────────────────────────────────────────────────────────────────


@dataclass
class CheckOutcome:
    """Verdict of a single probe."""

    is_up: bool
    error: str = ""
    status_code: int | None = None
    latency_ms: float = 0.0


# ── HTTP helpers ─────────────────────────────────────────────────────────────


def build_url(service: Service, path: str | None = None) -> str:
    path = service.path if path is None else path
    if not path.startswith("/"):
        path = "/" + path
    return f"http://{service.host}:{service.port}{path}"


def _http_get(url: str, timeout: float) -> tuple[httpx.Response | None, str, float]:
    """GET a URL. Returns (response, connection error, latency ms)."""
    t0 = time.perf_counter()
    try:
        with httpx.Client(timeout=timeout, follow_redirects=False) as client:
            resp = client.get(url)
        return resp, "", round((time.perf_counter() - t0) * 1000, 1)
    except httpx.TimeoutException:
        return None, f"Connection failed: timed out after {timeout:g}s", round(
            (time.perf_counter() - t0) * 1000, 1,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        reason = str(e) or type(e).__name__
        return None, f"Connection failed: {reason}", round((time.perf_counter() - t0) * 1000, 1)


# ── Check strategies ─────────────────────────────────────────────────────────


def check_home_assistant(service: Service, timeout: float = DEFAULT_TIMEOUT) -> CheckOutcome:
    """Anything answering on /api/ counts as up, whatever the status code.

    Home Assistant answers 404 or 401 on /api/ without a token, so only a
    connection-level failure is treated as down.
    """
    resp, error, latency = _http_get(build_url(service, "/api/"), timeout)
    if resp is None:
        return CheckOutcome(is_up=False, error=error, latency_ms=latency)
    return CheckOutcome(is_up=True, status_code=resp.status_code, latency_ms=latency)


def check_jellyfin(service: Service, timeout: float = DEFAULT_TIMEOUT) -> CheckOutcome:
    """Jellyfin's /health endpoint must return exactly 200."""
    resp, error, latency = _http_get(build_url(service, "/health"), timeout)
    if resp is None:
        return CheckOutcome(is_up=False, error=error, latency_ms=latency)
    if resp.status_code != 200:
        return CheckOutcome(
            is_up=False, error=f"HTTP {resp.status_code}",
            status_code=resp.status_code, latency_ms=latency,
        )
    return CheckOutcome(is_up=True, status_code=200, latency_ms=latency)


def check_http_get(service: Service, timeout: float = DEFAULT_TIMEOUT) -> CheckOutcome:
    """GET host:port/path; 200 plus a body match (unless "*") is up."""
    resp, error, latency = _http_get(build_url(service), timeout)
    if resp is None:
        return CheckOutcome(is_up=False, error=error, latency_ms=latency)
    if resp.status_code != 200:
        return CheckOutcome(
            is_up=False, error=f"HTTP {resp.status_code}",
            status_code=resp.status_code, latency_ms=latency,
        )
    if service.expected_response != MATCH_ANY and service.expected_response not in resp.text:
        return CheckOutcome(
            is_up=False, error="Response mismatch", status_code=200, latency_ms=latency,
        )
    return CheckOutcome(is_up=True, status_code=200, latency_ms=latency)


def _ping_command(host: str, count: int, timeout: float) -> list[str]:
    if sys.platform == "win32":
        return ["ping", "-n", str(count), "-w", str(int(timeout * 1000)), host]
    return ["ping", "-c", str(count), "-W", str(max(1, int(timeout))), host]


def check_ping(
    service: Service,
    timeout: float = DEFAULT_TIMEOUT,
    count: int = DEFAULT_PING_COUNT,
) -> CheckOutcome:
    """Send ``count`` echo requests; up iff the ping utility exits 0."""
    host = service.host.strip()
    if not host or host.startswith("-"):
        return CheckOutcome(is_up=False, error=f"Invalid host: {service.host!r}")

    t0 = time.perf_counter()
    try:
        result = subprocess.run(
            _ping_command(host, count, timeout),
            capture_output=True,
            timeout=timeout * count,
        )
    except subprocess.TimeoutExpired:
        return CheckOutcome(
            is_up=False, error="Ping timeout",
            latency_ms=round((time.perf_counter() - t0) * 1000, 1),
        )
    except OSError as e:
        return CheckOutcome(is_up=False, error=f"Ping failed: {e}")

    latency = round((time.perf_counter() - t0) * 1000, 1)
    if result.returncode != 0:
        return CheckOutcome(is_up=False, error="Ping timeout", latency_ms=latency)
    return CheckOutcome(is_up=True, latency_ms=latency)


# Dispatcher
CHECK_RUNNERS = {
    ServiceType.HOME_ASSISTANT: lambda s, timeout, count: check_home_assistant(s, timeout),
    ServiceType.JELLYFIN: lambda s, timeout, count: check_jellyfin(s, timeout),
    ServiceType.HTTP_GET: lambda s, timeout, count: check_http_get(s, timeout),
    ServiceType.PING: lambda s, timeout, count: check_ping(s, timeout, count),
}


def execute_check(
    service: Service,
    timeout: float = DEFAULT_TIMEOUT,
    ping_count: int = DEFAULT_PING_COUNT,
) -> CheckOutcome:
    """Run the strategy matching the service type."""
    runner = CHECK_RUNNERS.get(service.type)
    if runner is None:
        return CheckOutcome(is_up=False, error=f"Unknown service type: {service.type!r}")
    try:
        return runner(service, timeout, ping_count)
    except Exception as e:
        logger.exception("Probe crashed for '%s' (%s)", service.name, service.id)
        return CheckOutcome(is_up=False, error=f"Error: {type(e).__name__}: {e}")
