"""Status view — API-facing snapshot of a service. Pure, never mutates."""

from __future__ import annotations

from typing import Any

from uptime_monitor.services.models import Service

NEVER = -1


def seconds_since(timestamp: int, now: int) -> int:
    """Whole seconds from an epoch-ms timestamp to now, or -1 if it never happened."""
    if timestamp <= 0:
        return NEVER
    return max(0, (now - timestamp) // 1000)


def service_status(service: Service, now: int) -> dict[str, Any]:
    return {
        "id": service.id,
        "name": service.name,
        "type": service.type.slug,
        "host": service.host,
        "port": service.port,
        "path": service.path,
        "expectedResponse": service.expected_response,
        "checkInterval": service.check_interval,
        "isUp": service.is_up,
        "secondsSinceLastCheck": seconds_since(service.last_check_at, now),
        "lastError": service.last_error,
    }


def service_detail(service: Service, now: int) -> dict[str, Any]:
    """Status plus time since the last successful check."""
    detail = service_status(service, now)
    detail["secondsSinceLastUp"] = seconds_since(service.last_uptime_at, now)
    return detail
