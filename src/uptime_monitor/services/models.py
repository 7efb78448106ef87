"""Service models — the monitored targets and their type discriminant."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

MAX_SERVICES = 20

MATCH_ANY = "*"


class InvalidServiceError(ValueError):
    """Raised when a service configuration fails validation."""


class InvalidServiceTypeError(InvalidServiceError):
    """Raised for a type slug or discriminant outside the known variants."""


class ServiceType(IntEnum):
    """Kind of probe to run. Values are persisted; never renumber."""

    HOME_ASSISTANT = 0
    JELLYFIN = 1
    HTTP_GET = 2
    PING = 3

    @property
    def slug(self) -> str:
        return _SLUGS[self]

    @classmethod
    def from_slug(cls, slug: str) -> ServiceType:
        for service_type, name in _SLUGS.items():
            if name == slug:
                return service_type
        raise InvalidServiceTypeError(f"Invalid service type: {slug!r}")

    @classmethod
    def from_code(cls, code: Any) -> ServiceType:
        """Decode a persisted discriminant. Rejects bools, strings and out-of-range ints."""
        if isinstance(code, bool) or not isinstance(code, int):
            raise InvalidServiceTypeError(f"Service type must be an integer, got {code!r}")
        try:
            return cls(code)
        except ValueError:
            raise InvalidServiceTypeError(f"Unknown service type discriminant: {code}") from None


_SLUGS = {
    ServiceType.HOME_ASSISTANT: "home_assistant",
    ServiceType.JELLYFIN: "jellyfin",
    ServiceType.HTTP_GET: "http_get",
    ServiceType.PING: "ping",
}


@dataclass
class ServiceConfig:
    """Creation request for a service. ``type`` may be a slug or a ServiceType."""

    name: str
    type: ServiceType | str
    host: str
    port: int = 80
    path: str = "/"
    expected_response: str = MATCH_ANY
    check_interval: int = 60  # seconds

    def resolve_type(self) -> ServiceType:
        if isinstance(self.type, ServiceType):
            return self.type
        return ServiceType.from_slug(self.type)


@dataclass
class Service:
    """A registered monitoring target plus its latest runtime state.

    Timestamps are epoch milliseconds; 0 means "never".
    """

    id: str
    name: str
    type: ServiceType
    host: str
    port: int = 80
    path: str = "/"
    expected_response: str = MATCH_ANY
    check_interval: int = 60

    # Runtime state (never persisted)
    is_up: bool = False
    last_check_at: int = 0
    last_uptime_at: int = 0
    last_error: str = ""

    def copy(self) -> Service:
        return dataclasses.replace(self)

    def to_record(self) -> dict[str, Any]:
        """Durable configuration fields only."""
        return {
            "id": self.id,
            "name": self.name,
            "type": int(self.type),
            "host": self.host,
            "port": self.port,
            "path": self.path,
            "expectedResponse": self.expected_response,
            "checkInterval": self.check_interval,
        }
