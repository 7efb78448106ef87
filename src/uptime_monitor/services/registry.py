"""Service registry — the bounded, ordered set of monitored services.

Single owner of every Service instance. The API adds and removes entries,
the scheduler updates runtime state; readers get copies.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import TYPE_CHECKING

from uptime_monitor.services.models import (
    MAX_SERVICES,
    InvalidServiceError,
    Service,
    ServiceConfig,
)
from uptime_monitor.services.store import PersistenceError

if TYPE_CHECKING:
    from uptime_monitor.services.store import ServiceStore

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base class for registry failures surfaced to callers."""


class CapacityExceededError(RegistryError):
    """Raised when creating a service would exceed the registry capacity."""


class ServiceNotFoundError(RegistryError):
    """Raised when no service matches the given id."""

    def __init__(self, service_id: str) -> None:
        self.service_id = service_id
        super().__init__(f"Service not found: {service_id}")


class ServiceRegistry:
    """Ordered, capacity-bounded collection of services.

    Every read and mutation runs under one lock so the scheduler thread and
    API handlers never see a half-applied change.
    """

    def __init__(
        self,
        store: ServiceStore | None = None,
        max_services: int = MAX_SERVICES,
    ) -> None:
        self._store = store
        self.max_services = max_services
        self._services: list[Service] = []
        self._issued_ids: set[str] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)

    def is_full(self) -> bool:
        return len(self) >= self.max_services

    def load(self) -> list[Service]:
        """Replace the registry contents with what the store holds."""
        if self._store is None:
            return []
        loaded = self._store.load()[: self.max_services]
        with self._lock:
            self._services = loaded
            self._issued_ids.update(s.id for s in loaded)
        logger.info("Service registry loaded: %d services", len(loaded))
        return self.list()

    # ── CRUD ──────────────────────────────────────────────────────────────

    def create(self, config: ServiceConfig) -> str:
        """Validate, append and persist a new service. Returns its id."""
        with self._lock:
            if len(self._services) >= self.max_services:
                raise CapacityExceededError(
                    f"Maximum of {self.max_services} services reached"
                )

            service_type = config.resolve_type()
            if config.check_interval <= 0:
                raise InvalidServiceError(
                    f"checkInterval must be positive, got {config.check_interval}"
                )

            service = Service(
                id=self._new_id(),
                name=config.name,
                type=service_type,
                host=config.host,
                port=config.port,
                path=config.path,
                expected_response=config.expected_response,
                check_interval=config.check_interval,
            )
            self._services.append(service)
            self._save_locked()

        logger.info(
            "Added service '%s' (%s %s) id=%s",
            service.name, service.type.slug, service.host, service.id,
        )
        return service.id

    def list(self) -> list[Service]:
        """Snapshot of all services in insertion order."""
        with self._lock:
            return [s.copy() for s in self._services]

    def get(self, service_id: str) -> Service:
        with self._lock:
            return self._find(service_id).copy()

    def delete(self, service_id: str) -> None:
        """Remove a service, keeping the order of the rest, and persist."""
        with self._lock:
            service = self._find(service_id)
            self._services.remove(service)
            self._save_locked()
        logger.info("Removed service '%s' id=%s", service.name, service_id)

    # ── Runtime state (scheduler only, never persisted) ───────────────────

    def mark_checking(self, service_id: str, timestamp: int) -> None:
        """Stamp last_check_at before a probe starts. Never moves it backwards."""
        with self._lock:
            service = self._find(service_id)
            service.last_check_at = max(service.last_check_at, timestamp)

    def update_runtime_state(
        self,
        service_id: str,
        is_up: bool,
        error: str,
        check_timestamp: int,
    ) -> bool | None:
        """Record a probe result. Returns the previous is_up value.

        Returns None and leaves the service untouched when a newer probe has
        already stamped it (overlapping manual check and tick).
        """
        with self._lock:
            service = self._find(service_id)
            if check_timestamp < service.last_check_at:
                return None
            was_up = service.is_up
            service.is_up = is_up
            service.last_check_at = check_timestamp
            if is_up:
                service.last_uptime_at = check_timestamp
                service.last_error = ""
            else:
                service.last_error = error
            return was_up

    # ── Internals ─────────────────────────────────────────────────────────

    def _find(self, service_id: str) -> Service:
        for service in self._services:
            if service.id == service_id:
                return service
        raise ServiceNotFoundError(service_id)

    def _new_id(self) -> str:
        while True:
            candidate = uuid.uuid4().hex[:12]
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def _save_locked(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._services)
        except PersistenceError as e:
            # In-memory change stands; the file catches up on the next save.
            logger.error("Failed to persist services: %s", e)
