"""Service registry subsystem — models, registry, YAML store."""

from uptime_monitor.services.models import (
    MAX_SERVICES,
    InvalidServiceError,
    InvalidServiceTypeError,
    Service,
    ServiceConfig,
    ServiceType,
)
from uptime_monitor.services.registry import (
    CapacityExceededError,
    RegistryError,
    ServiceNotFoundError,
    ServiceRegistry,
)
from uptime_monitor.services.store import PersistenceError, ServiceStore

__all__ = [
    "MAX_SERVICES",
    "CapacityExceededError",
    "InvalidServiceError",
    "InvalidServiceTypeError",
    "PersistenceError",
    "RegistryError",
    "Service",
    "ServiceConfig",
    "ServiceNotFoundError",
    "ServiceRegistry",
    "ServiceStore",
    "ServiceType",
]
