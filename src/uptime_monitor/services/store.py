"""Service store — persists service configuration to a YAML document.

Only configuration fields are written. Runtime state (up/down, timestamps,
last error) is rebuilt by the scheduler after a restart.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from uptime_monitor.services.models import MAX_SERVICES, Service, ServiceType

logger = logging.getLogger(__name__)

DATA_DIR = Path("data")
STORE_PATH = DATA_DIR / "services.yaml"


class PersistenceError(Exception):
    """Raised when the services file cannot be written."""


class ServiceStore:
    """YAML-file-backed storage for service configuration."""

    def __init__(self, path: Path | str | None = None, max_services: int = MAX_SERVICES) -> None:
        self._path = Path(path) if path else STORE_PATH
        self.max_services = max_services

    @property
    def path(self) -> Path:
        return self._path

    def save(self, services: Iterable[Service]) -> None:
        """Write all services, replacing the previous file atomically."""
        document = {"services": [s.to_record() for s in services]}
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                yaml.safe_dump(
                    document, fh, allow_unicode=True, sort_keys=False, default_flow_style=False,
                )
            os.replace(tmp_name, self._path)
        except (OSError, yaml.YAMLError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write {self._path}: {e}") from e

        logger.debug("Saved %d services to %s", len(document["services"]), self._path)

    def load(self) -> list[Service]:
        """Read services from disk. Missing or unreadable files yield an empty list."""
        if not self._path.exists():
            logger.info("No services file at %s, starting fresh", self._path)
            return []

        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to parse %s: %s", self._path, e)
            return []

        if raw is None:
            return []
        if not isinstance(raw, dict) or not isinstance(raw.get("services") or [], list):
            logger.warning("Ignoring %s: expected a mapping with a 'services' list", self._path)
            return []

        services: list[Service] = []
        seen: set[str] = set()
        entries = raw.get("services") or []
        for index, entry in enumerate(entries):
            if len(services) >= self.max_services:
                logger.warning(
                    "Capacity of %d reached, dropping %d remaining entries",
                    self.max_services, len(entries) - index,
                )
                break
            try:
                service = _parse_entry(entry)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed service entry #%d: %s", index, e)
                continue
            if service.id in seen:
                logger.warning("Skipping duplicate service id %s", service.id)
                continue
            seen.add(service.id)
            services.append(service)

        logger.info("Loaded %d services from %s", len(services), self._path)
        return services


def _parse_entry(raw: Any) -> Service:
    if not isinstance(raw, dict):
        raise TypeError(f"expected a mapping, got {type(raw).__name__}")

    service_id = str(raw["id"]).strip()
    if not service_id:
        raise ValueError("empty id")

    check_interval = _int_field(raw, "checkInterval", 60)
    if check_interval <= 0:
        raise ValueError(f"checkInterval must be positive, got {check_interval}")

    return Service(
        id=service_id,
        name=str(raw.get("name", "")),
        type=ServiceType.from_code(raw["type"]),
        host=str(raw.get("host", "")),
        port=_int_field(raw, "port", 80),
        path=str(raw.get("path", "/")),
        expected_response=str(raw.get("expectedResponse", "*")),
        check_interval=check_interval,
    )


def _int_field(raw: dict[str, Any], key: str, default: int) -> int:
    """Integer field or its default; bools and floats are treated as corruption."""
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    return value
