"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from uptime_monitor.services.models import ServiceConfig
from uptime_monitor.services.registry import ServiceRegistry
from uptime_monitor.services.store import ServiceStore


def _make_config(name: str = "svc", type: str = "http_get", **kw) -> ServiceConfig:
    kw.setdefault("host", "10.0.0.1")
    return ServiceConfig(name=name, type=type, **kw)


@pytest.fixture
def make_config():
    """Factory for ServiceConfig with test defaults."""
    return _make_config


@pytest.fixture
def store(tmp_path: Path) -> ServiceStore:
    return ServiceStore(tmp_path / "services.yaml")


@pytest.fixture
def registry(store: ServiceStore) -> ServiceRegistry:
    return ServiceRegistry(store)


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
