"""Tests for the command-line entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from rich.console import Console

from uptime_monitor import main as cli
from uptime_monitor.health.engine import CheckOutcome
from uptime_monitor.services.registry import ServiceRegistry
from uptime_monitor.services.store import ServiceStore


@pytest.fixture
def seeded(tmp_path, monkeypatch, make_config) -> ServiceRegistry:
    monkeypatch.setattr(cli.settings, "data_dir", str(tmp_path))
    monkeypatch.setattr(cli, "console", Console(width=200))
    registry = ServiceRegistry(ServiceStore(cli.settings.services_path))
    registry.create(make_config(name="router", type="ping", host="10.0.0.1"))
    registry.create(make_config(name="nas", type="http_get", host="nas.lan", port=5000))
    return registry


class TestCLI:
    def test_list(self, seeded, capsys) -> None:
        cli.run_list()
        out = capsys.readouterr().out
        assert "router" in out
        assert "nas.lan:5000/" in out
        assert "pending" in out

    def test_check_all_up(self, seeded) -> None:
        with patch(
            "uptime_monitor.health.scheduler.execute_check",
            return_value=CheckOutcome(is_up=True),
        ):
            assert cli.run_check() == 0

    def test_check_reports_failure(self, seeded, capsys) -> None:
        with patch(
            "uptime_monitor.health.scheduler.execute_check",
            return_value=CheckOutcome(is_up=False, error="Ping timeout"),
        ):
            assert cli.run_check() == 1
        assert "Ping timeout" in capsys.readouterr().out
