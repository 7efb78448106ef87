"""Entry point for the uptime monitor."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from uptime_monitor.config import settings
from uptime_monitor.health.scheduler import CheckScheduler, now_ms
from uptime_monitor.health.status import service_status
from uptime_monitor.services.registry import ServiceRegistry
from uptime_monitor.services.store import ServiceStore

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)


def _load_registry() -> ServiceRegistry:
    store = ServiceStore(settings.services_path, max_services=settings.max_services)
    registry = ServiceRegistry(store, max_services=settings.max_services)
    registry.load()
    return registry


def _status_table(rows: list[dict], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Target")
    table.add_column("Interval", justify="right")
    table.add_column("Status")
    table.add_column("Error")
    for row in rows:
        if row["secondsSinceLastCheck"] < 0:
            status = "[dim]pending[/dim]"
        else:
            status = "[green]UP[/green]" if row["isUp"] else "[red]DOWN[/red]"
        target = row["host"] if row["type"] == "ping" else f"{row['host']}:{row['port']}{row['path']}"
        table.add_row(
            row["id"], row["name"], row["type"], target,
            f"{row['checkInterval']}s", status, row["lastError"],
        )
    return table


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting Uptime Monitor", style="bold green"))
    uvicorn.run(
        "uptime_monitor.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def run_list() -> None:
    """Print the persisted services."""
    registry = _load_registry()
    now = now_ms()
    rows = [service_status(s, now) for s in registry.list()]
    console.print(_status_table(rows, f"Services ({len(rows)}/{registry.max_services})"))


def run_check() -> int:
    """Probe every persisted service once and print the results."""
    registry = _load_registry()
    scheduler = CheckScheduler(
        registry,
        probe_timeout=settings.probe_timeout,
        ping_count=settings.ping_count,
    )
    with console.status("[bold green]Checking services..."):
        scheduler.tick()

    now = now_ms()
    rows = [service_status(s, now) for s in registry.list()]
    console.print(_status_table(rows, "Check results"))
    return 0 if all(r["isUp"] for r in rows) else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Uptime Monitor")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server and check loop")
    sub.add_parser("list", help="List configured services")
    sub.add_parser("check", help="Check every service once (exit 1 if any is down)")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "list":
        run_list()
    elif args.command == "check":
        sys.exit(run_check())
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
