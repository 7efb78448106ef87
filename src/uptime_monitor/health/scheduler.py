"""Check scheduler — runs due health checks on a fixed global tick.

Each tick walks the registry in order and probes every service whose own
check interval has elapsed. Probes run on a single worker thread so a slow
host delays the remaining checks of that tick but never the API.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from uptime_monitor.health.engine import (
    DEFAULT_PING_COUNT,
    DEFAULT_TIMEOUT,
    CheckOutcome,
    execute_check,
)
from uptime_monitor.services.models import Service
from uptime_monitor.services.registry import ServiceNotFoundError, ServiceRegistry

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 5.0  # seconds


def now_ms() -> int:
    return int(time.time() * 1000)


def is_due(service: Service, now: int) -> bool:
    """A never-checked service is always due; otherwise its interval must have elapsed."""
    if service.last_check_at == 0:
        return True
    return now - service.last_check_at >= service.check_interval * 1000


@dataclass
class CheckRecord:
    """What happened to one service during a pass."""

    service_id: str
    name: str
    outcome: CheckOutcome
    checked_at: int
    transitioned: bool
    applied: bool = True  # False when a newer probe already recorded its result


class CheckScheduler:
    """Drives periodic checks for every service in the registry."""

    def __init__(
        self,
        registry: ServiceRegistry,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        probe_timeout: float = DEFAULT_TIMEOUT,
        ping_count: int = DEFAULT_PING_COUNT,
        checker: Callable[[Service], CheckOutcome] | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.registry = registry
        self.tick_interval = tick_interval
        self._checker = checker or functools.partial(
            execute_check, timeout=probe_timeout, ping_count=ping_count,
        )
        self._clock = clock
        self._executor: ThreadPoolExecutor | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False

    # ── Synchronous passes ────────────────────────────────────────────────

    def tick(self, now: int | None = None) -> list[CheckRecord]:
        """Run one due-check pass over the registry, in registry order."""
        now = self._clock() if now is None else now
        records = []
        for service in self.registry.list():
            if not is_due(service, now):
                continue
            record = self._run_check(service, now)
            if record is not None:
                records.append(record)
        return records

    def check_now(self, service_id: str) -> CheckRecord:
        """Probe one service immediately, ignoring its interval."""
        service = self.registry.get(service_id)
        record = self._run_check(service, self._clock())
        if record is None:
            raise ServiceNotFoundError(service_id)
        return record

    def _run_check(self, service: Service, now: int) -> CheckRecord | None:
        try:
            # Stamped before probing so a hung probe isn't re-run next tick
            self.registry.mark_checking(service.id, now)
        except ServiceNotFoundError:
            return None

        outcome = self._checker(service)

        try:
            was_up = self.registry.update_runtime_state(
                service.id, outcome.is_up, outcome.error, now,
            )
        except ServiceNotFoundError:
            logger.debug("Service %s removed during its check, result dropped", service.id)
            return None

        if was_up is None:
            logger.debug("Stale result for %s dropped, a newer check already landed", service.name)
            return CheckRecord(
                service_id=service.id,
                name=service.name,
                outcome=outcome,
                checked_at=now,
                transitioned=False,
                applied=False,
            )

        transitioned = was_up != outcome.is_up
        if transitioned:
            if outcome.is_up:
                logger.info("Service '%s' is now UP", service.name)
            else:
                logger.warning("Service '%s' is now DOWN: %s", service.name, outcome.error)

        logger.debug(
            "Check %s (%s): %s (%.0fms)",
            service.name, service.type.slug,
            "up" if outcome.is_up else "down", outcome.latency_ms,
        )
        return CheckRecord(
            service_id=service.id,
            name=service.name,
            outcome=outcome,
            checked_at=now,
            transitioned=transitioned,
        )

    # ── Background loop ───────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the background tick loop."""
        if self._running:
            return
        self._running = True
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="checks")
        self._task = asyncio.create_task(self._tick_loop(), name="check-scheduler")
        logger.info(
            "Check scheduler started: tick=%ss, %d services",
            self.tick_interval, len(self.registry),
        )

    async def stop(self) -> None:
        """Stop the tick loop. A probe already in flight finishes on its own."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        logger.info("Check scheduler stopped")

    async def _tick_loop(self) -> None:
        loop = asyncio.get_event_loop()
        while self._running:
            try:
                await loop.run_in_executor(self._executor, self.tick)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Check pass failed")
            await asyncio.sleep(self.tick_interval)
