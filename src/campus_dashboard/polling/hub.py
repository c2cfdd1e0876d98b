from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from campus_dashboard.config import SETTINGS
from campus_dashboard.data_models import Category, Record, Snapshot
from campus_dashboard.polling.scheduler import PollHandle, PollingScheduler, SnapshotSource

logger = logging.getLogger(__name__)


class SnapshotHub:
    """
    One scheduler per (category, scope), started on first read.

    A scheduler nobody has read for ``idle_seconds`` is cancelled and dropped,
    so scopes that stop being viewed stop hitting the source. Idle keys are
    evicted on every ``watch`` and by a sweep timer on the loop.
    """

    def __init__(
        self,
        source: SnapshotSource,
        interval_ms: Callable[[Category], int],
        *,
        loop: Any | None = None,
        idle_seconds: float | None = None,
    ) -> None:
        idle_seconds = SETTINGS.poller_idle_seconds if idle_seconds is None else idle_seconds
        if idle_seconds <= 0:
            raise ValueError("idle_seconds must be positive")

        self.source = source
        self.idle_seconds = idle_seconds
        self._interval_ms = interval_ms
        self._loop = loop
        self._schedulers: dict[tuple[str, str], PollingScheduler] = {}
        self._handles: dict[tuple[str, str], PollHandle] = {}
        self._last_access: dict[tuple[str, str], float] = {}
        self._sweep_timer: Any | None = None

    def watch(self, category: Category | str, scope: str) -> PollingScheduler:
        category = Category(category)
        key = (category.value, scope)
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        self._last_access[key] = self._loop.time()
        self.evict_idle()

        scheduler = self._schedulers.get(key)
        if scheduler is None:
            scheduler = PollingScheduler(self.source, loop=self._loop)
            self._handles[key] = scheduler.start(category, scope, self._interval_ms(category))
            self._schedulers[key] = scheduler
        self._schedule_sweep()
        return scheduler

    def latest(self, category: Category | str, scope: str) -> Snapshot | None:
        return self.watch(category, scope).snapshot

    def fetch(self, category: Category | str, scope: str) -> list[Record]:
        """Latest polled records, or a direct read when nothing is polled yet. Never starts a poller."""
        category = Category(category)
        scheduler = self._schedulers.get((category.value, scope))
        if scheduler is not None and scheduler.snapshot is not None:
            return list(scheduler.snapshot.records)
        return list(self.source.fetch(category, scope))

    def evict_idle(self) -> int:
        if self._loop is None:
            return 0
        now = self._loop.time()
        idle = [key for key, seen in self._last_access.items() if now - seen >= self.idle_seconds]
        for key in idle:
            self._drop(key)
        if idle:
            logger.info("Stopped %s idle pollers", len(idle))
        return len(idle)

    def status(self, scope: str) -> dict[str, Any]:
        status: dict[str, Any] = {}
        for (category, watched_scope), scheduler in self._schedulers.items():
            if watched_scope != scope:
                continue
            snapshot = scheduler.snapshot
            status[category] = {
                "active": scheduler.active,
                "failures": scheduler.failures,
                "records": len(snapshot) if snapshot else None,
                "sequence": snapshot.sequence if snapshot else None,
            }
        return status

    def close(self) -> None:
        if self._sweep_timer is not None:
            self._sweep_timer.cancel()
            self._sweep_timer = None
        for handle in self._handles.values():
            handle.cancel()
        logger.info("Cancelled %s pollers", len(self._handles))
        self._handles.clear()
        self._schedulers.clear()
        self._last_access.clear()

    def _drop(self, key: tuple[str, str]) -> None:
        handle = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()
        self._schedulers.pop(key, None)
        self._last_access.pop(key, None)

    def _schedule_sweep(self) -> None:
        if self._sweep_timer is not None or not self._schedulers:
            return
        self._sweep_timer = self._loop.call_later(self.idle_seconds, self._sweep)

    def _sweep(self) -> None:
        self._sweep_timer = None
        self.evict_idle()
        self._schedule_sweep()
