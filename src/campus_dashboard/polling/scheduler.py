from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable, Protocol

from campus_dashboard.data_models import Category, Record, Snapshot

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    def fetch(self, category: Category, scope: str) -> list[Record]:
        ...


SnapshotListener = Callable[[Snapshot], None]


class PollingScheduler:
    """
    Refreshes one category for one scope on a fixed interval.

    The scheduler owns the latest snapshot. Fetches run in the loop's executor;
    timer and completion callbacks run on the loop thread. Fetches may overlap,
    so every fetch is stamped with a sequence number and a completion older
    than the snapshot already applied is dropped.
    """

    def __init__(
        self,
        source: SnapshotSource,
        *,
        loop: Any | None = None,
        on_snapshot: SnapshotListener | None = None,
    ) -> None:
        self._source = source
        self._loop = loop
        self._on_snapshot = on_snapshot
        self._timer: Any | None = None
        self._active = False
        self._interval_seconds = 0.0
        self._sequence = 0
        self._applied_sequence = 0

        self.category: Category | None = None
        self.scope: str | None = None
        self.snapshot: Snapshot | None = None
        self.failures = 0

    @property
    def active(self) -> bool:
        return self._active

    def start(self, category: Category | str, scope: str, interval_ms: int) -> PollHandle:
        if self._active:
            raise RuntimeError(f"Scheduler already polling {self.category.value} for {self.scope}")
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        self.category = Category(category)
        self.scope = scope
        self._interval_seconds = interval_ms / 1000
        self._active = True
        logger.info("Polling %s for scope=%s every %sms", self.category.value, scope, interval_ms)

        self._tick()
        return PollHandle(self)

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.info("Stopped polling %s for scope=%s", self.category.value, self.scope)

    def _tick(self) -> None:
        if not self._active:
            return

        self._sequence += 1
        future = self._loop.run_in_executor(None, self._source.fetch, self.category, self.scope)
        future.add_done_callback(partial(self._on_fetch_done, self._sequence))
        self._timer = self._loop.call_later(self._interval_seconds, self._tick)

    def _on_fetch_done(self, sequence: int, future: Any) -> None:
        if future.cancelled():
            return
        # Always retrieve the exception so asyncio does not report it as unhandled.
        error = future.exception()

        if not self._active:
            logger.debug("Discarding %s fetch #%s completed after cancel", self.category.value, sequence)
            return

        if error is not None:
            self.failures += 1
            logger.warning(
                "Fetching %s for scope=%s failed, keeping previous snapshot: %s",
                self.category.value,
                self.scope,
                error,
            )
            return

        if sequence < self._applied_sequence:
            logger.debug(
                "Discarding stale %s fetch #%s (already applied #%s)",
                self.category.value,
                sequence,
                self._applied_sequence,
            )
            return

        self._applied_sequence = sequence
        self.snapshot = Snapshot(
            category=self.category,
            scope=self.scope,
            records=tuple(future.result()),
            sequence=sequence,
            fetched_at=self._loop.time(),
        )

        if self._on_snapshot is None:
            return
        try:
            self._on_snapshot(self.snapshot)
        except Exception as exc:
            logger.warning("Snapshot listener for %s failed: %s", self.category.value, exc)


class PollHandle:
    """Cancel token returned by ``PollingScheduler.start``. Safe to cancel twice."""

    def __init__(self, scheduler: PollingScheduler) -> None:
        self._scheduler = scheduler

    @property
    def snapshot(self) -> Snapshot | None:
        return self._scheduler.snapshot

    def cancel(self) -> None:
        self._scheduler.cancel()
