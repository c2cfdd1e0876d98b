from __future__ import annotations

from campus_dashboard.data_models import Category, ResourceRecord
from campus_dashboard.polling.hub import SnapshotHub
from campus_dashboard.polling.scheduler import PollingScheduler


class _FakeTimer:
    def __init__(self, when: float, callback) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _FakeFuture:
    def __init__(self) -> None:
        self._callbacks = []
        self._result = None
        self._error: BaseException | None = None
        self._done = False
        self.retrieved = False

    def add_done_callback(self, callback) -> None:
        if self._done:
            callback(self)
        else:
            self._callbacks.append(callback)

    def cancelled(self) -> bool:
        return False

    def exception(self) -> BaseException | None:
        self.retrieved = True
        return self._error

    def result(self):
        if self._error is not None:
            raise self._error
        return self._result

    def settle(self, result=None, error: BaseException | None = None) -> None:
        self._result, self._error, self._done = result, error, True
        for callback in self._callbacks:
            callback(self)


class _FakeLoop:
    """Manual clock: timers fire on ``advance`` and executor jobs on ``finish``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[_FakeTimer] = []
        self.jobs: list[tuple[_FakeFuture, object, tuple]] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback) -> _FakeTimer:
        timer = _FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def run_in_executor(self, executor, fn, *args) -> _FakeFuture:
        future = _FakeFuture()
        self.jobs.append((future, fn, args))
        return future

    def advance(self, seconds: float) -> None:
        self.now += seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.when <= self.now]
            if not due:
                return
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            timer.callback()

    def finish(self, index: int = 0) -> None:
        future, fn, args = self.jobs.pop(index)
        try:
            result = fn(*args)
        except Exception as exc:
            future.settle(error=exc)
        else:
            future.settle(result=result)

    def finish_all(self) -> None:
        while self.jobs:
            self.finish(0)


class _CountingSource:
    def __init__(self) -> None:
        self.calls = 0
        self.fail_on: set[int] = set()

    def fetch(self, category: Category, scope: str) -> list[ResourceRecord]:
        self.calls += 1
        if self.calls in self.fail_on:
            raise ConnectionError("backend unreachable")
        return [
            ResourceRecord(
                record_id="lot-1",
                name="North Lot",
                category=Category(category),
                total_capacity=100,
                available=self.calls,
                scope=scope,
            )
        ]


def test_start_fetches_immediately_then_on_interval() -> None:
    loop = _FakeLoop()
    source = _CountingSource()
    scheduler = PollingScheduler(source, loop=loop)

    handle = scheduler.start(Category.PARKING, "uni-1", 15000)
    assert len(loop.jobs) == 1
    assert handle.snapshot is None

    loop.finish_all()
    assert handle.snapshot.sequence == 1
    assert handle.snapshot.scope == "uni-1"
    assert handle.snapshot.records[0].available == 1

    loop.advance(10)
    assert loop.jobs == []
    loop.advance(5)
    loop.finish_all()
    assert handle.snapshot.sequence == 2
    assert handle.snapshot.fetched_at == 15.0


def test_cancel_stops_polling_and_is_idempotent() -> None:
    loop = _FakeLoop()
    source = _CountingSource()
    scheduler = PollingScheduler(source, loop=loop)
    handle = scheduler.start(Category.PARKING, "uni-1", 1000)

    handle.cancel()
    handle.cancel()
    loop.finish_all()
    loop.advance(60)

    assert source.calls == 1
    assert loop.jobs == []
    assert handle.snapshot is None
    assert not scheduler.active


def test_failed_fetch_keeps_previous_snapshot() -> None:
    loop = _FakeLoop()
    source = _CountingSource()
    source.fail_on = {2}
    scheduler = PollingScheduler(source, loop=loop)
    scheduler.start(Category.FOOD, "uni-1", 1000)
    loop.finish_all()

    loop.advance(1)
    loop.finish_all()

    assert scheduler.failures == 1
    assert scheduler.snapshot.sequence == 1

    loop.advance(1)
    loop.finish_all()
    assert scheduler.snapshot.sequence == 3


def test_stale_completion_is_discarded() -> None:
    loop = _FakeLoop()
    source = _CountingSource()
    scheduler = PollingScheduler(source, loop=loop)
    scheduler.start(Category.LIBRARY, "uni-1", 1000)
    loop.advance(1)
    assert len(loop.jobs) == 2

    # The newer fetch lands first; the older one must not overwrite it.
    loop.finish(1)
    loop.finish(0)

    assert scheduler.snapshot.sequence == 2
    assert scheduler.snapshot.records[0].available == 1


def test_listener_errors_do_not_stop_polling() -> None:
    loop = _FakeLoop()
    seen = []

    def listener(snapshot) -> None:
        seen.append(snapshot.sequence)
        raise RuntimeError("render failed")

    scheduler = PollingScheduler(_CountingSource(), loop=loop, on_snapshot=listener)
    scheduler.start(Category.PARKING, "uni-1", 1000)
    loop.finish_all()
    loop.advance(1)
    loop.finish_all()

    assert seen == [1, 2]


def test_start_rejects_double_start_and_bad_interval() -> None:
    loop = _FakeLoop()
    scheduler = PollingScheduler(_CountingSource(), loop=loop)

    try:
        scheduler.start(Category.PARKING, "uni-1", 0)
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for a zero interval")

    scheduler.start(Category.PARKING, "uni-1", 1000)
    try:
        scheduler.start(Category.PARKING, "uni-1", 1000)
    except RuntimeError:
        pass
    else:
        raise AssertionError("Expected RuntimeError for a second start")


def test_hub_shares_one_scheduler_per_category_and_scope() -> None:
    loop = _FakeLoop()
    source = _CountingSource()
    hub = SnapshotHub(source, lambda category: 5000, loop=loop)

    assert hub.fetch(Category.PARKING, "uni-1")[0].available == 1
    assert hub.status("uni-1") == {}

    first = hub.watch(Category.PARKING, "uni-1")
    assert hub.watch("parking_lots", "uni-1") is first
    assert hub.watch(Category.PARKING, "uni-2") is not first

    loop.finish_all()
    assert hub.latest(Category.PARKING, "uni-1") is not None
    assert hub.fetch(Category.PARKING, "uni-1") == list(first.snapshot.records)
    assert hub.status("uni-1")["parking_lots"]["records"] == 1

    hub.close()
    loop.advance(60)
    assert loop.jobs == []
    assert not first.active


def test_fetch_failing_after_cancel_is_retrieved_and_ignored() -> None:
    loop = _FakeLoop()
    source = _CountingSource()
    source.fail_on = {1}
    scheduler = PollingScheduler(source, loop=loop)
    scheduler.start(Category.PARKING, "uni-1", 1000)
    future = loop.jobs[0][0]

    scheduler.cancel()
    loop.finish_all()

    assert future.retrieved
    assert scheduler.failures == 0
    assert scheduler.snapshot is None


def test_hub_stops_pollers_nobody_reads() -> None:
    loop = _FakeLoop()
    hub = SnapshotHub(_CountingSource(), lambda category: 5000, loop=loop, idle_seconds=30)

    kept = hub.watch(Category.PARKING, "uni-1")
    dropped = hub.watch(Category.PARKING, "uni-2")
    loop.advance(20)
    assert hub.watch(Category.PARKING, "uni-1") is kept

    loop.advance(15)

    assert kept.active
    assert not dropped.active
    assert hub.status("uni-2") == {}
    assert list(hub.status("uni-1")) == ["parking_lots"]

    hub.close()


def test_hub_registry_does_not_grow_with_abandoned_scopes() -> None:
    loop = _FakeLoop()
    source = _CountingSource()
    hub = SnapshotHub(source, lambda category: 5000, loop=loop, idle_seconds=30)
    schedulers = [hub.watch(Category.PARKING, f"scope-{i}") for i in range(50)]

    loop.advance(30)
    loop.jobs.clear()
    loop.advance(120)

    assert not any(scheduler.active for scheduler in schedulers)
    assert all(hub.status(f"scope-{i}") == {} for i in range(50))
    assert loop.jobs == []

    # A later read starts a fresh poller for the same key.
    revived = hub.watch(Category.PARKING, "scope-0")
    assert revived is not schedulers[0]
    assert revived.active
    hub.close()


def test_hub_rejects_non_positive_idle_timeout() -> None:
    try:
        SnapshotHub(_CountingSource(), lambda category: 5000, loop=_FakeLoop(), idle_seconds=0)
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for a zero idle timeout")
