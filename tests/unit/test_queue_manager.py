# tests/unit/test_queue_manager.py
"""Pool de workers borné : barrière de fin, échecs, annulation."""

from __future__ import annotations

import threading

from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.workers.queue_manager import WorkerPool


def test_all_items_processed_before_run_returns() -> None:
    seen: list[int] = []
    lock = threading.Lock()

    def handler(item: int) -> None:
        with lock:
            seen.append(item)

    result = WorkerPool(handler, workers=4).run(range(100))

    assert result.processed == 100
    assert sorted(seen) == list(range(100))
    assert result.failed == []
    assert not result.cancelled


def test_failures_are_collected_and_do_not_stop_the_batch() -> None:
    def handler(item: int) -> None:
        if item == 3:
            raise CategSyncError("bad", code=ErrCode.DB)
        if item == 5:
            raise ValueError("unexpected")

    result = WorkerPool(handler, workers=2).run(range(10))

    assert result.processed == 8
    assert sorted(item for item, _ in result.failed) == [3, 5]
    errors = dict(result.failed)
    assert isinstance(errors[3], CategSyncError)
    assert isinstance(errors[5], ValueError)


def test_cancellation_stops_remaining_work() -> None:
    cancel = threading.Event()
    handled: list[int] = []

    def handler(item: int) -> None:
        handled.append(item)
        cancel.set()

    result = WorkerPool(handler, workers=1, cancel_event=cancel).run(range(50))

    assert result.cancelled
    assert result.processed == len(handled) == 1


def test_zero_workers_is_clamped_to_one() -> None:
    result = WorkerPool(lambda item: None, workers=0).run([1, 2, 3])
    assert result.processed == 3
