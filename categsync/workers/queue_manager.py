"""
Pool de workers borné (Queue + threads) avec point d'annulation par élément.
"""

# workers/queue_manager.py
from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from queue import Queue
import threading
from typing import Generic, TypeVar

from categsync.models.exceptions import CategSyncError
from categsync.utils.logger import LoggerProtocol, ensure_logger

T = TypeVar("T")

_STOP = object()


@dataclass
class PoolResult(Generic[T]):
    processed: int = 0
    failed: list[tuple[T, BaseException]] = field(default_factory=list)
    cancelled: bool = False


class WorkerPool(Generic[T]):
    """
    Consomme `items` avec `workers` threads ; `run()` ne rend la main qu'une fois la file vidée
    et tous les handlers terminés (barrière pour l'agrégation).
    """

    def __init__(
        self,
        handler: Callable[[T], object],
        *,
        workers: int,
        cancel_event: threading.Event | None = None,
        name: str = "reconcile-worker",
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._handler = handler
        self._workers = max(1, workers)
        self._cancel = cancel_event or threading.Event()
        self._name = name
        self._logger = ensure_logger(logger, __name__)
        # file bornée : le producteur attend si les workers sont en retard
        self._queue: Queue[object] = Queue(maxsize=self._workers * 4)
        self._result: PoolResult[T] = PoolResult()
        self._result_lock = threading.Lock()

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if self._cancel.is_set():
                    # checkpoint : on vide la file sans traiter
                    continue
                try:
                    self._handler(item)  # type: ignore[arg-type]
                except CategSyncError as exc:
                    self._logger.warning("[QUEUE] Élément en échec : %s | ctx=%r", exc, exc.ctx)
                    with self._result_lock:
                        self._result.failed.append((item, exc))  # type: ignore[arg-type]
                except Exception as exc:  # pylint: disable=broad-except
                    self._logger.exception("[QUEUE] Erreur inattendue : %s", exc)
                    with self._result_lock:
                        self._result.failed.append((item, exc))  # type: ignore[arg-type]
                else:
                    with self._result_lock:
                        self._result.processed += 1
            finally:
                self._queue.task_done()

    def run(self, items: Iterable[T]) -> PoolResult[T]:
        threads = [
            threading.Thread(target=self._worker, name=f"{self._name}-{i}", daemon=True)
            for i in range(self._workers)
        ]
        for thread in threads:
            thread.start()
        try:
            for item in items:
                if self._cancel.is_set():
                    self._logger.info("[QUEUE] Annulation demandée, arrêt de l'alimentation")
                    break
                self._queue.put(item)
        finally:
            for _ in threads:
                self._queue.put(_STOP)
            self._queue.join()
            for thread in threads:
                thread.join()
        self._result.cancelled = self._cancel.is_set()
        return self._result
