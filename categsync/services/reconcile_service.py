# categsync/services/reconcile_service.py

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
import threading

from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.models.post import Post
from categsync.models.reconcile import Anomaly, ReconcileReport, RunState, Severity, SyncMode
from categsync.models.store import PostSource, TaxonomyStore
from categsync.taxonomy.aggregator import reconcile_counts
from categsync.taxonomy.hierarchy import HierarchyStore
from categsync.taxonomy.resolver import AssignmentResolver
from categsync.utils.config import RECONCILE_WORKERS, SYNC_STATE_NAME
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger
from categsync.workers.queue_manager import WorkerPool


class ReconciliationOrchestrator:
    """
    Pilote une passe complète : résolution des posts (pool borné) → barrière → recomptage/élagage.

    États : idle → running → completed | failed. Le watermark n'avance qu'en `completed` ; comme chaque
    étape est idempotente, relancer après un échec converge vers le même état final.
    """

    def __init__(
        self,
        store: TaxonomyStore,
        source: PostSource | None = None,
        *,
        workers: int = RECONCILE_WORKERS,
        state_name: str = SYNC_STATE_NAME,
        hierarchy: HierarchyStore | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._logger = ensure_logger(logger, __name__)
        self._store = store
        self._source: PostSource = source if source is not None else store  # type: ignore[assignment]
        self._workers = workers
        self._state_name = state_name
        self.hierarchy = hierarchy or HierarchyStore(store, logger=self._logger)
        self.resolver = AssignmentResolver(self.hierarchy, store, logger=self._logger)
        self._run_lock = threading.Lock()
        self._state = RunState.IDLE
        self.last_report: ReconcileReport | None = None

    @property
    def state(self) -> RunState:
        return self._state

    def _select_posts(self, mode: SyncMode, watermark: datetime | None) -> Iterable[Post]:
        if mode is SyncMode.FULL or watermark is None:
            if mode is SyncMode.INCREMENTAL:
                self._logger.info("[RECONCILE] Aucun watermark : passe incrémentale = reconstruction complète")
            return self._source.iter_all_posts()
        return self._source.fetch_posts_since(watermark)

    def run(self, mode: SyncMode | str, *, cancel_event: threading.Event | None = None) -> ReconcileReport:
        mode = SyncMode(mode)
        if not self._run_lock.acquire(blocking=False):
            raise CategSyncError("Réconciliation déjà en cours", code=ErrCode.BUSY, ctx={"mode": str(mode)})

        report = ReconcileReport(mode=mode, status=RunState.RUNNING, started_at=datetime.now())
        self._state = RunState.RUNNING
        try:
            self._logger.info("=== RECONCILIATION %s ===", str(mode).upper())
            self._run(report, cancel_event)
        except Exception as exc:  # pylint: disable=broad-except
            self._logger.exception("[RECONCILE] Passe en échec : %s", exc)
            report.status = RunState.FAILED
            report.error = str(exc)
        finally:
            report.finished_at = datetime.now()
            self._state = report.status
            self.last_report = report
            self._run_lock.release()
        self._log_summary(report)
        return report

    def _run(self, report: ReconcileReport, cancel_event: threading.Event | None) -> None:
        self.hierarchy.forget()
        self.hierarchy.reset_stats()
        self.hierarchy.ensure_default()
        self.resolver.drain_anomalies()

        previous = self._store.get_watermark(self._state_name)
        posts = self._select_posts(report.mode, previous)

        latest: list[datetime] = []
        latest_lock = threading.Lock()

        def handle(post: Post) -> None:
            self.resolver.resolve(post)
            if post.modified_at is not None:
                with latest_lock:
                    if not latest or post.modified_at > latest[0]:
                        latest[:] = [post.modified_at]

        pool: WorkerPool[Post] = WorkerPool(
            handle, workers=self._workers, cancel_event=cancel_event, logger=self._logger
        )
        outcome = pool.run(posts)

        # barrière franchie : plus aucune affectation en vol
        aggregate = reconcile_counts(self._store, self.hierarchy, logger=self._logger)

        report.posts_processed = outcome.processed
        report.posts_failed = len(outcome.failed)
        report.failed_post_ids = sorted(post.id for post, _ in outcome.failed)
        report.categories_created = self.hierarchy.created_count
        report.categories_pruned = len(aggregate.pruned_ids)
        report.cancelled = outcome.cancelled
        report.anomalies = self.resolver.drain_anomalies()
        report.watermark = previous

        if outcome.cancelled:
            report.status = RunState.FAILED
            report.error = f"{ErrCode.CANCELLED}: run interrompu avant la fin"
            return
        if outcome.failed:
            report.status = RunState.FAILED
            report.error = f"{len(outcome.failed)} post(s) non résolu(s)"
            report.anomalies.append(
                Anomaly(
                    severity=Severity.WARNING,
                    code="unresolved_posts",
                    message="Posts à retraiter au prochain passage",
                    post_ids=tuple(report.failed_post_ids),
                )
            )
            return

        if latest and (previous is None or latest[0] > previous):
            self._store.set_watermark(self._state_name, latest[0])
            report.watermark = latest[0]
        report.status = RunState.COMPLETED

    def _log_summary(self, report: ReconcileReport) -> None:
        self._logger.info("=== Résumé réconciliation (%s) ===", report.mode)
        self._logger.info("📌 Statut : %s", report.status)
        self._logger.info("📝 Posts traités : %d", report.posts_processed)
        self._logger.info("⚠️  Posts en échec : %d", report.posts_failed)
        self._logger.info("🆕 Catégories créées : %d", report.categories_created)
        self._logger.info("🗑️  Catégories supprimées : %d", report.categories_pruned)
        self._logger.info("⏱️  Watermark : %s", report.watermark.isoformat() if report.watermark else "-")
        for anomaly in report.anomalies:
            self._logger.warning("[%s] %s : %s", anomaly.severity.value, anomaly.code, anomaly.message)


@with_child_logger
def run_reconciliation(
    mode: SyncMode | str,
    *,
    store: TaxonomyStore | None = None,
    workers: int = RECONCILE_WORKERS,
    cancel_event: threading.Event | None = None,
    logger: LoggerProtocol | None = None,
) -> ReconcileReport:
    """
    Point d'entrée principal (admin / planificateur). Par défaut : base MySQL.
    """
    logger = ensure_logger(logger, __name__)
    if store is None:
        from categsync.store.mysql_store import MySQLStore

        store = MySQLStore(logger=logger)
    orchestrator = ReconciliationOrchestrator(store, workers=workers, logger=logger)
    return orchestrator.run(mode, cancel_event=cancel_event)
