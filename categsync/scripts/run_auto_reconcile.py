"""
run_auto_reconcile.
"""

from __future__ import annotations

from categsync.models.reconcile import ReconcileReport, SyncMode
from categsync.models.store import TaxonomyStore
from categsync.services.category_coherence_check import check_category_coherence
from categsync.services.reconcile_service import run_reconciliation
from categsync.utils.logger import get_logger

logger = get_logger("Categsync Reconcile Scripts")


def run_reconcile_scripts(store: TaxonomyStore | None = None) -> ReconcileReport:
    """
    Passe planifiée : incrémentale, puis contrôle de cohérence.
    """
    if store is None:
        from categsync.store.mysql_store import MySQLStore

        store = MySQLStore(logger=logger)
    report = run_reconciliation(SyncMode.INCREMENTAL, store=store, logger=logger)
    report.anomalies.extend(check_category_coherence(store, logger=logger))
    return report
