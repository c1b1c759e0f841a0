"""
# main.py - CLI de la réconciliation des catégories.
"""

from __future__ import annotations

import argparse
import json

from categsync.models.reconcile import RunState, SyncMode
from categsync.scripts.run_auto_reconcile import run_reconcile_scripts
from categsync.services.category_coherence_check import check_category_coherence
from categsync.services.category_tree import get_category_tree
from categsync.services.reconcile_service import run_reconciliation
from categsync.sql.schema import init_schema
from categsync.store.mysql_store import MySQLStore
from categsync.utils.config import RECONCILE_WORKERS, ConfigError
from categsync.utils.logger import get_logger
from categsync.utils.safe_runner import safe_main

logger = get_logger("Categsync")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Réconciliation de la taxonomie des catégories")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Crée les tables si absentes")

    run = sub.add_parser("run", help="Lance une passe de réconciliation")
    run.add_argument("--mode", choices=[m.value for m in SyncMode], default=SyncMode.INCREMENTAL.value)
    run.add_argument("--workers", type=int, default=RECONCILE_WORKERS)

    sub.add_parser("auto", help="Passe incrémentale + contrôle de cohérence (cron)")

    tree = sub.add_parser("tree", help="Affiche l'arbre des catégories (JSON)")
    tree.add_argument("--populated", action="store_true", help="Feuilles avec posts uniquement")

    sub.add_parser("check", help="Contrôle de cohérence (lecture seule)")
    return p.parse_args(argv)


@safe_main
def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        if args.command == "init-db":
            init_schema(logger=logger)
            return 0

        store = MySQLStore(logger=logger)
        if args.command == "run":
            report = run_reconciliation(args.mode, store=store, workers=args.workers, logger=logger)
            print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
            return 0 if report.status is RunState.COMPLETED else 2

        if args.command == "auto":
            report = run_reconcile_scripts(store)
            print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
            return 0 if report.status is RunState.COMPLETED else 2

        if args.command == "tree":
            print(json.dumps(get_category_tree(store, only_populated=args.populated), ensure_ascii=False, indent=2))
            return 0

        if args.command == "check":
            anomalies = check_category_coherence(store, logger=logger)
            return 0 if not anomalies else 3
    except ConfigError as exc:
        logger.error("Erreur de configuration: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    main()
