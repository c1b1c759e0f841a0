"""
# sql/categs/db_categ_utils.py
"""

from __future__ import annotations

from collections.abc import Sequence

from categsync.sql.db_connection import db_conn, get_dict_cursor
from categsync.sql.db_utils import safe_execute_dict
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger


@with_child_logger
def recompute_post_counts(*, logger: LoggerProtocol | None = None) -> dict[int, int]:
    """
    Recalcule post_count de TOUTES les catégories depuis posts.category_id (jamais d'incrément).

    Retourne {category_id: post_count}.
    """
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            safe_execute_dict(
                cur,
                """
                UPDATE categories c
                SET c.post_count = (
                    SELECT COUNT(*) FROM posts p WHERE p.category_id = c.id
                )
                """,
                logger=logger,
            )
            rows = safe_execute_dict(cur, "SELECT id, post_count FROM categories", logger=logger).fetchall()
    counts = {int(r["id"]): int(r["post_count"]) for r in rows}
    logger.debug("[COUNTS] %d catégories recomptées", len(counts))
    return counts


@with_child_logger
def delete_categories(category_ids: Sequence[int], *, logger: LoggerProtocol | None = None) -> int:
    """
    Supprime les catégories données (enfants avant parents : l'ordre fourni est respecté).

    Une catégorie par défaut n'est jamais supprimée, même si son id est passé.
    """
    logger = ensure_logger(logger, __name__)
    if not category_ids:
        return 0
    deleted = 0
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            for category_id in category_ids:
                safe_execute_dict(
                    cur,
                    "DELETE FROM categories WHERE id=%s AND is_default=0",
                    (category_id,),
                    logger=logger,
                )
                deleted += int(cur.rowcount or 0)
    logger.info("[PRUNE] %d catégorie(s) supprimée(s)", deleted)
    return deleted


@with_child_logger
def count_posts_by_category(*, logger: LoggerProtocol | None = None) -> dict[int | None, int]:
    """
    Compte réel des posts par category_id (clé None = posts non affectés).
    """
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            rows = safe_execute_dict(
                cur,
                "SELECT category_id, COUNT(*) AS total FROM posts GROUP BY category_id",
                logger=logger,
            ).fetchall()
    return {
        (int(r["category_id"]) if r["category_id"] is not None else None): int(r["total"]) for r in rows
    }
