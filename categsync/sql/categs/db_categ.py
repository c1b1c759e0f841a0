"""
# sql/categs/db_categ.py
"""

from __future__ import annotations

from typing import cast

from categsync.models.category import Category
from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.models.reconcile import CategoryRow
from categsync.sql.db_connection import db_conn, get_dict_cursor
from categsync.sql.db_utils import safe_execute_dict
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger

_CATEGORY_COLUMNS = "id, slug, name, parent_id, post_count, is_default"


@with_child_logger
def insert_category_if_absent(
    slug: str,
    name: str,
    parent_id: int | None,
    *,
    is_default: bool = False,
    logger: LoggerProtocol | None = None,
) -> tuple[int, bool]:
    """
    INSERT atomique clé = slug (UNIQUE) avec retour d'id via LAST_INSERT_ID(id).

    Si le slug existe déjà (création concurrente perdue ou déjà présente), la ligne existante n'est pas
    modifiée et son id est retourné. Retourne (id, created).
    """
    logger = ensure_logger(logger, __name__)
    try:
        with db_conn(logger=logger) as conn:
            with get_dict_cursor(conn) as cur:
                safe_execute_dict(
                    cur,
                    """
                    INSERT INTO categories (slug, name, parent_id, post_count, is_default)
                    VALUES (%s, %s, %s, 0, %s)
                    ON DUPLICATE KEY UPDATE id=LAST_INSERT_ID(id)
                    """,
                    (slug, name, parent_id, int(is_default)),
                    logger=logger,
                )
                created = cur.rowcount == 1
                row = safe_execute_dict(cur, "SELECT LAST_INSERT_ID() AS id", logger=logger).fetchone()
        if not row or not row["id"]:
            raise CategSyncError("Insert catégorie sans id", code=ErrCode.DB, ctx={"slug": slug})
        category_id = int(row["id"])
    except CategSyncError as exc:
        raise exc.with_context({"slug": slug, "parent_id": parent_id})

    if created:
        logger.info("[CATEG] Catégorie créée: %s (id=%s, parent=%s)", slug, category_id, parent_id)
    else:
        logger.debug("[CATEG] Catégorie déjà présente: %s (id=%s)", slug, category_id)
    return category_id, created


@with_child_logger
def get_category_by_slug(slug: str, *, logger: LoggerProtocol | None = None) -> Category | None:
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            row = safe_execute_dict(
                cur,
                f"SELECT {_CATEGORY_COLUMNS} FROM categories WHERE slug=%s LIMIT 1",
                (slug,),
                logger=logger,
            ).fetchone()
    return Category.from_row(row) if row else None


@with_child_logger
def get_category_by_id(category_id: int, *, logger: LoggerProtocol | None = None) -> Category | None:
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            row = safe_execute_dict(
                cur,
                f"SELECT {_CATEGORY_COLUMNS} FROM categories WHERE id=%s LIMIT 1",
                (category_id,),
                logger=logger,
            ).fetchone()
    return Category.from_row(row) if row else None


@with_child_logger
def list_categories(*, logger: LoggerProtocol | None = None) -> list[Category]:
    """
    Toutes les catégories, racines d'abord puis par slug.
    """
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            safe_execute_dict(
                cur,
                f"SELECT {_CATEGORY_COLUMNS} FROM categories ORDER BY parent_id IS NOT NULL, slug",
                logger=logger,
            )
            rows = cast(list[CategoryRow], list(cur.fetchall()))
    return [Category.from_row(row) for row in rows]
