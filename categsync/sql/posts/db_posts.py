"""
# sql/posts/db_posts.py
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import cast

from categsync.models.post import Post
from categsync.models.reconcile import PostRow
from categsync.sql.db_connection import db_conn, get_dict_cursor
from categsync.sql.db_utils import safe_execute_dict
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger

_POST_COLUMNS = "id, body, category_id, modified_at"


@with_child_logger
def fetch_posts_since(
    watermark: datetime | None,
    *,
    logger: LoggerProtocol | None = None,
) -> list[Post]:
    """
    Posts modifiés à partir du watermark (inclus : un retraitement est idempotent, un oubli ne l'est pas),
    plus les posts encore sans catégorie (import rétrodaté sous le watermark).
    """
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            if watermark is None:
                safe_execute_dict(
                    cur,
                    f"SELECT {_POST_COLUMNS} FROM posts ORDER BY modified_at, id",
                    logger=logger,
                )
            else:
                safe_execute_dict(
                    cur,
                    f"SELECT {_POST_COLUMNS} FROM posts WHERE modified_at >= %s OR category_id IS NULL "
                    "ORDER BY modified_at, id",
                    (watermark,),
                    logger=logger,
                )
            rows = cast(list[PostRow], list(cur.fetchall()))
    logger.debug("[POSTS] %d post(s) depuis %s", len(rows), watermark)
    return [Post.from_row(row) for row in rows]


@with_child_logger
def iter_all_posts(
    batch_size: int = 500,
    *,
    logger: LoggerProtocol | None = None,
) -> Iterator[Post]:
    """
    Parcourt tous les posts par pages (keyset sur id) pour ne pas charger tout le corpus.
    """
    logger = ensure_logger(logger, __name__)
    last_id = 0
    while True:
        with db_conn(logger=logger) as conn:
            with get_dict_cursor(conn) as cur:
                safe_execute_dict(
                    cur,
                    f"SELECT {_POST_COLUMNS} FROM posts WHERE id > %s ORDER BY id LIMIT %s",
                    (last_id, batch_size),
                    logger=logger,
                )
                rows = cast(list[PostRow], list(cur.fetchall()))
        if not rows:
            return
        for row in rows:
            yield Post.from_row(row)
        last_id = int(rows[-1]["id"])


@with_child_logger
def update_post_category(post_id: int, category_id: int, *, logger: LoggerProtocol | None = None) -> None:
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            safe_execute_dict(
                cur,
                "UPDATE posts SET category_id=%s WHERE id=%s",
                (category_id, post_id),
                logger=logger,
            )
