"""
# sql/sync_state/db_sync_state.py
"""

from __future__ import annotations

from datetime import datetime

from categsync.sql.db_connection import db_conn, get_dict_cursor
from categsync.sql.db_utils import safe_execute_dict
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger


@with_child_logger
def get_watermark(name: str, *, logger: LoggerProtocol | None = None) -> datetime | None:
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            row = safe_execute_dict(
                cur,
                "SELECT watermark FROM categ_sync_state WHERE name=%s",
                (name,),
                logger=logger,
            ).fetchone()
    return row["watermark"] if row else None


@with_child_logger
def set_watermark(name: str, watermark: datetime, *, logger: LoggerProtocol | None = None) -> None:
    """
    Upsert du watermark (appelé uniquement en fin de run réussi).
    """
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            safe_execute_dict(
                cur,
                """
                INSERT INTO categ_sync_state (name, watermark) VALUES (%s, %s)
                ON DUPLICATE KEY UPDATE watermark=VALUES(watermark)
                """,
                (name, watermark),
                logger=logger,
            )
    logger.info("[RECONCILE] Watermark %s → %s", name, watermark.isoformat())
