# sql/db_connection.py

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import cast

import pymysql
from pymysql.connections import Connection
from pymysql.cursors import DictCursor

from categsync.models.cursor_protocol import DictCursorProtocol
from categsync.models.db_config import get_db_config
from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger


def get_dict_cursor(conn: Connection) -> DictCursorProtocol:
    return cast(DictCursorProtocol, conn.cursor(DictCursor))


@with_child_logger
def get_db_connection(
    logger: LoggerProtocol | None = None,
) -> Connection:
    """
    Ouvre une connexion MySQL à partir de la config centralisée (.env chargée par utils.config).

    Les identifiants manquants remontent en ConfigError ; un refus du serveur en CategSyncError(DB)
    avec l'hôte et la base ciblés (jamais le mot de passe).
    """
    logger = ensure_logger(logger, __name__)
    config = get_db_config()
    target = {"host": config.get("host"), "port": config.get("port"), "database": config.get("database")}
    try:
        conn = pymysql.connect(**config)
    except pymysql.MySQLError as exc:
        logger.error("[DB] Connexion impossible à %s:%s/%s : %s", target["host"], target["port"], target["database"], exc)
        raise CategSyncError("Erreur de connection DB", code=ErrCode.DB, ctx=target) from exc
    return conn


@contextmanager
@with_child_logger
def db_conn(*, autocommit: bool = False, logger: LoggerProtocol | None = None) -> Iterator[Connection]:
    """
    Ouvre une connexion, gère commit/rollback/close en 1 seul endroit.
    """
    logger = ensure_logger(logger, __name__)
    conn = get_db_connection(logger=logger)
    conn.autocommit(autocommit)
    try:
        yield conn
        if not autocommit:
            conn.commit()
    except Exception:  # pylint: disable=broad-except
        if not autocommit:
            try:
                conn.rollback()
            except pymysql.MySQLError:
                logger.warning("Rollback failed", exc_info=True)
        raise
    finally:
        try:
            conn.close()
        except pymysql.err.Error as exc:
            if "Already closed" not in str(exc):
                logger.warning("Close failed: %s", exc)
