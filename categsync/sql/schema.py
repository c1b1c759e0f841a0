"""
# sql/schema.py
"""

from __future__ import annotations

from categsync.sql.db_connection import db_conn, get_dict_cursor
from categsync.sql.db_utils import safe_execute_dict
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger

# L'unicité du slug (collation *_ci) est la garantie anti-doublon des créations concurrentes.
CATEGORIES_DDL = """
CREATE TABLE IF NOT EXISTS categories (
    id INT UNSIGNED NOT NULL AUTO_INCREMENT,
    slug VARCHAR(64) NOT NULL,
    name VARCHAR(200) NOT NULL,
    parent_id INT UNSIGNED NULL,
    post_count INT UNSIGNED NOT NULL DEFAULT 0,
    is_default TINYINT(1) NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (id),
    UNIQUE KEY uq_categories_slug (slug),
    KEY ix_categories_parent (parent_id),
    CONSTRAINT fk_categories_parent FOREIGN KEY (parent_id) REFERENCES categories (id)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
"""

# Table de l'ingestion ; créée ici seulement pour les environnements vides.
POSTS_DDL = """
CREATE TABLE IF NOT EXISTS posts (
    id INT UNSIGNED NOT NULL AUTO_INCREMENT,
    body MEDIUMTEXT NULL,
    category_id INT UNSIGNED NULL,
    modified_at DATETIME(6) NOT NULL DEFAULT CURRENT_TIMESTAMP(6),
    PRIMARY KEY (id),
    KEY ix_posts_category (category_id),
    KEY ix_posts_modified (modified_at, id)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
"""

SYNC_STATE_DDL = """
CREATE TABLE IF NOT EXISTS categ_sync_state (
    name VARCHAR(64) NOT NULL,
    watermark DATETIME(6) NULL,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
    PRIMARY KEY (name)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
"""

ALL_DDL: tuple[str, ...] = (CATEGORIES_DDL, POSTS_DDL, SYNC_STATE_DDL)


@with_child_logger
def init_schema(*, logger: LoggerProtocol | None = None) -> None:
    """
    Crée les tables si absentes (idempotent).
    """
    logger = ensure_logger(logger, __name__)
    with db_conn(logger=logger) as conn:
        with get_dict_cursor(conn) as cur:
            for ddl in ALL_DDL:
                safe_execute_dict(cur, ddl, logger=logger)
    logger.info("[SCHEMA] Tables prêtes (categories, posts, categ_sync_state)")
