"""
# store/mysql_store.py
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from categsync.models.category import Category
from categsync.models.post import Post
from categsync.sql.categs.db_categ import (
    get_category_by_id,
    get_category_by_slug,
    insert_category_if_absent,
    list_categories,
)
from categsync.sql.categs.db_categ_utils import (
    count_posts_by_category,
    delete_categories,
    recompute_post_counts,
)
from categsync.sql.posts.db_posts import (
    fetch_posts_since,
    iter_all_posts,
    update_post_category,
)
from categsync.sql.sync_state.db_sync_state import get_watermark, set_watermark
from categsync.utils.logger import LoggerProtocol, ensure_logger


class MySQLStore:
    """
    TaxonomyStore + PostSource adossés à MySQL (pymysql), une connexion par opération.
    """

    def __init__(self, *, logger: LoggerProtocol | None = None) -> None:
        self._logger = ensure_logger(logger, __name__)

    # ---- PostSource -----------------------------------------------------------
    def fetch_posts_since(self, watermark: datetime | None) -> list[Post]:
        return fetch_posts_since(watermark, logger=self._logger)

    def iter_all_posts(self) -> Iterable[Post]:
        return iter_all_posts(logger=self._logger)

    # ---- Catégories -----------------------------------------------------------
    def ensure_default_category(self, slug: str, name: str) -> int:
        category_id, _ = insert_category_if_absent(slug, name, None, is_default=True, logger=self._logger)
        return category_id

    def insert_category_if_absent(self, slug: str, name: str, parent_id: int | None) -> tuple[int, bool]:
        return insert_category_if_absent(slug, name, parent_id, logger=self._logger)

    def get_category_by_slug(self, slug: str) -> Category | None:
        return get_category_by_slug(slug, logger=self._logger)

    def get_category(self, category_id: int) -> Category | None:
        return get_category_by_id(category_id, logger=self._logger)

    def list_categories(self) -> list[Category]:
        return list_categories(logger=self._logger)

    # ---- Affectations ---------------------------------------------------------
    def set_post_category(self, post_id: int, category_id: int) -> None:
        update_post_category(post_id, category_id, logger=self._logger)

    def count_posts_by_category(self) -> dict[int | None, int]:
        return count_posts_by_category(logger=self._logger)

    # ---- Agrégats -------------------------------------------------------------
    def recompute_post_counts(self) -> dict[int, int]:
        return recompute_post_counts(logger=self._logger)

    def delete_categories(self, category_ids: Sequence[int]) -> int:
        return delete_categories(category_ids, logger=self._logger)

    # ---- Watermark ------------------------------------------------------------
    def get_watermark(self, name: str) -> datetime | None:
        return get_watermark(name, logger=self._logger)

    def set_watermark(self, name: str, watermark: datetime) -> None:
        set_watermark(name, watermark, logger=self._logger)
