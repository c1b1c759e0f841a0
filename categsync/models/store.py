"""
# models/store.py

Contrats des collaborateurs externes (ingestion + persistance).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from categsync.models.category import Category
from categsync.models.post import Post


class PostSource(Protocol):
    """
    Côté ingestion : livre les posts à réconcilier.
    """

    def fetch_posts_since(self, watermark: datetime | None) -> list[Post]:
        """
        Posts créés/modifiés à partir de `watermark` (inclus) ou sans catégorie, triés par (modified_at, id).

        `None` = tous les posts.
        """
        ...

    def iter_all_posts(self) -> Iterable[Post]: ...


class TaxonomyStore(Protocol):
    """
    Côté persistance : table des catégories, affectation des posts, watermark.
    """

    def ensure_default_category(self, slug: str, name: str) -> int: ...

    def insert_category_if_absent(self, slug: str, name: str, parent_id: int | None) -> tuple[int, bool]:
        """
        Insertion atomique clé = slug. Retourne (id, created) ; si le slug existe, l'id du gagnant.
        """
        ...

    def get_category_by_slug(self, slug: str) -> Category | None: ...

    def get_category(self, category_id: int) -> Category | None: ...

    def list_categories(self) -> list[Category]: ...

    def set_post_category(self, post_id: int, category_id: int) -> None: ...

    def count_posts_by_category(self) -> dict[int | None, int]: ...

    def recompute_post_counts(self) -> dict[int, int]: ...

    def delete_categories(self, category_ids: Sequence[int]) -> int: ...

    def get_watermark(self, name: str) -> datetime | None: ...

    def set_watermark(self, name: str, watermark: datetime) -> None: ...
