"""
# store/memory_store.py
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime
import itertools
import threading

from categsync.models.category import Category
from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.models.post import Post


class MemoryStore:
    """
    TaxonomyStore + PostSource en mémoire, thread-safe (un verrou pour tout l'état).

    Reproduit les garanties de la base : slug unique insensible à la casse, insertion conditionnelle
    atomique, refus de supprimer un parent encore référencé.
    """

    def __init__(self, posts: Iterable[Post] = ()) -> None:
        self._lock = threading.RLock()
        self._posts: dict[int, Post] = {}
        self._categories: dict[int, Category] = {}
        self._by_slug: dict[str, int] = {}
        self._watermarks: dict[str, datetime] = {}
        self._ids = itertools.count(1)
        for post in posts:
            self.upsert_post(post)

    # ---- Ingestion ------------------------------------------------------------
    def upsert_post(self, post: Post) -> None:
        """
        Crée ou met à jour un post (body/modified_at) ; conserve l'affectation existante si non fournie.
        """
        with self._lock:
            current = self._posts.get(post.id)
            category_id = post.category_id
            if category_id is None and current is not None:
                category_id = current.category_id
            self._posts[post.id] = replace(post, category_id=category_id)

    def get_post(self, post_id: int) -> Post | None:
        with self._lock:
            post = self._posts.get(post_id)
            return replace(post) if post else None

    # ---- PostSource -----------------------------------------------------------
    def fetch_posts_since(self, watermark: datetime | None) -> list[Post]:
        with self._lock:
            posts = [
                replace(p)
                for p in self._posts.values()
                if watermark is None
                or p.category_id is None
                or (p.modified_at is not None and p.modified_at >= watermark)
            ]
        return sorted(posts, key=lambda p: (p.modified_at or datetime.min, p.id))

    def iter_all_posts(self) -> Iterable[Post]:
        with self._lock:
            posts = [replace(p) for p in self._posts.values()]
        return sorted(posts, key=lambda p: p.id)

    # ---- Catégories -----------------------------------------------------------
    def ensure_default_category(self, slug: str, name: str) -> int:
        with self._lock:
            category_id, _ = self._insert(slug, name, None, is_default=True)
            self._categories[category_id].is_default = True
            return category_id

    def insert_category_if_absent(self, slug: str, name: str, parent_id: int | None) -> tuple[int, bool]:
        with self._lock:
            return self._insert(slug, name, parent_id, is_default=False)

    def _insert(self, slug: str, name: str, parent_id: int | None, *, is_default: bool) -> tuple[int, bool]:
        key = slug.lower()
        existing = self._by_slug.get(key)
        if existing is not None:
            return existing, False
        if parent_id is not None and parent_id not in self._categories:
            # équivalent de la contrainte FK
            raise CategSyncError("Parent inexistant", code=ErrCode.DB, ctx={"slug": slug, "parent_id": parent_id})
        category_id = next(self._ids)
        self._categories[category_id] = Category(
            id=category_id, slug=key, name=name, parent_id=parent_id, is_default=is_default
        )
        self._by_slug[key] = category_id
        return category_id, True

    def get_category_by_slug(self, slug: str) -> Category | None:
        with self._lock:
            category_id = self._by_slug.get(slug.lower())
            return replace(self._categories[category_id]) if category_id is not None else None

    def get_category(self, category_id: int) -> Category | None:
        with self._lock:
            category = self._categories.get(category_id)
            return replace(category) if category else None

    def list_categories(self) -> list[Category]:
        with self._lock:
            categories = [replace(c) for c in self._categories.values()]
        return sorted(categories, key=lambda c: (c.parent_id is not None, c.slug))

    # ---- Affectations ---------------------------------------------------------
    def set_post_category(self, post_id: int, category_id: int) -> None:
        with self._lock:
            post = self._posts.get(post_id)
            if post is not None:
                post.category_id = category_id

    def count_posts_by_category(self) -> dict[int | None, int]:
        counts: dict[int | None, int] = {}
        with self._lock:
            for post in self._posts.values():
                counts[post.category_id] = counts.get(post.category_id, 0) + 1
        return counts

    # ---- Agrégats -------------------------------------------------------------
    def recompute_post_counts(self) -> dict[int, int]:
        with self._lock:
            real = self.count_posts_by_category()
            for category in self._categories.values():
                category.post_count = real.get(category.id, 0)
            return {c.id: c.post_count for c in self._categories.values()}

    def delete_categories(self, category_ids: Sequence[int]) -> int:
        deleted = 0
        with self._lock:
            for category_id in category_ids:
                category = self._categories.get(category_id)
                if category is None or category.is_default:
                    continue
                if any(c.parent_id == category_id for c in self._categories.values()):
                    raise CategSyncError(
                        "Suppression d'un parent encore référencé",
                        code=ErrCode.DB,
                        ctx={"category_id": category_id},
                    )
                del self._categories[category_id]
                del self._by_slug[category.slug]
                deleted += 1
        return deleted

    # ---- Watermark ------------------------------------------------------------
    def get_watermark(self, name: str) -> datetime | None:
        with self._lock:
            return self._watermarks.get(name)

    def set_watermark(self, name: str, watermark: datetime) -> None:
        with self._lock:
            self._watermarks[name] = watermark

    # ---- Outils de test / debug -----------------------------------------------
    def corrupt_parent(self, category_id: int, parent_id: int) -> None:
        """
        Force un parent_id sans contrôle (simule une base incohérente).
        """
        with self._lock:
            self._categories[category_id].parent_id = parent_id
