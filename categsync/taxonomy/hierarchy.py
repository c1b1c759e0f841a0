"""
Graphe des catégories : get-or-create idempotent par slug, deux niveaux maximum.
"""

# taxonomy/hierarchy.py
from __future__ import annotations

import threading

from categsync.models.category import Category
from categsync.models.classification import Classification, SlugClass
from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.models.store import TaxonomyStore
from categsync.taxonomy.classifier import classify, display_name
from categsync.utils.config import DEFAULT_CATEGORY_NAME, DEFAULT_CATEGORY_SLUG
from categsync.utils.logger import LoggerProtocol, ensure_logger


class HierarchyStore:
    """
    Point d'écriture unique des catégories.

    Les créations passent par un verrou (un seul écrivain dans le process) puis par l'insertion
    conditionnelle atomique du store (unicité du slug côté base) : deux process concurrents convergent
    vers la même ligne, le perdant relit l'id du gagnant.
    """

    def __init__(
        self,
        store: TaxonomyStore,
        *,
        default_slug: str = DEFAULT_CATEGORY_SLUG,
        default_name: str = DEFAULT_CATEGORY_NAME,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._store = store
        self._default_slug = default_slug.lower()
        self._default_name = default_name
        self._logger = ensure_logger(logger, __name__)
        self._write_lock = threading.Lock()
        self._cache: dict[str, int] = {}
        self._cache_lock = threading.Lock()
        self._created: list[str] = []
        self._default_id: int | None = None

    # ---- Catch-all ------------------------------------------------------------
    def ensure_default(self) -> int:
        """
        Crée (une fois) et retourne la catégorie par défaut.
        """
        with self._write_lock:
            category_id = self._store.ensure_default_category(self._default_slug, self._default_name)
        self._default_id = category_id
        self._remember(self._default_slug, category_id)
        return category_id

    @property
    def default_id(self) -> int:
        if self._default_id is None:
            return self.ensure_default()
        return self._default_id

    @property
    def created_slugs(self) -> list[str]:
        with self._write_lock:
            return list(self._created)

    @property
    def created_count(self) -> int:
        return len(self.created_slugs)

    def reset_stats(self) -> None:
        with self._write_lock:
            self._created.clear()

    # ---- Cache slug → id ------------------------------------------------------
    def _cached(self, slug: str) -> int | None:
        with self._cache_lock:
            return self._cache.get(slug)

    def _remember(self, slug: str, category_id: int) -> None:
        with self._cache_lock:
            self._cache[slug] = category_id

    def forget(self, slugs: list[str] | None = None) -> None:
        """
        Invalide le cache (tout, ou les slugs donnés) ; appelé après élagage.
        """
        with self._cache_lock:
            if slugs is None:
                self._cache.clear()
            else:
                for slug in slugs:
                    self._cache.pop(slug.lower(), None)

    # ---- Get-or-create --------------------------------------------------------
    def get_or_create(self, slug: str, classification: Classification | None = None) -> int:
        """
        Retourne l'id de la catégorie `slug`, en la créant si besoin (ainsi que son année parente).

        Lève CategSyncError(INVARIANT) si la branche existante est incohérente.
        """
        key = slug.lower()
        cached = self._cached(key)
        if cached is not None:
            return cached

        cls = classification or classify(key)
        existing = self._store.get_category_by_slug(key)
        if existing is not None:
            self._check_branch(existing)
            self._remember(key, existing.id)
            return existing.id

        parent_id: int | None = None
        if cls.slug_class is not SlugClass.YEAR and cls.year_key is not None and cls.year_key != key:
            parent_id = self.get_or_create(cls.year_key, classify(cls.year_key))
            self._check_parent(key, parent_id)

        with self._write_lock:
            category_id, created = self._store.insert_category_if_absent(key, display_name(cls), parent_id)
            if created:
                self._created.append(key)

        if created:
            self._logger.info("[CATEG] + %s (id=%s, parent=%s, classe=%s)", key, category_id, parent_id, cls.slug_class)
        else:
            # course perdue : on relit la ligne du gagnant et on vérifie sa branche
            winner = self._store.get_category(category_id)
            self._logger.debug("[CATEG] Création concurrente de %s, id gagnant=%s", key, category_id)
            if winner is not None:
                self._check_branch(winner)
        self._remember(key, category_id)
        return category_id

    def _check_parent(self, slug: str, parent_id: int) -> None:
        # le parent d'une nouvelle catégorie doit être une racine
        parent = self._store.get_category(parent_id)
        if parent is None:
            raise CategSyncError(
                "Parent inexistant pour une nouvelle catégorie",
                code=ErrCode.INVARIANT,
                ctx={"slug": slug, "parent_id": parent_id},
            )
        if parent.parent_id is not None:
            raise CategSyncError(
                "Parent non racine : création refusée (> 2 niveaux)",
                code=ErrCode.INVARIANT,
                ctx={"slug": slug, "parent_id": parent.id},
            )

    def _check_branch(self, category: Category) -> None:
        if category.parent_id is None:
            return
        parent = self._store.get_category(category.parent_id)
        if parent is None:
            raise CategSyncError(
                "Catégorie orpheline (parent inexistant)",
                code=ErrCode.INVARIANT,
                ctx={"slug": category.slug, "category_id": category.id, "parent_id": category.parent_id},
            )
        if parent.parent_id is not None:
            raise CategSyncError(
                "Imbrication > 2 niveaux",
                code=ErrCode.INVARIANT,
                ctx={"slug": category.slug, "category_id": category.id, "parent_id": parent.id},
            )
