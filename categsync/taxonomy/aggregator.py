"""
Recalcul des compteurs et élagage des catégories vides.
"""

# taxonomy/aggregator.py
from __future__ import annotations

from categsync.models.category import Category
from categsync.models.reconcile import AggregateResult
from categsync.models.store import TaxonomyStore
from categsync.taxonomy.hierarchy import HierarchyStore
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger


def select_prunable(categories: list[Category], counts: dict[int, int], default_id: int) -> list[Category]:
    """
    Catégories à supprimer, enfants d'abord.

    Une racine vide n'est retenue que si aucun de ses enfants ne survit (jamais d'orphelin).
    """
    def is_empty(c: Category) -> bool:
        return counts.get(c.id, 0) == 0 and c.id != default_id and not c.is_default

    children = [c for c in categories if c.parent_id is not None]
    roots = [c for c in categories if c.parent_id is None]

    doomed_children = [c for c in children if is_empty(c)]
    doomed_ids = {c.id for c in doomed_children}
    surviving_parents = {c.parent_id for c in children if c.id not in doomed_ids}

    doomed_roots = [c for c in roots if is_empty(c) and c.id not in surviving_parents]
    return sorted(doomed_children, key=lambda c: c.slug) + sorted(doomed_roots, key=lambda c: c.slug)


@with_child_logger
def reconcile_counts(
    store: TaxonomyStore,
    hierarchy: HierarchyStore,
    *,
    logger: LoggerProtocol | None = None,
) -> AggregateResult:
    """
    Recalcul complet de post_count puis suppression des catégories vides (hors défaut).

    À appeler uniquement quand plus aucune affectation n'est en cours.
    """
    logger = ensure_logger(logger, __name__)
    default_id = hierarchy.default_id
    counts = store.recompute_post_counts()
    logger.info("[COUNTS] %d catégorie(s) recomptée(s), %d post(s) affecté(s)", len(counts), sum(counts.values()))

    categories = store.list_categories()
    doomed = select_prunable(categories, counts, default_id)
    result = AggregateResult(counts=counts)
    if not doomed:
        logger.debug("[PRUNE] Aucune catégorie vide")
        return result

    store.delete_categories([c.id for c in doomed])
    result.pruned_ids = [c.id for c in doomed]
    result.pruned_slugs = [c.slug for c in doomed]
    for category_id in result.pruned_ids:
        result.counts.pop(category_id, None)
    hierarchy.forget(result.pruned_slugs)
    logger.info("[PRUNE] %d catégorie(s) vide(s) supprimée(s) : %s", len(doomed), ", ".join(result.pruned_slugs))
    return result
