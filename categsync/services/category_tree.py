# categsync/services/category_tree.py

from __future__ import annotations

from categsync.models.category import Category
from categsync.models.reconcile import CategoryDetail, CategoryNode
from categsync.models.store import TaxonomyStore


def _node(category: Category) -> CategoryNode:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "parent_id": category.parent_id,
        "post_count": category.post_count,
    }


def _display_order(categories: list[Category]) -> list[Category]:
    # tri "COALESCE(parent.name, name), name" : chaque enfant juste après sa racine
    names = {c.id: c.name for c in categories}

    def key(c: Category) -> tuple[str, int, str]:
        group = names.get(c.parent_id, c.name) if c.parent_id is not None else c.name
        return (group.lower(), 0 if c.parent_id is None else 1, c.name.lower())

    return sorted(categories, key=key)


def get_category_tree(store: TaxonomyStore, *, only_populated: bool = False) -> list[CategoryNode]:
    """
    Liste à plat de l'arbre pour l'UI de navigation.

    only_populated : ne garde que les feuilles ayant des posts (une racine avec enfants est masquée).
    """
    categories = store.list_categories()
    if only_populated:
        parents = {c.parent_id for c in categories if c.parent_id is not None}
        categories = [c for c in categories if c.id not in parents and c.post_count > 0]
    return [_node(c) for c in _display_order(categories)]


def get_category_detail(store: TaxonomyStore, category_id: int) -> CategoryDetail | None:
    """
    Détail d'une catégorie, avec le compte réel recalculé à la volée (contrôle de dérive).
    """
    category = store.get_category(category_id)
    if category is None:
        return None
    parent = store.get_category(category.parent_id) if category.parent_id is not None else None
    has_children = any(c.parent_id == category.id for c in store.list_categories())
    actual = store.count_posts_by_category().get(category.id, 0)
    return {
        **_node(category),
        "parent_name": parent.name if parent else None,
        "has_children": has_children,
        "actual_post_count": actual,
    }


def top_categories(store: TaxonomyStore, limit: int = 20) -> list[CategoryNode]:
    categories = sorted(store.list_categories(), key=lambda c: (-c.post_count, c.slug))
    return [_node(c) for c in categories[:limit]]
