# tests/unit/test_aggregator.py
"""Tests unitaires : recalcul des compteurs et élagage des catégories vides."""

from __future__ import annotations

from categsync.models.category import Category
from categsync.store.memory_store import MemoryStore
from categsync.taxonomy.aggregator import reconcile_counts, select_prunable
from categsync.taxonomy.hierarchy import HierarchyStore
from conftest import make_post


def _cat(category_id: int, slug: str, parent_id: int | None = None, *, is_default: bool = False) -> Category:
    return Category(id=category_id, slug=slug, name=slug, parent_id=parent_id, is_default=is_default)


def test_select_prunable_children_first() -> None:
    categories = [_cat(1, "intel-quick-updates", is_default=True), _cat(2, "2021"), _cat(3, "21-ci-01", 2)]
    doomed = select_prunable(categories, {}, default_id=1)
    assert [c.slug for c in doomed] == ["21-ci-01", "2021"]


def test_select_prunable_keeps_root_with_surviving_child() -> None:
    categories = [_cat(1, "intel-quick-updates", is_default=True), _cat(2, "2021"), _cat(3, "21-ci-01", 2)]
    doomed = select_prunable(categories, {3: 4}, default_id=1)
    assert doomed == []


def test_select_prunable_never_returns_default() -> None:
    categories = [_cat(1, "intel-quick-updates", is_default=True), _cat(5, "other-topic")]
    doomed = select_prunable(categories, {1: 0, 5: 0}, default_id=1)
    assert [c.id for c in doomed] == [5]
    # même sans le drapeau is_default, l'id suffit
    assert select_prunable([_cat(1, "intel-quick-updates")], {}, default_id=1) == []


def test_reconcile_counts_recomputes_and_prunes(store: MemoryStore) -> None:
    hierarchy = HierarchyStore(store)
    default_id = hierarchy.ensure_default()
    used = hierarchy.get_or_create("22-ci-07")
    unused = hierarchy.get_or_create("other-topic")
    empty_child = hierarchy.get_or_create("21-ci-02")
    store.upsert_post(make_post(1, None))
    store.upsert_post(make_post(2, None))
    store.set_post_category(1, used)
    store.set_post_category(2, default_id)
    empty_year = store.get_category_by_slug("2021").id

    result = reconcile_counts(store, hierarchy)

    assert result.pruned_slugs == ["21-ci-02", "2021", "other-topic"]
    assert result.pruned_ids == [empty_child, empty_year, unused]
    assert store.get_category_by_slug("other-topic") is None
    assert store.get_category_by_slug("2021") is None
    year = store.get_category_by_slug("2022")
    assert year is not None and year.post_count == 0
    assert store.get_category(used).post_count == 1
    assert store.get_category(default_id).post_count == 1
    assert result.counts == {default_id: 1, year.id: 0, used: 1}


def test_reconcile_counts_fixes_drift(store: MemoryStore) -> None:
    hierarchy = HierarchyStore(store)
    category_id = hierarchy.get_or_create("other-topic")
    store.upsert_post(make_post(1, None))
    store.set_post_category(1, category_id)
    reconcile_counts(store, hierarchy)
    store.set_post_category(1, hierarchy.default_id)

    result = reconcile_counts(store, hierarchy)

    assert result.pruned_slugs == ["other-topic"]
    assert store.get_category(hierarchy.default_id).post_count == 1
    # le cache ne doit plus renvoyer l'id supprimé
    recreated = hierarchy.get_or_create("other-topic")
    assert store.get_category(recreated) is not None
