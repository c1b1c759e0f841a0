# tests/unit/test_reconcile_service.py
"""Passes de réconciliation complètes sur le store mémoire."""

from __future__ import annotations

import threading

import pytest

from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.models.post import Post
from categsync.models.reconcile import RunState, SyncMode
from categsync.services.reconcile_service import ReconciliationOrchestrator, run_reconciliation
from categsync.store.memory_store import MemoryStore
from conftest import BASE_TIME, link, make_post

DEFAULT = "intel-quick-updates"


def _corpus() -> list[Post]:
    return [
        make_post(1, f"Debrief {link('2022', '22-ci-07')}", minutes=1),
        make_post(2, f"{link('other-topic')} {link('2021', '21-0001-21-01')}", minutes=2),
        make_post(3, "no category link at all", minutes=3),
        make_post(4, f"{link('ci-memo')} {link('2020')}", minutes=4),
        make_post(5, f"{link('other-topic')}", minutes=5),
        make_post(6, None, minutes=6),
    ]


def snapshot(store: MemoryStore) -> tuple[dict[str, tuple[str | None, int]], dict[int, str]]:
    """État comparable entre stores : ids internes remplacés par les slugs."""
    categories = store.list_categories()
    slugs = {c.id: c.slug for c in categories}
    tree = {c.slug: (slugs.get(c.parent_id) if c.parent_id else None, c.post_count) for c in categories}
    assignments = {}
    for post in store.iter_all_posts():
        assignments[post.id] = slugs[post.category_id]
    return tree, assignments


def assert_consistent(store: MemoryStore) -> None:
    categories = store.list_categories()
    real = store.count_posts_by_category()
    by_id = {c.id: c for c in categories}
    assert len({c.slug for c in categories}) == len(categories)
    for c in categories:
        assert c.post_count == real.get(c.id, 0)
        if c.parent_id is not None:
            assert c.parent_id in by_id
            assert by_id[c.parent_id].parent_id is None
    assert None not in real


def _full_store() -> MemoryStore:
    store = MemoryStore(_corpus())
    report = ReconciliationOrchestrator(store, workers=3).run(SyncMode.FULL)
    assert report.status is RunState.COMPLETED
    return store


# ---- Scénarios ----------------------------------------------------------------


def test_nested_informant_link(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    store.upsert_post(make_post(1, f"Debrief {link('2022', '22-ci-07')}"))
    report = orchestrator.run(SyncMode.FULL)

    assert report.status is RunState.COMPLETED
    tree, assignments = snapshot(store)
    assert assignments == {1: "22-ci-07"}
    assert tree["22-ci-07"] == ("2022", 1)
    assert tree["2022"] == (None, 0)
    assert report.categories_created == 2  # année + dossier


def test_existing_year_gets_new_child(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    store.upsert_post(make_post(1, link("2021"), minutes=0))
    orchestrator.run(SyncMode.FULL)
    year_id = store.get_category_by_slug("2021").id

    store.upsert_post(make_post(2, link("2021", "21-0001-21-01"), minutes=10))
    report = orchestrator.run(SyncMode.INCREMENTAL)

    assert report.status is RunState.COMPLETED
    child = store.get_category_by_slug("21-0001-21-01")
    assert child is not None and child.parent_id == year_id
    assert store.get_category_by_slug("2021").id == year_id
    assert report.categories_created == 1


def test_unlinked_post_increments_catch_all(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    store.upsert_post(make_post(1, "plain", minutes=0))
    orchestrator.run(SyncMode.FULL)
    before = store.get_category_by_slug(DEFAULT).post_count

    store.upsert_post(make_post(2, "still no link", minutes=5))
    orchestrator.run(SyncMode.INCREMENTAL)

    assert store.get_category_by_slug(DEFAULT).post_count == before + 1
    assert store.get_post(2).category_id == store.get_category_by_slug(DEFAULT).id


def test_specificity_beats_first_position(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    store.upsert_post(make_post(1, f"{link('other-topic')} {link('2021', '21-0001-21-01')}"))
    orchestrator.run(SyncMode.FULL)
    _, assignments = snapshot(store)
    assert assignments[1] == "21-0001-21-01"
    # other-topic n'a aucun post : élaguée
    assert store.get_category_by_slug("other-topic") is None


def test_reassignment_prunes_emptied_category(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    store.upsert_post(make_post(1, link("other-topic"), minutes=0))
    orchestrator.run(SyncMode.FULL)
    assert store.get_category_by_slug("other-topic").post_count == 1

    store.upsert_post(make_post(1, link("2021"), minutes=30))
    report = orchestrator.run(SyncMode.INCREMENTAL)

    assert report.status is RunState.COMPLETED
    assert store.get_category_by_slug("other-topic") is None
    assert report.categories_pruned == 1
    assert store.get_category_by_slug("2021").post_count == 1


# ---- Propriétés ---------------------------------------------------------------


def test_full_run_is_idempotent() -> None:
    store = _full_store()
    first = snapshot(store)
    ids = {c.slug: c.id for c in store.list_categories()}

    report = ReconciliationOrchestrator(store, workers=2).run(SyncMode.FULL)

    assert report.status is RunState.COMPLETED
    assert report.categories_created == 0
    assert report.categories_pruned == 0
    assert snapshot(store) == first
    assert {c.slug: c.id for c in store.list_categories()} == ids


def test_incremental_then_full_converges_to_full() -> None:
    reference = snapshot(_full_store())

    store = MemoryStore(_corpus()[:3])
    orchestrator = ReconciliationOrchestrator(store, workers=4)
    orchestrator.run(SyncMode.FULL)
    for post in _corpus()[3:]:
        store.upsert_post(post)
    orchestrator.run(SyncMode.INCREMENTAL)
    assert snapshot(store) == reference

    orchestrator.run(SyncMode.FULL)
    assert snapshot(store) == reference


def test_counts_and_structure_are_consistent_after_every_pass() -> None:
    store = _full_store()
    assert_consistent(store)
    tree, assignments = snapshot(store)
    assert assignments == {
        1: "22-ci-07",
        2: "21-0001-21-01",
        3: DEFAULT,
        4: "ci-memo",
        5: "other-topic",
        6: DEFAULT,
    }
    assert tree[DEFAULT] == (None, 2)
    assert "2020" not in tree


@pytest.mark.parametrize("workers", [1, 2, 8])
def test_result_does_not_depend_on_worker_count(workers: int) -> None:
    store = MemoryStore(_corpus())
    ReconciliationOrchestrator(store, workers=workers).run(SyncMode.FULL)
    assert snapshot(store) == snapshot(_full_store())


# ---- Watermark ----------------------------------------------------------------


def test_watermark_advances_to_latest_modified(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    for post in _corpus():
        store.upsert_post(post)
    report = orchestrator.run(SyncMode.INCREMENTAL)
    latest = max(p.modified_at for p in _corpus())
    assert report.watermark == latest
    assert store.get_watermark("category_reconcile") == latest


def test_incremental_only_processes_changed_posts(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    for post in _corpus():
        store.upsert_post(post)
    orchestrator.run(SyncMode.FULL)

    store.upsert_post(make_post(9, link("2023"), minutes=60))
    report = orchestrator.run(SyncMode.INCREMENTAL)

    # watermark inclusif : le dernier post de la passe précédente est relu
    assert report.posts_processed == 2
    assert report.watermark == BASE_TIME.replace(hour=13)


def test_incremental_picks_up_backdated_unassigned_post(
    store: MemoryStore, orchestrator: ReconciliationOrchestrator
) -> None:
    store.upsert_post(make_post(1, link("2022", "22-ci-07"), minutes=60))
    orchestrator.run(SyncMode.FULL)
    watermark = store.get_watermark("category_reconcile")

    # import rétrodaté : modified_at antérieur au watermark, jamais affecté
    store.upsert_post(make_post(2, link("2019"), minutes=5))
    report = orchestrator.run(SyncMode.INCREMENTAL)

    assert report.status is RunState.COMPLETED
    assert store.get_post(2).category_id == store.get_category_by_slug("2019").id
    assert report.watermark == watermark
    assert_consistent(store)


def test_empty_incremental_keeps_watermark(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    report = orchestrator.run(SyncMode.INCREMENTAL)
    assert report.status is RunState.COMPLETED
    assert report.posts_processed == 0
    assert report.watermark is None
    assert store.get_watermark("category_reconcile") is None
    assert store.get_category_by_slug(DEFAULT) is not None


# ---- Échecs / annulation ------------------------------------------------------


class FlakyStore(MemoryStore):
    def __init__(self, posts, failing: set[int]) -> None:
        super().__init__(posts)
        self.failing = failing

    def set_post_category(self, post_id: int, category_id: int) -> None:
        if post_id in self.failing:
            raise CategSyncError("write failed", code=ErrCode.DB, ctx={"post_id": post_id})
        super().set_post_category(post_id, category_id)


def test_storage_failure_fails_run_and_retry_recovers() -> None:
    store = FlakyStore(_corpus(), failing={2})
    orchestrator = ReconciliationOrchestrator(store, workers=3)

    report = orchestrator.run(SyncMode.INCREMENTAL)

    assert report.status is RunState.FAILED
    assert orchestrator.state is RunState.FAILED
    assert report.posts_failed == 1
    assert report.failed_post_ids == [2]
    assert report.posts_processed == 5
    assert store.get_watermark("category_reconcile") is None
    assert store.get_post(2).category_id is None
    assert store.get_post(1).category_id is not None
    assert any(a.code == "unresolved_posts" for a in report.anomalies)
    # les compteurs restent exacts même après un échec
    for c in store.list_categories():
        assert c.post_count == store.count_posts_by_category().get(c.id, 0)

    store.failing.clear()
    retry = orchestrator.run(SyncMode.INCREMENTAL)

    assert retry.status is RunState.COMPLETED
    assert snapshot(store) == snapshot(_full_store())


def test_cancel_before_start_fails_without_watermark(store: MemoryStore, orchestrator: ReconciliationOrchestrator) -> None:
    for post in _corpus():
        store.upsert_post(post)
    cancel = threading.Event()
    cancel.set()

    report = orchestrator.run(SyncMode.FULL, cancel_event=cancel)

    assert report.status is RunState.FAILED
    assert report.cancelled
    assert report.error is not None and report.error.startswith(ErrCode.CANCELLED)
    assert report.posts_processed == 0
    assert store.get_watermark("category_reconcile") is None


def test_cancel_mid_run_then_resume() -> None:
    cancel = threading.Event()
    posts = [make_post(i, link(f"topic-{i}"), minutes=i) for i in range(1, 41)]

    class CancellingStore(MemoryStore):
        def set_post_category(self, post_id: int, category_id: int) -> None:
            super().set_post_category(post_id, category_id)
            cancel.set()

    store = CancellingStore(posts)
    orchestrator = ReconciliationOrchestrator(store, workers=1)
    report = orchestrator.run(SyncMode.INCREMENTAL, cancel_event=cancel)

    assert report.status is RunState.FAILED
    assert report.cancelled
    assert 1 <= report.posts_processed < len(posts)
    assert store.get_watermark("category_reconcile") is None

    report = orchestrator.run(SyncMode.INCREMENTAL)
    assert report.status is RunState.COMPLETED
    assert all(store.get_post(p.id).category_id is not None for p in posts)
    assert_consistent(store)


def test_concurrent_run_is_rejected_as_busy(store: MemoryStore) -> None:
    entered = threading.Event()
    release = threading.Event()

    class SlowStore(MemoryStore):
        def set_post_category(self, post_id: int, category_id: int) -> None:
            entered.set()
            release.wait(timeout=5)
            super().set_post_category(post_id, category_id)

    slow = SlowStore([make_post(1, link("2021"))])
    orchestrator = ReconciliationOrchestrator(slow, workers=1)
    reports = []
    runner = threading.Thread(target=lambda: reports.append(orchestrator.run(SyncMode.FULL)))
    runner.start()
    assert entered.wait(timeout=5)
    assert orchestrator.state is RunState.RUNNING

    with pytest.raises(CategSyncError) as excinfo:
        orchestrator.run(SyncMode.INCREMENTAL)
    assert excinfo.value.code is ErrCode.BUSY

    release.set()
    runner.join(timeout=5)
    assert reports[0].status is RunState.COMPLETED
    assert orchestrator.state is RunState.COMPLETED


def test_unexpected_error_marks_run_failed() -> None:
    class ExplodingStore(MemoryStore):
        def recompute_post_counts(self) -> dict[int, int]:
            raise RuntimeError("boom")

    orchestrator = ReconciliationOrchestrator(ExplodingStore([make_post(1, None)]), workers=1)
    report = orchestrator.run(SyncMode.FULL)
    assert report.status is RunState.FAILED
    assert report.error == "boom"
    assert orchestrator.last_report is report


# ---- Rapport / point d'entrée ------------------------------------------------


def test_report_to_dict_is_json_friendly() -> None:
    store = MemoryStore(_corpus())
    report = run_reconciliation("full", store=store, workers=2)
    data = report.to_dict()
    assert data["mode"] == "full"
    assert data["status"] == "completed"
    assert data["posts_processed"] == 6
    assert data["watermark"] == max(p.modified_at for p in _corpus()).isoformat()
    assert isinstance(data["started_at"], str)
    assert data["anomalies"] == []


def test_mode_accepts_plain_strings(orchestrator: ReconciliationOrchestrator) -> None:
    assert orchestrator.run("incremental").mode is SyncMode.INCREMENTAL
    with pytest.raises(ValueError):
        orchestrator.run("partial")
