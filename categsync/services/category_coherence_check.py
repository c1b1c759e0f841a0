# categsync/services/category_coherence_check.py

from __future__ import annotations

from collections import defaultdict

from categsync.models.reconcile import Anomaly, Severity
from categsync.models.store import TaxonomyStore
from categsync.utils.config import DEFAULT_CATEGORY_SLUG
from categsync.utils.logger import LoggerProtocol, ensure_logger, with_child_logger


@with_child_logger
def check_category_coherence(
    store: TaxonomyStore,
    *,
    default_slug: str = DEFAULT_CATEGORY_SLUG,
    logger: LoggerProtocol | None = None,
) -> list[Anomaly]:
    """
    Contrôle a posteriori de l'état de la taxonomie (lecture seule).

    Vérifie : slugs uniques, absence d'orphelins, deux niveaux max, post_count == compte réel,
    aucun post sans catégorie, présence de la catégorie par défaut.
    """
    logger = ensure_logger(logger, __name__)
    anomalies: list[Anomaly] = []
    categories = store.list_categories()
    by_id = {c.id: c for c in categories}
    real = store.count_posts_by_category()
    logger.debug("🔍 Vérification de %d catégories", len(categories))

    by_slug: dict[str, list[int]] = defaultdict(list)
    for c in categories:
        by_slug[c.slug.lower()].append(c.id)
    for slug, ids in by_slug.items():
        if len(ids) > 1:
            anomalies.append(
                Anomaly(
                    severity=Severity.ERROR,
                    code="duplicate_slug",
                    message=f"Slug en double : {slug}",
                    category_ids=tuple(sorted(ids)),
                    slugs=(slug,),
                )
            )

    for c in categories:
        if c.parent_id is None:
            continue
        parent = by_id.get(c.parent_id)
        if parent is None:
            anomalies.append(
                Anomaly(
                    severity=Severity.ERROR,
                    code="orphan_category",
                    message=f"Parent {c.parent_id} inexistant pour {c.slug}",
                    category_ids=(c.id,),
                    slugs=(c.slug,),
                )
            )
        elif parent.parent_id is not None:
            anomalies.append(
                Anomaly(
                    severity=Severity.ERROR,
                    code="nested_too_deep",
                    message=f"{c.slug} est sous {parent.slug}, elle-même enfant",
                    category_ids=(c.id, parent.id),
                    slugs=(c.slug, parent.slug),
                )
            )

    for c in categories:
        actual = real.get(c.id, 0)
        if c.post_count != actual:
            anomalies.append(
                Anomaly(
                    severity=Severity.WARNING,
                    code="count_drift",
                    message=f"{c.slug} : post_count={c.post_count}, réel={actual}",
                    category_ids=(c.id,),
                    slugs=(c.slug,),
                )
            )

    unassigned = real.get(None, 0)
    if unassigned:
        anomalies.append(
            Anomaly(
                severity=Severity.WARNING,
                code="unassigned_posts",
                message=f"{unassigned} post(s) sans catégorie",
            )
        )

    dangling = sorted(cid for cid in real if cid is not None and cid not in by_id)
    if dangling:
        anomalies.append(
            Anomaly(
                severity=Severity.ERROR,
                code="dangling_assignment",
                message="Posts affectés à une catégorie inexistante",
                category_ids=tuple(dangling),
            )
        )

    if default_slug.lower() not in by_slug:
        anomalies.append(
            Anomaly(
                severity=Severity.ERROR,
                code="missing_default",
                message=f"Catégorie par défaut absente : {default_slug}",
                slugs=(default_slug,),
            )
        )

    if anomalies:
        for a in anomalies:
            logger.warning("🔍 [%s] %s", a.code, a.message)
    else:
        logger.info("✅ - Aucune incohérence détectée")
    return anomalies
