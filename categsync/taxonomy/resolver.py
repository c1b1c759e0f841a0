"""
Résolution de la catégorie d'un post : extraction → classification → meilleur candidat → get-or-create.
"""

# taxonomy/resolver.py
from __future__ import annotations

from collections.abc import Sequence
import threading

from categsync.models.classification import Candidate
from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.models.post import Post
from categsync.models.reconcile import Anomaly, Resolution, Severity
from categsync.models.store import TaxonomyStore
from categsync.taxonomy.classifier import classify
from categsync.taxonomy.extractor import scan_category_links
from categsync.taxonomy.hierarchy import HierarchyStore
from categsync.utils.logger import LoggerProtocol, ensure_logger


def classify_candidates(slugs: Sequence[str]) -> list[Candidate]:
    return [Candidate(position=i, classification=classify(slug)) for i, slug in enumerate(slugs)]


def choose_candidate(candidates: Sequence[Candidate]) -> Candidate | None:
    """
    Spécificité la plus haute, puis premier extrait : ordre total, donc résultat déterministe.
    """
    if not candidates:
        return None
    return min(candidates, key=lambda c: (-c.classification.specificity, c.position))


class AssignmentResolver:
    def __init__(
        self,
        hierarchy: HierarchyStore,
        store: TaxonomyStore,
        *,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._hierarchy = hierarchy
        self._store = store
        self._logger = ensure_logger(logger, __name__)
        self._anomalies: list[Anomaly] = []
        self._anomalies_lock = threading.Lock()

    @property
    def anomalies(self) -> list[Anomaly]:
        with self._anomalies_lock:
            return list(self._anomalies)

    def drain_anomalies(self) -> list[Anomaly]:
        with self._anomalies_lock:
            drained, self._anomalies = self._anomalies, []
        return drained

    def _record(self, anomaly: Anomaly) -> None:
        with self._anomalies_lock:
            self._anomalies.append(anomaly)

    def target_for(self, post: Post) -> Resolution:
        """
        Calcule la catégorie cible (crée les catégories manquantes) sans écrire le post.

        Les erreurs de stockage (CategSyncError DB) remontent ; une violation d'invariant retombe sur
        la catégorie par défaut et est consignée comme anomalie.
        """
        scan = scan_category_links(post.body)
        for raw in scan.rejected:
            self._logger.debug("[EXTRACT] Segment rejeté post=%s : %r", post.id, raw)

        winner = choose_candidate(classify_candidates(scan.slugs))
        if winner is None:
            return Resolution(post_id=post.id, category_id=self._hierarchy.default_id, slug=None)

        try:
            category_id = self._hierarchy.get_or_create(winner.slug, winner.classification)
        except CategSyncError as exc:
            if exc.code is not ErrCode.INVARIANT:
                raise exc.with_context({"post_id": post.id})
            self._logger.error("[ASSIGN] Invariant violé pour %s (post=%s) : %s | ctx=%r", winner.slug, post.id, exc, exc.ctx)
            self._record(
                Anomaly(
                    severity=Severity.ERROR,
                    code="invariant_violation",
                    message=str(exc),
                    category_ids=tuple(v for k, v in exc.ctx.items() if k in ("category_id", "parent_id")),
                    post_ids=(post.id,),
                    slugs=(winner.slug,),
                )
            )
            return Resolution(
                post_id=post.id,
                category_id=self._hierarchy.default_id,
                slug=None,
                fallback_reason="invariant_violation",
            )
        return Resolution(post_id=post.id, category_id=category_id, slug=winner.slug)

    def resolve(self, post: Post) -> int:
        """
        Résout et écrit post.category_id (objet + store). Retourne l'id de catégorie.
        """
        resolution = self.target_for(post)
        if post.category_id != resolution.category_id:
            self._store.set_post_category(post.id, resolution.category_id)
            self._logger.debug(
                "[ASSIGN] post=%s : %s → %s (%s)",
                post.id,
                post.category_id,
                resolution.category_id,
                resolution.slug or f"défaut, {resolution.fallback_reason or 'aucun lien'}",
            )
        post.category_id = resolution.category_id
        return resolution.category_id
