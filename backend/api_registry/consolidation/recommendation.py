"""Canonical/duplicate split proposals for a candidate group."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import or_

from api_registry.consolidation.child_index import ChildRecordIndex
from api_registry.consolidation.errors import InsufficientCandidates, ResourcesMissing
from api_registry.consolidation.scoring import ScoringEngine, rank
from api_registry.consolidation.store import RegistryStore
from api_registry.consolidation.types import (
    Confidence,
    Recommendation,
    RiskAssessment,
    ScoredResource,
)
from api_registry.models.api_integration import ApiIntegration

logger = logging.getLogger(__name__)

_HIGH_RISK_ENDPOINTS = 50
_MEDIUM_RISK_ENDPOINTS = 20


class RecommendationService:
    """Scores every candidate and proposes the top scorer as the survivor."""

    def __init__(
        self,
        store: RegistryStore,
        index: ChildRecordIndex,
        scoring: ScoringEngine,
        *,
        high_confidence_ratio: float = 1.2,
    ) -> None:
        self._store = store
        self._index = index
        self._scoring = scoring
        self._high_confidence_ratio = high_confidence_ratio

    def discover_candidates(self, name_patterns: Iterable[str]) -> list[str]:
        """Return ids of integrations whose name contains any pattern, case-insensitively."""

        patterns = [pattern.strip() for pattern in name_patterns if pattern and pattern.strip()]
        if not patterns:
            return []
        rows = self._store.select_where(
            ApiIntegration,
            or_(*(ApiIntegration.name.icontains(pattern, autoescape=True) for pattern in patterns)),
            order_by=(ApiIntegration.id.asc(),),
        )
        return [row.id for row in rows]

    def recommend(self, candidate_ids: Iterable[str]) -> Recommendation:
        ids = sorted({str(candidate).strip() for candidate in candidate_ids if str(candidate).strip()})
        if len(ids) < 2:
            raise InsufficientCandidates(f"At least two candidates are required, got {len(ids)}")

        resources = self._store.select_where(ApiIntegration, ApiIntegration.id.in_(ids))
        found = {resource.id for resource in resources}
        missing = [candidate for candidate in ids if candidate not in found]
        if missing:
            raise ResourcesMissing(missing)

        children = self._index.load_for(ids)
        ranked = rank([self._scoring.explain(resource, children[resource.id]) for resource in resources])
        keep, remove = ranked[0], ranked[1:]

        recommendation = Recommendation(
            keep=keep,
            remove=remove,
            confidence=self._confidence(keep.score, remove[0].score),
            risk_assessment=_risk_assessment(remove),
            migration_steps=_migration_steps(keep, remove),
        )
        logger.info(
            "consolidation.recommend keep_id=%s keep_score=%.1f runner_up_score=%.1f confidence=%s risk=%s",
            keep.resource.id,
            keep.score,
            remove[0].score,
            recommendation.confidence,
            recommendation.risk_assessment,
        )
        return recommendation

    def _confidence(self, top_score: float, second_score: float) -> Confidence:
        return "high" if top_score > self._high_confidence_ratio * second_score else "medium"


def _risk_assessment(remove: list[ScoredResource]) -> RiskAssessment:
    to_migrate = sum(scored.endpoint_count for scored in remove)
    if to_migrate > _HIGH_RISK_ENDPOINTS:
        return "high"
    if to_migrate > _MEDIUM_RISK_ENDPOINTS:
        return "medium"
    return "low"


def _migration_steps(keep: ScoredResource, remove: list[ScoredResource]) -> list[str]:
    keep_name = keep.resource.name
    to_migrate = sum(scored.endpoint_count for scored in remove)
    return [
        f'Keep "{keep_name}" as the single source of truth (score {keep.score:g})',
        *(f'Deprecate "{scored.resource.name}" (score {scored.score:g})' for scored in remove),
        f"Migrate {to_migrate} endpoints to {keep_name}",
        f"Remove {len(remove)} duplicate registrations after migration",
        f"Verify all integrations point to {keep_name}",
    ]
