"""Deterministic canonicality scoring for duplicate integrations."""

from __future__ import annotations

from collections.abc import Sequence

from api_registry.config import Settings
from api_registry.consolidation.types import ScoredResource, ScoringWeights
from api_registry.models.api_endpoint import ApiEndpoint
from api_registry.models.api_integration import ApiIntegration


def weights_from_settings(settings: Settings) -> ScoringWeights:
    """Build scoring weights from runtime configuration."""

    return ScoringWeights(
        endpoint=settings.score_weight_endpoint,
        schema=settings.score_weight_schema,
        documentation=settings.score_weight_documentation,
        active=settings.score_weight_active,
        base_url=settings.score_weight_base_url,
        canonical_name=settings.score_weight_canonical_name,
        canonical_names=frozenset(name.strip() for name in settings.canonical_api_names if name.strip()),
    )


class ScoringEngine:
    """Scores an integration from its own attributes and its endpoints.

    score = endpoint * |endpoints|
          + schema * |endpoints carrying a request or response schema|
          + documentation  if documentation_url is set
          + active         if status == "active"
          + base_url       if base_url is set
          + canonical_name if name is in the preferred-name list

    Endpoint count dominates because it best reflects completeness. The result
    depends only on the arguments, so the same inputs always give the same score.
    """

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()

    def score(self, resource: ApiIntegration, children: Sequence[ApiEndpoint]) -> float:
        return self.explain(resource, children).score

    def explain(self, resource: ApiIntegration, children: Sequence[ApiEndpoint]) -> ScoredResource:
        weights = self.weights
        endpoint_count = len(children)
        schema_count = sum(1 for child in children if child.has_schema)
        score = 0.0
        reasons: list[str] = []

        endpoint_score = weights.endpoint * endpoint_count
        score += endpoint_score
        if endpoint_count:
            reasons.append(f"{endpoint_count} endpoints (+{endpoint_score:g})")

        schema_score = weights.schema * schema_count
        score += schema_score
        if schema_count:
            reasons.append(f"{schema_count} schemas (+{schema_score:g})")

        if _present(resource.documentation_url):
            score += weights.documentation
            reasons.append(f"Has documentation (+{weights.documentation:g})")
        if resource.status == "active":
            score += weights.active
            reasons.append(f"Active status (+{weights.active:g})")
        if _present(resource.base_url):
            score += weights.base_url
            reasons.append(f"Has base URL (+{weights.base_url:g})")
        if resource.name in weights.canonical_names:
            score += weights.canonical_name
            reasons.append(f"Preferred canonical name (+{weights.canonical_name:g})")

        return ScoredResource(
            resource=resource,
            score=score,
            endpoint_count=endpoint_count,
            schema_count=schema_count,
            reasons=reasons,
        )


def rank(scored: Sequence[ScoredResource]) -> list[ScoredResource]:
    """Highest score first; equal scores fall back to the smaller id."""

    return sorted(scored, key=lambda item: (-item.score, item.resource.id))


def _present(value: str | None) -> bool:
    return bool(value and value.strip())
