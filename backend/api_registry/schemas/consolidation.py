"""Request and response schemas for consolidation endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from api_registry.consolidation.types import (
    MigrationResult,
    Recommendation,
    ScoredResource,
    ValidationResult,
)


class ConsolidationPlanRequest(BaseModel):
    """Integration to keep and the duplicates to fold into it."""

    keep_id: str = Field(..., min_length=1)
    remove_ids: list[str] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_disjoint(self) -> "ConsolidationPlanRequest":
        if self.keep_id.strip() in {value.strip() for value in self.remove_ids}:
            raise ValueError("keep_id must not appear in remove_ids.")
        return self


class ConsolidationExecuteRequest(ConsolidationPlanRequest):
    force: bool = False


class ApiIntegrationRead(BaseModel):
    """Serialized registered integration."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    status: str
    base_url: str | None
    documentation_url: str | None
    version: str | None
    endpoints_count: int
    created_at: datetime
    updated_at: datetime


class ScoredIntegrationRead(BaseModel):
    integration: ApiIntegrationRead
    score: float
    endpoint_count: int
    schema_count: int
    reasons: list[str]

    @classmethod
    def from_scored(cls, scored: ScoredResource) -> "ScoredIntegrationRead":
        return cls(
            integration=ApiIntegrationRead.model_validate(scored.resource),
            score=scored.score,
            endpoint_count=scored.endpoint_count,
            schema_count=scored.schema_count,
            reasons=list(scored.reasons),
        )


class ConsolidationPlanRead(BaseModel):
    keep_id: str
    remove_ids: list[str]


class RecommendationRead(BaseModel):
    """Proposed survivor, duplicates, and how sure the scoring is."""

    keep: ScoredIntegrationRead
    remove: list[ScoredIntegrationRead]
    confidence: Literal["high", "medium"]
    risk_assessment: Literal["low", "medium", "high"]
    migration_steps: list[str]
    plan: ConsolidationPlanRead

    @classmethod
    def from_recommendation(cls, recommendation: Recommendation) -> "RecommendationRead":
        plan = recommendation.plan
        return cls(
            keep=ScoredIntegrationRead.from_scored(recommendation.keep),
            remove=[ScoredIntegrationRead.from_scored(scored) for scored in recommendation.remove],
            confidence=recommendation.confidence,
            risk_assessment=recommendation.risk_assessment,
            migration_steps=list(recommendation.migration_steps),
            plan=ConsolidationPlanRead(keep_id=plan.keep_id, remove_ids=list(plan.remove_ids)),
        )


class ChildRecordRefRead(BaseModel):
    method: str
    path: str
    endpoint_id: int
    parent_id: str


class ValidationResultRead(BaseModel):
    """Whether removal is safe and what would be lost otherwise."""

    safe_to_remove: bool
    unique_children_lost: list[ChildRecordRefRead]
    schema_coverage_delta: int
    notes: list[str]
    keep_endpoint_count: int
    remove_endpoint_count: int

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResultRead":
        return cls.model_validate(result.as_dict())


class MigrationResultRead(BaseModel):
    """Step counts for one execution; ``errors`` lists steps that did not complete."""

    child_records_migrated: int
    resources_removed: int
    errors: list[str]
    keep_endpoints_count: int | None
    forced: bool
    completed: bool

    @classmethod
    def from_result(cls, result: MigrationResult) -> "MigrationResultRead":
        return cls(
            child_records_migrated=result.child_records_migrated,
            resources_removed=result.resources_removed,
            errors=list(result.errors),
            keep_endpoints_count=result.keep_endpoints_count,
            forced=result.forced,
            completed=result.completed,
        )
