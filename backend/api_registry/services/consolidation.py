"""Consolidation services wired from runtime settings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from api_registry.config import Settings, get_settings
from api_registry.consolidation import (
    ChildRecordIndex,
    ConsolidationPlan,
    ConsolidationValidator,
    LeaseRegistry,
    MigrationExecutor,
    MigrationResult,
    Recommendation,
    RecommendationService,
    RegistryStore,
    ScoringEngine,
    ValidationResult,
    weights_from_settings,
)


@dataclass(slots=True)
class ConsolidationComponents:
    store: RegistryStore
    recommendations: RecommendationService
    validator: ConsolidationValidator
    executor: MigrationExecutor
    leases: LeaseRegistry


def build_components(db: Session, settings: Settings | None = None) -> ConsolidationComponents:
    """Assemble one engine instance bound to a request session."""

    settings = settings or get_settings()
    store = RegistryStore(db, statement_timeout_seconds=settings.statement_timeout_seconds)
    index = ChildRecordIndex(store)
    validator = ConsolidationValidator(
        store,
        index,
        strict_schemas=settings.consolidation_strict_schemas,
    )
    return ConsolidationComponents(
        store=store,
        recommendations=RecommendationService(
            store,
            index,
            ScoringEngine(weights_from_settings(settings)),
            high_confidence_ratio=settings.high_confidence_ratio,
        ),
        validator=validator,
        executor=MigrationExecutor(store, validator, atomic=settings.consolidation_atomic),
        leases=LeaseRegistry(store, ttl_seconds=settings.consolidation_lease_ttl_seconds),
    )


def get_recommendation(
    db: Session,
    candidate_ids: Iterable[str] = (),
    name_patterns: Iterable[str] = (),
    *,
    settings: Settings | None = None,
) -> Recommendation:
    """Recommend a survivor among explicit candidates plus any name-pattern matches."""

    components = build_components(db, settings)
    candidates = set(candidate_ids)
    candidates.update(components.recommendations.discover_candidates(name_patterns))
    return components.recommendations.recommend(candidates)


def validate_plan(
    db: Session,
    plan: ConsolidationPlan,
    *,
    settings: Settings | None = None,
) -> ValidationResult:
    """Check whether a plan would drop any unique endpoint."""

    return build_components(db, settings).validator.validate(plan)


def consolidate(
    db: Session,
    plan: ConsolidationPlan,
    *,
    force: bool = False,
    settings: Settings | None = None,
) -> MigrationResult:
    """Execute a plan while holding the lease for every integration it touches."""

    components = build_components(db, settings)
    with components.leases.hold(plan) as lease:
        return components.executor.execute(plan, lease, force=force)
