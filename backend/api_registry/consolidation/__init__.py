"""Duplicate API registration consolidation engine."""

from api_registry.consolidation.child_index import ChildRecordIndex
from api_registry.consolidation.errors import (
    ConsolidationError,
    ConsolidationInProgress,
    InsufficientCandidates,
    InvalidPlan,
    LeaseExpired,
    PlanUnsafe,
    ResourcesMissing,
    StoreConflict,
    StoreUnavailable,
)
from api_registry.consolidation.executor import MigrationExecutor
from api_registry.consolidation.locks import LeaseHandle, LeaseRegistry
from api_registry.consolidation.recommendation import RecommendationService
from api_registry.consolidation.scoring import ScoringEngine, rank, weights_from_settings
from api_registry.consolidation.store import RegistryStore
from api_registry.consolidation.types import (
    ChildRecordRef,
    ConsolidationPlan,
    MigrationResult,
    Recommendation,
    ScoredResource,
    ScoringWeights,
    ValidationResult,
)
from api_registry.consolidation.validator import ConsolidationValidator

__all__ = [
    "ChildRecordIndex",
    "ChildRecordRef",
    "ConsolidationError",
    "ConsolidationInProgress",
    "ConsolidationPlan",
    "ConsolidationValidator",
    "InsufficientCandidates",
    "InvalidPlan",
    "LeaseExpired",
    "LeaseHandle",
    "LeaseRegistry",
    "MigrationExecutor",
    "MigrationResult",
    "PlanUnsafe",
    "Recommendation",
    "RecommendationService",
    "RegistryStore",
    "ResourcesMissing",
    "ScoredResource",
    "ScoringEngine",
    "ScoringWeights",
    "StoreConflict",
    "StoreUnavailable",
    "ValidationResult",
    "rank",
    "weights_from_settings",
]
