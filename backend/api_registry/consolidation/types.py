"""Value types passed between the consolidation components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal

from api_registry.consolidation.errors import InvalidPlan
from api_registry.models.api_integration import ApiIntegration

Confidence = Literal["high", "medium"]
RiskAssessment = Literal["low", "medium", "high"]


def endpoint_key(method: str, path: str) -> tuple[str, str]:
    """Identity of a capability for duplicate detection: ``(METHOD, path)``."""

    return (method.strip().upper(), path.strip())


@dataclass(frozen=True, slots=True)
class ChildRecordRef:
    """Reference to one endpoint that a plan would drop."""

    method: str
    path: str
    endpoint_id: int
    parent_id: str

    @property
    def key(self) -> tuple[str, str]:
        return endpoint_key(self.method, self.path)

    def label(self) -> str:
        return f"{self.method}:{self.path}"


@dataclass(slots=True)
class ConsolidationPlan:
    """Keep one integration, remove the rest."""

    keep_id: str
    remove_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        self.keep_id = str(self.keep_id).strip()
        self.remove_ids = _unique_ids(self.remove_ids)
        if not self.keep_id:
            raise InvalidPlan("keep_id must not be empty")
        if not self.remove_ids:
            raise InvalidPlan("remove_ids must contain at least one integration id")
        if self.keep_id in self.remove_ids:
            raise InvalidPlan(f"keep_id {self.keep_id!r} is also listed in remove_ids")

    @property
    def resource_ids(self) -> tuple[str, ...]:
        return tuple(sorted((self.keep_id, *self.remove_ids)))

    @property
    def group_key(self) -> str:
        return "|".join(self.resource_ids)


@dataclass(slots=True)
class ValidationResult:
    safe_to_remove: bool
    unique_children_lost: list[ChildRecordRef] = field(default_factory=list)
    schema_coverage_delta: int = 0
    notes: list[str] = field(default_factory=list)
    keep_endpoint_count: int = 0
    remove_endpoint_count: int = 0

    def as_dict(self) -> dict[str, object]:
        return {
            "safe_to_remove": self.safe_to_remove,
            "unique_children_lost": [
                {
                    "method": ref.method,
                    "path": ref.path,
                    "endpoint_id": ref.endpoint_id,
                    "parent_id": ref.parent_id,
                }
                for ref in self.unique_children_lost
            ],
            "schema_coverage_delta": self.schema_coverage_delta,
            "notes": list(self.notes),
            "keep_endpoint_count": self.keep_endpoint_count,
            "remove_endpoint_count": self.remove_endpoint_count,
        }


@dataclass(slots=True)
class MigrationResult:
    """Outcome of one execution; ``errors`` lists every step that did not complete."""

    child_records_migrated: int = 0
    resources_removed: int = 0
    errors: list[str] = field(default_factory=list)
    keep_endpoints_count: int | None = None
    forced: bool = False

    @property
    def completed(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class ScoringWeights:
    """Canonicality weights; injected so policy can change without code edits."""

    endpoint: float = 3.0
    schema: float = 2.5
    documentation: float = 15.0
    active: float = 10.0
    base_url: float = 5.0
    canonical_name: float = 5.0
    canonical_names: frozenset[str] = frozenset()

    @classmethod
    def zero(cls) -> ScoringWeights:
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass(slots=True)
class ScoredResource:
    resource: ApiIntegration
    score: float
    endpoint_count: int
    schema_count: int
    reasons: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Recommendation:
    keep: ScoredResource
    remove: list[ScoredResource]
    confidence: Confidence
    risk_assessment: RiskAssessment
    migration_steps: list[str] = field(default_factory=list)

    @property
    def plan(self) -> ConsolidationPlan:
        return ConsolidationPlan(
            keep_id=self.keep.resource.id,
            remove_ids=tuple(scored.resource.id for scored in self.remove),
        )


def _unique_ids(values: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for raw in values:
        value = str(raw).strip()
        if not value or value in seen:
            continue
        seen.add(value)
        cleaned.append(value)
    return tuple(cleaned)
