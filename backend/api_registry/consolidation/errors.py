"""Error taxonomy for the consolidation engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from api_registry.consolidation.types import ValidationResult


class ConsolidationError(Exception):
    """Base class; ``status_code`` is the HTTP status the routers report."""

    status_code = 500
    code = "consolidation_error"


class StoreUnavailable(ConsolidationError):
    """A read or write against the backing store failed or timed out."""

    status_code = 503
    code = "store_unavailable"


class PlanUnsafe(ConsolidationError):
    """Validation found unique endpoints that would be lost and ``force`` was not set."""

    status_code = 409
    code = "plan_unsafe"

    def __init__(self, validation: ValidationResult) -> None:
        self.validation = validation
        super().__init__("; ".join(validation.notes) or "Consolidation plan is not safe")


class InsufficientCandidates(ConsolidationError):
    status_code = 422
    code = "insufficient_candidates"


class InvalidPlan(ConsolidationError):
    status_code = 422
    code = "invalid_plan"


class ResourcesMissing(ConsolidationError):
    """Plan references integrations that no longer exist (e.g. an already-applied plan)."""

    status_code = 404
    code = "resources_missing"

    def __init__(self, missing_ids: list[str]) -> None:
        self.missing_ids = missing_ids
        super().__init__(f"Integrations not found: {', '.join(missing_ids)}")


class ConsolidationInProgress(ConsolidationError):
    """Another plan holds a lease on one of the requested integrations."""

    status_code = 423
    code = "consolidation_in_progress"

    def __init__(self, resource_ids: list[str]) -> None:
        self.resource_ids = resource_ids
        super().__init__(f"Consolidation already in progress for: {', '.join(resource_ids)}")


class StoreConflict(ConsolidationError):
    """An insert collided with a unique constraint."""

    status_code = 409
    code = "store_conflict"


class LeaseExpired(ConsolidationError):
    """The lease outlived its TTL before the writes started; another plan may own the ids now."""

    status_code = 409
    code = "lease_expired"

    def __init__(self, group_key: str) -> None:
        self.group_key = group_key
        super().__init__(f"Consolidation lease expired for: {group_key}")
