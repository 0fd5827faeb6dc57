"""Repoint-then-delete execution of a consolidation plan."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from time import perf_counter
from typing import Any

from api_registry.consolidation.errors import (
    ConsolidationError,
    InvalidPlan,
    LeaseExpired,
    PlanUnsafe,
    ResourcesMissing,
)
from api_registry.consolidation.locks import LeaseHandle, utcnow
from api_registry.consolidation.store import RegistryStore
from api_registry.consolidation.types import ConsolidationPlan, MigrationResult, ValidationResult
from api_registry.consolidation.validator import ConsolidationValidator
from api_registry.models.api_endpoint import ApiEndpoint
from api_registry.models.api_integration import ApiIntegration
from api_registry.models.consolidation_audit import ConsolidationAudit

logger = logging.getLogger(__name__)


class MigrationExecutor:
    """Executes a plan under a lease.

    Steps: re-validate, write the kept integration's endpoint count, repoint the
    removed integrations' endpoints, delete the removed integrations, then
    reconcile the stored count with the endpoints the kept integration actually
    owns. In best-effort mode each write commits on its own and a failed step is
    appended to ``MigrationResult.errors`` without stopping later steps. The
    delete is skipped when the repoint failed, so no integration is removed while
    it still owns endpoints.

    Every step is safe to re-run. Executing the same plan again after a partial
    failure converges; once the duplicates are gone, a replay only repairs a
    stale endpoint count and raises ``ResourcesMissing`` when nothing is left to
    repair. In atomic mode the three writes share one transaction and a failure
    raises with nothing applied.
    """

    def __init__(
        self,
        store: RegistryStore,
        validator: ConsolidationValidator,
        *,
        atomic: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._validator = validator
        self._atomic = atomic
        self._clock = clock

    def execute(self, plan: ConsolidationPlan, lease: LeaseHandle, *, force: bool = False) -> MigrationResult:
        if not lease.covers(plan):
            raise InvalidPlan(f"lease {lease.group_key!r} does not cover plan {plan.group_key!r}")

        started = perf_counter()
        try:
            validation = self._validator.validate(plan)
        except ResourcesMissing as exc:
            if plan.keep_id in exc.missing_ids or set(exc.missing_ids) != set(plan.remove_ids):
                raise
            return self._resume(plan, lease, exc, force=force, started=started)

        if not validation.safe_to_remove and not force:
            logger.info(
                "consolidation.execute_rejected keep_id=%s remove_ids=%s notes=%s",
                plan.keep_id,
                ",".join(plan.remove_ids),
                "; ".join(validation.notes),
            )
            raise PlanUnsafe(validation)

        self._require_live_lease(lease)
        result = MigrationResult(forced=force)
        if self._atomic:
            with self._store.transaction():
                self._update_keep_count(plan, validation, result)
                self._repoint_endpoints(plan, result)
                self._delete_duplicates(plan, result)
        else:
            self._best_effort("update_count", result, self._update_keep_count, plan, validation, result)
            repointed = self._best_effort("repoint", result, self._repoint_endpoints, plan, result)
            if repointed:
                self._best_effort("delete", result, self._delete_duplicates, plan, result)
            else:
                result.errors.append(_STEP_LABELS["delete_skipped"])
            self._best_effort("reconcile_count", result, self._reconcile_keep_count, plan, result)

        self._record_audit(plan, validation, result)
        self._log_complete(plan, result, started)
        return result

    def _resume(
        self,
        plan: ConsolidationPlan,
        lease: LeaseHandle,
        missing: ResourcesMissing,
        *,
        force: bool,
        started: float,
    ) -> MigrationResult:
        """Repair the kept count of a plan whose duplicates are already deleted."""

        keep = self._store.select_where(ApiIntegration, ApiIntegration.id == plan.keep_id)
        owned = self._owned_endpoint_count(plan)
        if keep and keep[0].endpoints_count == owned:
            raise missing

        logger.info(
            "consolidation.execute_resume keep_id=%s stored_count=%s owned=%d",
            plan.keep_id,
            keep[0].endpoints_count if keep else None,
            owned,
        )
        self._require_live_lease(lease)
        result = MigrationResult(forced=force)
        if self._atomic:
            with self._store.transaction():
                self._reconcile_keep_count(plan, result)
        else:
            self._best_effort("reconcile_count", result, self._reconcile_keep_count, plan, result)

        validation = ValidationResult(
            safe_to_remove=True,
            keep_endpoint_count=owned,
            notes=[f"{len(plan.remove_ids)} duplicate integrations were already removed"],
        )
        self._record_audit(plan, validation, result)
        self._log_complete(plan, result, started)
        return result

    def _require_live_lease(self, lease: LeaseHandle) -> None:
        if lease.expires_at <= self._clock():
            logger.warning(
                "consolidation.lease_expired token=%s group_key=%s expires_at=%s",
                lease.token,
                lease.group_key,
                lease.expires_at.isoformat(),
            )
            raise LeaseExpired(lease.group_key)

    def _best_effort(self, step: str, result: MigrationResult, func: Callable[..., None], *args: Any) -> bool:
        try:
            func(*args)
        except ConsolidationError as exc:
            logger.warning("consolidation.execute_step_failed step=%s error=%s", step, exc)
            result.errors.append(f"{_STEP_LABELS[step]}: {exc}")
            return False
        return True

    def _update_keep_count(
        self,
        plan: ConsolidationPlan,
        validation: ValidationResult,
        result: MigrationResult,
    ) -> None:
        total = validation.keep_endpoint_count + validation.remove_endpoint_count
        self._write_keep_count(plan, total)
        result.keep_endpoints_count = total

    def _repoint_endpoints(self, plan: ConsolidationPlan, result: MigrationResult) -> None:
        result.child_records_migrated = self._store.update_where(
            ApiEndpoint,
            [ApiEndpoint.external_api_id.in_(plan.remove_ids)],
            {"external_api_id": plan.keep_id},
        )

    def _delete_duplicates(self, plan: ConsolidationPlan, result: MigrationResult) -> None:
        result.resources_removed = self._store.delete_where(
            ApiIntegration,
            [ApiIntegration.id.in_(plan.remove_ids)],
        )

    def _reconcile_keep_count(self, plan: ConsolidationPlan, result: MigrationResult) -> None:
        owned = self._owned_endpoint_count(plan)
        if owned == result.keep_endpoints_count:
            return
        if result.keep_endpoints_count is not None:
            logger.warning(
                "consolidation.count_mismatch keep_id=%s written=%d owned=%d",
                plan.keep_id,
                result.keep_endpoints_count,
                owned,
            )
        self._write_keep_count(plan, owned)
        result.keep_endpoints_count = owned

    def _owned_endpoint_count(self, plan: ConsolidationPlan) -> int:
        return len(self._store.select_where(ApiEndpoint, ApiEndpoint.external_api_id == plan.keep_id))

    def _write_keep_count(self, plan: ConsolidationPlan, count: int) -> None:
        if self._store.upsert_counts(ApiIntegration, plan.keep_id, {"endpoints_count": count}) is None:
            raise ResourcesMissing([plan.keep_id])

    def _record_audit(
        self,
        plan: ConsolidationPlan,
        validation: ValidationResult,
        result: MigrationResult,
    ) -> None:
        audit = ConsolidationAudit(
            keep_id=plan.keep_id,
            removed_ids_json=list(plan.remove_ids),
            forced=result.forced,
            atomic=self._atomic,
            endpoints_migrated=result.child_records_migrated,
            resources_removed=result.resources_removed,
            errors_json=list(result.errors),
            validation_json=validation.as_dict(),
        )
        try:
            self._store.insert_all([audit])
        except ConsolidationError as exc:
            logger.warning("consolidation.audit_failed keep_id=%s error=%s", plan.keep_id, exc)
            result.errors.append(f"Failed to record audit entry: {exc}")

    def _log_complete(self, plan: ConsolidationPlan, result: MigrationResult, started: float) -> None:
        logger.info(
            (
                "consolidation.execute_complete keep_id=%s remove_ids=%s forced=%s atomic=%s "
                "migrated=%d removed=%d errors=%d total_ms=%.2f"
            ),
            plan.keep_id,
            ",".join(plan.remove_ids),
            result.forced,
            self._atomic,
            result.child_records_migrated,
            result.resources_removed,
            len(result.errors),
            (perf_counter() - started) * 1000.0,
        )


_STEP_LABELS = {
    "update_count": "Failed to update endpoint count on kept integration",
    "repoint": "Failed to migrate endpoints",
    "delete": "Failed to remove duplicate integrations",
    "delete_skipped": "Skipped removing duplicate integrations because their endpoints were not migrated",
    "reconcile_count": "Failed to reconcile endpoint count on kept integration",
}
