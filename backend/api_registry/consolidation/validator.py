"""Safety checks for a proposed consolidation plan."""

from __future__ import annotations

import logging

from api_registry.consolidation.child_index import ChildRecordIndex
from api_registry.consolidation.errors import ResourcesMissing
from api_registry.consolidation.store import RegistryStore
from api_registry.consolidation.types import (
    ChildRecordRef,
    ConsolidationPlan,
    ValidationResult,
    endpoint_key,
)
from api_registry.models.api_integration import ApiIntegration

logger = logging.getLogger(__name__)


class ConsolidationValidator:
    """Decides whether removing ``plan.remove_ids`` would lose any endpoint.

    An endpoint under a removed integration is unique when its ``(method, path)``
    key is absent from the kept integration. Any unique endpoint makes the plan
    unsafe. ``schema_coverage_delta`` is reported as a note only, unless
    ``strict_schemas`` is enabled.
    """

    def __init__(
        self,
        store: RegistryStore,
        index: ChildRecordIndex,
        *,
        strict_schemas: bool = False,
    ) -> None:
        self._store = store
        self._index = index
        self._strict_schemas = strict_schemas

    def validate(self, plan: ConsolidationPlan) -> ValidationResult:
        self._require_resources(plan)
        children = self._index.load_for(plan.resource_ids)

        keep_children = children[plan.keep_id]
        keep_keys = {endpoint_key(child.method, child.external_path) for child in keep_children}

        remove_children = [child for remove_id in plan.remove_ids for child in children[remove_id]]
        remove_keys = {endpoint_key(child.method, child.external_path) for child in remove_children}

        lost: list[ChildRecordRef] = []
        lost_keys: set[tuple[str, str]] = set()
        for child in remove_children:
            key = endpoint_key(child.method, child.external_path)
            if key in keep_keys:
                continue
            lost.append(
                ChildRecordRef(
                    method=key[0],
                    path=key[1],
                    endpoint_id=child.id,
                    parent_id=child.external_api_id,
                )
            )
            lost_keys.add(key)

        remove_schemas = sum(1 for child in remove_children if child.has_schema)
        keep_shared_schemas = sum(
            1
            for child in keep_children
            if child.has_schema and endpoint_key(child.method, child.external_path) in remove_keys
        )
        schema_delta = remove_schemas - keep_shared_schemas

        notes: list[str] = []
        if lost_keys:
            notes.append(f"{len(lost_keys)} unique endpoints would be lost")
        if schema_delta > 0:
            notes.append(f"{schema_delta} schemas might be lost")

        safe = not lost
        if self._strict_schemas and schema_delta > 0:
            safe = False

        result = ValidationResult(
            safe_to_remove=safe,
            unique_children_lost=lost,
            schema_coverage_delta=schema_delta,
            notes=notes,
            keep_endpoint_count=len(keep_children),
            remove_endpoint_count=len(remove_children),
        )
        logger.info(
            (
                "consolidation.validate keep_id=%s remove_ids=%s safe=%s "
                "unique_lost=%d schema_delta=%d keep_endpoints=%d remove_endpoints=%d"
            ),
            plan.keep_id,
            ",".join(plan.remove_ids),
            safe,
            len(lost),
            schema_delta,
            result.keep_endpoint_count,
            result.remove_endpoint_count,
        )
        return result

    def _require_resources(self, plan: ConsolidationPlan) -> None:
        found = {
            row.id
            for row in self._store.select_where(ApiIntegration, ApiIntegration.id.in_(plan.resource_ids))
        }
        missing = [resource_id for resource_id in plan.resource_ids if resource_id not in found]
        if missing:
            raise ResourcesMissing(missing)
