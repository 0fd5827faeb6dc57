"""Endpoint lookups grouped by owning integration."""

from __future__ import annotations

from collections.abc import Iterable

from api_registry.consolidation.store import RegistryStore
from api_registry.models.api_endpoint import ApiEndpoint


class ChildRecordIndex:
    """Loads every endpoint owned by a set of integrations in one read.

    A failed read raises ``StoreUnavailable``; a partial map is never returned.
    """

    def __init__(self, store: RegistryStore) -> None:
        self._store = store

    def load_for(self, resource_ids: Iterable[str]) -> dict[str, list[ApiEndpoint]]:
        ids = sorted({str(resource_id) for resource_id in resource_ids})
        grouped: dict[str, list[ApiEndpoint]] = {resource_id: [] for resource_id in ids}
        if not ids:
            return grouped
        rows = self._store.select_where(
            ApiEndpoint,
            ApiEndpoint.external_api_id.in_(ids),
            order_by=(ApiEndpoint.id.asc(),),
        )
        for row in rows:
            grouped[row.external_api_id].append(row)
        return grouped
