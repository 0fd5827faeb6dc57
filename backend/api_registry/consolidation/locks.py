"""Advisory leases guaranteeing one in-flight plan per integration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from api_registry.consolidation.errors import ConsolidationInProgress, StoreConflict, StoreUnavailable
from api_registry.consolidation.store import RegistryStore
from api_registry.consolidation.types import ConsolidationPlan
from api_registry.models.consolidation_lease import ConsolidationLease

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class LeaseHandle:
    """Proof that the caller holds every integration id in ``group_key``."""

    token: str
    group_key: str
    resource_ids: tuple[str, ...]
    expires_at: datetime

    def covers(self, plan: ConsolidationPlan) -> bool:
        return self.group_key == plan.group_key


class LeaseRegistry:
    """Lease rows keyed by integration id, shared by every process on the same store.

    Expired rows are purged before each acquisition so a crashed worker cannot
    hold integrations past ``ttl_seconds``.
    """

    def __init__(
        self,
        store: RegistryStore,
        *,
        ttl_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def acquire(self, plan: ConsolidationPlan) -> LeaseHandle:
        now = self._clock()
        self._store.delete_where(ConsolidationLease, [ConsolidationLease.expires_at <= now])

        handle = LeaseHandle(
            token=uuid4().hex,
            group_key=plan.group_key,
            resource_ids=plan.resource_ids,
            expires_at=now + self._ttl,
        )
        rows = [
            ConsolidationLease(
                resource_id=resource_id,
                token=handle.token,
                group_key=handle.group_key,
                expires_at=handle.expires_at,
            )
            for resource_id in handle.resource_ids
        ]
        try:
            self._store.insert_all(rows)
        except StoreConflict as exc:
            held = self._store.select_where(
                ConsolidationLease,
                ConsolidationLease.resource_id.in_(handle.resource_ids),
            )
            held_ids = sorted(row.resource_id for row in held) or list(handle.resource_ids)
            logger.info(
                "consolidation.lease_busy group_key=%s held=%s",
                handle.group_key,
                ",".join(held_ids),
            )
            raise ConsolidationInProgress(held_ids) from exc

        logger.info(
            "consolidation.lease_acquired token=%s group_key=%s expires_at=%s",
            handle.token,
            handle.group_key,
            handle.expires_at.isoformat(),
        )
        return handle

    def release(self, handle: LeaseHandle) -> None:
        released = self._store.delete_where(ConsolidationLease, [ConsolidationLease.token == handle.token])
        logger.info("consolidation.lease_released token=%s rows=%d", handle.token, released)

    @contextmanager
    def hold(self, plan: ConsolidationPlan) -> Iterator[LeaseHandle]:
        handle = self.acquire(plan)
        try:
            yield handle
        finally:
            try:
                self.release(handle)
            except StoreUnavailable:
                logger.exception(
                    "consolidation.lease_release_failed token=%s expires_at=%s",
                    handle.token,
                    handle.expires_at.isoformat(),
                )
