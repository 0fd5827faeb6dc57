"""Shared builders for consolidation tests."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import create_engine, delete, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from api_registry.models.api_endpoint import ApiEndpoint
from api_registry.models.api_integration import ApiIntegration
from api_registry.models.consolidation_audit import ConsolidationAudit
from api_registry.models.consolidation_lease import ConsolidationLease

SCHEMA = {"type": "object"}


def make_sqlite_engine() -> Engine:
    """In-memory SQLite engine that enforces foreign keys like PostgreSQL."""

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def reset_tables(db: Session) -> None:
    db.execute(delete(ConsolidationAudit))
    db.execute(delete(ConsolidationLease))
    db.execute(delete(ApiEndpoint))
    db.execute(delete(ApiIntegration))
    db.commit()


def make_endpoints(
    integration_id: str,
    routes: Iterable[tuple[str, str]],
    *,
    with_schemas: bool = False,
) -> list[ApiEndpoint]:
    return [
        ApiEndpoint(
            external_api_id=integration_id,
            method=method,
            external_path=path,
            request_schema=SCHEMA if with_schemas else None,
            response_schema=SCHEMA if with_schemas else None,
        )
        for method, path in routes
    ]


def add_integration(
    db: Session,
    integration_id: str,
    routes: Iterable[tuple[str, str]] = (),
    *,
    name: str | None = None,
    status: str = "draft",
    base_url: str | None = None,
    documentation_url: str | None = None,
    with_schemas: bool = False,
) -> ApiIntegration:
    """Persist one integration plus its endpoints and commit."""

    endpoints = make_endpoints(integration_id, routes, with_schemas=with_schemas)
    integration = ApiIntegration(
        id=integration_id,
        name=name or integration_id,
        status=status,
        base_url=base_url,
        documentation_url=documentation_url,
        endpoints_count=len(endpoints),
    )
    db.add(integration)
    db.flush()
    db.add_all(endpoints)
    db.commit()
    return integration


def routes(count: int, prefix: str = "/items") -> list[tuple[str, str]]:
    return [("GET", f"{prefix}/{index}") for index in range(count)]
