"""Thin adapter exposing the four store operations the engine relies on."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from time import perf_counter
from typing import Any, TypeVar

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from api_registry.consolidation.errors import StoreConflict, StoreUnavailable
from api_registry.models.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class RegistryStore:
    """Select/update/delete by predicate plus count upserts over one session.

    With ``autocommit`` every write commits on its own, which is what the
    best-effort migration relies on. ``transaction()`` suspends that and commits
    once at the end of the block.
    """

    def __init__(
        self,
        db: Session,
        *,
        statement_timeout_seconds: float | None = None,
        autocommit: bool = True,
    ) -> None:
        self._db = db
        self._timeout_ms = int(statement_timeout_seconds * 1000) if statement_timeout_seconds else None
        self._autocommit = autocommit
        self._in_transaction = False

    @property
    def session(self) -> Session:
        return self._db

    def select_where(
        self,
        model: type[ModelT],
        *criteria: Any,
        order_by: Sequence[Any] = (),
    ) -> list[ModelT]:
        stmt = select(model).where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        with self._guard("select", model):
            return list(self._db.scalars(stmt).all())

    def update_where(self, model: type[Base], criteria: Sequence[Any], values: dict[str, Any]) -> int:
        stmt = (
            update(model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with self._guard("update", model, write=True):
            return int(self._db.execute(stmt).rowcount or 0)

    def delete_where(self, model: type[Base], criteria: Sequence[Any]) -> int:
        stmt = delete(model).where(*criteria).execution_options(synchronize_session=False)
        with self._guard("delete", model, write=True):
            return int(self._db.execute(stmt).rowcount or 0)

    def upsert_counts(self, model: type[ModelT], row_id: Any, fields: dict[str, int]) -> ModelT | None:
        """Overwrite counter columns on one row; returns None and inserts nothing when it is absent."""

        with self._guard("upsert_counts", model, write=True):
            row = self._db.get(model, row_id, populate_existing=True)
            if row is None:
                return None
            for name, value in fields.items():
                setattr(row, name, value)
            self._db.flush()
            return row

    def insert_all(self, rows: Iterable[Base]) -> None:
        with self._guard("insert", None, write=True):
            self._db.add_all(list(rows))
            self._db.flush()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the block as one unit of work; any failure rolls the whole block back."""

        if self._in_transaction:
            yield
            return
        self._in_transaction = True
        try:
            yield
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StoreUnavailable(f"commit failed: {exc}") from exc
        except BaseException:
            self._db.rollback()
            raise
        finally:
            self._in_transaction = False

    @contextmanager
    def _guard(self, operation: str, model: type[Base] | None, *, write: bool = False) -> Iterator[None]:
        table = model.__tablename__ if model is not None else "-"
        started = perf_counter()
        try:
            self._apply_timeout()
            yield
            if write and self._autocommit and not self._in_transaction:
                self._db.commit()
        except IntegrityError as exc:
            self._rollback_unit()
            logger.warning("registry_store.conflict operation=%s table=%s", operation, table)
            raise StoreConflict(f"{operation} on {table} violated a constraint") from exc
        except SQLAlchemyError as exc:
            self._rollback_unit()
            logger.warning(
                "registry_store.failed operation=%s table=%s elapsed_ms=%.2f error=%s",
                operation,
                table,
                (perf_counter() - started) * 1000.0,
                exc.__class__.__name__,
            )
            raise StoreUnavailable(f"{operation} on {table} failed: {exc}") from exc
        if write:
            self._db.expire_all()
        logger.debug(
            "registry_store.ok operation=%s table=%s elapsed_ms=%.2f",
            operation,
            table,
            (perf_counter() - started) * 1000.0,
        )

    def _apply_timeout(self) -> None:
        if self._timeout_ms is None:
            return
        if self._db.get_bind().dialect.name != "postgresql":
            return
        # SET takes no bind parameters.
        self._db.execute(text(f"SET LOCAL statement_timeout = {self._timeout_ms}"))

    def _rollback_unit(self) -> None:
        if not self._in_transaction:
            self._db.rollback()
