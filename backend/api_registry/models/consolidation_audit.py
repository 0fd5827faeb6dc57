"""Consolidation audit log model."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from api_registry.models.base import Base, IdMixin


class ConsolidationAudit(Base, IdMixin):
    """Append-only record of executed consolidation plans."""

    __tablename__ = "consolidation_audits"

    keep_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    removed_ids_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    forced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    atomic: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    endpoints_migrated: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    resources_removed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    errors_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    validation_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
