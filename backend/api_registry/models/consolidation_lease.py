"""Advisory lease rows guarding in-flight consolidation plans."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from api_registry.models.base import Base, CreatedAtMixin, IdMixin


class ConsolidationLease(Base, IdMixin, CreatedAtMixin):
    """One locked resource id; the unique constraint is the lock."""

    __tablename__ = "consolidation_leases"

    resource_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    token: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    group_key: Mapped[str] = mapped_column(String(2048), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
