"""Registered API integration ORM model."""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from api_registry.models.base import Base, TimestampMixin

API_STATUSES = ("draft", "active", "deprecated")


class ApiIntegration(Base, TimestampMixin):
    """One registered integration; duplicates of the same upstream API are consolidated."""

    __tablename__ = "api_integration_registry"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'active', 'deprecated')",
            name="ck_api_integration_registry_status",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="draft", nullable=False)
    base_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    documentation_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    version: Mapped[str | None] = mapped_column(String(32), nullable=True)
    endpoints_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
