"""External API endpoint ORM model."""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from api_registry.models.base import Base, CreatedAtMixin, IdMixin


class ApiEndpoint(Base, IdMixin, CreatedAtMixin):
    """One HTTP capability owned by exactly one registered integration."""

    __tablename__ = "external_api_endpoints"

    # RESTRICT: deleting an integration must never cascade into endpoints that failed to migrate.
    external_api_id: Mapped[str] = mapped_column(
        ForeignKey("api_integration_registry.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    external_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    request_schema: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    response_schema: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    requires_authentication: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def has_schema(self) -> bool:
        return bool(self.request_schema) or bool(self.response_schema)
