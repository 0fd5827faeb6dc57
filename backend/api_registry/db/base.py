"""SQLAlchemy metadata registry import for Alembic."""

from api_registry.models import ApiEndpoint, ApiIntegration, ConsolidationAudit, ConsolidationLease
from api_registry.models.base import Base

__all__ = ["Base", "ApiIntegration", "ApiEndpoint", "ConsolidationLease", "ConsolidationAudit"]
