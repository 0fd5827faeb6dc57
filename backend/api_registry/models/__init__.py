"""ORM models package exports."""

from api_registry.models.api_endpoint import ApiEndpoint
from api_registry.models.api_integration import API_STATUSES, ApiIntegration
from api_registry.models.consolidation_audit import ConsolidationAudit
from api_registry.models.consolidation_lease import ConsolidationLease

__all__ = [
    "API_STATUSES",
    "ApiEndpoint",
    "ApiIntegration",
    "ConsolidationAudit",
    "ConsolidationLease",
]
