"""
restock_services -- Package init and public API.

Responsibility:
    Boundaries to the outside world (catalog, recommendation source, order
    persistence) and runtime role enforcement for workflow transitions.

Architecture position:
    Services -- stateful adapters over the kernel and modules.

    ``restock_orchestrator`` is imported directly rather than re-exported
    here; it depends on ``restock_modules.purchasing.service``, which in
    turn imports ``rbac_authority`` from this package.

Failure modes:
    - ImportError at startup if a service's dependency graph is broken.
"""

from restock_kernel.logging_config import get_logger

logger = get_logger("services")

from restock_services.catalog_gateway import CatalogGateway, InMemoryCatalogGateway
from restock_services.order_store import InMemoryOrderStore, OrderStore, SqlOrderStore
from restock_services.rbac_authority import (
    GuardExecutor,
    check_transition_authority,
    default_guard_executor,
)
from restock_services.recommendation_store import (
    PayloadRecommendationStore,
    RecommendationStore,
    normalize_payload,
    normalize_recommendation,
)

__all__ = [
    "CatalogGateway",
    "InMemoryCatalogGateway",
    "OrderStore",
    "InMemoryOrderStore",
    "SqlOrderStore",
    "GuardExecutor",
    "check_transition_authority",
    "default_guard_executor",
    "RecommendationStore",
    "PayloadRecommendationStore",
    "normalize_payload",
    "normalize_recommendation",
]
