"""
Reconciliation Module (``restock_modules.reconciliation``).

Responsibility
--------------
Merges machine-generated restock recommendations with a person's edits
(quantity, vendor, inclusion/exclusion) and resolves the reviewed selection
into order intents grouped by vendor.

Architecture position
---------------------
**Modules layer** -- pure in-memory state plus value objects.  Fetching
recommendations and vendors is ``restock_services``' job; creating orders
is ``restock_modules.purchasing``'.

Failure modes
-------------
* ``ValidationError`` when an empty or all-deleted selection is turned into
  intents, or when an intent has no vendor at grouping time.
"""

from restock_modules.reconciliation.config import ReconciliationConfig
from restock_modules.reconciliation.intents import group_intents_by_vendor, parse_batch_lines
from restock_modules.reconciliation.models import (
    BatchItem,
    ConfidenceBand,
    OrderIntent,
    ReconciledItem,
    ReconciliationSummary,
    RestockRecommendation,
    Urgency,
)
from restock_modules.reconciliation.session import ReconciliationSession, coerce_quantity

__all__ = [
    "Urgency",
    "ConfidenceBand",
    "RestockRecommendation",
    "ReconciledItem",
    "OrderIntent",
    "BatchItem",
    "ReconciliationSummary",
    "ReconciliationSession",
    "ReconciliationConfig",
    "coerce_quantity",
    "group_intents_by_vendor",
    "parse_batch_lines",
]
