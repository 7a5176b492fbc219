"""
Purchasing Module (``restock_modules.purchasing``).

Responsibility
--------------
The purchase order lifecycle: creation from order intents, the role-gated
state machine (approve, reject, accept, dispatch, complete), and the
caller-facing service that persists transitions through an order store.

Architecture position
---------------------
**Modules layer** -- declarative workflow table, pure lifecycle decisions,
config schema, ORM model, and a service facade.

Invariants enforced
-------------------
* Permissions are read from the workflow table; no call site compares role
  strings.
* Transitions are compare-and-swap on status.
* Each lifecycle timestamp is set once, by the transition that produces it.

Failure modes
-------------
* ``InvalidTransitionError``, ``PermissionDeniedError``,
  ``MissingPayloadError`` (checked in that order).
* ``ConcurrentModificationError`` on a lost race.
"""

from restock_modules.purchasing.config import PurchasingConfig
from restock_modules.purchasing.lifecycle import (
    TransitionPlan,
    apply_plan,
    available_actions,
    transition,
)
from restock_modules.purchasing.models import (
    BatchFailure,
    BatchResult,
    OrderAction,
    POStatus,
    PurchaseOrder,
)
from restock_modules.purchasing.service import PurchaseOrderService
from restock_modules.purchasing.workflows import (
    PURCHASE_ORDER_CREATE,
    PURCHASE_ORDER_WORKFLOW,
    VENDOR_OWNS_ORDER,
)

__all__ = [
    "POStatus",
    "OrderAction",
    "PurchaseOrder",
    "BatchFailure",
    "BatchResult",
    "PurchasingConfig",
    "TransitionPlan",
    "transition",
    "apply_plan",
    "available_actions",
    "PurchaseOrderService",
    "PURCHASE_ORDER_CREATE",
    "PURCHASE_ORDER_WORKFLOW",
    "VENDOR_OWNS_ORDER",
]
