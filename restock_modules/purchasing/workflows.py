"""
Purchasing Workflows.

State machine for the purchase order lifecycle.  Each transition row names
the roles allowed to fire it; vendor rows carry the ownership guard.
"""

from restock_kernel.domain.actor import Role
from restock_kernel.domain.workflow import Guard, Transition, Workflow
from restock_kernel.logging_config import get_logger
from restock_modules.purchasing.models import OrderAction, POStatus

logger = get_logger("modules.purchasing.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

VENDOR_OWNS_ORDER = Guard(
    name="vendor_owns_order",
    description="Acting vendor's email matches the order's vendor email",
)

logger.info(
    "purchasing_workflow_guards_defined",
    extra={"guards": [VENDOR_OWNS_ORDER.name]},
)


# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

_PENDING = POStatus.PENDING.value
_APPROVED = POStatus.APPROVED.value
_ACCEPTED = POStatus.ACCEPTED.value
_DISPATCHED = POStatus.DISPATCHED.value
_COMPLETED = POStatus.COMPLETED.value
_REJECTED = POStatus.REJECTED.value

# Creation has no from-state; it is not part of the transition table, so
# ``create`` requested against an existing order never matches a row.
PURCHASE_ORDER_CREATE = Transition(
    from_state="",
    to_state=_PENDING,
    action=OrderAction.CREATE.value,
    allowed_roles=(Role.MANAGER.value, Role.ADMIN.value),
    stamps=("created_at",),
)

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Restock purchase order lifecycle",
    initial_state=_PENDING,
    states=tuple(s.value for s in POStatus),
    transitions=(
        Transition(
            _PENDING, _APPROVED, action=OrderAction.APPROVE.value,
            allowed_roles=(Role.ADMIN.value,),
            stamps=("approved_at",),
        ),
        Transition(
            _PENDING, _REJECTED, action=OrderAction.REJECT.value,
            allowed_roles=(Role.ADMIN.value,),
            required_fields=("reason",),
            stamps=("rejected_at",),
        ),
        Transition(
            _APPROVED, _ACCEPTED, action=OrderAction.ACCEPT.value,
            allowed_roles=(Role.VENDOR.value,),
            guard=VENDOR_OWNS_ORDER,
            required_fields=("delivery_date",),
            stamps=("accepted_at",),
        ),
        Transition(
            _APPROVED, _REJECTED, action=OrderAction.REJECT.value,
            allowed_roles=(Role.VENDOR.value,),
            guard=VENDOR_OWNS_ORDER,
            required_fields=("reason",),
            stamps=("rejected_at",),
        ),
        Transition(
            _ACCEPTED, _DISPATCHED, action=OrderAction.DISPATCH.value,
            allowed_roles=(Role.VENDOR.value,),
            guard=VENDOR_OWNS_ORDER,
            required_fields=("tracking_info",),
            stamps=("dispatch_date",),
        ),
        Transition(
            _DISPATCHED, _COMPLETED, action=OrderAction.COMPLETE.value,
            allowed_roles=(Role.MANAGER.value,),
            stamps=("completed_at",),
        ),
    ),
    terminal_states=(_COMPLETED, _REJECTED),
)

logger.info(
    "purchasing_po_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state,
    },
)
