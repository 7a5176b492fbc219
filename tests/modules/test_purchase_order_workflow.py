"""
Structural tests for the purchase order workflow table, plus the full
(status x action) grid: every pair outside the table is an invalid
transition regardless of who asks.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from restock_kernel.domain.actor import Actor, Role
from restock_kernel.exceptions import InvalidTransitionError
from restock_modules.purchasing import (
    PURCHASE_ORDER_CREATE,
    PURCHASE_ORDER_WORKFLOW,
    OrderAction,
    POStatus,
    PurchaseOrder,
    transition,
)

NOW = datetime(2025, 1, 2, 9, 0, tzinfo=timezone.utc)
VENDOR_EMAIL = "orders@acme.example"

# (from_status, action) pairs that exist in the table
LEGAL = {
    (POStatus.PENDING, OrderAction.APPROVE),
    (POStatus.PENDING, OrderAction.REJECT),
    (POStatus.APPROVED, OrderAction.ACCEPT),
    (POStatus.APPROVED, OrderAction.REJECT),
    (POStatus.ACCEPTED, OrderAction.DISPATCH),
    (POStatus.DISPATCHED, OrderAction.COMPLETE),
}

ACTORS = (
    Actor(role=Role.ADMIN, email="admin@restock.example"),
    Actor(role=Role.MANAGER, email="manager@restock.example"),
    Actor(role=Role.VENDOR, email=VENDOR_EMAIL),
)


def _order(status: POStatus) -> PurchaseOrder:
    return PurchaseOrder(
        id=uuid4(),
        product_id=1,
        vendor_id=7,
        vendor_email=VENDOR_EMAIL,
        quantity=10,
        status=status,
        created_at=NOW,
    )


class TestWorkflowStructure:

    def test_states_cover_every_status(self):
        assert set(PURCHASE_ORDER_WORKFLOW.states) == {s.value for s in POStatus}

    def test_initial_and_terminal_states(self):
        assert PURCHASE_ORDER_WORKFLOW.initial_state == "PENDING"
        assert set(PURCHASE_ORDER_WORKFLOW.terminal_states) == {"COMPLETED", "REJECTED"}

    def test_table_matches_legal_pairs(self):
        pairs = {
            (POStatus(t.from_state), OrderAction(t.action))
            for t in PURCHASE_ORDER_WORKFLOW.transitions
        }
        assert pairs == LEGAL

    def test_terminal_states_have_no_outgoing_transitions(self):
        for state in PURCHASE_ORDER_WORKFLOW.terminal_states:
            assert PURCHASE_ORDER_WORKFLOW.actions_from(state) == ()

    def test_create_is_not_in_the_table(self):
        assert all(t.action != "create" for t in PURCHASE_ORDER_WORKFLOW.transitions)
        assert PURCHASE_ORDER_CREATE.to_state == "PENDING"
        assert set(PURCHASE_ORDER_CREATE.allowed_roles) == {"MANAGER", "ADMIN"}

    def test_vendor_transitions_carry_ownership_guard(self):
        for t in PURCHASE_ORDER_WORKFLOW.transitions:
            if "VENDOR" in t.allowed_roles:
                assert t.guard is not None
                assert t.guard.name == "vendor_owns_order"
            else:
                assert t.guard is None


ILLEGAL = [
    (status, action)
    for status in POStatus
    for action in OrderAction
    if (status, action) not in LEGAL
]


class TestTransitionGrid:

    @pytest.mark.parametrize("status, action", ILLEGAL, ids=lambda v: getattr(v, "value", v))
    @pytest.mark.parametrize("actor", ACTORS, ids=lambda a: a.role.value)
    def test_pair_outside_table_is_invalid(self, status, action, actor):
        order = _order(status)
        payload = {"reason": "r", "delivery_date": "2025-02-01", "tracking_info": "T1"}

        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(order, action, actor, payload, now=NOW)

        assert exc_info.value.code == "INVALID_TRANSITION"
        assert exc_info.value.current_status == status.value

    def test_grid_size(self):
        assert len(ILLEGAL) == len(POStatus) * len(OrderAction) - len(LEGAL)

    def test_unknown_action_is_invalid(self):
        with pytest.raises(InvalidTransitionError):
            transition(_order(POStatus.PENDING), "cancel", ACTORS[0], None, now=NOW)
