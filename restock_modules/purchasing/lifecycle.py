"""
Purchase Order Lifecycle (``restock_modules.purchasing.lifecycle``).

Responsibility
--------------
Decides a single requested transition on a purchase order: is the action
legal from the current status, may this actor fire it, is the payload
complete.  Produces a ``TransitionPlan`` naming the new status and exactly
the fields the transition sets.  Persisting the plan (compare-and-swap on
status) is the order store's job.

Architecture position
---------------------
**Modules layer** -- pure decision logic.  No I/O; the caller supplies
"now".  Table-driven from ``PURCHASE_ORDER_WORKFLOW``; role checks are
delegated to ``restock_services.rbac_authority``.

Invariants enforced
-------------------
* A vendor acting on another vendor's order is told "permission denied"
  whatever the order's status, so a refusal never reveals it.
* Otherwise the check order is fixed: status/action legality, then
  authority, then payload.
* No transition re-stamps a timestamp or overwrites tracking data.  The
  workflow table guarantees it: along any path each field is set by at most
  one transition.  ``transition`` itself does not inspect the fields.

Failure modes
-------------
* ``InvalidTransitionError`` -- (status, action) not in the table.  Covers
  repeated actions, out-of-order actions, anything on a terminal order,
  and ``create`` against an existing order.
* ``PermissionDeniedError`` -- role or ownership mismatch.
* ``MissingPayloadError`` -- required field absent or blank.
* ``ValidationError`` -- ``delivery_date`` present but not a date.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable

from restock_kernel.domain.actor import Actor, Role
from restock_kernel.domain.workflow import Transition, Workflow
from restock_kernel.exceptions import (
    InvalidTransitionError,
    MissingPayloadError,
    PermissionDeniedError,
    ValidationError,
)
from restock_kernel.logging_config import LogContext, get_logger
from restock_modules.purchasing.models import OrderAction, POStatus, PurchaseOrder
from restock_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW
from restock_services.rbac_authority import check_transition_authority

logger = get_logger("modules.purchasing.lifecycle")

TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_PERMISSION_DENIED = "permission_denied"
OUTCOME_MISSING_PAYLOAD = "missing_payload"
OUTCOME_INVALID_PAYLOAD = "invalid_payload"
OUTCOME_CONFLICT = "conflict"

# Payload key -> order field it lands in
PAYLOAD_TARGETS: dict[str, str] = {
    "delivery_date": "delivery_date",
    "reason": "rejection_reason",
    "tracking_info": "tracking_number",
}

# Wire spellings accepted for payload keys
PAYLOAD_ALIASES: dict[str, str] = {
    "deliveryDate": "delivery_date",
    "trackingInfo": "tracking_info",
    "trackingNumber": "tracking_info",
    "rejectionReason": "reason",
}


@dataclass(frozen=True)
class TransitionPlan:
    """The validated outcome of a transition request, not yet persisted."""
    order_id: Any
    action: OrderAction
    from_status: POStatus
    to_status: POStatus
    fields: dict[str, Any] = field(default_factory=dict)


def emit_workflow_trace(
    workflow_name: str,
    action: str,
    order_id: Any,
    from_state: str,
    outcome: str,
    reason: str,
    duration_ms: float,
    to_state: str | None = None,
    outcome_sink: Callable[[dict], None] | None = None,
) -> None:
    """Emit a structured workflow transition record."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "workflow": workflow_name,
        "action": action,
        "entity_id": str(order_id),
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    if to_state is not None:
        record["to_state"] = to_state
    record.update(LogContext.get_all())
    if outcome == OUTCOME_SUCCESS:
        logger.info("workflow_transition", extra=record)
    else:
        logger.warning("workflow_transition", extra=record)
    if outcome_sink is not None:
        outcome_sink(record)


def normalize_payload(payload: Mapping[str, Any] | None) -> dict[str, Any]:
    """Map accepted wire spellings onto canonical payload keys."""
    normalized: dict[str, Any] = {}
    for key, value in (payload or {}).items():
        normalized[PAYLOAD_ALIASES.get(key, key)] = value
    return normalized


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _coerce_payload_value(name: str, value: Any) -> Any:
    if name == "delivery_date":
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            raise ValidationError(
                f"delivery_date must be an ISO date (YYYY-MM-DD), got {value!r}",
                field="delivery_date",
            ) from None
    return str(value).strip()


def transition(
    order: PurchaseOrder,
    action: OrderAction | str,
    actor: Actor,
    payload: Mapping[str, Any] | None,
    now: datetime,
    workflow: Workflow = PURCHASE_ORDER_WORKFLOW,
    outcome_sink: Callable[[dict], None] | None = None,
) -> TransitionPlan:
    """
    Validate a transition request against the workflow table.

    Returns:
        TransitionPlan with ``to_status`` and exactly the fields the
        transition sets (its timestamp plus any payload-derived field).
    """
    t0 = time.monotonic()
    from_state = order.status.value
    try:
        action = OrderAction.parse(action)
    except ValueError:
        raise InvalidTransitionError(str(order.id), from_state, str(action)) from None

    def trace(outcome: str, reason: str, to_state: str | None = None) -> None:
        emit_workflow_trace(
            workflow_name=workflow.name,
            action=action.value,
            order_id=order.id,
            from_state=from_state,
            outcome=outcome,
            reason=reason,
            duration_ms=(time.monotonic() - t0) * 1000,
            to_state=to_state,
            outcome_sink=outcome_sink,
        )

    if actor.role is Role.VENDOR and not actor.owns(order.vendor_email):
        trace(OUTCOME_PERMISSION_DENIED, "Order is addressed to another vendor")
        raise PermissionDeniedError(action.value, actor.role.value)

    row = workflow.find_transition(from_state, action.value)
    if row is None:
        reason = (
            f"No transition from '{from_state}' via action '{action.value}' "
            f"in workflow '{workflow.name}'"
        )
        trace(OUTCOME_NO_TRANSITION, reason)
        raise InvalidTransitionError(str(order.id), from_state, action.value)

    allowed, reason = check_transition_authority(row, actor, order)
    if not allowed:
        trace(OUTCOME_PERMISSION_DENIED, reason)
        raise PermissionDeniedError(action.value, actor.role.value)

    data = normalize_payload(payload)
    for name in row.required_fields:
        if _is_blank(data.get(name)):
            trace(OUTCOME_MISSING_PAYLOAD, f"Missing payload field: {name}")
            raise MissingPayloadError(action.value, name)

    try:
        fields = _build_fields(row, data, now)
    except ValidationError as exc:
        trace(OUTCOME_INVALID_PAYLOAD, str(exc))
        raise

    trace(OUTCOME_SUCCESS, "Transition allowed", to_state=row.to_state)
    return TransitionPlan(
        order_id=order.id,
        action=action,
        from_status=order.status,
        to_status=POStatus(row.to_state),
        fields=fields,
    )


def _build_fields(row: Transition, data: dict[str, Any], now: datetime) -> dict[str, Any]:
    fields: dict[str, Any] = {stamp: now for stamp in row.stamps}
    for name in row.required_fields:
        fields[PAYLOAD_TARGETS[name]] = _coerce_payload_value(name, data[name])
    return fields


def apply_plan(order: PurchaseOrder, plan: TransitionPlan) -> PurchaseOrder:
    """Return ``order`` with the plan's status and fields applied."""
    return replace(order, status=plan.to_status, **plan.fields)


def available_actions(
    order: PurchaseOrder,
    actor: Actor,
    workflow: Workflow = PURCHASE_ORDER_WORKFLOW,
) -> tuple[OrderAction, ...]:
    """Actions ``actor`` may fire on ``order`` right now (payload aside)."""
    actions: list[OrderAction] = []
    for row in workflow.transitions:
        if row.from_state != order.status.value:
            continue
        allowed, _ = check_transition_authority(row, actor, order)
        if allowed:
            action = OrderAction(row.action)
            if action not in actions:
                actions.append(action)
    return tuple(actions)
