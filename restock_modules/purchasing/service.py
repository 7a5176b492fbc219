"""
Purchase Order Service (``restock_modules.purchasing.service``).

Responsibility
--------------
Caller-facing ``orders.*`` API: create purchase orders (singly or in a
single-vendor batch), fire lifecycle transitions, and read orders back
scoped to the caller's role.

Architecture position
---------------------
**Modules layer** -- thin coordinator.  Decisions are delegated to the pure
``lifecycle.transition``; persistence and the compare-and-swap to an
``OrderStore``; product/vendor lookups and the stock-in effect to a
``CatalogGateway``.  Time comes from an injected ``Clock``.

Invariants enforced
-------------------
* Every public method either fully applies or fully rejects; batch
  creation reports item by item.
* A transition is persisted only if the order's status is still the one
  the plan was made from.  On conflict nothing is written and the caller
  re-fetches.
* The completion stock-in happens only after the COMPLETED transition has
  been persisted, and at most once per order.  The product is checked
  before the save; a stock-in that still fails is parked for
  ``retry_stock_in`` and never raised past the committed transition.
* Vendors only ever see orders addressed to their own email.

Failure modes
-------------
* ``ValidationError`` -- empty batch, missing vendor, bad quantity.
* ``InvalidTransitionError`` / ``PermissionDeniedError`` /
  ``MissingPayloadError`` -- from the lifecycle, in that order.
* ``ConcurrentModificationError`` -- lost the race on status.
* ``OrderNotFoundError`` -- unknown id, or another vendor's order on read.
* ``ProductNotFoundError`` -- ``complete`` on an order whose product the
  catalog no longer knows; nothing is written.

Usage::

    service = PurchaseOrderService(order_store, catalog, clock=clock)
    order = service.create(OrderIntent(product_id=1, quantity=40, vendor_id=7), manager)
    order = service.approve(order.id, admin)
    order = service.accept(order.id, vendor, {"delivery_date": "2025-02-01"})
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from restock_kernel.domain.actor import Actor, Role
from restock_kernel.domain.clock import Clock, SystemClock
from restock_kernel.exceptions import (
    ConcurrentModificationError,
    OrderNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from restock_kernel.logging_config import LogContext, get_logger
from restock_modules.purchasing import lifecycle
from restock_modules.purchasing.config import PurchasingConfig
from restock_modules.purchasing.models import (
    BatchResult,
    OrderAction,
    POStatus,
    PurchaseOrder,
)
from restock_modules.purchasing.workflows import (
    PURCHASE_ORDER_CREATE,
    PURCHASE_ORDER_WORKFLOW,
)
from restock_modules.reconciliation.models import BatchItem, OrderIntent
from restock_services.rbac_authority import check_transition_authority

if TYPE_CHECKING:
    from restock_services.catalog_gateway import CatalogGateway
    from restock_services.order_store import OrderStore

logger = get_logger("modules.purchasing.service")


class PurchaseOrderService:
    """
    Creates purchase orders and moves them through their lifecycle.

    Contract
    --------
    * Transition methods take ``(order_id, actor, payload)`` and return the
      updated ``PurchaseOrder`` or raise a typed error.
    * ``create_batch`` returns a ``BatchResult``; per-item failures do not
      raise.

    Non-goals
    ---------
    * No retry on ``ConcurrentModificationError``.
    * No notification delivery.
    """

    def __init__(
        self,
        order_store: OrderStore,
        catalog: CatalogGateway,
        clock: Clock | None = None,
        config: PurchasingConfig | None = None,
    ):
        self._store = order_store
        self._catalog = catalog
        self._clock = clock or SystemClock()
        self._config = config or PurchasingConfig.with_defaults()
        self._pending_lock = threading.Lock()
        self._pending_stock_in: dict[Any, PurchaseOrder] = {}

    @property
    def config(self) -> PurchasingConfig:
        return self._config

    # =========================================================================
    # Creation
    # =========================================================================

    def _authorize_create(self, actor: Actor) -> None:
        allowed, reason = check_transition_authority(PURCHASE_ORDER_CREATE, actor)
        if not allowed:
            logger.warning(
                "purchase_order_create_denied",
                extra={"actor_role": actor.role.value, "reason": reason},
            )
            raise PermissionDeniedError(OrderAction.CREATE.value, actor.role.value)

    def create(
        self,
        intent: OrderIntent,
        actor: Actor,
        expected_price: Decimal | None = None,
    ) -> PurchaseOrder:
        """Create one PENDING order from a resolved intent."""
        with LogContext.bind(actor_email=actor.normalized_email, actor_role=actor.role.value):
            self._authorize_create(actor)
            order = self._store.create_order(
                intent,
                created_at=self._clock.now(),
                created_by=actor.normalized_email,
                expected_price=expected_price,
            )
            logger.info(
                "purchase_order_created",
                extra={
                    "po_id": str(order.id),
                    "product_id": order.product_id,
                    "vendor_id": order.vendor_id,
                    "quantity": order.quantity,
                },
            )
            return order

    def create_batch(
        self,
        vendor_id: int | None,
        items: Sequence[BatchItem],
        actor: Actor,
    ) -> BatchResult:
        """
        Create one PENDING order per item, all for ``vendor_id``.

        Under the default best-effort policy the good items are kept and the
        bad ones are reported by index.  Under ``all_or_nothing`` any failure
        discards the whole batch and the result is flagged ``rolled_back``.
        """
        with LogContext.bind(actor_email=actor.normalized_email, actor_role=actor.role.value):
            if vendor_id is None:
                raise ValidationError("Vendor is required", field="vendor_id")
            items = tuple(items)
            if not items:
                raise ValidationError("Batch must contain at least one item", field="items")
            self._authorize_create(actor)

            result = self._store.create_batch(
                vendor_id,
                items,
                created_at=self._clock.now(),
                created_by=actor.normalized_email,
                all_or_nothing=self._config.all_or_nothing,
            )
            logger.info(
                "purchase_order_batch_submitted",
                extra={
                    "vendor_id": vendor_id,
                    "policy": self._config.batch_failure_policy,
                    "created_count": len(result.created),
                    "failed_count": len(result.failed),
                    "rolled_back": result.rolled_back,
                },
            )
            return result

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(
        self,
        order_id: UUID | str,
        action: OrderAction | str,
        actor: Actor,
        payload: Mapping[str, Any] | None = None,
    ) -> PurchaseOrder:
        """Fire ``action`` on an order and persist it with compare-and-swap."""
        with LogContext.bind(
            actor_email=actor.normalized_email,
            actor_role=actor.role.value,
            order_id=str(order_id),
        ):
            order = self._store.get_order(order_id)
            plan = lifecycle.transition(order, action, actor, payload, now=self._clock.now())
            stock_in = plan.to_status is POStatus.COMPLETED and self._config.stock_in_on_complete
            if stock_in:
                self._catalog.get_product(order.product_id)

            try:
                updated = self._store.save_transition(
                    order.id,
                    expected_status=plan.from_status,
                    new_status=plan.to_status,
                    fields=plan.fields,
                    updated_by=actor.normalized_email,
                )
            except ConcurrentModificationError as exc:
                lifecycle.emit_workflow_trace(
                    workflow_name=PURCHASE_ORDER_WORKFLOW.name,
                    action=plan.action.value,
                    order_id=order.id,
                    from_state=plan.from_status.value,
                    outcome=lifecycle.OUTCOME_CONFLICT,
                    reason=str(exc),
                    duration_ms=0.0,
                )
                raise

            logger.info(
                "purchase_order_transitioned",
                extra={
                    "po_id": str(updated.id),
                    "action": plan.action.value,
                    "from_status": plan.from_status.value,
                    "to_status": plan.to_status.value,
                },
            )

            if stock_in:
                self._stock_in(updated)
            return updated

    def _stock_in(self, order: PurchaseOrder) -> bool:
        """Apply the completion stock-in; on failure park the order for retry."""
        try:
            self._catalog.record_stock_in(
                order.product_id,
                order.quantity,
                reference=str(order.id),
                handled_by=self._config.stock_in_handler,
            )
        except Exception:
            # The COMPLETED transition is already committed
            with self._pending_lock:
                self._pending_stock_in[order.id] = order
            logger.error(
                "purchase_order_stock_in_failed",
                extra={"po_id": str(order.id), "product_id": order.product_id},
                exc_info=True,
            )
            return False
        return True

    def pending_stock_ins(self) -> tuple[PurchaseOrder, ...]:
        """Completed orders whose stock-in has not been applied yet."""
        with self._pending_lock:
            return tuple(self._pending_stock_in.values())

    def retry_stock_in(self, order_id: UUID | str, actor: Actor) -> bool:
        """
        Re-apply a failed completion stock-in.

        Requires the authority ``complete`` needs.  Returns True once the
        stock-in is recorded; an order with nothing pending returns False
        and touches the catalog not at all.
        """
        order = self._store.get_order(order_id)
        row = PURCHASE_ORDER_WORKFLOW.find_transition(
            POStatus.DISPATCHED.value, OrderAction.COMPLETE.value
        )
        allowed, reason = check_transition_authority(row, actor, order)
        if not allowed:
            logger.warning(
                "purchase_order_stock_in_retry_denied",
                extra={"po_id": str(order.id), "actor_role": actor.role.value, "reason": reason},
            )
            raise PermissionDeniedError(OrderAction.COMPLETE.value, actor.role.value)

        with self._pending_lock:
            pending = self._pending_stock_in.pop(order.id, None)
        if pending is None:
            return False
        applied = self._stock_in(pending)
        if applied:
            logger.info("purchase_order_stock_in_retried", extra={"po_id": str(order.id)})
        return applied

    def approve(self, order_id, actor: Actor, payload: Mapping[str, Any] | None = None) -> PurchaseOrder:
        return self.transition(order_id, OrderAction.APPROVE, actor, payload)

    def reject(self, order_id, actor: Actor, payload: Mapping[str, Any] | None = None) -> PurchaseOrder:
        return self.transition(order_id, OrderAction.REJECT, actor, payload)

    def accept(self, order_id, actor: Actor, payload: Mapping[str, Any] | None = None) -> PurchaseOrder:
        return self.transition(order_id, OrderAction.ACCEPT, actor, payload)

    def dispatch(self, order_id, actor: Actor, payload: Mapping[str, Any] | None = None) -> PurchaseOrder:
        return self.transition(order_id, OrderAction.DISPATCH, actor, payload)

    def complete(self, order_id, actor: Actor, payload: Mapping[str, Any] | None = None) -> PurchaseOrder:
        return self.transition(order_id, OrderAction.COMPLETE, actor, payload)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, order_id: UUID | str, actor: Actor) -> PurchaseOrder:
        """Fetch one order; a vendor asking for another vendor's order gets not-found."""
        order = self._store.get_order(order_id)
        if actor.role is Role.VENDOR and not actor.owns(order.vendor_email):
            logger.warning(
                "purchase_order_hidden_from_vendor",
                extra={"po_id": str(order.id), "actor_email": actor.normalized_email},
            )
            raise OrderNotFoundError(str(order_id))
        return order

    def list_orders(
        self,
        actor: Actor,
        status: POStatus | str | None = None,
    ) -> list[PurchaseOrder]:
        """Orders visible to ``actor``, newest first by default."""
        vendor_email = actor.normalized_email if actor.role is Role.VENDOR else None
        orders = self._store.list_orders(vendor_email=vendor_email)
        if status is not None:
            if isinstance(status, POStatus):
                wanted = status
            else:
                try:
                    wanted = POStatus(str(status).strip().upper())
                except ValueError:
                    raise ValidationError(
                        f"Unknown order status: {status!r}", field="status"
                    ) from None
            orders = tuple(o for o in orders if o.status is wanted)
        return sorted(
            orders,
            key=lambda o: (o.created_at, str(o.id)),
            reverse=self._config.newest_first,
        )

    def status_counts(self, actor: Actor) -> dict[POStatus, int]:
        counts = {status: 0 for status in POStatus}
        for order in self.list_orders(actor):
            counts[order.status] += 1
        return counts

    def available_actions(self, order: PurchaseOrder, actor: Actor) -> tuple[OrderAction, ...]:
        """Actions ``actor`` may currently take on ``order``."""
        return lifecycle.available_actions(order, actor)
