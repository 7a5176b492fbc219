"""
restock_services.order_store -- Purchase order persistence boundary.

Responsibility:
    Create purchase orders (singly or as a single-vendor batch), read them
    back, and persist lifecycle transitions as a compare-and-swap on
    ``status``.

Architecture position:
    Services layer.  ``OrderStore`` is the protocol the purchase order
    service depends on.  Two implementations:

    - ``InMemoryOrderStore`` -- dict guarded by a ``threading.Lock``.
    - ``SqlOrderStore`` -- SQLAlchemy, one short-lived session per call,
      conditional ``UPDATE ... WHERE id = :id AND status = :expected``.

Invariants enforced:
    - A transition is written only if the stored status still equals the
      status the caller planned from; otherwise nothing is written and
      ``ConcurrentModificationError`` is raised.
    - New orders are always PENDING with only ``created_at`` stamped.
    - Orders are never deleted.

Failure modes:
    - OrderNotFoundError for an unknown (or unparseable) order id.
    - VendorNotFoundError for an unknown vendor id.
    - ProductNotFoundError / ValidationError per item at creation.
    - ConcurrentModificationError on a status mismatch.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable
from uuid import UUID, uuid4

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, sessionmaker

from restock_kernel.db.engine import session_scope
from restock_kernel.domain.actor import normalize_email
from restock_kernel.domain.catalog import Vendor
from restock_kernel.exceptions import (
    ConcurrentModificationError,
    OrderNotFoundError,
    RestockKernelError,
    ValidationError,
)
from restock_kernel.logging_config import get_logger
from restock_modules.purchasing.models import (
    BatchFailure,
    BatchResult,
    POStatus,
    PurchaseOrder,
)
from restock_modules.purchasing.orm import PurchaseOrderModel
from restock_modules.reconciliation.models import BatchItem, OrderIntent
from restock_services.catalog_gateway import CatalogGateway

logger = get_logger("services.order_store")


@runtime_checkable
class OrderStore(Protocol):
    """Persistence boundary for purchase orders."""

    def create_order(
        self,
        intent: OrderIntent,
        created_at: datetime,
        created_by: str,
        expected_price: Decimal | None = None,
    ) -> PurchaseOrder: ...

    def create_batch(
        self,
        vendor_id: int,
        items: Sequence[BatchItem],
        created_at: datetime,
        created_by: str,
        all_or_nothing: bool = False,
    ) -> BatchResult: ...

    def save_transition(
        self,
        order_id: UUID,
        expected_status: POStatus,
        new_status: POStatus,
        fields: Mapping[str, Any],
        updated_by: str,
    ) -> PurchaseOrder: ...

    def get_order(self, order_id: UUID | str) -> PurchaseOrder: ...

    def list_orders(self, vendor_email: str | None = None) -> tuple[PurchaseOrder, ...]: ...


def _coerce_order_id(order_id: UUID | str) -> UUID:
    if isinstance(order_id, UUID):
        return order_id
    try:
        return UUID(str(order_id))
    except ValueError:
        raise OrderNotFoundError(str(order_id)) from None


class _OrderFactory:
    """Validates creation input against the catalog and builds PENDING orders."""

    def __init__(self, catalog: CatalogGateway):
        self._catalog = catalog

    def vendor(self, vendor_id: int | None) -> Vendor:
        if vendor_id is None:
            raise ValidationError("Vendor is required", field="vendor_id")
        return self._catalog.get_vendor(vendor_id)

    def build(
        self,
        vendor: Vendor,
        product_id: int,
        quantity: int,
        created_at: datetime,
        created_by: str,
        expected_price: Decimal | None = None,
    ) -> PurchaseOrder:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                f"Quantity must be a positive integer, got {quantity!r}",
                field="quantity",
            )
        self._catalog.get_product(product_id)
        return PurchaseOrder(
            id=uuid4(),
            product_id=product_id,
            vendor_id=vendor.id,
            vendor_email=vendor.email,
            quantity=quantity,
            status=POStatus.PENDING,
            created_at=created_at,
            created_by=created_by,
            expected_price=expected_price,
        )

    def build_batch(
        self,
        vendor: Vendor,
        items: Sequence[BatchItem],
        created_at: datetime,
        created_by: str,
    ) -> tuple[list[PurchaseOrder], list[BatchFailure]]:
        built: list[PurchaseOrder] = []
        failed: list[BatchFailure] = []
        for index, item in enumerate(items):
            try:
                built.append(
                    self.build(vendor, item.product_id, item.quantity, created_at, created_by)
                )
            except RestockKernelError as exc:
                failed.append(
                    BatchFailure(index=index, item=item, reason=str(exc), code=exc.code)
                )
        return built, failed


def _log_batch(result: BatchResult, requested: int) -> None:
    extra = {
        "vendor_id": result.vendor_id,
        "requested": requested,
        "created_count": len(result.created),
        "failed_indices": list(result.failed_indices),
        "rolled_back": result.rolled_back,
    }
    if result.failed:
        logger.warning("order_batch_partially_failed", extra=extra)
    else:
        logger.info("order_batch_created", extra=extra)


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryOrderStore:
    """Thread-safe dictionary-backed order store."""

    def __init__(self, catalog: CatalogGateway):
        self._factory = _OrderFactory(catalog)
        self._lock = threading.Lock()
        self._orders: dict[UUID, PurchaseOrder] = {}

    def create_order(
        self,
        intent: OrderIntent,
        created_at: datetime,
        created_by: str,
        expected_price: Decimal | None = None,
    ) -> PurchaseOrder:
        vendor = self._factory.vendor(intent.vendor_id)
        order = self._factory.build(
            vendor, intent.product_id, intent.quantity, created_at, created_by, expected_price,
        )
        with self._lock:
            self._orders[order.id] = order
        logger.info(
            "order_created",
            extra={"po_id": str(order.id), "product_id": order.product_id, "vendor_id": vendor.id},
        )
        return order

    def create_batch(
        self,
        vendor_id: int,
        items: Sequence[BatchItem],
        created_at: datetime,
        created_by: str,
        all_or_nothing: bool = False,
    ) -> BatchResult:
        vendor = self._factory.vendor(vendor_id)
        built, failed = self._factory.build_batch(vendor, items, created_at, created_by)

        if failed and all_or_nothing:
            result = BatchResult(vendor_id=vendor.id, failed=tuple(failed), rolled_back=True)
        else:
            with self._lock:
                for order in built:
                    self._orders[order.id] = order
            result = BatchResult(vendor_id=vendor.id, created=tuple(built), failed=tuple(failed))

        _log_batch(result, len(items))
        return result

    def save_transition(
        self,
        order_id: UUID,
        expected_status: POStatus,
        new_status: POStatus,
        fields: Mapping[str, Any],
        updated_by: str,
    ) -> PurchaseOrder:
        order_id = _coerce_order_id(order_id)
        with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                raise OrderNotFoundError(str(order_id))
            if current.status != expected_status:
                logger.warning(
                    "order_transition_conflict",
                    extra={
                        "po_id": str(order_id),
                        "expected_status": expected_status.value,
                        "actual_status": current.status.value,
                    },
                )
                raise ConcurrentModificationError(
                    str(order_id), expected_status.value, current.status.value,
                )
            updated = replace(current, status=new_status, **fields)
            self._orders[order_id] = updated

        logger.info(
            "order_transition_saved",
            extra={
                "po_id": str(order_id),
                "from_status": expected_status.value,
                "to_status": new_status.value,
                "updated_by": updated_by,
            },
        )
        return updated

    def get_order(self, order_id: UUID | str) -> PurchaseOrder:
        key = _coerce_order_id(order_id)
        with self._lock:
            order = self._orders.get(key)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order

    def list_orders(self, vendor_email: str | None = None) -> tuple[PurchaseOrder, ...]:
        with self._lock:
            orders = tuple(self._orders.values())
        if vendor_email is None:
            return orders
        wanted = normalize_email(vendor_email)
        return tuple(o for o in orders if normalize_email(o.vendor_email) == wanted)


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SqlOrderStore:
    """
    SQLAlchemy-backed order store.

    Each call opens its own session from ``session_factory`` and commits
    before returning, so a single store may be shared between threads.
    """

    def __init__(self, session_factory: sessionmaker[Session], catalog: CatalogGateway):
        self._session_factory = session_factory
        self._factory = _OrderFactory(catalog)

    def create_order(
        self,
        intent: OrderIntent,
        created_at: datetime,
        created_by: str,
        expected_price: Decimal | None = None,
    ) -> PurchaseOrder:
        vendor = self._factory.vendor(intent.vendor_id)
        order = self._factory.build(
            vendor, intent.product_id, intent.quantity, created_at, created_by, expected_price,
        )
        with session_scope(self._session_factory) as session:
            session.add(PurchaseOrderModel.from_dto(order, created_by=created_by))
        logger.info(
            "order_created",
            extra={"po_id": str(order.id), "product_id": order.product_id, "vendor_id": vendor.id},
        )
        return order

    def create_batch(
        self,
        vendor_id: int,
        items: Sequence[BatchItem],
        created_at: datetime,
        created_by: str,
        all_or_nothing: bool = False,
    ) -> BatchResult:
        vendor = self._factory.vendor(vendor_id)
        built, failed = self._factory.build_batch(vendor, items, created_at, created_by)

        if failed and all_or_nothing:
            result = BatchResult(vendor_id=vendor.id, failed=tuple(failed), rolled_back=True)
        else:
            if built:
                with session_scope(self._session_factory) as session:
                    session.add_all(
                        PurchaseOrderModel.from_dto(o, created_by=created_by) for o in built
                    )
            result = BatchResult(vendor_id=vendor.id, created=tuple(built), failed=tuple(failed))

        _log_batch(result, len(items))
        return result

    def save_transition(
        self,
        order_id: UUID,
        expected_status: POStatus,
        new_status: POStatus,
        fields: Mapping[str, Any],
        updated_by: str,
    ) -> PurchaseOrder:
        order_id = _coerce_order_id(order_id)
        stmt = (
            update(PurchaseOrderModel)
            .where(
                PurchaseOrderModel.id == order_id,
                PurchaseOrderModel.status == expected_status.value,
            )
            .values(status=new_status.value, updated_by=updated_by, **fields)
            .execution_options(synchronize_session=False)
        )
        with session_scope(self._session_factory) as session:
            result = session.execute(stmt)
            if result.rowcount == 0:
                model = session.get(PurchaseOrderModel, order_id)
                if model is None:
                    raise OrderNotFoundError(str(order_id))
                logger.warning(
                    "order_transition_conflict",
                    extra={
                        "po_id": str(order_id),
                        "expected_status": expected_status.value,
                        "actual_status": model.status,
                    },
                )
                raise ConcurrentModificationError(
                    str(order_id), expected_status.value, model.status,
                )
            model = session.get(PurchaseOrderModel, order_id, populate_existing=True)
            updated = model.to_dto()

        logger.info(
            "order_transition_saved",
            extra={
                "po_id": str(order_id),
                "from_status": expected_status.value,
                "to_status": new_status.value,
                "updated_by": updated_by,
            },
        )
        return updated

    def get_order(self, order_id: UUID | str) -> PurchaseOrder:
        key = _coerce_order_id(order_id)
        with session_scope(self._session_factory) as session:
            model = session.get(PurchaseOrderModel, key)
            if model is None:
                raise OrderNotFoundError(str(order_id))
            return model.to_dto()

    def list_orders(self, vendor_email: str | None = None) -> tuple[PurchaseOrder, ...]:
        stmt = select(PurchaseOrderModel).order_by(
            PurchaseOrderModel.created_at, PurchaseOrderModel.id,
        )
        if vendor_email is not None:
            stmt = stmt.where(
                func.lower(func.trim(PurchaseOrderModel.vendor_email))
                == normalize_email(vendor_email)
            )
        with session_scope(self._session_factory) as session:
            return tuple(m.to_dto() for m in session.scalars(stmt))
