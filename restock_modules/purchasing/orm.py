"""
SQLAlchemy ORM persistence model for the Purchasing module.

Responsibility
--------------
Database-backed persistence for purchase orders.  Consumed only by
``restock_services.order_store.SqlOrderStore``; everything above the store
sees the frozen ``PurchaseOrder`` DTO.

Architecture position
---------------------
**Modules layer** -- ORM model.  Inherits from ``TrackedBase`` (kernel db
layer).

Invariants enforced
-------------------
* ``status`` is stored as String(20) and is the compare-and-swap column for
  every transition (``UPDATE ... WHERE id = :id AND status = :expected``).
* ``expected_price`` uses ``Decimal`` (Numeric(38,9)), never float.
* Vendor and product ids are plain integers with no foreign key; the catalog
  lives outside this schema.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from restock_kernel.db.base import TrackedBase


class PurchaseOrderModel(TrackedBase):
    """
    A restock purchase order.

    Maps to the ``PurchaseOrder`` DTO in ``restock_modules.purchasing.models``.

    Guarantees:
        - ``quantity`` is positive (enforced by the DTO before insert).
        - Each lifecycle timestamp column is written by exactly one
          transition and never cleared.
    """

    __tablename__ = "purchase_orders"

    __table_args__ = (
        Index("idx_po_status", "status"),
        Index("idx_po_vendor_email", "vendor_email"),
        Index("idx_po_created_at", "created_at"),
    )

    product_id: Mapped[int] = mapped_column(Integer, nullable=False)
    vendor_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    vendor_email: Mapped[str] = mapped_column(String(320), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    expected_price: Mapped[Decimal | None]
    approved_at: Mapped[datetime | None]
    accepted_at: Mapped[datetime | None]
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    dispatch_date: Mapped[datetime | None]
    tracking_number: Mapped[str | None] = mapped_column(String(200), nullable=True)
    completed_at: Mapped[datetime | None]
    rejected_at: Mapped[datetime | None]
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def to_dto(self):
        from restock_modules.purchasing.models import POStatus, PurchaseOrder

        return PurchaseOrder(
            id=self.id,
            product_id=self.product_id,
            vendor_id=self.vendor_id,
            vendor_email=self.vendor_email,
            quantity=self.quantity,
            status=POStatus(self.status),
            created_at=self.created_at,
            created_by=self.created_by,
            expected_price=self.expected_price,
            approved_at=self.approved_at,
            accepted_at=self.accepted_at,
            delivery_date=self.delivery_date,
            dispatch_date=self.dispatch_date,
            tracking_number=self.tracking_number,
            completed_at=self.completed_at,
            rejected_at=self.rejected_at,
            rejection_reason=self.rejection_reason,
        )

    @classmethod
    def from_dto(cls, dto, created_by: str) -> "PurchaseOrderModel":
        from restock_modules.purchasing.models import POStatus

        return cls(
            id=dto.id,
            product_id=dto.product_id,
            vendor_id=dto.vendor_id,
            vendor_email=dto.vendor_email,
            quantity=dto.quantity,
            status=dto.status.value if isinstance(dto.status, POStatus) else dto.status,
            created_at=dto.created_at,
            created_by=created_by,
            expected_price=dto.expected_price,
            approved_at=dto.approved_at,
            accepted_at=dto.accepted_at,
            delivery_date=dto.delivery_date,
            dispatch_date=dto.dispatch_date,
            tracking_number=dto.tracking_number,
            completed_at=dto.completed_at,
            rejected_at=dto.rejected_at,
            rejection_reason=dto.rejection_reason,
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrderModel {self.id} [{self.status}]>"
