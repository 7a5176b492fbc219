"""
Purchasing Domain Models.

The nouns of the purchase order lifecycle: the order itself, its statuses
and actions, and the shape of batch creation results.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from restock_kernel.logging_config import get_logger
from restock_modules.reconciliation.models import BatchItem

logger = get_logger("modules.purchasing.models")


class POStatus(Enum):
    """Purchase order lifecycle states."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    ACCEPTED = "ACCEPTED"
    DISPATCHED = "DISPATCHED"
    COMPLETED = "COMPLETED"   # terminal
    REJECTED = "REJECTED"     # terminal

    @property
    def is_terminal(self) -> bool:
        return self in (POStatus.COMPLETED, POStatus.REJECTED)


class OrderAction(Enum):
    """Actions callers may request on a purchase order."""
    CREATE = "create"
    APPROVE = "approve"
    REJECT = "reject"
    ACCEPT = "accept"
    DISPATCH = "dispatch"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: "OrderAction | str") -> "OrderAction":
        if isinstance(value, OrderAction):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class PurchaseOrder:
    """
    A purchase order as held by the order store.

    Each timestamp is written once, by the transition that produces it.
    """
    id: UUID
    product_id: int
    vendor_id: int | None
    vendor_email: str
    quantity: int
    status: POStatus
    created_at: datetime
    created_by: str = ""
    expected_price: Decimal | None = None
    approved_at: datetime | None = None
    accepted_at: datetime | None = None
    delivery_date: date | None = None
    dispatch_date: datetime | None = None
    tracking_number: str | None = None
    completed_at: datetime | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"quantity must be positive: {self.quantity}")
        if self.expected_price is not None and self.expected_price < 0:
            raise ValueError(f"expected_price cannot be negative: {self.expected_price}")


@dataclass(frozen=True)
class BatchFailure:
    """One rejected line of a batch request, by position."""
    index: int
    item: BatchItem
    reason: str
    code: str


@dataclass(frozen=True)
class BatchResult:
    """
    Item-by-item outcome of a batch creation.

    ``rolled_back`` is only ever True under the all-or-nothing policy, when
    a failure discarded every order of the batch.
    """
    vendor_id: int
    created: tuple[PurchaseOrder, ...] = field(default_factory=tuple)
    failed: tuple[BatchFailure, ...] = field(default_factory=tuple)
    rolled_back: bool = False

    @property
    def failed_indices(self) -> tuple[int, ...]:
        return tuple(f.index for f in self.failed)

    @property
    def is_success(self) -> bool:
        return not self.failed
