"""
Reconciliation Domain Models.

The nouns of restock reconciliation: machine recommendations, the
reconciled working items layered over them, and the order intents they
resolve into.
"""

from dataclasses import dataclass
from enum import Enum

from restock_kernel.logging_config import get_logger

logger = get_logger("modules.reconciliation.models")


class Urgency(Enum):
    """Restock urgency, most urgent first."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ConfidenceBand(Enum):
    """Display banding of forecast confidence."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class RestockRecommendation:
    """A machine-suggested restock quantity/vendor pairing for a product."""
    product_id: int
    product_name: str
    sku: str
    current_stock: int
    reorder_level: int
    recommended_quantity: int
    vendor_id: int | None
    vendor_name: str
    urgency: Urgency
    confidence: int | None = None

    def __post_init__(self):
        for name in ("current_stock", "reorder_level", "recommended_quantity"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative: {getattr(self, name)}")
        if self.confidence is not None and not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence must be within 0-100: {self.confidence}")


@dataclass(frozen=True)
class ReconciledItem:
    """
    A recommendation overlaid with the user's edits.

    The overlay starts out equal to the recommendation.  ``modified_quantity``
    is never negative.
    """
    recommendation: RestockRecommendation
    modified_quantity: int
    modified_vendor_id: int | None
    modified_vendor_name: str
    is_deleted: bool = False

    def __post_init__(self):
        if self.modified_quantity < 0:
            raise ValueError(f"modified_quantity cannot be negative: {self.modified_quantity}")

    @classmethod
    def from_recommendation(cls, recommendation: RestockRecommendation) -> "ReconciledItem":
        return cls(
            recommendation=recommendation,
            modified_quantity=recommendation.recommended_quantity,
            modified_vendor_id=recommendation.vendor_id,
            modified_vendor_name=recommendation.vendor_name,
        )

    @property
    def product_id(self) -> int:
        return self.recommendation.product_id

    @property
    def urgency(self) -> Urgency:
        return self.recommendation.urgency

    @property
    def is_modified(self) -> bool:
        """True when quantity or vendor differs from the recommendation."""
        rec = self.recommendation
        return (
            self.modified_quantity != rec.recommended_quantity
            or self.modified_vendor_id != rec.vendor_id
        )

    def confidence_band(self, high: int = 80, medium: int = 60) -> ConfidenceBand | None:
        confidence = self.recommendation.confidence
        if confidence is None:
            return None
        if confidence >= high:
            return ConfidenceBand.HIGH
        if confidence >= medium:
            return ConfidenceBand.MEDIUM
        return ConfidenceBand.LOW


@dataclass(frozen=True)
class OrderIntent:
    """A resolved ``{product_id, quantity, vendor_id}`` ready to become a PO."""
    product_id: int
    quantity: int
    vendor_id: int | None


@dataclass(frozen=True)
class BatchItem:
    """One line of a single-vendor batch order request."""
    product_id: int
    quantity: int


@dataclass(frozen=True)
class ReconciliationSummary:
    """Headline numbers for the active working set."""
    critical_count: int
    high_count: int
    active_count: int
    deleted_count: int
    selected_count: int
    total_quantity: int
