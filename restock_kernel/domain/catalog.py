"""
Catalog value objects.

Read-only views of products and vendors as returned by the catalog
collaborator, plus the stock movement recorded when a purchase order is
completed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


@dataclass(frozen=True)
class Product:
    """A stocked product."""
    id: int
    name: str
    sku: str
    quantity: int = 0
    reorder_level: int = 0


@dataclass(frozen=True)
class Vendor:
    """A vendor account; ``email`` is the identity vendors act under."""
    id: int
    email: str
    full_name: str


class MovementType(Enum):
    IN = "IN"
    OUT = "OUT"


@dataclass(frozen=True)
class StockMovement:
    """A stock transaction against a product."""
    id: UUID
    product_id: int
    movement_type: MovementType
    quantity: int
    timestamp: datetime
    handled_by: str
    reference: str | None = None
