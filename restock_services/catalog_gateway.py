"""
restock_services.catalog_gateway -- Product and vendor lookups.

Responsibility:
    Boundary to the catalog collaborator: read-only product and vendor
    lookups, plus the single write the restock flow needs (a stock-in
    movement when a purchase order completes).

Architecture position:
    Services layer.  ``CatalogGateway`` is the protocol the order stores,
    the purchase order service and the orchestrator depend on.
    ``InMemoryCatalogGateway`` backs tests and single-process use.

Failure modes:
    - ProductNotFoundError / VendorNotFoundError for unknown ids.
    - ValidationError for a non-positive stock-in quantity.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol, runtime_checkable
from uuid import uuid4

from restock_kernel.domain.catalog import MovementType, Product, StockMovement, Vendor
from restock_kernel.domain.clock import Clock, SystemClock
from restock_kernel.exceptions import (
    ProductNotFoundError,
    ValidationError,
    VendorNotFoundError,
)
from restock_kernel.logging_config import get_logger

logger = get_logger("services.catalog_gateway")


@runtime_checkable
class CatalogGateway(Protocol):
    """Catalog collaborator interface."""

    def get_product(self, product_id: int) -> Product: ...

    def list_vendors(self) -> tuple[Vendor, ...]: ...

    def get_vendor(self, vendor_id: int) -> Vendor: ...

    def record_stock_in(
        self,
        product_id: int,
        quantity: int,
        reference: str | None,
        handled_by: str,
    ) -> StockMovement: ...


class InMemoryCatalogGateway:
    """Dictionary-backed catalog.  Safe to share between threads."""

    def __init__(
        self,
        products: Iterable[Product] = (),
        vendors: Iterable[Vendor] = (),
        clock: Clock | None = None,
    ):
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._products: dict[int, Product] = {p.id: p for p in products}
        self._vendors: dict[int, Vendor] = {v.id: v for v in vendors}
        self._movements: list[StockMovement] = []

    def add_product(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = product

    def add_vendor(self, vendor: Vendor) -> None:
        with self._lock:
            self._vendors[vendor.id] = vendor

    def get_product(self, product_id: int) -> Product:
        with self._lock:
            product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def list_vendors(self) -> tuple[Vendor, ...]:
        with self._lock:
            return tuple(self._vendors.values())

    def get_vendor(self, vendor_id: int) -> Vendor:
        with self._lock:
            vendor = self._vendors.get(vendor_id)
        if vendor is None:
            raise VendorNotFoundError(vendor_id)
        return vendor

    def record_stock_in(
        self,
        product_id: int,
        quantity: int,
        reference: str | None,
        handled_by: str,
    ) -> StockMovement:
        """Increase on-hand quantity and record an IN movement."""
        if quantity <= 0:
            raise ValidationError(
                f"stock-in quantity must be positive, got {quantity}",
                field="quantity",
            )
        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            self._products[product_id] = replace(product, quantity=product.quantity + quantity)
            movement = StockMovement(
                id=uuid4(),
                product_id=product_id,
                movement_type=MovementType.IN,
                quantity=quantity,
                timestamp=self._clock.now(),
                handled_by=handled_by,
                reference=reference,
            )
            self._movements.append(movement)

        logger.info(
            "stock_in_recorded",
            extra={
                "product_id": product_id,
                "quantity": quantity,
                "handled_by": handled_by,
                "reference": reference,
            },
        )
        return movement

    def movements(self, product_id: int | None = None) -> tuple[StockMovement, ...]:
        with self._lock:
            return tuple(
                m for m in self._movements
                if product_id is None or m.product_id == product_id
            )
