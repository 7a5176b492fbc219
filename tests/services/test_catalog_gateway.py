"""
Tests for the in-memory catalog gateway.
"""

import pytest

from restock_kernel.domain.catalog import MovementType, Vendor
from restock_kernel.exceptions import (
    ProductNotFoundError,
    ValidationError,
    VendorNotFoundError,
)
from restock_services.catalog_gateway import CatalogGateway


class TestLookups:

    def test_satisfies_protocol(self, catalog):
        assert isinstance(catalog, CatalogGateway)

    def test_get_product(self, catalog):
        assert catalog.get_product(1).sku == "WID-001"

    def test_unknown_product(self, catalog):
        with pytest.raises(ProductNotFoundError) as exc_info:
            catalog.get_product(404)
        assert exc_info.value.product_id == 404

    def test_unknown_vendor(self, catalog):
        with pytest.raises(VendorNotFoundError):
            catalog.get_vendor(404)

    def test_add_vendor(self, catalog):
        catalog.add_vendor(Vendor(id=11, email="hi@initech.example", full_name="Initech"))
        assert [v.id for v in catalog.list_vendors()] == [7, 9, 11]


class TestRecordStockIn:

    def test_increments_quantity_and_records_movement(self, catalog, clock, captured_logs):
        movement = catalog.record_stock_in(1, 40, reference="po-1", handled_by="Auto-Restock System")

        assert catalog.get_product(1).quantity == 43
        assert movement.movement_type is MovementType.IN
        assert movement.timestamp == clock.now()
        assert catalog.movements() == (movement,)
        assert catalog.movements(2) == ()
        assert any(r["message"] == "stock_in_recorded" for r in captured_logs())

    @pytest.mark.parametrize("quantity", [0, -5])
    def test_non_positive_quantity(self, catalog, quantity):
        with pytest.raises(ValidationError):
            catalog.record_stock_in(1, quantity, reference=None, handled_by="x")
        assert catalog.get_product(1).quantity == 3

    def test_unknown_product(self, catalog):
        with pytest.raises(ProductNotFoundError):
            catalog.record_stock_in(404, 1, reference=None, handled_by="x")
