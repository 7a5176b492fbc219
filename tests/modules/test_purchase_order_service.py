"""
Tests for PurchaseOrderService: creation, batch policies, the full
lifecycle scenario, role-scoped reads and the completion stock-in.
"""

from datetime import date

import pytest

from restock_kernel.exceptions import (
    InvalidTransitionError,
    MissingPayloadError,
    OrderNotFoundError,
    PermissionDeniedError,
    ProductNotFoundError,
    ValidationError,
    VendorNotFoundError,
)
from restock_modules.purchasing import OrderAction, POStatus, PurchaseOrderService, PurchasingConfig
from restock_modules.reconciliation import BatchItem, OrderIntent


def _intent(product_id=1, quantity=40, vendor_id=7):
    return OrderIntent(product_id=product_id, quantity=quantity, vendor_id=vendor_id)


class TestCreate:

    def test_manager_creates_pending_order(self, service, manager, clock):
        order = service.create(_intent(), manager)

        assert order.status is POStatus.PENDING
        assert order.created_at == clock.now()
        assert order.vendor_email == "orders@acme.example"
        assert order.created_by == "manager@restock.example"
        for name in ("approved_at", "accepted_at", "dispatch_date", "completed_at", "rejected_at"):
            assert getattr(order, name) is None

    def test_admin_may_create(self, service, admin):
        assert service.create(_intent(), admin).status is POStatus.PENDING

    def test_vendor_may_not_create(self, service, acme_vendor):
        with pytest.raises(PermissionDeniedError):
            service.create(_intent(), acme_vendor)

    def test_unknown_product(self, service, manager):
        with pytest.raises(ProductNotFoundError):
            service.create(_intent(product_id=404), manager)

    def test_unknown_vendor(self, service, manager):
        with pytest.raises(VendorNotFoundError):
            service.create(_intent(vendor_id=404), manager)

    def test_non_positive_quantity(self, service, manager):
        with pytest.raises(ValidationError):
            service.create(_intent(quantity=0), manager)

    def test_create_on_existing_order_is_invalid(self, service, manager):
        order = service.create(_intent(), manager)
        with pytest.raises(InvalidTransitionError):
            service.transition(order.id, OrderAction.CREATE, manager)


class TestCreateBatch:

    def test_one_pending_order_per_item(self, service, manager):
        result = service.create_batch(7, [BatchItem(1, 50), BatchItem(3, 10)], manager)

        assert result.is_success
        assert [o.product_id for o in result.created] == [1, 3]
        assert all(o.status is POStatus.PENDING and o.vendor_id == 7 for o in result.created)

    def test_best_effort_keeps_good_items(self, service, manager):
        result = service.create_batch(
            7, [BatchItem(1, 50), BatchItem(404, 5), BatchItem(3, 0)], manager,
        )

        assert [o.product_id for o in result.created] == [1]
        assert result.failed_indices == (1, 2)
        assert [f.code for f in result.failed] == ["PRODUCT_NOT_FOUND", "VALIDATION_ERROR"]
        assert result.rolled_back is False
        assert len(service.list_orders(manager)) == 1

    def test_all_or_nothing_discards_batch(self, all_or_nothing_service, manager):
        result = all_or_nothing_service.create_batch(
            7, [BatchItem(1, 50), BatchItem(404, 5)], manager,
        )

        assert result.created == ()
        assert result.failed_indices == (1,)
        assert result.rolled_back is True
        assert all_or_nothing_service.list_orders(manager) == []

    def test_empty_items(self, service, manager):
        with pytest.raises(ValidationError):
            service.create_batch(7, [], manager)

    def test_missing_vendor(self, service, manager):
        with pytest.raises(ValidationError):
            service.create_batch(None, [BatchItem(1, 5)], manager)

    def test_vendor_may_not_batch(self, service, acme_vendor):
        with pytest.raises(PermissionDeniedError):
            service.create_batch(7, [BatchItem(1, 5)], acme_vendor)


class TestLifecycleScenario:

    def test_full_scenario(self, service, catalog, clock, manager, admin, acme_vendor, globex_vendor):
        order = service.create(_intent(quantity=40), manager)

        clock.advance(60)
        order = service.approve(order.id, admin)
        assert order.status is POStatus.APPROVED
        assert order.approved_at == clock.now()

        with pytest.raises(PermissionDeniedError):
            service.accept(order.id, globex_vendor, {"delivery_date": "2025-02-01"})

        clock.advance(60)
        order = service.accept(order.id, acme_vendor, {"deliveryDate": "2025-02-01"})
        assert order.status is POStatus.ACCEPTED
        assert order.delivery_date == date(2025, 2, 1)

        clock.advance(60)
        order = service.dispatch(order.id, acme_vendor, {"tracking_info": "1Z999"})
        assert order.status is POStatus.DISPATCHED
        assert order.tracking_number == "1Z999"

        clock.advance(60)
        order = service.complete(order.id, manager)
        assert order.status is POStatus.COMPLETED
        assert order.completed_at == clock.now()

        with pytest.raises(InvalidTransitionError):
            service.approve(order.id, admin)

        # Stock-in applied exactly once
        assert catalog.get_product(1).quantity == 3 + 40
        movements = catalog.movements(1)
        assert len(movements) == 1
        assert movements[0].handled_by == "Auto-Restock System"
        assert movements[0].reference == str(order.id)

    def test_reject_flow(self, service, manager, admin):
        order = service.create(_intent(), manager)
        order = service.reject(order.id, admin, {"reason": "duplicate"})

        assert order.status is POStatus.REJECTED
        assert order.rejection_reason == "duplicate"
        assert order.rejected_at is not None
        for action in OrderAction:
            with pytest.raises(InvalidTransitionError):
                service.transition(order.id, action, admin, {"reason": "again"})

    def test_missing_payload_leaves_order_untouched(self, service, manager, admin, acme_vendor):
        order = service.approve(service.create(_intent(), manager).id, admin)
        with pytest.raises(MissingPayloadError):
            service.accept(order.id, acme_vendor, {})
        assert service.get(order.id, admin) == order

    def test_stock_in_can_be_disabled(self, memory_store, catalog, clock, manager, admin, acme_vendor):
        service = PurchaseOrderService(
            memory_store, catalog, clock=clock,
            config=PurchasingConfig(stock_in_on_complete=False),
        )
        order = service.create(_intent(quantity=5), manager)
        service.approve(order.id, admin)
        service.accept(order.id, acme_vendor, {"delivery_date": "2025-02-01"})
        service.dispatch(order.id, acme_vendor, {"tracking_info": "T"})
        service.complete(order.id, manager)

        assert catalog.get_product(1).quantity == 3
        assert catalog.movements() == ()

    def test_transition_logs(self, service, manager, admin, captured_logs):
        order = service.create(_intent(), manager)
        service.approve(order.id, admin)

        records = captured_logs()
        transitioned = [r for r in records if r["message"] == "purchase_order_transitioned"]
        assert transitioned[0]["to_status"] == "APPROVED"
        assert transitioned[0]["actor_role"] == "ADMIN"
        assert transitioned[0]["order_id"] == str(order.id)


class TestReads:

    def test_unknown_order(self, service, admin):
        with pytest.raises(OrderNotFoundError):
            service.get("not-a-uuid", admin)

    def test_vendor_sees_only_own_orders(self, service, manager, acme_vendor, globex_vendor):
        acme = service.create(_intent(product_id=1, vendor_id=7), manager)
        globex = service.create(_intent(product_id=2, vendor_id=9), manager)

        assert [o.id for o in service.list_orders(acme_vendor)] == [acme.id]
        assert service.get(acme.id, acme_vendor) == acme
        with pytest.raises(OrderNotFoundError):
            service.get(globex.id, acme_vendor)

    def test_newest_first(self, service, clock, manager):
        first = service.create(_intent(product_id=1), manager)
        clock.advance(10)
        second = service.create(_intent(product_id=2), manager)

        assert [o.id for o in service.list_orders(manager)] == [second.id, first.id]

    def test_status_filter_and_counts(self, service, manager, admin):
        a = service.create(_intent(product_id=1), manager)
        service.create(_intent(product_id=2), manager)
        service.approve(a.id, admin)

        assert [o.id for o in service.list_orders(admin, status="approved")] == [a.id]
        counts = service.status_counts(admin)
        assert counts[POStatus.APPROVED] == 1
        assert counts[POStatus.PENDING] == 1
        assert counts[POStatus.COMPLETED] == 0

    def test_unknown_status_filter(self, service, admin):
        with pytest.raises(ValidationError) as exc_info:
            service.list_orders(admin, status="bogus")
        assert exc_info.value.field == "status"

    def test_available_actions(self, service, manager, admin):
        order = service.create(_intent(), manager)
        assert service.available_actions(order, admin) == (OrderAction.APPROVE, OrderAction.REJECT)
        assert service.available_actions(order, manager) == ()


def _dispatched(service, manager, admin, vendor, quantity=40):
    order = service.create(_intent(quantity=quantity), manager)
    service.approve(order.id, admin)
    service.accept(order.id, vendor, {"delivery_date": "2025-02-01"})
    return service.dispatch(order.id, vendor, {"tracking_info": "1Z999"})


class TestCompletionStockIn:

    def test_unknown_product_rejects_complete_without_writing(
        self, service, catalog, monkeypatch, manager, admin, acme_vendor,
    ):
        order = _dispatched(service, manager, admin, acme_vendor)

        def missing(product_id):
            raise ProductNotFoundError(product_id)

        monkeypatch.setattr(catalog, "get_product", missing)
        with pytest.raises(ProductNotFoundError):
            service.complete(order.id, manager)

        assert service.get(order.id, admin).status is POStatus.DISPATCHED
        assert catalog.movements() == ()

    def test_failed_stock_in_returns_completed_order_and_parks_it(
        self, service, catalog, monkeypatch, manager, admin, acme_vendor, captured_logs,
    ):
        order = _dispatched(service, manager, admin, acme_vendor)
        real_record = catalog.record_stock_in
        calls = []

        def flaky(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise RuntimeError("catalog unavailable")
            return real_record(*args, **kwargs)

        monkeypatch.setattr(catalog, "record_stock_in", flaky)

        completed = service.complete(order.id, manager)

        assert completed.status is POStatus.COMPLETED
        assert service.get(order.id, admin).status is POStatus.COMPLETED
        assert [o.id for o in service.pending_stock_ins()] == [order.id]
        assert catalog.get_product(1).quantity == 3
        assert any(r["message"] == "purchase_order_stock_in_failed" for r in captured_logs())

        assert service.retry_stock_in(order.id, manager) is True
        assert catalog.get_product(1).quantity == 3 + 40
        assert service.pending_stock_ins() == ()

        # Applied once; a second retry finds nothing pending
        assert service.retry_stock_in(order.id, manager) is False
        assert len(catalog.movements(1)) == 1

    def test_retry_that_fails_again_stays_pending(
        self, service, catalog, monkeypatch, manager, admin, acme_vendor,
    ):
        order = _dispatched(service, manager, admin, acme_vendor)

        def broken(*args, **kwargs):
            raise RuntimeError("catalog unavailable")

        monkeypatch.setattr(catalog, "record_stock_in", broken)
        service.complete(order.id, manager)

        assert service.retry_stock_in(order.id, manager) is False
        assert [o.id for o in service.pending_stock_ins()] == [order.id]

    def test_retry_requires_complete_authority(
        self, service, catalog, monkeypatch, manager, admin, acme_vendor,
    ):
        order = _dispatched(service, manager, admin, acme_vendor)

        def broken(*args, **kwargs):
            raise RuntimeError("catalog unavailable")

        monkeypatch.setattr(catalog, "record_stock_in", broken)
        service.complete(order.id, manager)

        for actor in (admin, acme_vendor):
            with pytest.raises(PermissionDeniedError):
                service.retry_stock_in(order.id, actor)
        assert [o.id for o in service.pending_stock_ins()] == [order.id]

    def test_nothing_pending_after_clean_completion(self, service, manager, admin, acme_vendor):
        order = _dispatched(service, manager, admin, acme_vendor)
        service.complete(order.id, manager)

        assert service.pending_stock_ins() == ()
        assert service.retry_stock_in(order.id, manager) is False
