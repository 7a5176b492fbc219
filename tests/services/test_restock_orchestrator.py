"""
End-to-end tests for the recommendation -> review -> purchase order flow.
"""

import pytest

from restock_kernel.domain.catalog import Vendor
from restock_kernel.exceptions import PermissionDeniedError, ValidationError
from restock_modules.purchasing import POStatus
from restock_modules.reconciliation import Urgency
from restock_services.restock_orchestrator import RestockOrchestrator


class _StaticRecommendations:

    def __init__(self, recommendations):
        self.recommendations = tuple(recommendations)

    def list_recommendations(self):
        return self.recommendations


@pytest.fixture
def source(recommendations):
    return _StaticRecommendations(recommendations)


@pytest.fixture
def orchestrator(source, catalog, service):
    return RestockOrchestrator(source, catalog, service)


class TestOpenSession:

    def test_loaded_with_recommendations_and_vendors(self, orchestrator, recommendations):
        session = orchestrator.open_session()

        assert [i.product_id for i in session.active_items()] == [r.product_id for r in recommendations]
        assert {v.id for v in session.vendors} == {7, 9}
        assert session.selected_ids == frozenset()

    def test_refresh_discards_edits(self, orchestrator, source, recommendations):
        session = orchestrator.open_session()
        session.set_quantity(1, 5)
        session.select(1)
        source.recommendations = recommendations[:2]

        orchestrator.refresh(session)

        assert session.get_item(1).modified_quantity == 50
        assert session.get_item(3) is None
        assert session.selected_ids == frozenset()


class TestSubmit:

    def test_one_batch_per_vendor(self, orchestrator, service, manager):
        session = orchestrator.open_session()
        session.select_by_urgency(Urgency.CRITICAL)

        submission = orchestrator.submit(session, manager)

        assert submission.is_success
        assert [b.vendor_id for b in submission.batches] == [7, 9]
        assert sorted(o.product_id for o in submission.created) == [1, 4]
        assert all(o.status is POStatus.PENDING for o in service.list_orders(manager))
        assert session.selected_ids == frozenset()

    def test_edits_flow_into_orders(self, orchestrator, manager):
        session = orchestrator.open_session()
        session.set_quantity(3, "25")
        session.set_vendor(3, 9)
        session.select(3)

        (order,) = orchestrator.submit(session, manager).created

        assert order.quantity == 25
        assert order.vendor_id == 9
        assert order.vendor_email == "sales@globex.example"

    def test_explicit_selection_overrides_session(self, orchestrator, manager):
        session = orchestrator.open_session()
        session.select(1)

        submission = orchestrator.submit(session, manager, selection=[2])

        assert [o.product_id for o in submission.created] == [2]

    def test_empty_selection(self, orchestrator, service, manager):
        session = orchestrator.open_session()
        with pytest.raises(ValidationError):
            orchestrator.submit(session, manager)
        assert service.list_orders(manager) == []

    def test_vendor_actor_denied_and_selection_kept(self, orchestrator, acme_vendor):
        session = orchestrator.open_session()
        session.select(1)
        with pytest.raises(PermissionDeniedError):
            orchestrator.submit(session, acme_vendor)
        assert session.selected_ids == frozenset({1})

    def test_unknown_vendor_fails_only_its_batch(self, orchestrator, manager, captured_logs):
        session = orchestrator.open_session()
        session.set_vendor(2, 404)
        session.select(1)
        session.select(2)

        submission = orchestrator.submit(session, manager)

        assert [o.product_id for o in submission.created] == [1]
        assert [f.code for f in submission.failed] == ["VENDOR_NOT_FOUND"]
        assert not submission.is_success
        assert session.selected_ids == frozenset()
        assert any(r["message"] == "restock_vendor_batch_failed" for r in captured_logs())

    def test_vendor_added_after_open_is_seen_on_refresh(self, orchestrator, catalog):
        session = orchestrator.open_session()
        catalog.add_vendor(Vendor(id=11, email="hi@initech.example", full_name="Initech"))

        orchestrator.refresh(session)
        session.set_vendor(1, 11)

        assert session.get_item(1).modified_vendor_name == "Initech"
