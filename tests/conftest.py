"""
Pytest fixtures for the restock kernel test suite.

Provides:
- Structured logging configured once per session, with a JSON capture fixture
- A deterministic clock
- An in-memory catalog seeded with products and vendors
- In-memory and SQLite-backed order stores
- Actors for each role
"""

import json
import logging
import os
from datetime import datetime, timezone
from io import StringIO

import pytest

from restock_kernel.db.engine import (
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from restock_kernel.domain.actor import Actor, Role
from restock_kernel.domain.catalog import Product, Vendor
from restock_kernel.domain.clock import DeterministicClock
from restock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from restock_modules._orm_registry import create_all_tables
from restock_modules.purchasing.config import PurchasingConfig
from restock_modules.purchasing.service import PurchaseOrderService
from restock_modules.reconciliation.models import RestockRecommendation, Urgency
from restock_services.catalog_gateway import InMemoryCatalogGateway
from restock_services.order_store import InMemoryOrderStore, SqlOrderStore


ACME_EMAIL = "orders@acme.example"
GLOBEX_EMAIL = "sales@globex.example"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture restock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.approve(...)
            logs = captured_logs()
            assert any(r["message"] == "purchase_order_transitioned" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("restock_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def vendors():
    return (
        Vendor(id=7, email=ACME_EMAIL, full_name="Acme Supplies"),
        Vendor(id=9, email=GLOBEX_EMAIL, full_name="Globex Wholesale"),
    )


@pytest.fixture
def products():
    return (
        Product(id=1, name="Blue Widget", sku="WID-001", quantity=3, reorder_level=20),
        Product(id=2, name="Red Gadget", sku="GAD-002", quantity=12, reorder_level=15),
        Product(id=3, name="Green Sprocket", sku="SPR-003", quantity=40, reorder_level=25),
        Product(id=4, name="Steel Bolt", sku="BLT-004", quantity=0, reorder_level=100),
    )


@pytest.fixture
def catalog(products, vendors, clock):
    return InMemoryCatalogGateway(products=products, vendors=vendors, clock=clock)


@pytest.fixture
def recommendations():
    return (
        RestockRecommendation(
            product_id=1, product_name="Blue Widget", sku="WID-001",
            current_stock=3, reorder_level=20, recommended_quantity=50,
            vendor_id=7, vendor_name="Acme Supplies",
            urgency=Urgency.CRITICAL, confidence=92,
        ),
        RestockRecommendation(
            product_id=2, product_name="Red Gadget", sku="GAD-002",
            current_stock=12, reorder_level=15, recommended_quantity=30,
            vendor_id=9, vendor_name="Globex Wholesale",
            urgency=Urgency.HIGH, confidence=71,
        ),
        RestockRecommendation(
            product_id=3, product_name="Green Sprocket", sku="SPR-003",
            current_stock=40, reorder_level=25, recommended_quantity=10,
            vendor_id=7, vendor_name="Acme Supplies",
            urgency=Urgency.LOW, confidence=40,
        ),
        RestockRecommendation(
            product_id=4, product_name="Steel Bolt", sku="BLT-004",
            current_stock=0, reorder_level=100, recommended_quantity=200,
            vendor_id=9, vendor_name="Globex Wholesale",
            urgency=Urgency.CRITICAL, confidence=None,
        ),
    )


# =============================================================================
# Actors
# =============================================================================


@pytest.fixture
def admin():
    return Actor(role=Role.ADMIN, email="admin@restock.example")


@pytest.fixture
def manager():
    return Actor(role=Role.MANAGER, email="manager@restock.example")


@pytest.fixture
def acme_vendor():
    return Actor(role=Role.VENDOR, email=ACME_EMAIL)


@pytest.fixture
def globex_vendor():
    return Actor(role=Role.VENDOR, email=GLOBEX_EMAIL)


# =============================================================================
# Stores and services
# =============================================================================


@pytest.fixture
def memory_store(catalog):
    return InMemoryOrderStore(catalog)


@pytest.fixture
def sql_session_factory(tmp_path):
    """SQLite file database with all tables created; shared across threads."""
    engine = init_engine_from_url(f"sqlite:///{tmp_path / 'restock_test.db'}")
    create_all_tables(engine)
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def sql_store(sql_session_factory, catalog):
    return SqlOrderStore(sql_session_factory, catalog)


@pytest.fixture(params=["memory", "sql"])
def order_store(request, catalog):
    """Both order store implementations, for contract tests."""
    if request.param == "memory":
        return InMemoryOrderStore(catalog)
    return SqlOrderStore(request.getfixturevalue("sql_session_factory"), catalog)


@pytest.fixture
def service(memory_store, catalog, clock):
    return PurchaseOrderService(memory_store, catalog, clock=clock)


@pytest.fixture
def all_or_nothing_service(memory_store, catalog, clock):
    return PurchaseOrderService(
        memory_store,
        catalog,
        clock=clock,
        config=PurchasingConfig(batch_failure_policy="all_or_nothing"),
    )


def get_database_url() -> str | None:
    """PostgreSQL URL for the ``postgres``-marked tests, from the environment."""
    return os.environ.get("DATABASE_URL")


@pytest.fixture
def postgres_session_factory():
    """Session factory bound to the PostgreSQL database named by DATABASE_URL."""
    url = get_database_url()
    if not url or not url.startswith("postgresql"):
        pytest.skip("DATABASE_URL does not point at PostgreSQL")
    engine = init_engine_from_url(url)
    drop_tables(engine)
    create_all_tables(engine)
    yield get_session_factory()
    drop_tables(engine)
    reset_engine()
