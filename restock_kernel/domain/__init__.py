"""
Pure domain layer.

Data transfer objects and value types with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable.
"""

from restock_kernel.domain.actor import Actor, Role, normalize_email
from restock_kernel.domain.catalog import MovementType, Product, StockMovement, Vendor
from restock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from restock_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Actor",
    "Role",
    "normalize_email",
    "Product",
    "Vendor",
    "MovementType",
    "StockMovement",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Guard",
    "Transition",
    "Workflow",
]
