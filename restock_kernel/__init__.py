"""
Restock Kernel

The invariant-bearing core of restock coordination:
- Typed, coded exceptions
- Structured JSON logging with request-scoped context
- Role and actor identity (resolved upstream, consumed here)
- Workflow value objects for the purchase order state machine
- SQLAlchemy base classes for the order store
"""

__version__ = "0.1.0"
