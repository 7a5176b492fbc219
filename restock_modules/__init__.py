"""
Restock Modules.

Thin layers over the restock kernel.  Each module contains:
- Domain models (the nouns)
- Workflows (state machines), where the module has a lifecycle
- Configuration schemas (policy and settings)

Modules:
- Reconciliation: recommendations merged with a reviewer's edits, order intents
- Purchasing: purchase orders and their role-gated lifecycle
"""

from restock_modules import (
    purchasing,
    reconciliation,
)

__all__ = [
    "purchasing",
    "reconciliation",
]
