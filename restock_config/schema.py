"""
RestockConfiguration schema.

The runtime configuration artifact.  YAML configuration sets are parsed
into this type by the loader; nothing else in the system reads
configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass

from restock_modules.purchasing.config import PurchasingConfig
from restock_modules.reconciliation.config import ReconciliationConfig


@dataclass(frozen=True)
class RestockConfiguration:
    """A parsed, checksummed configuration set."""

    config_id: str
    version: int
    database_url: str
    log_level: str
    purchasing: PurchasingConfig
    reconciliation: ReconciliationConfig
    checksum: str
