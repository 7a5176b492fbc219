"""
Purchasing Configuration Schema.

Defines the structure and defaults for purchase order handling.
Actual values are loaded from the active configuration set at runtime.
"""

from dataclasses import dataclass
from typing import Self

from restock_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.config")

BEST_EFFORT = "best_effort"
ALL_OR_NOTHING = "all_or_nothing"
BATCH_FAILURE_POLICIES = (BEST_EFFORT, ALL_OR_NOTHING)


@dataclass
class PurchasingConfig:
    """
    Configuration schema for the purchasing module.

        config = PurchasingConfig(batch_failure_policy="all_or_nothing")
    """

    # Batch creation: keep the good items, or discard the batch on any failure
    batch_failure_policy: str = BEST_EFFORT

    # Completion side effect
    stock_in_on_complete: bool = True
    stock_in_handler: str = "Auto-Restock System"

    # Listing order
    newest_first: bool = True

    def __post_init__(self):
        self.batch_failure_policy = str(self.batch_failure_policy).strip().lower()
        if self.batch_failure_policy not in BATCH_FAILURE_POLICIES:
            raise ValueError(
                f"batch_failure_policy must be one of {BATCH_FAILURE_POLICIES}, "
                f"got {self.batch_failure_policy!r}"
            )
        if not self.stock_in_handler or not self.stock_in_handler.strip():
            raise ValueError("stock_in_handler cannot be blank")
        logger.info(
            "purchasing_config_initialized",
            extra={
                "batch_failure_policy": self.batch_failure_policy,
                "stock_in_on_complete": self.stock_in_on_complete,
                "newest_first": self.newest_first,
            },
        )

    @property
    def all_or_nothing(self) -> bool:
        return self.batch_failure_policy == ALL_OR_NOTHING

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with default policies."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from YAML)."""
        logger.info(
            "purchasing_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
