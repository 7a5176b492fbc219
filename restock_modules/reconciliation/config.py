"""
Reconciliation Configuration Schema.

Defines the structure and sensible defaults for the restock review screen.
Actual values are loaded from the active configuration set at runtime.
"""

from dataclasses import dataclass, field
from typing import Self

from restock_kernel.logging_config import get_logger
from restock_modules.reconciliation.models import Urgency

logger = get_logger("modules.reconciliation.config")


@dataclass
class ReconciliationConfig:
    """
    Configuration schema for the reconciliation session.

        config = ReconciliationConfig(confidence_high_threshold=90)
    """

    # Confidence banding (inclusive lower bounds)
    confidence_high_threshold: int = 80
    confidence_medium_threshold: int = 60

    # Urgency levels offered as one-click selections
    quick_select_levels: tuple[Urgency, ...] = field(
        default_factory=lambda: (Urgency.CRITICAL, Urgency.HIGH)
    )

    def __post_init__(self):
        if not 0 <= self.confidence_medium_threshold <= self.confidence_high_threshold <= 100:
            raise ValueError(
                "confidence thresholds must satisfy 0 <= medium <= high <= 100, got "
                f"medium={self.confidence_medium_threshold} high={self.confidence_high_threshold}"
            )
        self.quick_select_levels = tuple(
            level if isinstance(level, Urgency) else Urgency(str(level).upper())
            for level in self.quick_select_levels
        )
        logger.info(
            "reconciliation_config_initialized",
            extra={
                "confidence_high_threshold": self.confidence_high_threshold,
                "confidence_medium_threshold": self.confidence_medium_threshold,
                "quick_select_levels": [u.value for u in self.quick_select_levels],
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with default thresholds."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from YAML)."""
        logger.info(
            "reconciliation_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        if "quick_select_levels" in data:
            data["quick_select_levels"] = tuple(data["quick_select_levels"])
        return cls(**data)
