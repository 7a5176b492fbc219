"""
Reconciliation Session (``restock_modules.reconciliation.session``).

Responsibility
--------------
Holds one interactive actor's editable working copy of restock
recommendations: quantity and vendor overrides, soft deletion, and the
selection that will be committed as order intents.

Architecture position
---------------------
**Modules layer** -- pure in-memory state, no I/O.  The caller owns the
session object and passes it wherever it is needed; there is no
process-wide instance.  Single-threaded by contract, so no locking.

Invariants enforced
-------------------
* ``modified_quantity >= 0`` for every item at all times.  Malformed input
  is normalized to 0, never raised.
* The selection only ever contains ids of active (non-deleted) items.
  Unknown product ids and urgency levels are ignored.
* ``reset`` restores the quantity/vendor overlay and leaves ``is_deleted``
  alone; ``restore`` clears ``is_deleted`` and leaves the overlay alone.
* Every public operation either fully applies or leaves state untouched.
  Items are frozen values; an edit swaps in a whole new value.

Failure modes
-------------
* ``build_order_intents`` raises ``ValidationError`` when nothing active is
  selected.  This is the only error the session raises.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import replace
from typing import Any
from uuid import uuid4

from restock_kernel.domain.catalog import Vendor
from restock_kernel.exceptions import ValidationError
from restock_kernel.logging_config import LogContext, get_logger
from restock_modules.reconciliation.config import ReconciliationConfig
from restock_modules.reconciliation.models import (
    ConfidenceBand,
    OrderIntent,
    ReconciledItem,
    ReconciliationSummary,
    RestockRecommendation,
    Urgency,
)

logger = get_logger("modules.reconciliation.session")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_quantity(value: Any) -> int:
    """
    Parse user input into a non-negative integer.

    Leading-integer parsing: ``"12"`` -> 12, ``"12 units"`` -> 12,
    ``"3.7"`` -> 3, ``"-5"`` -> 0, ``"abc"`` -> 0, ``None`` -> 0.
    """
    parsed = _parse_int(value)
    if parsed is None or parsed < 0:
        return 0
    return parsed


def _parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    match = _LEADING_INT.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


class _ItemsView:
    """
    Restartable, order-preserving view over a session's items.

    Each iteration re-reads the session, so edits made between iterations
    are always visible.
    """

    def __init__(self, session: "ReconciliationSession", deleted: bool):
        self._session = session
        self._deleted = deleted

    def __iter__(self) -> Iterator[ReconciledItem]:
        return (
            item for item in self._session._items.values()
            if item.is_deleted == self._deleted
        )

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def __repr__(self) -> str:
        kind = "deleted" if self._deleted else "active"
        return f"<{kind} items view of {self._session!r}>"


class ReconciliationSession:
    """
    Editable working set of reconciled restock items.

    Contract
    --------
    * Item order is the order recommendations were loaded in.
    * Unknown product ids are ignored by every edit and selection operation.

    Non-goals
    ---------
    * Does NOT persist anything; the session ends when the caller drops it.
    * Does NOT fetch recommendations or vendors (see ``RestockOrchestrator``).
    """

    def __init__(
        self,
        vendors: Sequence[Vendor] = (),
        config: ReconciliationConfig | None = None,
    ):
        self.session_id = str(uuid4())
        self._config = config or ReconciliationConfig.with_defaults()
        self._vendors: dict[int, Vendor] = {v.id: v for v in vendors}
        self._items: dict[int, ReconciledItem] = {}
        self._selected: set[int] = set()

    def __repr__(self) -> str:
        return f"<ReconciliationSession {self.session_id} items={len(self._items)}>"

    @property
    def config(self) -> ReconciliationConfig:
        return self._config

    @property
    def vendors(self) -> tuple[Vendor, ...]:
        return tuple(self._vendors.values())

    def set_vendors(self, vendors: Sequence[Vendor]) -> None:
        """Replace the vendor list consulted by ``set_vendor``."""
        self._vendors = {v.id: v for v in vendors}

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self, recommendations: Iterable[RestockRecommendation]) -> None:
        """Replace the working set (and clear the selection)."""
        items: dict[int, ReconciledItem] = {}
        for rec in recommendations:
            if rec.product_id in items:
                logger.warning(
                    "reconciliation_duplicate_product",
                    extra={"product_id": rec.product_id},
                )
            items[rec.product_id] = ReconciledItem.from_recommendation(rec)

        self._items = items
        self._selected = set()

        with LogContext.bind(session_id=self.session_id):
            logger.info(
                "reconciliation_loaded",
                extra={"item_count": len(items)},
            )

    # =========================================================================
    # Edits
    # =========================================================================

    def get_item(self, product_id: int) -> ReconciledItem | None:
        return self._items.get(product_id)

    def set_quantity(self, product_id: int, value: Any) -> None:
        item = self._items.get(product_id)
        if item is None:
            return
        quantity = coerce_quantity(value)
        self._items[product_id] = replace(item, modified_quantity=quantity)
        logger.debug(
            "reconciliation_quantity_set",
            extra={"product_id": product_id, "raw_value": str(value), "quantity": quantity},
        )

    def set_vendor(self, product_id: int, vendor_id: Any) -> None:
        """
        Point an item at a different vendor.

        The vendor name comes from the session's vendor list; for a vendor
        id that is not in the list, the recommendation's vendor name is kept.
        """
        item = self._items.get(product_id)
        if item is None:
            return
        parsed = _parse_int(vendor_id)
        if parsed is None:
            logger.warning(
                "reconciliation_vendor_id_unparseable",
                extra={"product_id": product_id, "raw_value": str(vendor_id)},
            )
            return
        vendor = self._vendors.get(parsed)
        name = vendor.full_name if vendor is not None else item.recommendation.vendor_name
        self._items[product_id] = replace(
            item, modified_vendor_id=parsed, modified_vendor_name=name
        )
        logger.debug(
            "reconciliation_vendor_set",
            extra={"product_id": product_id, "vendor_id": parsed, "vendor_known": vendor is not None},
        )

    def delete(self, product_id: int) -> None:
        item = self._items.get(product_id)
        if item is None:
            return
        self._items[product_id] = replace(item, is_deleted=True)
        self._selected.discard(product_id)
        logger.debug("reconciliation_item_deleted", extra={"product_id": product_id})

    def restore(self, product_id: int) -> None:
        item = self._items.get(product_id)
        if item is None:
            return
        self._items[product_id] = replace(item, is_deleted=False)
        logger.debug("reconciliation_item_restored", extra={"product_id": product_id})

    def reset(self, product_id: int) -> None:
        """Back to the AI recommendation; deletion state is untouched."""
        item = self._items.get(product_id)
        if item is None:
            return
        rec = item.recommendation
        self._items[product_id] = replace(
            item,
            modified_quantity=rec.recommended_quantity,
            modified_vendor_id=rec.vendor_id,
            modified_vendor_name=rec.vendor_name,
        )
        logger.debug("reconciliation_item_reset", extra={"product_id": product_id})

    # =========================================================================
    # Views
    # =========================================================================

    def active_items(self) -> _ItemsView:
        return _ItemsView(self, deleted=False)

    def deleted_items(self) -> _ItemsView:
        return _ItemsView(self, deleted=True)

    def _is_active(self, product_id: int) -> bool:
        item = self._items.get(product_id)
        return item is not None and not item.is_deleted

    # =========================================================================
    # Selection
    # =========================================================================

    @property
    def selected_ids(self) -> frozenset[int]:
        return frozenset(self._selected)

    def is_selected(self, product_id: int) -> bool:
        return product_id in self._selected

    def select(self, product_id: int) -> None:
        if self._is_active(product_id):
            self._selected.add(product_id)

    def deselect(self, product_id: int) -> None:
        self._selected.discard(product_id)

    def toggle_select(self, product_id: int) -> None:
        if product_id in self._selected:
            self._selected.discard(product_id)
        elif self._is_active(product_id):
            self._selected.add(product_id)

    def select_by_urgency(self, level: Urgency | str) -> None:
        """
        Replace the selection with every active item at ``level``.

        An unknown level leaves the selection untouched.
        """
        if isinstance(level, Urgency):
            urgency = level
        else:
            try:
                urgency = Urgency(str(level).strip().upper())
            except ValueError:
                logger.warning(
                    "reconciliation_unknown_urgency",
                    extra={"raw_value": str(level)},
                )
                return
        self._selected = {
            item.product_id for item in self.active_items() if item.urgency is urgency
        }

    def select_all(self) -> None:
        self._selected = {item.product_id for item in self.active_items()}

    def clear_selection(self) -> None:
        self._selected = set()

    def selected_items(self) -> list[ReconciledItem]:
        """Selected active items in working-set order."""
        return [item for item in self.active_items() if item.product_id in self._selected]

    # =========================================================================
    # Output
    # =========================================================================

    def build_order_intents(
        self,
        selection: Iterable[int] | None = None,
    ) -> tuple[OrderIntent, ...]:
        """
        Resolve selected active items into order intents.

        Args:
            selection: product ids to commit; defaults to the session's own
                selection.  Ids of deleted or unknown items are skipped.

        Raises:
            ValidationError: if no intent results.
        """
        chosen = self._selected if selection is None else set(selection)
        intents = tuple(
            OrderIntent(
                product_id=item.product_id,
                quantity=item.modified_quantity,
                vendor_id=item.modified_vendor_id,
            )
            for item in self.active_items()
            if item.product_id in chosen
        )

        if not intents:
            logger.warning(
                "reconciliation_no_intents",
                extra={"session_id": self.session_id, "selection_size": len(chosen)},
            )
            raise ValidationError(
                "No active items selected; select at least one product",
                field="selection",
            )

        logger.info(
            "reconciliation_intents_built",
            extra={
                "session_id": self.session_id,
                "intent_count": len(intents),
                "total_quantity": sum(i.quantity for i in intents),
            },
        )
        return intents

    @property
    def quick_select_levels(self) -> tuple[Urgency, ...]:
        """Urgency levels offered as one-click selections."""
        return self._config.quick_select_levels

    def confidence_band(self, product_id: int) -> ConfidenceBand | None:
        """Band an item's confidence using this session's thresholds."""
        item = self._items.get(product_id)
        if item is None:
            return None
        return item.confidence_band(
            high=self._config.confidence_high_threshold,
            medium=self._config.confidence_medium_threshold,
        )

    def summary(self) -> ReconciliationSummary:
        active = list(self.active_items())
        return ReconciliationSummary(
            critical_count=sum(1 for i in active if i.urgency is Urgency.CRITICAL),
            high_count=sum(1 for i in active if i.urgency is Urgency.HIGH),
            active_count=len(active),
            deleted_count=len(self._items) - len(active),
            selected_count=len(self._selected),
            total_quantity=sum(i.modified_quantity for i in active),
        )
