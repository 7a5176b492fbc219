"""
Order intent grouping.

Turns a flat list of order intents into single-vendor batch requests, and
parses the manual ``productId:quantity`` batch form.
"""

from __future__ import annotations

from collections.abc import Iterable

from restock_kernel.exceptions import ValidationError
from restock_kernel.logging_config import get_logger
from restock_modules.reconciliation.models import BatchItem, OrderIntent

logger = get_logger("modules.reconciliation.intents")


def group_intents_by_vendor(
    intents: Iterable[OrderIntent],
) -> dict[int, tuple[BatchItem, ...]]:
    """
    Group intents into one batch per vendor.

    Vendors and products keep first-appearance order.  The same product
    requested twice for one vendor becomes a single line with the summed
    quantity, so every (vendor, product) pair yields exactly one order.

    Raises:
        ValidationError: if ``intents`` is empty or any intent has no vendor.
    """
    intents = tuple(intents)
    if not intents:
        raise ValidationError("No order intents to group", field="intents")

    missing = [i.product_id for i in intents if i.vendor_id is None]
    if missing:
        logger.warning("order_intents_missing_vendor", extra={"product_ids": missing})
        raise ValidationError(
            f"Products without a vendor: {missing}",
            field="vendor_id",
        )

    grouped: dict[int, dict[int, int]] = {}
    for intent in intents:
        lines = grouped.setdefault(intent.vendor_id, {})
        lines[intent.product_id] = lines.get(intent.product_id, 0) + intent.quantity

    batches = {
        vendor_id: tuple(BatchItem(product_id=pid, quantity=qty) for pid, qty in lines.items())
        for vendor_id, lines in grouped.items()
    }
    logger.debug(
        "order_intents_grouped",
        extra={
            "vendor_count": len(batches),
            "line_count": sum(len(items) for items in batches.values()),
        },
    )
    return batches


def parse_batch_lines(text: str) -> tuple[BatchItem, ...]:
    """
    Parse ``productId:quantity`` lines.

    Blank lines, lines that do not split into two integers, and lines with
    a non-positive quantity are dropped.
    """
    items: list[BatchItem] = []
    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line:
            continue
        parts = line.split(":")
        if len(parts) < 2:
            continue
        try:
            product_id = int(parts[0].strip())
            quantity = int(parts[1].strip())
        except ValueError:
            continue
        if quantity > 0:
            items.append(BatchItem(product_id=product_id, quantity=quantity))
    return tuple(items)
