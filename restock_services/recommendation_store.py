"""
restock_services.recommendation_store -- Source of restock recommendations.

Responsibility:
    Supply the raw recommendation list to the reconciliation session, and
    normalize the wire variants the forecasting service has produced over
    time into ``RestockRecommendation`` values.

Architecture position:
    Services layer.  Everything above this boundary sees one spelling per
    field.

Invariants enforced:
    - Accepted envelopes: ``{"suggestions": [...]}`` or a bare list.
    - ``recommendedOrderQuantity`` is preferred over ``recommendedQuantity``;
      ``urgency`` is preferred over ``riskLevel``.  camelCase and
      snake_case keys are both accepted.
    - ``product_id`` is unique within one batch.

Failure modes:
    - ValidationError for a malformed envelope, a missing or unparseable
      field, an unknown urgency, or a duplicated product id.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from restock_kernel.exceptions import ValidationError
from restock_kernel.logging_config import get_logger
from restock_modules.reconciliation.models import RestockRecommendation, Urgency

logger = get_logger("services.recommendation_store")

# Canonical field -> accepted spellings, in order of preference
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "product_id": ("productId", "product_id"),
    "product_name": ("productName", "product_name", "name"),
    "sku": ("sku",),
    "current_stock": ("currentStock", "current_stock"),
    "reorder_level": ("reorderLevel", "reorder_level"),
    "recommended_quantity": (
        "recommendedOrderQuantity",
        "recommended_order_quantity",
        "recommendedQuantity",
        "recommended_quantity",
    ),
    "vendor_id": ("vendorId", "vendor_id"),
    "vendor_name": ("vendorName", "vendor_name"),
    "urgency": ("urgency", "riskLevel", "risk_level"),
    "confidence": ("confidence",),
}


@runtime_checkable
class RecommendationStore(Protocol):
    """Recommendation source interface."""

    def list_recommendations(self) -> tuple[RestockRecommendation, ...]: ...


def _pick(raw: Mapping[str, Any], name: str) -> Any:
    for key in FIELD_ALIASES[name]:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_int(raw: Mapping[str, Any], name: str, default: int | None = None) -> int | None:
    value = _pick(raw, name)
    if value is None:
        if default is None:
            raise ValidationError(f"Recommendation is missing {name}", field=name)
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}", field=name)
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            raise ValidationError(f"{name} must be a number, got {value!r}", field=name) from None


def normalize_recommendation(raw: Mapping[str, Any]) -> RestockRecommendation:
    """Build a ``RestockRecommendation`` from one raw payload entry."""
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Recommendation must be an object, got {type(raw).__name__}")

    urgency_raw = _pick(raw, "urgency")
    try:
        urgency = Urgency(str(urgency_raw).strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown urgency: {urgency_raw!r}", field="urgency") from None

    vendor_id = _pick(raw, "vendor_id")
    confidence = _pick(raw, "confidence")
    try:
        return RestockRecommendation(
            product_id=_as_int(raw, "product_id"),
            product_name=str(_pick(raw, "product_name") or ""),
            sku=str(_pick(raw, "sku") or ""),
            current_stock=_as_int(raw, "current_stock", default=0),
            reorder_level=_as_int(raw, "reorder_level", default=0),
            recommended_quantity=_as_int(raw, "recommended_quantity", default=0),
            vendor_id=None if vendor_id is None else _as_int(raw, "vendor_id"),
            vendor_name=str(_pick(raw, "vendor_name") or ""),
            urgency=urgency,
            confidence=None if confidence is None else round(float(confidence)),
        )
    except (ValueError, OverflowError) as exc:
        raise ValidationError(str(exc)) from None


def normalize_payload(payload: Any) -> tuple[RestockRecommendation, ...]:
    """Normalize a whole payload, rejecting duplicate product ids."""
    if isinstance(payload, Mapping):
        if "suggestions" not in payload:
            raise ValidationError("Recommendation payload has no 'suggestions' list")
        payload = payload["suggestions"]
    if not isinstance(payload, (list, tuple)):
        raise ValidationError(
            f"Recommendation payload must be a list, got {type(payload).__name__}"
        )

    seen: set[int] = set()
    recommendations: list[RestockRecommendation] = []
    for raw in payload:
        rec = normalize_recommendation(raw)
        if rec.product_id in seen:
            raise ValidationError(
                f"Duplicate product_id {rec.product_id} in recommendation batch",
                field="product_id",
            )
        seen.add(rec.product_id)
        recommendations.append(rec)
    return tuple(recommendations)


class PayloadRecommendationStore:
    """Serves recommendations normalized from a raw forecasting payload."""

    def __init__(self, payload: Any = ()):
        self._lock = threading.Lock()
        self._recommendations: tuple[RestockRecommendation, ...] = ()
        self.load_payload(payload)

    def load_payload(self, payload: Any) -> None:
        """Replace the served batch.  A bad payload leaves the old batch in place."""
        recommendations = normalize_payload(payload)
        with self._lock:
            self._recommendations = recommendations
        logger.info(
            "recommendations_loaded",
            extra={"count": len(recommendations)},
        )

    def list_recommendations(self) -> tuple[RestockRecommendation, ...]:
        with self._lock:
            return self._recommendations
