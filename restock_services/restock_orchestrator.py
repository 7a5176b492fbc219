"""
restock_services.restock_orchestrator -- End-to-end restock flow.

Responsibility:
    Wire the recommendation store, the catalog, the reconciliation session
    and the purchase order service together: open a review session loaded
    with the current recommendations, and submit the reviewed selection as
    one batch of purchase orders per vendor.

Architecture position:
    Services layer.  Owns no state of its own; the session belongs to the
    caller.  Import this module directly (it is not re-exported from
    ``restock_services``).

Invariants enforced:
    - One ``create_batch`` call per vendor, in first-appearance order.
    - The selection is cleared only when at least one order was created.

Failure modes:
    - ValidationError from intent building or grouping (nothing created).
    - PermissionDeniedError if the actor may not create orders (nothing
      created).
    - An unknown vendor fails only that vendor's batch; it is reported with
      every item marked ``VENDOR_NOT_FOUND``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from restock_kernel.domain.actor import Actor
from restock_kernel.exceptions import VendorNotFoundError
from restock_kernel.logging_config import LogContext, get_logger
from restock_modules.purchasing.models import BatchFailure, BatchResult, PurchaseOrder
from restock_modules.purchasing.service import PurchaseOrderService
from restock_modules.reconciliation.config import ReconciliationConfig
from restock_modules.reconciliation.intents import group_intents_by_vendor
from restock_modules.reconciliation.session import ReconciliationSession
from restock_services.catalog_gateway import CatalogGateway
from restock_services.recommendation_store import RecommendationStore

logger = get_logger("services.restock_orchestrator")


@dataclass(frozen=True)
class RestockSubmission:
    """Outcome of submitting a reviewed selection."""
    batches: tuple[BatchResult, ...] = field(default_factory=tuple)

    @property
    def created(self) -> tuple[PurchaseOrder, ...]:
        return tuple(order for batch in self.batches for order in batch.created)

    @property
    def failed(self) -> tuple[BatchFailure, ...]:
        return tuple(failure for batch in self.batches for failure in batch.failed)

    @property
    def is_success(self) -> bool:
        return bool(self.batches) and all(batch.is_success for batch in self.batches)


class RestockOrchestrator:
    """Runs the recommendation -> review -> purchase order flow."""

    def __init__(
        self,
        recommendations: RecommendationStore,
        catalog: CatalogGateway,
        orders: PurchaseOrderService,
        reconciliation_config: ReconciliationConfig | None = None,
    ):
        self._recommendations = recommendations
        self._catalog = catalog
        self._orders = orders
        self._reconciliation_config = reconciliation_config

    def open_session(self) -> ReconciliationSession:
        """A new review session loaded with the current recommendations."""
        session = ReconciliationSession(
            vendors=self._catalog.list_vendors(),
            config=self._reconciliation_config,
        )
        session.load(self._recommendations.list_recommendations())
        return session

    def refresh(self, session: ReconciliationSession) -> None:
        """Reload vendors and recommendations; edits and selection are discarded."""
        session.set_vendors(self._catalog.list_vendors())
        session.load(self._recommendations.list_recommendations())

    def submit(
        self,
        session: ReconciliationSession,
        actor: Actor,
        selection: Iterable[int] | None = None,
    ) -> RestockSubmission:
        """Create purchase orders for the selected items, one batch per vendor."""
        with LogContext.bind(
            session_id=session.session_id,
            actor_email=actor.normalized_email,
            actor_role=actor.role.value,
        ):
            intents = session.build_order_intents(selection)
            grouped = group_intents_by_vendor(intents)

            batches: list[BatchResult] = []
            for vendor_id, items in grouped.items():
                try:
                    batches.append(self._orders.create_batch(vendor_id, items, actor))
                except VendorNotFoundError as exc:
                    logger.warning(
                        "restock_vendor_batch_failed",
                        extra={"vendor_id": vendor_id, "error_code": exc.code},
                    )
                    batches.append(
                        BatchResult(
                            vendor_id=vendor_id,
                            failed=tuple(
                                BatchFailure(index=i, item=item, reason=str(exc), code=exc.code)
                                for i, item in enumerate(items)
                            ),
                        )
                    )

            submission = RestockSubmission(batches=tuple(batches))
            if submission.created:
                session.clear_selection()

            logger.info(
                "restock_submitted",
                extra={
                    "vendor_count": len(batches),
                    "created_count": len(submission.created),
                    "failed_count": len(submission.failed),
                },
            )
            return submission
