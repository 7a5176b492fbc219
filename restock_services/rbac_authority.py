"""
restock_services.rbac_authority -- Runtime role enforcement at the workflow boundary.

Responsibility:
    Decide whether an actor may fire a workflow transition, using only the
    transition row itself: its ``allowed_roles`` and its optional guard
    (vendor ownership).  No call site compares role strings.

Architecture position:
    Services layer.  Called by the purchase order lifecycle before any
    payload validation or persistence.

Invariants:
    - Kernel remains identity-agnostic; this module does not resolve the
      actor (the caller supplies a resolved ``Actor``).
    - A failed ownership guard and a role mismatch produce the same answer
      to the caller; the reason string is for logs only.
"""

from __future__ import annotations

from typing import Any, Callable

from restock_kernel.domain.actor import Actor
from restock_kernel.domain.workflow import Guard, Transition
from restock_kernel.logging_config import get_logger

logger = get_logger("services.rbac_authority")


def _vendor_owns_order(actor: Actor, document: Any) -> bool:
    return actor.owns(getattr(document, "vendor_email", None))


class GuardExecutor:
    """Evaluates authority guards against (actor, document).

    Guards are declared on transitions (name + description).  This executor
    holds the evaluation logic per guard name.  An unknown guard fails
    closed.
    """

    def __init__(self) -> None:
        self._evaluators: dict[str, Callable[[Actor, Any], bool]] = {}

    def register(self, guard_name: str, evaluator: Callable[[Actor, Any], bool]) -> None:
        """Register an evaluator for a guard by name."""
        self._evaluators[guard_name] = evaluator

    def evaluate(self, guard: Guard, actor: Actor, document: Any) -> bool:
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning("guard_no_evaluator", extra={"guard_name": guard.name})
            return False
        return fn(actor, document)


def default_guard_executor() -> GuardExecutor:
    """Return a GuardExecutor with built-in evaluators registered."""
    ex = GuardExecutor()
    ex.register("vendor_owns_order", _vendor_owns_order)
    return ex


_DEFAULT_EXECUTOR = default_guard_executor()


def check_transition_authority(
    transition: Transition,
    actor: Actor,
    document: Any = None,
    guard_executor: GuardExecutor | None = None,
) -> tuple[bool, str]:
    """Check whether the actor may fire ``transition`` on ``document``.

    Returns:
        (allowed, reason). reason is empty when allowed, or a short message
        when denied.
    """
    if actor.role.value not in transition.allowed_roles:
        return (
            False,
            f"RBAC: role '{actor.role.value}' not in {list(transition.allowed_roles)} "
            f"for action '{transition.action}'",
        )

    if transition.guard is not None:
        executor = guard_executor or _DEFAULT_EXECUTOR
        if not executor.evaluate(transition.guard, actor, document):
            return (False, f"RBAC: guard not satisfied: {transition.guard.name}")

    return (True, "")
