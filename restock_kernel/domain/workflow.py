"""
Canonical workflow types (``restock_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  A ``Transition`` row
carries everything needed to decide a request table-driven: the states,
the action, which roles may fire it, whether the actor must own the
document, which payload fields are mandatory, and which fields the
transition stamps.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/`` or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the authority layer does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``allowed_roles`` holds role values (``Role.value``).  ``guard`` is an
    additional authority check (e.g. vendor ownership).  ``required_fields``
    are payload keys that must be present and non-blank.  ``stamps`` are the
    timestamp fields set to "now" when the transition fires.
    """
    from_state: str
    to_state: str
    action: str
    allowed_roles: tuple[str, ...] = ()
    guard: Guard | None = None
    required_fields: tuple[str, ...] = ()
    stamps: tuple[str, ...] = ()


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def find_transition(self, current_state: str, action: str) -> Transition | None:
        """Return the transition leaving ``current_state`` via ``action``."""
        for t in self.transitions:
            if t.from_state == current_state and t.action == action:
                return t
        return None

    def actions_from(self, current_state: str) -> tuple[str, ...]:
        """Actions that leave ``current_state``, in declaration order."""
        return tuple(t.action for t in self.transitions if t.from_state == current_state)
