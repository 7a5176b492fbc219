"""
Actor identity (``restock_kernel.domain.actor``).

Authentication happens upstream; the kernel only consumes a resolved
``{role, email}`` pair.  ``Role`` is closed: any string that is not one of
the three known roles is rejected at the boundary rather than compared ad
hoc at each call site.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from restock_kernel.exceptions import ValidationError


class Role(Enum):
    """Caller roles."""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    VENDOR = "VENDOR"

    @classmethod
    def parse(cls, value: "Role | str") -> "Role":
        """Normalize ``"admin"``, ``"Admin"``, ``" ADMIN "`` to ``Role.ADMIN``."""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(f"Unknown role: {value!r}", field="role") from None


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class Actor:
    """The caller performing an operation."""
    role: Role
    email: str
    actor_id: UUID | None = None

    def __post_init__(self):
        object.__setattr__(self, "role", Role.parse(self.role))

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)

    def owns(self, vendor_email: str | None) -> bool:
        """True when this actor is the vendor named on a document."""
        return bool(self.normalized_email) and self.normalized_email == normalize_email(vendor_email)
