"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class. These own the domain shape; the store, service and
gate do the work. The only logic here is construction-time validation of
the role and email, so an out-of-set role can never exist as runtime state.

Layer rule: no imports from api/ or pricing/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    admin = "admin"
    shipper = "shipper"
    carrier = "carrier"


def normalize_email(email: str) -> str:
    """Trim and lowercase an email so it can serve as the natural key."""
    return email.strip().lower()


@dataclass
class User:
    """A registered account.

    password_hash is the PasswordHasher output, never the plaintext.
    id, created_at and updated_at are None until the store writes the record.
    """

    email: str
    password_hash: str
    role: Role
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def __post_init__(self) -> None:
        # Raises ValueError for anything outside the closed role set.
        self.role = Role(self.role)
        self.email = normalize_email(self.email)


@dataclass(frozen=True)
class Identity:
    """The verified {id, role} pair decoded from a bearer token."""

    user_id: int
    role: Role
