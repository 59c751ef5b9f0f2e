"""Record types shared by the auth service and every store adapter.

Stores receive and return these dataclasses; they never leak driver rows
or documents. Identifiers are opaque strings minted by the caller via
``new_id()``, never by a store.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


def new_id() -> str:
    """Return a fresh random identifier."""
    return str(uuid.uuid4())


@dataclass
class User:
    """Registered identity.

    Attributes:
        id: Opaque identifier.
        name: Display name given at registration.
        email: Unique, case-sensitive login address.
        password_hash: Self-describing bcrypt hash. Kept out of ``repr()``.
    """

    id: str
    name: str
    email: str
    password_hash: str = field(repr=False)


@dataclass
class Preference:
    """Per-user display preferences. At most one per ``user_id``."""

    id: str
    user_id: str
    theme: str
    currency: str
    language: str
    notifications: bool


@dataclass
class Transaction:
    """Ledger entry owned by ``user_id``."""

    id: str
    user_id: str
    name: str
    amount: Decimal
    description: str
    date: datetime
    category: str
    source: str
