"""Credential store contract.

Every storage backend (SQLite, in-memory, ...) must satisfy CredentialStore.
The contract is structural: adapters do not inherit from it, they only
provide the same methods with the same semantics.

Shared semantics:
    - Lookups return ``None`` for absence and never raise for it.
    - ``insert_user`` raises DuplicateEmailError atomically with its
      uniqueness check, so two concurrent inserts of one email cannot
      both succeed.
    - ``update_user`` on an unknown id raises RecordNotFoundError.
    - ``delete_user`` on an unknown id is a no-op.
    - Transaction updates/deletes are scoped by (user_id, tx_id); a tx_id
      owned by another user is left untouched.
    - ``user_id`` references are not checked against existing users.
    - Calls before ``init()`` or after ``close()`` raise
      StoreUnavailableError.
    - Native failures surface only as StoreError subclasses.
    - Returned records are copies of stored state.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from ..models import Preference, Transaction, User

DEFAULT_TIMEOUT_SECONDS = 5.0


@runtime_checkable
class CredentialStore(Protocol):
    """Storage operations the auth service and its callers rely on."""

    def init(self) -> None:
        """Prepare the backend (connect, create schema). Idempotent."""
        ...

    def close(self) -> None:
        """Release backend resources. Idempotent."""
        ...

    # -- users -------------------------------------------------------------

    def insert_user(self, user: User) -> None: ...

    def get_user_by_id(self, user_id: str) -> Optional[User]: ...

    def get_user_by_email(self, email: str) -> Optional[User]: ...

    def list_users(self) -> List[User]: ...

    def update_user(self, user_id: str, user: User) -> None:
        """Replace name, email and password_hash of an existing user."""
        ...

    def delete_user(self, user_id: str) -> None: ...

    # -- preferences -------------------------------------------------------

    def get_user_preferences(self, user_id: str) -> Optional[Preference]: ...

    def upsert_user_preferences(self, user_id: str, preferences: Preference) -> None:
        """Insert the user's preferences, or replace them if present."""
        ...

    # -- transactions ------------------------------------------------------

    def get_user_transactions(self, user_id: str) -> List[Transaction]: ...

    def insert_user_transaction(self, user_id: str, tx: Transaction) -> None: ...

    def update_user_transaction(
        self, user_id: str, transaction_id: str, tx: Transaction
    ) -> None: ...

    def delete_user_transaction(self, user_id: str, transaction_id: str) -> None: ...

    # -- inspection --------------------------------------------------------

    def list_preferences(self) -> List[Preference]:
        """Every preferences record, across all users."""
        ...

    def list_transactions(self) -> List[Transaction]:
        """Every transaction, across all users."""
        ...
