"""In-process credential store with the same semantics as SQLiteStore.

Nothing is persisted; state lives for the lifetime of the instance.
Records are copied on the way in and on the way out so callers can never
mutate stored state through a reference.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterator, List, Optional

from ..errors import (
    DuplicateEmailError,
    RecordNotFoundError,
    StoreUnavailableError,
    UnknownStoreError,
)
from ..models import Preference, Transaction, User
from .base import DEFAULT_TIMEOUT_SECONDS


class MemoryStore:
    """Dict-backed credential store guarded by a single lock.

    Args:
        timeout: Seconds to wait for the lock before raising
                 StoreUnavailableError.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = timeout
        self._lock = threading.Lock()
        self._ready = False
        self._users: Dict[str, User] = {}
        self._ids_by_email: Dict[str, str] = {}
        self._preferences: Dict[str, Preference] = {}
        self._transactions: Dict[str, Transaction] = {}

    def init(self) -> None:
        with self._acquire():
            self._ready = True

    def close(self) -> None:
        """Mark the store closed. Data is kept until the instance is dropped."""
        with self._acquire():
            self._ready = False

    @contextmanager
    def _acquire(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._timeout):
            raise StoreUnavailableError(
                f"Timed out after {self._timeout}s waiting for memory store"
            )
        try:
            yield
        finally:
            self._lock.release()

    @contextmanager
    def _session(self) -> Iterator[None]:
        with self._acquire():
            if not self._ready:
                raise StoreUnavailableError(
                    "Memory store is not initialised; call init() first"
                )
            yield

    # -- users -------------------------------------------------------------

    def insert_user(self, user: User) -> None:
        with self._session():
            if user.email in self._ids_by_email:
                raise DuplicateEmailError(user.email)
            if user.id in self._users:
                raise UnknownStoreError(f"Duplicate user id: {user.id}")
            self._users[user.id] = replace(user)
            self._ids_by_email[user.email] = user.id

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        with self._session():
            user = self._users.get(user_id)
            return replace(user) if user is not None else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._session():
            user_id = self._ids_by_email.get(email)
            return replace(self._users[user_id]) if user_id is not None else None

    def list_users(self) -> List[User]:
        with self._session():
            return [replace(u) for u in self._users.values()]

    def update_user(self, user_id: str, user: User) -> None:
        with self._session():
            current = self._users.get(user_id)
            if current is None:
                raise RecordNotFoundError(f"User not found: {user_id}")
            owner = self._ids_by_email.get(user.email)
            if owner is not None and owner != user_id:
                raise DuplicateEmailError(user.email)

            del self._ids_by_email[current.email]
            self._users[user_id] = replace(user, id=user_id)
            self._ids_by_email[user.email] = user_id

    def delete_user(self, user_id: str) -> None:
        with self._session():
            user = self._users.pop(user_id, None)
            if user is not None:
                del self._ids_by_email[user.email]

    # -- preferences -------------------------------------------------------

    def get_user_preferences(self, user_id: str) -> Optional[Preference]:
        with self._session():
            prefs = self._preferences.get(user_id)
            return replace(prefs) if prefs is not None else None

    def upsert_user_preferences(self, user_id: str, preferences: Preference) -> None:
        with self._session():
            for owner, existing in self._preferences.items():
                if existing.id == preferences.id and owner != user_id:
                    raise UnknownStoreError(
                        f"Duplicate preference id: {preferences.id}"
                    )
            self._preferences[user_id] = replace(preferences, user_id=user_id)

    def list_preferences(self) -> List[Preference]:
        """Return every preferences record, across all users."""
        with self._session():
            return [replace(p) for p in self._preferences.values()]

    # -- transactions ------------------------------------------------------

    def get_user_transactions(self, user_id: str) -> List[Transaction]:
        with self._session():
            return [
                replace(tx)
                for tx in self._transactions.values()
                if tx.user_id == user_id
            ]

    def insert_user_transaction(self, user_id: str, tx: Transaction) -> None:
        with self._session():
            if tx.id in self._transactions:
                raise UnknownStoreError(f"Duplicate transaction id: {tx.id}")
            self._transactions[tx.id] = replace(tx, user_id=user_id)

    def update_user_transaction(
        self, user_id: str, transaction_id: str, tx: Transaction
    ) -> None:
        with self._session():
            current = self._transactions.get(transaction_id)
            if current is None or current.user_id != user_id:
                return
            self._transactions[transaction_id] = replace(
                tx, id=transaction_id, user_id=user_id
            )

    def delete_user_transaction(self, user_id: str, transaction_id: str) -> None:
        with self._session():
            current = self._transactions.get(transaction_id)
            if current is not None and current.user_id == user_id:
                del self._transactions[transaction_id]

    def list_transactions(self) -> List[Transaction]:
        """Return every transaction, across all users."""
        with self._session():
            return [replace(tx) for tx in self._transactions.values()]
