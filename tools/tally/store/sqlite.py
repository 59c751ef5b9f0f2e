"""SQLite-backed credential store: the reference CredentialStore adapter."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterator, List, Optional

from ..errors import (
    DuplicateEmailError,
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
    UnknownStoreError,
)
from ..models import Preference, Transaction, User
from .base import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

MEMORY_DB_PATH = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS preferences (
    id TEXT PRIMARY KEY,
    user_id TEXT UNIQUE NOT NULL,
    theme TEXT,
    currency TEXT,
    language TEXT,
    notifications INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT,
    amount TEXT NOT NULL,
    description TEXT,
    date TEXT NOT NULL,
    category TEXT,
    source TEXT
);

CREATE INDEX IF NOT EXISTS idx_transactions_user ON transactions(user_id);
"""

# OperationalError messages that mean "backend not reachable right now"
_UNAVAILABLE_MARKERS = (
    "locked",
    "busy",
    "unable to open",
    "disk i/o error",
    "readonly database",
)


def translate_error(exc: sqlite3.Error) -> StoreError:
    """Map a sqlite3 exception onto the store error taxonomy.

    Unique violations on ``users.email`` are handled at the call site, which
    knows the offending email; every other constraint failure is unknown.
    """
    message = str(exc)
    lowered = message.lower()

    if isinstance(exc, sqlite3.OperationalError):
        if any(marker in lowered for marker in _UNAVAILABLE_MARKERS):
            return StoreUnavailableError(message)
    elif isinstance(exc, sqlite3.ProgrammingError) and "closed" in lowered:
        return StoreUnavailableError(message)

    return UnknownStoreError(f"{type(exc).__name__}: {message}")


def _is_email_conflict(exc: sqlite3.IntegrityError) -> bool:
    return "users.email" in str(exc)


class SQLiteStore:
    """SQLite credential store shared safely between threads.

    One connection is opened by ``init()`` and every operation runs under a
    lock, so each call is atomic with respect to the others. Waiting for the
    lock, or for another process holding the database file, is bounded by
    ``timeout``; exhaustion raises StoreUnavailableError.

    Args:
        db_path: Path to SQLite database file, or ":memory:". Parent
                 directories are created by ``init()``.
        timeout: Seconds to wait for the connection before giving up.
    """

    def __init__(
        self,
        db_path: str | Path = MEMORY_DB_PATH,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._db_path = str(db_path)
        self._timeout = timeout
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @property
    def db_path(self) -> str:
        return self._db_path

    def init(self) -> None:
        """Open the connection and create tables. Safe to call repeatedly."""
        with self._acquire():
            try:
                if self._conn is None:
                    self._conn = self._open()
                self._conn.executescript(_SCHEMA)
                self._conn.commit()
            except (sqlite3.Error, OSError) as exc:
                # A half-prepared schema must not serve requests
                if self._conn is not None:
                    self._conn.close()
                    self._conn = None
                raise StoreUnavailableError(
                    f"Cannot prepare SQLite store at {self._db_path}: {exc}"
                ) from exc
        logger.debug(f"SQLite store ready: {self._db_path}")

    def close(self) -> None:
        """Close the database connection."""
        with self._acquire():
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _open(self) -> sqlite3.Connection:
        if self._db_path != MEMORY_DB_PATH:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(
            self._db_path, timeout=self._timeout, check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        if self._db_path != MEMORY_DB_PATH:
            try:
                conn.execute("PRAGMA journal_mode=WAL")
            except sqlite3.Error:
                conn.close()
                raise
        return conn

    @contextmanager
    def _acquire(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._timeout):
            raise StoreUnavailableError(
                f"Timed out after {self._timeout}s waiting for {self._db_path}"
            )
        try:
            yield
        finally:
            self._lock.release()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the open connection under the lock, translating errors."""
        with self._acquire():
            if self._conn is None:
                raise StoreUnavailableError(
                    "SQLite store is not initialised; call init() first"
                )
            try:
                yield self._conn
            except sqlite3.Error as exc:
                raise translate_error(exc) from exc

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
        )

    def _row_to_preference(self, row: sqlite3.Row) -> Preference:
        return Preference(
            id=row["id"],
            user_id=row["user_id"],
            theme=row["theme"],
            currency=row["currency"],
            language=row["language"],
            notifications=bool(row["notifications"]),
        )

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            amount=Decimal(row["amount"]),
            description=row["description"],
            date=datetime.fromisoformat(row["date"]),
            category=row["category"],
            source=row["source"],
        )

    # -- users -------------------------------------------------------------

    def insert_user(self, user: User) -> None:
        """Insert a user. Raises DuplicateEmailError if the email is taken."""
        with self._connection() as conn:
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO users (id, name, email, password_hash) "
                        "VALUES (?, ?, ?, ?)",
                        (user.id, user.name, user.email, user.password_hash),
                    )
            except sqlite3.IntegrityError as exc:
                if _is_email_conflict(exc):
                    raise DuplicateEmailError(user.email) from exc
                raise

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Look up a user by id."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        return self._row_to_user(row) if row is not None else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Look up a user by exact (case-sensitive) email."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email,)
            ).fetchone()
        return self._row_to_user(row) if row is not None else None

    def list_users(self) -> List[User]:
        """Return all users."""
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM users").fetchall()
        return [self._row_to_user(r) for r in rows]

    def update_user(self, user_id: str, user: User) -> None:
        """Replace a user's mutable fields.

        Raises RecordNotFoundError if no user has ``user_id`` and
        DuplicateEmailError if the new email belongs to someone else.
        """
        with self._connection() as conn:
            try:
                with conn:
                    cur = conn.execute(
                        "UPDATE users SET name = ?, email = ?, password_hash = ? "
                        "WHERE id = ?",
                        (user.name, user.email, user.password_hash, user_id),
                    )
            except sqlite3.IntegrityError as exc:
                if _is_email_conflict(exc):
                    raise DuplicateEmailError(user.email) from exc
                raise
            if cur.rowcount == 0:
                raise RecordNotFoundError(f"User not found: {user_id}")

    def delete_user(self, user_id: str) -> None:
        """Remove a user by id. Unknown ids are ignored."""
        with self._connection() as conn:
            with conn:
                conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    # -- preferences -------------------------------------------------------

    def get_user_preferences(self, user_id: str) -> Optional[Preference]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM preferences WHERE user_id = ?", (user_id,)
            ).fetchone()
        return self._row_to_preference(row) if row is not None else None

    def upsert_user_preferences(self, user_id: str, preferences: Preference) -> None:
        """Insert or fully replace the preferences row for ``user_id``."""
        with self._connection() as conn:
            with conn:
                conn.execute(
                    "INSERT INTO preferences "
                    "(id, user_id, theme, currency, language, notifications) "
                    "VALUES (?, ?, ?, ?, ?, ?) "
                    "ON CONFLICT(user_id) DO UPDATE SET "
                    "id = excluded.id, theme = excluded.theme, "
                    "currency = excluded.currency, language = excluded.language, "
                    "notifications = excluded.notifications",
                    (
                        preferences.id,
                        user_id,
                        preferences.theme,
                        preferences.currency,
                        preferences.language,
                        int(preferences.notifications),
                    ),
                )

    def list_preferences(self) -> List[Preference]:
        """Return every preferences row, across all users."""
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM preferences").fetchall()
        return [self._row_to_preference(r) for r in rows]

    # -- transactions ------------------------------------------------------

    def get_user_transactions(self, user_id: str) -> List[Transaction]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM transactions WHERE user_id = ?", (user_id,)
            ).fetchall()
        return [self._row_to_transaction(r) for r in rows]

    def insert_user_transaction(self, user_id: str, tx: Transaction) -> None:
        with self._connection() as conn:
            with conn:
                conn.execute(
                    "INSERT INTO transactions "
                    "(id, user_id, name, amount, description, date, category, source) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        tx.id,
                        user_id,
                        tx.name,
                        str(tx.amount),
                        tx.description,
                        tx.date.isoformat(),
                        tx.category,
                        tx.source,
                    ),
                )

    def update_user_transaction(
        self, user_id: str, transaction_id: str, tx: Transaction
    ) -> None:
        """Replace a transaction's fields if it belongs to ``user_id``."""
        with self._connection() as conn:
            with conn:
                conn.execute(
                    "UPDATE transactions SET name = ?, amount = ?, description = ?, "
                    "date = ?, category = ?, source = ? "
                    "WHERE id = ? AND user_id = ?",
                    (
                        tx.name,
                        str(tx.amount),
                        tx.description,
                        tx.date.isoformat(),
                        tx.category,
                        tx.source,
                        transaction_id,
                        user_id,
                    ),
                )

    def delete_user_transaction(self, user_id: str, transaction_id: str) -> None:
        with self._connection() as conn:
            with conn:
                conn.execute(
                    "DELETE FROM transactions WHERE id = ? AND user_id = ?",
                    (transaction_id, user_id),
                )

    def list_transactions(self) -> List[Transaction]:
        """Return every transaction, across all users."""
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM transactions").fetchall()
        return [self._row_to_transaction(r) for r in rows]
