"""
Tally Store — Storage backends behind one credential store contract.

Usage:
    from tally.store import SQLiteStore

    store = SQLiteStore(db_path=".tally/tally.db")
    store.init()
    store.get_user_by_email("owl@example.com")  # User or None
"""

from .base import CredentialStore
from .memory import MemoryStore
from .sqlite import SQLiteStore

__all__ = ["CredentialStore", "SQLiteStore", "MemoryStore"]
