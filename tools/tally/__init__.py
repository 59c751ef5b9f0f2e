"""
Tally — Credential and session core for the Tally expense tracker.

Registers users, verifies passwords and issues/validates bearer tokens
against a pluggable storage backend.

Architecture:
    Caller → AuthService → CredentialStore (contract) → adapter → storage

Components:
    - CredentialStore: Structural contract every storage backend satisfies
    - SQLiteStore: Reference relational adapter (schema + error translation)
    - MemoryStore: In-process adapter with identical semantics
    - AuthService: Stateless register / login / authenticate logic

Design Philosophy:
    - The store is the single authority on email uniqueness
    - Backends translate their native errors into one shared taxonomy
    - authenticate() never raises; every failure is an absent user

Usage:
    from tally.auth import AuthService
    from tally.store import SQLiteStore

    store = SQLiteStore(db_path=".tally/tally.db")
    store.init()
    auth = AuthService(store, secret=b"...")

    user = auth.register("alice", "alice@example.com", "pw1")
    token = auth.login("alice@example.com", "pw1")
    auth.authenticate(token)  # -> User
"""

__version__ = "0.1.0"
__author__ = "Tally Team"

from .auth.service import AuthService
from .models import Preference, Transaction, User
from .store.memory import MemoryStore
from .store.sqlite import SQLiteStore

__all__ = [
    "AuthService",
    "User",
    "Preference",
    "Transaction",
    "SQLiteStore",
    "MemoryStore",
]
