"""Error taxonomy shared by every store adapter and the auth service.

Adapters translate their native failures (constraint violations, locked
databases, closed connections) into the ``StoreError`` family below, so
nothing above the store layer ever sees a driver exception.

    TallyError
    ├── StoreError                 (tagged with StoreErrorKind)
    │   ├── DuplicateEmailError
    │   ├── RecordNotFoundError
    │   ├── StoreUnavailableError
    │   └── UnknownStoreError
    ├── AuthError
    │   ├── UserExistsError
    │   └── AuthenticationError
    │       ├── UserNotFoundError
    │       └── InvalidCredentialsError
    └── ConfigError
"""

from __future__ import annotations

from enum import Enum


class StoreErrorKind(Enum):
    """Backend-agnostic failure kinds a store may report."""

    DUPLICATE_EMAIL = "duplicate_email"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class TallyError(Exception):
    """Base class for all errors raised by this package."""


class StoreError(TallyError):
    """Failure reported by a store adapter."""

    kind: StoreErrorKind = StoreErrorKind.UNKNOWN


class DuplicateEmailError(StoreError):
    """A user with this email already exists."""

    kind = StoreErrorKind.DUPLICATE_EMAIL

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already in use: {email}")


class RecordNotFoundError(StoreError):
    """The record addressed by an update does not exist."""

    kind = StoreErrorKind.NOT_FOUND


class StoreUnavailableError(StoreError):
    """The backend cannot be reached, prepared or acquired in time."""

    kind = StoreErrorKind.UNAVAILABLE


class UnknownStoreError(StoreError):
    """Unclassified backend failure. ``detail`` is for diagnostics only."""

    kind = StoreErrorKind.UNKNOWN

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class AuthError(TallyError):
    """Base class for authentication service failures."""


class UserExistsError(AuthError):
    """Registration attempted with an email that is already registered."""


class AuthenticationError(AuthError):
    """Login failed.

    External callers should catch this base class and show a single generic
    message so they do not reveal whether the account exists.
    """


class UserNotFoundError(AuthenticationError):
    """No user is registered under the given email."""


class InvalidCredentialsError(AuthenticationError):
    """The password does not match the stored hash."""


class ConfigError(TallyError, ValueError):
    """Configuration file missing, malformed or incomplete."""
