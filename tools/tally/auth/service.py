"""Authentication service: registration, login and token authentication.

The service is stateless apart from its signing secret and a reference to
a CredentialStore. It only ever talks to storage through the store
contract, so any adapter can be swapped in without touching this module.

Email uniqueness is decided by the store. The lookup done in ``register``
before inserting is only a fast path for a friendlier error; two racing
registrations are still settled by ``insert_user``.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    StoreError,
    UserExistsError,
    UserNotFoundError,
)
from ..models import User, new_id
from ..store.base import CredentialStore
from . import passwords, tokens

logger = logging.getLogger(__name__)


class AuthService:
    """Register users, check passwords and issue/redeem bearer tokens.

    Args:
        store: Any object satisfying the CredentialStore contract. It must
               already be initialised.
        secret: Key used to sign and verify tokens. Never derived from
                user data.

    Safe to share between threads; it holds no mutable state.
    """

    def __init__(self, store: CredentialStore, secret: str | bytes) -> None:
        if not secret:
            raise ValueError("AuthService requires a non-empty signing secret")
        self._store = store
        self._secret = secret

    @property
    def store(self) -> CredentialStore:
        return self._store

    def register(self, username: str, email: str, password: str) -> User:
        """Create a new user with a bcrypt-hashed password.

        Returns the stored User, hash included; callers must not expose
        ``password_hash`` outside the process.

        Raises:
            ValueError: blank username, email without "@", or an empty or
                over-long password.
            UserExistsError: the email is already registered.
            StoreError: the store failed for any other reason.
        """
        if not username or not username.strip():
            raise ValueError("Username cannot be empty")
        if not email or "@" not in email:
            raise ValueError(f"Invalid email address: {email!r}")

        password_hash = passwords.hash_password(password)
        user = User(
            id=new_id(),
            name=username,
            email=email,
            password_hash=password_hash,
        )

        if self._store.get_user_by_email(email) is not None:
            logger.info(f"Registration rejected, email already registered: {email}")
            raise UserExistsError(f"User already exists: {email}")

        try:
            self._store.insert_user(user)
        except DuplicateEmailError as exc:
            logger.info(f"Registration lost race for email: {email}")
            raise UserExistsError(f"User already exists: {email}") from exc

        logger.info(f"Registered user {user.id}")
        return user

    def login(self, email: str, password: str) -> str:
        """Verify credentials and return a signed token valid for one hour.

        Raises:
            UserNotFoundError: no user has this email.
            InvalidCredentialsError: the password does not match.
            StoreError: the store failed.

        Both authentication failures take the same time and share the
        AuthenticationError base class.
        """
        user = self._store.get_user_by_email(email)
        if user is None:
            passwords.burn_verification(password)
            logger.warning("Login failed: unknown email")
            raise UserNotFoundError(f"User not found: {email}")

        if not passwords.verify_password(password, user.password_hash):
            logger.warning(f"Login failed: bad password for user {user.id}")
            raise InvalidCredentialsError("Invalid password")

        logger.info(f"Login succeeded for user {user.id}")
        return tokens.create_token(user.id, self._secret)

    def authenticate(self, token: str) -> Optional[User]:
        """Resolve a token to its user.

        Returns ``None`` when the token is malformed, expired, signed with
        another secret, names a user that no longer exists, or the store
        cannot be read. Never raises.
        """
        claims = tokens.verify_token(token, self._secret)
        if claims is None:
            logger.debug("Token rejected")
            return None

        try:
            return self._store.get_user_by_id(claims["user_id"])
        except StoreError as exc:
            logger.warning(f"Token lookup failed ({exc.kind.value}): {exc}")
            return None
