"""bcrypt password hashing helpers.

Hashes are self-describing ``$2b$`` strings (algorithm, cost and salt are
embedded), so stores treat them as opaque text.
"""

from __future__ import annotations

import bcrypt

# Fixed work factor for every new hash
BCRYPT_ROUNDS = 12

# bcrypt ignores (or rejects) input beyond this many bytes
MAX_PASSWORD_BYTES = 72

_DUMMY_HASH = bcrypt.hashpw(b"dummy", bcrypt.gensalt(BCRYPT_ROUNDS))


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt at the fixed cost."""
    encoded = password.encode("utf-8")
    if not encoded:
        raise ValueError("Password cannot be empty")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored hash.

    Returns False instead of raising for malformed hashes and for inputs
    bcrypt cannot process.
    """
    encoded = password.encode("utf-8")
    if not encoded or len(encoded) > MAX_PASSWORD_BYTES:
        burn_verification()
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        return False


def burn_verification(password: str = "dummy") -> None:
    """Spend the same time as a real check, against a throwaway hash.

    Called when there is no stored hash to compare with, so a missing
    account cannot be told apart from a wrong password by response time.
    """
    encoded = password.encode("utf-8")[:MAX_PASSWORD_BYTES] or b"dummy"
    bcrypt.checkpw(encoded, _DUMMY_HASH)
