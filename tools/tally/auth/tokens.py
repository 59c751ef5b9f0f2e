"""JWT token creation and verification helpers.

Uses PyJWT with HS256 algorithm for signing.
Tokens carry user_id, issued-at and expiry timestamps.
"""

from datetime import datetime, timedelta, timezone

import jwt

TOKEN_ALGORITHM = "HS256"
TOKEN_EXPIRY = timedelta(hours=1)

_REQUIRED_CLAIMS = ["user_id", "iat", "exp"]


def create_token(
    user_id: str,
    secret: str | bytes,
    expiry: timedelta = TOKEN_EXPIRY,
) -> str:
    """Create a signed JWT token for a user.

    Args:
        user_id: Identifier of the authenticated user.
        secret: Secret key used for HS256 signing.
        expiry: Token validity window (default one hour).

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "iat": now,
        "exp": now + expiry,
    }
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str, secret: str | bytes) -> dict | None:
    """Verify a JWT token and extract the payload.

    Args:
        token: Encoded JWT string to verify.
        secret: Secret key used for HS256 verification.

    Returns:
        Dict with ``user_id`` on success, or ``None`` if the token is
        expired, malformed, missing claims, or has an invalid signature.
    """
    if not isinstance(token, str) or not token:
        return None
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.InvalidTokenError:
        return None

    user_id = payload["user_id"]
    if not isinstance(user_id, str) or not user_id:
        return None
    return {"user_id": user_id}
