"""
Tally Auth — User registration, password checks and bearer tokens.

Passwords are hashed with bcrypt; tokens are HS256 JWTs valid for one hour.

Usage:
    from tally.auth import AuthService

    auth = AuthService(store, secret=b"...")
    auth.register("owl", "owl@example.com", "password123")
    token = auth.login("owl@example.com", "password123")
    auth.authenticate(token)  # User or None
"""

from .service import AuthService

__all__ = ["AuthService"]
