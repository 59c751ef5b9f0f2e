#!/usr/bin/env python3
"""Tests for JWT token helpers."""

import base64
import importlib
import json
import sys
from datetime import timedelta
from pathlib import Path

import jwt

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

tokens = importlib.import_module("tally.auth.tokens")

SECRET = "test-secret-0123456789abcdef-0123456789abcdef"
OTHER_SECRET = "other-secret-0123456789abcdef-0123456789abcd"


def _b64(data: dict) -> str:
    raw = json.dumps(data).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


class TestCreateToken:
    def test_claims(self):
        token = tokens.create_token("user-1", SECRET)

        payload = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert payload["user_id"] == "user-1"
        assert payload["exp"] - payload["iat"] == 3600

    def test_custom_expiry(self):
        token = tokens.create_token("user-1", SECRET, expiry=timedelta(minutes=5))

        payload = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert payload["exp"] - payload["iat"] == 300

    def test_bytes_secret(self):
        key = SECRET.encode("utf-8")
        token = tokens.create_token("user-1", key)
        assert tokens.verify_token(token, key) == {"user_id": "user-1"}


class TestVerifyToken:
    def test_round_trip(self):
        token = tokens.create_token("user-1", SECRET)
        assert tokens.verify_token(token, SECRET) == {"user_id": "user-1"}

    def test_wrong_secret(self):
        token = tokens.create_token("user-1", OTHER_SECRET)
        assert tokens.verify_token(token, SECRET) is None

    def test_expired(self):
        token = tokens.create_token("user-1", SECRET, expiry=timedelta(seconds=-1))
        assert tokens.verify_token(token, SECRET) is None

    def test_malformed(self):
        assert tokens.verify_token("invalid.token.here", SECRET) is None
        assert tokens.verify_token("", SECRET) is None
        assert tokens.verify_token(None, SECRET) is None
        assert tokens.verify_token(12345, SECRET) is None

    def test_tampered_payload(self):
        token = tokens.create_token("user-1", SECRET)
        header, _, signature = token.split(".")
        forged = f"{header}.{_b64({'user_id': 'admin', 'iat': 0, 'exp': 4102444800})}.{signature}"

        assert tokens.verify_token(forged, SECRET) is None

    def test_unsigned_token_rejected(self):
        header = _b64({"alg": "none", "typ": "JWT"})
        payload = _b64({"user_id": "user-1", "iat": 0, "exp": 4102444800})

        assert tokens.verify_token(f"{header}.{payload}.", SECRET) is None

    def test_missing_user_id(self):
        token = jwt.encode({"iat": 0, "exp": 4102444800}, SECRET, algorithm="HS256")
        assert tokens.verify_token(token, SECRET) is None

    def test_missing_expiry(self):
        token = jwt.encode({"user_id": "user-1", "iat": 0}, SECRET, algorithm="HS256")
        assert tokens.verify_token(token, SECRET) is None

    def test_non_string_user_id(self):
        token = jwt.encode(
            {"user_id": 42, "iat": 0, "exp": 4102444800}, SECRET, algorithm="HS256"
        )
        assert tokens.verify_token(token, SECRET) is None
