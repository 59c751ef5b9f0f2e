#!/usr/bin/env python3
"""Tests for bcrypt password helpers."""

import importlib
import sys
from pathlib import Path
from unittest.mock import patch

import bcrypt
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

passwords = importlib.import_module("tally.auth.passwords")


class TestHashPassword:
    def test_hash_is_self_describing_bcrypt(self):
        hashed = passwords.hash_password("s3cret")

        assert hashed.startswith(f"$2b${passwords.BCRYPT_ROUNDS:02d}$")
        assert "s3cret" not in hashed

    def test_salt_differs_per_call(self):
        assert passwords.hash_password("same") != passwords.hash_password("same")

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            passwords.hash_password("")

    def test_over_long_password_rejected(self):
        with pytest.raises(ValueError, match="72"):
            passwords.hash_password("x" * 73)

    def test_multibyte_length_counted_in_bytes(self):
        with pytest.raises(ValueError):
            passwords.hash_password("é" * 37)


class TestVerifyPassword:
    @pytest.fixture(scope="class")
    def hashed(self):
        return passwords.hash_password("correct horse")

    def test_match(self, hashed):
        assert passwords.verify_password("correct horse", hashed) is True

    def test_mismatch(self, hashed):
        assert passwords.verify_password("wrong", hashed) is False

    def test_malformed_hash_returns_false(self):
        assert passwords.verify_password("anything", "not-a-bcrypt-hash") is False

    def test_over_long_input_returns_false(self, hashed):
        assert passwords.verify_password("x" * 200, hashed) is False

    def test_empty_input_returns_false(self, hashed):
        assert passwords.verify_password("", hashed) is False

    def test_verifies_hashes_from_other_cost(self):
        legacy = bcrypt.hashpw(b"pw1", bcrypt.gensalt(4)).decode("utf-8")
        assert passwords.verify_password("pw1", legacy) is True


class TestBurnVerification:
    def test_runs_a_real_bcrypt_check(self):
        with patch.object(passwords.bcrypt, "checkpw", return_value=False) as checkpw:
            passwords.burn_verification("whatever")

        checkpw.assert_called_once()

    def test_handles_empty_and_long_input(self):
        passwords.burn_verification("")
        passwords.burn_verification("y" * 500)
