#!/usr/bin/env python3
"""Tests for configuration loading and service wiring."""

import importlib
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

config_mod = importlib.import_module("tally.config")
_errors = importlib.import_module("tally.errors")
passwords = importlib.import_module("tally.auth.passwords")
SQLiteStore = importlib.import_module("tally.store.sqlite").SQLiteStore
MemoryStore = importlib.import_module("tally.store.memory").MemoryStore

SECRET = "test-secret-0123456789abcdef-0123456789abcdef"


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


@pytest.fixture(autouse=True)
def no_env_secret(monkeypatch):
    monkeypatch.delenv(config_mod.SECRET_ENV_VAR, raising=False)


class TestLoadConfig:
    def test_valid_file(self, tmp_path):
        data = {
            "auth": {"secret": SECRET},
            "store": {"backend": "sqlite", "db_path": "x.db", "timeout": 2},
        }
        path = _write(tmp_path / "config.json", data)

        assert config_mod.load_config(str(path)) == data

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(_errors.ConfigError, match="not found"):
            config_mod.load_config(str(tmp_path / "missing.json"))

    def test_default_path_absent_means_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert config_mod.load_config() == {}

    def test_default_path_present(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".tally").mkdir()
        _write(tmp_path / ".tally" / "config.json", {"store": {"backend": "memory"}})

        assert config_mod.load_config() == {"store": {"backend": "memory"}}

    def test_invalid_json(self, tmp_path):
        path = _write(tmp_path / "config.json", "{not json")

        with pytest.raises(_errors.ConfigError, match="not valid JSON"):
            config_mod.load_config(str(path))

    @pytest.mark.parametrize(
        "data",
        [
            {"store": {"backend": "mongodb"}},
            {"store": {"timeout": 0}},
            {"store": {"db_path": ""}},
            {"auth": {"secret": 123}},
            {"unexpected": True},
        ],
    )
    def test_schema_violations(self, tmp_path, data):
        path = _write(tmp_path / "config.json", data)

        with pytest.raises(_errors.ConfigError, match="Invalid config"):
            config_mod.load_config(str(path))

    def test_config_error_is_value_error(self):
        assert issubclass(_errors.ConfigError, ValueError)


class TestResolveSecret:
    def test_from_config(self):
        assert config_mod.resolve_secret({"auth": {"secret": SECRET}}) == SECRET

    def test_environment_wins(self, monkeypatch):
        monkeypatch.setenv(config_mod.SECRET_ENV_VAR, "from-env-0123456789abcdef-0123456789")

        secret = config_mod.resolve_secret({"auth": {"secret": SECRET}})

        assert secret == "from-env-0123456789abcdef-0123456789"

    def test_missing(self):
        with pytest.raises(_errors.ConfigError, match="secret"):
            config_mod.resolve_secret({})

    def test_placeholder_warns(self):
        with pytest.warns(UserWarning, match="placeholder"):
            config_mod.resolve_secret({"auth": {"secret": "CHANGE-ME-please-0123456789abcdef"}})


class TestBuild:
    def test_default_store_is_sqlite(self):
        store = config_mod.build_store({})

        assert isinstance(store, SQLiteStore)
        assert store.db_path == config_mod.DEFAULT_DB_PATH

    def test_memory_backend(self):
        assert isinstance(config_mod.build_store({"store": {"backend": "memory"}}), MemoryStore)

    def test_sqlite_path_from_config(self, tmp_path):
        db = str(tmp_path / "tally.db")
        store = config_mod.build_store({"store": {"db_path": db}})
        assert store.db_path == db

    def test_build_auth_service_initialises_store(self, tmp_path, monkeypatch):
        monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 4)
        config = {
            "auth": {"secret": SECRET},
            "store": {"backend": "sqlite", "db_path": str(tmp_path / "t.db")},
        }

        auth = config_mod.build_auth_service(config)
        try:
            auth.register("owl", "owl@example.com", "pw")
            token = auth.login("owl@example.com", "pw")
            assert auth.authenticate(token).name == "owl"
        finally:
            auth.store.close()

    def test_build_auth_service_without_secret(self):
        with pytest.raises(_errors.ConfigError):
            config_mod.build_auth_service({"store": {"backend": "memory"}})
