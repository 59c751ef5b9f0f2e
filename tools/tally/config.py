"""Configuration loading and service wiring.

Config is a JSON file (default ``.tally/config.json``)::

    {
      "auth":  {"secret": "..."},
      "store": {"backend": "sqlite", "db_path": ".tally/tally.db", "timeout": 5.0}
    }

The signing secret may instead come from the TALLY_AUTH_SECRET environment
variable, which wins over the file.
"""

from __future__ import annotations

import json
import logging
import os
import warnings
from pathlib import Path
from typing import Any, Optional

import jsonschema

from .auth.service import AuthService
from .errors import ConfigError
from .store.base import DEFAULT_TIMEOUT_SECONDS, CredentialStore
from .store.memory import MemoryStore
from .store.sqlite import SQLiteStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".tally/config.json"
DEFAULT_DB_PATH = ".tally/tally.db"
SECRET_ENV_VAR = "TALLY_AUTH_SECRET"

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "auth": {
            "type": "object",
            "properties": {
                "secret": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "store": {
            "type": "object",
            "properties": {
                "backend": {"type": "string", "enum": ["sqlite", "memory"]},
                "db_path": {"type": "string", "minLength": 1},
                "timeout": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    try:
        jsonschema.validate(config, CONFIG_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise ConfigError(f"Invalid config: {exc.message}") from exc
    return config


def load_config(config_path: Optional[str] = None) -> dict[str, Any]:
    """Load and validate configuration from a JSON file.

    With no path, ``.tally/config.json`` is read if present and an empty
    config (all defaults) is returned otherwise. An explicit path must exist.
    """
    if config_path is None:
        path = Path(DEFAULT_CONFIG_PATH)
        if not path.exists():
            return {}
    else:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config not found at {path}")

    try:
        with open(path) as f:
            config = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config at {path} is not valid JSON: {exc}") from exc

    return validate_config(config)


def resolve_secret(config: dict[str, Any]) -> str:
    """Return the signing secret, preferring the environment variable."""
    secret = os.environ.get(SECRET_ENV_VAR) or config.get("auth", {}).get("secret", "")
    if not secret:
        raise ConfigError(
            f"No signing secret configured; set auth.secret or {SECRET_ENV_VAR}"
        )
    if "CHANGE-ME" in secret:
        warnings.warn("auth secret contains placeholder value; tokens will be insecure")
    return secret


def build_store(config: dict[str, Any]) -> CredentialStore:
    """Instantiate (but do not initialise) the configured store."""
    store_config = config.get("store", {})
    backend = store_config.get("backend", "sqlite")
    timeout = store_config.get("timeout", DEFAULT_TIMEOUT_SECONDS)

    if backend == "memory":
        logger.info("Using in-memory store")
        return MemoryStore(timeout=timeout)

    db_path = store_config.get("db_path", DEFAULT_DB_PATH)
    logger.info(f"Using SQLite store: {db_path}")
    return SQLiteStore(db_path=db_path, timeout=timeout)


def build_auth_service(config: dict[str, Any]) -> AuthService:
    """Build an AuthService over an initialised store from config."""
    secret = resolve_secret(config)
    store = build_store(config)
    store.init()
    return AuthService(store, secret)
