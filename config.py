"""
Configuration for the stub case dashboard.

The stub stands in for the production dashboard during browser tests: it
serves the login page, the role dashboards and the authentication endpoint.
A shared ``Config`` base class holds defaults and environment-specific
subclasses override only what differs. ``get_config`` resolves the class
from an explicit name or ``FLASK_ENV``.

Key Concepts Demonstrated:
- Inheritance-based configuration hierarchy
- Environment variable overrides with sensible defaults
- JWT signing keys loaded from raw PEM or a key file
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _load_key(raw_env_var: str, path_env_var: str) -> str | None:
    """
    Load a PEM key from a raw environment variable or a file-path variable.

    The raw PEM variable takes precedence over the path variable. Returns
    None when neither is set so callers can inject keys directly.
    """
    raw_key = os.environ.get(raw_env_var, "").strip()
    if raw_key:
        return raw_key

    key_path = os.environ.get(path_env_var, "").strip()
    if key_path:
        try:
            return Path(key_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(
                f"Unable to read JWT key file at '{key_path}' from {path_env_var}."
            ) from exc
    return None


def load_signing_keys() -> tuple[str | None, str | None]:
    """Resolve the private/public key pair used to sign issued tokens."""
    return (
        _load_key("JWT_PRIVATE_KEY", "JWT_PRIVATE_KEY_PATH"),
        _load_key("JWT_PUBLIC_KEY", "JWT_PUBLIC_KEY_PATH"),
    )


class Config:
    """Base configuration shared by all environments."""

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "stub-dashboard-dev-secret")

    # Minutes a newly issued token stays valid
    TOKEN_EXPIRY_MINUTES: int = int(os.environ.get("TOKEN_EXPIRY_MINUTES", "60"))

    LOGIN_PATH: str = "/login"

    # Dashboard slug -> page title
    DASHBOARDS: dict = {
        "io": "Investigating Officer Dashboard",
        "sio": "Senior Investigating Officer Dashboard",
    }

    # Accounts accepted by the authentication endpoint
    STUB_USERS: dict = {
        "ncrp_demo": {
            "password": os.environ.get("STUB_IO_PASSWORD", "Demo@12345"),
            "roles": ["role_investigator"],
            "dashboard": "io",
        },
        "ncrptest3": {
            "password": os.environ.get("STUB_SIO_PASSWORD", "Sio@12345"),
            "roles": ["role_senior_investigator"],
            "dashboard": "sio",
        },
    }


class DevelopmentConfig(Config):
    """Local development: debug on, testing off."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Configuration for the automated test suite.

    ``TESTING = True`` makes Flask propagate exceptions instead of returning
    HTML error pages.
    """

    DEBUG: bool = True
    TESTING: bool = True
    TOKEN_EXPIRY_MINUTES: int = int(os.environ.get("TEST_TOKEN_EXPIRY_MINUTES", "30"))


class ProductionConfig(Config):
    """Debug and testing flags off."""

    DEBUG: bool = False
    TESTING: bool = False


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
