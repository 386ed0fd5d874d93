"""
Shared pytest fixtures for the case-dashboard session suite.

Fixtures build ``Settings`` from a controlled environment, so no test
depends on variables exported in the developer's shell, and provide the stub
dashboard for tests that need a real HTTP endpoint.

Key Concepts Demonstrated:
- Fixture scopes (function, session)
- Environment isolation with monkeypatch
- Test data factories with Faker
- Test client creation
"""

import os
from collections.abc import Callable
from pathlib import Path

import pytest
from faker import Faker

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"

from app import create_app
from casedesk.settings import Settings, get_settings
from config import TestingConfig
from shared.live_stack import live_server_url
from shared.test_helpers import TEST_PRIVATE_KEY, TEST_PUBLIC_KEY, build_session_state, create_test_token


# Initialize Faker for generating test data
fake = Faker()

TEST_BASE_URL = "http://dashboard.test"

# Variables read by casedesk.settings; cleared so the shell cannot leak in.
_SETTINGS_VARIABLE_PREFIXES = (
    "BASE_URL_",
    "AUTH_URL_",
    "USERNAME_",
    "PASSWORD_",
    "IO_",
    "SIO_",
)
_SETTINGS_VARIABLES = (
    "ENVIRONMENT",
    "SESSION_DIR",
    "CASEDESK_ROLES_FILE",
    "NAVIGATION_TIMEOUT_MS",
    "LOAD_STATE_TIMEOUT_MS",
    "LOGIN_TIMEOUT_MS",
    "AUTH_TIMEOUT_SECONDS",
    "JWT_CLOCK_SKEW_SECONDS",
)


# -----------------------------------------------------------------------------
# Settings Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the settings loader reads."""
    for name in list(os.environ):
        if name in _SETTINGS_VARIABLES or name.startswith(_SETTINGS_VARIABLE_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def settings_factory(clean_env, tmp_path: Path) -> Callable[..., Settings]:
    """
    Factory fixture that exports a test environment and loads ``Settings``.

    Example:
        def test_something(settings_factory):
            settings = settings_factory(base_url="http://127.0.0.1:5001")
    """

    def _make(
        base_url: str = TEST_BASE_URL,
        io_password: str | None = TestingConfig.STUB_USERS["ncrp_demo"]["password"],
        sio_password: str | None = TestingConfig.STUB_USERS["ncrptest3"]["password"],
        **overrides: str,
    ) -> Settings:
        clean_env.setenv("ENVIRONMENT", "test")
        clean_env.setenv("BASE_URL_TEST", base_url)
        clean_env.setenv("SESSION_DIR", str(tmp_path))
        if io_password is not None:
            clean_env.setenv("IO_PASSWORD_TEST", io_password)
        if sio_password is not None:
            clean_env.setenv("SIO_PASSWORD_TEST", sio_password)
        for name, value in overrides.items():
            clean_env.setenv(name, value)
        return get_settings()

    return _make


@pytest.fixture
def settings(settings_factory) -> Settings:
    """Settings for a fictional dashboard at ``TEST_BASE_URL``."""
    return settings_factory()


@pytest.fixture
def fake_username() -> str:
    return fake.user_name()


# -----------------------------------------------------------------------------
# Session File Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def valid_token() -> str:
    return create_test_token()


@pytest.fixture
def expired_token() -> str:
    return create_test_token(expired=True)


@pytest.fixture
def session_state_factory() -> Callable[..., dict]:
    """Factory for session-file documents; see ``build_session_state``."""
    return build_session_state


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    """
    Create the stub dashboard for the test session.

    Tokens are signed with the process-wide test key pair.
    """
    application = create_app(
        "testing",
        private_key=TEST_PRIVATE_KEY,
        public_key=TEST_PUBLIC_KEY,
    )
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Flask test client for requests that do not need a real socket."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="session")
def stub_users() -> dict[str, dict]:
    """Accounts the stub dashboard accepts, keyed by username."""
    return TestingConfig.STUB_USERS


@pytest.fixture(scope="session")
def live_server(app):
    """
    Serve the stub dashboard from a background thread.

    Set TEST_BASE_URL to run against an already running dashboard instead.

    Yields:
        str: Base URL of the running server.
    """
    yield from live_server_url(lambda: app)
