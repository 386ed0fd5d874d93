"""
Session bootstrap utilities for the case-dashboard UI suite.

Typical use inside a pytest fixture::

    from casedesk import get_settings, setup_session_and_navigate

    settings = get_settings()
    setup_session_and_navigate(page, "/dashboard/io", settings=settings, role="IO")
"""

from casedesk.authenticator import AuthResult, Authenticator, extract_token
from casedesk.bootstrap import (
    BootstrapResult,
    SessionBootstrapper,
    SessionState,
    bootstrap_via_api,
    setup_session_and_navigate,
)
from casedesk.errors import (
    AuthenticationError,
    CasedeskError,
    ConfigurationError,
    PersistenceError,
)
from casedesk.session_store import PersistedSession, load_session, save_session
from casedesk.settings import Credential, Settings, get_settings
from casedesk.storage import (
    StoragePayload,
    UserProfile,
    build_storage_payload,
    inject_auth_storage,
    seed_session_storage,
)

__version__ = "0.1.0"

__all__ = [
    "AuthResult",
    "AuthenticationError",
    "Authenticator",
    "BootstrapResult",
    "CasedeskError",
    "ConfigurationError",
    "Credential",
    "PersistedSession",
    "PersistenceError",
    "SessionBootstrapper",
    "SessionState",
    "Settings",
    "StoragePayload",
    "UserProfile",
    "bootstrap_via_api",
    "build_storage_payload",
    "extract_token",
    "get_settings",
    "inject_auth_storage",
    "load_session",
    "save_session",
    "seed_session_storage",
    "setup_session_and_navigate",
]
