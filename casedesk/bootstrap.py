"""
Session bootstrap for dashboard tests.

Before a test touches the dashboard it needs a logged-in browser tab. The
cheapest way is to replay a session captured by an earlier run; when that
session is missing or the application rejects it, the bootstrapper logs in
through the UI and carries on to the page the test asked for.

State machine::

    NO_SESSION --(valid file)--> SESSION_INJECTED --navigate--> VERIFIED
        |                                              |
        +--(no file)--navigate--> VERIFIED             +--(login route)--> REJECTED
                          |                                                 |
                          +--(login route)--> REJECTED --> FRESH_LOGIN_IN_PROGRESS
                                                            |             |
                                                     LOGIN_SUCCEEDED  LOGIN_FAILED

``VERIFIED`` and ``LOGIN_SUCCEEDED`` are successful end states;
``LOGIN_FAILED`` re-raises whatever the login step raised.

Key Concepts Demonstrated:
- Explicit state tracking instead of nested conditionals
- Session reuse with a transparent fallback to fresh login
- Dependency injection of settings and page objects (no shared singletons)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from playwright.sync_api import Page

from casedesk.authenticator import AuthResult, Authenticator
from casedesk.errors import AuthenticationError
from casedesk.pages.base_page import BasePage, is_login_url
from casedesk.pages.login_page import LoginPage
from casedesk.session_store import load_session, save_session
from casedesk.settings import Settings
from casedesk.storage import (
    DEFAULT_ROLE,
    UserProfile,
    inject_auth_storage,
    seed_session_storage,
)

logger = logging.getLogger(__name__)

VerifyCallback = Callable[[Page], None]


class SessionState(str, Enum):
    """States of a bootstrap run."""

    NO_SESSION = "no_session"
    SESSION_INJECTED = "session_injected"
    VERIFIED = "verified"
    REJECTED = "rejected"
    FRESH_LOGIN_IN_PROGRESS = "fresh_login_in_progress"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"


SUCCESS_STATES = frozenset({SessionState.VERIFIED, SessionState.LOGIN_SUCCEEDED})


@dataclass
class BootstrapResult:
    """Outcome of a bootstrap run."""

    state: SessionState
    url: str
    session_file: Path | None = None
    history: list[SessionState] = field(default_factory=list)
    token: str | None = field(default=None, repr=False)

    @property
    def reused_session(self) -> bool:
        """True when the page was reached without a fresh login."""
        return self.state is SessionState.VERIFIED and SessionState.SESSION_INJECTED in self.history

    @property
    def succeeded(self) -> bool:
        return self.state in SUCCESS_STATES


class SessionBootstrapper:
    """
    Bring a page to a target dashboard route in a logged-in state.

    Attributes:
        page: Playwright page to drive. Its context should be fresh.
        settings: Resolved environment settings.
        role: Role whose credential and session file are used.
        session_file: Session file to replay; defaults to the role's file.
        login_page: Page object used for the fallback login.
        persist_on_login: Rewrite the session file after a fresh login.
    """

    def __init__(
        self,
        page: Page,
        settings: Settings,
        *,
        role: str | None = None,
        session_file: str | os.PathLike[str] | None = None,
        login_page: LoginPage | None = None,
        persist_on_login: bool = False,
    ) -> None:
        self.page = page
        self.settings = settings
        self.role = settings.role(role).key
        self.session_file = (
            Path(session_file) if session_file is not None else settings.session_file_for(self.role)
        )
        if not self.session_file.is_absolute():
            self.session_file = settings.session_dir / self.session_file
        self.login_page = login_page or LoginPage(
            page,
            settings.base_url,
            login_path=settings.login_path,
            login_timeout=settings.login_timeout_ms,
            load_state_timeout=settings.load_state_timeout_ms,
        )
        self.persist_on_login = persist_on_login
        self.state = SessionState.NO_SESSION
        self.history: list[SessionState] = [SessionState.NO_SESSION]
        self._token: str | None = None

    # -------------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------------

    def _transition(self, state: SessionState) -> None:
        logger.info("Session bootstrap [%s]: %s -> %s", self.role, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _result(self) -> BootstrapResult:
        return BootstrapResult(
            state=self.state,
            url=self.page.url,
            session_file=self.session_file,
            history=list(self.history),
            token=self._token,
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _inject_persisted_session(self) -> bool:
        session = load_session(self.session_file, leeway=self.settings.clock_skew_seconds)
        if session is None:
            logger.info("No usable session in %s, will perform fresh login", self.session_file)
            return False

        seed_session_storage(self.page, session.session_storage)
        self._token = session.auth_token
        self._transition(SessionState.SESSION_INJECTED)
        return True

    def _navigate(self, target_url: str) -> None:
        self.page.goto(target_url, wait_until="load", timeout=self.settings.navigation_timeout_ms)
        BasePage(
            self.page,
            self.settings.base_url,
            load_state_timeout=self.settings.load_state_timeout_ms,
        ).wait_for_page_load()

    def _on_login_route(self) -> bool:
        return is_login_url(self.page.url, self.settings.login_path)

    def _fresh_login(self, target_url: str) -> None:
        self._transition(SessionState.FRESH_LOGIN_IN_PROGRESS)
        try:
            credential = self.settings.credential_for(self.role)
            self._token = self.login_page.login(
                credential.username,
                credential.password,
                timeout=self.settings.login_timeout_ms,
            )
            self._navigate(target_url)
            if self._on_login_route():
                raise AuthenticationError(
                    f"Application returned to login after a fresh login for {credential.username}"
                )
        except Exception:
            self._transition(SessionState.LOGIN_FAILED)
            logger.exception("Fresh login failed for role %s", self.role)
            raise

        self._transition(SessionState.LOGIN_SUCCEEDED)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def run(self, target_path: str, verify_page: VerifyCallback | None = None) -> BootstrapResult:
        """
        Reach *target_path* with an authenticated session.

        Args:
            target_path: Dashboard path (``/dashboard/io``) or absolute URL.
            verify_page: Optional callback run on the final page. Its
                exceptions propagate unchanged.

        Returns:
            ``BootstrapResult`` in ``VERIFIED`` or ``LOGIN_SUCCEEDED``.

        Raises:
            Exception: Whatever the fresh login raised (state ``LOGIN_FAILED``).
            AuthenticationError: If the target still redirects to the login
                route after a fresh login (state ``LOGIN_FAILED``).
            playwright.sync_api.TimeoutError: If a navigation exceeds its bound.
        """
        target_url = self.settings.url_for(target_path)
        self._inject_persisted_session()

        self._navigate(target_url)
        if not self._on_login_route():
            self._transition(SessionState.VERIFIED)
            logger.info("Successfully using saved session, continuing with test")
        else:
            self._transition(SessionState.REJECTED)
            logger.warning("Session expired or invalid, performing fresh login...")
            self._fresh_login(target_url)
            if self.persist_on_login:
                save_session(self.page, self.session_file)

        if verify_page is not None:
            verify_page(self.page)
        return self._result()


def setup_session_and_navigate(
    page: Page,
    target_path: str,
    *,
    settings: Settings,
    role: str | None = None,
    session_file: str | os.PathLike[str] | None = None,
    verify_page: VerifyCallback | None = None,
    persist_on_login: bool = False,
) -> BootstrapResult:
    """One-call form of ``SessionBootstrapper(...).run(...)``."""
    bootstrapper = SessionBootstrapper(
        page,
        settings,
        role=role,
        session_file=session_file,
        persist_on_login=persist_on_login,
    )
    return bootstrapper.run(target_path, verify_page=verify_page)


def bootstrap_via_api(
    page: Page,
    settings: Settings,
    role: str | None = None,
    *,
    authenticator: Authenticator | None = None,
    profile: UserProfile | None = None,
    verify_page: VerifyCallback | None = None,
) -> BootstrapResult:
    """
    Authenticate over HTTP, inject the token and open the role's dashboard.

    Faster than a UI login and independent of the login form. The page must
    not have navigated yet.

    Raises:
        AuthenticationError: If authentication fails or the application
            still redirects to the login route with the injected token.
    """
    role_profile = settings.role(role)
    credential = settings.credential_for(role_profile.key)
    authenticator = authenticator or Authenticator(
        settings.auth_url, timeout=settings.auth_timeout_s
    )
    auth: AuthResult = authenticator.authenticate(credential.username, credential.password)

    history = [SessionState.NO_SESSION]
    inject_auth_storage(
        page,
        auth.token,
        profile
        or UserProfile(
            username=auth.username or credential.username,
            roles=auth.roles,
            role=auth.roles[0] if auth.roles else DEFAULT_ROLE,
        ),
    )
    history.append(SessionState.SESSION_INJECTED)

    page.goto(settings.url_for(role_profile.route), wait_until="load", timeout=settings.navigation_timeout_ms)
    BasePage(page, settings.base_url, load_state_timeout=settings.load_state_timeout_ms).wait_for_page_load()
    if is_login_url(page.url, settings.login_path):
        raise AuthenticationError(
            f"Application redirected to login despite an injected token for {credential.username}"
        )
    history.append(SessionState.VERIFIED)

    if verify_page is not None:
        verify_page(page)
    return BootstrapResult(
        state=SessionState.VERIFIED,
        url=page.url,
        session_file=None,
        history=history,
        token=auth.token,
    )
