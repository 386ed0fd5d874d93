"""
End-to-end session bootstrap flows against the stub dashboard.

A real Chromium instance loads the stub's pages, so these tests cover what
the mocked unit tests cannot: init scripts running before the dashboard's
login guard, the guard's redirect, and the login form's storage writes.

Key SDET Concepts Demonstrated:
- End-to-end testing with Playwright (browser automation)
- Page Object Model (POM) for maintainable UI tests
- Multi-context isolation with separate browser contexts
- AAA pattern (Arrange / Act / Assert) in every test
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from playwright.sync_api import Browser

from casedesk.bootstrap import SessionBootstrapper, SessionState, bootstrap_via_api
from casedesk.errors import AuthenticationError
from casedesk.pages import LoginPage
from casedesk.session_store import load_session, save_session
from casedesk.storage import AUTH_TOKEN_KEY, seed_session_storage
from shared.test_helpers import create_test_token

pytestmark = pytest.mark.e2e

READ_TOKEN = "() => window.sessionStorage.getItem('authToken')"


def test_same_session_file_injects_identical_tokens(
    browser: Browser, browser_context_args, e2e_settings, write_session_file, issued_token
):
    """Two fresh contexts seeded from one file hold byte-identical tokens."""
    # Arrange
    session = load_session(write_session_file(issued_token))
    tokens = []

    # Act
    for _ in range(2):
        context = browser.new_context(**browser_context_args)
        try:
            page = context.new_page()
            seed_session_storage(page, session.session_storage)
            page.goto(e2e_settings.url_for("/dashboard/io"), wait_until="load")
            tokens.append(page.evaluate(READ_TOKEN))
        finally:
            context.close()

    # Assert
    assert tokens[0] == tokens[1] == issued_token


def test_valid_session_is_reused_without_login(
    page, e2e_settings, write_session_file, issued_token, io_dashboard
):
    # Arrange
    write_session_file(issued_token)

    # Act
    result = SessionBootstrapper(page, e2e_settings, role="IO").run(
        "/dashboard/io", verify_page=io_dashboard.assert_loaded
    )

    # Assert
    assert result.state is SessionState.VERIFIED
    assert result.reused_session
    io_dashboard.assert_signed_in_as("ncrp_demo")


def test_rejected_session_falls_back_to_login_and_lands_on_target(
    page, e2e_settings, write_session_file, io_dashboard
):
    """A token the app refuses ends in LOGIN_SUCCEEDED on the requested URL."""
    # Arrange - expired seconds ago: inside the file's clock-skew leeway, so
    # it is injected, but the dashboard's guard sends it back to /login.
    stale_token = create_test_token(expired=True, lifetime=timedelta(seconds=5))
    write_session_file(stale_token)

    # Act
    result = SessionBootstrapper(page, e2e_settings, role="IO").run("/dashboard/io")

    # Assert
    assert result.history[:3] == [
        SessionState.NO_SESSION,
        SessionState.SESSION_INJECTED,
        SessionState.REJECTED,
    ]
    assert result.state is SessionState.LOGIN_SUCCEEDED
    assert result.url == e2e_settings.url_for("/dashboard/io")
    assert page.evaluate(READ_TOKEN) == result.token != stale_token
    io_dashboard.assert_loaded()


def test_opaque_token_is_rejected_by_the_app(page, e2e_settings, write_session_file):
    write_session_file("not-a-jwt")

    result = SessionBootstrapper(page, e2e_settings, role="IO").run("/dashboard/io")

    assert SessionState.REJECTED in result.history
    assert result.state is SessionState.LOGIN_SUCCEEDED


def test_absent_session_file_goes_straight_to_login(page, e2e_settings, io_dashboard):
    # Act
    result = SessionBootstrapper(page, e2e_settings, role="IO").run("/dashboard/io")

    # Assert
    assert SessionState.SESSION_INJECTED not in result.history
    assert result.state is SessionState.LOGIN_SUCCEEDED
    io_dashboard.assert_loaded()


def test_malformed_session_file_goes_straight_to_login(page, e2e_settings, write_session_file):
    write_session_file(None, raw="{ this is not json")

    result = SessionBootstrapper(page, e2e_settings, role="IO").run("/dashboard/io")

    assert SessionState.SESSION_INJECTED not in result.history
    assert result.state is SessionState.LOGIN_SUCCEEDED


def test_fresh_login_is_persisted_and_reused(
    browser: Browser, browser_context_args, page, e2e_settings
):
    """A session saved after one login is reused by a new context."""
    # Arrange - first run logs in and writes auth2.json
    first = SessionBootstrapper(page, e2e_settings, role="SIO", persist_on_login=True).run(
        "/dashboard/sio"
    )
    assert first.state is SessionState.LOGIN_SUCCEEDED
    saved = load_session(e2e_settings.session_file_for("SIO"))
    assert saved is not None
    assert saved.auth_token == first.token

    # Act - a second, independent context replays the file
    context = browser.new_context(**browser_context_args)
    try:
        second_page = context.new_page()
        second = SessionBootstrapper(second_page, e2e_settings, role="SIO").run("/dashboard/sio")
    finally:
        context.close()

    # Assert
    assert second.state is SessionState.VERIFIED
    assert second.reused_session


def test_wrong_password_ends_in_login_failed(page, settings_factory, live_server):
    settings = settings_factory(base_url=live_server, io_password="definitely-wrong")
    bootstrapper = SessionBootstrapper(page, settings, role="IO")

    with pytest.raises(AuthenticationError) as exc_info:
        bootstrapper.run("/dashboard/io")

    assert exc_info.value.status_code == 401
    assert bootstrapper.state is SessionState.LOGIN_FAILED
    LoginPage(page, settings.base_url).assert_error_visible()


def test_login_backfill_replaces_a_stale_token(page, login_page):
    """The issued token wins over one left behind by a rejected session."""
    # Arrange
    login_page.navigate()
    page.evaluate(
        "() => { sessionStorage.setItem('authToken', 'stale');"
        " sessionStorage.setItem('userData', '{\"userName\": \"ncrp_demo\"}'); }"
    )

    # Act
    login_page.backfill_session_storage("fresh", {"data": {"token": "fresh"}}, "ncrp_demo")

    # Assert
    assert page.evaluate(READ_TOKEN) == "fresh"
    assert page.evaluate("() => sessionStorage.getItem('userData')") == '{"userName": "ncrp_demo"}'


def test_save_session_captures_session_storage(page, e2e_settings, login_page, tmp_path):
    """The saved file carries the exact token the page held."""
    # Arrange
    credential = e2e_settings.credential_for("IO")
    login_page.navigate()
    token = login_page.login(credential.username, credential.password)

    # Act
    path = save_session(page, tmp_path / "captured.json")

    # Assert
    session = load_session(path)
    assert session is not None
    assert session.origin["origin"] == e2e_settings.base_url
    assert {"name": AUTH_TOKEN_KEY, "value": token} in session.session_storage
    assert any(entry["name"] == "theme" for entry in session.local_storage)


def test_bootstrap_via_api_opens_dashboard(page, e2e_settings, io_dashboard):
    result = bootstrap_via_api(page, e2e_settings, "IO", verify_page=io_dashboard.assert_loaded)

    assert result.state is SessionState.VERIFIED
    assert page.evaluate(READ_TOKEN) == result.token
    io_dashboard.assert_signed_in_as("ncrp_demo")
