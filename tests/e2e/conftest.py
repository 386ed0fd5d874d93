"""
Playwright fixtures for session bootstrap E2E tests.

The stub dashboard runs from the root ``live_server`` fixture; every test
gets a fresh browser context so storage never leaks between tests.

Key Concepts Demonstrated:
- Browser context management
- Settings pointed at the live server
- Screenshot capture on failure
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from playwright.sync_api import Browser, BrowserContext, Page
from playwright.sync_api import Error as PlaywrightError

from casedesk.authenticator import Authenticator
from casedesk.pages import DashboardPage, LoginPage
from casedesk.settings import Settings
from shared.test_helpers import build_session_state


@pytest.fixture(scope="session")
def browser(launch_browser) -> Generator[Browser, None, None]:
    """Launch the browser once, skipping the suite when it is not installed."""
    try:
        browser = launch_browser()
    except PlaywrightError as exc:
        pytest.skip(f"Playwright browser is not available ({exc}); run `playwright install chromium`")
    yield browser
    browser.close()


@pytest.fixture(scope="session")
def browser_context_args():
    return {
        "viewport": {"width": 1280, "height": 720},
        "ignore_https_errors": True,
    }


@pytest.fixture(scope="function")
def context(
    browser: Browser, browser_context_args: dict
) -> Generator[BrowserContext, None, None]:
    context = browser.new_context(**browser_context_args)
    yield context
    context.close()


@pytest.fixture(scope="function")
def page(context: BrowserContext) -> Generator[Page, None, None]:
    page = context.new_page()
    yield page
    page.close()


@pytest.fixture
def e2e_settings(settings_factory, live_server: str) -> Settings:
    """Settings whose base URL is the running stub dashboard."""
    return settings_factory(base_url=live_server, LOAD_STATE_TIMEOUT_MS="5000")


@pytest.fixture
def issued_token(e2e_settings: Settings) -> str:
    """A live token issued by the stub for the IO role."""
    credential = e2e_settings.credential_for("IO")
    return Authenticator(e2e_settings.auth_url).get_token(credential.username, credential.password)


@pytest.fixture
def write_session_file(e2e_settings: Settings) -> Callable[..., Path]:
    """Factory that writes a session file for the live server's origin."""

    def _write(token: str | None, role: str = "IO", raw: str | None = None) -> Path:
        path = e2e_settings.session_file_for(role)
        content = raw if raw is not None else json.dumps(build_session_state(e2e_settings.base_url, token))
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def login_page(page: Page, e2e_settings: Settings) -> LoginPage:
    return LoginPage(page, e2e_settings.base_url, load_state_timeout=e2e_settings.load_state_timeout_ms)


@pytest.fixture
def io_dashboard(page: Page, e2e_settings: Settings) -> DashboardPage:
    return DashboardPage(
        page,
        e2e_settings.base_url,
        e2e_settings.route_for("IO"),
        load_state_timeout=e2e_settings.load_state_timeout_ms,
    )


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Capture screenshot on UI test failure."""
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        page = item.funcargs.get("page")
        if page:
            screenshot_dir = "test-results/screenshots"
            os.makedirs(screenshot_dir, exist_ok=True)
            test_name = item.name.replace("/", "_").replace("::", "_")
            screenshot_path = f"{screenshot_dir}/{test_name}.png"
            try:
                page.screenshot(path=screenshot_path)
                print(f"\nScreenshot saved: {screenshot_path}")
            except Exception as exc:  # pragma: no cover - best effort logging
                print(f"\nFailed to capture screenshot: {exc}")
