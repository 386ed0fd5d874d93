"""
Base Page class for the Page Object Model.

Provides navigation, bounded waits and assertion helpers shared by every
dashboard page object.
"""

from __future__ import annotations

import logging
import os
import re
from urllib.parse import urlparse

from playwright.sync_api import Locator, Page, expect
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


def is_login_url(url: str, login_path: str = "/login") -> bool:
    """Return True when *url* points at the login route."""
    path = urlparse(url).path.rstrip("/")
    return path.endswith(login_path.rstrip("/"))


class BasePage:
    """
    Base class for all page objects.

    Attributes:
        page: Playwright page instance.
        base_url: Base URL of the dashboard.
        load_state_timeout: Bound for each load-state wait in milliseconds.
    """

    def __init__(self, page: Page, base_url: str, load_state_timeout: int = 30_000):
        self.page = page
        self.base_url = base_url.rstrip("/")
        self.load_state_timeout = load_state_timeout

    # -------------------------------------------------------------------------
    # Navigation Methods
    # -------------------------------------------------------------------------

    def url_for(self, path: str = "") -> str:
        return f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url

    def navigate_to(self, path: str = "", timeout: int = 60_000) -> None:
        """
        Navigate to a path relative to the base URL and wait for it to settle.

        Args:
            path: URL path relative to base URL.
            timeout: Navigation timeout in milliseconds.
        """
        self.page.goto(self.url_for(path), wait_until="load", timeout=timeout)
        self.wait_for_page_load()

    # -------------------------------------------------------------------------
    # Wait Methods
    # -------------------------------------------------------------------------

    def wait_for_page_load(self) -> None:
        """
        Wait for network idle, falling back to the load event.

        Dashboards that poll in the background never reach network idle;
        for those the bounded wait expires and ``load`` is awaited instead.
        """
        try:
            self.page.wait_for_load_state("networkidle", timeout=self.load_state_timeout)
        except PlaywrightTimeoutError:
            logger.info("Network idle not reached on %s, waiting for load", self.page.url)
            self.page.wait_for_load_state("load", timeout=self.load_state_timeout)

    def wait_for_element(self, locator: Locator, timeout: int = 5000) -> None:
        locator.wait_for(state="visible", timeout=timeout)

    # -------------------------------------------------------------------------
    # Assertion Methods
    # -------------------------------------------------------------------------

    def is_on_login_page(self, login_path: str = "/login") -> bool:
        return is_login_url(self.page.url, login_path)

    def assert_url_contains(self, expected: str) -> None:
        """
        Assert that current URL contains expected string.

        Args:
            expected: String expected to be in the URL.
        """
        expect(self.page).to_have_url(re.compile(re.escape(expected)))

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def get_by_test_id(self, test_id: str) -> Locator:
        return self.page.get_by_test_id(test_id)

    def take_screenshot(self, name: str) -> str:
        """
        Take a screenshot of the current page.

        Args:
            name: Name for the screenshot file.

        Returns:
            Path to the saved screenshot.
        """
        screenshot_dir = "test-results/screenshots"
        os.makedirs(screenshot_dir, exist_ok=True)
        path = f"{screenshot_dir}/{name}.png"
        self.page.screenshot(path=path)
        return path
