"""Role dashboard page object."""

from __future__ import annotations

from playwright.sync_api import Locator, Page, expect

from casedesk.pages.base_page import BasePage

TITLE_SELECTOR = '[data-testid="dashboard-title"], .io-title'


class DashboardPage(BasePage):
    """
    Page object for a role dashboard (``/dashboard/io``, ``/dashboard/sio``).

    ``assert_loaded`` doubles as the verification callback accepted by the
    session bootstrapper.
    """

    def __init__(self, page: Page, base_url: str, route: str, **kwargs):
        super().__init__(page, base_url, **kwargs)
        self.route = route

    @property
    def title(self) -> Locator:
        return self.page.locator(TITLE_SELECTOR).first

    @property
    def user_menu(self) -> Locator:
        return self.get_by_test_id("user-menu")

    def navigate(self) -> "DashboardPage":
        self.navigate_to(self.route)
        return self

    def assert_loaded(self, page: Page | None = None) -> None:
        """Assert the dashboard route is showing and its title rendered."""
        target = page or self.page
        expect(target).to_have_url(self.url_for(self.route))
        expect(target.locator(TITLE_SELECTOR).first).to_be_visible()

    def assert_signed_in_as(self, username: str) -> None:
        expect(self.user_menu).to_contain_text(username)
