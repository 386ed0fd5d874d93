"""Login page object used for fresh UI logins and negative login checks."""

from __future__ import annotations

import json
import logging
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page, Response, expect

from casedesk.authenticator import describe_missing_token, extract_profile, extract_token
from casedesk.errors import AuthenticationError
from casedesk.pages.base_page import BasePage, is_login_url
from casedesk.settings import AUTH_ENDPOINT_PATH
from casedesk.storage import AUTH_TOKEN_KEY, USER_DATA_KEY

logger = logging.getLogger(__name__)

_BACKFILL_FN = """
(data) => {
  window.sessionStorage.setItem(data.tokenKey, data.token);
  if (!window.sessionStorage.getItem(data.userKey)) {
    window.sessionStorage.setItem(data.userKey, data.userData);
  }
  return Boolean(
    window.sessionStorage.getItem(data.tokenKey) &&
    window.sessionStorage.getItem(data.userKey)
  );
}
"""


class LoginPage(BasePage):
    """
    Page object for the dashboard login form.

    Provides methods for:
    - Entering credentials and submitting the form
    - Capturing the authentication response behind the form
    - Verifying the browser is (or is no longer) on the login route
    """

    URL_PATH = "/login"
    USERNAME_SELECTOR = (
        'input[formcontrolname="username"], input[name="username"], '
        'input[placeholder="Username"]'
    )
    PASSWORD_SELECTOR = (
        'input[formcontrolname="password"], input[name="password"], '
        'input[placeholder="Password"]'
    )
    SUBMIT_SELECTOR = 'button[type="submit"]'
    ERROR_SELECTOR = '.error-message, [data-testid="error-message"], .error-text'

    def __init__(
        self,
        page: Page,
        base_url: str,
        *,
        login_path: str = URL_PATH,
        auth_path: str = AUTH_ENDPOINT_PATH,
        login_timeout: int = 30_000,
        load_state_timeout: int = 30_000,
    ):
        super().__init__(page, base_url, load_state_timeout=load_state_timeout)
        self.login_path = login_path
        self.auth_path = auth_path
        self.login_timeout = login_timeout

    def navigate(self) -> "LoginPage":
        """
        Navigate to the login page and wait for the form.

        Returns:
            Self for method chaining.
        """
        self.navigate_to(self.login_path)
        self.wait_for_element(self.username_input, timeout=self.login_timeout)
        return self

    @property
    def username_input(self) -> Locator:
        return self.page.locator(self.USERNAME_SELECTOR).first

    @property
    def password_input(self) -> Locator:
        return self.page.locator(self.PASSWORD_SELECTOR).first

    @property
    def submit_button(self) -> Locator:
        return self.page.locator(self.SUBMIT_SELECTOR).first

    @property
    def error_message(self) -> Locator:
        return self.page.locator(self.ERROR_SELECTOR).first

    def _is_auth_response(self, response: Response) -> bool:
        return self.auth_path in response.url and response.request.method != "OPTIONS"

    def submit_credentials(self, username: str, password: str, timeout: int | None = None) -> Response:
        """
        Fill the form, submit it and return the authentication response.

        No outcome is asserted, which makes this suitable for invalid-login
        scenarios.
        """
        timeout = timeout or self.login_timeout
        self.wait_for_element(self.username_input, timeout=timeout)
        self.username_input.fill("")
        self.username_input.fill(username)
        self.password_input.fill(password)
        with self.page.expect_response(self._is_auth_response, timeout=timeout) as response_info:
            self.submit_button.click()
        return response_info.value

    def login(self, username: str, password: str, timeout: int | None = None) -> str:
        """
        Log in through the form and wait until the app leaves the login route.

        Args:
            username: Username to enter.
            password: Password to enter.
            timeout: Bound for each wait in milliseconds.

        Returns:
            The bearer token issued by the authentication endpoint.

        Raises:
            AuthenticationError: If the endpoint rejects the credentials, its
                response carries no token, or the token never reaches
                ``sessionStorage``.
            playwright.sync_api.TimeoutError: If no redirect happens in time.
        """
        timeout = timeout or self.login_timeout
        response = self.submit_credentials(username, password, timeout=timeout)
        body = self._read_auth_body(response)

        token = extract_token(body)
        if token is None:
            raise AuthenticationError(
                describe_missing_token(body), status_code=response.status, body=body
            )

        self.page.wait_for_url(
            lambda url: not is_login_url(url, self.login_path), timeout=timeout
        )
        self.wait_for_page_load()
        self.backfill_session_storage(token, body, username)
        logger.info("UI login succeeded for %s, now at %s", username, self.page.url)
        return token

    def _read_auth_body(self, response: Response) -> Any:
        if not response.ok:
            try:
                text = response.text()
            except PlaywrightError:
                text = ""
            raise AuthenticationError(
                f"Login rejected: {response.status} {response.status_text}\n{text}",
                status_code=response.status,
                body=text,
            )
        try:
            return response.json()
        except (ValueError, PlaywrightError) as exc:
            raise AuthenticationError(
                f"Auth API returned a non-JSON body (status {response.status})",
                status_code=response.status,
            ) from exc

    def backfill_session_storage(self, token: str, body: Any, username: str) -> None:
        """
        Store the issued token, and user data when the app has not done so.

        The token is always written so a stale value left in the tab by a
        rejected session never outlives the login that replaced it.
        """
        profile_username, roles = extract_profile(body if isinstance(body, dict) else {}, username)
        data = body.get("data") if isinstance(body, dict) and isinstance(body.get("data"), dict) else {}
        user_data = {
            "userName": profile_username,
            "token": token,
            "twoWayAuthEnabled": data.get("twoWayAuthEnabled", False),
            "status": data.get("status", "success"),
            "roles": roles,
            "parentModules": data.get("parentModules", []),
            "childModules": data.get("childModules", {}),
        }
        stored = self.page.evaluate(
            _BACKFILL_FN,
            {
                "tokenKey": AUTH_TOKEN_KEY,
                "userKey": USER_DATA_KEY,
                "token": token,
                "userData": json.dumps(user_data),
            },
        )
        if not stored:
            raise AuthenticationError(
                f"{AUTH_TOKEN_KEY} or {USER_DATA_KEY} not found in sessionStorage after login"
            )

    def assert_on_login_page(self) -> None:
        """Assert the login route is showing with its submit button."""
        expect(self.page).to_have_url(self.url_for(self.login_path))
        expect(self.submit_button).to_be_visible()

    def assert_error_visible(self, timeout: int = 5000) -> None:
        expect(self.error_message).to_be_visible(timeout=timeout)
