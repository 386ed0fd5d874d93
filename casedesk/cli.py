"""
Command-line entry point for managing persisted dashboard sessions.

``save-session`` performs one real login in Chromium and writes the role's
session file so later test runs can skip the login form. ``check-session``
reports whether an existing file would be reused.

Exit codes follow a three-state convention:

- ``0`` -- session saved / session file valid
- ``1`` -- login failed or session file unusable
- ``2`` -- configuration error (missing base URL, password, unknown role)
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from casedesk.bootstrap import bootstrap_via_api
from casedesk.errors import AuthenticationError, ConfigurationError, PersistenceError
from casedesk.pages.base_page import BasePage
from casedesk.pages.login_page import LoginPage
from casedesk.session_store import load_session, save_session
from casedesk.settings import Settings, get_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SESSION_FAILURE = 1
EXIT_CONFIG_ERROR = 2

DEFAULT_VIEWPORT = {"width": 1366, "height": 768}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``casedesk`` command."""
    parser = argparse.ArgumentParser(
        prog="casedesk",
        description="Create and inspect persisted case-dashboard sessions.",
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Environment name (defaults to $ENVIRONMENT or 'qa')",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subcommands = parser.add_subparsers(dest="command", required=True)

    save = subcommands.add_parser("save-session", help="Log in and persist the session")
    save.add_argument("--role", default=None, help="Role key from the role catalogue")
    save.add_argument(
        "--via",
        choices=("ui", "api"),
        default="ui",
        help="Log in through the form (ui) or the authentication endpoint (api)",
    )
    save.add_argument("--output", type=Path, default=None, help="Session file to write")
    save.add_argument("--headed", action="store_true", help="Show the browser window")

    check = subcommands.add_parser("check-session", help="Validate a session file")
    check.add_argument("--role", default=None, help="Role key from the role catalogue")
    check.add_argument("--file", type=Path, default=None, help="Session file to check")
    return parser


def _login_via_ui(page, settings: Settings, role: str) -> None:
    credential = settings.credential_for(role)
    login_page = LoginPage(
        page,
        settings.base_url,
        login_path=settings.login_path,
        login_timeout=settings.login_timeout_ms,
        load_state_timeout=settings.load_state_timeout_ms,
    )
    login_page.navigate()
    login_page.login(credential.username, credential.password)

    dashboard = BasePage(page, settings.base_url, load_state_timeout=settings.load_state_timeout_ms)
    dashboard.navigate_to(settings.route_for(role), timeout=settings.navigation_timeout_ms)


def save_session_command(args: argparse.Namespace, settings: Settings) -> int:
    role = settings.role(args.role).key
    output = args.output or settings.session_file_for(role)

    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=not args.headed)
        try:
            context = browser.new_context(viewport=DEFAULT_VIEWPORT)
            page = context.new_page()
            if args.via == "api":
                bootstrap_via_api(page, settings, role)
            else:
                _login_via_ui(page, settings, role)
            path = save_session(page, output)
        finally:
            browser.close()

    print(f"Session for {role} saved to {path}")
    return EXIT_OK


def check_session_command(args: argparse.Namespace, settings: Settings) -> int:
    path = args.file or settings.session_file_for(args.role)
    session = load_session(path, leeway=settings.clock_skew_seconds)
    if session is None:
        print(f"INVALID  {path}")
        return EXIT_SESSION_FAILURE

    expires_at = session.token_expires_at
    expiry = expires_at.isoformat() if expires_at else "unknown"
    print(f"VALID    {session.path} (token expires: {expiry})")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        settings = get_settings(args.env)
        if args.command == "save-session":
            return save_session_command(args, settings)
        return check_session_command(args, settings)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR
    except (AuthenticationError, PersistenceError, PlaywrightError) as exc:
        logger.error("Could not create session: %s", exc)
        return EXIT_SESSION_FAILURE
