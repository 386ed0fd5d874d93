"""
Exception hierarchy for the session-bootstrap utilities.

Only conditions the suite can describe better than the underlying library
get their own type. Playwright timeouts and ``requests`` transport errors
propagate unchanged so that test reports show the original failure.
"""

from __future__ import annotations

from typing import Any


class CasedeskError(Exception):
    """Base class for all errors raised by the ``casedesk`` package."""


class AuthenticationError(CasedeskError):
    """
    The authentication endpoint refused the credentials or answered with
    something that does not carry a bearer token.

    Attributes:
        status_code: HTTP status of the response, when one was received.
        body: Raw response text or parsed JSON body, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PersistenceError(CasedeskError):
    """A captured browser session could not be written to disk."""


class ConfigurationError(CasedeskError):
    """Required environment configuration is missing or invalid."""
