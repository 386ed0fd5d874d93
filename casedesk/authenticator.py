"""
HTTP client for the dashboard's authentication endpoint.

The endpoint has answered with several response shapes over time, so token
lookup walks an ordered list of known paths and stops at the first one that
holds a non-empty string. When none match, the error lists every path that
was tried together with the keys the response actually carried.

Key Concepts Demonstrated:
- Plain ``requests`` calls with explicit timeouts
- Ordered extraction strategies instead of ad hoc ``or`` chains
- Diagnostic error messages that carry status code and body
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from casedesk.errors import AuthenticationError

logger = logging.getLogger(__name__)

# Tried in order; the first path that resolves to a non-empty string wins.
TOKEN_PATHS: tuple[tuple[str, ...], ...] = (
    ("data", "token"),
    ("token",),
    ("data", "jwt"),
    ("data", "accessToken"),
)

JSON_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Content-Type": "application/json",
}


@dataclass(frozen=True)
class AuthResult:
    """Token and profile fields returned by a successful authentication."""

    token: str = field(repr=False)
    username: str | None = None
    roles: list[str] = field(default_factory=list)
    body: dict[str, Any] = field(default_factory=dict, repr=False)


def _dig(body: Any, path: tuple[str, ...]) -> Any:
    current = body
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def extract_token(body: Any) -> str | None:
    """
    Return the bearer token from an authentication response body.

    Args:
        body: Parsed JSON response.

    Returns:
        The first non-empty string found at one of ``TOKEN_PATHS``, or
        ``None`` when the body carries no token.
    """
    for path in TOKEN_PATHS:
        value = _dig(body, path)
        if isinstance(value, str) and value.strip():
            return value
    return None


def describe_missing_token(body: Any) -> str:
    """Build the diagnostic message used when ``extract_token`` finds nothing."""
    tried = ", ".join(".".join(path) for path in TOKEN_PATHS)
    keys = sorted(body) if isinstance(body, dict) else []
    message = (
        f"Auth API response did not include a token (tried {tried}). "
        f"Received keys: {keys}"
    )
    data = body.get("data") if isinstance(body, dict) else None
    if isinstance(data, dict):
        message += f"; data keys: {sorted(data)}"
    return message


def extract_profile(body: dict[str, Any], fallback_username: str | None = None) -> tuple[str | None, list[str]]:
    """Pull the optional username and role list out of a response body."""
    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    username = data.get("userName") or data.get("username") or fallback_username
    roles = data.get("roles") or data.get("authorities") or []
    if isinstance(roles, str):
        roles = [roles]
    return username, [str(role) for role in roles]


class Authenticator:
    """
    Exchange a username/password pair for a bearer token.

    A single request is made per call; failures are raised immediately and
    retrying is left to the caller.

    Attributes:
        auth_url: Absolute URL of the authentication endpoint.
        timeout: Request timeout in seconds.
        send_query_params: Also send the credentials as query parameters,
            which some deployments of the endpoint require.
    """

    def __init__(
        self,
        auth_url: str,
        *,
        timeout: float = 30.0,
        send_query_params: bool = False,
    ) -> None:
        self.auth_url = auth_url
        self.timeout = timeout
        self.send_query_params = send_query_params

    def authenticate(self, username: str, password: str) -> AuthResult:
        """
        Authenticate against the remote endpoint.

        Args:
            username: Account name.
            password: Account password.

        Returns:
            ``AuthResult`` with the token and any profile fields present.

        Raises:
            AuthenticationError: On a non-2xx status, a non-JSON body, an
                explicit ``success: false`` or a body without a token.
            requests.RequestException: On transport failures.
        """
        credentials = {"username": username, "password": password}
        logger.info("Authenticating %s against %s", username, self.auth_url)

        try:
            response = requests.post(
                self.auth_url,
                json=credentials,
                params=credentials if self.send_query_params else None,
                headers=JSON_HEADERS,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Auth request to %s failed: %s", self.auth_url, exc)
            raise

        if not 200 <= response.status_code < 300:
            raise AuthenticationError(
                f"Auth API failed: {response.status_code} {response.reason}\n{response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise AuthenticationError(
                f"Auth API returned a non-JSON body (status {response.status_code})",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        if isinstance(body, dict) and body.get("success") is False:
            raise AuthenticationError(
                f"Login failed: {body}",
                status_code=response.status_code,
                body=body,
            )

        token = extract_token(body)
        if token is None:
            raise AuthenticationError(
                describe_missing_token(body),
                status_code=response.status_code,
                body=body,
            )

        profile_username, roles = extract_profile(body, fallback_username=username)
        logger.info("Authenticated %s (roles=%s)", profile_username, roles)
        return AuthResult(token=token, username=profile_username, roles=roles, body=body)

    def get_token(self, username: str, password: str) -> str:
        """Shortcut returning only the bearer token."""
        return self.authenticate(username, password).token
