"""
JWT creation for the stub authentication endpoint.

Tokens are signed with RS256, so only the stub holds the private key. The
dashboard pages read the ``exp`` claim client-side to decide whether a
visitor is still logged in.

Token structure (claims):
    - ``sub``      -- username of the authenticated user.
    - ``username`` -- same value, for display.
    - ``roles``    -- role identifiers granted to the user.
    - ``iat``      -- issued-at timestamp (UTC epoch seconds).
    - ``exp``      -- expiration timestamp (UTC epoch seconds).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt


def create_token(
    username: str,
    roles: list[str] | tuple[str, ...],
    private_key: str,
    expiry_minutes: int,
) -> str:
    """
    Create an RS256-signed JWT for *username*.

    Args:
        username: Login name. Must be a non-empty string.
        roles: Role identifiers to embed.
        private_key: RSA private key in PEM format.
        expiry_minutes: Minutes from now until the token expires. Negative
            values produce an already-expired token.

    Returns:
        A compact JWS string.

    Raises:
        ValueError: If *username* is blank.
    """
    if not isinstance(username, str) or not username.strip():
        raise ValueError("username must be a non-empty string")

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=int(expiry_minutes))

    payload: dict[str, Any] = {
        "sub": username,
        "username": username,
        "roles": list(roles),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")
