"""Expiry checks for bearer tokens stored in session files."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import jwt

logger = logging.getLogger(__name__)


def token_expiry(token: str) -> datetime | None:
    """
    Read the ``exp`` claim of a JWT without verifying its signature.

    The suite never holds the issuer's key, so only the payload is decoded.

    Args:
        token: Compact JWT string or any opaque token.

    Returns:
        The expiry as an aware UTC datetime, or ``None`` when the token is
        not a decodable JWT or carries no ``exp`` claim.
    """
    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except jwt.InvalidTokenError:
        return None

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def is_token_expired(token: str, leeway: int = 0, now: datetime | None = None) -> bool:
    """
    Return True when the token's ``exp`` claim lies in the past.

    Tokens with unknown expiry (opaque strings, JWTs without ``exp``) are
    reported as not expired; the application decides on the next navigation.
    """
    expires_at = token_expiry(token)
    if expires_at is None:
        return False

    current = now or datetime.now(timezone.utc)
    remaining = (expires_at - current).total_seconds()
    if remaining + leeway < 0:
        logger.info("Token expired %d seconds ago", int(-remaining))
        return True
    return False
