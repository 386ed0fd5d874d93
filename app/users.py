"""
In-memory user directory for the stub dashboard.

Accounts come from the ``STUB_USERS`` config mapping. Passwords are hashed
when the directory is built so plain-text values never outlive app start-up.

Key Concepts Demonstrated:
- Werkzeug password hashing (PBKDF2 by default)
- Safe serialisation that excludes sensitive fields
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash


@dataclass(frozen=True)
class StubUser:
    """
    One dashboard account.

    Attributes:
        username: Login name.
        password_hash: Werkzeug-generated hash of the password.
        roles: Role identifiers reported in the authentication response.
        dashboard: Dashboard slug the login page redirects to (``io``).
    """

    username: str
    password_hash: str = field(repr=False)
    roles: tuple[str, ...] = ()
    dashboard: str = "io"

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def home_route(self) -> str:
        return f"/dashboard/{self.dashboard}"

    def to_dict(self) -> dict[str, Any]:
        """Profile fields safe to return from the API (no password hash)."""
        return {
            "userName": self.username,
            "roles": list(self.roles),
            "homeRoute": self.home_route,
        }


def load_users(raw_users: dict[str, dict[str, Any]]) -> dict[str, StubUser]:
    """Build the user directory from the ``STUB_USERS`` config mapping."""
    return {
        username: StubUser(
            username=username,
            password_hash=generate_password_hash(entry["password"]),
            roles=tuple(entry.get("roles", ())),
            dashboard=entry.get("dashboard", "io"),
        )
        for username, entry in raw_users.items()
    }


def authenticate(users: dict[str, StubUser], username: str, password: str) -> StubUser | None:
    """Return the matching user, or None for unknown names and bad passwords."""
    user = users.get(username)
    if user is None or not user.check_password(password):
        return None
    return user
