"""
Browser storage injection.

The dashboard decides whether a visitor is logged in by reading
``sessionStorage`` during its very first script. Playwright's
``add_init_script`` runs before any document script on every navigation, so
values registered here are visible to the application at first paint.

Python's ``add_init_script`` accepts no arguments, so every payload is
embedded in the script source as a JSON literal.

Key Concepts Demonstrated:
- Pre-navigation script injection on a Page or BrowserContext
- Building the application's storage contract from a token and profile
- Reading ``sessionStorage``, which ``storage_state()`` does not capture
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from playwright.sync_api import BrowserContext, Page

logger = logging.getLogger(__name__)

InjectionTarget = Union[Page, BrowserContext]

AUTH_TOKEN_KEY = "authToken"
USER_DATA_KEY = "userData"

DEFAULT_THEME = "keppel"
DEFAULT_ROLE = "role_investigator"
DEFAULT_USERNAME = "ncrp_demo"

_WRITE_STORAGE_FN = """
(data) => {
  const write = (storage, values) => {
    for (const [key, value] of Object.entries(values)) {
      try {
        storage.setItem(key, value);
      } catch (e) {
        // storage is unavailable on opaque origins such as about:blank
      }
    }
  };
  try {
    write(window.sessionStorage, data.session);
    write(window.localStorage, data.local);
  } catch (e) {}
}
"""

_SEED_ENTRIES_FN = """
(items) => {
  try {
    for (const item of items) {
      if (window.sessionStorage.getItem(item.name) === null) {
        window.sessionStorage.setItem(item.name, item.value);
      }
    }
  } catch (e) {}
}
"""

_READ_SESSION_STORAGE_FN = """
() => {
  const entries = [];
  for (let i = 0; i < window.sessionStorage.length; i++) {
    const name = window.sessionStorage.key(i);
    entries.push({ name: name, value: window.sessionStorage.getItem(name) });
  }
  return entries;
}
"""


@dataclass(frozen=True)
class UserProfile:
    """Minimal profile the dashboard expects next to the token."""

    username: str = DEFAULT_USERNAME
    role: str = DEFAULT_ROLE
    roles: list[str] = field(default_factory=list)
    theme: str = DEFAULT_THEME
    dark_mode: bool = False
    home_currency: str = "INR"


@dataclass(frozen=True)
class StoragePayload:
    """Key/value pairs destined for ``sessionStorage`` and ``localStorage``."""

    session: dict[str, str]
    local: dict[str, str]

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"session": dict(self.session), "local": dict(self.local)}


def _call_script(fn_source: str, argument: Any) -> str:
    """Render an init script that immediately calls *fn_source* with *argument*."""
    return f"({fn_source.strip()})({json.dumps(argument)});"


def build_storage_payload(token: str, profile: UserProfile | None = None) -> StoragePayload:
    """
    Build the storage entries that make the dashboard render as logged in.

    Args:
        token: Bearer token. Must be non-empty.
        profile: Profile fields; placeholders are used when omitted.

    Raises:
        ValueError: If *token* is empty.
    """
    if not token or not token.strip():
        raise ValueError("token must be a non-empty string")

    profile = profile or UserProfile()
    roles = profile.roles or [profile.role]
    user_data = {
        "userName": profile.username,
        "token": token,
        "role": profile.role,
        "roles": roles,
        "homeCurrency": profile.home_currency,
        "twoWayAuthEnabled": False,
        "status": "success",
    }
    return StoragePayload(
        session={
            AUTH_TOKEN_KEY: token,
            USER_DATA_KEY: json.dumps(user_data),
            "dashboardLoaded": "true",
        },
        local={
            "theme": profile.theme,
            "isDarkModeOn": "true" if profile.dark_mode else "false",
            "ncrp.sidebar.state": json.dumps({"collapsed": False}),
        },
    )


def inject_auth_storage(
    target: InjectionTarget,
    token: str,
    profile: UserProfile | None = None,
) -> StoragePayload:
    """
    Register a script that writes the auth payload before any page script runs.

    Registering again overwrites the same keys; every registration runs, and
    the last one wins for a shared key.

    Args:
        target: Page or BrowserContext to register the script on.
        token: Bearer token.
        profile: Optional profile fields.

    Returns:
        The payload that was registered.
    """
    payload = build_storage_payload(token, profile)
    target.add_init_script(script=_call_script(_WRITE_STORAGE_FN, payload.to_dict()))
    logger.info(
        "Registered auth storage injection (%d session keys, %d local keys)",
        len(payload.session),
        len(payload.local),
    )
    return payload


def seed_session_storage(target: InjectionTarget, entries: list[dict[str, str]]) -> int:
    """
    Register persisted ``sessionStorage`` entries for every later navigation.

    Only keys the tab does not hold yet are written. A fresh tab receives
    every entry, while values the application stored itself (a token from a
    fallback login, for example) survive later navigations.

    Args:
        target: Page or BrowserContext to register the script on.
        entries: ``[{"name": ..., "value": ...}]`` records from a session file.

    Returns:
        Number of entries registered.
    """
    items = [
        {"name": str(entry["name"]), "value": str(entry["value"])}
        for entry in entries
        if isinstance(entry, dict) and "name" in entry and entry.get("value") is not None
    ]
    target.add_init_script(script=_call_script(_SEED_ENTRIES_FN, items))
    logger.info("Registered %d sessionStorage entries for injection", len(items))
    return len(items)


def read_session_storage(page: Page) -> list[dict[str, str]]:
    """Return the live ``sessionStorage`` of *page* as name/value records."""
    return list(page.evaluate(_READ_SESSION_STORAGE_FN) or [])
