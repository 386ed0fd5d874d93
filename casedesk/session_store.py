"""
Persisted browser sessions.

A session file is Playwright's ``storage_state`` JSON (cookies plus
per-origin ``localStorage``) with an extra ``sessionStorage`` list added to
the first origin, because ``storage_state()`` never captures session storage
and the dashboard keeps its token there.

Reading is forgiving: a missing, unparsable or incomplete file
yields ``None`` so callers fall back to a fresh login. Writing is strict: a
capture without origins raises ``PersistenceError`` instead of leaving a file
that later runs would reject anyway.

Files are rewritten whole and never locked. Give each role its own file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from playwright.sync_api import Page

from casedesk.errors import PersistenceError
from casedesk.storage import AUTH_TOKEN_KEY, read_session_storage
from casedesk.tokens import is_token_expired, token_expiry

logger = logging.getLogger(__name__)


def _is_auth_entry(entry: Any) -> bool:
    return (
        isinstance(entry, dict)
        and entry.get("name") == AUTH_TOKEN_KEY
        and isinstance(entry.get("value"), str)
        and bool(entry["value"])
    )


def _has_auth_token(origin: Any) -> bool:
    if not isinstance(origin, dict):
        return False
    entries = origin.get("sessionStorage")
    if not isinstance(entries, list):
        return False
    return any(_is_auth_entry(entry) for entry in entries)


@dataclass(frozen=True)
class PersistedSession:
    """A validated session file."""

    path: Path
    state: dict[str, Any]

    @property
    def origins(self) -> list[dict[str, Any]]:
        return self.state.get("origins", [])

    @property
    def origin(self) -> dict[str, Any]:
        """First origin record that carries an auth token."""
        return next(origin for origin in self.origins if _has_auth_token(origin))

    @property
    def session_storage(self) -> list[dict[str, str]]:
        return list(self.origin.get("sessionStorage", []))

    @property
    def local_storage(self) -> list[dict[str, str]]:
        return list(self.origin.get("localStorage", []))

    @property
    def auth_token(self) -> str:
        return next(entry["value"] for entry in self.session_storage if _is_auth_entry(entry))

    @property
    def token_expires_at(self) -> datetime | None:
        return token_expiry(self.auth_token)


def save_session(page: Page, path: str | os.PathLike[str]) -> Path:
    """
    Capture the authenticated state of *page* and write it to *path*.

    Args:
        page: Page whose context holds a logged-in session.
        path: Destination file; parent directories are created.

    Returns:
        Absolute path of the written file.

    Raises:
        PersistenceError: If the captured storage state has no origins.
    """
    storage_state = page.context.storage_state()
    session_entries = read_session_storage(page)

    origins = storage_state.get("origins") or []
    if not origins:
        raise PersistenceError("no origins captured")

    origins[0]["sessionStorage"] = session_entries
    storage_state["origins"] = origins

    target = Path(path).resolve()
    target.parent.mkdir(parents=True, exist_ok=True)

    # Readers never observe a partially written file.
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(storage_state, handle, indent=2)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(
        "Saved session state to %s (%d origins, %d sessionStorage entries)",
        target,
        len(origins),
        len(session_entries),
    )
    return target


def load_session(
    path: str | os.PathLike[str],
    *,
    check_expiry: bool = True,
    leeway: int = 0,
) -> PersistedSession | None:
    """
    Read and validate a session file.

    Args:
        path: Session file to read.
        check_expiry: Reject files whose JWT ``exp`` claim has passed.
        leeway: Clock-skew tolerance in seconds for the expiry check.

    Returns:
        The parsed session, or ``None`` when the file is absent, unreadable,
        not valid JSON, has no origin with an ``authToken`` entry in its
        ``sessionStorage``, or holds an expired token.
    """
    session_path = Path(path)
    if not session_path.is_file():
        logger.info("Session file %s not found", session_path)
        return None

    try:
        state = json.loads(session_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable session file %s: %s", session_path, exc)
        return None

    if not isinstance(state, dict) or not isinstance(state.get("origins"), list):
        logger.warning("Ignoring session file %s: no origins list", session_path)
        return None

    if not any(_has_auth_token(origin) for origin in state["origins"]):
        logger.info("%s not found in session file %s", AUTH_TOKEN_KEY, session_path)
        return None

    session = PersistedSession(path=session_path.resolve(), state=state)
    if check_expiry and is_token_expired(session.auth_token, leeway=leeway):
        logger.info("Stored token in %s is expired", session_path)
        return None

    logger.info("Session file %s is valid", session_path)
    return session
