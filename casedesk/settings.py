"""
Environment configuration for the case-dashboard UI suite.

Every value is read from the process environment when ``get_settings`` is
called, so tests can override variables with ``monkeypatch`` and build a
fresh ``Settings`` instance. The role catalogue (usernames, dashboard routes
and session file names) lives in ``roles.yml`` next to this module.

Environment variables (``<ENV>`` is the upper-cased environment name and
``<ROLE>`` the upper-cased role key):

- ``ENVIRONMENT`` -- environment name, default ``qa``.
- ``BASE_URL_<ENV>`` -- dashboard base URL. Falls back to ``BASE_URL_DEV``.
- ``AUTH_URL_<ENV>`` -- authentication endpoint.
- ``<ROLE>_USERNAME_<ENV>`` / ``<ROLE>_PASSWORD_<ENV>`` -- role credentials.
  The default role also reads ``USERNAME_<ENV>`` / ``PASSWORD_<ENV>``.
- ``SESSION_DIR`` -- directory holding the per-role session files.
- ``CASEDESK_ROLES_FILE`` -- alternative role catalogue.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from casedesk.errors import ConfigurationError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_ROLES_FILE = BASE_DIR / "roles.yml"
DEFAULT_ENVIRONMENT = "qa"
FALLBACK_ENVIRONMENT = "dev"
AUTH_ENDPOINT_PATH = "/authentication/api/v1/user/authenticate"


@dataclass(frozen=True)
class Credential:
    """Username/password pair for one dashboard role."""

    role: str
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class RoleProfile:
    """Static description of a role taken from the role catalogue."""

    key: str
    name: str
    username: str
    route: str
    session_file: str


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one environment."""

    environment: str
    base_url: str
    auth_url: str
    roles: dict[str, RoleProfile]
    default_role: str
    session_dir: Path
    passwords: dict[str, str] = field(default_factory=dict, repr=False)
    usernames: dict[str, str] = field(default_factory=dict)
    login_path: str = "/login"
    navigation_timeout_ms: int = 60_000
    load_state_timeout_ms: int = 30_000
    login_timeout_ms: int = 30_000
    auth_timeout_s: float = 30.0
    clock_skew_seconds: int = 30

    @property
    def login_url(self) -> str:
        return self.url_for(self.login_path)

    def url_for(self, path: str) -> str:
        """Join *path* onto the base URL without doubling slashes."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def role(self, role: str | None = None) -> RoleProfile:
        key = (role or self.default_role).upper()
        try:
            return self.roles[key]
        except KeyError:
            raise ConfigurationError(
                f"Unknown role '{role}'. Known roles: {sorted(self.roles)}"
            ) from None

    def route_for(self, role: str | None = None) -> str:
        return self.role(role).route

    def session_file_for(self, role: str | None = None) -> Path:
        return self.session_dir / self.role(role).session_file

    def credential_for(self, role: str | None = None) -> Credential:
        """
        Build the credential for *role*.

        Raises:
            ConfigurationError: If no password is configured for the role.
        """
        profile = self.role(role)
        username = self.usernames.get(profile.key) or profile.username
        password = self.passwords.get(profile.key)
        if not username or not password:
            raise ConfigurationError(
                f"Username and/or password not set for role {profile.key} "
                f"in environment '{self.environment}'."
            )
        return Credential(role=profile.key, username=username, password=password)


def load_roles(path: Path | None = None) -> tuple[dict[str, RoleProfile], str]:
    """
    Read the role catalogue.

    Returns:
        A ``(roles, default_role)`` tuple keyed by upper-cased role name.

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    roles_path = path or Path(os.environ.get("CASEDESK_ROLES_FILE", DEFAULT_ROLES_FILE))
    try:
        with roles_path.open("r", encoding="utf-8") as handle:
            data: dict[str, Any] = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read role catalogue {roles_path}: {exc}") from exc

    raw_roles = data.get("roles")
    if not isinstance(raw_roles, dict) or not raw_roles:
        raise ConfigurationError(f"Role catalogue {roles_path} defines no roles")

    roles: dict[str, RoleProfile] = {}
    for key, entry in raw_roles.items():
        try:
            roles[key.upper()] = RoleProfile(
                key=key.upper(),
                name=str(entry.get("name", key)),
                username=str(entry.get("username", "")),
                route=str(entry["route"]),
                session_file=str(entry["session_file"]),
            )
        except (AttributeError, KeyError) as exc:
            raise ConfigurationError(
                f"Role '{key}' in {roles_path} needs 'route' and 'session_file'"
            ) from exc

    default_role = str(data.get("default_role") or next(iter(roles))).upper()
    if default_role not in roles:
        raise ConfigurationError(f"Default role '{default_role}' is not defined")
    return roles, default_role


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from exc


def _resolve_environment(env: str | None) -> tuple[str, str]:
    """Pick the environment name and its base URL, falling back to dev."""
    environment = (env or os.environ.get("ENVIRONMENT") or DEFAULT_ENVIRONMENT).lower()
    base_url = os.environ.get(f"BASE_URL_{environment.upper()}", "").strip()
    if base_url:
        return environment, base_url

    logger.error(
        "Environment variables for %s are not set. Falling back to '%s'.",
        environment,
        FALLBACK_ENVIRONMENT,
    )
    base_url = os.environ.get(f"BASE_URL_{FALLBACK_ENVIRONMENT.upper()}", "").strip()
    if not base_url:
        raise ConfigurationError(
            f"BASE_URL_{environment.upper()} is missing and no "
            f"BASE_URL_{FALLBACK_ENVIRONMENT.upper()} fallback is set"
        )
    return FALLBACK_ENVIRONMENT, base_url


def get_settings(env: str | None = None) -> Settings:
    """
    Build ``Settings`` for the given environment.

    Args:
        env: Environment name. When None, reads ``ENVIRONMENT``.

    Returns:
        A frozen ``Settings`` instance.
    """
    environment, base_url = _resolve_environment(env)
    suffix = environment.upper()
    roles, default_role = load_roles()

    usernames: dict[str, str] = {}
    passwords: dict[str, str] = {}
    for key in roles:
        username = os.environ.get(f"{key}_USERNAME_{suffix}", "")
        password = os.environ.get(f"{key}_PASSWORD_{suffix}", "")
        if key == default_role:
            username = username or os.environ.get(f"USERNAME_{suffix}", "")
            password = password or os.environ.get(f"PASSWORD_{suffix}", "")
        if username:
            usernames[key] = username
        if password:
            passwords[key] = password

    auth_url = os.environ.get(f"AUTH_URL_{suffix}", "").strip() or (
        f"{base_url.rstrip('/')}{AUTH_ENDPOINT_PATH}"
    )

    return Settings(
        environment=environment,
        base_url=base_url.rstrip("/"),
        auth_url=auth_url,
        roles=roles,
        default_role=default_role,
        session_dir=Path(os.environ.get("SESSION_DIR") or Path.cwd()),
        usernames=usernames,
        passwords=passwords,
        navigation_timeout_ms=_env_int("NAVIGATION_TIMEOUT_MS", 60_000),
        load_state_timeout_ms=_env_int("LOAD_STATE_TIMEOUT_MS", 30_000),
        login_timeout_ms=_env_int("LOGIN_TIMEOUT_MS", 30_000),
        auth_timeout_s=float(_env_int("AUTH_TIMEOUT_SECONDS", 30)),
        clock_skew_seconds=_env_int("JWT_CLOCK_SKEW_SECONDS", 30),
    )
