"""
Flask application factory for the stub case dashboard.

The stub reproduces the parts of the dashboard that session bootstrap
depends on: a login form that stores the issued token in ``sessionStorage``,
role dashboards that send visitors without a live token back to the login
route, and the JSON authentication endpoint.
"""

from __future__ import annotations

import logging

from flask import Flask

from config import get_config, load_signing_keys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    config_name: str | None = None,
    *,
    private_key: str | None = None,
    public_key: str | None = None,
) -> Flask:
    """
    Create and configure the stub dashboard application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.
        private_key: PEM key used to sign issued tokens. Read from
                     ``JWT_PRIVATE_KEY``/``JWT_PRIVATE_KEY_PATH`` when omitted.
        public_key: Matching PEM public key.

    Returns:
        Configured Flask application instance.

    Raises:
        RuntimeError: If no signing key is configured.
    """
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    env_private_key, env_public_key = load_signing_keys()
    app.config["JWT_PRIVATE_KEY"] = private_key or env_private_key
    app.config["JWT_PUBLIC_KEY"] = public_key or env_public_key
    if not app.config["JWT_PRIVATE_KEY"]:
        raise RuntimeError(
            "Missing JWT key configuration: pass private_key or set "
            "JWT_PRIVATE_KEY / JWT_PRIVATE_KEY_PATH."
        )

    from app.users import load_users

    app.config["USER_DIRECTORY"] = load_users(app.config["STUB_USERS"])

    logger.info("Creating stub dashboard with config: %s", config_class.__name__)

    from app.routes.api import api_bp, auth_bp
    from app.routes.views import views_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/authentication/api/v1")
    app.register_blueprint(views_bp)

    return app
