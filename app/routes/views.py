"""
HTML routes of the stub dashboard.

Routes:
    GET  /                  - Redirect to the login page
    GET  /login             - Login form
    GET  /dashboard/<slug>  - Role dashboard (``io``, ``sio``)

Authentication state lives entirely in the browser: the dashboard template
checks ``sessionStorage`` before anything renders, so these routes never
look at cookies or headers.
"""

import logging

from flask import Blueprint, abort, current_app, redirect, render_template, url_for

logger = logging.getLogger(__name__)

views_bp = Blueprint("views", __name__)

AUTH_ENDPOINT = "/authentication/api/v1/user/authenticate"


@views_bp.route("/")
def index():
    return redirect(url_for("views.login"))


@views_bp.route("/login")
def login():
    """Render the login form."""
    logger.info("GET /login - Rendering login form")
    return render_template("login.html", auth_endpoint=AUTH_ENDPOINT)


@views_bp.route("/dashboard/<slug>")
def dashboard(slug: str):
    """
    Render a role dashboard.

    Returns:
        Rendered dashboard.html, or 404 for unknown dashboards.
    """
    title = current_app.config["DASHBOARDS"].get(slug)
    if title is None:
        abort(404)
    logger.info("GET /dashboard/%s - Rendering dashboard", slug)
    return render_template(
        "dashboard.html",
        title=title,
        slug=slug,
        login_path=current_app.config["LOGIN_PATH"],
    )
