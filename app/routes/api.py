"""
JSON endpoints of the stub dashboard.

Endpoints:
    GET  /api/health                                  - Health check
    POST /authentication/api/v1/user/authenticate     - Exchange credentials for a JWT

The authenticate endpoint reads ``username``/``password`` from the JSON body
and falls back to query parameters, mirroring both request styles the real
dashboard accepts.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request

from app.jwt import create_token
from app.users import authenticate

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)
auth_bp = Blueprint("auth", __name__)


def _json_error(message: str, status_code: int) -> tuple[Response, int]:
    """Build the dashboard's ``{"success": false, "message": ...}`` error envelope."""
    return jsonify({"success": False, "message": message}), status_code


def _read_credentials() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    for field in ("username", "password"):
        if not data.get(field) and request.args.get(field):
            data[field] = request.args[field]
    return data


@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """
    Health check endpoint.

    Returns:
        JSON response with status and environment.
    """
    return jsonify(
        {
            "status": "healthy",
            "service": "stub-dashboard",
            "environment": os.getenv("ENVIRONMENT", "unknown"),
        }
    ), 200


@auth_bp.route("/user/authenticate", methods=["POST"])
def authenticate_user() -> tuple[Response, int]:
    """
    Authenticate a user and issue a token.

    Returns:
        200 with ``{"success": true, "data": {...}}`` on success.
        400 if ``username`` or ``password`` is missing.
        401 for unknown users or wrong passwords.
    """
    data = _read_credentials()
    for field in ("username", "password"):
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            return _json_error(f"'{field}' is required", 400)

    username = data["username"].strip()
    user = authenticate(current_app.config["USER_DIRECTORY"], username, data["password"])
    if user is None:
        logger.info("POST /user/authenticate - rejected credentials for %s", username)
        return _json_error("bad credentials", 401)

    token = create_token(
        user.username,
        user.roles,
        current_app.config["JWT_PRIVATE_KEY"],
        current_app.config["TOKEN_EXPIRY_MINUTES"],
    )
    logger.info("POST /user/authenticate - issued token for %s", username)
    return jsonify(
        {
            "success": True,
            "data": {
                **user.to_dict(),
                "token": token,
                "twoWayAuthEnabled": False,
                "status": "success",
            },
        }
    ), 200
