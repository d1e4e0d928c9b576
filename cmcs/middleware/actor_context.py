"""
Actor Context Middleware — resolves the acting user into ``g.actor``.

Priority order:
  1. JWT (Authorization: Bearer <token>)   →  Actor(sub, role)
  2. X-User-Id header, only when API_AUTH_ENABLED is false
     (development / testing); role is read from the users table

Nothing here rejects a request. Routes that need an actor use
``require_role`` (role_required.py), which turns a missing actor into 401.
"""

import logging

import jwt as pyjwt
from flask import g, request

from cmcs.core.actor import Actor
from cmcs.models import db
from cmcs.models.user import User
from cmcs.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that never need an actor
SKIP_PREFIXES = (
    "/api/v1/health",
)


def _auth_enabled(app) -> bool:
    return str(app.config.get("API_AUTH_ENABLED", "true")).lower() == "true"


def _actor_from_token(token: str) -> Actor | None:
    try:
        payload = decode_access_token(token)
        return Actor(id=int(payload["sub"]), role=payload["role"])
    except pyjwt.ExpiredSignatureError:
        g.auth_error = "Token has expired"
    except pyjwt.InvalidTokenError:
        g.auth_error = "Invalid token"
    except (KeyError, TypeError, ValueError):
        g.auth_error = "Token is missing required claims"
    logger.info("Rejected bearer token: %s", g.auth_error)
    return None


def _actor_from_header(raw: str) -> Actor | None:
    try:
        user_id = int(raw)
    except ValueError:
        g.auth_error = "X-User-Id must be an integer"
        return None
    user = db.session.get(User, user_id)
    if user is None:
        g.auth_error = "Unknown user"
        return None
    return Actor.from_user(user)


def init_actor_context(app):
    """Register actor resolution as a before_request hook."""

    @app.before_request
    def _resolve_actor():
        g.actor = None
        g.auth_error = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            g.actor = _actor_from_token(auth_header[7:])
            return

        if not _auth_enabled(app):
            raw = request.headers.get("X-User-Id", "").strip()
            if raw:
                g.actor = _actor_from_header(raw)
