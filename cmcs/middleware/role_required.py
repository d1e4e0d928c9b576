"""
Role Decorators — route protection on the resolved actor.

Usage:
    @coordinator_bp.route("/coordinator/claims/<int:claim_id>/approve", methods=["POST"])
    @require_role(ROLE_COORDINATOR, ROLE_ADMINISTRATOR)
    def approve(claim_id):
        actor = current_actor()
        ...

    @claims_bp.route("/claims/history", methods=["GET"])
    @require_actor
    def history():
        ...

Role rights are checked again inside the services; the decorator only
turns an obviously unauthorised request away early.
"""

import functools
import logging

from flask import g

from cmcs.core.actor import Actor
from cmcs.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def current_actor() -> Actor:
    """The actor resolved for this request. Only valid behind require_*."""
    return g.actor


def require_actor(f):
    """Decorator: any authenticated actor."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "actor", None) is None:
            return api_error(
                E.UNAUTHENTICATED,
                getattr(g, "auth_error", None) or "Authentication required",
            )
        return f(*args, **kwargs)
    return decorated


def require_role(*roles: str):
    """
    Decorator: require the actor to hold one of ``roles``.

    Args:
        roles: Role names from cmcs.models.user
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return api_error(
                    E.UNAUTHENTICATED,
                    getattr(g, "auth_error", None) or "Authentication required",
                )
            if not actor.has_role(*roles):
                logger.warning(
                    "User %d (%s) denied: needs one of %s on %s",
                    actor.id, actor.role, roles, f.__name__,
                    extra={"actor_id": actor.id},
                )
                return api_error(
                    E.FORBIDDEN,
                    "You are not allowed to perform this action.",
                    redirect=actor.dashboard_path,
                )
            return f(*args, **kwargs)
        return decorated
    return decorator
