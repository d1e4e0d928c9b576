"""
API blueprints.

Every claims-facing blueprint reads request fields through ``form_data`` and
maps the ClaimsError hierarchy onto the standard outcome body through
``register_claims_errors``:

    {"success": false, "error": message, "code": code, "redirect": dashboard}
"""

import logging

from flask import g, request

from cmcs.core.exceptions import ClaimsError, StorageFailureError, ValidationError
from cmcs.utils.errors import api_error

logger = logging.getLogger(__name__)


def _redirect_for_actor() -> str | None:
    actor = getattr(g, "actor", None)
    return actor.dashboard_path if actor else None


def json_body() -> dict:
    """The request's JSON object. A JSON body that is not an object is rejected."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", details={"body": "invalid"})
    return body


def form_data() -> dict:
    """Field values from a JSON body or a form post."""
    if request.is_json:
        return json_body()
    return request.form.to_dict()


def rejection_reason():
    """``rejection_reason`` from a JSON body or a form post, unvalidated."""
    return form_data().get("rejection_reason")


def handle_claims_error(error: ClaimsError):
    actor = getattr(g, "actor", None)
    extra = {
        "actor_id": actor.id if actor else None,
        "claim_id": (request.view_args or {}).get("claim_id"),
    }
    if isinstance(error, StorageFailureError):
        logger.error("Storage failure on %s: %s", request.endpoint, error, extra=extra)
    else:
        logger.info("%s on %s: %s", type(error).__name__, request.endpoint, error, extra=extra)

    details = error.details if isinstance(error, ValidationError) else None
    return api_error(
        error.code,
        error.message,
        status=error.status_code,
        details=details,
        redirect=_redirect_for_actor(),
    )


def register_claims_errors(bp):
    """Attach the ClaimsError → JSON outcome handler to ``bp``."""
    bp.register_error_handler(ClaimsError, handle_claims_error)
    return bp
