"""Standardised API error responses.

Usage
-----
    from cmcs.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Claim not found.")
    return api_error(E.VALIDATION_REQUIRED, "Rejection reason is required.",
                     redirect="/api/v1/coordinator/dashboard")
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Auth – HTTP 401 / 403
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    FORBIDDEN = "ERR_FORBIDDEN"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict – HTTP 409
    CONFLICT_STATE = "ERR_CONFLICT_STATE"

    # Uploads – HTTP 413 / 415
    FILE_TOO_LARGE = "ERR_FILE_TOO_LARGE"
    UNSUPPORTED_FILE_TYPE = "ERR_UNSUPPORTED_FILE_TYPE"

    # Server – HTTP 500 / 501
    STORAGE = "ERR_STORAGE"
    INTERNAL = "ERR_INTERNAL"
    NOT_IMPLEMENTED = "ERR_NOT_IMPLEMENTED"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHENTICATED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_STATE: 409,
    E.FILE_TOO_LARGE: 413,
    E.UNSUPPORTED_FILE_TYPE: 415,
    E.STORAGE: 500,
    E.INTERNAL: 500,
    E.NOT_IMPLEMENTED: 501,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
    redirect: str | None = None,
):
    """Return a standard JSON failure outcome.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable message shown to the actor.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field errors, per-file failures).
    redirect : str, optional
        Where the presentation layer should send the actor next.

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "success": False,
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details
    if redirect:
        body["redirect"] = redirect

    return jsonify(body), http_status


def outcome(message: str, *, redirect: str, status: int = 200, **payload):
    """Return a standard JSON success outcome (message + redirect + payload)."""
    body = {"success": True, "message": message, "redirect": redirect}
    body.update(payload)
    return jsonify(body), status
