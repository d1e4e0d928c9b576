"""
Home Blueprint — landing summary and the report placeholder.

Routes:
  GET    /dashboard      – role-scoped counts + five most recent claims
  GET    /reports        – not implemented yet (501)
"""

from flask import Blueprint, jsonify

from cmcs.blueprints import register_claims_errors
from cmcs.middleware.role_required import current_actor, require_actor
from cmcs.services import dashboard_service
from cmcs.services.claim_service import serialize_claims
from cmcs.utils.errors import E, api_error

home_bp = register_claims_errors(Blueprint("home", __name__, url_prefix="/api/v1"))


@home_bp.route("/dashboard", methods=["GET"])
@require_actor
def home():
    actor = current_actor()
    summary = dashboard_service.home_summary(actor)
    summary["recent_claims"] = serialize_claims(summary["recent_claims"])
    summary["role"] = actor.role
    return jsonify(summary)


@home_bp.route("/reports", methods=["GET"])
@require_actor
def generate_report():
    return api_error(
        E.NOT_IMPLEMENTED,
        "Report generation will be available in the next update.",
        redirect=current_actor().dashboard_path,
    )
