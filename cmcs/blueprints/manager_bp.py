"""
Manager Blueprint — final approval by academic managers.

Routes:
  GET    /manager/dashboard                 – open claims, oldest first
         ?lecturer_name=<substring>
  POST   /manager/claims/<id>/approve       – pending | coordinator_approved → approved
  POST   /manager/claims/<id>/reject        – pending | coordinator_approved → rejected
         Body: { rejection_reason }
"""

from flask import Blueprint, jsonify, request

from cmcs.blueprints import register_claims_errors, rejection_reason
from cmcs.middleware.role_required import current_actor, require_role
from cmcs.models.user import ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR
from cmcs.services import dashboard_service
from cmcs.services.claim_lifecycle import attempt_transition
from cmcs.services.claim_service import serialize_claim, serialize_claims
from cmcs.utils.errors import outcome

manager_bp = register_claims_errors(
    Blueprint("manager", __name__, url_prefix="/api/v1/manager")
)


@manager_bp.route("/dashboard", methods=["GET"])
@require_role(ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR)
def dashboard():
    result = dashboard_service.manager_dashboard(
        current_actor(), lecturer_name=request.args.get("lecturer_name"),
    )
    result["claims"] = serialize_claims(result["claims"], include_documents=True)
    return jsonify(result)


@manager_bp.route("/claims/<int:claim_id>/approve", methods=["POST"])
@require_role(ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR)
def final_approve(claim_id):
    actor = current_actor()
    result = attempt_transition(claim_id, actor, "manager_approve")
    return outcome(
        result["message"],
        redirect=actor.dashboard_path,
        claim=serialize_claim(result["claim"], include_documents=False),
    )


@manager_bp.route("/claims/<int:claim_id>/reject", methods=["POST"])
@require_role(ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR)
def final_reject(claim_id):
    """Reject a claim at final review. Body: { rejection_reason }"""
    actor = current_actor()
    result = attempt_transition(claim_id, actor, "manager_reject", rejection_reason())
    return outcome(
        result["message"],
        redirect=actor.dashboard_path,
        claim=serialize_claim(result["claim"], include_documents=False),
    )
