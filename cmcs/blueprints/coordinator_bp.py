"""
Coordinator Blueprint — first-stage review.

Routes:
  GET    /coordinator/dashboard                 – open claims, newest first
         ?lecturer_name=<substring>  &status=<single status override>
  POST   /coordinator/claims/<id>/approve       – pending → coordinator_approved
  POST   /coordinator/claims/<id>/reject        – pending → rejected
         Body: { rejection_reason }
"""

from flask import Blueprint, jsonify, request

from cmcs.blueprints import register_claims_errors, rejection_reason
from cmcs.middleware.role_required import current_actor, require_role
from cmcs.models.user import ROLE_ADMINISTRATOR, ROLE_COORDINATOR
from cmcs.services import dashboard_service
from cmcs.services.claim_lifecycle import attempt_transition
from cmcs.services.claim_service import serialize_claim, serialize_claims
from cmcs.utils.errors import outcome

coordinator_bp = register_claims_errors(
    Blueprint("coordinator", __name__, url_prefix="/api/v1/coordinator")
)


@coordinator_bp.route("/dashboard", methods=["GET"])
@require_role(ROLE_COORDINATOR, ROLE_ADMINISTRATOR)
def dashboard():
    result = dashboard_service.coordinator_dashboard(
        current_actor(),
        lecturer_name=request.args.get("lecturer_name"),
        status=request.args.get("status") or None,
    )
    result["claims"] = serialize_claims(result["claims"], include_documents=True)
    return jsonify(result)


@coordinator_bp.route("/claims/<int:claim_id>/approve", methods=["POST"])
@require_role(ROLE_COORDINATOR, ROLE_ADMINISTRATOR)
def approve(claim_id):
    actor = current_actor()
    result = attempt_transition(claim_id, actor, "coordinator_approve")
    return outcome(
        result["message"],
        redirect=actor.dashboard_path,
        claim=serialize_claim(result["claim"], include_documents=False),
    )


@coordinator_bp.route("/claims/<int:claim_id>/reject", methods=["POST"])
@require_role(ROLE_COORDINATOR, ROLE_ADMINISTRATOR)
def reject(claim_id):
    actor = current_actor()
    result = attempt_transition(claim_id, actor, "coordinator_reject", rejection_reason())
    return outcome(
        result["message"],
        redirect=actor.dashboard_path,
        claim=serialize_claim(result["claim"], include_documents=False),
    )
