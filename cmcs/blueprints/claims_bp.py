"""
Claims Blueprint — lecturer submission, uploads and claim reads.

Routes:
  POST   /claims                        – submit a claim (JSON or multipart)
  GET    /claims                        – every claim (staff)
  GET    /claims/history                – own claims, newest first
  GET    /claims/uploadable             – own claims still open for documents
  GET    /claims/<id>                   – claim detail (owner or staff)
  POST   /claims/<id>/documents         – attach documents to an own claim

Multipart requests carry documents under the ``documents`` field.
"""

import logging

from flask import Blueprint, jsonify, request

from cmcs.blueprints import form_data, register_claims_errors
from cmcs.middleware.role_required import current_actor, require_actor, require_role
from cmcs.models.user import (
    ROLE_ACADEMIC_MANAGER,
    ROLE_ADMINISTRATOR,
    ROLE_COORDINATOR,
    ROLE_LECTURER,
)
from cmcs.services import claim_service, dashboard_service
from cmcs.services.claim_lifecycle import get_available_actions
from cmcs.utils.errors import api_error, outcome

logger = logging.getLogger(__name__)

claims_bp = register_claims_errors(Blueprint("claims", __name__, url_prefix="/api/v1"))


def _uploads():
    return request.files.getlist("documents")


# ═════════════════════════════════════════════════════════════════════════════
# Submission
# ═════════════════════════════════════════════════════════════════════════════


@claims_bp.route("/claims", methods=["POST"])
@require_role(ROLE_LECTURER, ROLE_ADMINISTRATOR)
def submit_claim():
    """Submit a new claim.

    Body: { period, workload, hourly_rate?, description? } plus optional
    ``documents`` files when sent as multipart/form-data.
    """
    actor = current_actor()
    result = claim_service.submit_claim(actor, form_data(), _uploads())
    return outcome(
        result["message"],
        redirect=actor.dashboard_path,
        status=201,
        claim=claim_service.serialize_claim(result["claim"]),
        documents=result["documents"],
    )


@claims_bp.route("/claims/<int:claim_id>/documents", methods=["POST"])
@require_role(ROLE_LECTURER, ROLE_ADMINISTRATOR)
def upload_documents(claim_id):
    """Attach documents to one of the actor's open claims."""
    actor = current_actor()
    report = claim_service.upload_documents(claim_id, actor, _uploads())

    if not report["uploaded"] and report["errors"]:
        first = report["errors"][0]
        return api_error(
            first["code"],
            first["error"],
            details={"errors": report["errors"], "skipped": report["skipped"]},
            redirect=actor.dashboard_path,
        )

    message = report.pop("message")
    return outcome(message, redirect=actor.dashboard_path, **report)


# ═════════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════════


@claims_bp.route("/claims", methods=["GET"])
@require_role(ROLE_COORDINATOR, ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR)
def list_claims():
    claims = claim_service.list_all_claims(current_actor())
    return jsonify(claim_service.serialize_claims(claims, include_documents=True))


@claims_bp.route("/claims/history", methods=["GET"])
@require_actor
def claim_history():
    """The actor's own claims, every status."""
    claims = dashboard_service.lecturer_history(current_actor())
    return jsonify(claim_service.serialize_claims(claims, include_documents=True))


@claims_bp.route("/claims/uploadable", methods=["GET"])
@require_actor
def uploadable_claims():
    claims = dashboard_service.uploadable_claims(current_actor())
    return jsonify(claim_service.serialize_claims(claims))


@claims_bp.route("/claims/<int:claim_id>", methods=["GET"])
@require_actor
def get_claim(claim_id):
    actor = current_actor()
    claim = claim_service.get_claim_for_actor(claim_id, actor)
    body = claim_service.serialize_claim(claim)
    body["state"] = claim.state.to_dict()
    body["available_actions"] = get_available_actions(claim, actor)
    return jsonify(body)
