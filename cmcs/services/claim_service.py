"""
Claim Service — lecturer submission and claim reads.

Business rules:
    - Only lecturers (and administrators) submit claims.
    - amount is computed as workload × hourly_rate at submission and is
      never accepted from the client.
    - Document failures during submission are reported but never undo the
      claim: the claim is committed first, documents attach afterwards.
    - Owners read their own claims; coordinators, academic managers and
      administrators read any claim.

Related users (submitter, processor) are loaded by id, in one query per
listing, rather than through relationship traversal.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from flask import current_app
from sqlalchemy import select

from cmcs.core.actor import Actor
from cmcs.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from cmcs.models import db
from cmcs.models.claim import DEFAULT_HOURLY_RATE, STATUS_PENDING, Claim
from cmcs.models.user import User
from cmcs.services.document_service import attach_documents
from cmcs.utils.helpers import commit_or_raise, parse_decimal

logger = logging.getLogger(__name__)

MIN_WORKLOAD = Decimal("0.1")
MAX_PERIOD_LENGTH = 20
MAX_DESCRIPTION_LENGTH = 500
# Decimal places stored for workload and hourly_rate
AMOUNT_PLACES = 2


# ── Private helpers ────────────────────────────────────────────────────────────


def _default_rate() -> Decimal:
    configured = current_app.config.get("DEFAULT_HOURLY_RATE")
    return Decimal(str(configured)) if configured is not None else DEFAULT_HOURLY_RATE


def _text(data: dict, field: str, errors: dict) -> str:
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        errors[field] = f"{field.capitalize()} must be text"
        return ""
    return value.strip()


def _validate_submission(data: dict) -> dict:
    """Normalise and validate claim form input. Raises ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError("Claim data must be an object", details={"body": "invalid"})
    errors = {}

    period = _text(data, "period", errors)
    if not period and "period" not in errors:
        errors["period"] = "Period is required"
    elif len(period) > MAX_PERIOD_LENGTH:
        errors["period"] = f"Period cannot be longer than {MAX_PERIOD_LENGTH} characters"

    description = _text(data, "description", errors)
    if len(description) > MAX_DESCRIPTION_LENGTH:
        errors["description"] = f"Description cannot be longer than {MAX_DESCRIPTION_LENGTH} characters"

    workload = rate = None
    try:
        workload = parse_decimal(data.get("workload"), "workload", places=AMOUNT_PLACES)
        if workload < MIN_WORKLOAD:
            errors["workload"] = "Workload must be greater than 0"
    except ValidationError as e:
        errors["workload"] = e.message

    try:
        rate = parse_decimal(data.get("hourly_rate"), "hourly_rate",
                             default=_default_rate(), places=AMOUNT_PLACES)
        if rate < 0:
            errors["hourly_rate"] = "Hourly rate cannot be negative"
    except ValidationError as e:
        errors["hourly_rate"] = e.message

    if errors:
        raise ValidationError("; ".join(errors.values()), details=errors)

    return {
        "period": period,
        "description": description,
        "workload": workload,
        "hourly_rate": rate,
    }


def users_by_id(ids) -> dict[int, User]:
    """Batch-load users for a set of ids."""
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    rows = db.session.execute(select(User).where(User.id.in_(wanted))).scalars().all()
    return {u.id: u for u in rows}


def serialize_claims(claims, include_documents=False) -> list[dict]:
    """to_dict() a list of claims with submitter/processor names resolved."""
    users = users_by_id(
        [c.user_id for c in claims] + [c.processed_by_user_id for c in claims]
    )
    return [
        c.to_dict(
            include_documents=include_documents,
            submitter=users.get(c.user_id),
            processor=users.get(c.processed_by_user_id),
        )
        for c in claims
    ]


def serialize_claim(claim: Claim, include_documents=True) -> dict:
    return serialize_claims([claim], include_documents=include_documents)[0]


# ── Public API ─────────────────────────────────────────────────────────────────


def submit_claim(actor: Actor, data: dict, files=None, *, storage=None) -> dict:
    """Create a Pending claim for ``actor`` and attach any uploaded documents.

    Args:
        actor:  Submitting lecturer.
        data:   {period, workload, hourly_rate?, description?}
        files:  Optional iterable of uploads (see document_service).

    Returns:
        {"claim": Claim, "documents": {"uploaded", "errors", "skipped"}, "message": str}

    Raises:
        PermissionDeniedError, ValidationError, StorageFailureError
    """
    if not actor.can_submit:
        raise PermissionDeniedError("Only lecturers can submit claims.", actor_id=actor.id,
                                    required="submit_claim")

    values = _validate_submission(data)

    claim = Claim(
        user_id=actor.id,
        period=values["period"],
        workload=values["workload"],
        hourly_rate=values["hourly_rate"],
        amount=values["workload"] * values["hourly_rate"],
        description=values["description"],
        submit_date=datetime.now(timezone.utc),
        status=STATUS_PENDING,
    )
    db.session.add(claim)
    commit_or_raise("submit claim")

    logger.info(
        "Claim %s submitted by user %s (%s h × %s)",
        claim.code, actor.id, values["workload"], values["hourly_rate"],
        extra={"actor_id": actor.id, "claim_id": claim.id},
    )

    report = {"uploaded": [], "errors": [], "skipped": []}
    files = [f for f in (files or []) if f and f.filename]
    if files:
        report = attach_documents(claim.id, files, storage=storage)

    message = "Claim submitted successfully!"
    if report["errors"]:
        message += f" {len(report['errors'])} document(s) could not be uploaded."

    return {"claim": claim, "documents": report, "message": message}


def get_claim_for_actor(claim_id: int, actor: Actor) -> Claim:
    """Fetch a claim the actor is allowed to read.

    Raises:
        NotFoundError: no such claim.
        PermissionDeniedError: a non-staff actor asked for someone else's claim.
    """
    claim = db.session.get(Claim, claim_id)
    if claim is None:
        raise NotFoundError(resource="Claim", resource_id=claim_id)
    if claim.user_id != actor.id and not actor.is_staff:
        raise PermissionDeniedError("You can only view your own claims.", actor_id=actor.id)
    return claim


def list_all_claims(actor: Actor) -> list[Claim]:
    """Every claim, newest first. Staff only."""
    if not actor.is_staff:
        raise PermissionDeniedError(actor_id=actor.id, required="list_all_claims")
    stmt = select(Claim).order_by(Claim.submit_date.desc(), Claim.id.desc())
    return list(db.session.execute(stmt).scalars().all())


def upload_documents(claim_id: int, actor: Actor, files, *, storage=None) -> dict:
    """Post-submission upload by the claim's owner.

    Returns the attach_documents report plus a summary message.
    """
    files = [f for f in (files or []) if f and f.filename]
    if not files:
        raise ValidationError("Please select at least one document to upload.",
                              details={"files": "required"})
    report = attach_documents(claim_id, files, owner_id=actor.id, storage=storage)
    uploaded = len(report["uploaded"])
    report["message"] = (
        f"{uploaded} document(s) uploaded successfully for claim CL-{claim_id:04d}!"
    )
    return report
