"""
Claim Lifecycle Service — role-gated status transitions.

Manages claim status transitions with:
  - Transition validation against CLAIM_TRANSITIONS (single table)
  - Role checks (coordinator / academic manager; administrator holds both)
  - Side effects (processor, processed date, approval date, rejection reason)
  - Compare-and-swap write: the UPDATE is conditioned on the status still
    being in the action's from-set, so a concurrent decision makes the
    later attempt fail instead of overwriting the first

4 transitions:
  coordinator_approve, coordinator_reject, manager_approve, manager_reject

Usage:
    from cmcs.services.claim_lifecycle import attempt_transition

    result = attempt_transition(
        claim_id=1,
        actor=Actor(id=7, role="coordinator"),
        action="coordinator_reject",
        reason="Insufficient documentation",
    )
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update

from cmcs.core.actor import Actor
from cmcs.core.exceptions import (
    IllegalTransitionError,
    InvalidReasonError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from cmcs.models import db
from cmcs.models.claim import (
    CLAIM_TRANSITIONS,
    STATUS_APPROVED,
    STATUS_REJECTED,
    Claim,
    ClaimState,
)
from cmcs.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500


def _clean_reason(reason: str | None) -> str:
    if reason is not None and not isinstance(reason, str):
        raise ValidationError("Rejection reason must be text",
                              details={"rejection_reason": "invalid"})
    cleaned = (reason or "").strip()
    if not cleaned:
        raise InvalidReasonError()
    if len(cleaned) > MAX_REASON_LENGTH:
        raise ValidationError(
            f"Rejection reason cannot be longer than {MAX_REASON_LENGTH} characters",
            details={"rejection_reason": "too_long"},
        )
    return cleaned


def _field_updates(rule: dict, actor: Actor, now: datetime, reason: str | None) -> dict:
    """Columns written by a successful transition, and nothing else."""
    values = {
        "status": rule["to"],
        "processed_by_user_id": actor.id,
        "processed_date": now,
    }
    if rule["to"] == STATUS_REJECTED:
        values["rejection_reason"] = reason
    else:
        values["rejection_reason"] = None
    if rule["to"] == STATUS_APPROVED:
        values["approval_date"] = now
    return values


def validate_transition(claim: Claim, action: str) -> dict:
    """
    Validate whether an action is valid for the claim's current status.

    Returns:
        {"valid": bool, "from": str, "to": str|None, "reason": str|None}
    """
    rule = CLAIM_TRANSITIONS.get(action)
    if not rule:
        return {"valid": False, "from": claim.status, "to": None,
                "reason": f"Unknown action: {action}"}

    if claim.status not in rule["from"]:
        return {"valid": False, "from": claim.status, "to": rule["to"],
                "reason": rule["illegal_message"]}

    return {"valid": True, "from": claim.status, "to": rule["to"], "reason": None}


def attempt_transition(
    claim_id: int,
    actor: Actor,
    action: str,
    reason: str | None = None,
) -> dict:
    """
    Execute a claim status transition on behalf of ``actor``.

    Checks run in a fixed order and all complete before any column is
    written: action known, role right, claim exists, reason present (for
    rejections), status in the from-set.

    Args:
        claim_id: PK of the claim
        actor: Explicit actor context (id + role)
        action: One of CLAIM_TRANSITIONS
        reason: Rejection reason; required and trimmed for *_reject actions

    Returns:
        {"claim", "previous_status", "new_status", "action", "message"}

    Raises:
        ValidationError, PermissionDeniedError, NotFoundError,
        InvalidReasonError, IllegalTransitionError, StorageFailureError
    """
    rule = CLAIM_TRANSITIONS.get(action)
    if not rule:
        raise ValidationError(f"Unknown action: {action}", details={"action": "invalid"})

    # 1. Role check
    if actor.role not in rule["roles"]:
        logger.warning(
            "Actor %s (%s) denied action %s on claim %s",
            actor.id, actor.role, action, claim_id,
            extra={"actor_id": actor.id, "claim_id": claim_id},
        )
        raise PermissionDeniedError(actor_id=actor.id, required=action)

    # 2. Lookup
    claim = db.session.get(Claim, claim_id)
    if claim is None:
        raise NotFoundError(resource="Claim", resource_id=claim_id)

    # 3. Reason
    cleaned_reason = _clean_reason(reason) if rule["requires_reason"] else None

    # 4. Status guard
    validation = validate_transition(claim, action)
    if not validation["valid"]:
        logger.info(
            "Illegal transition %s on claim %s (status=%s)",
            action, claim_id, claim.status,
            extra={"actor_id": actor.id, "claim_id": claim_id},
        )
        raise IllegalTransitionError(
            rule["illegal_message"], claim_id=claim_id, action=action,
            current_status=claim.status,
        )

    # 5. Conditional write (compare-and-swap on status)
    previous_status = claim.status
    now = datetime.now(timezone.utc)
    stmt = (
        update(Claim)
        .where(Claim.id == claim_id, Claim.status.in_(rule["from"]))
        .values(**_field_updates(rule, actor, now, cleaned_reason))
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount != 1:
        db.session.rollback()
        current = db.session.get(Claim, claim_id)
        logger.warning(
            "Claim %s changed status during %s; attempt discarded",
            claim_id, action,
            extra={"actor_id": actor.id, "claim_id": claim_id},
        )
        raise IllegalTransitionError(
            rule["illegal_message"], claim_id=claim_id, action=action,
            current_status=current.status if current else None,
        )
    commit_or_raise(f"claim {action}")
    db.session.refresh(claim)

    logger.info(
        "Claim %s %s → %s by user %s",
        claim.code, previous_status, claim.status, actor.id,
        extra={"actor_id": actor.id, "claim_id": claim_id},
    )

    return {
        "claim": claim,
        "previous_status": previous_status,
        "new_status": claim.status,
        "action": action,
        "message": rule["success_message"].format(claim_id=claim.id),
    }


def get_available_actions(claim: Claim, actor: Actor) -> list[str]:
    """List the actions ``actor`` may apply to the claim's current status."""
    actions = []
    for action, rule in CLAIM_TRANSITIONS.items():
        if actor.role in rule["roles"] and claim.status in rule["from"]:
            actions.append(action)
    return actions


def claim_state(claim: Claim) -> ClaimState:
    """Per-status view of the claim's decision fields."""
    return ClaimState.of(claim)
