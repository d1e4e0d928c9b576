"""
Dashboard Service — role-scoped claim listings and summary counts.

Views:
  coordinator   status ∈ {pending, coordinator_approved} unless a single
                status override is given; newest first
  manager       status ∈ {pending, coordinator_approved}, fixed; oldest
                first (FIFO review order)
  lecturer      own claims, every status; newest first
  uploadable    own claims still open for documents; newest first
  home summary  role-scoped status counts + five most recent claims

All queries are read-only. Summary counts are computed on their own queries
and do not depend on the name/status filters applied to the listing.
"""

import logging

from sqlalchemy import func, or_, select

from cmcs.core.actor import Actor
from cmcs.core.exceptions import PermissionDeniedError, ValidationError
from cmcs.models import db
from cmcs.models.claim import (
    CLAIM_STATUSES,
    OPEN_STATUSES,
    STATUS_APPROVED,
    STATUS_COORDINATOR_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    Claim,
)
from cmcs.models.user import User

logger = logging.getLogger(__name__)

RECENT_CLAIMS_LIMIT = 5


def _name_filter(stmt, lecturer_name: str | None):
    """Case-insensitive substring match on the submitter's first or last name.

    ``%`` and ``_`` in the term match themselves, not any text.
    """
    term = (lecturer_name or "").strip()
    if not term:
        return stmt
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return stmt.join(User, User.id == Claim.user_id).where(
        or_(
            func.lower(User.first_name).like(pattern, escape="\\"),
            func.lower(User.last_name).like(pattern, escape="\\"),
        )
    )


def _count(*conditions) -> int:
    stmt = select(func.count(Claim.id))
    for cond in conditions:
        stmt = stmt.where(cond)
    return db.session.execute(stmt).scalar_one()


def status_counts(user_id: int | None = None) -> dict:
    """Counts per status, optionally restricted to one owner."""
    stmt = select(Claim.status, func.count(Claim.id)).group_by(Claim.status)
    if user_id is not None:
        stmt = stmt.where(Claim.user_id == user_id)
    counts = {status: 0 for status in CLAIM_STATUSES}
    for status, n in db.session.execute(stmt).all():
        counts[status] = n
    counts["total"] = sum(counts[s] for s in CLAIM_STATUSES)
    return counts


# ═════════════════════════════════════════════════════════════════════════════
# Role views
# ═════════════════════════════════════════════════════════════════════════════


def coordinator_dashboard(actor: Actor, lecturer_name: str | None = None,
                          status: str | None = None) -> dict:
    """
    Claims awaiting coordinator attention.

    Returns:
        {"claims": [Claim], "total_pending": int,
         "coordinator_approved": int, "waiting_for_manager": int}
    """
    if not actor.can_coordinate:
        raise PermissionDeniedError(actor_id=actor.id, required="coordinator_dashboard")

    stmt = select(Claim)
    if status:
        if status not in CLAIM_STATUSES:
            raise ValidationError(
                f"status must be one of {list(CLAIM_STATUSES)}", details={"status": "invalid"},
            )
        stmt = stmt.where(Claim.status == status)
    else:
        stmt = stmt.where(Claim.status.in_(OPEN_STATUSES))
    stmt = _name_filter(stmt, lecturer_name)
    stmt = stmt.order_by(Claim.submit_date.desc(), Claim.id.desc())

    claims = list(db.session.execute(stmt).scalars().all())
    coordinator_approved = _count(Claim.status == STATUS_COORDINATOR_APPROVED)
    return {
        "claims": claims,
        "total_pending": _count(Claim.status == STATUS_PENDING),
        "coordinator_approved": coordinator_approved,
        "waiting_for_manager": coordinator_approved,
    }


def manager_dashboard(actor: Actor, lecturer_name: str | None = None) -> dict:
    """
    Claims needing final approval, oldest first.

    Returns:
        {"claims": [Claim], "total_pending": int, "coordinator_approved": int}
    """
    if not actor.can_manage:
        raise PermissionDeniedError(actor_id=actor.id, required="manager_dashboard")

    stmt = select(Claim).where(Claim.status.in_(OPEN_STATUSES))
    stmt = _name_filter(stmt, lecturer_name)
    stmt = stmt.order_by(Claim.submit_date.asc(), Claim.id.asc())

    return {
        "claims": list(db.session.execute(stmt).scalars().all()),
        "total_pending": _count(Claim.status == STATUS_PENDING),
        "coordinator_approved": _count(Claim.status == STATUS_COORDINATOR_APPROVED),
    }


def lecturer_history(actor: Actor) -> list[Claim]:
    """Every claim the actor submitted, newest first."""
    stmt = (
        select(Claim)
        .where(Claim.user_id == actor.id)
        .order_by(Claim.submit_date.desc(), Claim.id.desc())
    )
    return list(db.session.execute(stmt).scalars().all())


def uploadable_claims(actor: Actor) -> list[Claim]:
    """The actor's own claims that can still receive documents."""
    stmt = (
        select(Claim)
        .where(Claim.user_id == actor.id, Claim.status.in_(OPEN_STATUSES))
        .order_by(Claim.submit_date.desc(), Claim.id.desc())
    )
    return list(db.session.execute(stmt).scalars().all())


def home_summary(actor: Actor) -> dict:
    """Landing-page counts and recent claims.

    Lecturers see only their own claims; every other role sees all claims.
    """
    owner_id = None if actor.is_staff else actor.id
    counts = status_counts(owner_id)

    stmt = select(Claim)
    if owner_id is not None:
        stmt = stmt.where(Claim.user_id == owner_id)
    stmt = stmt.order_by(Claim.submit_date.desc(), Claim.id.desc()).limit(RECENT_CLAIMS_LIMIT)

    return {
        "pending_claims": counts[STATUS_PENDING],
        "coordinator_approved_claims": counts[STATUS_COORDINATOR_APPROVED],
        "accepted_claims": counts[STATUS_APPROVED],
        "rejected_claims": counts[STATUS_REJECTED],
        "total_claims": counts["total"],
        "recent_claims": list(db.session.execute(stmt).scalars().all()),
    }
