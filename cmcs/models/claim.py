"""
Claim & Document models — the claim store.

Claim lifecycle:
    pending ──coordinator_approve──▶ coordinator_approved ──manager_approve──▶ approved
       │                                   │
       ├──coordinator_reject / manager_reject──▶ rejected
       └──manager_approve──▶ approved

approved and rejected are terminal. The transition table below is the only
place the guards live; cmcs.services.claim_lifecycle enforces it.

Relations are plain id columns (user_id, processed_by_user_id, claim_id).
Services resolve related rows explicitly with db.session.get().
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from cmcs.models import db
from cmcs.models.user import ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR, ROLE_COORDINATOR

__all__ = [
    "CLAIM_STATUSES",
    "CLAIM_TRANSITIONS",
    "Claim",
    "ClaimState",
    "DEFAULT_HOURLY_RATE",
    "Document",
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
]


def _utcnow():
    return datetime.now(timezone.utc)


# ── Statuses ──────────────────────────────────────────────────────────────────

STATUS_PENDING = "pending"
STATUS_COORDINATOR_APPROVED = "coordinator_approved"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

CLAIM_STATUSES = (
    STATUS_PENDING,
    STATUS_COORDINATOR_APPROVED,
    STATUS_APPROVED,
    STATUS_REJECTED,
)

# Claims still awaiting a decision; documents may be attached only here
OPEN_STATUSES = frozenset({STATUS_PENDING, STATUS_COORDINATOR_APPROVED})
TERMINAL_STATUSES = frozenset({STATUS_APPROVED, STATUS_REJECTED})

DEFAULT_HOURLY_RATE = Decimal("250.00")

# ── Transition table ──────────────────────────────────────────────────────────
# action → from-set, target status, roles holding the right, whether a
# rejection reason is mandatory, and the messages for a failed guard and a
# successful transition.

CLAIM_TRANSITIONS = {
    "coordinator_approve": {
        "from": [STATUS_PENDING],
        "to": STATUS_COORDINATOR_APPROVED,
        "roles": [ROLE_COORDINATOR, ROLE_ADMINISTRATOR],
        "requires_reason": False,
        "illegal_message": "Only pending claims can be approved by coordinators.",
        "success_message": "Claim #{claim_id} has been approved by coordinator and sent to manager for final approval!",
    },
    "coordinator_reject": {
        "from": [STATUS_PENDING],
        "to": STATUS_REJECTED,
        "roles": [ROLE_COORDINATOR, ROLE_ADMINISTRATOR],
        "requires_reason": True,
        "illegal_message": "Only pending claims can be rejected by coordinators.",
        "success_message": "Claim #{claim_id} has been rejected.",
    },
    "manager_approve": {
        "from": [STATUS_PENDING, STATUS_COORDINATOR_APPROVED],
        "to": STATUS_APPROVED,
        "roles": [ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR],
        "requires_reason": False,
        "illegal_message": "Only pending or coordinator-approved claims can be finally approved.",
        "success_message": "Claim #{claim_id} has been finally approved and settled!",
    },
    "manager_reject": {
        "from": [STATUS_PENDING, STATUS_COORDINATOR_APPROVED],
        "to": STATUS_REJECTED,
        "roles": [ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR],
        "requires_reason": True,
        "illegal_message": "Only pending or coordinator-approved claims can be rejected.",
        "success_message": "Claim #{claim_id} has been rejected.",
    },
}


# ── Per-status view ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ClaimState:
    """Status-shaped view of a claim's decision fields.

    Each status carries only the fields that are meaningful for it, so an
    approved claim never exposes a rejection reason and a pending claim never
    exposes a processor.
    """

    status: str
    processed_by_user_id: int | None = None
    processed_date: datetime | None = None
    approval_date: datetime | None = None
    rejection_reason: str | None = None

    @classmethod
    def of(cls, claim: "Claim") -> "ClaimState":
        if claim.status == STATUS_PENDING:
            return cls(status=STATUS_PENDING)
        if claim.status == STATUS_COORDINATOR_APPROVED:
            return cls(
                status=STATUS_COORDINATOR_APPROVED,
                processed_by_user_id=claim.processed_by_user_id,
                processed_date=claim.processed_date,
            )
        if claim.status == STATUS_APPROVED:
            return cls(
                status=STATUS_APPROVED,
                processed_by_user_id=claim.processed_by_user_id,
                processed_date=claim.processed_date,
                approval_date=claim.approval_date,
            )
        if claim.status == STATUS_REJECTED:
            if not claim.rejection_reason:
                raise ValueError(f"Claim {claim.id} is rejected without a reason")
            return cls(
                status=STATUS_REJECTED,
                processed_by_user_id=claim.processed_by_user_id,
                processed_date=claim.processed_date,
                rejection_reason=claim.rejection_reason,
            )
        raise ValueError(f"Unknown claim status: {claim.status!r}")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self):
        d = {"status": self.status}
        if self.processed_by_user_id is not None:
            d["processed_by_user_id"] = self.processed_by_user_id
            d["processed_date"] = self.processed_date.isoformat() if self.processed_date else None
        if self.approval_date is not None:
            d["approval_date"] = self.approval_date.isoformat()
        if self.rejection_reason is not None:
            d["rejection_reason"] = self.rejection_reason
        return d


# ═════════════════════════════════════════════════════════════════════════════
# Claim
# ═════════════════════════════════════════════════════════════════════════════


class Claim(db.Model):
    """A lecturer's workload-hours compensation request."""

    __tablename__ = "claims"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False,
    )
    submit_date = db.Column(db.DateTime, nullable=False, default=_utcnow)
    period = db.Column(db.String(20), nullable=False)
    workload = db.Column(db.Numeric(18, 2), nullable=False)
    hourly_rate = db.Column(db.Numeric(18, 2), nullable=False, default=DEFAULT_HOURLY_RATE)
    # Written once from workload × hourly_rate at submission. Both inputs carry
    # at most two places, so four places hold the product exactly.
    amount = db.Column(db.Numeric(18, 4), nullable=False)
    description = db.Column(db.String(500), nullable=False, default="")
    status = db.Column(db.String(30), nullable=False, default=STATUS_PENDING)
    approval_date = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.String(500), nullable=True)
    processed_by_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="RESTRICT"), nullable=True,
    )
    processed_date = db.Column(db.DateTime, nullable=True)

    documents = db.relationship(
        "Document",
        back_populates="claim",
        lazy="select",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Document.upload_date",
    )

    __table_args__ = (
        db.Index("ix_claims_user_id", "user_id"),
        db.Index("ix_claims_status_submit_date", "status", "submit_date"),
        db.CheckConstraint(
            "status IN ('pending', 'coordinator_approved', 'approved', 'rejected')",
            name="ck_claims_status",
        ),
    )

    @property
    def total_amount(self) -> Decimal:
        return Decimal(self.workload) * Decimal(self.hourly_rate)

    @property
    def code(self) -> str:
        return f"CL-{self.id:04d}" if self.id is not None else "CL-NEW"

    @property
    def state(self) -> ClaimState:
        return ClaimState.of(self)

    def to_dict(self, include_documents=False, submitter=None, processor=None):
        d = {
            "id": self.id,
            "code": self.code,
            "user_id": self.user_id,
            "period": self.period,
            "workload": str(self.workload),
            "hourly_rate": str(self.hourly_rate),
            "amount": str(self.amount),
            "total_amount": str(self.total_amount),
            "description": self.description,
            "status": self.status,
            "submit_date": self.submit_date.isoformat() if self.submit_date else None,
            "approval_date": self.approval_date.isoformat() if self.approval_date else None,
            "rejection_reason": self.rejection_reason,
            "processed_by_user_id": self.processed_by_user_id,
            "processed_date": self.processed_date.isoformat() if self.processed_date else None,
        }
        if submitter is not None:
            d["submitter"] = {"id": submitter.id, "full_name": submitter.full_name}
        if processor is not None:
            d["processed_by"] = {"id": processor.id, "full_name": processor.full_name}
        if include_documents:
            d["documents"] = [doc.to_dict() for doc in self.documents]
        return d

    def __repr__(self):
        return f"<Claim {self.code} {self.status}>"


# ═════════════════════════════════════════════════════════════════════════════
# Document
# ═════════════════════════════════════════════════════════════════════════════


class Document(db.Model):
    """Supporting document attached to a claim. Never mutated after upload."""

    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    claim_id = db.Column(
        db.Integer, db.ForeignKey("claims.id", ondelete="CASCADE"), nullable=False,
    )
    file_name = db.Column(db.String(255), nullable=False)
    # Random identifier used on disk; never derived from the uploaded name
    stored_name = db.Column(db.String(100), nullable=False, unique=True)
    content_type = db.Column(db.String(100), nullable=True)
    file_size = db.Column(db.BigInteger, nullable=False)
    description = db.Column(db.String(500), nullable=True)
    upload_date = db.Column(db.DateTime, nullable=False, default=_utcnow)

    claim = db.relationship("Claim", back_populates="documents")

    __table_args__ = (
        db.Index("ix_documents_claim_id", "claim_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "claim_id": self.claim_id,
            "file_name": self.file_name,
            "stored_name": self.stored_name,
            "content_type": self.content_type,
            "file_size": self.file_size,
            "description": self.description,
            "upload_date": self.upload_date.isoformat() if self.upload_date else None,
        }
