"""
User model — lecturers, coordinators, academic managers, administrators.

A user owns zero-or-more claims as submitter and may be referenced as a
claim's processor. Both relations are plain id columns on ``claims``; the
service layer resolves them with explicit lookups.
"""

from datetime import datetime, timezone

from cmcs.models import db

# ── Roles ─────────────────────────────────────────────────────────────────────

ROLE_LECTURER = "lecturer"
ROLE_COORDINATOR = "coordinator"
ROLE_ACADEMIC_MANAGER = "academic_manager"
ROLE_ADMINISTRATOR = "administrator"

VALID_ROLES = frozenset({
    ROLE_LECTURER,
    ROLE_COORDINATOR,
    ROLE_ACADEMIC_MANAGER,
    ROLE_ADMINISTRATOR,
})

# Roles allowed to look at claims they do not own
STAFF_ROLES = frozenset({ROLE_COORDINATOR, ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR})


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), unique=True, nullable=False)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    role = db.Column(db.String(30), nullable=False, default=ROLE_LECTURER)
    date_registered = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.Index("ix_users_role", "role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def can_be_managed_by(self, other: "User") -> bool:
        """Academic managers manage everyone except other academic managers."""
        return other.role == ROLE_ACADEMIC_MANAGER and self.role != ROLE_ACADEMIC_MANAGER

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "role": self.role,
            "date_registered": self.date_registered.isoformat() if self.date_registered else None,
        }

    def __repr__(self):
        return f"<User {self.id} {self.email} ({self.role})>"
