"""
Actor context — who is performing an operation.

Resolved once at the HTTP boundary (JWT or dev header) and passed explicitly
into every service call. Services never read the acting user from request
globals.
"""

from dataclasses import dataclass

from cmcs.models.user import (
    ROLE_ACADEMIC_MANAGER,
    ROLE_ADMINISTRATOR,
    ROLE_COORDINATOR,
    ROLE_LECTURER,
    STAFF_ROLES,
    VALID_ROLES,
)


@dataclass(frozen=True)
class Actor:
    id: int
    role: str

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(f"Unknown role: {self.role!r}")

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=user.role)

    def has_role(self, *roles: str) -> bool:
        return self.role in roles

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def can_coordinate(self) -> bool:
        return self.role in (ROLE_COORDINATOR, ROLE_ADMINISTRATOR)

    @property
    def can_manage(self) -> bool:
        return self.role in (ROLE_ACADEMIC_MANAGER, ROLE_ADMINISTRATOR)

    @property
    def can_submit(self) -> bool:
        return self.role in (ROLE_LECTURER, ROLE_ADMINISTRATOR)

    @property
    def dashboard_path(self) -> str:
        """Where the presentation layer sends this actor after an action."""
        if self.role == ROLE_COORDINATOR:
            return "/api/v1/coordinator/dashboard"
        if self.role == ROLE_ACADEMIC_MANAGER:
            return "/api/v1/manager/dashboard"
        if self.role == ROLE_LECTURER:
            return "/api/v1/claims/history"
        return "/api/v1/dashboard"
