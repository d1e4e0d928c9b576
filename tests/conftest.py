"""
Shared pytest fixtures for the CMCS test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - lecturer / other_lecturer / coordinator / manager / admin: users per role
    - storage: LocalFileStorage rooted in a per-test tmp dir
"""

import io
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from werkzeug.datastructures import FileStorage

from cmcs import create_app
from cmcs.core.actor import Actor
from cmcs.models import db as _db
from cmcs.models.claim import Claim
from cmcs.models.user import (
    ROLE_ACADEMIC_MANAGER,
    ROLE_ADMINISTRATOR,
    ROLE_COORDINATOR,
    ROLE_LECTURER,
    User,
)
from cmcs.services.storage import LocalFileStorage


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "uploads"))


# ═════════════════════════════════════════════════════════════════════════════
# ORM Helper Factories (DB-level, bypass services to set arbitrary states)
# ═════════════════════════════════════════════════════════════════════════════


def make_user(role: str, first_name: str = "Test", last_name: str = "User",
              email: str | None = None) -> User:
    """Create and commit a User with the given role."""
    count = _db.session.query(User).count() + 1
    user = User(
        email=email or f"{role}{count}@cmcs.test",
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    _db.session.add(user)
    _db.session.commit()
    return user


def make_claim(user: User, status: str = "pending", *, workload="10", hourly_rate="250.00",
               period="2026-09", submitted: datetime | None = None,
               processor: User | None = None, rejection_reason: str | None = None,
               claim_id: int | None = None) -> Claim:
    """Create a Claim at the specified status (bypasses guards)."""
    workload = Decimal(workload)
    hourly_rate = Decimal(hourly_rate)
    claim = Claim(
        id=claim_id,
        user_id=user.id,
        period=period,
        workload=workload,
        hourly_rate=hourly_rate,
        amount=workload * hourly_rate,
        description="Seminar hours",
        status=status,
        submit_date=submitted or datetime.now(timezone.utc),
        processed_by_user_id=processor.id if processor else None,
        processed_date=datetime.now(timezone.utc) if processor else None,
        rejection_reason=rejection_reason,
    )
    if status == "rejected" and rejection_reason is None:
        claim.rejection_reason = "Seeded rejection"
    _db.session.add(claim)
    _db.session.commit()
    return claim


def days_ago(n: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=n)


def upload(name: str, content: bytes = b"%PDF-1.4 test", content_type: str = "application/pdf"):
    """A werkzeug FileStorage like the ones request.files yields."""
    return FileStorage(stream=io.BytesIO(content), filename=name, content_type=content_type)


def actor_for(user: User) -> Actor:
    return Actor.from_user(user)


def headers_for(user: User) -> dict:
    """Dev-mode identity header (API_AUTH_ENABLED is false under testing)."""
    return {"X-User-Id": str(user.id)}


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def lecturer():
    return make_user(ROLE_LECTURER, "Thandi", "Mokoena")


@pytest.fixture()
def other_lecturer():
    return make_user(ROLE_LECTURER, "Johan", "Botha")


@pytest.fixture()
def coordinator():
    return make_user(ROLE_COORDINATOR, "Pieter", "van Wyk")


@pytest.fixture()
def manager():
    return make_user(ROLE_ACADEMIC_MANAGER, "Aisha", "Naidoo")


@pytest.fixture()
def admin():
    return make_user(ROLE_ADMINISTRATOR, "Sam", "Dlamini")
