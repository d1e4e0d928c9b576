"""
CMCS — Contract Monthly Claim System
Flask Application Factory.

Usage:
    from cmcs import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError

from cmcs.config import config
from cmcs.middleware.actor_context import init_actor_context
from cmcs.middleware.logging_config import configure_logging
from cmcs.middleware.rate_limiter import init_rate_limits
from cmcs.middleware.timing import init_request_timing
from cmcs.models import db
from cmcs.utils.errors import E, api_error

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # ── Request timing + actor resolution ────────────────────────────────
    init_request_timing(app)
    init_actor_context(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from cmcs.models import claim as _claim_models  # noqa: F401
    from cmcs.models import user as _user_models    # noqa: F401

    # ── Auto-create tables outside tests (CREATE IF NOT EXISTS) ──────────
    if not app.config.get("TESTING"):
        with app.app_context():
            try:
                db.create_all()
            except SQLAlchemyError as e:
                app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from cmcs.blueprints.claims_bp import claims_bp
    from cmcs.blueprints.coordinator_bp import coordinator_bp
    from cmcs.blueprints.health_bp import health_bp
    from cmcs.blueprints.home_bp import home_bp
    from cmcs.blueprints.manager_bp import manager_bp

    app.register_blueprint(claims_bp)
    app.register_blueprint(coordinator_bp)
    app.register_blueprint(manager_bp)
    app.register_blueprint(home_bp)
    app.register_blueprint(health_bp)

    _register_cli(app)
    _register_error_handlers(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, f"Not found: {request.path}")

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(413)
    def too_large(e):
        return api_error(E.FILE_TOO_LARGE, "Request body too large")

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.VALIDATION_INVALID, "Too many requests", status=429)

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("create-user")
    @click.option("--email", required=True)
    @click.option("--first-name", required=True)
    @click.option("--last-name", required=True)
    @click.option("--role", default="lecturer", show_default=True)
    def create_user_cmd(email, first_name, last_name, role):
        """Provision a user and print an access token for them."""
        from cmcs.models.user import VALID_ROLES, User
        from cmcs.services.jwt_service import generate_access_token
        from cmcs.utils.helpers import commit_or_raise

        if role not in VALID_ROLES:
            raise click.BadParameter(f"role must be one of {sorted(VALID_ROLES)}")
        user = User(email=email, first_name=first_name, last_name=last_name, role=role)
        db.session.add(user)
        commit_or_raise("create user")
        logger.info("Created user %s (%s) id=%s", email, role, user.id)
        click.echo(generate_access_token(user.id, user.role))

    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Seed demo users (one per role) and a handful of claims."""
        from cmcs.models.claim import (
            STATUS_APPROVED,
            STATUS_COORDINATOR_APPROVED,
            STATUS_PENDING,
            STATUS_REJECTED,
            Claim,
        )
        from cmcs.models.user import (
            ROLE_ACADEMIC_MANAGER,
            ROLE_ADMINISTRATOR,
            ROLE_COORDINATOR,
            ROLE_LECTURER,
            User,
        )
        from cmcs.utils.helpers import commit_or_raise

        if db.session.query(User).count():
            logger.info("Users already present; seed-demo skipped.")
            return

        users = {
            role: User(email=f"{role}@cmcs.local", first_name=first, last_name=last, role=role)
            for role, first, last in (
                (ROLE_LECTURER, "Thandi", "Mokoena"),
                (ROLE_COORDINATOR, "Pieter", "van Wyk"),
                (ROLE_ACADEMIC_MANAGER, "Aisha", "Naidoo"),
                (ROLE_ADMINISTRATOR, "Sam", "Dlamini"),
            )
        }
        db.session.add_all(users.values())
        commit_or_raise("seed users")

        lecturer = users[ROLE_LECTURER]
        coordinator = users[ROLE_COORDINATOR]
        manager = users[ROLE_ACADEMIC_MANAGER]
        now = datetime.now(timezone.utc)
        rate = Decimal("250.00")
        seeds = [
            ("2026-07", Decimal("12"), STATUS_PENDING, None, None),
            ("2026-06", Decimal("20"), STATUS_COORDINATOR_APPROVED, coordinator, None),
            ("2026-05", Decimal("16.5"), STATUS_APPROVED, manager, None),
            ("2026-04", Decimal("8"), STATUS_REJECTED, coordinator, "Timesheet missing"),
        ]
        for offset, (period, hours, status, processor, reason) in enumerate(seeds):
            submitted = now - timedelta(days=30 * offset)
            db.session.add(Claim(
                user_id=lecturer.id,
                period=period,
                workload=hours,
                hourly_rate=rate,
                amount=hours * rate,
                description=f"Lecturing hours for {period}",
                status=status,
                submit_date=submitted,
                processed_by_user_id=processor.id if processor else None,
                processed_date=submitted + timedelta(days=2) if processor else None,
                approval_date=submitted + timedelta(days=2) if status == STATUS_APPROVED else None,
                rejection_reason=reason,
            ))
        commit_or_raise("seed claims")
        logger.info("Seeded %d users and %d claims.", len(users), len(seeds))
