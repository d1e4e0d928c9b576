"""claims_documents_users

Creates the claim store:
  - users       — lecturers, coordinators, academic managers, administrators
  - claims      — workload claims and their decision fields
  - documents   — supporting documents, cascade-deleted with their claim

Tables created conditionally (IF NOT EXISTS semantics) to support idempotent
execution against databases that already received these tables via db.create_all()
in a development environment.

Revision ID: 5e1c0a9d2b47
Revises:
Create Date: 2026-10-18 09:12:40.318265
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '5e1c0a9d2b47'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── User ─────────────────────────────────────────────────────────────
    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("first_name", sa.String(length=50), nullable=False),
            sa.Column("last_name", sa.String(length=50), nullable=False),
            sa.Column(
                "role", sa.String(length=30), nullable=False,
                server_default="lecturer",
                comment="lecturer | coordinator | academic_manager | administrator",
            ),
            sa.Column("date_registered", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_role", "users", ["role"])

    # ── Claim ────────────────────────────────────────────────────────────
    if "claims" not in existing:
        op.create_table(
            "claims",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("submit_date", sa.DateTime(), nullable=False),
            sa.Column("period", sa.String(length=20), nullable=False),
            sa.Column("workload", sa.Numeric(18, 2), nullable=False),
            sa.Column("hourly_rate", sa.Numeric(18, 2), nullable=False),
            sa.Column(
                "amount", sa.Numeric(18, 4), nullable=False,
                comment="workload × hourly_rate, written once at submission.",
            ),
            sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="pending"),
            sa.Column("approval_date", sa.DateTime(), nullable=True),
            sa.Column("rejection_reason", sa.String(length=500), nullable=True),
            sa.Column("processed_by_user_id", sa.Integer(), nullable=True),
            sa.Column("processed_date", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["processed_by_user_id"], ["users.id"], ondelete="RESTRICT"),
            sa.CheckConstraint(
                "status IN ('pending', 'coordinator_approved', 'approved', 'rejected')",
                name="ck_claims_status",
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_claims_user_id", "claims", ["user_id"])
        op.create_index("ix_claims_status_submit_date", "claims", ["status", "submit_date"])

    # ── Document ─────────────────────────────────────────────────────────
    if "documents" not in existing:
        op.create_table(
            "documents",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("claim_id", sa.Integer(), nullable=False),
            sa.Column("file_name", sa.String(length=255), nullable=False),
            sa.Column(
                "stored_name", sa.String(length=100), nullable=False,
                comment="Random on-disk identifier; never the uploaded name.",
            ),
            sa.Column("content_type", sa.String(length=100), nullable=True),
            sa.Column("file_size", sa.BigInteger(), nullable=False),
            sa.Column("description", sa.String(length=500), nullable=True),
            sa.Column("upload_date", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["claim_id"], ["claims.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("stored_name"),
        )
        op.create_index("ix_documents_claim_id", "documents", ["claim_id"])


def downgrade():
    op.drop_index("ix_documents_claim_id", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_claims_status_submit_date", table_name="claims")
    op.drop_index("ix_claims_user_id", table_name="claims")
    op.drop_table("claims")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
