"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

All 4 tables as defined in covercompare/models/database_models.py:
admins, clients, comparison_sessions, audit_logs.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── admins ────────────────────────────────────────────────────────────
    op.create_table(
        "admins",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("role", sa.String(50), nullable=False, server_default="admin"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── clients ───────────────────────────────────────────────────────────
    op.create_table(
        "clients",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("created_by", sa.String(255), nullable=True, index=True),
        sa.Column("member_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("surname", sa.String(255), nullable=False, server_default=""),
        sa.Column("id_number", sa.String(64), nullable=False, server_default="", index=True),
        sa.Column("age", sa.String(32), nullable=False, server_default=""),
        sa.Column("occupation", sa.String(255), nullable=False, server_default=""),
        sa.Column("family_composition", sa.String(255), nullable=False, server_default=""),
        sa.Column("income_bracket", sa.String(255), nullable=False, server_default=""),
        sa.Column("region", sa.String(255), nullable=False, server_default=""),
        sa.Column("primary_priority", sa.String(255), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── comparison_sessions ───────────────────────────────────────────────
    op.create_table(
        "comparison_sessions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("created_by", sa.String(255), nullable=True, index=True),
        sa.Column(
            "client_id", sa.String(64),
            sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("date", sa.String(32), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("client_profile", sa.JSON, nullable=False),
        sa.Column("providers", sa.JSON, nullable=False),
        sa.Column("categories", sa.JSON, nullable=False),
        sa.Column("report_title_override", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── audit_logs ────────────────────────────────────────────────────────
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("actor_id", sa.String(255), nullable=True, index=True),
        sa.Column("action", sa.String(100), nullable=False, index=True),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.String(255), nullable=True, index=True),
        sa.Column("meta", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("comparison_sessions")
    op.drop_table("clients")
    op.drop_table("admins")
