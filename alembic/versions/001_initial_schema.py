"""Initial schema — the five Campus Crush tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-09-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String, unique=True, index=True, nullable=False),
        sa.Column(
            "password_hash",
            sa.String,
            nullable=False,
            comment="scrypt$<salt>$<digest>",
        ),
        sa.Column("gender", sa.String, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("gender IN ('male', 'female')", name="ck_users_gender"),
    )

    # ── 2. profiles (1:1 with users) ────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("course", sa.String, nullable=True),
        sa.Column("year", sa.String, nullable=True),
        sa.Column("department", sa.String, nullable=True),
        sa.Column("class_section", sa.String, nullable=True),
        sa.Column(
            "interests",
            postgresql.JSONB,
            nullable=True,
            comment="Array of interest strings",
        ),
        sa.Column("nicknames", sa.String, nullable=True),
        sa.Column("habits", sa.String, nullable=True),
        sa.Column("location", sa.String, nullable=True),
        sa.Column("hometown", sa.String, nullable=True),
        sa.Column("dob", sa.String, nullable=True),
        sa.Column("profile_pic_url", sa.String, nullable=True),
        sa.Column(
            "social_links",
            postgresql.JSONB,
            nullable=True,
            comment="{instagram, facebook, linkedin, twitter}",
        ),
        sa.Column("ai_enhanced_bio", sa.Text, nullable=True),
        sa.Column(
            "ai_tags",
            postgresql.JSONB,
            nullable=True,
            comment="Array of standardised interest tags",
        ),
    )

    # ── 3. connections (directed swipe edges) ───────────────────────
    op.create_table(
        "connections",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "sender_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.String,
            server_default="pending",
            nullable=False,
            comment="pending / accepted / rejected",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("sender_id", "receiver_id", name="uq_connection_pair"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')",
            name="ck_connections_status",
        ),
    )

    # ── 4. messages (append-only) ───────────────────────────────────
    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "sender_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_messages_pair_created",
        "messages",
        ["sender_id", "receiver_id", "created_at"],
    )

    # ── 5. reports ──────────────────────────────────────────────────
    op.create_table(
        "reports",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "reporter_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reported_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("reports")

    op.drop_index("ix_messages_pair_created", table_name="messages")
    op.drop_table("messages")

    op.drop_table("connections")
    op.drop_table("profiles")
    op.drop_table("users")
