"""Initial schema — Juni marketplace tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-01-05 00:00:00.000000

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


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # ── 1. families ─────────────────────────────────────────────────
    op.create_table(
        "families",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            unique=True,
            index=True,
            nullable=False,
            comment="Subject id issued by the identity layer",
        ),
        sa.Column("first_name", sa.String, nullable=False),
        sa.Column("last_name", sa.String, nullable=False),
        sa.Column("phone", sa.String, nullable=True),
        _created_at(),
    )

    # ── 2. companions ───────────────────────────────────────────────
    op.create_table(
        "companions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            unique=True,
            index=True,
            nullable=False,
        ),
        sa.Column("first_name", sa.String, nullable=False),
        sa.Column("last_name", sa.String, nullable=False),
        sa.Column("phone", sa.String, nullable=True),
        sa.Column("interests", postgresql.JSONB, nullable=False),
        sa.Column(
            "availability",
            sa.String,
            nullable=True,
            comment="full-time / part-time / flexible / weekends",
        ),
        sa.Column("city", sa.String, nullable=True),
        sa.Column("state", sa.String, nullable=True),
        sa.Column(
            "status",
            sa.String,
            server_default="APPLIED",
            index=True,
            nullable=False,
        ),
        sa.Column("stripe_account_id", sa.String, nullable=True),
        sa.Column(
            "stripe_account_status",
            sa.String,
            nullable=True,
            comment="pending / active / restricted",
        ),
        _created_at(),
    )

    # ── 3. seniors ──────────────────────────────────────────────────
    op.create_table(
        "seniors",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "family_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("families.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column("first_name", sa.String, nullable=False),
        sa.Column("nickname", sa.String, nullable=True),
        sa.Column("location", sa.String, nullable=True),
        sa.Column("interests", postgresql.JSONB, nullable=False),
        sa.Column("companion_qualities", postgresql.JSONB, nullable=False),
        sa.Column("social_style", postgresql.JSONB, nullable=False),
        sa.Column(
            "personality",
            postgresql.JSONB,
            nullable=True,
            comment="Big Five trait -> 0-100 score",
        ),
        sa.Column("conditions", postgresql.JSONB, nullable=False),
        sa.Column(
            "companion_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("companions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── 4. matches ──────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "senior_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("seniors.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "companion_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("companions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kindred_score", sa.Integer, nullable=False),
        sa.Column(
            "match_reasons",
            postgresql.JSONB,
            nullable=False,
            comment="Ordered display reasons",
        ),
        sa.Column("status", sa.String, server_default="PROPOSED", nullable=False),
        sa.Column(
            "proposed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("senior_id", "companion_id", name="uq_match_pair"),
    )

    # ── 5. payouts (no FK to companions; history outlives accounts) ─
    op.create_table(
        "payouts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "companion_id",
            postgresql.UUID(as_uuid=True),
            index=True,
            nullable=False,
        ),
        sa.Column("period", sa.String, nullable=False, comment="Display label"),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("gross_amount_cents", sa.Integer, nullable=False),
        sa.Column("platform_fee_cents", sa.Integer, nullable=False),
        sa.Column("net_amount_cents", sa.Integer, nullable=False),
        sa.Column("status", sa.String, server_default="PROCESSING", nullable=False),
        sa.Column("stripe_transfer_id", sa.String, nullable=True),
        sa.Column("failure_reason", sa.Text, nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )

    # ── 6. visits ───────────────────────────────────────────────────
    op.create_table(
        "visits",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "senior_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("seniors.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "companion_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("companions.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_min", sa.Integer, nullable=False, comment="Planned length"),
        sa.Column("visit_type", sa.String, server_default="Regular visit", nullable=False),
        sa.Column("status", sa.String, server_default="SCHEDULED", nullable=False),
        sa.Column("check_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_in_lat", sa.Float, nullable=True),
        sa.Column("check_in_lng", sa.Float, nullable=True),
        sa.Column("check_out_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_lat", sa.Float, nullable=True),
        sa.Column("check_out_lng", sa.Float, nullable=True),
        sa.Column("actual_minutes", sa.Integer, nullable=True),
        sa.Column("mood", sa.String, nullable=True),
        sa.Column("activities", postgresql.JSONB, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("cancellation_reason", sa.String, nullable=True),
        sa.Column(
            "payout_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("payouts.id", ondelete="SET NULL"),
            index=True,
            nullable=True,
        ),
        sa.Column("billed_hours", sa.Float, nullable=True),
        _created_at(),
    )

    # Payout runs select completed, unbilled visits per companion and period.
    op.create_index(
        "ix_visits_companion_status_scheduled",
        "visits",
        ["companion_id", "status", "scheduled_at"],
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_index("ix_visits_companion_status_scheduled", table_name="visits")
    op.drop_table("visits")
    op.drop_table("payouts")
    op.drop_table("matches")
    op.drop_table("seniors")
    op.drop_table("companions")
    op.drop_table("families")
