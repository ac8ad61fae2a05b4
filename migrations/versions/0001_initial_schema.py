"""initial schema

Revision ID: 0001
Revises:
Create Date: 2025-11-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _reflection_columns() -> list[sa.Column]:
    return [
        sa.Column("achievements", sa.JSON(), nullable=True),
        sa.Column("commitments", sa.JSON(), nullable=True),
        sa.Column("mood_overall", sa.String(32), nullable=True),
        sa.Column("mood_reason", sa.String(160), nullable=True),
        sa.Column("flashback", sa.String(160), nullable=True),
        sa.Column("stats", sa.JSON(), nullable=True),
        sa.Column("edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("gen_version", sa.String(32), nullable=True),
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # --- daily_summaries ---
    op.create_table(
        "daily_summaries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("entry_count", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("mood_quality", sa.String(32), nullable=True),
        sa.Column("dominant_emotions", sa.JSON(), nullable=True),
        *_reflection_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_summaries_user_date"),
    )
    op.create_index("ix_daily_summaries_user_id", "daily_summaries", ["user_id"])
    op.create_index("ix_daily_summaries_date", "daily_summaries", ["date"])

    # --- period_reflections ---
    op.create_table(
        "period_reflections",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("period_type", sa.String(16), nullable=False, comment='"weekly" or "monthly"'),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        *_reflection_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "period_type", "period_start",
            name="uq_period_reflections_user_type_start",
        ),
    )
    op.create_index("ix_period_reflections_user_id", "period_reflections", ["user_id"])
    op.create_index("ix_period_reflections_period_type", "period_reflections", ["period_type"])

    # --- mood_entries ---
    op.create_table(
        "mood_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("day_quality", sa.String(32), nullable=False),
        sa.Column("emotions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mood_entries_user_id", "mood_entries", ["user_id"])
    op.create_index("ix_mood_entries_created_at", "mood_entries", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_mood_entries_created_at", table_name="mood_entries")
    op.drop_index("ix_mood_entries_user_id", table_name="mood_entries")
    op.drop_table("mood_entries")

    op.drop_index("ix_period_reflections_period_type", table_name="period_reflections")
    op.drop_index("ix_period_reflections_user_id", table_name="period_reflections")
    op.drop_table("period_reflections")

    op.drop_index("ix_daily_summaries_date", table_name="daily_summaries")
    op.drop_index("ix_daily_summaries_user_id", table_name="daily_summaries")
    op.drop_table("daily_summaries")
