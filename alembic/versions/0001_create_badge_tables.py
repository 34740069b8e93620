"""Create badge catalog and progress tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_create_badge_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "badges",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), server_default=sa.text("''"), nullable=True),
        sa.Column("icon", sa.String(length=255), server_default=sa.text("''"), nullable=True),
        sa.Column("category", sa.String(length=40), nullable=False),
        sa.Column("rarity", sa.String(length=20), server_default=sa.text("'common'"), nullable=False),
        sa.Column("points", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("threshold", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column(
            "criteria_filters",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("hidden", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.CheckConstraint("points >= 0", name="ck_badges_points_non_negative"),
        sa.CheckConstraint("threshold >= 1", name="ck_badges_threshold_positive"),
        sa.PrimaryKeyConstraint("id", name="pk_badges"),
    )
    op.create_index("ix_badges_category", "badges", ["category"], unique=False)
    op.create_index("ix_badges_event_type", "badges", ["event_type"], unique=False)

    op.create_table(
        "user_badge_progress",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("badge_id", sa.String(length=100), nullable=False),
        sa.Column("progress", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("is_unlocked", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("unlocked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("progress_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("version", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.CheckConstraint("progress >= 0", name="ck_user_badge_progress_non_negative"),
        sa.ForeignKeyConstraint(
            ["badge_id"],
            ["badges.id"],
            name="fk_user_badge_progress_badge_id_badges",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("user_id", "badge_id", name="pk_user_badge_progress"),
    )
    op.create_index(
        "ix_user_badge_progress_user_id", "user_badge_progress", ["user_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_user_badge_progress_user_id", table_name="user_badge_progress")
    op.drop_table("user_badge_progress")
    op.drop_index("ix_badges_event_type", table_name="badges")
    op.drop_index("ix_badges_category", table_name="badges")
    op.drop_table("badges")
