"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name, nullable=True, **kw):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, **kw)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255)),
        sa.Column("name", sa.String(120), nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_table(
        "couples",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("total_check_ins", sa.Integer(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        _ts("last_check_in_at"),
        _ts("created_at", nullable=False),
    )
    op.create_table(
        "couple_members",
        sa.Column("couple_id", sa.Uuid(), sa.ForeignKey("couples.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("couple_id", sa.Uuid(), sa.ForeignKey("couples.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(80), nullable=False),
        sa.Column("icon", sa.String(16), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_custom", sa.Boolean(), nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_table(
        "check_ins",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("couple_id", sa.Uuid(), sa.ForeignKey("couples.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("current_step", sa.String(32), nullable=False),
        sa.Column("completed_steps", sa.JSON(), nullable=False),
        sa.Column("percentage_complete", sa.Float(), nullable=False),
        sa.Column("category_ids", sa.JSON(), nullable=False),
        sa.Column("step_durations", sa.JSON(), nullable=False),
        sa.Column("mood_rating", sa.Integer()),
        sa.Column("reflection", sa.Text()),
        _ts("started_at", nullable=False),
        _ts("step_started_at"),
        _ts("completed_at"),
        _ts("abandoned_at"),
        sa.Column("duration_seconds", sa.Integer()),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_check_ins_couple_id", "check_ins", ["couple_id"])
    op.create_index("ix_check_ins_status", "check_ins", ["status"])
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("check_in_id", sa.Uuid(), sa.ForeignKey("check_ins.id", ondelete="SET NULL")),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id", ondelete="SET NULL")),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("privacy", sa.String(16), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        _ts("published_at"),
        _ts("first_shared_at"),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_notes_author_id", "notes", ["author_id"])
    op.create_table(
        "action_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("check_in_id", sa.Uuid(), sa.ForeignKey("check_ins.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("assigned_to_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("due_date", sa.Date()),
        sa.Column("priority", sa.String(8), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        _ts("completed_at"),
        sa.Column("completed_by_id", sa.Uuid()),
        sa.Column("created_by_id", sa.Uuid()),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_action_items_check_in_id", "action_items", ["check_in_id"])
    op.create_table(
        "revoked_tokens",
        sa.Column("jti", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("token_type", sa.String(16), nullable=False),
        _ts("expires_at", nullable=False),
        _ts("revoked_at", nullable=False),
    )
    op.create_index("ix_revoked_tokens_user_id", "revoked_tokens", ["user_id"])


def downgrade() -> None:
    op.drop_table("revoked_tokens")
    op.drop_table("action_items")
    op.drop_table("notes")
    op.drop_table("check_ins")
    op.drop_table("categories")
    op.drop_table("couple_members")
    op.drop_table("couples")
    op.drop_table("users")
