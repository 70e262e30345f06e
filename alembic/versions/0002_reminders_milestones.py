"""reminders and milestones

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def _ts(name, nullable=True, **kw):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, **kw)


def upgrade() -> None:
    op.create_table(
        "reminders",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assigned_to_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("couple_id", sa.Uuid(), sa.ForeignKey("couples.id", ondelete="CASCADE")),
        sa.Column("related_check_in_id", sa.Uuid(), sa.ForeignKey("check_ins.id", ondelete="SET NULL")),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("message", sa.Text()),
        sa.Column("category", sa.String(24), nullable=False),
        sa.Column("frequency", sa.String(16), nullable=False),
        sa.Column("priority", sa.String(8), nullable=False),
        _ts("scheduled_for", nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_snoozed", sa.Boolean(), nullable=False),
        _ts("snooze_until"),
        _ts("completed_at"),
        sa.Column("completion_count", sa.Integer(), nullable=False),
        sa.Column("skip_count", sa.Integer(), nullable=False),
        sa.Column("snooze_count", sa.Integer(), nullable=False),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_reminders_created_by_id", "reminders", ["created_by_id"])
    op.create_index("ix_reminders_assigned_to_id", "reminders", ["assigned_to_id"])

    op.create_table(
        "milestones",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("couple_id", sa.Uuid(), sa.ForeignKey("couples.id", ondelete="CASCADE"), nullable=False),
        sa.Column("key", sa.String(32)),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("icon", sa.String(16)),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("target_date", sa.Date()),
        _ts("achieved_at"),
        sa.Column("achieved_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("achievement_notes", sa.Text()),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
    )
    op.create_index("ix_milestones_couple_id", "milestones", ["couple_id"])
    op.create_index("ix_milestones_couple_key", "milestones", ["couple_id", "key"], unique=True)


def downgrade() -> None:
    op.drop_table("milestones")
    op.drop_table("reminders")
