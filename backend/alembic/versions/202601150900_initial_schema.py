"""Initial Kaamyab analytics schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202601150900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("profession_details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "plan_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("total_tasks", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_tasks", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_weeks", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_strategic", sa.Boolean(), nullable=True),
        sa.Column(
            "plan_snapshot",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_plan_history_user_id", "plan_history", ["user_id"], unique=False)
    op.create_index("ix_plan_history_completed_at", "plan_history", ["completed_at"], unique=False)

    op.create_table(
        "effort_feedback",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("task_key", sa.String(length=32), nullable=False),
        sa.Column("effort", sa.String(length=16), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "task_key", name="uq_effort_feedback_user_task"),
    )
    op.create_index("ix_effort_feedback_user_id", "effort_feedback", ["user_id"], unique=False)

    op.create_table(
        "user_streaks",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_completion_date", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )


def downgrade() -> None:
    op.drop_table("user_streaks")
    op.drop_index("ix_effort_feedback_user_id", table_name="effort_feedback")
    op.drop_table("effort_feedback")
    op.drop_index("ix_plan_history_completed_at", table_name="plan_history")
    op.drop_index("ix_plan_history_user_id", table_name="plan_history")
    op.drop_table("plan_history")
    op.drop_table("users")
