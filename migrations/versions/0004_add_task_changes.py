"""add task change log and recurrence generation guard"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0004_add_task_changes"
down_revision = "0003_add_task_relations"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_changes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("change_type", sa.String(length=20), nullable=False),
        sa.Column("changed_fields", sa.JSON(), nullable=True),
        sa.Column("old_value", sa.JSON(), nullable=True),
        sa.Column("new_value", sa.JSON(), nullable=True),
        sa.Column("changed_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_task_changes_task_id", "task_changes", ["task_id"], unique=False)
    op.create_index("ix_task_changes_change_type", "task_changes", ["change_type"], unique=False)
    op.create_index("ix_task_changes_created_at", "task_changes", ["created_at"], unique=False)

    op.create_table(
        "recurrence_generations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "source_task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("generated_date", sa.Date(), nullable=False),
        sa.Column(
            "generated_task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "source_task_id",
            "generated_date",
            name="uq_recurrence_generations_source_date",
        ),
    )


def downgrade() -> None:
    op.drop_table("recurrence_generations")
    op.drop_index("ix_task_changes_created_at", table_name="task_changes")
    op.drop_index("ix_task_changes_change_type", table_name="task_changes")
    op.drop_index("ix_task_changes_task_id", table_name="task_changes")
    op.drop_table("task_changes")
