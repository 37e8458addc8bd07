"""initial_schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # =========================================================
    # tasks
    # =========================================================
    op.create_table(
        "tasks",
        sa.Column("task_id", sa.String(), nullable=False),
        sa.Column("creator_id", sa.String(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("task_id"),
        sa.CheckConstraint("max_participants >= 1", name="ck_tasks_max_participants_positive"),
    )
    op.create_index("ix_tasks_creator_id", "tasks", ["creator_id"])
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_status_scheduled_at", "tasks", ["status", "scheduled_at"])

    # =========================================================
    # participations
    # =========================================================
    op.create_table(
        "participations",
        sa.Column("participation_id", sa.String(), nullable=False),
        sa.Column("task_id", sa.String(), nullable=False),
        sa.Column("participant_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("participation_id"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.task_id"]),
    )
    op.create_index("ix_participations_task_id", "participations", ["task_id"])
    op.create_index("ix_participations_participant_id", "participations", ["participant_id"])
    op.create_index("ix_participations_status", "participations", ["status"])
    op.create_index(
        "ix_participations_task_participant", "participations", ["task_id", "participant_id"]
    )
    op.create_index(
        "uq_participations_active_task_participant",
        "participations",
        ["task_id", "participant_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    op.drop_index("uq_participations_active_task_participant", table_name="participations")
    op.drop_index("ix_participations_task_participant", table_name="participations")
    op.drop_index("ix_participations_status", table_name="participations")
    op.drop_index("ix_participations_participant_id", table_name="participations")
    op.drop_index("ix_participations_task_id", table_name="participations")
    op.drop_table("participations")

    op.drop_index("ix_tasks_status_scheduled_at", table_name="tasks")
    op.drop_index("ix_tasks_status", table_name="tasks")
    op.drop_index("ix_tasks_creator_id", table_name="tasks")
    op.drop_table("tasks")
