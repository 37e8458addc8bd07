"""add categories table and tasks.category_id

Revision ID: 7c4e9b2f1a36
Revises: 3f1c2a9d7b10
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "7c4e9b2f1a36"
down_revision: str | None = "3f1c2a9d7b10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("category_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("category_id"),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )

    # batch mode so the foreign key can also be added on SQLite
    with op.batch_alter_table("tasks") as batch_op:
        batch_op.add_column(sa.Column("category_id", sa.String(), nullable=True))
        batch_op.create_foreign_key(
            "fk_tasks_category_id", "categories", ["category_id"], ["category_id"]
        )
        batch_op.create_index("ix_tasks_category_id", ["category_id"])


def downgrade() -> None:
    with op.batch_alter_table("tasks") as batch_op:
        batch_op.drop_index("ix_tasks_category_id")
        batch_op.drop_constraint("fk_tasks_category_id", type_="foreignkey")
        batch_op.drop_column("category_id")
    op.drop_table("categories")
