"""Create students table.

Revision ID: 3f6a1b2c4d5e
Revises:
Create Date: 2025-08-30
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f6a1b2c4d5e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("roll_number", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("department", sa.String(255), nullable=False),
        sa.Column("gpa", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("length(trim(name)) > 0", name="ck_students_name_not_empty"),
        sa.CheckConstraint("length(trim(department)) > 0", name="ck_students_department_not_empty"),
        sa.CheckConstraint("gpa IS NULL OR (gpa >= 0 AND gpa <= 4)", name="ck_students_gpa_range"),
        sa.UniqueConstraint("roll_number", name="uq_students_roll_number"),
        sa.UniqueConstraint("email", name="uq_students_email"),
    )
    op.create_index("idx_students_name", "students", ["name"])
    op.create_index("idx_students_department", "students", ["department"])


def downgrade() -> None:
    op.drop_index("idx_students_department", table_name="students")
    op.drop_index("idx_students_name", table_name="students")
    op.drop_table("students")
