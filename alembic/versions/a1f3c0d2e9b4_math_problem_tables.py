"""math problem sessions and submissions

Revision ID: a1f3c0d2e9b4
Revises:
Create Date: 2026-10-19 10:12:41.318204

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1f3c0d2e9b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "math_problem_sessions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("problem_text", sa.Text(), nullable=False),
        sa.Column("correct_answer", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_math_problem_sessions"),
    )
    op.create_index(
        "ix_math_problem_sessions_created_at", "math_problem_sessions", ["created_at"]
    )

    op.create_table(
        "math_problem_submissions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("session_id", sa.String(length=36), nullable=False),
        sa.Column("user_answer", sa.Float(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("feedback_text", sa.Text(), nullable=False),
        sa.Column("graded_by", sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_math_problem_submissions"),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["math_problem_sessions.id"],
            name="fk_math_problem_submissions_session_id_math_problem_sessions",
        ),
        sa.UniqueConstraint("session_id", name="uq_math_problem_submissions_session_id"),
    )
    op.create_index(
        "ix_math_problem_submissions_created_at", "math_problem_submissions", ["created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_math_problem_submissions_created_at", table_name="math_problem_submissions")
    op.drop_table("math_problem_submissions")
    op.drop_index("ix_math_problem_sessions_created_at", table_name="math_problem_sessions")
    op.drop_table("math_problem_sessions")
