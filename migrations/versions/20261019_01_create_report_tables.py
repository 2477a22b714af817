"""create classes, students, criteria, evaluations and formatting tables

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "classes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=80), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id"), nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_students_class_id", "students", ["class_id"])
    op.create_index("ix_students_last_name", "students", ["last_name"])

    op.create_table(
        "criteria",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("min_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("max_value", sa.Float(), nullable=False, server_default="10"),
    )
    op.create_index("ix_criteria_name", "criteria", ["name"])

    op.create_table(
        "evaluation_titles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=160), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "evaluations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("criterion_id", sa.Integer(), sa.ForeignKey("criteria.id"), nullable=False),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id"), nullable=False),
        sa.Column("evaluation_title_id", sa.Integer(), sa.ForeignKey("evaluation_titles.id"), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_evaluations_student_id", "evaluations", ["student_id"])
    op.create_index("ix_evaluations_criterion_id", "evaluations", ["criterion_id"])
    op.create_index("ix_evaluations_class_id", "evaluations", ["class_id"])
    op.create_index("ix_evaluations_evaluation_title_id", "evaluations", ["evaluation_title_id"])
    op.create_index("ix_evaluations_date", "evaluations", ["date"])

    op.create_table(
        "conditional_formatting",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("min_score", sa.Float(), nullable=False),
        sa.Column("max_score", sa.Float(), nullable=False),
        sa.Column("color", sa.String(length=32), nullable=False),
        sa.Column("evaluation_title_id", sa.Integer(), sa.ForeignKey("evaluation_titles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("min_score <= max_score", name="ck_formatting_range"),
    )
    op.create_index("ix_conditional_formatting_evaluation_title_id", "conditional_formatting", ["evaluation_title_id"])


def downgrade():
    op.drop_index("ix_conditional_formatting_evaluation_title_id", table_name="conditional_formatting")
    op.drop_table("conditional_formatting")
    for name in ("date", "evaluation_title_id", "class_id", "criterion_id", "student_id"):
        op.drop_index(f"ix_evaluations_{name}", table_name="evaluations")
    op.drop_table("evaluations")
    op.drop_table("evaluation_titles")
    op.drop_index("ix_criteria_name", table_name="criteria")
    op.drop_table("criteria")
    op.drop_index("ix_students_last_name", table_name="students")
    op.drop_index("ix_students_class_id", table_name="students")
    op.drop_table("students")
    op.drop_table("classes")
