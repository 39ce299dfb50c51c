"""Initial schema: roster, courses, completions, exceptions, notifications

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None

company_enum = sa.Enum("sev", "vendor", name="company")
user_role_enum = sa.Enum("user", "admin", name="user_role")
course_target_enum = sa.Enum("sev", "vendor", "target", name="course_target")
notification_type_enum = sa.Enum("new_course", "reminder", name="notification_type")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=12), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("part", sa.String(length=128), nullable=False),
        sa.Column("group_name", sa.String(length=128), nullable=False),
        sa.Column("company", company_enum, nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="user"),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_company", "users", ["company"])

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("target", course_target_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "course_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "course_id",
            sa.String(length=36),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=12), nullable=False),
        sa.UniqueConstraint("course_id", "user_id", name="uq_assignment_per_user"),
    )
    op.create_index("ix_course_assignments_course_id", "course_assignments", ["course_id"])

    op.create_table(
        "course_completions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "course_id",
            sa.String(length=36),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=12), nullable=False),
        sa.Column("signature", sa.Text(), nullable=False),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("course_id", "user_id", name="uq_completion_per_user"),
    )
    op.create_index("ix_course_completions_course_id", "course_completions", ["course_id"])
    op.create_index("ix_course_completions_user_id", "course_completions", ["user_id"])

    op.create_table(
        "course_exceptions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "course_id",
            sa.String(length=36),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=12), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("course_id", "user_id", name="uq_exception_per_user"),
    )
    op.create_index("ix_course_exceptions_course_id", "course_exceptions", ["course_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=12),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("course_exceptions")
    op.drop_table("course_completions")
    op.drop_table("course_assignments")
    op.drop_table("courses")
    op.drop_index("ix_users_company", "users")
    op.drop_table("users")
    for enum in (notification_type_enum, course_target_enum, user_role_enum, company_enum):
        enum.drop(op.get_bind(), checkfirst=True)
