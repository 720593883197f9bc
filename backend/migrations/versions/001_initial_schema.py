"""Initial placement portal schema.

Creates:
- users: students, companies and admins with role-specific profile fields
- jobs: postings owned by a company account
- applications: one per (student, job) with status and interview details
- settings: admin-managed portal settings

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # 1. users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("phone", sa.String(30)),
        sa.Column("profile_picture", sa.String(500)),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        sa.Column("branch", sa.String(100)),
        sa.Column("year", sa.String(20)),
        sa.Column("roll_number", sa.String(50)),
        sa.Column("cgpa", sa.Float),
        sa.Column("skills", sa.JSON),
        sa.Column("resume", sa.String(500)),
        sa.Column("resume_updated_at", sa.DateTime(timezone=True)),
        sa.Column("company_name", sa.String(255)),
        sa.Column("industry", sa.String(100)),
        sa.Column("website", sa.String(500)),
        sa.Column("description", sa.Text),
        sa.Column("location", sa.String(255)),
        sa.Column("logo", sa.String(500)),
        sa.Column("reset_token_hash", sa.String(64)),
        sa.Column("reset_token_expires_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_reset_token_hash", "users", ["reset_token_hash"])
    op.create_index("idx_users_role_status", "users", ["role", "status"])

    # 2. jobs
    op.create_table(
        "jobs",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("company_id", sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("job_type", sa.String(20), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("salary", sa.String(255), nullable=False),
        sa.Column("eligibility", sa.Text, nullable=False),
        sa.Column("skills_required", sa.JSON),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_jobs_company_id", "jobs", ["company_id"])
    op.create_index("ix_jobs_status", "jobs", ["status"])
    op.create_index("idx_job_status_deadline", "jobs", ["status", "deadline"])

    # 3. applications
    op.create_table(
        "applications",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("student_id", sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("job_id", sa.Uuid(as_uuid=True), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_id", sa.Uuid(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("applied_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("resume", sa.String(500), nullable=False),
        sa.Column("cover_letter", sa.Text),
        sa.Column("interview_date", sa.DateTime(timezone=True)),
        sa.Column("interview_mode", sa.String(20)),
        sa.Column("interview_location", sa.String(255)),
        sa.Column("interview_link", sa.String(500)),
        sa.Column("feedback", sa.Text),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "job_id", name="uq_applications_student_job"),
    )
    op.create_index("ix_applications_student_id", "applications", ["student_id"])
    op.create_index("ix_applications_job_id", "applications", ["job_id"])
    op.create_index("ix_applications_company_id", "applications", ["company_id"])
    op.create_index("idx_applications_company_status", "applications", ["company_id", "status"])
    op.create_index("idx_applications_interview", "applications", ["interview_date"])

    # 4. settings
    op.create_table(
        "settings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.Text),
        sa.Column("name", sa.String(255)),
        sa.Column("description", sa.Text),
        *_timestamps(),
    )
    op.create_index("ix_settings_key", "settings", ["key"], unique=True)


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_table("applications")
    op.drop_table("jobs")
    op.drop_table("users")
