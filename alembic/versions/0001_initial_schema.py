"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=False),
        sa.Column("company_logo", sa.String(500), nullable=False),
        sa.Column("type", sa.String(80), nullable=False),
        sa.Column("featured", sa.Boolean(), nullable=False),
        sa.Column("description", sa.JSON(), nullable=False),
        sa.Column("requirements", sa.JSON(), nullable=False),
        sa.Column("desirables", sa.JSON(), nullable=False),
        sa.Column("benefits", sa.JSON(), nullable=False),
        sa.Column("salary", sa.JSON(), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("posted", sa.String(40), nullable=False),
        sa.Column("expiry", sa.String(40), nullable=False),
        sa.Column("level", sa.String(80), nullable=False),
        sa.Column("experience", sa.String(120), nullable=False),
        sa.Column("education", sa.String(255), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("meeting_code", sa.String(10), nullable=False),
        sa.Column("interview_prompt", sa.Text(), nullable=False),
        sa.Column("ai_interviewer_config", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_jobs_meeting_code", "jobs", ["meeting_code"])

    op.create_table(
        "candidates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("initials", sa.String(10), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column("color", sa.String(40), nullable=False),
        sa.Column("text_color", sa.String(40), nullable=False),
        sa.Column("meeting_code", sa.String(10), nullable=False),
        sa.Column("cover_letter", sa.Text(), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("applied_date", sa.String(40), nullable=False),
        sa.Column("position", sa.String(255), nullable=False),
        sa.Column("recruiter", sa.String(255), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False),
        sa.Column("ai_score", sa.Float(), nullable=False),
        sa.Column("last_activity", sa.String(80), nullable=False),
        sa.Column("profile", sa.JSON(), nullable=False),
        sa.Column("candidate_profile", sa.JSON(), nullable=True),
        sa.Column("cv_file_id", sa.Integer(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "job_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("candidate_id", sa.Integer(), sa.ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("match_score", sa.Float(), nullable=False),
        sa.Column("applied_date", sa.String(40), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False),
        sa.Column("meeting_code", sa.String(10), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("candidate_id", "job_id", name="uq_job_application"),
    )
    op.create_index("ix_job_applications_candidate_id", "job_applications", ["candidate_id"])
    op.create_index("ix_job_applications_job_id", "job_applications", ["job_id"])

    op.create_table(
        "job_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("role", sa.String(255), nullable=False),
        sa.Column("summary", sa.JSON(), nullable=False),
        sa.Column("top_candidate", sa.JSON(), nullable=False),
        sa.Column("skill_analysis", sa.JSON(), nullable=False),
        sa.Column("suggested_questions", sa.JSON(), nullable=False),
        sa.Column("candidates_pool", sa.JSON(), nullable=False),
        sa.Column("candidates", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("storage_id", sa.String(255), nullable=False),
        sa.Column("file_name", sa.String(500), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("file_type", sa.String(120), nullable=False),
        sa.Column("candidate_id", sa.Integer(), sa.ForeignKey("candidates.id", ondelete="SET NULL"), nullable=True),
        sa.Column("uploaded_at", sa.BigInteger(), nullable=False),
        sa.Column("cv_summary", sa.Text(), nullable=True),
        sa.Column("file_category", sa.String(80), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("analysis_id", sa.String(120), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_files_candidate_id", "files", ["candidate_id"])
    op.create_index("ix_files_analysis_id", "files", ["analysis_id"])

    op.create_table(
        "interview_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("candidate_id", sa.Integer(), sa.ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True),
        sa.Column("position", sa.String(255), nullable=False),
        sa.Column("date", sa.String(40), nullable=False),
        sa.Column("time", sa.String(40), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("meeting_code", sa.String(10), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("interviewer_ids", sa.JSON(), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("duration_type", sa.String(80), nullable=False),
        sa.Column("meeting_link", sa.String(800), nullable=False),
        sa.Column("round", sa.Integer(), nullable=True),
        sa.Column("interview_type", sa.String(80), nullable=False),
        sa.Column("rescheduled_from", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_interview_requests_candidate_id", "interview_requests", ["candidate_id"])

    op.create_table(
        "db_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("table_name", sa.String(80), nullable=False),
        sa.Column("document_id", sa.String(80), nullable=False),
        sa.Column("embedding", sa.JSON(), nullable=False),
        sa.Column("metadata_json", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_db_documents_source", "db_documents", ["table_name", "document_id"])

    op.create_table(
        "prompts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("last_updated", sa.BigInteger(), nullable=False),
        sa.Column("updated_by", sa.String(120), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_prompts_name", "prompts", ["name"], unique=True)

    op.create_table(
        "background_tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("payload_json", sa.JSON(), nullable=False),
        sa.Column("dedupe_key", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("run_after", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_background_tasks_name", "background_tasks", ["name"])
    op.create_index("ix_background_tasks_dedupe_key", "background_tasks", ["dedupe_key"])
    op.create_index("ix_background_tasks_status", "background_tasks", ["status"])


def downgrade() -> None:
    for table in (
        "background_tasks",
        "prompts",
        "db_documents",
        "interview_requests",
        "files",
        "job_progress",
        "job_applications",
        "candidates",
        "jobs",
    ):
        op.drop_table(table)
