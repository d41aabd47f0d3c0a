from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from hirelane.db.base import Base, TimestampMixin, utcnow


class Job(TimestampMixin, Base):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    company_logo: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    type: Mapped[str] = mapped_column(String(80), default="Full-time", nullable=False)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    description: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    requirements: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    desirables: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    benefits: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    salary: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    posted: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    expiry: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    level: Mapped[str] = mapped_column(String(80), default="", nullable=False)
    experience: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    education: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="active", nullable=False)
    meeting_code: Mapped[str] = mapped_column(String(10), default="", index=True, nullable=False)
    interview_prompt: Mapped[str] = mapped_column(Text, default="", nullable=False)
    ai_interviewer_config: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class Candidate(TimestampMixin, Base):
    __tablename__ = "candidates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    initials: Mapped[str] = mapped_column(String(10), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    phone: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    color: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    text_color: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    meeting_code: Mapped[str] = mapped_column(String(10), default="", nullable=False)
    cover_letter: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="applied", nullable=False)
    applied_date: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    position: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    recruiter: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ai_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    last_activity: Mapped[str] = mapped_column(String(80), default="", nullable=False)
    profile: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    candidate_profile: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # Points at files.id without a FK; the referenced row may be gone.
    cv_file_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class JobApplication(TimestampMixin, Base):
    __tablename__ = "job_applications"
    __table_args__ = (UniqueConstraint("candidate_id", "job_id", name="uq_job_application"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    candidate_id: Mapped[int] = mapped_column(ForeignKey("candidates.id", ondelete="CASCADE"), index=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    status: Mapped[str] = mapped_column(String(40), default="applied", nullable=False)
    match_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    applied_date: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=20, nullable=False)
    meeting_code: Mapped[str] = mapped_column(String(10), default="", nullable=False)


class JobProgress(TimestampMixin, Base):
    __tablename__ = "job_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), unique=True)
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    role: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    summary: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    top_candidate: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    skill_analysis: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    suggested_questions: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    candidates_pool: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    candidates: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class File(TimestampMixin, Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    storage_id: Mapped[str] = mapped_column(String(255), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    file_type: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    candidate_id: Mapped[int | None] = mapped_column(
        ForeignKey("candidates.id", ondelete="SET NULL"), index=True, nullable=True
    )
    uploaded_at: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    cv_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_category: Mapped[str] = mapped_column(String(80), default="resume", nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    analysis_id: Mapped[str | None] = mapped_column(String(120), index=True, nullable=True)


class InterviewRequest(TimestampMixin, Base):
    __tablename__ = "interview_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    candidate_id: Mapped[int] = mapped_column(ForeignKey("candidates.id", ondelete="CASCADE"), index=True)
    job_id: Mapped[int | None] = mapped_column(ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    position: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    date: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    time: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="pending", nullable=False)
    meeting_code: Mapped[str] = mapped_column(String(10), default="", nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    interviewer_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    duration_type: Mapped[str] = mapped_column(String(80), default="", nullable=False)
    meeting_link: Mapped[str] = mapped_column(String(800), default="", nullable=False)
    round: Mapped[int | None] = mapped_column(Integer, nullable=True)
    interview_type: Mapped[str] = mapped_column(String(80), default="", nullable=False)
    rescheduled_from: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class DbDocument(TimestampMixin, Base):
    __tablename__ = "db_documents"
    __table_args__ = (Index("ix_db_documents_source", "table_name", "document_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    table_name: Mapped[str] = mapped_column(String(80), nullable=False)
    document_id: Mapped[str] = mapped_column(String(80), nullable=False)
    embedding: Mapped[list[float]] = mapped_column(JSON, default=list, nullable=False)
    metadata_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)


class Prompt(TimestampMixin, Base):
    __tablename__ = "prompts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    last_updated: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    updated_by: Mapped[str] = mapped_column(String(120), default="system", nullable=False)


class BackgroundTask(TimestampMixin, Base):
    __tablename__ = "background_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), index=True, nullable=False)
    payload_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    dedupe_key: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_attempts: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    run_after: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_error: Mapped[str] = mapped_column(Text, default="", nullable=False)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
