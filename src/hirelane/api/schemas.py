from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from hirelane.types import (
    ApplicationStatus,
    CandidatesPool,
    JobDescription,
    ProgressSummary,
    Salary,
    SkillAnalysis,
    TopCandidate,
)


class JobCreateRequest(BaseModel):
    title: str
    company: str = ""
    company_logo: str = ""
    type: str = "Full-time"
    featured: bool = False
    description: JobDescription = Field(default_factory=JobDescription)
    requirements: list[str] = Field(default_factory=list)
    desirables: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    salary: Salary = Field(default_factory=Salary)
    location: str = ""
    posted: str = ""
    expiry: str = ""
    level: str = ""
    experience: str = ""
    education: str = ""
    status: str = "active"
    meeting_code: str = ""


class JobUpdateRequest(BaseModel):
    title: str | None = None
    company: str | None = None
    company_logo: str | None = None
    type: str | None = None
    featured: bool | None = None
    description: JobDescription | None = None
    requirements: list[str] | None = None
    desirables: list[str] | None = None
    benefits: list[str] | None = None
    salary: Salary | None = None
    location: str | None = None
    posted: str | None = None
    expiry: str | None = None
    level: str | None = None
    experience: str | None = None
    education: str | None = None
    status: str | None = None


class BulkDeleteRequest(BaseModel):
    job_ids: list[int]


class BulkDeleteResponse(BaseModel):
    success: bool
    message: str
    deleted_count: int
    failed_ids: list[int] = Field(default_factory=list)


class JobProgressPatchRequest(BaseModel):
    title: str | None = None
    role: str | None = None
    summary: ProgressSummary | None = None
    top_candidate: TopCandidate | None = None
    skill_analysis: SkillAnalysis | None = None
    suggested_questions: list[str] | None = None
    candidates_pool: CandidatesPool | None = None


class ApplyInterviewerConfigRequest(BaseModel):
    candidate_name: str | None = None


class InterviewSessionRequest(BaseModel):
    candidate_id: int
    knowledge_base: str = ""


class CandidateCreateRequest(BaseModel):
    name: str
    initials: str = ""
    email: str = ""
    phone: str = ""
    color: str = ""
    text_color: str = ""
    meeting_code: str = ""
    cover_letter: str = ""
    status: str = "applied"
    position: str = ""
    recruiter: str = ""
    profile: dict[str, Any] = Field(default_factory=dict)


class CandidateUpdateRequest(BaseModel):
    name: str | None = None
    initials: str | None = None
    email: str | None = None
    phone: str | None = None
    color: str | None = None
    text_color: str | None = None
    cover_letter: str | None = None
    status: str | None = None
    position: str | None = None
    recruiter: str | None = None
    progress: int | None = None
    ai_score: float | None = None
    last_activity: str | None = None
    profile: dict[str, Any] | None = None
    candidate_profile: dict[str, Any] | None = None


class ApplyRequest(BaseModel):
    job_id: int
    match_score: float = 0.0


class ApplicationStatusRequest(BaseModel):
    status: ApplicationStatus


class FileStatusRequest(BaseModel):
    status: str


class CVSummaryRequest(BaseModel):
    cv_summary: str


class InterviewRequestCreate(BaseModel):
    candidate_id: int
    job_id: int | None = None
    position: str = ""
    date: str
    time: str
    status: str = "pending"
    notes: str = ""
    interviewer_ids: list[str] = Field(default_factory=list)
    location: str = ""
    duration_type: str = ""
    meeting_link: str = ""
    round: int | None = None
    interview_type: str = ""


class InterviewStatusRequest(BaseModel):
    status: str


class RescheduleRequest(BaseModel):
    date: str
    time: str


class PromptCreateRequest(BaseModel):
    name: str
    content: str
    description: str = ""
    updated_by: str | None = None


class PromptUpdateRequest(BaseModel):
    content: str
    description: str = ""
    updated_by: str | None = None


class PromptResponse(BaseModel):
    id: int
    name: str
    content: str
    description: str
    last_updated: int
    updated_by: str


class VectorSyncRequest(BaseModel):
    table_name: str
    document_id: int


class SearchRequest(BaseModel):
    query: str
    table_name: str | None = None
    entity_type: str | None = None
    candidate_status: str | None = None
    job_title: str | None = None
    job_company: str | None = None
    interview_status: str | None = None
    limit: int | None = None
    score_threshold: float | None = None


class FunctionExecuteRequest(BaseModel):
    name: str
    arguments: str | dict[str, Any] | None = None
