from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from hirelane.db.models import Candidate, InterviewRequest, Job
from hirelane.types import AIInterviewerConfig, CandidateProfile, JobDescription, LightProfile, Salary, SkillGroup

logger = logging.getLogger(__name__)

CANDIDATES_TABLE = "candidates"
JOBS_TABLE = "jobs"
INTERVIEW_REQUESTS_TABLE = "interviewRequests"


@dataclass(slots=True)
class SearchDocument:
    title: str
    content: str
    table_name: str
    document_id: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def embedding_text(self) -> str:
        return f"{self.title} {self.content}"


def _fmt(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _bullets(header: str, items: list[str]) -> list[str]:
    if not items:
        return []
    return [header, *(f"- {item}" for item in items)]


def _skill_block(label: str, list_label: str, group: SkillGroup | None) -> list[str]:
    if group is None or not group.skills:
        return []
    skills = ", ".join(f"{skill.name} ({_fmt(skill.score)})" for skill in group.skills)
    return [f"{label} Overall Score: {_fmt(group.overall_score)}", f"{list_label}:", skills]


def _profile_or_none(candidate: Candidate) -> CandidateProfile | None:
    if not candidate.candidate_profile:
        return None
    try:
        return CandidateProfile.model_validate(candidate.candidate_profile)
    except ValueError as exc:
        logger.warning("Flattening candidate without profile candidate_id=%s error=%s", candidate.id, exc)
        return None


def build_candidate_document(candidate: Candidate) -> SearchDocument:
    lines = [f"Name: {candidate.name}", f"Email: {candidate.email}"]
    for label, value in (
        ("Phone", candidate.phone),
        ("Position", candidate.position),
        ("Status", candidate.status),
        ("AI Score", candidate.ai_score),
        ("Applied Date", candidate.applied_date),
        ("Recruiter", candidate.recruiter),
        ("Progress", candidate.progress),
        ("Cover Letter", candidate.cover_letter),
    ):
        if value:
            lines.append(f"{label}: {_fmt(value)}")

    light = LightProfile.model_validate(candidate.profile or {})
    for label, value in (("Profile Summary", light.summary), ("Portfolio", light.portfolio), ("Insights", light.insights)):
        if value:
            lines.append(f"{label}: {value}")

    profile = _profile_or_none(candidate)
    technical_names: list[str] = []
    if profile is not None:
        if profile.personal:
            personal = profile.personal
            for label, value in (
                ("Age", personal.age),
                ("Nationality", personal.nationality),
                ("Location", personal.location),
                ("Dependents", personal.dependents),
                ("Visa Status", personal.visa_status),
            ):
                if value:
                    lines.append(f"{label}: {value}")

        if profile.career:
            career = profile.career
            for label, value in (
                ("Experience", career.experience),
                ("Past Roles", career.past_roles),
                ("Career Progression", career.progression),
            ):
                if value:
                    lines.append(f"{label}: {value}")

        if profile.interview:
            if profile.interview.highlights:
                lines.append("Interview Highlights:")
                lines.extend(f"- {item.title}: {item.content}" for item in profile.interview.highlights)
            if profile.interview.overall_feedback:
                lines.append("Interview Feedback:")
                lines.extend(
                    f"- {'Positive' if item.praise else 'Needs Improvement'}: {item.text}"
                    for item in profile.interview.overall_feedback
                )

        if profile.skills:
            lines.extend(_skill_block("Technical Skills", "Technical Skills", profile.skills.technical))
            lines.extend(_skill_block("Soft Skills", "Soft Skills", profile.skills.soft))
            lines.extend(_skill_block("Culture Fit", "Culture Fit Skills", profile.skills.culture))
            technical_names = profile.technical_skill_names()

        if profile.cv:
            lines.extend(_bullets("CV Highlights:", profile.cv.highlights))
            lines.extend(_bullets("CV Key Insights:", profile.cv.key_insights))
            if profile.cv.score:
                lines.append(f"CV Score: {_fmt(profile.cv.score)}")

        insights = profile.skill_insights
        if insights:
            if insights.matched_skills:
                lines.extend(["Matched Skills:", ", ".join(insights.matched_skills)])
            if insights.missing_skills:
                lines.extend(["Missing Skills:", ", ".join(insights.missing_skills)])
            if insights.skill_gaps:
                lines.append("Skill Gaps:")
                lines.extend(f"- {gap.name}: {_fmt(gap.percentage)}%" for gap in insights.skill_gaps)
            if insights.learning_paths:
                lines.append("Learning Paths:")
                lines.extend(f"- {path.title} ({path.provider})" for path in insights.learning_paths)

        if profile.recommendation:
            lines.append(f"Recommendation: {profile.recommendation}")

    metadata: dict[str, Any] = {
        "entityType": "candidate",
        "candidateStatus": candidate.status or "unknown",
        "candidatePosition": candidate.position or "unknown",
        "createdAt": candidate.applied_date,
        "updatedAt": candidate.last_activity,
    }
    if technical_names:
        metadata["candidateSkills"] = technical_names

    return SearchDocument(
        title=f"Candidate: {candidate.name}",
        content="\n".join(lines) + "\n",
        table_name=CANDIDATES_TABLE,
        document_id=str(candidate.id),
        metadata=metadata,
    )


def build_job_document(job: Job) -> SearchDocument:
    lines = [
        f"Title: {job.title}",
        f"Company: {job.company}",
        f"Location: {job.location}",
        f"Type: {job.type}",
        f"Level: {job.level}",
        f"Experience: {job.experience}",
        f"Education: {job.education}",
        f"Posted: {job.posted}",
        f"Expiry: {job.expiry}",
    ]
    if job.featured:
        lines.append("Featured: Yes")
    if job.salary:
        salary = Salary.model_validate(job.salary)
        lines.append(f"Salary: {_fmt(salary.min)} - {_fmt(salary.max)} {salary.currency} per {salary.period}")
    if job.description:
        description = JobDescription.model_validate(job.description)
        lines.extend(
            [
                f"Introduction: {description.intro}",
                f"Details: {description.details}",
                f"Responsibilities: {description.responsibilities}",
                f"Closing: {description.closing}",
            ]
        )
    lines.extend(_bullets("Requirements:", list(job.requirements or [])))
    lines.extend(_bullets("Desirable Skills:", list(job.desirables or [])))
    lines.extend(_bullets("Benefits:", list(job.benefits or [])))

    if job.ai_interviewer_config:
        config = AIInterviewerConfig.model_validate(job.ai_interviewer_config)
        if config.introduction:
            lines.append(f"Interview Introduction: {config.introduction}")
        if config.questions:
            lines.append("Interview Questions:")
            for question in config.questions:
                lines.append(f"- ({question.importance}) {question.text}")
                lines.extend(f"  * {prompt}" for prompt in question.follow_up_prompts)
        lines.append(f"Conversational Style: {config.conversational_style}")
        lines.extend(_bullets("Focus Areas:", config.focus_areas))
        lines.append(f"Time Limit: {_fmt(config.time_limit)} minutes")

    if job.interview_prompt:
        lines.append(f"Interview Prompt: {job.interview_prompt}")

    return SearchDocument(
        title=f"Job: {job.title}",
        content="\n".join(lines) + "\n",
        table_name=JOBS_TABLE,
        document_id=str(job.id),
        metadata={
            "entityType": "job",
            "jobTitle": job.title,
            "jobCompany": job.company,
            "jobLevel": job.level,
            "createdAt": job.posted,
            "updatedAt": job.posted,
        },
    )


def build_interview_request_document(
    request: InterviewRequest,
    candidate: Candidate | None,
    job: Job | None,
) -> SearchDocument:
    lines = [
        f"Candidate: {candidate.name if candidate else 'Unknown'}",
        f"Position: {request.position}",
        f"Date: {request.date}",
        f"Time: {request.time}",
        f"Status: {request.status}",
        f"Created At: {_fmt(request.created_at)}",
        f"Updated At: {_fmt(request.updated_at)}",
    ]
    if job is not None:
        lines.extend(
            [
                f"Job: {job.title}",
                f"Company: {job.company}",
                f"Job Type: {job.type}",
                f"Job Level: {job.level}",
            ]
        )
    for label, value in (
        ("Location", request.location),
        ("Interview Type", request.interview_type),
        ("Round", request.round),
        ("Duration", request.duration_type),
        ("Notes", request.notes),
        ("Meeting Link", request.meeting_link),
        ("Meeting Code", request.meeting_code),
    ):
        if value:
            lines.append(f"{label}: {value}")
    if request.interviewer_ids:
        lines.append(f"Interviewers: {', '.join(request.interviewer_ids)}")
    if request.rescheduled_from:
        previous = request.rescheduled_from
        lines.append(f"Rescheduled From: {previous.get('date', '')} at {previous.get('time', '')}")
    if request.job_id:
        lines.append(f"Related Job ID: {request.job_id}")

    metadata: dict[str, Any] = {
        "entityType": "interviewRequest",
        "interviewStatus": request.status,
        "interviewType": request.interview_type or "standard",
        "createdAt": _fmt(request.created_at),
        "updatedAt": _fmt(request.updated_at),
    }
    if candidate is not None:
        metadata["candidateName"] = candidate.name
        metadata["candidateStatus"] = candidate.status
    if job is not None:
        metadata["jobTitle"] = job.title
        metadata["jobCompany"] = job.company

    return SearchDocument(
        title=f"Interview Request: {candidate.name if candidate else 'Unknown Candidate'}",
        content="\n".join(lines) + "\n",
        table_name=INTERVIEW_REQUESTS_TABLE,
        document_id=str(request.id),
        metadata=metadata,
    )
