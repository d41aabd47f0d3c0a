from __future__ import annotations

import logging
import math
import random
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from hirelane.config import Settings, get_settings
from hirelane.core.events import EventBus
from hirelane.core.runtime import get_event_bus
from hirelane.db.models import Job, JobProgress
from hirelane.db.repositories import Repository
from hirelane.types import (
    AIInterviewerConfig,
    CandidateProfile,
    CandidatesPool,
    JobProgressSnapshot,
    LearningPath,
    ProgressCandidate,
    ProgressSummary,
    SkillAnalysis,
    TopCandidate,
)

logger = logging.getLogger(__name__)

STATUS_PROGRESS: dict[str, int] = {
    "applied": 20,
    "screening": 40,
    "interview": 60,
    "offer": 80,
    "hired": 100,
    "rejected": 100,
}
DEFAULT_STATUS_PROGRESS = 20
SHORTLISTED_STATUSES = {"interview", "offer"}
IMPORTANCE_ORDER = {"high": 1, "medium": 2, "low": 3}
TOP_CANDIDATE_LIMIT = 4

_WORD_RE = re.compile(r"\b[a-z]+\b")
_CRITERIA_RE = re.compile(r"\b[a-z]+(?:script)?\b")

ROLE_QUESTIONS: list[tuple[tuple[str, ...], list[str]]] = [
    (
        ("developer", "engineer"),
        [
            "Describe your experience with modern development frameworks",
            "How do you approach testing in your projects?",
            "Tell me about a complex technical challenge you solved recently",
        ],
    ),
    (
        ("manager",),
        [
            "How do you handle team conflicts?",
            "Describe your approach to managing project deadlines",
            "How do you measure team performance?",
        ],
    ),
    (
        ("designer",),
        [
            "Describe your design process from concept to implementation",
            "How do you incorporate user feedback into your designs?",
            "What design tools do you use in your workflow?",
        ],
    ),
]
DEFAULT_QUESTIONS = [
    "Why are you interested in this role?",
    "How do you handle tight deadlines?",
    "Describe your ideal work environment",
]


def status_progress(status: str) -> int:
    return STATUS_PROGRESS.get(status, DEFAULT_STATUS_PROGRESS)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass(slots=True)
class Applicant:
    candidate_id: int
    name: str
    email: str
    profile: CandidateProfile | None


@dataclass(slots=True)
class ApplicationView:
    status: str
    match_score: float
    applicant: Applicant | None


def requirement_keywords(
    requirements: list[str], against: list[str], *, pattern: re.Pattern[str] = _WORD_RE, limit: int = 3
) -> list[str]:
    """Words from the requirements that none of ``against`` mentions."""
    lowered = [item.lower() for item in against]
    found: list[str] = []
    for word in pattern.findall(" ".join(requirements).lower()):
        if len(word) <= 3 or word in found:
            continue
        if any(word in skill for skill in lowered):
            continue
        found.append(word)
    return found[:limit]


def suggested_questions_for(job_title: str, config: AIInterviewerConfig | None) -> list[str]:
    if config and config.questions:
        ordered = sorted(config.questions, key=lambda q: IMPORTANCE_ORDER.get(q.importance, 4))
        return [question.text for question in ordered[:3]]

    title = job_title.lower()
    for keywords, questions in ROLE_QUESTIONS:
        if any(keyword in title for keyword in keywords):
            return list(questions)
    return list(DEFAULT_QUESTIONS)


def compute_job_progress(
    *,
    job_title: str,
    requirements: list[str],
    interviewer_config: AIInterviewerConfig | None,
    applications: list[ApplicationView],
    existing: JobProgressSnapshot | None = None,
    settings: Settings | None = None,
) -> JobProgressSnapshot:
    settings = settings or get_settings()
    total = len(applications)
    shortlisted = sum(1 for app in applications if app.status in SHORTLISTED_STATUSES)
    summary = ProgressSummary(
        total_resumes=total,
        meeting_min_criteria=sum(1 for app in applications if app.match_score >= settings.min_criteria_score),
        shortlisted=shortlisted,
        rejected=sum(1 for app in applications if app.status == "rejected"),
        bias_score=(existing.summary.bias_score if existing else 0) or settings.default_bias_score,
    )

    ranked: list[tuple[ApplicationView, Applicant]] = []
    skill_counts: Counter[str] = Counter()
    for app in applications:
        if app.applicant is None:
            continue
        ranked.append((app, app.applicant))
        if app.applicant.profile is not None:
            skill_counts.update(app.applicant.profile.technical_skill_names())
    # sorted() is stable, so ties keep application order
    ranked.sort(key=lambda item: item[0].match_score, reverse=True)

    top_candidate = TopCandidate(position=job_title)
    if ranked and ranked[0][1].profile is not None:
        best_app, best = ranked[0]
        profile = best.profile
        skills = profile.technical_skill_names()[:5]
        top_candidate = TopCandidate(
            name=best.name,
            position=job_title,
            match_percentage=best_app.match_score,
            education=profile.career.experience if profile.career else "",
            location=profile.personal.location if profile.personal else "",
            achievements=list(profile.cv.highlights[:2]) if profile.cv else [],
            skills=skills,
            skill_gaps=requirement_keywords(requirements, skills),
        )

    top_skills = [name for name, _ in skill_counts.most_common(5)]
    missing = requirement_keywords(requirements, top_skills, pattern=_CRITERIA_RE)
    pool = CandidatesPool(
        top_skills=top_skills,
        missing_criteria=missing,
        learning_paths=[
            LearningPath(
                title=f"Learn {missing[0]}" if missing else "Technical Skills Upgrade",
                provider="LinkedIn Learning",
            ),
            LearningPath(
                title=f"{missing[1]} Certification" if len(missing) > 1 else "Cloud Certification",
                provider="Coursera",
            ),
        ],
    )

    previous_analysis = existing.skill_analysis if existing else None
    skill_analysis = SkillAnalysis(
        total_screened=total,
        matching_threshold=(previous_analysis.matching_threshold if previous_analysis else 0)
        or settings.default_matching_threshold,
        shortlisted_rate=round_half_up(shortlisted / total * 100) if total else 0,
        average_skill_fit=(previous_analysis.average_skill_fit if previous_analysis else 0)
        or settings.default_average_skill_fit,
    )

    return JobProgressSnapshot(
        title=existing.title if existing else job_title,
        role=existing.role if existing else job_title,
        summary=summary,
        top_candidate=top_candidate,
        skill_analysis=skill_analysis,
        suggested_questions=suggested_questions_for(job_title, interviewer_config),
        candidates_pool=pool,
        candidates=[
            ProgressCandidate(id=applicant.candidate_id, name=applicant.name, email=applicant.email, match_score=app.match_score)
            for app, applicant in ranked[:TOP_CANDIDATE_LIMIT]
        ],
    )


def initial_snapshot(job_title: str, settings: Settings | None = None) -> JobProgressSnapshot:
    settings = settings or get_settings()
    return JobProgressSnapshot(
        title=job_title,
        role=job_title,
        summary=ProgressSummary(bias_score=settings.default_bias_score),
        skill_analysis=SkillAnalysis(matching_threshold=settings.default_matching_threshold, average_skill_fit=0),
    )


def snapshot_from_row(row: JobProgress) -> JobProgressSnapshot:
    return JobProgressSnapshot.model_validate(
        {
            "title": row.title,
            "role": row.role,
            "summary": row.summary or {},
            "top_candidate": row.top_candidate or {},
            "skill_analysis": row.skill_analysis or {},
            "suggested_questions": row.suggested_questions or [],
            "candidates_pool": row.candidates_pool or {},
            "candidates": row.candidates or [],
        }
    )


def serialize_job_progress(row: JobProgress) -> dict[str, Any]:
    payload = snapshot_from_row(row).model_dump()
    payload.update(
        {
            "id": row.id,
            "job_id": row.job_id,
            "version": row.version,
            "computed_at": row.computed_at.isoformat() if row.computed_at else None,
        }
    )
    return payload


def parse_candidate_profile(raw: dict[str, Any] | None, *, candidate_id: int | None = None) -> CandidateProfile | None:
    if raw is None:
        return None
    try:
        return CandidateProfile.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Ignoring malformed candidate profile candidate_id=%s error=%s", candidate_id, exc)
        return None


def parse_interviewer_config(job: Job) -> AIInterviewerConfig | None:
    if not job.ai_interviewer_config:
        return None
    try:
        return AIInterviewerConfig.model_validate(job.ai_interviewer_config)
    except ValidationError as exc:
        logger.warning("Ignoring malformed interviewer config job_id=%s error=%s", job.id, exc)
        return None


class JobProgressAggregator:
    def __init__(self, session: Session, settings: Settings | None = None, event_bus: EventBus | None = None):
        self.session = session
        self.repo = Repository(session)
        self.settings = settings or get_settings()
        self.event_bus = event_bus or get_event_bus()

    def recompute(self, job_id: int) -> JobProgress | None:
        job = self.repo.get_job(job_id)
        if job is None:
            logger.info("Skipping job progress for missing job_id=%s", job_id)
            return None

        existing_row = self.repo.get_job_progress(job_id)
        existing = snapshot_from_row(existing_row) if existing_row else None

        views: list[ApplicationView] = []
        for application in self.repo.list_applications_for_job(job_id):
            candidate = self.repo.get_candidate(application.candidate_id)
            applicant = None
            if candidate is not None:
                applicant = Applicant(
                    candidate_id=candidate.id,
                    name=candidate.name,
                    email=candidate.email,
                    profile=parse_candidate_profile(candidate.candidate_profile, candidate_id=candidate.id),
                )
            views.append(
                ApplicationView(status=application.status, match_score=application.match_score, applicant=applicant)
            )

        snapshot = compute_job_progress(
            job_title=job.title,
            requirements=list(job.requirements or []),
            interviewer_config=parse_interviewer_config(job),
            applications=views,
            existing=existing,
            settings=self.settings,
        )
        row = self.repo.save_job_progress(job_id, snapshot.model_dump())
        logger.info(
            "Recomputed job progress job_id=%s version=%s total=%s",
            job_id,
            row.version,
            snapshot.summary.total_resumes,
        )
        self.event_bus.publish(
            job_id,
            {
                "type": "job_progress.updated",
                "job_id": job_id,
                "version": row.version,
                "summary": snapshot.summary.model_dump(),
            },
        )
        return row

    def create_initial(self, job: Job) -> JobProgress:
        return self.repo.save_job_progress(job.id, initial_snapshot(job.title, self.settings).model_dump())

    def update_fields(self, job_id: int, fields: dict[str, Any]) -> JobProgress:
        row = self.repo.get_job_progress(job_id)
        if row is None:
            raise ValueError(f"Job progress not found for job ID: {job_id}")

        merged = snapshot_from_row(row).model_dump()
        merged.update({key: value for key, value in fields.items() if value is not None})
        snapshot = JobProgressSnapshot.model_validate(merged)
        return self.repo.save_job_progress(job_id, snapshot.model_dump())

    def get_job_applications(self, job_id: int) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for application in self.repo.list_applications_for_job(job_id):
            candidate = self.repo.get_candidate(application.candidate_id)
            if candidate is None:
                continue
            rows.append(
                {
                    "id": application.id,
                    "candidate_id": application.candidate_id,
                    "candidate_name": candidate.name,
                    "job_id": application.job_id,
                    "status": application.status,
                    "applied_date": application.applied_date,
                    "progress": application.progress,
                    "match_score": application.match_score,
                }
            )
        return rows

    def generate_random(self, job_id: int, rng: random.Random | None = None) -> JobProgress:
        """Demo-only snapshot filled with plausible random numbers."""
        rng = rng or random.Random()
        job = self.repo.get_job(job_id)
        if job is None:
            raise ValueError(f"Job not found: {job_id}")

        candidates = self.repo.list_candidates()[:5]
        total = rng.randint(100, 399)
        meeting = int(total * (rng.random() * 0.3 + 0.2))
        shortlisted = int(meeting * (rng.random() * 0.3 + 0.1))

        top = TopCandidate()
        if candidates:
            pick = rng.choice(candidates)
            top = TopCandidate(
                name=pick.name,
                position=job.title,
                match_percentage=rng.randint(80, 99),
                education="MSc in Computer Science",
                location="Remote",
                achievements=[
                    "Led development of key features in previous role",
                    "Improved system performance by 30%",
                ],
                skills=["JavaScript", "React", "TypeScript", "Node.js"],
                skill_gaps=["Cloud Infrastructure", "DevOps", "Team Leadership"],
            )

        snapshot = JobProgressSnapshot(
            title=job.title,
            role=job.title,
            summary=ProgressSummary(
                total_resumes=total,
                meeting_min_criteria=meeting,
                shortlisted=shortlisted,
                rejected=total - meeting,
                bias_score=rng.randint(85, 94),
            ),
            top_candidate=top,
            skill_analysis=SkillAnalysis(
                total_screened=total,
                matching_threshold=self.settings.default_matching_threshold,
                shortlisted_rate=int(shortlisted / total * 100),
                average_skill_fit=rng.randint(60, 79),
            ),
            suggested_questions=suggested_questions_for(job.title, None),
            candidates_pool=CandidatesPool(
                top_skills=["JavaScript", "React", "TypeScript", "Node.js", "SQL"],
                missing_criteria=["Cloud Infrastructure", "DevOps Experience", "Team Leadership"],
                learning_paths=[
                    LearningPath(title="Cloud Certification Path", provider="AWS Training & Certification"),
                    LearningPath(title="DevOps Engineer Path", provider="LinkedIn Learning"),
                ],
            ),
            candidates=[
                ProgressCandidate(id=c.id, name=c.name, email=c.email, match_score=rng.randint(50, 99))
                for c in candidates
            ],
        )
        return self.repo.save_job_progress(job_id, snapshot.model_dump())
