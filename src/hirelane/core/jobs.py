from __future__ import annotations

import logging
import random
import re
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from hirelane.config import Settings, get_settings
from hirelane.core.interview_prompt import build_interviewer_prompt
from hirelane.core.job_progress import JobProgressAggregator
from hirelane.core.meeting_codes import generate_unique_meeting_code
from hirelane.core.runtime import get_task_queue
from hirelane.core.tasks import TaskQueue, schedule_vector_removal, schedule_vector_sync
from hirelane.db.models import Job
from hirelane.db.repositories import Repository
from hirelane.search.documents import JOBS_TABLE
from hirelane.types import AIInterviewerConfig

logger = logging.getLogger(__name__)

AI_JOB_COMPANY = "Your Company"
AI_JOB_COMPANY_LOGO = "/company-logo.png"
JOB_LIFETIME_DAYS = 30
FUZZY_STOP_WORDS = {"the", "and", "for", "with", "job", "position"}

PUBLIC_JOB_FIELDS = (
    "id",
    "title",
    "company",
    "company_logo",
    "type",
    "description",
    "requirements",
    "desirables",
    "location",
    "level",
    "meeting_code",
)


def short_date(value: datetime) -> str:
    """``Oct 09, 2026``; matches the en-US 2-digit-day short form."""
    return f"{value:%b} {value:%d}, {value:%Y}"


def job_to_dict(job: Job) -> dict[str, Any]:
    return {
        "id": job.id,
        "title": job.title,
        "company": job.company,
        "company_logo": job.company_logo,
        "type": job.type,
        "featured": job.featured,
        "description": job.description,
        "requirements": job.requirements,
        "desirables": job.desirables,
        "benefits": job.benefits,
        "salary": job.salary,
        "location": job.location,
        "posted": job.posted,
        "expiry": job.expiry,
        "level": job.level,
        "experience": job.experience,
        "education": job.education,
        "status": job.status,
        "meeting_code": job.meeting_code,
        "interview_prompt": job.interview_prompt,
        "ai_interviewer_config": job.ai_interviewer_config,
        "created_at": job.created_at.isoformat() if job.created_at else None,
        "updated_at": job.updated_at.isoformat() if job.updated_at else None,
    }


def public_job_view(job: Job) -> dict[str, Any]:
    payload = job_to_dict(job)
    return {key: payload[key] for key in PUBLIC_JOB_FIELDS}


def fuzzy_title_terms(title: str) -> list[str]:
    return [term for term in title.lower().split() if len(term) > 2 and term not in FUZZY_STOP_WORDS]


def fuzzy_job_score(job: Job, terms: list[str], company: str | None, location: str | None) -> float:
    title = job.title.lower()
    score = float(sum(1 for term in terms if term in title))
    for term in terms:
        if re.search(rf"\b{re.escape(term)}\b", title):
            score += 0.5
    if company and company.lower() in job.company.lower():
        score += 0.3
    if location and location.lower() in job.location.lower():
        score += 0.3
    return score


class JobService:
    def __init__(
        self,
        session: Session,
        queue: TaskQueue | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        self.session = session
        self.repo = Repository(session)
        self.settings = settings or get_settings()
        self.queue = queue or get_task_queue()
        self.rng = rng

    def new_meeting_code(self) -> str:
        return generate_unique_meeting_code(
            self.repo.job_meeting_code_exists,
            rng=self.rng,
            max_attempts=self.settings.meeting_code_max_attempts,
        )

    def create_job(self, payload: dict[str, Any]) -> Job:
        values = dict(payload)
        if not values.get("meeting_code"):
            values["meeting_code"] = self.new_meeting_code()
        job = self.repo.create_job(**values)
        JobProgressAggregator(self.session, self.settings).create_initial(job)
        schedule_vector_sync(self.queue, JOBS_TABLE, job.id)
        logger.info("Created job id=%s title=%s meeting_code=%s", job.id, job.title, job.meeting_code)
        return job

    def update_job(self, job_id: int, updates: dict[str, Any]) -> Job:
        job = self.repo.update_job(job_id, updates)
        if "title" in updates:
            progress = self.repo.get_job_progress(job_id)
            if progress is not None:
                self.repo.save_job_progress(job_id, {"title": job.title, "role": job.title})
        schedule_vector_sync(self.queue, JOBS_TABLE, job.id)
        return job

    def delete_job(self, job_id: int) -> None:
        self.repo.delete_job(job_id)
        schedule_vector_removal(self.queue, JOBS_TABLE, job_id)
        logger.info("Deleted job id=%s", job_id)

    def bulk_delete_jobs(self, job_ids: list[int]) -> dict[str, Any]:
        deleted = 0
        failed: list[int] = []
        for job_id in job_ids:
            try:
                self.delete_job(job_id)
                deleted += 1
            except Exception as exc:
                self.session.rollback()
                failed.append(job_id)
                logger.warning("Bulk delete failed job_id=%s error=%s", job_id, exc)

        if failed:
            return {
                "success": deleted > 0,
                "message": f"Deleted {deleted} jobs. Failed to delete {len(failed)} jobs.",
                "deleted_count": deleted,
                "failed_ids": failed,
            }
        return {
            "success": True,
            "message": f"Successfully deleted {deleted} jobs.",
            "deleted_count": deleted,
            "failed_ids": [],
        }

    def get_job_by_meeting_code(self, meeting_code: str) -> Job | None:
        return self.repo.get_job_by_meeting_code(meeting_code.strip())

    def create_job_from_ai(self, **fields: Any) -> dict[str, Any]:
        title = fields.get("title", "")
        try:
            now = datetime.now()
            values = dict(fields)
            values.update(
                {
                    "company": AI_JOB_COMPANY,
                    "company_logo": AI_JOB_COMPANY_LOGO,
                    "featured": False,
                    "posted": short_date(now),
                    "expiry": short_date(now + timedelta(days=JOB_LIFETIME_DAYS)),
                }
            )
            job = self.create_job(values)
        except Exception as exc:
            self.session.rollback()
            logger.warning("AI job creation failed title=%s error=%s", title, exc)
            return {"job_id": None, "success": False, "message": f"Error creating job: {exc}"}

        return {
            "job_id": job.id,
            "success": True,
            "message": f"Successfully created job listing for {job.title} with meeting code {job.meeting_code}",
        }

    def delete_job_from_ai(
        self, job_title: str, company: str | None = None, location: str | None = None
    ) -> dict[str, Any]:
        try:
            job = self.repo.find_job_by_title(job_title)
            if job is None:
                jobs = self.repo.list_jobs()
                if not jobs:
                    return {"success": False, "message": "There are no job listings in the database."}

                terms = fuzzy_title_terms(job_title)
                scored = sorted(
                    ((fuzzy_job_score(item, terms, company, location), item) for item in jobs),
                    key=lambda pair: pair[0],
                    reverse=True,
                )
                if scored and scored[0][0] > 0:
                    job = scored[0][1]

            if job is None:
                message = f'No job found matching "{job_title}"'
                if company:
                    message += f" at {company}"
                if location:
                    message += f" in {location}"
                return {"success": False, "message": message}

            title = job.title
            job_id = job.id
            self.delete_job(job_id)
        except Exception as exc:
            self.session.rollback()
            logger.warning("AI job deletion failed title=%s error=%s", job_title, exc)
            return {"success": False, "message": f"Error deleting job: {exc}"}

        return {
            "success": True,
            "message": f'Successfully deleted the job listing for "{title}"',
            "deleted_job_id": job_id,
        }

    def save_ai_interviewer_config(self, job_id: int, config: AIInterviewerConfig) -> Job:
        job = self.repo.update_job(job_id, {"ai_interviewer_config": config.model_dump()})
        schedule_vector_sync(self.queue, JOBS_TABLE, job.id)
        return job

    def apply_ai_interviewer_config(self, job_id: int, candidate_name: str | None = None) -> str:
        job = self.repo.get_job(job_id)
        if job is None:
            raise ValueError(f"job {job_id} not found")

        config = AIInterviewerConfig.model_validate(job.ai_interviewer_config) if job.ai_interviewer_config else None
        prompt = build_interviewer_prompt(job, config, candidate_name)
        self.repo.update_job(job_id, {"interview_prompt": prompt})
        schedule_vector_sync(self.queue, JOBS_TABLE, job_id)
        return prompt
