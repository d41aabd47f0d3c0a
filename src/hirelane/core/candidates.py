from __future__ import annotations

import io
import logging
import random
from datetime import datetime
from typing import Any

from pypdf import PdfReader
from sqlalchemy.orm import Session

from hirelane.config import Settings, get_settings
from hirelane.core.job_progress import status_progress
from hirelane.core.runtime import get_task_queue
from hirelane.core.storage import BlobStore
from hirelane.core.tasks import (
    ANALYZE_CV,
    TaskQueue,
    schedule_job_progress,
    schedule_vector_removal,
    schedule_vector_sync,
)
from hirelane.db.models import Candidate, File, JobApplication
from hirelane.db.repositories import Repository, now_ms
from hirelane.llm.prompts import CV_ANALYSIS_PROMPT
from hirelane.llm.router import LLMRouter
from hirelane.search.documents import CANDIDATES_TABLE
from hirelane.types import CandidateProfile

logger = logging.getLogger(__name__)

RESUME_CATEGORY = "resume"
MEETING_RECORDING_CATEGORY = "meeting_recording"
SUMMARY_PLACEHOLDER = "Generating AI summary..."


def long_date(value: datetime) -> str:
    """``October 9, 2026``."""
    return f"{value:%B} {value.day}, {value:%Y}"


def initials_for(name: str) -> str:
    return "".join(part[0] for part in name.split() if part).upper()[:3]


def candidate_to_dict(candidate: Candidate) -> dict[str, Any]:
    return {
        "id": candidate.id,
        "name": candidate.name,
        "initials": candidate.initials,
        "email": candidate.email,
        "phone": candidate.phone,
        "color": candidate.color,
        "text_color": candidate.text_color,
        "meeting_code": candidate.meeting_code,
        "cover_letter": candidate.cover_letter,
        "status": candidate.status,
        "applied_date": candidate.applied_date,
        "position": candidate.position,
        "recruiter": candidate.recruiter,
        "progress": candidate.progress,
        "ai_score": candidate.ai_score,
        "last_activity": candidate.last_activity,
        "profile": candidate.profile,
        "candidate_profile": candidate.candidate_profile,
        "cv_file_id": candidate.cv_file_id,
    }


def file_to_dict(file: File) -> dict[str, Any]:
    return {
        "id": file.id,
        "storage_id": file.storage_id,
        "file_name": file.file_name,
        "file_size": file.file_size,
        "file_type": file.file_type,
        "candidate_id": file.candidate_id,
        "uploaded_at": file.uploaded_at,
        "cv_summary": file.cv_summary,
        "file_category": file.file_category,
        "status": file.status,
        "analysis_id": file.analysis_id,
    }


def application_to_dict(application: JobApplication) -> dict[str, Any]:
    return {
        "id": application.id,
        "candidate_id": application.candidate_id,
        "job_id": application.job_id,
        "status": application.status,
        "match_score": application.match_score,
        "applied_date": application.applied_date,
        "progress": application.progress,
        "meeting_code": application.meeting_code,
    }


def extract_text(content: bytes, file_name: str = "", file_type: str = "") -> str:
    if file_type == "application/pdf" or file_name.lower().endswith(".pdf"):
        reader = PdfReader(io.BytesIO(content))
        return "".join(page.extract_text() or "" for page in reader.pages)
    return content.decode("utf-8", errors="ignore")


class CandidateService:
    def __init__(
        self,
        session: Session,
        queue: TaskQueue | None = None,
        settings: Settings | None = None,
        store: BlobStore | None = None,
    ):
        self.session = session
        self.repo = Repository(session)
        self.settings = settings or get_settings()
        self.queue = queue or get_task_queue()
        self.store = store or BlobStore(settings=self.settings)

    # candidates

    def create_candidate(self, payload: dict[str, Any]) -> Candidate:
        values = dict(payload)
        if not values.get("initials"):
            values["initials"] = initials_for(values.get("name", ""))
        values.setdefault("applied_date", long_date(datetime.now()))
        candidate = self.repo.create_candidate(**values)
        schedule_vector_sync(self.queue, CANDIDATES_TABLE, candidate.id)
        logger.info("Created candidate id=%s", candidate.id)
        return candidate

    def update_candidate(self, candidate_id: int, updates: dict[str, Any]) -> Candidate:
        candidate = self.repo.update_candidate(candidate_id, updates)
        schedule_vector_sync(self.queue, CANDIDATES_TABLE, candidate_id)
        if "candidate_profile" in updates:
            self._recompute_jobs_for(candidate_id)
        return candidate

    def update_candidate_profile(self, candidate_id: int, profile: CandidateProfile) -> Candidate:
        return self.update_candidate(candidate_id, {"candidate_profile": profile.model_dump()})

    def delete_candidate(self, candidate_id: int) -> None:
        job_ids = sorted({app.job_id for app in self.repo.list_applications_for_candidate(candidate_id)})
        self.repo.delete_candidate(candidate_id)
        schedule_vector_removal(self.queue, CANDIDATES_TABLE, candidate_id)
        for job_id in job_ids:
            schedule_job_progress(self.queue, job_id)

    def _recompute_jobs_for(self, candidate_id: int) -> None:
        for application in self.repo.list_applications_for_candidate(candidate_id):
            schedule_job_progress(self.queue, application.job_id)

    # applications

    def apply_candidate(self, candidate_id: int, job_id: int, match_score: float = 0.0) -> JobApplication:
        candidate = self.repo.get_candidate(candidate_id)
        if candidate is None:
            raise ValueError("Candidate not found")
        if self.repo.get_job(job_id) is None:
            raise ValueError("Job not found")
        if self.repo.find_application(candidate_id, job_id) is not None:
            raise ValueError("Candidate has already applied to this job")

        application = self.repo.create_application(
            candidate_id=candidate_id,
            job_id=job_id,
            status="applied",
            match_score=match_score,
            applied_date=long_date(datetime.now()),
            progress=status_progress("applied"),
            meeting_code=candidate.meeting_code,
        )
        schedule_job_progress(self.queue, job_id)
        logger.info("Candidate applied candidate_id=%s job_id=%s", candidate_id, job_id)
        return application

    def update_application_status(self, application_id: int, status: str) -> JobApplication:
        application = self.repo.get_application(application_id)
        if application is None:
            raise ValueError("Application not found")
        application = self.repo.update_application(
            application_id, {"status": status, "progress": status_progress(status)}
        )
        schedule_job_progress(self.queue, application.job_id)
        return application

    # files

    def save_file(
        self,
        candidate_id: int,
        *,
        content: bytes,
        file_name: str,
        file_type: str,
        file_category: str = RESUME_CATEGORY,
    ) -> File:
        if self.repo.get_candidate(candidate_id) is None:
            raise ValueError(f"candidate {candidate_id} not found")
        storage_id = self.store.save(content, file_name)
        file = self.repo.create_file(
            storage_id=storage_id,
            file_name=file_name,
            file_size=len(content),
            file_type=file_type,
            candidate_id=candidate_id,
            uploaded_at=now_ms(),
            file_category=file_category,
        )
        if file_category == RESUME_CATEGORY:
            self.repo.update_candidate(candidate_id, {"cv_file_id": file.id})
        return file

    def upload_and_analyze(
        self,
        candidate_id: int,
        *,
        content: bytes,
        file_name: str,
        file_type: str,
        analysis_id: str | None = None,
    ) -> File:
        if self.repo.get_candidate(candidate_id) is None:
            raise ValueError(f"candidate {candidate_id} not found")
        analysis_id = analysis_id or f"analysis_{now_ms()}_{random.randint(0, 999)}"
        storage_id = self.store.save(content, file_name)
        file = self.repo.create_file(
            storage_id=storage_id,
            file_name=file_name,
            file_size=len(content),
            file_type=file_type,
            candidate_id=candidate_id,
            uploaded_at=now_ms(),
            analysis_id=analysis_id,
            status="uploading",
            file_category=RESUME_CATEGORY,
        )
        self.repo.update_candidate(candidate_id, {"cv_file_id": file.id})
        self.queue.enqueue(ANALYZE_CV, {"file_id": file.id, "analysis_id": analysis_id})
        logger.info("Queued CV analysis file_id=%s analysis_id=%s", file.id, analysis_id)
        return file

    def update_cv_summary(self, file_id: int, summary: str) -> File:
        return self.repo.update_file(file_id, {"cv_summary": summary})

    def update_file_status(self, file_id: int, status: str) -> File:
        return self.repo.update_file(file_id, {"status": status})

    def list_files(self, candidate_id: int | None = None, category: str | None = None) -> list[File]:
        return self.repo.list_files(candidate_id=candidate_id, category=category)

    def list_meeting_recordings(self, candidate_id: int) -> list[File]:
        return self.repo.list_files(candidate_id=candidate_id, category=MEETING_RECORDING_CATEGORY)

    def get_resume_by_candidate_id(self, candidate_id: int) -> dict[str, Any]:
        """The candidate's current resume, or an empty mapping.

        ``cv_file_id`` wins when it still points at a row; otherwise the most
        recent upload for the candidate is used.
        """
        candidate = self.repo.get_candidate(candidate_id)
        if candidate is None:
            return {}

        if candidate.cv_file_id:
            file = self.repo.get_file(candidate.cv_file_id)
            if file is not None:
                return self._resume_payload(file)

        latest = self.repo.latest_file_for_candidate(candidate_id)
        if latest is not None:
            return self._resume_payload(latest)
        return {}

    def get_latest_resume_file(self, candidate_id: int) -> File | None:
        return self.repo.latest_file_for_candidate(candidate_id)

    @staticmethod
    def _resume_payload(file: File) -> dict[str, Any]:
        return {
            "id": file.id,
            "file_name": file.file_name,
            "storage_id": file.storage_id,
            "url": f"/api/files/{file.id}/download",
            "cv_summary": file.cv_summary,
        }


class CVAnalyzer:
    def __init__(
        self,
        session: Session,
        router: LLMRouter | None = None,
        store: BlobStore | None = None,
        queue: TaskQueue | None = None,
    ):
        self.session = session
        self.repo = Repository(session)
        self.router = router or LLMRouter()
        self.store = store or BlobStore()
        self.queue = queue or get_task_queue()

    def analyze(self, file_id: int, analysis_id: str) -> CandidateProfile:
        file = self.repo.get_file(file_id)
        if file is None:
            raise ValueError("File not found")
        if file.analysis_id != analysis_id:
            raise ValueError("Analysis ID mismatch")

        try:
            cv_text = extract_text(self.store.read(file.storage_id), file.file_name, file.file_type)
            stored_prompt = self.repo.get_prompt_by_name("cv_analysis")
            data = self.router.analyze_cv(
                prompt_template=stored_prompt.content if stored_prompt else CV_ANALYSIS_PROMPT,
                cv_text=cv_text,
            )
            if not data.get("candidateProfile"):
                raise ValueError("Invalid response structure")
            profile = CandidateProfile.model_validate(data["candidateProfile"])

            if file.candidate_id is not None:
                self.repo.update_candidate(
                    file.candidate_id,
                    {
                        "candidate_profile": profile.model_dump(),
                        "ai_score": profile.cv.score if profile.cv else 0,
                        "cv_file_id": file.id,
                    },
                )
                schedule_vector_sync(self.queue, CANDIDATES_TABLE, file.candidate_id)
                for application in self.repo.list_applications_for_candidate(file.candidate_id):
                    schedule_job_progress(self.queue, application.job_id)
            self.repo.update_file(file.id, {"cv_summary": SUMMARY_PLACEHOLDER})
            summary = self.router.summarize_cv(profile)
            self.repo.update_file(
                file.id,
                {
                    "cv_summary": summary or "Error generating AI summary: no summary returned",
                    "status": "analyzed",
                },
            )
        except Exception:
            self.session.rollback()
            self.repo.update_file(file_id, {"status": "error"})
            raise

        logger.info("Analyzed CV file_id=%s candidate_id=%s", file_id, file.candidate_id)
        return profile
