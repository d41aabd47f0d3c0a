from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm import Session

from hirelane.db.base import utcnow
from hirelane.db.models import (
    BackgroundTask,
    Candidate,
    DbDocument,
    File,
    InterviewRequest,
    Job,
    JobApplication,
    JobProgress,
    Prompt,
)


def now_ms() -> int:
    return int(time.time() * 1000)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    @staticmethod
    def _patch(obj, values: dict[str, Any]) -> None:
        for key, value in values.items():
            if not hasattr(obj, key):
                raise ValueError(f"unknown field {key!r} for {type(obj).__name__}")
            setattr(obj, key, value)

    # jobs

    def create_job(self, **values: Any) -> Job:
        return self._save(Job(**values))

    def get_job(self, job_id: int) -> Job | None:
        return self.session.get(Job, job_id)

    def list_jobs(self, limit: int | None = None) -> list[Job]:
        statement = select(Job).order_by(Job.id.asc())
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.scalars(statement).all())

    def update_job(self, job_id: int, values: dict[str, Any]) -> Job:
        job = self.session.get(Job, job_id)
        if not job:
            raise ValueError(f"job {job_id} not found")
        self._patch(job, values)
        return self._save(job)

    def delete_job(self, job_id: int) -> None:
        job = self.session.get(Job, job_id)
        if not job:
            raise ValueError(f"job {job_id} not found")
        self.session.execute(delete(JobApplication).where(JobApplication.job_id == job_id))
        self.session.execute(delete(JobProgress).where(JobProgress.job_id == job_id))
        self.session.delete(job)
        self.session.commit()

    def find_job_by_title(self, title: str) -> Job | None:
        return self.session.scalar(select(Job).where(Job.title == title).order_by(Job.id.asc()).limit(1))

    def get_job_by_meeting_code(self, meeting_code: str) -> Job | None:
        return self.session.scalar(
            select(Job).where(Job.meeting_code == meeting_code).order_by(Job.id.asc()).limit(1)
        )

    def job_meeting_code_exists(self, meeting_code: str) -> bool:
        return self.session.scalar(select(Job.id).where(Job.meeting_code == meeting_code).limit(1)) is not None

    # job progress

    def get_job_progress(self, job_id: int) -> JobProgress | None:
        return self.session.scalar(select(JobProgress).where(JobProgress.job_id == job_id))

    def save_job_progress(self, job_id: int, values: dict[str, Any]) -> JobProgress:
        existing = self.get_job_progress(job_id)
        if existing:
            self._patch(existing, values)
            existing.version = existing.version + 1
            existing.computed_at = utcnow()
            obj = existing
        else:
            obj = JobProgress(job_id=job_id, version=1, computed_at=utcnow(), **values)
        return self._save(obj)

    # candidates

    def create_candidate(self, **values: Any) -> Candidate:
        return self._save(Candidate(**values))

    def get_candidate(self, candidate_id: int) -> Candidate | None:
        return self.session.get(Candidate, candidate_id)

    def list_candidates(self) -> list[Candidate]:
        return list(self.session.scalars(select(Candidate).order_by(Candidate.id.asc())).all())

    def update_candidate(self, candidate_id: int, values: dict[str, Any]) -> Candidate:
        candidate = self.session.get(Candidate, candidate_id)
        if not candidate:
            raise ValueError(f"candidate {candidate_id} not found")
        self._patch(candidate, values)
        return self._save(candidate)

    def delete_candidate(self, candidate_id: int) -> None:
        candidate = self.session.get(Candidate, candidate_id)
        if not candidate:
            raise ValueError(f"candidate {candidate_id} not found")
        self.session.execute(delete(JobApplication).where(JobApplication.candidate_id == candidate_id))
        self.session.execute(delete(InterviewRequest).where(InterviewRequest.candidate_id == candidate_id))
        self.session.delete(candidate)
        self.session.commit()

    # applications

    def create_application(self, **values: Any) -> JobApplication:
        return self._save(JobApplication(**values))

    def get_application(self, application_id: int) -> JobApplication | None:
        return self.session.get(JobApplication, application_id)

    def find_application(self, candidate_id: int, job_id: int) -> JobApplication | None:
        return self.session.scalar(
            select(JobApplication).where(
                JobApplication.candidate_id == candidate_id,
                JobApplication.job_id == job_id,
            )
        )

    def list_applications_for_job(self, job_id: int) -> list[JobApplication]:
        statement = select(JobApplication).where(JobApplication.job_id == job_id).order_by(JobApplication.id.asc())
        return list(self.session.scalars(statement).all())

    def list_applications_for_candidate(self, candidate_id: int) -> list[JobApplication]:
        statement = (
            select(JobApplication)
            .where(JobApplication.candidate_id == candidate_id)
            .order_by(JobApplication.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def update_application(self, application_id: int, values: dict[str, Any]) -> JobApplication:
        application = self.session.get(JobApplication, application_id)
        if not application:
            raise ValueError(f"application {application_id} not found")
        self._patch(application, values)
        return self._save(application)

    # files

    def create_file(self, **values: Any) -> File:
        return self._save(File(**values))

    def get_file(self, file_id: int) -> File | None:
        return self.session.get(File, file_id)

    def update_file(self, file_id: int, values: dict[str, Any]) -> File:
        file = self.session.get(File, file_id)
        if not file:
            raise ValueError("File not found")
        self._patch(file, values)
        return self._save(file)

    def list_files(self, *, candidate_id: int | None = None, category: str | None = None) -> list[File]:
        statement = select(File)
        if candidate_id is not None:
            statement = statement.where(File.candidate_id == candidate_id)
        if category is not None:
            statement = statement.where(File.file_category == category)
        return list(self.session.scalars(statement.order_by(File.uploaded_at.desc(), File.id.desc())).all())

    def latest_file_for_candidate(self, candidate_id: int) -> File | None:
        statement = (
            select(File)
            .where(File.candidate_id == candidate_id)
            .order_by(File.uploaded_at.desc(), File.id.desc())
            .limit(1)
        )
        return self.session.scalar(statement)

    # interview requests

    def create_interview_request(self, **values: Any) -> InterviewRequest:
        return self._save(InterviewRequest(**values))

    def get_interview_request(self, request_id: int) -> InterviewRequest | None:
        return self.session.get(InterviewRequest, request_id)

    def list_interview_requests(self, *, candidate_id: int | None = None, status: str | None = None) -> list[InterviewRequest]:
        statement = select(InterviewRequest)
        if candidate_id is not None:
            statement = statement.where(InterviewRequest.candidate_id == candidate_id)
        if status is not None:
            statement = statement.where(InterviewRequest.status == status)
        return list(self.session.scalars(statement.order_by(InterviewRequest.id.asc())).all())

    def update_interview_request(self, request_id: int, values: dict[str, Any]) -> InterviewRequest:
        request = self.session.get(InterviewRequest, request_id)
        if not request:
            raise ValueError(f"interview request {request_id} not found")
        self._patch(request, values)
        return self._save(request)

    def delete_interview_request(self, request_id: int) -> None:
        request = self.session.get(InterviewRequest, request_id)
        if not request:
            raise ValueError(f"interview request {request_id} not found")
        self.session.delete(request)
        self.session.commit()

    # embedding documents

    def list_documents(self) -> list[DbDocument]:
        return list(self.session.scalars(select(DbDocument).order_by(DbDocument.id.asc())).all())

    def documents_for_source(self, table_name: str, document_id: str) -> list[DbDocument]:
        statement = select(DbDocument).where(
            DbDocument.table_name == table_name,
            DbDocument.document_id == document_id,
        )
        return list(self.session.scalars(statement).all())

    def replace_document(
        self,
        *,
        table_name: str,
        document_id: str,
        title: str,
        content: str,
        embedding: list[float],
        metadata: dict[str, Any],
    ) -> DbDocument:
        self.session.execute(
            delete(DbDocument).where(
                DbDocument.table_name == table_name,
                DbDocument.document_id == document_id,
            )
        )
        document = DbDocument(
            title=title,
            content=content,
            table_name=table_name,
            document_id=document_id,
            embedding=embedding,
            metadata_json=metadata,
        )
        return self._save(document)

    def delete_documents(self, table_name: str, document_id: str) -> int:
        result = self.session.execute(
            delete(DbDocument).where(
                DbDocument.table_name == table_name,
                DbDocument.document_id == document_id,
            )
        )
        self.session.commit()
        return int(result.rowcount or 0)

    def count_documents(self, table_name: str, document_id: str) -> int:
        statement = select(func.count(DbDocument.id)).where(
            DbDocument.table_name == table_name,
            DbDocument.document_id == document_id,
        )
        return int(self.session.scalar(statement) or 0)

    # prompts

    def get_prompt(self, prompt_id: int) -> Prompt | None:
        return self.session.get(Prompt, prompt_id)

    def get_prompt_by_name(self, name: str) -> Prompt | None:
        return self.session.scalar(select(Prompt).where(Prompt.name == name))

    def list_prompts(self) -> list[Prompt]:
        return list(self.session.scalars(select(Prompt).order_by(Prompt.name.asc())).all())

    def create_prompt(
        self, *, name: str, content: str, description: str = "", updated_by: str | None = None
    ) -> Prompt:
        if self.get_prompt_by_name(name):
            raise ValueError(f'Prompt with name "{name}" already exists')
        prompt = Prompt(
            name=name,
            content=content,
            description=description,
            last_updated=now_ms(),
            updated_by=updated_by or "system",
        )
        return self._save(prompt)

    def update_prompt(
        self, prompt_id: int, *, content: str, description: str = "", updated_by: str | None = None
    ) -> Prompt:
        prompt = self.session.get(Prompt, prompt_id)
        if not prompt:
            raise ValueError(f"prompt {prompt_id} not found")
        prompt.content = content
        prompt.description = description
        prompt.last_updated = now_ms()
        prompt.updated_by = updated_by or "system"
        return self._save(prompt)

    def upsert_prompt_by_name(
        self, *, name: str, content: str, description: str = "", updated_by: str | None = None
    ) -> Prompt:
        existing = self.get_prompt_by_name(name)
        if not existing:
            return self.create_prompt(name=name, content=content, description=description, updated_by=updated_by)
        return self.update_prompt(existing.id, content=content, description=description, updated_by=updated_by)

    def delete_prompt(self, prompt_id: int) -> int:
        prompt = self.session.get(Prompt, prompt_id)
        if not prompt:
            raise ValueError(f"prompt {prompt_id} not found")
        self.session.delete(prompt)
        self.session.commit()
        return prompt_id

    # background tasks

    def find_pending_task(self, dedupe_key: str) -> BackgroundTask | None:
        statement = select(BackgroundTask).where(
            BackgroundTask.dedupe_key == dedupe_key,
            BackgroundTask.status == "pending",
        )
        return self.session.scalar(statement.limit(1))

    def create_task(self, **values: Any) -> BackgroundTask:
        return self._save(BackgroundTask(**values))

    def get_task(self, task_id: int) -> BackgroundTask | None:
        return self.session.get(BackgroundTask, task_id)

    def list_tasks(self, status: str | None = None) -> list[BackgroundTask]:
        statement = select(BackgroundTask)
        if status is not None:
            statement = statement.where(BackgroundTask.status == status)
        return list(self.session.scalars(statement.order_by(BackgroundTask.id.asc())).all())

    def due_tasks(
        self,
        *,
        stale_before: datetime,
        pending_before: datetime | None = None,
        limit: int | None = None,
    ) -> list[BackgroundTask]:
        """Pending rows due before ``pending_before`` (default now), plus ``running`` rows claimed before ``stale_before``."""
        statement = (
            select(BackgroundTask)
            .where(
                or_(
                    and_(BackgroundTask.status == "pending", BackgroundTask.run_after <= (pending_before or utcnow())),
                    and_(BackgroundTask.status == "running", BackgroundTask.claimed_at <= stale_before),
                )
            )
            .order_by(BackgroundTask.run_after.asc(), BackgroundTask.id.asc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.scalars(statement).all())

    def claim_task(self, task_id: int) -> BackgroundTask | None:
        task = self.session.get(BackgroundTask, task_id)
        if not task or task.status not in ("pending", "running"):
            return None
        task.status = "running"
        task.attempts = task.attempts + 1
        task.claimed_at = utcnow()
        return self._save(task)

    def finish_task(self, task_id: int) -> BackgroundTask:
        task = self.session.get(BackgroundTask, task_id)
        if not task:
            raise ValueError(f"task {task_id} not found")
        task.status = "done"
        task.last_error = ""
        task.finished_at = utcnow()
        return self._save(task)

    def fail_task(self, task_id: int, *, error: str, retry_in_sec: float | None) -> BackgroundTask:
        task = self.session.get(BackgroundTask, task_id)
        if not task:
            raise ValueError(f"task {task_id} not found")
        task.last_error = error
        if retry_in_sec is None:
            task.status = "dead"
            task.finished_at = utcnow()
        else:
            task.status = "pending"
            task.run_after = utcnow() + timedelta(seconds=retry_in_sec)
        return self._save(task)
