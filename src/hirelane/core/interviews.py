from __future__ import annotations

import logging
import random
from typing import Any

from sqlalchemy.orm import Session

from hirelane.core.meeting_codes import generate_interview_code
from hirelane.core.runtime import get_task_queue
from hirelane.core.tasks import TaskQueue, schedule_vector_removal, schedule_vector_sync
from hirelane.db.models import InterviewRequest
from hirelane.db.repositories import Repository
from hirelane.search.documents import INTERVIEW_REQUESTS_TABLE

logger = logging.getLogger(__name__)


def interview_to_dict(request: InterviewRequest) -> dict[str, Any]:
    return {
        "id": request.id,
        "candidate_id": request.candidate_id,
        "job_id": request.job_id,
        "position": request.position,
        "date": request.date,
        "time": request.time,
        "status": request.status,
        "meeting_code": request.meeting_code,
        "notes": request.notes,
        "interviewer_ids": request.interviewer_ids,
        "location": request.location,
        "duration_type": request.duration_type,
        "meeting_link": request.meeting_link,
        "round": request.round,
        "interview_type": request.interview_type,
        "rescheduled_from": request.rescheduled_from,
        "created_at": request.created_at.isoformat() if request.created_at else None,
        "updated_at": request.updated_at.isoformat() if request.updated_at else None,
    }


class InterviewService:
    def __init__(self, session: Session, queue: TaskQueue | None = None, rng: random.Random | None = None):
        self.session = session
        self.repo = Repository(session)
        self.queue = queue or get_task_queue()
        self.rng = rng

    def create_interview_request(self, payload: dict[str, Any]) -> InterviewRequest:
        values = dict(payload)
        candidate_id = values.get("candidate_id")
        if self.repo.get_candidate(candidate_id) is None:
            raise ValueError(f"Candidate with ID {candidate_id} not found")
        job_id = values.get("job_id")
        if job_id and self.repo.get_job(job_id) is None:
            raise ValueError(f"Job with ID {job_id} not found")

        values["meeting_code"] = generate_interview_code(self.rng)
        request = self.repo.create_interview_request(**values)
        schedule_vector_sync(self.queue, INTERVIEW_REQUESTS_TABLE, request.id)
        logger.info("Created interview request id=%s candidate_id=%s", request.id, candidate_id)
        return request

    def update_status(self, request_id: int, status: str) -> InterviewRequest:
        self._require(request_id)
        request = self.repo.update_interview_request(request_id, {"status": status})
        schedule_vector_sync(self.queue, INTERVIEW_REQUESTS_TABLE, request_id)
        return request

    def reschedule(self, request_id: int, new_date: str, new_time: str) -> InterviewRequest:
        current = self._require(request_id)
        request = self.repo.update_interview_request(
            request_id,
            {
                "date": new_date,
                "time": new_time,
                "status": "rescheduled",
                "rescheduled_from": {"date": current.date, "time": current.time},
            },
        )
        schedule_vector_sync(self.queue, INTERVIEW_REQUESTS_TABLE, request_id)
        return request

    def delete(self, request_id: int) -> None:
        self._require(request_id)
        self.repo.delete_interview_request(request_id)
        schedule_vector_removal(self.queue, INTERVIEW_REQUESTS_TABLE, request_id)

    def ensure_meeting_code(self, request_id: int) -> str:
        request = self._require(request_id)
        if request.meeting_code:
            return request.meeting_code
        code = generate_interview_code(self.rng)
        self.repo.update_interview_request(request_id, {"meeting_code": code})
        return code

    def schedule_with_name(
        self,
        *,
        candidate_name: str,
        position: str,
        date: str,
        time: str,
        notes: str = "",
        location: str | None = None,
        interview_type: str | None = None,
        meeting_link: str = "",
        job_id: int | None = None,
    ) -> dict[str, Any]:
        needle = candidate_name.lower().strip()
        matches = [candidate for candidate in self.repo.list_candidates() if needle in candidate.name.lower()]

        if not matches:
            return {
                "success": False,
                "error": (
                    f'I couldn\'t find any candidates named "{candidate_name}". '
                    "Please check the spelling or provide the candidate ID directly."
                ),
            }
        if len(matches) > 1:
            options = "\n".join(
                f"{c.name}{f' ({c.position})' if c.position else ''} - {c.email}" for c in matches
            )
            return {
                "success": False,
                "error": (
                    f'I found multiple candidates with the name "{candidate_name}". '
                    f"Please specify which one you want to schedule an interview with:\n\n{options}"
                ),
            }

        if job_id and self.repo.get_job(job_id) is None:
            return {
                "success": False,
                "error": "The specified job ID does not exist. Please provide a valid job ID or omit it.",
            }

        candidate = matches[0]
        request = self.create_interview_request(
            {
                "candidate_id": candidate.id,
                "job_id": job_id,
                "position": position,
                "date": date,
                "time": time,
                "status": "Scheduled",
                "notes": notes or "",
                "location": location or "Remote",
                "interview_type": interview_type or "General",
                "meeting_link": meeting_link or "",
            }
        )
        return {"success": True, "interview_id": request.id, "candidate_id": candidate.id}

    def _require(self, request_id: int) -> InterviewRequest:
        request = self.repo.get_interview_request(request_id)
        if request is None:
            raise ValueError(f"Interview request with ID {request_id} not found")
        return request
