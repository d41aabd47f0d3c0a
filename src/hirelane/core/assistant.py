from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from hirelane.core.interviews import InterviewService
from hirelane.core.jobs import JobService
from hirelane.core.tasks import TaskQueue
from hirelane.llm.functions import (
    CREATE_JOB,
    DELETE_JOB,
    NAVIGATE_TO_PAGE,
    SCHEDULE_INTERVIEW,
    find_route_from_query,
)

logger = logging.getLogger(__name__)

DEFAULT_SALARY_RANGE = "90000-120000"
_EXPERIENCE_RE = re.compile(r"\d+\+?\s*years?")
_DEGREE_RE = re.compile(r"[A-Za-z]+(\s+[A-Za-z]+)*\s+degree")
_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%m/%d/%Y", "%d %B %Y")


def parse_arguments(arguments: str | dict[str, Any] | None) -> dict[str, Any]:
    if isinstance(arguments, dict):
        return arguments
    if not arguments:
        return {}
    try:
        value = json.loads(arguments)
    except json.JSONDecodeError as exc:
        raise ValueError(f"function arguments are not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise ValueError("function arguments must be a JSON object")
    return value


def parse_salary(text: str | None) -> dict[str, Any]:
    parts = re.sub(r"[^0-9\-]", "", text or DEFAULT_SALARY_RANGE).split("-")
    numbers = [int(part) for part in parts if part.isdigit()]
    low = numbers[0] if numbers else 0
    high = numbers[1] if len(numbers) > 1 else low
    return {"min": low, "max": high, "currency": "USD", "period": "yearly"}


def normalize_date(value: str) -> str:
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", value or ""):
        return value
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except (TypeError, ValueError):
            continue
    return value


def job_fields_from_arguments(args: dict[str, Any]) -> dict[str, Any]:
    """Expand the flat ``createJob`` arguments into a full job payload."""
    title = args.get("title", "")
    description = args.get("description", "")
    requirements = args.get("requirements", "")
    experience = _EXPERIENCE_RE.search(requirements) if "years" in requirements else None
    education = _DEGREE_RE.search(requirements) if "degree" in requirements else None
    return {
        "title": title,
        "description": {
            "intro": f"We are looking for a talented {title} to join our team.",
            "details": description,
            "responsibilities": description,
            "closing": "If you're passionate about this opportunity, we'd love to hear from you!",
        },
        "requirements": [line for line in requirements.split("\n") if line],
        "desirables": [],
        "benefits": [],
        "salary": parse_salary(args.get("salary")),
        "location": args.get("location", ""),
        "level": "Senior" if "senior" in title.lower() else "Mid-Level",
        "experience": experience.group(0) if experience else "3+ years",
        "education": education.group(0) if education else "Bachelor's degree",
        "type": args.get("employmentType") or "Full-time",
    }


def _optional_id(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid id {value!r}") from exc


class FunctionExecutor:
    """Runs the chat model's function calls against the job and interview services."""

    def __init__(self, session: Session, queue: TaskQueue | None = None):
        self.jobs = JobService(session, queue=queue)
        self.interviews = InterviewService(session, queue=queue)

    def execute(self, name: str, arguments: str | dict[str, Any] | None) -> dict[str, Any]:
        args = parse_arguments(arguments)
        handler = {
            CREATE_JOB: self.create_job,
            DELETE_JOB: self.delete_job,
            SCHEDULE_INTERVIEW: self.schedule_interview,
            NAVIGATE_TO_PAGE: self.navigate,
        }.get(name)
        if handler is None:
            return {"success": False, "message": f"Sorry, I received an unknown function request: {name}."}
        logger.info("Executing chat function name=%s", name)
        return handler(args)

    def create_job(self, args: dict[str, Any]) -> dict[str, Any]:
        result = self.jobs.create_job_from_ai(**job_fields_from_arguments(args))
        if result["success"]:
            result["message"] = (
                f"Great! I've created the job listing for {args.get('title', '')}. "
                f"The job has been added to the system with ID {result['job_id']}."
            )
        return result

    def delete_job(self, args: dict[str, Any]) -> dict[str, Any]:
        return self.jobs.delete_job_from_ai(
            args.get("title", ""),
            company=args.get("company"),
            location=args.get("location"),
        )

    def schedule_interview(self, args: dict[str, Any]) -> dict[str, Any]:
        when = normalize_date(args.get("date", ""))
        time = args.get("time", "")
        position = args.get("position", "")
        job_id = _optional_id(args.get("jobId"))
        candidate_id = _optional_id(args.get("candidateId"))

        if candidate_id is not None:
            request = self.interviews.create_interview_request(
                {
                    "candidate_id": candidate_id,
                    "job_id": job_id,
                    "position": position,
                    "date": when,
                    "time": time,
                    "status": "Scheduled",
                    "notes": args.get("notes") or "",
                    "location": args.get("location") or "Remote",
                    "interview_type": args.get("interviewType") or "General",
                    "meeting_link": args.get("meetingLink") or "",
                }
            )
            result: dict[str, Any] = {"success": True, "interview_id": request.id, "candidate_id": candidate_id}
            subject = f"The interview for the {position} position"
        else:
            result = self.interviews.schedule_with_name(
                candidate_name=args.get("candidateName", ""),
                position=position,
                date=when,
                time=time,
                notes=args.get("notes") or "",
                location=args.get("location"),
                interview_type=args.get("interviewType"),
                meeting_link=args.get("meetingLink") or "",
                job_id=job_id,
            )
            if not result["success"]:
                result["message"] = result.pop("error")
                return result
            subject = f"The interview with {args.get('candidateName')} for the {position} position"

        message = f"{subject} has been scheduled for {when} at {time}."
        if args.get("location"):
            message += f" Location: {args['location']}."
        if args.get("notes"):
            message += f" Notes: {args['notes']}"
        result["message"] = message
        return result

    def navigate(self, args: dict[str, Any]) -> dict[str, Any]:
        text = args.get("query") or args.get("intent") or ""
        route = args.get("route") or find_route_from_query(text)
        if not route:
            return {
                "success": False,
                "route": None,
                "message": (
                    f'I couldn\'t find a matching page for "{text}". Available pages include: dashboard, jobs, '
                    "candidates, pipeline, interview schedule, analytics, and settings."
                ),
            }
        return {"success": True, "route": route, "message": f"Navigating to {route}"}
