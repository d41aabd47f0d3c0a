from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from hirelane.api.deps import get_db
from hirelane.api.schemas import (
    ApplicationStatusRequest,
    ApplyInterviewerConfigRequest,
    ApplyRequest,
    BulkDeleteRequest,
    BulkDeleteResponse,
    CandidateCreateRequest,
    CandidateUpdateRequest,
    CVSummaryRequest,
    FileStatusRequest,
    InterviewRequestCreate,
    InterviewSessionRequest,
    InterviewStatusRequest,
    JobCreateRequest,
    JobProgressPatchRequest,
    JobUpdateRequest,
    PromptCreateRequest,
    PromptResponse,
    PromptUpdateRequest,
    RescheduleRequest,
    SearchRequest,
    VectorSyncRequest,
)
from hirelane.core.candidates import (
    CandidateService,
    application_to_dict,
    candidate_to_dict,
    file_to_dict,
)
from hirelane.core.interview_prompt import InterviewSession
from hirelane.core.interviews import InterviewService, interview_to_dict
from hirelane.core.job_progress import JobProgressAggregator, serialize_job_progress
from hirelane.core.jobs import JobService, job_to_dict, public_job_view
from hirelane.core.runtime import get_event_bus, get_task_queue
from hirelane.core.storage import BlobStore
from hirelane.core.tasks import MIGRATE_VECTORS, schedule_vector_sync
from hirelane.db.repositories import Repository
from hirelane.db.seed import seed_prompts
from hirelane.search.documents import CANDIDATES_TABLE, INTERVIEW_REQUESTS_TABLE, JOBS_TABLE
from hirelane.search.semantic import NO_EMBEDDING_MESSAGE, SemanticSearch, format_results
from hirelane.types import AIInterviewerConfig

router = APIRouter(prefix="/api", tags=["api"])

SYNCABLE_TABLES = {CANDIDATES_TABLE, JOBS_TABLE, INTERVIEW_REQUESTS_TABLE}


def _prompt_response(prompt) -> PromptResponse:
    return PromptResponse(
        id=prompt.id,
        name=prompt.name,
        content=prompt.content,
        description=prompt.description,
        last_updated=prompt.last_updated,
        updated_by=prompt.updated_by,
    )


# jobs


@router.get("/jobs")
def list_jobs(db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return [job_to_dict(job) for job in Repository(db).list_jobs()]


@router.post("/jobs")
def create_job(payload: JobCreateRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    job = JobService(db).create_job(payload.model_dump())
    return job_to_dict(job)


@router.get("/jobs/by-meeting-code/{meeting_code}")
def get_job_by_meeting_code(meeting_code: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    job = JobService(db).get_job_by_meeting_code(meeting_code)
    if job is None:
        raise HTTPException(status_code=404, detail="Invalid meeting code")
    return public_job_view(job)


@router.post("/jobs/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_jobs(payload: BulkDeleteRequest, db: Session = Depends(get_db)) -> BulkDeleteResponse:
    return BulkDeleteResponse(**JobService(db).bulk_delete_jobs(payload.job_ids))


@router.get("/jobs/{job_id}")
def get_job(job_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    job = Repository(db).get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job_to_dict(job)


@router.patch("/jobs/{job_id}")
def update_job(job_id: int, payload: JobUpdateRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        job = JobService(db).update_job(job_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return job_to_dict(job)


@router.delete("/jobs/{job_id}")
def delete_job(job_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        JobService(db).delete_job(job_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True, "id": job_id}


@router.get("/jobs/{job_id}/applications")
def get_job_applications(job_id: int, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return JobProgressAggregator(db).get_job_applications(job_id)


@router.get("/jobs/{job_id}/progress")
def get_job_progress(job_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    row = Repository(db).get_job_progress(job_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Job progress not found for job ID: {job_id}")
    return serialize_job_progress(row)


@router.patch("/jobs/{job_id}/progress")
def update_job_progress(
    job_id: int,
    payload: JobProgressPatchRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    fields = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    try:
        row = JobProgressAggregator(db).update_fields(job_id, fields)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return serialize_job_progress(row)


@router.post("/jobs/{job_id}/progress/recompute")
def recompute_job_progress(job_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    row = JobProgressAggregator(db).recompute(job_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return serialize_job_progress(row)


@router.post("/jobs/{job_id}/progress/random")
def generate_random_job_progress(job_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        row = JobProgressAggregator(db).generate_random(job_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return serialize_job_progress(row)


@router.websocket("/jobs/{job_id}/progress/stream")
async def stream_job_progress(websocket: WebSocket, job_id: int) -> None:
    await websocket.accept()
    event_bus = get_event_bus()
    try:
        async for event in event_bus.subscribe(job_id):
            await websocket.send_json(event)
    except WebSocketDisconnect:
        return


@router.put("/jobs/{job_id}/interviewer-config")
def save_interviewer_config(
    job_id: int,
    payload: AIInterviewerConfig,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    try:
        job = JobService(db).save_ai_interviewer_config(job_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return job_to_dict(job)


@router.post("/jobs/{job_id}/interviewer-config/apply")
def apply_interviewer_config(
    job_id: int,
    payload: ApplyInterviewerConfigRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    try:
        prompt = JobService(db).apply_ai_interviewer_config(job_id, payload.candidate_name)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"job_id": job_id, "interview_prompt": prompt}


@router.post("/jobs/{job_id}/interview-session")
def start_interview_session(
    job_id: int,
    payload: InterviewSessionRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    repo = Repository(db)
    job = repo.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    candidate = repo.get_candidate(payload.candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Candidate not found")

    resume = CandidateService(db).get_resume_by_candidate_id(candidate.id)
    try:
        session = InterviewSession.start(
            job,
            candidate,
            cv_summary=resume.get("cv_summary"),
            knowledge_base=payload.knowledge_base,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"job_id": session.job_id, "candidate_id": session.candidate_id, "system_prompt": session.system_prompt}


# candidates


@router.get("/candidates")
def list_candidates(db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return [candidate_to_dict(candidate) for candidate in Repository(db).list_candidates()]


@router.post("/candidates")
def create_candidate(payload: CandidateCreateRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    candidate = CandidateService(db).create_candidate(payload.model_dump())
    return candidate_to_dict(candidate)


@router.get("/candidates/{candidate_id}")
def get_candidate(candidate_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    candidate = Repository(db).get_candidate(candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return candidate_to_dict(candidate)


@router.patch("/candidates/{candidate_id}")
def update_candidate(
    candidate_id: int,
    payload: CandidateUpdateRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    try:
        candidate = CandidateService(db).update_candidate(candidate_id, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return candidate_to_dict(candidate)


@router.delete("/candidates/{candidate_id}")
def delete_candidate(candidate_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        CandidateService(db).delete_candidate(candidate_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True, "id": candidate_id}


@router.post("/candidates/{candidate_id}/apply")
def apply_candidate(candidate_id: int, payload: ApplyRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        application = CandidateService(db).apply_candidate(candidate_id, payload.job_id, payload.match_score)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return application_to_dict(application)


@router.get("/candidates/{candidate_id}/applications")
def list_candidate_applications(candidate_id: int, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return [application_to_dict(row) for row in Repository(db).list_applications_for_candidate(candidate_id)]


@router.patch("/applications/{application_id}/status")
def update_application_status(
    application_id: int,
    payload: ApplicationStatusRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    try:
        application = CandidateService(db).update_application_status(application_id, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return application_to_dict(application)


# files


@router.post("/candidates/{candidate_id}/files")
async def upload_candidate_file(
    candidate_id: int,
    file: UploadFile = File(...),
    file_category: str = Form("resume"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    content = await file.read()
    service = CandidateService(db)
    try:
        if file_category == "resume":
            row = service.upload_and_analyze(
                candidate_id,
                content=content,
                file_name=file.filename or "upload",
                file_type=file.content_type or "",
            )
        else:
            row = service.save_file(
                candidate_id,
                content=content,
                file_name=file.filename or "upload",
                file_type=file.content_type or "",
                file_category=file_category,
            )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return file_to_dict(row)


@router.get("/candidates/{candidate_id}/files")
def list_candidate_files(
    candidate_id: int,
    category: str | None = None,
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    return [file_to_dict(row) for row in CandidateService(db).list_files(candidate_id, category)]


@router.get("/candidates/{candidate_id}/meeting-recordings")
def list_meeting_recordings(candidate_id: int, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return [file_to_dict(row) for row in CandidateService(db).list_meeting_recordings(candidate_id)]


@router.get("/candidates/{candidate_id}/resume")
def get_candidate_resume(candidate_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    return CandidateService(db).get_resume_by_candidate_id(candidate_id)


@router.get("/candidates/{candidate_id}/resume/latest")
def get_latest_resume(candidate_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    row = CandidateService(db).get_latest_resume_file(candidate_id)
    return file_to_dict(row) if row else {}


@router.get("/files/{file_id}")
def get_file(file_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    row = Repository(db).get_file(file_id)
    if row is None:
        raise HTTPException(status_code=404, detail="File not found")
    return file_to_dict(row)


@router.get("/files/{file_id}/download")
def download_file(file_id: int, db: Session = Depends(get_db)) -> FileResponse:
    row = Repository(db).get_file(file_id)
    if row is None:
        raise HTTPException(status_code=404, detail="File not found")
    path = BlobStore().path_for(row.storage_id)
    if not path.exists():
        raise HTTPException(status_code=404, detail="File content not found")
    return FileResponse(path, media_type=row.file_type or None, filename=row.file_name)


@router.patch("/files/{file_id}/status")
def update_file_status(file_id: int, payload: FileStatusRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        row = CandidateService(db).update_file_status(file_id, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return file_to_dict(row)


@router.patch("/files/{file_id}/cv-summary")
def update_cv_summary(file_id: int, payload: CVSummaryRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        row = CandidateService(db).update_cv_summary(file_id, payload.cv_summary)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return file_to_dict(row)


# interview requests


@router.get("/interview-requests")
def list_interview_requests(
    candidate_id: int | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    rows = Repository(db).list_interview_requests(candidate_id=candidate_id, status=status)
    return [interview_to_dict(row) for row in rows]


@router.post("/interview-requests")
def create_interview_request(payload: InterviewRequestCreate, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        request = InterviewService(db).create_interview_request(payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return interview_to_dict(request)


@router.get("/interview-requests/{request_id}")
def get_interview_request(request_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    request = Repository(db).get_interview_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail="Interview request not found")
    return interview_to_dict(request)


@router.patch("/interview-requests/{request_id}/status")
def update_interview_status(
    request_id: int,
    payload: InterviewStatusRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    try:
        request = InterviewService(db).update_status(request_id, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return interview_to_dict(request)


@router.post("/interview-requests/{request_id}/reschedule")
def reschedule_interview(
    request_id: int,
    payload: RescheduleRequest,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    try:
        request = InterviewService(db).reschedule(request_id, payload.date, payload.time)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return interview_to_dict(request)


@router.post("/interview-requests/{request_id}/meeting-code")
def ensure_interview_meeting_code(request_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        code = InterviewService(db).ensure_meeting_code(request_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"id": request_id, "meeting_code": code}


@router.delete("/interview-requests/{request_id}")
def delete_interview_request(request_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        InterviewService(db).delete(request_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True, "id": request_id}


# prompts


@router.get("/prompts", response_model=list[PromptResponse])
def list_prompts(db: Session = Depends(get_db)) -> list[PromptResponse]:
    return [_prompt_response(row) for row in Repository(db).list_prompts()]


@router.post("/prompts", response_model=PromptResponse)
def create_prompt(payload: PromptCreateRequest, db: Session = Depends(get_db)) -> PromptResponse:
    try:
        prompt = Repository(db).create_prompt(
            name=payload.name,
            content=payload.content,
            description=payload.description,
            updated_by=payload.updated_by,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _prompt_response(prompt)


@router.post("/prompts/init")
def init_prompts(db: Session = Depends(get_db)) -> dict[str, Any]:
    return {"success": True, "results": seed_prompts(db)}


@router.get("/prompts/by-name/{name}", response_model=PromptResponse)
def get_prompt_by_name(name: str, db: Session = Depends(get_db)) -> PromptResponse:
    prompt = Repository(db).get_prompt_by_name(name)
    if prompt is None:
        raise HTTPException(status_code=404, detail="Prompt not found")
    return _prompt_response(prompt)


@router.put("/prompts/by-name/{name}", response_model=PromptResponse)
def upsert_prompt_by_name(name: str, payload: PromptUpdateRequest, db: Session = Depends(get_db)) -> PromptResponse:
    prompt = Repository(db).upsert_prompt_by_name(
        name=name,
        content=payload.content,
        description=payload.description,
        updated_by=payload.updated_by,
    )
    return _prompt_response(prompt)


@router.put("/prompts/{prompt_id}", response_model=PromptResponse)
def update_prompt(prompt_id: int, payload: PromptUpdateRequest, db: Session = Depends(get_db)) -> PromptResponse:
    try:
        prompt = Repository(db).update_prompt(
            prompt_id,
            content=payload.content,
            description=payload.description,
            updated_by=payload.updated_by,
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _prompt_response(prompt)


@router.delete("/prompts/{prompt_id}")
def delete_prompt(prompt_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        Repository(db).delete_prompt(prompt_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True, "id": prompt_id}


# vectors and search


@router.post("/vectors/sync")
def sync_vectors(payload: VectorSyncRequest) -> dict[str, Any]:
    if payload.table_name not in SYNCABLE_TABLES:
        raise HTTPException(status_code=400, detail=f"Unknown table: {payload.table_name}")
    task_id = schedule_vector_sync(get_task_queue(), payload.table_name, payload.document_id)
    return {"queued": True, "task_id": task_id}


@router.post("/vectors/migrate")
def migrate_vectors() -> dict[str, Any]:
    task_id = get_task_queue().enqueue(MIGRATE_VECTORS, {}, dedupe_key=MIGRATE_VECTORS)
    return {"queued": True, "task_id": task_id}


@router.get("/tasks")
def list_tasks(status: str | None = None, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return [
        {
            "id": task.id,
            "name": task.name,
            "status": task.status,
            "attempts": task.attempts,
            "max_attempts": task.max_attempts,
            "last_error": task.last_error,
            "payload": task.payload_json,
        }
        for task in Repository(db).list_tasks(status)
    ]


@router.post("/search")
def search(payload: SearchRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    filters = payload.model_dump(exclude={"query"})
    results = SemanticSearch(db).search(payload.query, **filters)
    if results is None:
        return {"results": [], "message": NO_EMBEDDING_MESSAGE}
    return {"results": [asdict(result) for result in results], "markdown": format_results(results) if results else ""}
