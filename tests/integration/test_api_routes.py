from __future__ import annotations

from fastapi.testclient import TestClient

from hirelane.api.app import create_app
from tests.fakes import job_payload


def _client() -> TestClient:
    return TestClient(create_app())


def test_health_and_job_crud_api() -> None:
    client = _client()
    assert client.get("/health").json() == {"status": "ok"}

    create_resp = client.post("/api/jobs", json=job_payload())
    assert create_resp.status_code == 200
    job = create_resp.json()
    assert job["company"] == "Acme"
    assert job["salary"]["max"] == 120000

    update_resp = client.patch(f"/api/jobs/{job['id']}", json={"location": "Berlin"})
    assert update_resp.status_code == 200
    assert update_resp.json()["location"] == "Berlin"
    assert update_resp.json()["title"] == "Backend Engineer"

    assert any(item["id"] == job["id"] for item in client.get("/api/jobs").json())
    assert client.get("/api/jobs/9999").status_code == 404
    assert client.patch("/api/jobs/9999", json={"location": "x"}).status_code == 404

    delete_resp = client.delete(f"/api/jobs/{job['id']}")
    assert delete_resp.json() == {"success": True, "id": job["id"]}
    assert client.delete(f"/api/jobs/{job['id']}").status_code == 404


def test_meeting_code_lookup_api() -> None:
    client = _client()
    job = client.post("/api/jobs", json=job_payload()).json()

    public = client.get(f"/api/jobs/by-meeting-code/{job['meeting_code']}")
    assert public.status_code == 200
    assert public.json()["id"] == job["id"]
    assert "salary" not in public.json()

    missing = client.get("/api/jobs/by-meeting-code/000")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Invalid meeting code"


def test_bulk_delete_api() -> None:
    client = _client()
    job = client.post("/api/jobs", json=job_payload()).json()

    resp = client.post("/api/jobs/bulk-delete", json={"job_ids": [job["id"], 4242]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["deleted_count"] == 1
    assert body["failed_ids"] == [4242]
    assert body["success"] is True


def test_candidate_apply_and_progress_api() -> None:
    client = _client()
    job = client.post("/api/jobs", json=job_payload()).json()
    candidate = client.post("/api/candidates", json={"name": "Ada Lovelace", "email": "ada@example.com"}).json()
    assert candidate["initials"] == "AL"

    apply_resp = client.post(f"/api/candidates/{candidate['id']}/apply", json={"job_id": job["id"], "match_score": 72})
    assert apply_resp.status_code == 200
    application = apply_resp.json()
    again = client.post(f"/api/candidates/{candidate['id']}/apply", json={"job_id": job["id"]})
    assert again.status_code == 400

    status_resp = client.patch(f"/api/applications/{application['id']}/status", json={"status": "interview"})
    assert status_resp.json()["progress"] == 60

    progress = client.post(f"/api/jobs/{job['id']}/progress/recompute").json()
    assert progress["summary"]["total_resumes"] == 1
    assert progress["summary"]["shortlisted"] == 1
    assert progress["version"] == 2

    rows = client.get(f"/api/jobs/{job['id']}/applications").json()
    assert [row["candidate_name"] for row in rows] == ["Ada Lovelace"]

    patched = client.patch(f"/api/jobs/{job['id']}/progress", json={"suggested_questions": ["Why us?"]}).json()
    assert patched["suggested_questions"] == ["Why us?"]
    assert patched["summary"]["total_resumes"] == 1

    assert client.get("/api/jobs/9999/progress").status_code == 404
    assert client.post("/api/jobs/9999/progress/recompute").status_code == 404


def test_file_upload_and_download_api() -> None:
    client = _client()
    candidate = client.post("/api/candidates", json={"name": "Grace Hopper"}).json()

    upload = client.post(
        f"/api/candidates/{candidate['id']}/files",
        files={"file": ("cv.txt", b"COBOL and compilers", "text/plain")},
        data={"file_category": "resume"},
    )
    assert upload.status_code == 200
    file = upload.json()
    assert file["status"] == "uploading"
    assert file["analysis_id"]

    download = client.get(f"/api/files/{file['id']}/download")
    assert download.status_code == 200
    assert download.content == b"COBOL and compilers"

    recording = client.post(
        f"/api/candidates/{candidate['id']}/files",
        files={"file": ("call.webm", b"\x00\x01", "video/webm")},
        data={"file_category": "meeting_recording"},
    ).json()
    recordings = client.get(f"/api/candidates/{candidate['id']}/meeting-recordings").json()
    assert [row["id"] for row in recordings] == [recording["id"]]

    resume = client.get(f"/api/candidates/{candidate['id']}/resume").json()
    assert resume["id"] == file["id"]

    summary = client.patch(f"/api/files/{file['id']}/cv-summary", json={"cv_summary": "Pioneer"}).json()
    assert summary["cv_summary"] == "Pioneer"
    assert client.get("/api/files/9999").status_code == 404
    missing_owner = client.post("/api/candidates/9999/files", files={"file": ("cv.txt", b"x", "text/plain")})
    assert missing_owner.status_code == 404


def test_interview_request_api() -> None:
    client = _client()
    candidate = client.post("/api/candidates", json={"name": "Ada Lovelace"}).json()

    bad = client.post("/api/interview-requests", json={"candidate_id": 999, "date": "2026-11-02", "time": "10:00"})
    assert bad.status_code == 400

    created = client.post(
        "/api/interview-requests",
        json={"candidate_id": candidate["id"], "position": "Engineer", "date": "2026-11-02", "time": "10:00"},
    ).json()
    request_id = created["id"]
    assert len(created["meeting_code"]) == 6

    moved = client.post(f"/api/interview-requests/{request_id}/reschedule", json={"date": "2026-11-03", "time": "11:00"})
    assert moved.json()["rescheduled_from"] == {"date": "2026-11-02", "time": "10:00"}

    listed = client.get("/api/interview-requests", params={"status": "rescheduled"}).json()
    assert [row["id"] for row in listed] == [request_id]

    code = client.post(f"/api/interview-requests/{request_id}/meeting-code").json()
    assert code["meeting_code"] == created["meeting_code"]

    assert client.delete(f"/api/interview-requests/{request_id}").status_code == 200
    assert client.get(f"/api/interview-requests/{request_id}").status_code == 404


def test_prompt_api() -> None:
    client = _client()
    names = {row["name"] for row in client.get("/api/prompts").json()}
    assert {"cv_analysis", "interview_analysis"} <= names

    created = client.post("/api/prompts", json={"name": "greeting", "content": "Hello"})
    assert created.status_code == 200
    assert client.post("/api/prompts", json={"name": "greeting", "content": "Again"}).status_code == 400

    upserted = client.put("/api/prompts/by-name/greeting", json={"content": "Hi there", "updated_by": "admin"}).json()
    assert upserted["id"] == created.json()["id"]
    assert upserted["content"] == "Hi there"
    assert client.get("/api/prompts/by-name/greeting").json()["updated_by"] == "admin"

    assert client.delete(f"/api/prompts/{upserted['id']}").status_code == 200
    assert client.get("/api/prompts/by-name/greeting").status_code == 404


def test_vector_and_search_api() -> None:
    client = _client()
    job = client.post("/api/jobs", json=job_payload()).json()

    queued = client.post("/api/vectors/sync", json={"table_name": "jobs", "document_id": job["id"]}).json()
    assert queued["queued"] is True
    assert client.post("/api/vectors/sync", json={"table_name": "prompts", "document_id": 1}).status_code == 400

    first = client.post("/api/vectors/migrate").json()
    second = client.post("/api/vectors/migrate").json()
    assert first["task_id"] == second["task_id"]

    pending = client.get("/api/tasks", params={"status": "pending"}).json()
    assert any(task["name"] == "vectors.migrate_all" for task in pending)

    no_key = client.post("/api/search", json={"query": "python"}).json()
    assert no_key["results"] == []
    assert "couldn't generate embeddings" in no_key["message"]


def test_interviewer_config_and_session_api() -> None:
    client = _client()
    job = client.post("/api/jobs", json=job_payload()).json()
    candidate = client.post("/api/candidates", json={"name": "Ada Lovelace"}).json()

    config = {
        "introduction": "Welcome to Acme.",
        "questions": [{"id": "q1", "text": "Describe a scaling problem you solved", "importance": "high"}],
    }
    saved = client.put(f"/api/jobs/{job['id']}/interviewer-config", json=config)
    assert saved.status_code == 200
    assert saved.json()["ai_interviewer_config"]["introduction"] == "Welcome to Acme."

    applied = client.post(f"/api/jobs/{job['id']}/interviewer-config/apply", json={"candidate_name": "Ada"}).json()
    assert "Describe a scaling problem you solved" in applied["interview_prompt"]

    session = client.post(f"/api/jobs/{job['id']}/interview-session", json={"candidate_id": candidate["id"]})
    assert session.status_code == 200
    assert "Ada Lovelace" in session.json()["system_prompt"]
    assert client.post(f"/api/jobs/{job['id']}/interview-session", json={"candidate_id": 999}).status_code == 404
