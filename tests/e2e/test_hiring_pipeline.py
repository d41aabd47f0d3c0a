from hirelane.core.candidates import CandidateService
from hirelane.core.jobs import JobService
from hirelane.db.repositories import Repository
from hirelane.db.session import SessionLocal
from hirelane.search.semantic import SemanticSearch
from tests.fakes import FakeRouter, candidate_profile, job_payload


def _patch_llm(monkeypatch, router: FakeRouter) -> None:
    monkeypatch.setattr("hirelane.search.vector_sync.LLMRouter", lambda: router)
    monkeypatch.setattr("hirelane.core.candidates.LLMRouter", lambda: router)


def test_applications_flow_into_job_progress_and_search(monkeypatch, queue) -> None:
    router = FakeRouter(analysis={"candidateProfile": candidate_profile(["Python", "SQL"], score=91)})
    _patch_llm(monkeypatch, router)

    with SessionLocal() as db:
        jobs = JobService(db, queue=queue)
        candidates = CandidateService(db, queue=queue)
        job = jobs.create_job(job_payload())
        ada = candidates.create_candidate({"name": "Ada Lovelace", "email": "ada@example.com"})
        bob = candidates.create_candidate({"name": "Bob Stone", "email": "bob@example.com"})
        candidates.apply_candidate(ada.id, job.id, 91)
        bob_application = candidates.apply_candidate(bob.id, job.id, 35)
        candidates.upload_and_analyze(
            ada.id,
            content=b"Ada Lovelace - Python and SQL engineer",
            file_name="ada.txt",
            file_type="text/plain",
        )

        assert queue.drain() > 0
        db.expire_all()

        repo = Repository(db)
        progress = repo.get_job_progress(job.id)
        assert progress.version >= 2
        assert progress.summary["total_resumes"] == 2
        assert progress.summary["meeting_min_criteria"] == 1
        assert progress.summary["shortlisted"] == 0
        assert progress.top_candidate["name"] == "Ada Lovelace"
        assert progress.top_candidate["skills"] == ["Python", "SQL"]
        assert [row["name"] for row in progress.candidates] == ["Ada Lovelace", "Bob Stone"]
        assert repo.get_candidate(ada.id).ai_score == 91
        assert repo.list_tasks(status="dead") == []

        version_before = progress.version
        candidates.update_application_status(bob_application.id, "interview")
        queue.drain()

        db.expire_all()
        progress = repo.get_job_progress(job.id)
        assert progress.version == version_before + 1
        assert progress.summary["shortlisted"] == 1
        assert progress.skill_analysis["shortlisted_rate"] == 50

        results = SemanticSearch(db, router).search("python sql engineer", table_name="candidates")
        assert results[0].title == "Candidate: Ada Lovelace"
        assert repo.count_documents("jobs", str(job.id)) == 1


def test_deleted_job_leaves_no_search_documents(monkeypatch, queue) -> None:
    router = FakeRouter()
    _patch_llm(monkeypatch, router)

    with SessionLocal() as db:
        job = JobService(db, queue=queue).create_job(job_payload())
        queue.drain()
        repo = Repository(db)
        assert repo.count_documents("jobs", str(job.id)) == 1

        JobService(db, queue=queue).delete_job(job.id)
        queue.drain()

        assert repo.count_documents("jobs", str(job.id)) == 0
        assert repo.get_job_progress(job.id) is None
