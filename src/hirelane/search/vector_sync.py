from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from hirelane.db.repositories import Repository
from hirelane.llm.router import LLMRouter
from hirelane.search.documents import (
    CANDIDATES_TABLE,
    INTERVIEW_REQUESTS_TABLE,
    JOBS_TABLE,
    SearchDocument,
    build_candidate_document,
    build_interview_request_document,
    build_job_document,
)

logger = logging.getLogger(__name__)


class VectorSync:
    """Keeps one embedded ``db_documents`` row per source entity."""

    def __init__(self, session: Session, router: LLMRouter | None = None):
        self.session = session
        self.repo = Repository(session)
        self.router = router or LLMRouter()

    def populate_candidate(self, candidate_id: int) -> bool:
        candidate = self.repo.get_candidate(candidate_id)
        if candidate is None:
            logger.info("Candidate not found for vector sync candidate_id=%s", candidate_id)
            return False
        return self._store(build_candidate_document(candidate))

    def populate_job(self, job_id: int) -> bool:
        job = self.repo.get_job(job_id)
        if job is None:
            logger.info("Job not found for vector sync job_id=%s", job_id)
            return False
        return self._store(build_job_document(job))

    def populate_interview_request(self, request_id: int) -> bool:
        request = self.repo.get_interview_request(request_id)
        if request is None:
            logger.info("Interview request not found for vector sync request_id=%s", request_id)
            return False
        candidate = self.repo.get_candidate(request.candidate_id)
        job = self.repo.get_job(request.job_id) if request.job_id else None
        return self._store(build_interview_request_document(request, candidate, job))

    def sync(self, table_name: str, document_id: int) -> bool:
        populate = {
            CANDIDATES_TABLE: self.populate_candidate,
            JOBS_TABLE: self.populate_job,
            INTERVIEW_REQUESTS_TABLE: self.populate_interview_request,
        }.get(table_name)
        if populate is None:
            raise ValueError(f"unknown vector table {table_name!r}")
        return populate(int(document_id))

    def remove(self, table_name: str, document_id: int | str) -> int:
        removed = self.repo.delete_documents(table_name, str(document_id))
        logger.info("Removed vector documents table=%s id=%s count=%s", table_name, document_id, removed)
        return removed

    def migrate_all(self) -> dict[str, Any]:
        counts = {CANDIDATES_TABLE: 0, JOBS_TABLE: 0, INTERVIEW_REQUESTS_TABLE: 0}
        failures = 0
        sources = [
            (CANDIDATES_TABLE, [c.id for c in self.repo.list_candidates()], self.populate_candidate),
            (JOBS_TABLE, [j.id for j in self.repo.list_jobs()], self.populate_job),
            (
                INTERVIEW_REQUESTS_TABLE,
                [r.id for r in self.repo.list_interview_requests()],
                self.populate_interview_request,
            ),
        ]
        for table_name, ids, populate in sources:
            for entity_id in ids:
                try:
                    if populate(entity_id):
                        counts[table_name] += 1
                    else:
                        failures += 1
                except Exception as exc:
                    self.session.rollback()
                    failures += 1
                    logger.warning("Vector migration failed table=%s id=%s error=%s", table_name, entity_id, exc)

        logger.info("Vector migration finished counts=%s failures=%s", counts, failures)
        return {
            "success": failures == 0,
            "candidates_processed": counts[CANDIDATES_TABLE],
            "jobs_processed": counts[JOBS_TABLE],
            "interview_requests_processed": counts[INTERVIEW_REQUESTS_TABLE],
            "failed": failures,
        }

    def _store(self, document: SearchDocument) -> bool:
        embedding = self.router.embed(document.embedding_text)
        self.repo.replace_document(
            table_name=document.table_name,
            document_id=document.document_id,
            title=document.title,
            content=document.content,
            embedding=embedding,
            metadata=document.metadata,
        )
        if not embedding:
            logger.warning(
                "Stored document without embedding table=%s id=%s", document.table_name, document.document_id
            )
            return False
        return True
