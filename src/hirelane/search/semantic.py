from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import numpy as np
from sqlalchemy.orm import Session

from hirelane.config import Settings, get_settings
from hirelane.db.models import DbDocument
from hirelane.db.repositories import Repository
from hirelane.llm.router import LLMRouter

logger = logging.getLogger(__name__)

NO_EMBEDDING_MESSAGE = (
    "Sorry, I couldn't generate embeddings for your query. Please try again with different wording."
)
NO_RESULTS_MESSAGE = (
    "I couldn't find any relevant information in the database. "
    "Please try a different query or check if the database has been populated."
)
SEARCH_ERROR_MESSAGE = "Sorry, I encountered an error while searching the database. Please try again later."
RESULTS_HEADER = "Here's what I found in the database:\n\n"

_TITLE_PREFIX_RE = re.compile(r"^(Candidate|Job): ")
_METADATA_FILTERS = {
    "entity_type": "entityType",
    "candidate_status": "candidateStatus",
    "job_title": "jobTitle",
    "job_company": "jobCompany",
    "interview_status": "interviewStatus",
}


@dataclass(slots=True)
class SearchResult:
    document_id: int
    title: str
    content: str
    table_name: str
    source_id: str
    score: float


def cosine_scores(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    query_norm = query / (np.linalg.norm(query) + 1e-12)
    matrix_norm = matrix / (np.linalg.norm(matrix, axis=1, keepdims=True) + 1e-12)
    return matrix_norm @ query_norm


def matches_filters(document: DbDocument, table_name: str | None, metadata_filters: dict[str, str]) -> bool:
    """Any one matching filter admits the document; no filters admit everything."""
    if not table_name and not metadata_filters:
        return True
    if table_name and document.table_name == table_name:
        return True
    metadata = document.metadata_json or {}
    return any(metadata.get(key) == value for key, value in metadata_filters.items())


def format_results(results: list[SearchResult]) -> str:
    output = RESULTS_HEADER
    for index, result in enumerate(results, start=1):
        clean_title = _TITLE_PREFIX_RE.sub("", result.title)
        output += f"## {index}. {clean_title}\n\n"
        output += f"**Relevance Score**: {result.score * 100:.2f}%\n\n"
        output += f"**Type**: {result.table_name}\n\n"
        for line in result.content.split("\n"):
            if not line.strip():
                continue
            if ":" in line:
                key, _, value = line.partition(":")
                output += f"**{key.strip()}**: {value.strip()}\n\n"
            else:
                output += f"{line}\n\n"
        output += "\n"
    return output


class SemanticSearch:
    def __init__(self, session: Session, router: LLMRouter | None = None, settings: Settings | None = None):
        self.repo = Repository(session)
        self.settings = settings or get_settings()
        self.router = router or LLMRouter(self.settings)

    def search(
        self,
        query: str,
        *,
        table_name: str | None = None,
        entity_type: str | None = None,
        candidate_status: str | None = None,
        job_title: str | None = None,
        job_company: str | None = None,
        interview_status: str | None = None,
        limit: int | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult] | None:
        """Rank stored documents against ``query``; ``None`` when the query cannot be embedded."""
        embedding = self.router.embed(query)
        if not embedding:
            return None

        filters = {
            _METADATA_FILTERS[name]: value
            for name, value in {
                "entity_type": entity_type,
                "candidate_status": candidate_status,
                "job_title": job_title,
                "job_company": job_company,
                "interview_status": interview_status,
            }.items()
            if value
        }
        candidates = [
            document
            for document in self.repo.list_documents()
            if len(document.embedding or []) == len(embedding) and matches_filters(document, table_name, filters)
        ]
        if not candidates:
            return []

        matrix = np.asarray([document.embedding for document in candidates], dtype=float)
        scores = cosine_scores(np.asarray(embedding, dtype=float), matrix)
        order = np.argsort(-scores, kind="stable")[: limit or self.settings.search_default_limit]

        threshold = score_threshold or -1
        results: list[SearchResult] = []
        for position in order:
            score = float(scores[position])
            if threshold > -1 and score < threshold:
                continue
            document = candidates[position]
            results.append(
                SearchResult(
                    document_id=document.id,
                    title=document.title,
                    content=document.content,
                    table_name=document.table_name,
                    source_id=document.document_id,
                    score=score,
                )
            )
        return results

    def search_markdown(self, query: str, **filters) -> str:
        try:
            results = self.search(query, **filters)
        except Exception:
            logger.exception("Semantic search failed")
            return SEARCH_ERROR_MESSAGE

        if results is None:
            return NO_EMBEDDING_MESSAGE
        if not results:
            return NO_RESULTS_MESSAGE
        return format_results(results)
