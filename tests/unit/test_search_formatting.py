from __future__ import annotations

from types import SimpleNamespace

import numpy as np

from hirelane.db.models import Job
from hirelane.search.documents import JOBS_TABLE, build_job_document
from hirelane.search.semantic import RESULTS_HEADER, SearchResult, cosine_scores, format_results, matches_filters


def test_cosine_scores_rank_identical_vector_first() -> None:
    matrix = np.asarray([[0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
    scores = cosine_scores(np.asarray([1.0, 0.0]), matrix)

    assert int(np.argmax(scores)) == 1
    assert abs(float(scores[1]) - 1.0) < 1e-9
    assert abs(float(scores[0])) < 1e-9


def test_filters_are_or_combined() -> None:
    job_doc = SimpleNamespace(table_name="jobs", metadata_json={"entityType": "job", "jobCompany": "Acme"})
    candidate_doc = SimpleNamespace(table_name="candidates", metadata_json={"candidateStatus": "hired"})

    assert matches_filters(job_doc, None, {})
    assert matches_filters(job_doc, "jobs", {"candidateStatus": "hired"})
    assert matches_filters(candidate_doc, "jobs", {"candidateStatus": "hired"})
    assert not matches_filters(candidate_doc, "jobs", {"jobCompany": "Acme"})


def test_markdown_formatting_strips_prefixes_and_bolds_keys() -> None:
    results = [
        SearchResult(
            document_id=1,
            title="Candidate: Ada Lovelace",
            content="Name: Ada Lovelace\nMeeting Link: https://meet.example.com/abc\nFreeform line\n",
            table_name="candidates",
            source_id="4",
            score=0.8765,
        )
    ]

    output = format_results(results)

    assert output.startswith(RESULTS_HEADER)
    assert "## 1. Ada Lovelace\n\n" in output
    assert "**Relevance Score**: 87.65%" in output
    assert "**Type**: candidates" in output
    assert "**Name**: Ada Lovelace" in output
    assert "**Meeting Link**: https://meet.example.com/abc" in output
    assert "Freeform line\n\n" in output


def test_job_document_lines_and_metadata() -> None:
    job = Job(
        id=12,
        title="Backend Engineer",
        company="Acme",
        location="Remote",
        type="Full-time",
        level="Senior",
        experience="5+ years",
        education="BSc",
        posted="Oct 01, 2026",
        expiry="Oct 31, 2026",
        featured=True,
        salary={"min": 90000.0, "max": 120000, "currency": "USD", "period": "year"},
        description={"intro": "Hi", "details": "APIs", "responsibilities": "Services", "closing": "Bye"},
        requirements=["Python"],
        desirables=[],
        benefits=["Remote budget"],
        ai_interviewer_config=None,
        interview_prompt="",
    )

    document = build_job_document(job)

    assert document.title == "Job: Backend Engineer"
    assert document.table_name == JOBS_TABLE
    assert document.document_id == "12"
    assert "Salary: 90000 - 120000 USD per year" in document.content
    assert "Featured: Yes" in document.content
    assert "Requirements:\n- Python" in document.content
    assert "Desirable Skills:" not in document.content
    assert document.content.endswith("\n")
    assert document.metadata["entityType"] == "job"
    assert document.metadata["jobCompany"] == "Acme"
    assert document.embedding_text.startswith("Job: Backend Engineer Title: Backend Engineer")
