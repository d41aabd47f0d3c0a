from __future__ import annotations

from hirelane.core.job_progress import (
    DEFAULT_QUESTIONS,
    TOP_CANDIDATE_LIMIT,
    Applicant,
    ApplicationView,
    compute_job_progress,
    initial_snapshot,
    parse_candidate_profile,
    requirement_keywords,
    round_half_up,
    status_progress,
    suggested_questions_for,
)
from hirelane.types import AIInterviewerConfig, CandidateProfile, JobProgressSnapshot
from tests.fakes import candidate_profile

REQUIREMENTS = ["Python experience", "Kubernetes knowledge", "PostgreSQL tuning"]


def _view(candidate_id: int, status: str, score: float, skills: list[str] | None = None) -> ApplicationView:
    profile = CandidateProfile.model_validate(candidate_profile(skills)) if skills is not None else None
    return ApplicationView(
        status=status,
        match_score=score,
        applicant=Applicant(
            candidate_id=candidate_id,
            name=f"Candidate {candidate_id}",
            email=f"c{candidate_id}@example.com",
            profile=profile,
        ),
    )


def _compute(applications, existing=None, config=None, title="Backend Engineer") -> JobProgressSnapshot:
    return compute_job_progress(
        job_title=title,
        requirements=REQUIREMENTS,
        interviewer_config=config,
        applications=applications,
        existing=existing,
    )


def test_funnel_counts_follow_the_application_set() -> None:
    snapshot = _compute(
        [
            _view(1, "applied", 30, ["Python"]),
            _view(2, "interview", 80, ["Python", "Django"]),
            _view(3, "offer", 55, ["Go"]),
            _view(4, "rejected", 10, []),
        ]
    )

    assert snapshot.summary.total_resumes == 4
    assert snapshot.summary.meeting_min_criteria == 2
    assert snapshot.summary.shortlisted == 2
    assert snapshot.summary.rejected == 1
    assert snapshot.skill_analysis.total_screened == 4
    assert snapshot.skill_analysis.shortlisted_rate == 50


def test_empty_application_set_yields_zero_counts_and_defaults() -> None:
    snapshot = _compute([])

    assert snapshot.summary.total_resumes == 0
    assert snapshot.skill_analysis.shortlisted_rate == 0
    assert snapshot.summary.bias_score == 85
    assert snapshot.skill_analysis.matching_threshold == 75
    assert snapshot.skill_analysis.average_skill_fit == 60
    assert snapshot.top_candidate.name == ""
    assert snapshot.candidates == []


def test_top_candidate_is_highest_match_with_requirement_gaps() -> None:
    snapshot = _compute(
        [
            _view(1, "applied", 40, ["Go"]),
            _view(2, "screening", 91, ["Python", "Django"]),
        ]
    )

    top = snapshot.top_candidate
    assert top.name == "Candidate 2"
    assert top.match_percentage == 91
    assert top.skills == ["Python", "Django"]
    assert top.location == "Berlin"
    assert top.achievements == ["Shipped payments platform", "Led migration"]
    assert top.skill_gaps == ["experience", "kubernetes", "knowledge"]


def test_top_skills_are_ranked_by_frequency() -> None:
    snapshot = _compute(
        [
            _view(1, "applied", 40, ["Python", "SQL"]),
            _view(2, "applied", 60, ["Python", "React"]),
            _view(3, "applied", 70, ["Python", "SQL"]),
        ]
    )

    assert snapshot.candidates_pool.top_skills[:2] == ["Python", "SQL"]
    assert "python" not in snapshot.candidates_pool.missing_criteria
    assert snapshot.candidates_pool.learning_paths[0].provider == "LinkedIn Learning"


def test_aggregation_is_idempotent() -> None:
    applications = [_view(1, "interview", 70, ["Python"]), _view(2, "applied", 20, ["Java"])]
    first = _compute(applications)
    second = _compute(applications, existing=first)

    assert second == first


def test_existing_tuning_values_are_preserved() -> None:
    existing = initial_snapshot("Platform Engineer")
    existing.summary.bias_score = 70
    existing.skill_analysis.matching_threshold = 90
    existing.skill_analysis.average_skill_fit = 44

    snapshot = _compute([_view(1, "applied", 20, [])], existing=existing)

    assert snapshot.title == "Platform Engineer"
    assert snapshot.summary.bias_score == 70
    assert snapshot.skill_analysis.matching_threshold == 90
    assert snapshot.skill_analysis.average_skill_fit == 44


def test_candidate_list_is_capped_and_sorted() -> None:
    applications = [_view(i, "applied", score, []) for i, score in enumerate([10, 90, 50, 70, 30, 80], start=1)]
    snapshot = _compute(applications)

    assert len(snapshot.candidates) == TOP_CANDIDATE_LIMIT
    assert [c.match_score for c in snapshot.candidates] == [90, 80, 70, 50]


def test_empty_profile_still_fills_top_candidate() -> None:
    applicant = Applicant(candidate_id=5, name="Grace Hopper", email="grace@example.com", profile=parse_candidate_profile({}))
    snapshot = _compute([ApplicationView(status="screening", match_score=64, applicant=applicant)])

    top = snapshot.top_candidate
    assert top.name == "Grace Hopper"
    assert top.match_percentage == 64
    assert top.skills == []
    assert top.location == ""
    assert parse_candidate_profile(None) is None


def test_orphaned_applications_count_but_are_not_listed() -> None:
    orphan = ApplicationView(status="interview", match_score=99, applicant=None)
    snapshot = _compute([orphan, _view(2, "applied", 10, ["Python"])])

    assert snapshot.summary.total_resumes == 2
    assert snapshot.summary.shortlisted == 1
    assert [c.id for c in snapshot.candidates] == [2]


def test_configured_questions_are_ordered_by_importance() -> None:
    config = AIInterviewerConfig.model_validate(
        {
            "questions": [
                {"id": "q1", "text": "Low one", "importance": "low"},
                {"id": "q2", "text": "High one", "importance": "high"},
                {"id": "q3", "text": "Medium one", "importance": "medium"},
                {"id": "q4", "text": "Another high", "importance": "high"},
            ]
        }
    )

    assert suggested_questions_for("Backend Engineer", config) == ["High one", "Another high", "Medium one"]


def test_role_keyword_questions_fall_back_to_defaults() -> None:
    assert suggested_questions_for("Senior Product Designer", None)[0].startswith("Describe your design process")
    assert suggested_questions_for("Engineering Manager", None)[0].startswith("Describe your experience")
    assert suggested_questions_for("Account Executive", None) == DEFAULT_QUESTIONS


def test_requirement_keywords_skip_short_and_known_words() -> None:
    words = requirement_keywords(["Strong SQL and Python skills"], ["python"], limit=5)

    assert words == ["strong", "skills"]


def test_status_progress_mapping_and_fallback() -> None:
    assert status_progress("applied") == 20
    assert status_progress("screening") == 40
    assert status_progress("interview") == 60
    assert status_progress("offer") == 80
    assert status_progress("hired") == 100
    assert status_progress("rejected") == 100
    assert status_progress("on-hold") == 20


def test_round_half_up_matches_percentage_rounding() -> None:
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(33.33) == 33
