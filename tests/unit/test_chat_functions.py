from __future__ import annotations

import pytest

from hirelane.core.assistant import job_fields_from_arguments, normalize_date, parse_arguments, parse_salary
from hirelane.llm.functions import FUNCTION_SCHEMAS, find_route_from_query


def test_function_schemas_cover_the_four_actions() -> None:
    names = [schema["name"] for schema in FUNCTION_SCHEMAS]

    assert names == ["createJob", "deleteJob", "scheduleInterview", "navigateToPage"]
    schedule = FUNCTION_SCHEMAS[2]["parameters"]
    assert set(schedule["required"]) == {"position", "date", "time", "interviewType", "candidateName"}


@pytest.mark.parametrize(
    ("query", "route"),
    [
        ("take me to the dashboard", "/dashboard"),
        ("I want to create job posting", "/jobs/new"),
        ("open the hiring pipeline", "/pipeline"),
        ("show me analytics", "/analytics"),
        ("go to settings", "/settings"),
    ],
)
def test_route_lookup_by_phrase(query: str, route: str) -> None:
    assert find_route_from_query(query) == route


def test_route_lookup_falls_back_to_single_keywords() -> None:
    assert find_route_from_query("candidate profile") == "/candidates"
    assert find_route_from_query("xyzzy") is None


def test_salary_parsing_and_default_range() -> None:
    assert parse_salary("$100,000 - $130,000") == {"min": 100000, "max": 130000, "currency": "USD", "period": "yearly"}
    assert parse_salary(None)["min"] == 90000
    assert parse_salary("85000")["max"] == 85000


def test_job_fields_from_arguments_derive_level_and_requirements() -> None:
    fields = job_fields_from_arguments(
        {
            "title": "Senior Data Engineer",
            "description": "Own pipelines",
            "requirements": "Computer Science degree\n5+ years of SQL",
            "location": "Remote",
            "employmentType": "Contract",
        }
    )

    assert fields["level"] == "Senior"
    assert fields["experience"] == "5+ years"
    assert fields["education"] == "Computer Science degree"
    assert fields["requirements"] == ["Computer Science degree", "5+ years of SQL"]
    assert fields["type"] == "Contract"
    assert fields["description"]["intro"] == "We are looking for a talented Senior Data Engineer to join our team."


def test_job_fields_defaults_for_sparse_arguments() -> None:
    fields = job_fields_from_arguments({"title": "Designer", "description": "", "requirements": ""})

    assert fields["level"] == "Mid-Level"
    assert fields["experience"] == "3+ years"
    assert fields["education"] == "Bachelor's degree"
    assert fields["type"] == "Full-time"


def test_dates_are_normalized_when_parseable() -> None:
    assert normalize_date("2026-11-02") == "2026-11-02"
    assert normalize_date("November 2, 2026") == "2026-11-02"
    assert normalize_date("next tuesday") == "next tuesday"


def test_arguments_must_be_a_json_object() -> None:
    assert parse_arguments('{"title": "x"}') == {"title": "x"}
    assert parse_arguments(None) == {}
    with pytest.raises(ValueError, match="valid JSON"):
        parse_arguments("{not json")
    with pytest.raises(ValueError, match="JSON object"):
        parse_arguments("[1, 2]")
