from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from hirelane.db.models import Candidate, Job
from hirelane.llm.prompts import INTERVIEWER_BASE_PROMPT
from hirelane.types import AIInterviewerConfig, JobDescription

DEFAULT_CANDIDATE_NAME = "the candidate"
CONFIG_APPENDIX_HEADER = "\n\n# AI Interviewer Additional Configuration\n\n"
IMPORTANCE_ORDER = {"high": 1, "medium": 2, "low": 3}
KEY_INSIGHT_KEYWORDS = (
    "expertise",
    "specialized",
    "award",
    "achievement",
    "lead",
    "managed",
    "developed",
    "created",
    "key",
)
_BULLET_RE = re.compile(r"[•\-\*]\s+([^\n]+)")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def render_prompt_template(template: str, variables: dict[str, str]) -> str:
    """Replace ``{{name}}`` and then ``{name}`` placeholders.

    Unknown placeholders are left untouched so a template can still carry
    literal braces.
    """
    rendered = template
    for key, value in variables.items():
        rendered = rendered.replace("{{" + key + "}}", value)
    for key, value in variables.items():
        rendered = rendered.replace("{" + key + "}", value)
    return rendered


def build_config_appendix(config: AIInterviewerConfig) -> str:
    parts = [CONFIG_APPENDIX_HEADER, f"Use a {config.conversational_style} conversational style throughout the interview.\n\n"]
    if config.introduction:
        parts.append(f'## Introduction\nStart with this introduction: "{config.introduction}"\n\n')
    if config.focus_areas:
        parts.append(
            "## Focus Areas\nFocus on evaluating the candidate in these specific areas: "
            f"{', '.join(config.focus_areas)}\n\n"
        )
    parts.append(f"## Time Limit\nKeep the interview within {config.time_limit:g} minutes.\n\n")

    if config.questions:
        parts.append("## Specific Questions to Ask\n")
        ordered = sorted(config.questions, key=lambda q: IMPORTANCE_ORDER.get(q.importance, 4))
        for index, question in enumerate(ordered, start=1):
            parts.append(f"{index}. {question.text} ({question.importance} priority)\n")
            if question.follow_up_prompts:
                parts.append("   Follow-up prompts if needed:\n")
                parts.extend(f"   - {prompt}\n" for prompt in question.follow_up_prompts)
        parts.append("\n")
    return "".join(parts)


def build_base_prompt(job: Job, candidate_name: str | None = None) -> str:
    description = JobDescription.model_validate(job.description or {})
    return INTERVIEWER_BASE_PROMPT.format(
        company_name=job.company,
        job_title=job.title,
        intro=description.intro,
        details=description.details,
        requirements=", ".join(job.requirements or []),
        responsibilities=description.responsibilities,
        desirables=", ".join(job.desirables or []),
        candidate_name=candidate_name or DEFAULT_CANDIDATE_NAME,
    ).strip()


def build_interviewer_prompt(
    job: Job,
    config: AIInterviewerConfig | None = None,
    candidate_name: str | None = None,
) -> str:
    if config is None:
        return build_base_prompt(job, candidate_name)

    if config.system_prompt:
        description = JobDescription.model_validate(job.description or {})
        base = render_prompt_template(
            config.system_prompt,
            {
                "jobTitle": job.title,
                "requirements": ", ".join(job.requirements or []),
                "responsibilities": description.responsibilities,
                "desirables": ", ".join(job.desirables or []),
            },
        )
    else:
        base = build_base_prompt(job, candidate_name)
    return base + build_config_appendix(config)


def summarize_candidate(candidate: Candidate, cv_summary: str | None) -> str:
    info = f"Email: {candidate.email or 'Unknown'}\n"
    info += f"Resume Summary: {cv_summary or 'Resume not available'}"
    if not cv_summary:
        return info

    highlights = [match for match in _BULLET_RE.findall(cv_summary) if len(match) > 10]
    if highlights:
        info += "\n\nHighlights:\n" + "".join(f"• {item}\n" for item in highlights[:5])

    sentences = [s for s in _SENTENCE_SPLIT_RE.split(cv_summary) if s.strip()]
    insights = [s for s in sentences if any(keyword in s.lower() for keyword in KEY_INSIGHT_KEYWORDS)]
    if insights:
        info += "\n\nKey Insights:\n" + "".join(f"• {item.strip()}.\n" for item in insights[:3])
    return info


def interview_variables(
    job: Job,
    candidate: Candidate,
    *,
    cv_summary: str | None = None,
    knowledge_base: str = "",
) -> dict[str, str]:
    if not job.requirements:
        raise ValueError("Job requirements are missing or empty")
    if not job.title:
        raise ValueError("Job title is missing")
    if not job.company:
        raise ValueError("Company name is missing")
    description = JobDescription.model_validate(job.description or {})
    if not (description.intro and description.details and description.responsibilities):
        raise ValueError("Complete job description is missing")
    if not candidate.name:
        raise ValueError("Candidate name is missing")

    return {
        "jobTitle": job.title,
        "companyName": job.company,
        "jobDescription": f"{description.intro}\n{description.details}\n{description.responsibilities}",
        "responsibilities": description.responsibilities,
        "candidateName": candidate.name,
        "the candidate": candidate.name,
        "candidateInfo": summarize_candidate(candidate, cv_summary),
        "requirements": "\n".join(f"{i}. {req}" for i, req in enumerate(job.requirements, start=1)),
        "desirables": "\n".join(
            f"{i}. {item.replace(',', ' -')}" for i, item in enumerate(job.desirables or [], start=1)
        ),
        "cvSummary": cv_summary or "CV summary not available",
        "cvHighlights": "CV highlights not available",
        "cvKeyInsights": "CV key insights not available",
        "cv": cv_summary or "No CV information available for this candidate",
        "knowledgeBase": knowledge_base,
    }


@dataclass(slots=True)
class InterviewSession:
    """Conversation state for one interview, passed around explicitly."""

    job_id: int
    candidate_id: int
    system_prompt: str
    messages: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def start(
        cls,
        job: Job,
        candidate: Candidate,
        *,
        cv_summary: str | None = None,
        knowledge_base: str = "",
    ) -> InterviewSession:
        template = job.interview_prompt or build_base_prompt(job, candidate.name)
        variables = interview_variables(job, candidate, cv_summary=cv_summary, knowledge_base=knowledge_base)
        return cls(job_id=job.id, candidate_id=candidate.id, system_prompt=render_prompt_template(template, variables))

    def add_message(self, role: str, content: str) -> None:
        self.messages.append({"role": role, "content": content})

    def chat_messages(self) -> list[dict[str, Any]]:
        return [{"role": "system", "content": self.system_prompt}, *self.messages]
