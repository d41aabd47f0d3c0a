from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from hirelane.db.models import Prompt
from hirelane.db.repositories import now_ms
from hirelane.llm.prompts import CV_ANALYSIS_PROMPT, INTERVIEW_ANALYSIS_PROMPT

DEFAULT_PROMPTS: list[dict[str, str]] = [
    {
        "name": "cv_analysis",
        "content": CV_ANALYSIS_PROMPT,
        "description": "Prompt for analyzing candidate CVs and resumes",
    },
    {
        "name": "interview_analysis",
        "content": INTERVIEW_ANALYSIS_PROMPT,
        "description": "Prompt for analyzing interview transcripts",
    },
]


def seed_prompts(session: Session) -> list[dict[str, object]]:
    results: list[dict[str, object]] = []
    for prompt in DEFAULT_PROMPTS:
        existing = session.scalar(select(Prompt).where(Prompt.name == prompt["name"]))
        if existing:
            results.append({"type": "exists", "name": prompt["name"], "id": existing.id})
            continue
        row = Prompt(
            name=prompt["name"],
            content=prompt["content"],
            description=prompt["description"],
            last_updated=now_ms(),
            updated_by="system_init",
        )
        session.add(row)
        session.flush()
        results.append({"type": "insert", "name": prompt["name"], "id": row.id})

    session.commit()
    return results
