from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from hirelane.llm.providers import StreamDelta
from hirelane.types import CandidateProfile, ChatReply, FunctionCall

VOCABULARY = [
    "python",
    "react",
    "designer",
    "figma",
    "manager",
    "backend",
    "frontend",
    "interview",
    "scheduled",
    "engineer",
    "data",
    "sql",
]


def bag_of_words(text: str) -> list[float]:
    words = re.findall(r"[a-z]+", text.lower())
    return [float(words.count(term)) + 0.01 for term in VOCABULARY]


class FakeRouter:
    """Deterministic stand-in for ``LLMRouter``."""

    def __init__(
        self,
        *,
        reply: ChatReply | None = None,
        stream: list[StreamDelta] | None = None,
        analysis: dict[str, Any] | None = None,
        summary: str = "Strong backend engineer.",
        embed_ok: bool = True,
    ):
        self.reply = reply or ChatReply(content="Hello from the assistant")
        self.stream = stream or []
        self.analysis = analysis or {}
        self.summary = summary
        self.embed_ok = embed_ok
        self.chat_calls: list[dict[str, Any]] = []

    def embed(self, text: str) -> list[float]:
        return bag_of_words(text) if self.embed_ok else []

    def chat(self, messages, functions=None) -> ChatReply:
        self.chat_calls.append({"messages": messages, "functions": functions})
        return self.reply

    def stream_chat(self, messages, functions=None) -> Iterator[StreamDelta]:
        self.chat_calls.append({"messages": messages, "functions": functions})
        return iter(list(self.stream))

    def analyze_cv(self, *, prompt_template: str, cv_text: str) -> dict[str, Any]:
        return self.analysis

    def summarize_cv(self, profile: CandidateProfile) -> str:
        return self.summary


def function_reply(name: str, arguments: str) -> ChatReply:
    return ChatReply(content="", function_call=FunctionCall(name=name, arguments=arguments))


def candidate_profile(skills: list[str], *, location: str = "Berlin", score: float = 80) -> dict[str, Any]:
    return {
        "personal": {"location": location, "nationality": "German"},
        "career": {"experience": "6 years", "past_roles": "Backend Engineer"},
        "skills": {
            "technical": {
                "overallScore": 82,
                "skills": [{"name": name, "score": 80} for name in skills],
            },
            "soft": {"overallScore": 70, "skills": [{"name": "Communication", "score": 70}]},
        },
        "cv": {"highlights": ["Shipped payments platform", "Led migration", "Mentored juniors"], "score": score},
        "recommendation": "Proceed to interview",
    }


def job_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "Remote",
        "type": "Full-time",
        "description": {
            "intro": "Join our platform team.",
            "details": "Build APIs.",
            "responsibilities": "Own services end to end.",
            "closing": "Apply today.",
        },
        "requirements": ["Python experience", "Kubernetes knowledge", "PostgreSQL tuning"],
        "desirables": ["Go, Rust"],
        "salary": {"min": 90000, "max": 120000, "currency": "USD", "period": "year"},
    }
    payload.update(overrides)
    return payload
