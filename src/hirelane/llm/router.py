from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from hirelane.config import Settings, get_settings
from hirelane.llm.prompts import CV_SUMMARY_PROMPT
from hirelane.llm.providers import LLMProvider, ProviderPool, StreamDelta
from hirelane.types import CandidateProfile, ChatReply, SkillGroup

logger = logging.getLogger(__name__)

CV_TEXT_LIMIT = 60000


class LLMUnavailableError(RuntimeError):
    pass


class LLMRouter:
    def __init__(self, settings: Settings | None = None, pool: ProviderPool | None = None):
        self.settings = settings or get_settings()
        self.pool = pool or ProviderPool(self.settings)

    def chat(self, messages: list[dict[str, Any]], functions: list[dict[str, Any]] | None = None) -> ChatReply:
        last_error: Exception | None = None
        for provider in self._available("chat"):
            try:
                return provider.chat(
                    model=self._model_for(provider, self.settings.openai_model_chat),
                    messages=messages,
                    functions=functions,
                    temperature=self.settings.chat_temperature,
                    max_tokens=self.settings.chat_max_tokens,
                )
            except Exception as exc:
                last_error = exc
                logger.warning("LLM chat call failed provider=%s error=%s", provider.config.name, exc)
        raise LLMUnavailableError(f"no chat provider succeeded: {last_error}")

    def stream_chat(
        self, messages: list[dict[str, Any]], functions: list[dict[str, Any]] | None = None
    ) -> Iterator[StreamDelta]:
        providers = self._available("chat")
        if not providers:
            raise LLMUnavailableError("no chat provider configured")
        provider = providers[0]
        return provider.stream_chat(
            model=self._model_for(provider, self.settings.openai_model_chat),
            messages=messages,
            functions=functions,
            temperature=self.settings.chat_temperature,
            max_tokens=self.settings.chat_max_tokens,
        )

    def embed(self, text: str) -> list[float]:
        for provider in self._available("embed"):
            try:
                return provider.embed(
                    model=self._model_for(provider, self.settings.openai_model_embedding),
                    text=text,
                )
            except Exception as exc:
                logger.warning("Embedding call failed provider=%s error=%s", provider.config.name, exc)
        return []

    def analyze_cv(self, *, prompt_template: str, cv_text: str) -> dict[str, Any]:
        prompt = (
            f"{prompt_template}\n\nCV Content:\n{cv_text[:CV_TEXT_LIMIT]}\n\n"
            "Please analyze this CV and provide your assessment in the JSON format described above."
        )
        for provider in self._available("analyze"):
            try:
                return provider.complete_json(
                    model=self._model_for(provider, self.settings.openai_model_analysis),
                    prompt=prompt,
                )
            except Exception as exc:
                logger.warning("CV analysis call failed provider=%s error=%s", provider.config.name, exc)
        return {}

    def summarize_cv(self, profile: CandidateProfile) -> str:
        prompt = build_cv_summary_prompt(profile)
        for provider in self._available("analyze"):
            try:
                text = provider.complete_text(
                    model=self._model_for(provider, self.settings.openai_model_analysis),
                    prompt=prompt,
                ).content
                return text.strip()
            except Exception as exc:
                logger.warning("CV summary call failed provider=%s error=%s", provider.config.name, exc)
        return ""

    def _provider_order(self, task: str) -> tuple[str, str]:
        provider_name = {
            "chat": self.settings.llm_router_chat_provider,
            "embed": self.settings.llm_router_embed_provider,
            "analyze": self.settings.llm_router_analyze_provider,
        }.get(task, self.settings.llm_router_default)

        if provider_name == "local":
            return "local", "openai"
        return "openai", "local"

    def _available(self, task: str) -> list[LLMProvider]:
        # OpenAI() raises on an empty api key, so only configured providers are built
        providers: list[LLMProvider] = []
        for name in self._provider_order(task):
            if name == "openai" and self.settings.openai_api_key:
                providers.append(self.pool.openai())
            elif name == "local" and self.settings.local_llm_enabled:
                providers.append(self.pool.local())
        return providers

    def _model_for(self, provider: LLMProvider, openai_model: str) -> str:
        if provider.config.name == "local":
            return self.settings.local_llm_model
        return openai_model


def _skill_line(group: SkillGroup | None) -> str:
    if group is None:
        return "(Score: 0): None"
    skills = ", ".join(f"{skill.name} ({skill.score:g})" for skill in group.skills)
    return f"(Score: {group.overall_score:g}): {skills or 'None'}"


def build_cv_summary_prompt(profile: CandidateProfile) -> str:
    personal = profile.personal
    career = profile.career
    skills = profile.skills
    cv = profile.cv
    return CV_SUMMARY_PROMPT.format(
        age=(personal.age if personal else "") or "N/A",
        nationality=(personal.nationality if personal else "") or "N/A",
        location=(personal.location if personal else "") or "N/A",
        experience=(career.experience if career else "") or "N/A",
        past_roles=(career.past_roles if career else "") or "N/A",
        progression=(career.progression if career else "") or "N/A",
        technical=_skill_line(skills.technical if skills else None),
        soft=_skill_line(skills.soft if skills else None),
        culture=_skill_line(skills.culture if skills else None),
        highlights="; ".join(cv.highlights) if cv and cv.highlights else "None",
        insights="; ".join(cv.key_insights) if cv and cv.key_insights else "None",
        recommendation=profile.recommendation or "N/A",
        score=f"{cv.score:g}" if cv and cv.score else "N/A",
    )
