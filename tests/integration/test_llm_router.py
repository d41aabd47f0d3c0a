from __future__ import annotations

import pytest

from hirelane.config import Settings
from hirelane.llm.router import LLMRouter, LLMUnavailableError, build_cv_summary_prompt
from hirelane.types import CandidateProfile
from tests.fakes import candidate_profile


def _router(**overrides) -> LLMRouter:
    values = {"openai_api_key": "", "local_llm_enabled": False, **overrides}
    return LLMRouter(Settings(**values))


def test_router_without_providers_degrades() -> None:
    router = _router()

    assert router.embed("python") == []
    assert router.analyze_cv(prompt_template="Analyze", cv_text="CV") == {}
    assert router.summarize_cv(CandidateProfile()) == ""
    with pytest.raises(LLMUnavailableError):
        router.chat([{"role": "user", "content": "hi"}])
    with pytest.raises(LLMUnavailableError):
        router.stream_chat([{"role": "user", "content": "hi"}])


def test_router_orders_local_first_when_configured() -> None:
    router = _router(local_llm_enabled=True, llm_router_chat_provider="local")
    providers = router._available("chat")

    assert [provider.config.name for provider in providers] == ["local"]
    assert router._model_for(providers[0], "gpt-4o") == router.settings.local_llm_model


def test_cv_summary_prompt_includes_profile_facts() -> None:
    prompt = build_cv_summary_prompt(CandidateProfile.model_validate(candidate_profile(["Python", "SQL"])))

    assert "Berlin" in prompt
    assert "Python (80), SQL (80)" in prompt
    assert "Shipped payments platform; Led migration; Mentored juniors" in prompt


def test_unconfigured_providers_are_never_built() -> None:
    router = _router()

    assert router.embed("python engineer") == []
    assert router.pool._openai is None
    assert router.pool._local is None
