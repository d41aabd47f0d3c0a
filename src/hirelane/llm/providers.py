from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from openai import OpenAI
from tenacity import Retrying, stop_after_attempt, wait_random_exponential

from hirelane.config import Settings
from hirelane.types import ChatReply, FunctionCall, ModelResponse

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int


@dataclass(slots=True)
class StreamDelta:
    content: str = ""
    function_name: str = ""
    function_arguments: str = ""


class LLMProvider:
    def __init__(self, config: ProviderConfig, *, retry_attempts: int = 3):
        self.config = config
        self.retry_attempts = max(retry_attempts, 1)
        self.client = OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
        )

    def complete_text(self, *, model: str, prompt: str) -> ModelResponse:
        try:
            return self._complete_via_responses(model=model, prompt=prompt)
        except Exception as exc:
            if not self._is_unsupported_responses_endpoint(exc):
                raise

            logger.warning(
                "Responses API unavailable for provider=%s base_url=%s; "
                "falling back to chat.completions (%s)",
                self.config.name,
                self.config.base_url,
                exc,
            )
            return self._complete_via_chat_completions(model=model, prompt=prompt)

    def complete_json(self, *, model: str, prompt: str) -> dict[str, Any]:
        text_response = self.complete_text(model=model, prompt=prompt)
        return parse_json(text_response.content)

    def chat(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        functions: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> ChatReply:
        response = self.client.chat.completions.create(
            **self._chat_kwargs(model, messages, functions, temperature, max_tokens)
        )
        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        if message is None:
            return ChatReply(raw=raw)

        return ChatReply(
            content=getattr(message, "content", None) or "",
            function_call=self._extract_function_call(message),
            raw=raw,
        )

    def stream_chat(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        functions: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> Iterator[StreamDelta]:
        stream = self.client.chat.completions.create(
            stream=True,
            **self._chat_kwargs(model, messages, functions, temperature, max_tokens),
        )
        for chunk in stream:
            choices = getattr(chunk, "choices", None) or []
            if not choices:
                continue
            delta = getattr(choices[0], "delta", None)
            if delta is None:
                continue

            piece = StreamDelta(content=getattr(delta, "content", None) or "")
            function_call = getattr(delta, "function_call", None)
            if function_call is not None:
                piece.function_name = getattr(function_call, "name", None) or ""
                piece.function_arguments = getattr(function_call, "arguments", None) or ""
            for tool_call in getattr(delta, "tool_calls", None) or []:
                function = getattr(tool_call, "function", None)
                if function is None:
                    continue
                piece.function_name += getattr(function, "name", None) or ""
                piece.function_arguments += getattr(function, "arguments", None) or ""

            if piece.content or piece.function_name or piece.function_arguments:
                yield piece

    def embed(self, *, model: str, text: str) -> list[float]:
        retrying = Retrying(
            wait=wait_random_exponential(min=1, max=30),
            stop=stop_after_attempt(self.retry_attempts),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                response = self.client.embeddings.create(model=model, input=text)
        data = getattr(response, "data", None) or []
        if not data:
            return []
        return [float(value) for value in data[0].embedding]

    @staticmethod
    def _chat_kwargs(
        model: str,
        messages: list[dict[str, Any]],
        functions: list[dict[str, Any]] | None,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if functions:
            kwargs["functions"] = functions
            kwargs["function_call"] = "auto"
        return kwargs

    @staticmethod
    def _extract_function_call(message: Any) -> FunctionCall | None:
        tool_calls = getattr(message, "tool_calls", None) or []
        if tool_calls:
            function = getattr(tool_calls[0], "function", None)
            if function is not None:
                return FunctionCall(name=function.name, arguments=function.arguments or "{}")

        function_call = getattr(message, "function_call", None)
        if function_call is not None and getattr(function_call, "name", None):
            return FunctionCall(name=function_call.name, arguments=function_call.arguments or "{}")
        return None

    def _complete_via_responses(self, *, model: str, prompt: str) -> ModelResponse:
        response = self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
        )
        text = getattr(response, "output_text", "") or ""
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["api_path"] = "responses"
        return ModelResponse(content=text, raw=raw)

    def _complete_via_chat_completions(self, *, model: str, prompt: str) -> ModelResponse:
        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )

        text = self._extract_chat_text(response)
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["api_path"] = "chat_completions"
        return ModelResponse(content=text, raw=raw)

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        if content is None:
            return ""
        return str(content)

    @staticmethod
    def _is_unsupported_responses_endpoint(exc: Exception) -> bool:
        status_code = getattr(exc, "status_code", None)
        if status_code == 404:
            return True

        message = str(exc).strip().lower()
        if not message:
            return False

        return "not found" in message or "404" in message


def parse_json(content: str) -> dict[str, Any]:
    candidate = content.strip()
    if not candidate:
        return {}

    if "```" in candidate:
        parts = candidate.split("```")
        for part in parts:
            part = part.strip()
            if part.startswith("json"):
                part = part[4:].strip()
            if part.startswith("{") and part.endswith("}"):
                candidate = part
                break

    try:
        value = json.loads(candidate)
        return value if isinstance(value, dict) else {}
    except json.JSONDecodeError:
        logger.warning("Failed to parse JSON model output")
        return {}


class ProviderPool:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._openai: LLMProvider | None = None
        self._local: LLMProvider | None = None

    def openai(self) -> LLMProvider:
        if self._openai is None:
            self._openai = LLMProvider(
                ProviderConfig(
                    name="openai",
                    base_url=self.settings.openai_base_url,
                    api_key=self.settings.openai_api_key,
                    timeout_sec=self.settings.openai_timeout_sec,
                ),
                retry_attempts=self.settings.embedding_retry_attempts,
            )
        return self._openai

    def local(self) -> LLMProvider:
        if self._local is None:
            self._local = LLMProvider(
                ProviderConfig(
                    name="local",
                    base_url=self.settings.local_llm_base_url,
                    api_key=self.settings.local_llm_api_key,
                    timeout_sec=self.settings.local_llm_timeout_sec,
                ),
                retry_attempts=self.settings.embedding_retry_attempts,
            )
        return self._local
