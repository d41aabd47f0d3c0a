from __future__ import annotations

from types import SimpleNamespace

import pytest
from tenacity import wait_none

from hirelane.llm import providers
from hirelane.llm.providers import LLMProvider, ProviderConfig, parse_json


class DummyAPIError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FakePayload:
    def __init__(self, *, raw: dict | None = None, **attrs):
        self._raw = raw or {}
        for key, value in attrs.items():
            setattr(self, key, value)

    def model_dump(self) -> dict:
        return self._raw


class FakeEndpoint:
    def __init__(self, fn):
        self._fn = fn
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return self._fn(**kwargs)


class FakeClient:
    def __init__(self, *, responses_fn=None, chat_fn=None, embeddings_fn=None):
        self.responses = FakeEndpoint(responses_fn or _unexpected)
        self.chat = SimpleNamespace(completions=FakeEndpoint(chat_fn or _unexpected))
        self.embeddings = FakeEndpoint(embeddings_fn or _unexpected)


def _unexpected(**kwargs):
    raise AssertionError(f"unexpected call {kwargs}")


def _chat_payload(message) -> FakePayload:
    return FakePayload(choices=[SimpleNamespace(message=message)], raw={"id": "chat_1"})


def _provider(fake_client: FakeClient, retry_attempts: int = 1) -> LLMProvider:
    provider = LLMProvider(
        ProviderConfig(
            name="openai",
            base_url="http://localhost:9999/v1",
            api_key="dummy",
            timeout_sec=5,
        ),
        retry_attempts=retry_attempts,
    )
    provider.client = fake_client
    return provider


def test_complete_text_uses_responses_when_available() -> None:
    client = FakeClient(responses_fn=lambda **kwargs: FakePayload(output_text="RESP_OK", raw={"id": "resp_1"}))
    result = _provider(client).complete_text(model="gpt-4o", prompt="summarize")

    assert result.content == "RESP_OK"
    assert result.raw["api_path"] == "responses"
    assert client.chat.completions.calls == []


def test_complete_text_falls_back_to_chat_on_responses_not_found() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("Not found", status_code=404)

    client = FakeClient(
        responses_fn=responses_fn,
        chat_fn=lambda **kwargs: _chat_payload(SimpleNamespace(content='{"cv": {"score": 7}}')),
    )
    provider = _provider(client)

    assert provider.complete_text(model="gpt-4o", prompt="analyze").raw["api_path"] == "chat_completions"
    assert provider.complete_json(model="gpt-4o", prompt="analyze") == {"cv": {"score": 7}}


def test_complete_text_propagates_other_responses_errors() -> None:
    def responses_fn(**kwargs):
        raise DummyAPIError("rate limited", status_code=429)

    with pytest.raises(DummyAPIError, match="rate limited"):
        _provider(FakeClient(responses_fn=responses_fn)).complete_text(model="gpt-4o", prompt="x")


def test_chat_reads_function_call_from_tool_calls() -> None:
    message = SimpleNamespace(
        content=None,
        tool_calls=[SimpleNamespace(function=SimpleNamespace(name="deleteJob", arguments='{"jobTitle": "QA"}'))],
        function_call=None,
    )
    client = FakeClient(chat_fn=lambda **kwargs: _chat_payload(message))
    reply = _provider(client).chat(
        model="gpt-4o",
        messages=[{"role": "user", "content": "delete the QA job"}],
        functions=[{"name": "deleteJob"}],
    )

    assert reply.content == ""
    assert reply.function_call is not None
    assert reply.function_call.name == "deleteJob"
    assert reply.function_call.arguments == '{"jobTitle": "QA"}'
    sent = client.chat.completions.calls[0]
    assert sent["function_call"] == "auto"
    assert sent["max_tokens"] == 1000


def test_chat_without_functions_sends_no_function_fields() -> None:
    message = SimpleNamespace(content="Hello", tool_calls=None, function_call=None)
    client = FakeClient(chat_fn=lambda **kwargs: _chat_payload(message))
    reply = _provider(client).chat(model="gpt-4o", messages=[{"role": "user", "content": "hi"}])

    assert reply.content == "Hello"
    assert reply.function_call is None
    assert "functions" not in client.chat.completions.calls[0]


def test_stream_chat_yields_content_and_function_fragments() -> None:
    def chunk(**delta):
        fields = {"content": None, "function_call": None, "tool_calls": None, **delta}
        return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(**fields))])

    chunks = [
        chunk(content="Sure"),
        SimpleNamespace(choices=[]),
        chunk(function_call=SimpleNamespace(name="navigateToPage", arguments='{"intent"')),
        chunk(function_call=SimpleNamespace(name=None, arguments=': "go"}')),
    ]
    client = FakeClient(chat_fn=lambda **kwargs: iter(chunks))
    pieces = list(_provider(client).stream_chat(model="gpt-4o", messages=[]))

    assert [piece.content for piece in pieces] == ["Sure", "", ""]
    assert pieces[1].function_name == "navigateToPage"
    assert "".join(piece.function_arguments for piece in pieces) == '{"intent": "go"}'
    assert client.chat.completions.calls[0]["stream"] is True


def test_embed_retries_then_returns_vector(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(providers, "wait_random_exponential", lambda **kwargs: wait_none())
    attempts = {"count": 0}

    def embeddings_fn(**kwargs):
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise DummyAPIError("temporary", status_code=500)
        return SimpleNamespace(data=[SimpleNamespace(embedding=[1, 0.5])])

    provider = _provider(FakeClient(embeddings_fn=embeddings_fn), retry_attempts=2)

    assert provider.embed(model="text-embedding-3-small", text="python engineer") == [1.0, 0.5]
    assert attempts["count"] == 2


def test_embed_reraises_after_last_attempt(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(providers, "wait_random_exponential", lambda **kwargs: wait_none())

    def embeddings_fn(**kwargs):
        raise DummyAPIError("down", status_code=503)

    client = FakeClient(embeddings_fn=embeddings_fn)
    with pytest.raises(DummyAPIError, match="down"):
        _provider(client, retry_attempts=3).embed(model="text-embedding-3-small", text="x")
    assert len(client.embeddings.calls) == 3


def test_parse_json_accepts_fenced_blocks_and_rejects_lists() -> None:
    assert parse_json('```json\n{"ok": true}\n```') == {"ok": True}
    assert parse_json("[1, 2]") == {}
    assert parse_json("not json") == {}
    assert parse_json("   ") == {}
