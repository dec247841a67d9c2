"""Tests for OpenAI-compatible chat completion calls (mocked transport)."""

from __future__ import annotations

import json

import httpx
import pytest

from server.chat import generation
from server.chat.generation import (
    _extract_text_from_chat_completions_response,
    build_messages,
    generate_chat_text,
    stream_chat_text,
)
from server.chat.provider_router import ProviderRoute
from server.models.chat import Message
from server.models.chat_config import OpenRouterConfig

ROUTE = ProviderRoute(
    kind="openrouter",
    provider_name="OpenRouter",
    base_url="https://openrouter.test/api/v1/",
    model="openai/gpt-4o",
    api_key="test-key",
)


def _mock_client(monkeypatch: pytest.MonkeyPatch, handler) -> list[httpx.Request]:
    seen: list[httpx.Request] = []
    real_client = httpx.AsyncClient

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    def _factory(**kwargs):
        return real_client(transport=httpx.MockTransport(_handler), **kwargs)

    monkeypatch.setattr(generation.httpx, "AsyncClient", _factory)
    return seen


def test_build_messages_trims_history() -> None:
    history = [Message(role="user", content=f"q{i}") for i in range(4)] + [
        Message(role="system", content="ignored")
    ]
    messages = build_messages(system_prompt="sys", history=history, user_message="now", max_history_messages=2)
    assert messages == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "q2"},
        {"role": "user", "content": "q3"},
        {"role": "user", "content": "now"},
    ]
    assert len(build_messages(system_prompt="s", history=history, user_message="u", max_history_messages=0)) == 2


def test_extract_text_variants() -> None:
    assert _extract_text_from_chat_completions_response({"choices": [{"message": {"content": "hi"}}]}) == "hi"
    parts = {"choices": [{"message": {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}}]}
    assert _extract_text_from_chat_completions_response(parts) == "a\nb"
    assert _extract_text_from_chat_completions_response({"choices": [{"text": "legacy"}]}) == "legacy"

    with pytest.raises(RuntimeError, match="quota exceeded"):
        _extract_text_from_chat_completions_response({"error": {"message": "quota exceeded"}})
    with pytest.raises(RuntimeError, match="missing choices"):
        _extract_text_from_chat_completions_response({"choices": []})


@pytest.mark.asyncio
async def test_generate_chat_text_posts_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = _mock_client(
        monkeypatch,
        lambda request: httpx.Response(200, json={"id": "resp_1", "choices": [{"message": {"content": "answer"}}]}),
    )

    text, provider_id = await generate_chat_text(
        route=ROUTE,
        openrouter_cfg=OpenRouterConfig(site_name="Docs"),
        messages=[{"role": "user", "content": "q"}],
        temperature=0.2,
        max_tokens=64,
    )

    assert (text, provider_id) == ("answer", "resp_1")
    request = seen[0]
    assert str(request.url) == "https://openrouter.test/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["X-Title"] == "Docs"
    body = json.loads(request.content)
    assert body["model"] == "openai/gpt-4o"
    assert body["stream"] is False
    assert body["max_tokens"] == 64


@pytest.mark.asyncio
async def test_generate_chat_text_unauthorized(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_client(monkeypatch, lambda request: httpx.Response(401, json={"error": {"message": "bad key"}}))
    with pytest.raises(RuntimeError, match="OpenRouter unauthorized"):
        await generate_chat_text(
            route=ROUTE, openrouter_cfg=OpenRouterConfig(), messages=[], temperature=0.0, max_tokens=8
        )


@pytest.mark.asyncio
async def test_generate_chat_text_surfaces_provider_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_client(monkeypatch, lambda request: httpx.Response(429, json={"error": {"message": "rate limited"}}))
    with pytest.raises(RuntimeError, match=r"HTTP 429\): rate limited"):
        await generate_chat_text(
            route=ROUTE, openrouter_cfg=OpenRouterConfig(), messages=[], temperature=0.0, max_tokens=8
        )


@pytest.mark.asyncio
async def test_generate_chat_text_requires_api_key() -> None:
    route = ProviderRoute(kind="cloud_direct", provider_name="OpenAI", base_url="https://x", model="m", api_key=None)
    with pytest.raises(RuntimeError, match="API key is not set"):
        await generate_chat_text(
            route=route, openrouter_cfg=OpenRouterConfig(), messages=[], temperature=0.0, max_tokens=8
        )


@pytest.mark.asyncio
async def test_stream_chat_text_yields_deltas(monkeypatch: pytest.MonkeyPatch) -> None:
    chunks = [
        {"choices": [{"delta": {"role": "assistant"}}]},
        {"choices": [{"delta": {"content": "Hel"}}]},
        {"choices": [{"delta": {"content": "lo"}}]},
    ]
    body = "".join(f"data: {json.dumps(c)}\n\n" for c in chunks) + "data: [DONE]\n\n"
    _mock_client(monkeypatch, lambda request: httpx.Response(200, text=body))

    deltas = [
        d
        async for d in stream_chat_text(
            route=ROUTE, openrouter_cfg=OpenRouterConfig(), messages=[], temperature=0.0, max_tokens=8
        )
    ]
    assert deltas == ["Hel", "lo"]


@pytest.mark.asyncio
async def test_stream_chat_text_without_content_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_client(monkeypatch, lambda request: httpx.Response(200, text="data: [DONE]\n\n"))
    with pytest.raises(RuntimeError, match="produced no content"):
        async for _ in stream_chat_text(
            route=ROUTE, openrouter_cfg=OpenRouterConfig(), messages=[], temperature=0.0, max_tokens=8
        ):
            pass
