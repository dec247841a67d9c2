"""Tests for the chat handler (classification -> context -> prompt -> model)."""

from __future__ import annotations

import json

import pytest

from server.chat import handler
from server.chat.handler import (
    FALLBACK_MESSAGE,
    _safe_error_message,
    chat_once,
    chat_stream,
    prepare_assistant_turn,
)
from server.models.chat import ChatRequest, Message
from server.models.docs_config_model import DocsAssistantConfig
from server.models.glossary import DomainGlossary
from server.models.intent import QueryIntent
from server.services.catalog_store import OperationCatalog
from server.services.conversation_store import ConversationStore


def _events(chunks: list[str]) -> list[dict]:
    return [json.loads(c[len("data: ") :]) for c in chunks]


def test_prepare_turn_appends_operation_hint(
    test_glossary: DomainGlossary, test_catalog: OperationCatalog, test_config: DocsAssistantConfig
) -> None:
    turn = prepare_assistant_turn(
        "Show me weekly performance report", glossary=test_glossary, catalog=test_catalog, config=test_config
    )
    assert turn.classification.intent == QueryIntent.HYBRID
    assert turn.user_content == (
        "Show me weekly performance report\n\n[Relevant operations: pacingDataObjectsConnection]"
    )
    assert turn.system_prompt.startswith("You are an AI assistant for the Test GraphQL API.")
    assert turn.system_prompt.endswith(turn.additional_instructions.strip())


def test_prepare_turn_general_question_is_unchanged(
    test_glossary: DomainGlossary, test_catalog: OperationCatalog, test_config: DocsAssistantConfig
) -> None:
    turn = prepare_assistant_turn("Hello there", glossary=test_glossary, catalog=test_catalog, config=test_config)
    assert turn.classification.intent == QueryIntent.GENERAL
    assert turn.user_content == "Hello there"
    assert turn.schema_context.context == ""


def test_safe_error_message_redacts_secrets() -> None:
    msg = _safe_error_message(RuntimeError("bad key sk-abcdefghijklmnop\nAuthorization: Bearer abcdefghijklmnop"))
    assert "sk-REDACTED" in msg
    assert "Bearer REDACTED" in msg
    assert "abcdefghijklmnop" not in msg
    assert "\n" not in msg


@pytest.mark.asyncio
async def test_chat_once_falls_back_without_provider(
    no_provider_keys: None,
    test_glossary: DomainGlossary,
    test_catalog: OperationCatalog,
    test_config: DocsAssistantConfig,
) -> None:
    conv = ConversationStore().get_or_create("c1")
    text, turn, debug = await chat_once(
        request=ChatRequest(message="Show me weekly performance report"),
        config=test_config,
        glossary=test_glossary,
        catalog=test_catalog,
        conversation=conv,
        run_id="run-1",
    )

    assert text.startswith(FALLBACK_MESSAGE)
    assert "pacingDataObjectsConnection" in text
    assert debug.provider_response_id is None
    assert debug.llm_used is False
    assert "No chat provider configured" in (debug.llm_error or "")
    assert debug.intent == QueryIntent.HYBRID
    assert turn.classification.intent == QueryIntent.HYBRID


@pytest.mark.asyncio
async def test_chat_once_sends_history_and_hint(
    monkeypatch: pytest.MonkeyPatch,
    test_glossary: DomainGlossary,
    test_catalog: OperationCatalog,
    test_config: DocsAssistantConfig,
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-openai")
    captured: dict = {}

    async def fake_generate(**kwargs):
        captured.update(kwargs)
        return "Use pacingDataObjectsConnection.", "resp_9"

    monkeypatch.setattr(handler, "generate_chat_text", fake_generate)

    store = ConversationStore()
    conv = store.get_or_create("c1")
    store.add_message("c1", Message(role="user", content="earlier"))
    store.add_message("c1", Message(role="assistant", content="reply"))

    text, _turn, debug = await chat_once(
        request=ChatRequest(message="Show me weekly performance report"),
        config=test_config,
        glossary=test_glossary,
        catalog=test_catalog,
        conversation=conv,
        run_id="run-2",
    )

    assert text == "Use pacingDataObjectsConnection."
    assert debug.provider_response_id == "resp_9"
    assert debug.llm_used is True
    assert debug.provider == "cloud_direct"
    assert debug.model == "gpt-4o"
    roles = [m["role"] for m in captured["messages"]]
    assert roles == ["system", "user", "assistant", "user"]
    assert captured["messages"][-1]["content"].endswith("[Relevant operations: pacingDataObjectsConnection]")


@pytest.mark.asyncio
async def test_chat_once_writes_query_log(
    no_provider_keys: None,
    test_glossary: DomainGlossary,
    test_catalog: OperationCatalog,
    test_config: DocsAssistantConfig,
) -> None:
    test_config.tracing.query_log_enabled = True
    conv = ConversationStore().get_or_create("c1")
    await chat_once(
        request=ChatRequest(message="How do I authenticate?"),
        config=test_config,
        glossary=test_glossary,
        catalog=test_catalog,
        conversation=conv,
        run_id="run-3",
    )

    with open(test_config.tracing.query_log_path, encoding="utf-8") as f:
        entries = [json.loads(line) for line in f]
    assert len(entries) == 1
    assert entries[0]["intent"] == "SCHEMA_QUERY"
    assert entries[0]["run_id"] == "run-3"
    assert entries[0]["conversation_id"] == "c1"


@pytest.mark.asyncio
async def test_chat_stream_emits_text_then_done(
    monkeypatch: pytest.MonkeyPatch,
    test_glossary: DomainGlossary,
    test_catalog: OperationCatalog,
    test_config: DocsAssistantConfig,
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-openai")

    async def fake_stream(**kwargs):
        for part in ("Use ", "authSignIn."):
            yield part

    monkeypatch.setattr(handler, "stream_chat_text", fake_stream)

    conv = ConversationStore().get_or_create("c1")
    chunks = [
        c
        async for c in chat_stream(
            request=ChatRequest(message="How do I authenticate?"),
            config=test_config,
            glossary=test_glossary,
            catalog=test_catalog,
            conversation=conv,
            run_id="run-4",
            started_at_ms=0,
        )
    ]
    events = _events(chunks)
    assert [e["type"] for e in events] == ["text", "text", "done"]
    assert "".join(e["content"] for e in events[:2]) == "Use authSignIn."
    assert events[-1]["classification"]["intent"] == "SCHEMA_QUERY"
    assert events[-1]["debug"]["llm_used"] is True


@pytest.mark.asyncio
async def test_chat_stream_error_event_without_provider(
    no_provider_keys: None,
    test_glossary: DomainGlossary,
    test_catalog: OperationCatalog,
    test_config: DocsAssistantConfig,
) -> None:
    conv = ConversationStore().get_or_create("c1")
    chunks = [
        c
        async for c in chat_stream(
            request=ChatRequest(message="How do I authenticate?"),
            config=test_config,
            glossary=test_glossary,
            catalog=test_catalog,
            conversation=conv,
            run_id="run-5",
            started_at_ms=0,
        )
    ]
    events = _events(chunks)
    assert len(events) == 1
    assert events[0]["type"] == "error"
    assert events[0]["debug"]["llm_used"] is False
    assert events[0]["debug"]["intent"] == "SCHEMA_QUERY"
