from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass

from server.chat.context_builder import build_relevant_context
from server.chat.generation import build_messages, generate_chat_text, stream_chat_text
from server.chat.intent_classifier import classify_intent
from server.chat.prompt_builder import build_additional_instructions, get_system_prompt
from server.chat.provider_router import ProviderRoute, select_provider_route
from server.models.chat import ChatDebugInfo, ChatRequest
from server.models.docs_config_model import DocsAssistantConfig
from server.models.glossary import DomainGlossary
from server.models.intent import ClassifiedIntent, QueryIntent, SchemaContext
from server.observability.metrics import CHAT_ERRORS_TOTAL, LLM_LATENCY_SECONDS, record_classification, timed
from server.observability.query_log import append_classification_log
from server.services.catalog_store import OperationCatalog
from server.services.conversation_store import Conversation

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = (
    "The assistant is temporarily unavailable, so this answer was not generated by a model. "
    "Please try again shortly."
)

_SK_KEY_RE = re.compile(r"sk-[A-Za-z0-9_\-]{10,}")
_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9_.\-]{10,}")


def _safe_error_message(e: Exception, *, max_len: int = 400) -> str:
    # Best-effort redaction; keep debugging useful without leaking secrets.
    msg = str(e) or type(e).__name__
    msg = _SK_KEY_RE.sub("sk-REDACTED", msg)
    msg = _BEARER_RE.sub(r"\1REDACTED", msg)
    msg = msg.replace("\n", " ").replace("\r", " ").strip()
    return msg[: int(max_len)]


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@dataclass(frozen=True, slots=True)
class AssistantTurn:
    """Everything derived from one question before the model is called."""

    classification: ClassifiedIntent
    schema_context: SchemaContext
    additional_instructions: str
    system_prompt: str
    user_content: str


def _user_content(question: str, classification: ClassifiedIntent) -> str:
    if classification.intent in {QueryIntent.HYBRID, QueryIntent.SCHEMA_QUERY} and classification.suggested_operations:
        return f"{question}\n\n[Relevant operations: {', '.join(classification.suggested_operations)}]"
    return question


def prepare_assistant_turn(
    question: str,
    *,
    glossary: DomainGlossary,
    catalog: OperationCatalog,
    config: DocsAssistantConfig,
    include_examples: bool | None = None,
) -> AssistantTurn:
    """Classify the question and build the prompt pieces for the model call. Never raises for string input."""

    classification = classify_intent(question, glossary, threshold=config.glossary.classifier_threshold)
    options = config.context.to_options(include_examples=include_examples)
    schema_context = build_relevant_context(
        classification,
        options,
        catalog=catalog,
        common_operations=config.catalog.common_operations,
    )
    record_classification(classification.intent, schema_context)

    instructions = build_additional_instructions(classification, schema_context)
    system_prompt = get_system_prompt(
        api_config=catalog.get_config(),
        config=config.chat,
        additional_instructions=instructions,
        operations=catalog.list_operations(),
    )
    return AssistantTurn(
        classification=classification,
        schema_context=schema_context,
        additional_instructions=instructions,
        system_prompt=system_prompt,
        user_content=_user_content(question, classification),
    )


def build_debug_info(
    turn: AssistantTurn,
    *,
    route: ProviderRoute | None,
    llm_used: bool,
    llm_error: str | None = None,
    provider_response_id: str | None = None,
) -> ChatDebugInfo:
    ctx = turn.schema_context
    return ChatDebugInfo(
        intent=turn.classification.intent,
        confidence=turn.classification.confidence,
        included_operations=list(ctx.included_operations),
        included_types=list(ctx.included_types),
        included_terms=list(ctx.included_terms),
        context_chars=ctx.character_count,
        context_truncated=ctx.was_truncated,
        provider=route.kind if route is not None else None,
        model=route.model if route is not None else None,
        llm_used=llm_used,
        llm_error=llm_error,
        provider_response_id=provider_response_id,
    )


def format_fallback_answer(turn: AssistantTurn) -> str:
    """Deterministic, model-free reply that still points at the relevant operations."""
    lines = [FALLBACK_MESSAGE]
    ops = turn.schema_context.included_operations or turn.classification.suggested_operations
    if ops:
        lines.append("")
        lines.append(f"Operations related to your question: {', '.join(ops)}")
    return "\n".join(lines)


async def _log_turn(
    config: DocsAssistantConfig, question: str, turn: AssistantTurn, *, conversation_id: str, run_id: str
) -> None:
    # Best-effort: a broken log path must not fail the chat request.
    try:
        await append_classification_log(
            config,
            question=question,
            classification=turn.classification,
            schema_context=turn.schema_context,
            conversation_id=conversation_id,
            run_id=run_id,
        )
    except OSError as e:
        logger.warning("Failed to append query log: %s", e)


async def chat_once(
    *,
    request: ChatRequest,
    config: DocsAssistantConfig,
    glossary: DomainGlossary,
    catalog: OperationCatalog,
    conversation: Conversation,
    run_id: str,
) -> tuple[str, AssistantTurn, ChatDebugInfo]:
    """Non-streaming chat handler.

    Returns (reply text, turn, debug info). Provider failures produce the
    fallback reply with `debug.llm_used == False`.
    """

    turn = prepare_assistant_turn(
        request.message,
        glossary=glossary,
        catalog=catalog,
        config=config,
        include_examples=request.include_examples,
    )
    await _log_turn(config, request.message, turn, conversation_id=conversation.id, run_id=run_id)

    route: ProviderRoute | None = None
    try:
        route = select_provider_route(chat_config=config.chat, model_override=request.model_override)
        messages = build_messages(
            system_prompt=turn.system_prompt,
            history=conversation.recent_messages(config.chat.max_history_messages),
            user_message=turn.user_content,
            max_history_messages=config.chat.max_history_messages,
        )
        with timed(LLM_LATENCY_SECONDS):
            text, provider_id = await generate_chat_text(
                route=route,
                openrouter_cfg=config.chat.openrouter,
                messages=messages,
                temperature=float(config.chat.temperature),
                max_tokens=int(config.chat.max_tokens),
                timeout_s=float(config.chat.timeout_s),
            )
    except RuntimeError as e:
        CHAT_ERRORS_TOTAL.inc()
        error = _safe_error_message(e)
        logger.warning("Model call failed, returning fallback reply: %s", error)
        debug = build_debug_info(turn, route=route, llm_used=False, llm_error=error)
        return format_fallback_answer(turn), turn, debug

    debug = build_debug_info(turn, route=route, llm_used=True, provider_response_id=provider_id)
    return text, turn, debug


async def chat_stream(
    *,
    request: ChatRequest,
    config: DocsAssistantConfig,
    glossary: DomainGlossary,
    catalog: OperationCatalog,
    conversation: Conversation,
    run_id: str,
    started_at_ms: int,
) -> AsyncIterator[str]:
    """Streaming chat handler that yields SSE events (type=text/done/error).

    The API layer stores the user message before calling this, so the
    current message is excluded from the history sent to the model.
    """

    turn = prepare_assistant_turn(
        request.message,
        glossary=glossary,
        catalog=catalog,
        config=config,
        include_examples=request.include_examples,
    )
    await _log_turn(config, request.message, turn, conversation_id=conversation.id, run_id=run_id)

    history = conversation.recent_messages(config.chat.max_history_messages + 1)
    if history and history[-1].role == "user":
        history = history[:-1]

    route: ProviderRoute | None = None
    t0 = time.perf_counter()
    try:
        route = select_provider_route(chat_config=config.chat, model_override=request.model_override)
        messages = build_messages(
            system_prompt=turn.system_prompt,
            history=history,
            user_message=turn.user_content,
            max_history_messages=config.chat.max_history_messages,
        )
        async for delta in stream_chat_text(
            route=route,
            openrouter_cfg=config.chat.openrouter,
            messages=messages,
            temperature=float(config.chat.temperature),
            max_tokens=int(config.chat.max_tokens),
            timeout_s=float(config.chat.timeout_s),
        ):
            yield _sse({"type": "text", "content": delta})
    except RuntimeError as e:
        CHAT_ERRORS_TOTAL.inc()
        error = _safe_error_message(e)
        logger.warning("Model stream failed: %s", error)
        debug = build_debug_info(turn, route=route, llm_used=False, llm_error=error)
        yield _sse(
            {
                "type": "error",
                "message": error,
                "run_id": run_id,
                "conversation_id": conversation.id,
                "debug": debug.model_dump(mode="json"),
            }
        )
        return

    LLM_LATENCY_SECONDS.observe(time.perf_counter() - t0)
    debug = build_debug_info(turn, route=route, llm_used=True)
    yield _sse(
        {
            "type": "done",
            "run_id": run_id,
            "started_at_ms": int(started_at_ms),
            "ended_at_ms": int(time.time() * 1000),
            "conversation_id": conversation.id,
            "classification": turn.classification.model_dump(mode="json"),
            "debug": debug.model_dump(mode="json"),
        }
    )
