"""Chat API endpoints."""
import json
import time
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException
from starlette.responses import StreamingResponse

from server.api.deps import get_catalog, get_config, get_glossary
from server.chat.handler import chat_once, prepare_assistant_turn
from server.chat.handler import chat_stream as chat_stream_handler
from server.chat.intent_classifier import describe_intent
from server.models.chat import ChatRequest, ChatResponse, Message
from server.models.docs_config_model import ClassifyRequest, ClassifyResponse
from server.observability.metrics import CHAT_REQUESTS_TOTAL
from server.services.conversation_store import get_conversation_store

router = APIRouter(tags=["chat"])


def _require_message(text: str) -> None:
    if not (text or "").strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest) -> ChatResponse:
    """Answer a question. Always 200 for a non-empty message; see debug.llm_used."""
    _require_message(request.message)
    CHAT_REQUESTS_TOTAL.inc()

    store = get_conversation_store()
    conv = store.get_or_create(request.conversation_id)
    run_id = str(uuid.uuid4())

    response_text, turn, debug = await chat_once(
        request=request,
        config=get_config(),
        glossary=get_glossary(),
        catalog=get_catalog(),
        conversation=conv,
        run_id=run_id,
    )

    # Store the exchange
    user_msg = Message(role="user", content=request.message)
    assistant_msg = Message(role="assistant", content=response_text)
    store.add_message(conv.id, user_msg)
    store.add_message(conv.id, assistant_msg)

    return ChatResponse(
        run_id=run_id,
        conversation_id=conv.id,
        message=assistant_msg,
        classification=turn.classification,
        debug=debug,
    )


@router.post("/chat/stream")
async def chat_stream(request: ChatRequest) -> StreamingResponse:
    """Stream a chat response using Server-Sent Events.

    Returns SSE events with:
    - type: "text" - content chunks as they arrive
    - type: "done" - final event with classification + debug
    - type: "error" - if the model call fails
    """
    _require_message(request.message)
    CHAT_REQUESTS_TOTAL.inc()

    store = get_conversation_store()
    conv = store.get_or_create(request.conversation_id)
    run_id = str(uuid.uuid4())
    started_at_ms = int(time.time() * 1000)

    config = get_config()
    glossary = get_glossary()
    catalog = get_catalog()

    # Store the user message before streaming
    store.add_message(conv.id, Message(role="user", content=request.message))

    async def wrapped_stream() -> Any:
        accumulated = ""
        async for sse in chat_stream_handler(
            request=request,
            config=config,
            glossary=glossary,
            catalog=catalog,
            conversation=conv,
            run_id=run_id,
            started_at_ms=started_at_ms,
        ):
            payload = json.loads(sse[len("data: ") :].strip())
            typ = payload.get("type")
            if typ == "text":
                accumulated += str(payload.get("content") or "")
            elif typ == "done":
                # Persist assistant message now that we have full content.
                store.add_message(conv.id, Message(role="assistant", content=accumulated))
            yield sse

    return StreamingResponse(
        wrapped_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/chat/classify", response_model=ClassifyResponse)
async def classify(request: ClassifyRequest) -> ClassifyResponse:
    """Classify a question and show the context the model would receive (no model call)."""
    _require_message(request.question)

    config = get_config()
    tuned = config.model_copy(
        update={
            "context": config.context.model_copy(
                update={
                    "include_examples": request.include_examples,
                    "include_types": request.include_types,
                    "include_glossary": request.include_glossary,
                    **({"max_chars": request.max_chars} if request.max_chars is not None else {}),
                }
            )
        }
    )
    turn = prepare_assistant_turn(
        request.question,
        glossary=get_glossary(),
        catalog=get_catalog(),
        config=tuned,
    )
    return ClassifyResponse(
        classification=turn.classification,
        schema_context=turn.schema_context,
        additional_instructions=turn.additional_instructions,
        description=describe_intent(turn.classification.intent),
    )
