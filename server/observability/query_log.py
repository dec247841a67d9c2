from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from typing import Any

from server.config import resolve_data_path
from server.models.docs_config_model import DocsAssistantConfig
from server.models.intent import ClassifiedIntent, SchemaContext

QUESTION_MAX_CHARS = 2000


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _truncate(s: str, *, max_chars: int) -> str:
    if max_chars <= 0:
        return ""
    if len(s) <= max_chars:
        return s
    return s[:max_chars]


async def append_query_log(config: DocsAssistantConfig, *, entry: dict[str, Any]) -> None:
    """Append a single JSONL entry to config.tracing.query_log_path."""
    path = resolve_data_path(str(config.tracing.query_log_path or "data/logs/chat_queries.jsonl"))
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = dict(entry)
    payload.setdefault("ts", _now_iso())
    if isinstance(payload.get("question"), str):
        payload["question"] = _truncate(payload["question"], max_chars=QUESTION_MAX_CHARS)

    line = json.dumps(payload, ensure_ascii=False, sort_keys=True)

    def _write() -> None:
        with path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    await asyncio.to_thread(_write)


async def append_classification_log(
    config: DocsAssistantConfig,
    *,
    question: str,
    classification: ClassifiedIntent,
    schema_context: SchemaContext,
    conversation_id: str | None = None,
    run_id: str | None = None,
) -> None:
    """Log one classified question when tracing.query_log_enabled is set; no-op otherwise."""
    if not config.tracing.query_log_enabled:
        return

    entry: dict[str, Any] = {
        "type": "classification",
        "question": question,
        "intent": classification.intent.value,
        "confidence": round(float(classification.confidence), 4),
        "matched_terms": [m.entry.term for m in classification.glossary_matches],
        "included_operations": list(schema_context.included_operations),
        "character_count": int(schema_context.character_count),
        "was_truncated": bool(schema_context.was_truncated),
    }
    if conversation_id:
        entry["conversation_id"] = conversation_id
    if run_id:
        entry["run_id"] = run_id

    await append_query_log(config, entry=entry)
