"""Prometheus metrics collection.

Low-cardinality application metrics for the docs assistant, plus helpers to
expose them via a Prometheus scrape endpoint.

- No high-cardinality labels (no question text, no conversation ids)
- Latency histograms are in seconds
- Metric names are stable (dashboards depend on them)
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from server.models.intent import QueryIntent, SchemaContext

# --------------------------------------------------------------------------------------
# Classification + context metrics
# --------------------------------------------------------------------------------------

CLASSIFICATIONS_TOTAL = Counter(
    "docs_assistant_classifications_total",
    "Total number of classified questions, by intent.",
    ["intent"],
)

CONTEXT_CHARS = Histogram(
    "docs_assistant_context_chars",
    "Size of built schema/glossary context in characters.",
    buckets=(0, 250, 500, 1000, 2500, 5000, 10000, 20000, 32000, 64000),
)

CONTEXT_TRUNCATED_TOTAL = Counter(
    "docs_assistant_context_truncated_total",
    "Total number of contexts where the budget skipped at least one unit.",
)

# --------------------------------------------------------------------------------------
# Chat metrics
# --------------------------------------------------------------------------------------

CHAT_REQUESTS_TOTAL = Counter(
    "docs_assistant_chat_requests_total",
    "Total number of /api/chat and /api/chat/stream requests handled.",
)

# Provider failures that were turned into a fallback reply or an SSE error event.
CHAT_ERRORS_TOTAL = Counter(
    "docs_assistant_chat_errors_total",
    "Total number of chat requests where the model call failed.",
)

LLM_LATENCY_SECONDS = Histogram(
    "docs_assistant_llm_latency_seconds",
    "Model call latency in seconds (request to full reply).",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0),
)

# Prometheus client only exports labelled series once the labelset exists;
# pre-create them so a scrape right after startup shows every intent.
for _intent in QueryIntent:
    CLASSIFICATIONS_TOTAL.labels(intent=_intent.value)


def record_classification(intent: QueryIntent, schema_context: SchemaContext) -> None:
    CLASSIFICATIONS_TOTAL.labels(intent=intent.value).inc()
    CONTEXT_CHARS.observe(schema_context.character_count)
    if schema_context.was_truncated:
        CONTEXT_TRUNCATED_TOTAL.inc()


@contextmanager
def timed(hist: Histogram) -> Iterator[None]:
    """Time a code block and observe seconds in the provided histogram."""
    t0 = time.perf_counter()
    try:
        yield
    finally:
        hist.observe(time.perf_counter() - t0)


def render_latest() -> tuple[bytes, str]:
    """Return (body, content_type) for a Prometheus scrape response."""
    body = generate_latest()
    return body, CONTENT_TYPE_LATEST
