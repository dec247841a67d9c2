"""API tests for Prometheus metrics exposure."""

from __future__ import annotations

import re

import pytest
from httpx import AsyncClient


def _metric_value(text: str, name: str) -> float:
    """Extract a single Prometheus metric sample value from /metrics text.

    Returns 0.0 if the metric isn't present yet.
    """
    m = re.search(rf"^{re.escape(name)}\s+([0-9eE+.-]+)$", text, flags=re.MULTILINE)
    if not m:
        return 0.0
    return float(m.group(1))


@pytest.mark.asyncio
async def test_metrics_increment_on_classify(client: AsyncClient, api_fixtures: None) -> None:
    """Classifying a question should bump the per-intent counter and the context histogram."""
    r0 = await client.get("/metrics")
    assert r0.status_code == 200
    series = 'docs_assistant_classifications_total{intent="HYBRID"}'
    before = _metric_value(r0.text, series)
    before_count = _metric_value(r0.text, "docs_assistant_context_chars_count")

    r = await client.post("/api/chat/classify", json={"question": "Show me weekly performance report"})
    assert r.status_code == 200

    r1 = await client.get("/metrics")
    assert _metric_value(r1.text, series) == pytest.approx(before + 1.0)
    assert _metric_value(r1.text, "docs_assistant_context_chars_count") == pytest.approx(before_count + 1.0)


@pytest.mark.asyncio
async def test_metrics_count_fallback_errors(client: AsyncClient, api_fixtures: None, no_provider_keys: None) -> None:
    r0 = await client.get("/metrics")
    before_reqs = _metric_value(r0.text, "docs_assistant_chat_requests_total")
    before_errs = _metric_value(r0.text, "docs_assistant_chat_errors_total")

    r = await client.post("/api/chat", json={"message": "How do I authenticate?"})
    assert r.status_code == 200

    r1 = await client.get("/metrics")
    assert _metric_value(r1.text, "docs_assistant_chat_requests_total") == pytest.approx(before_reqs + 1.0)
    assert _metric_value(r1.text, "docs_assistant_chat_errors_total") == pytest.approx(before_errs + 1.0)


@pytest.mark.asyncio
async def test_metrics_exports_expected_series(client: AsyncClient) -> None:
    r = await client.get("/metrics")
    assert r.status_code == 200
    text = r.text

    for intent in ("SCHEMA_QUERY", "DOMAIN_KNOWLEDGE", "HYBRID", "GENERAL"):
        assert f'docs_assistant_classifications_total{{intent="{intent}"}}' in text
    assert "docs_assistant_context_chars_bucket" in text
    assert "docs_assistant_context_truncated_total" in text
    assert "docs_assistant_llm_latency_seconds_bucket" in text
