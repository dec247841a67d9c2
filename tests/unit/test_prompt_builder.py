"""Tests for system prompt + additional instruction composition."""

from __future__ import annotations

import pytest

from server.chat.prompt_builder import build_additional_instructions, get_base_system_prompt, get_system_prompt
from server.models.catalog import ApiConfig, OperationInfo, RateLimits
from server.models.chat_config import ChatConfig
from server.models.intent import ClassifiedIntent, QueryIntent, SchemaContext

API = ApiConfig(
    title="Test GraphQL API",
    description="Overview text.",
    base_url="https://api.test/graphql",
    rate_limits=RateLimits(requests_per_minute=120),
)


def test_schema_query_instructions() -> None:
    classification = ClassifiedIntent(
        intent=QueryIntent.SCHEMA_QUERY, confidence=0.6, reasoning='Contains schema keyword "authenticate"'
    )
    ctx = SchemaContext(context="## Test API Reference\n\n", included_operations=["authSignIn", "orgs"])

    out = build_additional_instructions(classification, ctx)

    assert out.startswith(
        "## Question Classification\n"
        "**Intent:** SCHEMA_QUERY\n"
        "**Confidence:** 60%\n"
        '**Reasoning:** Contains schema keyword "authenticate"\n\n'
        "## Guidance\n"
        "This is a direct API/schema question."
    )
    assert "## Test API Reference" in out
    assert out.endswith("\n## Included Operations\nauthSignIn, orgs\n\n")
    assert "Matched Business Terms" not in out


def test_hybrid_instructions_list_matched_terms() -> None:
    classification = ClassifiedIntent(intent=QueryIntent.HYBRID, confidence=0.86)
    ctx = SchemaContext(context="ctx", included_terms=["pacing"], included_operations=["pacingDataObjectsConnection"])

    out = build_additional_instructions(classification, ctx)

    assert "**Confidence:** 86%" in out
    assert "Translate the business terms to technical GraphQL queries" in out
    assert "\n## Matched Business Terms\npacing\n\n" in out
    assert out.index("Matched Business Terms") < out.index("Included Operations")


def test_general_instructions_have_no_summaries() -> None:
    classification = ClassifiedIntent(intent=QueryIntent.GENERAL, confidence=0.5, reasoning="none")
    out = build_additional_instructions(classification, SchemaContext())
    assert "Answer this question using your general knowledge." in out
    assert "Included Operations" not in out


def test_base_prompt_mentions_api_and_operations() -> None:
    ops = [
        OperationInfo(name="campaigns", type="query", return_type="[Campaign!]!"),
        OperationInfo(name="authSignIn", type="mutation", return_type="AuthPayload!"),
    ]
    prompt = get_base_system_prompt(API, ops)
    assert "You are an AI assistant for the Test GraphQL API." in prompt
    assert "https://api.test/graphql" in prompt
    assert "120 requests per minute" in prompt
    assert "Queries: campaigns" in prompt
    assert "Mutations: authSignIn" in prompt
    assert "## Guidelines" in prompt


def test_system_prompt_appends_instructions() -> None:
    prompt = get_system_prompt(api_config=API, config=ChatConfig(), additional_instructions="## Guidance\nx")
    assert prompt.endswith("\n\n## Guidance\nx")


def test_system_prompt_base_override() -> None:
    cfg = ChatConfig(system_prompt_base="Custom base.")
    assert get_system_prompt(api_config=API, config=cfg) == "Custom base."
    assert get_system_prompt(api_config=API, config=cfg, additional_instructions="extra") == "Custom base.\n\nextra"


@pytest.mark.parametrize("confidence, shown", [(0.625, "63%"), (0.125, "13%"), (0.6, "60%"), (1.0, "100%")])
def test_confidence_percent_rounds_half_up(confidence: float, shown: str) -> None:
    classification = ClassifiedIntent(intent=QueryIntent.GENERAL, confidence=confidence)
    out = build_additional_instructions(classification, SchemaContext())
    assert f"**Confidence:** {shown}\n" in out
