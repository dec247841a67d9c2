from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from server.models.catalog import ApiConfig, OperationInfo
from server.models.chat_config import ChatConfig
from server.models.intent import ClassifiedIntent, QueryIntent, SchemaContext

_GUIDANCE: dict[QueryIntent, str] = {
    QueryIntent.SCHEMA_QUERY: (
        "This is a direct API/schema question. Provide accurate GraphQL information.\n"
        "- Use the schema context below to answer\n"
        "- Include working query examples with proper syntax\n"
        "- Explain arguments and return types when relevant\n"
    ),
    QueryIntent.HYBRID: (
        "This is a business question that maps to specific API operations.\n"
        "- Translate the business terms to technical GraphQL queries\n"
        "- Use the glossary mappings provided below\n"
        "- Provide complete, working queries that answer the business question\n"
        "- Explain what the query does in business terms\n"
    ),
    QueryIntent.DOMAIN_KNOWLEDGE: (
        "This is a company/product question. Use the knowledge base primarily.\n"
        "- Search the knowledge base for relevant information\n"
        "- Cite sources when available\n"
        "- Only include API details if directly relevant\n"
    ),
    QueryIntent.GENERAL: (
        "Answer this question using your general knowledge.\n"
        "- If unsure about MediaJel-specific information, search the knowledge base\n"
        "- Be helpful and concise\n"
    ),
}

_GUIDELINES = (
    "## Guidelines\n"
    "- Only generate queries/mutations that exist in the documented operations\n"
    "- Always include proper variable definitions\n"
    "- Format queries with proper indentation\n"
    "- Wrap code in markdown code blocks with `graphql` or `json` language tags\n"
    "- If asked about operations that are not documented, explain that only the curated public subset is covered\n"
    "- When showing queries, also show example variables when relevant\n"
    "- Be concise and practical\n"
)


def _operation_names(operations: list[OperationInfo], kind: str) -> str:
    names = [op.name for op in operations if op.type == kind]
    return ", ".join(names) if names else "(none)"


def get_base_system_prompt(api_config: ApiConfig, operations: list[OperationInfo] | None = None) -> str:
    """Static part of the system prompt: API overview, auth, rate limits, guidelines."""

    ops = list(operations or [])
    prompt = (
        f"You are an AI assistant for the {api_config.title}. "
        "You help developers build valid GraphQL queries and understand the API.\n\n"
        "## API Overview\n"
        f"{api_config.description}\n\n"
        f"**Base URL:** {api_config.base_url}\n\n"
        "## Authentication\n"
        "- Authenticate via the `authSignIn` mutation with username and password\n"
        "- Use the returned `accessToken` in the `Authorization: Bearer <token>` header\n"
        "- Send the organization ID in the `Key` header\n"
        "- Tokens expire after ~1 hour; use `refreshToken` to obtain new tokens\n\n"
        "## Rate Limits\n"
        f"- {api_config.rate_limits.requests_per_minute} requests per minute per organization\n"
        "- Rate limit info returned in X-RateLimit-* headers\n\n"
    )
    if ops:
        prompt += (
            "## Available Operations\n"
            f"Queries: {_operation_names(ops, 'query')}\n"
            f"Mutations: {_operation_names(ops, 'mutation')}\n\n"
        )
    return prompt + _GUIDELINES


def get_system_prompt(
    *,
    api_config: ApiConfig,
    config: ChatConfig,
    additional_instructions: str = "",
    operations: list[OperationInfo] | None = None,
) -> str:
    """Base prompt (or the configured override) followed by per-question instructions."""

    base = str(getattr(config, "system_prompt_base", "") or "").strip()
    if not base:
        base = get_base_system_prompt(api_config, operations).strip()
    extra = (additional_instructions or "").strip()
    return f"{base}\n\n{extra}" if extra else base


def _percent(confidence: float) -> int:
    """Whole percent, halves rounded away from zero."""
    return int(Decimal(confidence * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def build_additional_instructions(classification: ClassifiedIntent, schema_context: SchemaContext) -> str:
    """Classification summary + intent guidance + the built context + inclusion summaries."""

    out = (
        "## Question Classification\n"
        f"**Intent:** {classification.intent.value}\n"
        f"**Confidence:** {_percent(classification.confidence)}%\n"
        f"**Reasoning:** {classification.reasoning}\n\n"
        "## Guidance\n"
        f"{_GUIDANCE[classification.intent]}\n"
    )

    out += schema_context.context

    if classification.intent == QueryIntent.HYBRID and schema_context.included_terms:
        out += f"\n## Matched Business Terms\n{', '.join(schema_context.included_terms)}\n\n"

    if schema_context.included_operations:
        out += f"\n## Included Operations\n{', '.join(schema_context.included_operations)}\n\n"

    return out
