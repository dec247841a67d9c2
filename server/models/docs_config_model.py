"""Pydantic models for docs_config.json and every shape the assistant passes around.

This module is the single source of truth for:
- Glossary data (business terms mapped to GraphQL operations/types)
- The pre-parsed operation catalog (operations, types, API config)
- Classification + assembled context results
- Chat request/response payloads
- Tunable configuration persisted in docs_config.json

The JSON data files use camelCase keys; models accept both spellings on
validation and serialize snake_case. Other modules re-export from here.
"""
from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

# =============================================================================
# GLOSSARY MODELS
# =============================================================================


def _has_words(text: str) -> bool:
    # Imported lazily: the matcher module imports these models.
    from server.chat.glossary_matcher import normalize_text

    return bool(normalize_text(text))


class GlossaryExample(BaseModel):
    """Example showing how a business question maps to a GraphQL query."""

    business_question: str = Field(
        description="Question phrased in business language",
        validation_alias=AliasChoices("business_question", "businessQuestion"),
    )
    technical_query: str = Field(
        description="GraphQL query answering the question",
        validation_alias=AliasChoices("technical_query", "technicalQuery"),
    )
    variables: Any | None = Field(default=None, description="Optional example variables")


class GlossaryEntry(BaseModel):
    """A business term mapped to GraphQL operations and types."""

    model_config = ConfigDict(frozen=True)

    term: str = Field(min_length=1, description="Primary business term (unique per glossary)")
    aliases: list[str] = Field(default_factory=list, description="Alternative phrasings, in match order")
    description: str = Field(default="", description="Human-readable description")
    related_operations: list[str] = Field(
        default_factory=list,
        description="Operation names (not validated against the catalog)",
        validation_alias=AliasChoices("related_operations", "relatedOperations"),
    )
    related_types: list[str] = Field(
        default_factory=list,
        description="Type names (not validated against the catalog)",
        validation_alias=AliasChoices("related_types", "relatedTypes"),
    )
    category: str = Field(default="", description="Grouping category (analytics, campaigns, ...)")
    examples: list[GlossaryExample] = Field(default_factory=list, description="Business-to-technical examples")

    @field_validator("term")
    @classmethod
    def _term_has_words(cls, v: str) -> str:
        if not _has_words(v):
            raise ValueError(f"term {v!r} has no words after normalization")
        return v

    @field_validator("aliases")
    @classmethod
    def _aliases_have_words(cls, v: list[str]) -> list[str]:
        # An empty normalized alias is a substring of every question.
        for alias in v:
            if not _has_words(alias):
                raise ValueError(f"alias {alias!r} has no words after normalization")
        return v


class DomainGlossary(BaseModel):
    """A versioned, read-only glossary snapshot."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(default="1.0.0", description="Glossary version label")
    last_updated: str = Field(
        default="",
        description="Opaque timestamp label (display only)",
        validation_alias=AliasChoices("last_updated", "lastUpdated"),
    )
    terms: list[GlossaryEntry] = Field(default_factory=list, description="Glossary entries")


class GlossaryMatch(BaseModel):
    """One glossary entry matched against a question."""

    entry: GlossaryEntry = Field(description="Matched glossary entry")
    matched_on: Literal["term", "alias"] = Field(description="Whether the term or an alias matched")
    matched_text: str = Field(description="The term or alias text that matched")
    confidence: float = Field(ge=0.0, le=1.0, description="1.0 exact term, 0.95 exact alias, else overlap score")


# =============================================================================
# OPERATION CATALOG MODELS
# =============================================================================


class ArgInfo(BaseModel):
    """Operation argument."""

    name: str
    type: str
    required: bool = False
    description: str | None = None


class FieldInfo(BaseModel):
    """Object / input object field."""

    name: str
    type: str
    description: str | None = None


class TypeDetails(BaseModel):
    """A named schema type, flattened for display."""

    name: str = Field(description="Type name")
    kind: Literal["OBJECT", "ENUM", "SCALAR", "INPUT_OBJECT"] = Field(description="GraphQL type kind")
    fields: list[FieldInfo] | None = Field(default=None, description="Fields (OBJECT / INPUT_OBJECT)")
    enum_values: list[str] | None = Field(
        default=None,
        description="Values (ENUM)",
        validation_alias=AliasChoices("enum_values", "enumValues"),
    )


class OperationInfo(BaseModel):
    """A documented query or mutation with its example payloads."""

    name: str = Field(description="Operation (root field) name")
    type: Literal["query", "mutation"] = Field(description="Root operation type")
    category: str = Field(default="other", description="Documentation category id")
    description: str = Field(default="", description="Curated description")
    args: list[ArgInfo] = Field(default_factory=list, description="Arguments in declaration order")
    return_type: str = Field(
        description="Printed return type (e.g. [Campaign!]!)",
        validation_alias=AliasChoices("return_type", "returnType"),
    )
    return_type_details: TypeDetails | None = Field(
        default=None,
        description="Details of the named return type",
        validation_alias=AliasChoices("return_type_details", "returnTypeDetails"),
    )
    example_query: str = Field(
        default="",
        description="Example GraphQL document",
        validation_alias=AliasChoices("example_query", "exampleQuery"),
    )
    example_variables: Any | None = Field(
        default=None,
        validation_alias=AliasChoices("example_variables", "exampleVariables"),
    )
    example_response: Any | None = Field(
        default=None,
        validation_alias=AliasChoices("example_response", "exampleResponse"),
    )


class RateLimits(BaseModel):
    requests_per_minute: int = Field(
        default=60,
        ge=1,
        validation_alias=AliasChoices("requests_per_minute", "requestsPerMinute"),
    )


class ApiCategory(BaseModel):
    id: str
    name: str = ""
    description: str = ""


class ApiConfig(BaseModel):
    """Top-level API metadata shown in overviews."""

    title: str = Field(default="GraphQL API", description="Display name of the API")
    description: str = Field(default="", description="API overview paragraph")
    base_url: str = Field(
        default="",
        description="GraphQL endpoint URL",
        validation_alias=AliasChoices("base_url", "baseUrl"),
    )
    rate_limits: RateLimits = Field(
        default_factory=RateLimits,
        validation_alias=AliasChoices("rate_limits", "rateLimits"),
    )
    categories: list[ApiCategory] = Field(default_factory=list, description="Documentation categories")


class ApiCatalog(BaseModel):
    """The already-parsed operation catalog (schema + curated metadata)."""

    config: ApiConfig = Field(default_factory=ApiConfig)
    operations: list[OperationInfo] = Field(default_factory=list)
    types: list[TypeDetails] = Field(default_factory=list)


# =============================================================================
# CLASSIFICATION + CONTEXT MODELS
# =============================================================================


class QueryIntent(str, Enum):
    """Which knowledge source(s) should answer a question."""

    SCHEMA_QUERY = "SCHEMA_QUERY"
    DOMAIN_KNOWLEDGE = "DOMAIN_KNOWLEDGE"
    HYBRID = "HYBRID"
    GENERAL = "GENERAL"


class ClassifiedIntent(BaseModel):
    """Result of classifying a single question."""

    intent: QueryIntent = Field(description="Classified intent")
    confidence: float = Field(ge=0.0, le=1.0, description="Heuristic confidence (not calibrated)")
    glossary_matches: list[GlossaryMatch] = Field(
        default_factory=list, description="Matches sorted by confidence, one per term"
    )
    suggested_operations: list[str] = Field(default_factory=list, description="Union of related operations")
    suggested_types: list[str] = Field(default_factory=list, description="Union of related types")
    matched_keywords: list[str] = Field(default_factory=list, description="Schema keyword hits then domain hits")
    reasoning: str = Field(default="", description="Human-readable justification")


class SchemaContextOptions(BaseModel):
    """Options for assembling context; margins are budget safety margins in characters."""

    max_chars: int = Field(default=32000, ge=1, description="Character budget (~4 chars per token)")
    include_examples: bool = Field(default=True, description="Include example queries/variables")
    include_types: bool = Field(default=True, description="Include type details (HYBRID)")
    include_glossary: bool = Field(default=True, description="Include glossary entries (HYBRID)")
    operations_margin: int = Field(default=2000, ge=0, description="Stop adding operations within this margin")
    types_section_margin: int = Field(default=1500, ge=0, description="Skip the types section within this margin")
    types_item_margin: int = Field(default=500, ge=0, description="Stop adding types within this margin")


class SchemaContext(BaseModel):
    """Assembled context plus bookkeeping."""

    context: str = Field(default="", description="Markdown context for the model")
    included_operations: list[str] = Field(default_factory=list)
    included_types: list[str] = Field(default_factory=list)
    included_terms: list[str] = Field(default_factory=list)
    character_count: int = Field(default=0, ge=0, description="Always len(context)")
    was_truncated: bool = Field(default=False, description="A budget check skipped at least one unit")

    @model_validator(mode="after")
    def _sync_character_count(self) -> SchemaContext:
        self.character_count = len(self.context)
        return self


# =============================================================================
# CHAT MODELS
# =============================================================================


class Message(BaseModel):
    """Chat message in a conversation."""

    role: Literal["user", "assistant", "system"] = Field(description="Message role")
    content: str = Field(description="Message content")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When message was created",
    )


class ChatRequest(BaseModel):
    """Request payload for chat endpoints."""

    message: str = Field(description="User's question")
    conversation_id: str | None = Field(
        default=None,
        description="Continue existing conversation",
        validation_alias=AliasChoices("conversation_id", "threadId", "thread_id"),
    )
    stream: bool = Field(default=False, description="Stream the response")
    model_override: str = Field(default="", description="Optional model id (prefix openrouter: to force)")
    include_examples: bool = Field(default=True, description="Include example queries in context")


class ChatDebugInfo(BaseModel):
    """Developer-facing metadata for a single answer."""

    intent: QueryIntent | None = Field(default=None)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    included_operations: list[str] = Field(default_factory=list)
    included_types: list[str] = Field(default_factory=list)
    included_terms: list[str] = Field(default_factory=list)
    context_chars: int = Field(default=0, ge=0)
    context_truncated: bool = Field(default=False)
    provider: str | None = Field(default=None, description="Provider route kind used")
    model: str | None = Field(default=None, description="Model id used")
    provider_response_id: str | None = Field(default=None, description="Provider completion id, when returned")
    llm_used: bool = Field(default=False, description="Whether the model produced the reply")
    llm_error: str | None = Field(default=None, description="Redacted provider error, if any")


class ChatResponse(BaseModel):
    """Response from the non-streaming chat endpoint."""

    run_id: str = Field(description="Unique identifier for this chat run")
    conversation_id: str = Field(description="Conversation identifier")
    message: Message = Field(description="Assistant's response message")
    classification: ClassifiedIntent = Field(description="How the question was routed")
    debug: ChatDebugInfo = Field(default_factory=ChatDebugInfo)


class ClassifyRequest(BaseModel):
    question: str = Field(description="Free-text question to classify")
    include_examples: bool = True
    include_types: bool = True
    include_glossary: bool = True
    max_chars: int | None = Field(default=None, ge=1, description="Override context.max_chars")


class ClassifyResponse(BaseModel):
    classification: ClassifiedIntent
    schema_context: SchemaContext
    additional_instructions: str
    description: str = Field(default="", description="Human-readable intent description")


class GlossarySearchResponse(BaseModel):
    query: str
    threshold: float
    matches: list[GlossaryMatch] = Field(default_factory=list)


class HealthServiceStatus(BaseModel):
    status: Literal["up", "down", "unknown"] = "unknown"
    detail: str | None = None


class HealthStatus(BaseModel):
    ok: bool = True
    status: Literal["healthy", "degraded", "unhealthy"] = "healthy"
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))
    glossary_version: str | None = None
    glossary_terms: int = 0
    catalog_operations: int = 0
    services: dict[str, HealthServiceStatus] = Field(default_factory=dict)


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================


class GlossaryConfig(BaseModel):
    """Where the glossary lives and how loosely it matches."""

    path: str = Field(default="data/domain_glossary.json", description="Glossary JSON path (repo-relative)")
    search_threshold: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Default fuzzy threshold for glossary search"
    )
    classifier_threshold: float = Field(
        default=0.35, ge=0.0, le=1.0, description="Fuzzy threshold used during intent classification"
    )


class CatalogConfig(BaseModel):
    path: str = Field(default="data/api_catalog.json", description="Operation catalog JSON path (repo-relative)")
    common_operations: list[str] = Field(
        default_factory=lambda: ["authSignIn", "campaigns", "campaignsConnection", "orgs"],
        description="Operations detailed in SCHEMA_QUERY context",
    )


class ContextConfig(BaseModel):
    """Character budget for assembled context."""

    max_chars: int = Field(default=32000, ge=1000, le=400000, description="Context budget in characters")
    operations_margin: int = Field(default=2000, ge=0)
    types_section_margin: int = Field(default=1500, ge=0)
    types_item_margin: int = Field(default=500, ge=0)
    include_examples: bool = True
    include_types: bool = True
    include_glossary: bool = True

    def to_options(self, **overrides: Any) -> SchemaContextOptions:
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return SchemaContextOptions.model_validate(data)


class OpenRouterConfig(BaseModel):
    enabled: bool = Field(default=False, description="Route chat through OpenRouter")
    base_url: str = Field(default="https://openrouter.ai/api/v1")
    default_model: str = Field(default="openai/gpt-4o")
    site_name: str = Field(default="GraphQL API Docs", description="Sent as X-Title")


class ChatConfig(BaseModel):
    """Conversational model settings."""

    model: str = Field(default="gpt-4o", description="Default model id")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2048, ge=1, le=32000)
    timeout_s: float = Field(default=120.0, gt=0.0, le=600.0)
    max_history_messages: int = Field(default=20, ge=0, le=200, description="Rolling history sent to the model")
    system_prompt_base: str = Field(default="", description="Override for the base system prompt")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    openrouter: OpenRouterConfig = Field(default_factory=OpenRouterConfig)


class TracingConfig(BaseModel):
    query_log_enabled: bool = Field(default=False, description="Append classifications to a JSONL log")
    query_log_path: str = Field(default="data/logs/chat_queries.jsonl")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


class DocsAssistantConfig(BaseModel):
    """Root configuration model for docs_config.json."""

    glossary: GlossaryConfig = Field(default_factory=GlossaryConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    tracing: TracingConfig = Field(default_factory=TracingConfig)

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "description": "GraphQL docs assistant configuration",
            "title": "Docs Assistant Config",
        },
    )
