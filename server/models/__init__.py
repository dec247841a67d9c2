"""Server models - all types exported from docs_config_model.py.

Import domain models and config types from this module.
"""
from server.models.docs_config_model import (
    # Glossary models
    DomainGlossary,
    GlossaryEntry,
    GlossaryExample,
    GlossaryMatch,
    # Catalog models
    ApiCatalog,
    ApiCategory,
    ApiConfig,
    ArgInfo,
    FieldInfo,
    OperationInfo,
    RateLimits,
    TypeDetails,
    # Classification + context
    ClassifiedIntent,
    QueryIntent,
    SchemaContext,
    SchemaContextOptions,
    # Chat models
    ChatDebugInfo,
    ChatRequest,
    ChatResponse,
    ClassifyRequest,
    ClassifyResponse,
    Message,
    # Config types
    CatalogConfig,
    ChatConfig,
    ContextConfig,
    DocsAssistantConfig,
    GlossaryConfig,
    OpenRouterConfig,
    TracingConfig,
)

__all__ = [
    # Glossary models
    "DomainGlossary",
    "GlossaryEntry",
    "GlossaryExample",
    "GlossaryMatch",
    # Catalog models
    "ApiCatalog",
    "ApiCategory",
    "ApiConfig",
    "ArgInfo",
    "FieldInfo",
    "OperationInfo",
    "RateLimits",
    "TypeDetails",
    # Classification + context
    "ClassifiedIntent",
    "QueryIntent",
    "SchemaContext",
    "SchemaContextOptions",
    # Chat models
    "ChatDebugInfo",
    "ChatRequest",
    "ChatResponse",
    "ClassifyRequest",
    "ClassifyResponse",
    "Message",
    # Config types
    "CatalogConfig",
    "ChatConfig",
    "ContextConfig",
    "DocsAssistantConfig",
    "GlossaryConfig",
    "OpenRouterConfig",
    "TracingConfig",
]
