"""Assemble bounded schema/glossary context for a classified question.

Budget checks happen before each whole unit (operation, type, section) is
appended; a unit is either emitted entirely or skipped. A context may
therefore exceed `max_chars` by at most the unit that was in progress.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from server.chat.context_formatter import format_glossary_entries, format_operation, format_type
from server.chat.intent_classifier import DEFAULT_CLASSIFIER_THRESHOLD, classify_intent
from server.chat.prompt_builder import build_additional_instructions
from server.models.catalog import OperationInfo
from server.models.glossary import DomainGlossary
from server.models.intent import ClassifiedIntent, QueryIntent, SchemaContext, SchemaContextOptions
from server.services.catalog_store import OperationCatalog

logger = logging.getLogger(__name__)

DEFAULT_COMMON_OPERATIONS: tuple[str, ...] = ("authSignIn", "campaigns", "campaignsConnection", "orgs")


@dataclass
class _ContextAccumulator:
    max_chars: int
    parts: list[str] = field(default_factory=list)
    length: int = 0
    operations: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    terms: list[str] = field(default_factory=list)
    truncated: bool = False

    def add(self, text: str) -> None:
        self.parts.append(text)
        self.length += len(text)

    def has_room(self, margin: int) -> bool:
        """True while the running length is below max_chars - margin; records a skip otherwise."""
        if self.length < self.max_chars - margin:
            return True
        self.truncated = True
        return False

    def build(self) -> SchemaContext:
        context = "".join(self.parts)
        return SchemaContext(
            context=context,
            included_operations=list(self.operations),
            included_types=list(self.types),
            included_terms=list(self.terms),
            character_count=len(context),
            was_truncated=self.truncated,
        )


def _build_schema_query_context(
    catalog: OperationCatalog,
    options: SchemaContextOptions,
    common_operations: tuple[str, ...],
) -> SchemaContext:
    api = catalog.get_config()
    acc = _ContextAccumulator(max_chars=options.max_chars)

    acc.add(
        f"## {api.title} Reference\n\n"
        f"{api.description}\n\n"
        f"**Base URL:** {api.base_url}\n"
        f"**Rate Limit:** {api.rate_limits.requests_per_minute} requests per minute\n\n"
    )
    acc.add(
        "### Authentication\n"
        "1. Authenticate via `authSignIn` mutation with username and password\n"
        "2. Use returned `accessToken` in `Authorization: Bearer <token>` header\n"
        "3. Include organization ID in `Key` header\n\n"
    )

    acc.add("### Available Operations\n\n")
    by_category: dict[str, list[OperationInfo]] = defaultdict(list)
    for op in catalog.list_operations():
        by_category[op.category or "other"].append(op)
    for category, ops in by_category.items():
        acc.add(f"**{category}:** {', '.join(o.name for o in ops)}\n")
        acc.operations.extend(o.name for o in ops)
    acc.add("\n")

    acc.add("### Common Operations\n\n")
    for name in common_operations:
        op = catalog.get_operation(name)
        if op is None:
            logger.debug("Common operation %r not in catalog", name)
            continue
        if not acc.has_room(options.operations_margin):
            break
        acc.add(format_operation(op, include_example=options.include_examples))

    return acc.build()


def _build_hybrid_context(
    classification: ClassifiedIntent,
    catalog: OperationCatalog,
    options: SchemaContextOptions,
) -> SchemaContext:
    acc = _ContextAccumulator(max_chars=options.max_chars)
    acc.add("## Context for Your Question\n\n")

    if options.include_glossary and classification.glossary_matches:
        entries = [m.entry for m in classification.glossary_matches]
        acc.add(format_glossary_entries(entries))
        acc.terms.extend(e.term for e in entries)

    if classification.suggested_operations:
        acc.add("## Relevant GraphQL Operations\n\n")
        ops = catalog.find_operations(classification.suggested_operations)
        found = {op.name.lower() for op in ops}
        for name in classification.suggested_operations:
            if name.lower() not in found:
                logger.debug("Suggested operation %r not in catalog", name)
        for op in ops:
            if not acc.has_room(options.operations_margin):
                break
            acc.add(format_operation(op, include_example=options.include_examples))
            acc.operations.append(op.name)

    if options.include_types and classification.suggested_types:
        types = catalog.find_types(classification.suggested_types)
        if types and acc.has_room(options.types_section_margin):
            acc.add("## Related Types\n\n")
            for type_details in types:
                if not acc.has_room(options.types_item_margin):
                    break
                acc.add(format_type(type_details))
                acc.types.append(type_details.name)

    return acc.build()


def _build_domain_knowledge_context(catalog: OperationCatalog) -> SchemaContext:
    api = catalog.get_config()
    context = (
        "## API Reference (if needed)\n\n"
        f"The {api.title} is available at {api.base_url}.\n"
        "If the user asks follow-up questions about the API, "
        "you can provide GraphQL query examples.\n\n"
    )
    return SchemaContext(context=context, character_count=len(context))


def build_relevant_context(
    classification: ClassifiedIntent,
    options: SchemaContextOptions | None = None,
    *,
    catalog: OperationCatalog,
    common_operations: tuple[str, ...] | list[str] = DEFAULT_COMMON_OPERATIONS,
) -> SchemaContext:
    """Build context for the classified intent. Never raises; unknown names are skipped."""

    options = options or SchemaContextOptions()

    if classification.intent == QueryIntent.SCHEMA_QUERY:
        return _build_schema_query_context(catalog, options, tuple(common_operations))
    if classification.intent == QueryIntent.HYBRID:
        return _build_hybrid_context(classification, catalog, options)
    if classification.intent == QueryIntent.DOMAIN_KNOWLEDGE:
        return _build_domain_knowledge_context(catalog)
    return SchemaContext()


def get_context_for_question(
    question: str,
    *,
    glossary: DomainGlossary,
    catalog: OperationCatalog,
    options: SchemaContextOptions | None = None,
    threshold: float = DEFAULT_CLASSIFIER_THRESHOLD,
) -> tuple[ClassifiedIntent, SchemaContext, str]:
    """Classify, build context, and compose the additional instructions in one call."""

    classification = classify_intent(question, glossary, threshold=threshold)
    schema_context = build_relevant_context(classification, options, catalog=catalog)
    return classification, schema_context, build_additional_instructions(classification, schema_context)
