"""Route a question to the knowledge source(s) that should answer it.

Intents:
- SCHEMA_QUERY: direct API/GraphQL questions (schema context)
- DOMAIN_KNOWLEDGE: company/product questions (knowledge base)
- HYBRID: business questions that map to API operations (glossary + schema)
- GENERAL: everything else

Classification is a fixed, ordered rule table evaluated against signals that
are extracted once per question. First matching rule wins. Must stay fast:
no network, no embeddings.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from server.chat.glossary_matcher import operations_from_matches, search_glossary, types_from_matches
from server.models.glossary import DomainGlossary, GlossaryMatch
from server.models.intent import ClassifiedIntent, QueryIntent
from server.services.glossary_store import get_glossary

DEFAULT_CLASSIFIER_THRESHOLD = 0.35

# -----------------------------------------------------------------------------
# Keyword tables (matched as case-insensitive substrings).
# -----------------------------------------------------------------------------

SCHEMA_KEYWORDS: tuple[str, ...] = (
    "graphql",
    "query",
    "mutation",
    "subscription",
    "schema",
    "api",
    "endpoint",
    "field",
    "type",
    "input",
    "argument",
    "args",
    "variables",
    "return type",
    "nullable",
    "connection",
    "edge",
    "node",
    "pageinfo",
    "pagination",
    "cursor",
    "introspection",
    "authenticate",
    "authentication",
    "access token",
    "bearer",
)

DOMAIN_KEYWORDS: tuple[str, ...] = (
    "mediajel",
    "company",
    "team",
    "product",
    "feature",
    "pricing",
    "plan",
    "tier",
    "service",
    "platform",
    "demograph",
    "datajel",
    "buyer",
    "search lights",
    "compliance",
    "cannabis",
    "regulated",
    "about",
    "what is",
    "who is",
    "contact",
    "support",
    "help",
    "how does",
    "why",
    "policy",
    "integration",
    "partner",
    "case study",
    "client",
    "success",
    "attribution",
    "methodology",
)

# -----------------------------------------------------------------------------
# Pattern banks (compiled once).
# -----------------------------------------------------------------------------

API_QUESTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"how\s+(do\s+i|can\s+i|to)\s+(query|fetch|get|list|create|update|delete|mutate)", re.IGNORECASE),
    re.compile(r"what\s+(is|are)\s+the\s+(fields?|types?|arguments?|parameters?)", re.IGNORECASE),
    re.compile(r"show\s+(me\s+)?(the\s+)?(query|mutation|schema|api)", re.IGNORECASE),
    re.compile(r"example\s+(query|mutation|graphql|api)", re.IGNORECASE),
    re.compile(r"\b(filter|sort|order\s*by|paginate|pagination)\b", re.IGNORECASE),
    re.compile(r"\bwhere\s+(clause|input|filter)\b", re.IGNORECASE),
)

BUSINESS_QUESTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"show\s+(me\s+)?(the\s+)?(weekly|monthly|daily|performance|report|data)", re.IGNORECASE),
    re.compile(r"what('s|s|\s+is)\s+(my|our|the)\s+(roas|roi|spend|revenue|budget)", re.IGNORECASE),
    re.compile(r"how\s+(is|are|was|were)\s+(my|our|the)\s+(campaign|ad|order)", re.IGNORECASE),
    re.compile(r"list\s+(all\s+)?(my|our|active|the)\s+(campaigns?|orders?|organizations?)", re.IGNORECASE),
    re.compile(r"get\s+(me\s+)?(the\s+)?(performance|analytics|metrics|data)", re.IGNORECASE),
)


def find_keywords(text: str, keywords: tuple[str, ...]) -> list[str]:
    """Keywords contained in `text` (case-insensitive), in table order."""
    normalized = (text or "").lower().strip()
    return [kw for kw in keywords if kw.lower() in normalized]


def matches_any(text: str, patterns: tuple[re.Pattern[str], ...]) -> bool:
    return any(p.search(text or "") for p in patterns)


# -----------------------------------------------------------------------------
# Signals + rule table
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IntentSignals:
    """Everything the rules look at, extracted once per question."""

    schema_keywords: tuple[str, ...]
    domain_keywords: tuple[str, ...]
    has_api_patterns: bool
    has_business_patterns: bool
    glossary_matches: tuple[GlossaryMatch, ...]

    @property
    def top_match(self) -> GlossaryMatch | None:
        return self.glossary_matches[0] if self.glossary_matches else None

    @property
    def top_confidence(self) -> float:
        top = self.top_match
        return float(top.confidence) if top is not None else 0.0

    @property
    def top_term(self) -> str:
        top = self.top_match
        return top.entry.term if top is not None else ""


@dataclass(frozen=True, slots=True)
class IntentOutcome:
    intent: QueryIntent
    confidence: float
    reasoning: str


@dataclass(frozen=True, slots=True)
class IntentRule:
    name: str
    applies: Callable[[IntentSignals], bool]
    decide: Callable[[IntentSignals], IntentOutcome]


def extract_intent_signals(
    question: str,
    glossary: DomainGlossary,
    *,
    threshold: float = DEFAULT_CLASSIFIER_THRESHOLD,
) -> IntentSignals:
    return IntentSignals(
        schema_keywords=tuple(find_keywords(question, SCHEMA_KEYWORDS)),
        domain_keywords=tuple(find_keywords(question, DOMAIN_KEYWORDS)),
        has_api_patterns=matches_any(question, API_QUESTION_PATTERNS),
        has_business_patterns=matches_any(question, BUSINESS_QUESTION_PATTERNS),
        glossary_matches=tuple(search_glossary(question, glossary, threshold)),
    )


def _quoted(items: tuple[str, ...]) -> str:
    return ", ".join(f'"{item}"' for item in items)


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        name="schema_terms_with_glossary",
        applies=lambda s: bool(s.schema_keywords or s.has_api_patterns) and bool(s.glossary_matches),
        decide=lambda s: IntentOutcome(
            QueryIntent.HYBRID,
            0.85,
            f'Question contains API/schema keywords and matches business term "{s.top_term}" in glossary',
        ),
    ),
    IntentRule(
        name="business_pattern_with_glossary",
        applies=lambda s: s.has_business_patterns and bool(s.glossary_matches),
        decide=lambda s: IntentOutcome(
            QueryIntent.HYBRID,
            0.9,
            f'Question asks about business metrics that map to API operations via "{s.top_term}"',
        ),
    ),
    IntentRule(
        name="strong_glossary_match",
        applies=lambda s: bool(s.glossary_matches) and s.top_confidence >= 0.8,
        decide=lambda s: IntentOutcome(
            QueryIntent.HYBRID,
            s.top_confidence,
            f'Strong match on glossary term "{s.top_term}"',
        ),
    ),
    IntentRule(
        name="moderate_glossary_match",
        applies=lambda s: bool(s.glossary_matches) and s.top_confidence >= 0.5,
        decide=lambda s: IntentOutcome(
            QueryIntent.HYBRID,
            s.top_confidence * 0.9,
            f'Moderate match on glossary term "{s.top_term}"',
        ),
    ),
    IntentRule(
        name="schema_question",
        applies=lambda s: len(s.schema_keywords) >= 2 or s.has_api_patterns,
        decide=lambda s: IntentOutcome(
            QueryIntent.SCHEMA_QUERY,
            0.8,
            "Question is about API/schema structure or syntax"
            + (f" (keywords: {_quoted(s.schema_keywords)})" if s.schema_keywords else ""),
        ),
    ),
    IntentRule(
        name="domain_question",
        applies=lambda s: len(s.domain_keywords) >= 2 or len(s.domain_keywords) > len(s.schema_keywords),
        decide=lambda s: IntentOutcome(
            QueryIntent.DOMAIN_KNOWLEDGE,
            0.75,
            "Question is about company/product information best answered from knowledge base"
            f" (keywords: {_quoted(s.domain_keywords)})",
        ),
    ),
    IntentRule(
        name="single_schema_keyword",
        applies=lambda s: len(s.schema_keywords) == 1,
        decide=lambda s: IntentOutcome(
            QueryIntent.SCHEMA_QUERY,
            0.6,
            f'Contains schema keyword "{s.schema_keywords[0]}"',
        ),
    ),
    IntentRule(
        name="single_domain_keyword",
        applies=lambda s: len(s.domain_keywords) == 1,
        decide=lambda s: IntentOutcome(
            QueryIntent.DOMAIN_KNOWLEDGE,
            0.6,
            f'Contains domain keyword "{s.domain_keywords[0]}"',
        ),
    ),
    IntentRule(
        name="weak_glossary_match",
        applies=lambda s: bool(s.glossary_matches),
        decide=lambda s: IntentOutcome(
            QueryIntent.HYBRID,
            s.top_confidence * 0.7,
            f'Weak match on glossary term "{s.top_term}"',
        ),
    ),
)

DEFAULT_OUTCOME = IntentOutcome(QueryIntent.GENERAL, 0.5, "Question does not match specific patterns")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def decide_intent(signals: IntentSignals) -> tuple[str, IntentOutcome]:
    """Evaluate INTENT_RULES in order; returns (rule name, outcome)."""
    for rule in INTENT_RULES:
        if rule.applies(signals):
            return rule.name, rule.decide(signals)
    return "default", DEFAULT_OUTCOME


def classify_intent(
    question: str,
    glossary: DomainGlossary | None = None,
    *,
    threshold: float = DEFAULT_CLASSIFIER_THRESHOLD,
) -> ClassifiedIntent:
    """Classify a question. Pure for a given glossary snapshot; never raises for string input.

    When `glossary` is omitted the process-wide glossary is loaded.
    """
    if glossary is None:
        glossary = get_glossary()

    signals = extract_intent_signals(question, glossary, threshold=threshold)
    _rule, outcome = decide_intent(signals)
    matches = list(signals.glossary_matches)

    return ClassifiedIntent(
        intent=outcome.intent,
        confidence=_clamp(outcome.confidence),
        glossary_matches=matches,
        suggested_operations=operations_from_matches(matches),
        suggested_types=types_from_matches(matches),
        matched_keywords=[*signals.schema_keywords, *signals.domain_keywords],
        reasoning=outcome.reasoning,
    )


def is_likely_api_question(question: str) -> bool:
    """Cheap pre-filter: any schema keyword, API pattern, or business pattern."""
    return (
        bool(find_keywords(question, SCHEMA_KEYWORDS))
        or matches_any(question, API_QUESTION_PATTERNS)
        or matches_any(question, BUSINESS_QUESTION_PATTERNS)
    )


_INTENT_DESCRIPTIONS: dict[QueryIntent, str] = {
    QueryIntent.SCHEMA_QUERY: "Direct API/GraphQL question - will provide schema context",
    QueryIntent.DOMAIN_KNOWLEDGE: "Company/product question - will search knowledge base",
    QueryIntent.HYBRID: "Business question - will map to API operations with context",
    QueryIntent.GENERAL: "General question - will use standard response",
}


def describe_intent(intent: QueryIntent) -> str:
    return _INTENT_DESCRIPTIONS[intent]
