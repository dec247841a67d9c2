"""Match free-text questions against the domain glossary.

Per entry, the first hit wins:
1) term contained in the question        -> 1.0
2) first alias contained in the question -> 0.95
3) word overlap with the term            -> score (if >= threshold)
4) word overlap with an alias            -> score * 0.95 (first alias over threshold)

Results are sorted by confidence (stable) and deduplicated by term.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from server.models.glossary import DomainGlossary, GlossaryMatch

TERM_CONFIDENCE = 1.0
ALIAS_CONFIDENCE = 0.95
FUZZY_ALIAS_SCALE = 0.95

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, trim, drop punctuation, collapse whitespace runs."""
    normalized = (text or "").lower().strip()
    normalized = _PUNCTUATION_RE.sub("", normalized)
    return _WHITESPACE_RE.sub(" ", normalized)


def calculate_similarity(text1: str, text2: str) -> float:
    """Word-overlap score between two strings.

    Numerator counts words of `text1` (duplicates included) found in `text2`;
    denominator is the number of distinct words across both. Clamped to 1.0.
    """
    words1 = normalize_text(text1).split(" ")
    words2 = normalize_text(text2).split(" ")
    set1 = set(words1)
    set2 = set(words2)
    if not set1 or not set2:
        return 0.0

    intersection = [w for w in words1 if w in set2]
    union = set1 | set2
    return min(1.0, len(intersection) / len(union))


def contains_term(text: str, term: str) -> bool:
    return normalize_text(term) in normalize_text(text)


def search_glossary(
    question: str,
    glossary: DomainGlossary,
    threshold: float = 0.3,
) -> list[GlossaryMatch]:
    """Return glossary matches for `question`, best first, one per term. Never raises."""

    matches: list[GlossaryMatch] = []
    normalized_question = normalize_text(question)

    for entry in glossary.terms:
        if contains_term(question, entry.term):
            matches.append(
                GlossaryMatch(entry=entry, matched_on="term", matched_text=entry.term, confidence=TERM_CONFIDENCE)
            )
            continue

        alias_hit = next((a for a in entry.aliases if contains_term(question, a)), None)
        if alias_hit is not None:
            matches.append(
                GlossaryMatch(entry=entry, matched_on="alias", matched_text=alias_hit, confidence=ALIAS_CONFIDENCE)
            )
            continue

        term_similarity = calculate_similarity(normalized_question, entry.term)
        if term_similarity >= threshold:
            matches.append(
                GlossaryMatch(entry=entry, matched_on="term", matched_text=entry.term, confidence=term_similarity)
            )
            continue

        for alias in entry.aliases:
            alias_similarity = calculate_similarity(normalized_question, alias)
            if alias_similarity >= threshold:
                matches.append(
                    GlossaryMatch(
                        entry=entry,
                        matched_on="alias",
                        matched_text=alias,
                        confidence=alias_similarity * FUZZY_ALIAS_SCALE,
                    )
                )
                break

    # sorted() is stable, so ties keep glossary order.
    ranked = sorted(matches, key=lambda m: m.confidence, reverse=True)
    seen: set[str] = set()
    deduped: list[GlossaryMatch] = []
    for match in ranked:
        if match.entry.term in seen:
            continue
        seen.add(match.entry.term)
        deduped.append(match)
    return deduped


def _ordered_union(groups: Iterable[Iterable[str]]) -> list[str]:
    out: dict[str, None] = {}
    for group in groups:
        for item in group:
            out.setdefault(item, None)
    return list(out)


def operations_from_matches(matches: list[GlossaryMatch]) -> list[str]:
    """Union of related operations across matches, first-seen order."""
    return _ordered_union(m.entry.related_operations for m in matches)


def types_from_matches(matches: list[GlossaryMatch]) -> list[str]:
    """Union of related types across matches, first-seen order."""
    return _ordered_union(m.entry.related_types for m in matches)
