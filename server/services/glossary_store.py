"""Domain glossary loading.

The glossary is a static, versioned JSON document mapping business language
("weekly performance report") to GraphQL operations and types. It is loaded
once per process and shared read-only by every request.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from server.config import load_config_or_default, resolve_data_path
from server.models.glossary import DomainGlossary, GlossaryEntry

logger = logging.getLogger(__name__)

DEFAULT_GLOSSARY_PATH = "data/domain_glossary.json"


class GlossaryLoadError(RuntimeError):
    """The glossary resource is missing or does not match the expected shape."""


def empty_glossary(version: str = "1.0.0") -> DomainGlossary:
    return DomainGlossary(version=version, last_updated="", terms=[])


def load_glossary(path: str | Path = DEFAULT_GLOSSARY_PATH) -> DomainGlossary:
    """Parse and validate the glossary document.

    Raises:
        GlossaryLoadError: file missing, invalid JSON, or wrong shape.
    """
    resolved = resolve_data_path(str(path))
    try:
        raw = resolved.read_text(encoding="utf-8")
    except OSError as e:
        raise GlossaryLoadError(f"Glossary not readable: {resolved}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GlossaryLoadError(f"Glossary is not valid JSON: {resolved}: {e}") from e

    try:
        glossary = DomainGlossary.model_validate(data)
    except ValidationError as e:
        raise GlossaryLoadError(f"Glossary has invalid shape: {resolved}: {e}") from e

    seen: set[str] = set()
    for entry in glossary.terms:
        if entry.term in seen:
            # Search returns at most one match per term.
            logger.warning("Duplicate glossary term %r in %s", entry.term, resolved)
        seen.add(entry.term)

    return glossary


def load_glossary_or_empty(path: str | Path = DEFAULT_GLOSSARY_PATH) -> DomainGlossary:
    """Load the glossary, degrading to an empty one on failure."""
    try:
        return load_glossary(path)
    except GlossaryLoadError as e:
        logger.warning("Failed to load domain glossary, using empty glossary: %s", e)
        return empty_glossary()


def entries_by_category(glossary: DomainGlossary, category: str) -> list[GlossaryEntry]:
    return [entry for entry in glossary.terms if entry.category == category]


def categories(glossary: DomainGlossary) -> list[str]:
    """Distinct categories, sorted ascending."""
    return sorted({entry.category for entry in glossary.terms})


_glossary: DomainGlossary | None = None


def get_glossary(path: str | Path | None = None) -> DomainGlossary:
    """Get the process-wide glossary, loading it on first use.

    A concurrent first load is harmless: both loads parse the same static file
    and the last assignment wins with an identical value.
    """
    global _glossary
    if _glossary is not None:
        return _glossary
    if path is None:
        path = load_config_or_default().glossary.path
    _glossary = load_glossary_or_empty(path)
    return _glossary


def reset_glossary_cache() -> None:
    global _glossary
    _glossary = None
