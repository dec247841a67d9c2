"""Glossary models (thin re-export of docs_config_model.py)."""

from .docs_config_model import (  # noqa: F401
    DomainGlossary,
    GlossaryEntry,
    GlossaryExample,
    GlossaryMatch,
)

__all__ = ["DomainGlossary", "GlossaryEntry", "GlossaryExample", "GlossaryMatch"]
