"""Classification and context models (thin re-export of docs_config_model.py)."""

from .docs_config_model import (  # noqa: F401
    ClassifiedIntent,
    QueryIntent,
    SchemaContext,
    SchemaContextOptions,
)

__all__ = ["ClassifiedIntent", "QueryIntent", "SchemaContext", "SchemaContextOptions"]
