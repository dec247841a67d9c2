"""Operation catalog accessor.

The catalog is produced out-of-band from the GraphQL SDL plus the curated
operations config; this module only loads the resulting JSON document and
offers read-only lookups by name and category.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from server.config import load_config_or_default, resolve_data_path
from server.models.catalog import ApiCatalog, ApiConfig, OperationInfo, TypeDetails

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = "data/api_catalog.json"


class CatalogLoadError(RuntimeError):
    """The catalog resource is missing or does not match the expected shape."""


class OperationCatalog:
    """Read-only view over a validated ApiCatalog."""

    def __init__(self, catalog: ApiCatalog | None = None):
        self._catalog = catalog or ApiCatalog()
        self._operations = {op.name: op for op in self._catalog.operations}
        self._types = {t.name: t for t in self._catalog.types}

    def get_config(self) -> ApiConfig:
        return self._catalog.config

    def list_operations(self) -> list[OperationInfo]:
        return list(self._catalog.operations)

    def get_operation(self, name: str) -> OperationInfo | None:
        return self._operations.get(name)

    def find_operations(self, names: Iterable[str]) -> list[OperationInfo]:
        """Operations whose name matches any of `names` case-insensitively, in catalog order."""
        wanted = {n.lower() for n in names}
        return [op for op in self._catalog.operations if op.name.lower() in wanted]

    def operations_by_category(self, category: str) -> list[OperationInfo]:
        return [op for op in self._catalog.operations if op.category == category]

    def list_types(self) -> list[TypeDetails]:
        return list(self._catalog.types)

    def get_type(self, name: str) -> TypeDetails | None:
        return self._types.get(name)

    def find_types(self, names: Iterable[str]) -> list[TypeDetails]:
        """Types whose name matches any of `names` case-insensitively, in catalog order."""
        wanted = {n.lower() for n in names}
        return [t for t in self._catalog.types if t.name.lower() in wanted]


def load_catalog(path: str | Path = DEFAULT_CATALOG_PATH) -> OperationCatalog:
    resolved = resolve_data_path(str(path))
    try:
        data = json.loads(resolved.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogLoadError(f"Catalog not readable: {resolved}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Catalog is not valid JSON: {resolved}: {e}") from e

    try:
        catalog = ApiCatalog.model_validate(data)
    except ValidationError as e:
        raise CatalogLoadError(f"Catalog has invalid shape: {resolved}: {e}") from e
    return OperationCatalog(catalog)


_catalog: OperationCatalog | None = None


def get_catalog(path: str | Path | None = None) -> OperationCatalog:
    """Get the process-wide catalog; an unreadable catalog degrades to an empty one."""
    global _catalog
    if _catalog is not None:
        return _catalog
    if path is None:
        path = load_config_or_default().catalog.path
    try:
        _catalog = load_catalog(path)
    except CatalogLoadError as e:
        logger.warning("Failed to load operation catalog, using empty catalog: %s", e)
        _catalog = OperationCatalog()
    return _catalog


def reset_catalog_cache() -> None:
    global _catalog
    _catalog = None
