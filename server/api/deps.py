"""Dependency holders shared by the API routers (can be overridden for testing)."""

from server.config import load_config_or_default
from server.models.docs_config_model import DocsAssistantConfig
from server.models.glossary import DomainGlossary
from server.services.catalog_store import OperationCatalog
from server.services.catalog_store import get_catalog as load_shared_catalog
from server.services.glossary_store import get_glossary as load_shared_glossary

_config: DocsAssistantConfig | None = None
_glossary: DomainGlossary | None = None
_catalog: OperationCatalog | None = None


def get_config() -> DocsAssistantConfig:
    """Get the current config. Override with set_config() for testing."""
    if _config is not None:
        return _config
    return load_config_or_default()


def get_glossary() -> DomainGlossary:
    """Get the glossary. Override with set_glossary() for testing."""
    if _glossary is not None:
        return _glossary
    return load_shared_glossary(get_config().glossary.path)


def get_catalog() -> OperationCatalog:
    """Get the operation catalog. Override with set_catalog() for testing."""
    if _catalog is not None:
        return _catalog
    return load_shared_catalog(get_config().catalog.path)


def set_config(config: DocsAssistantConfig | None) -> None:
    """Set the config for dependency injection (primarily for testing)."""
    global _config
    _config = config


def set_glossary(glossary: DomainGlossary | None) -> None:
    """Set the glossary for dependency injection (primarily for testing)."""
    global _glossary
    _glossary = glossary


def set_catalog(catalog: OperationCatalog | None) -> None:
    """Set the catalog for dependency injection (primarily for testing)."""
    global _catalog
    _catalog = catalog
