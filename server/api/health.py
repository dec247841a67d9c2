from fastapi import APIRouter

from server.api.deps import get_catalog, get_glossary
from server.models.docs_config_model import HealthServiceStatus, HealthStatus

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    # Keep this endpoint fast: report loaded data, never call the model provider.
    glossary = get_glossary()
    catalog = get_catalog()
    glossary_up = bool(glossary.terms)
    catalog_up = bool(catalog.list_operations())

    degraded = not (glossary_up and catalog_up)
    return HealthStatus(
        ok=True,
        status="degraded" if degraded else "healthy",
        glossary_version=glossary.version,
        glossary_terms=len(glossary.terms),
        catalog_operations=len(catalog.list_operations()),
        services={
            "api": HealthServiceStatus(status="up"),
            "glossary": HealthServiceStatus(
                status="up" if glossary_up else "down",
                detail=None if glossary_up else "Glossary is empty or failed to load",
            ),
            "catalog": HealthServiceStatus(
                status="up" if catalog_up else "down",
                detail=None if catalog_up else "Operation catalog is empty or failed to load",
            ),
            "llm": HealthServiceStatus(status="unknown"),
        },
    )
