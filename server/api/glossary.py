"""Glossary browsing + matcher endpoints."""
from fastapi import APIRouter, HTTPException, Query

from server.api.deps import get_config, get_glossary
from server.chat.glossary_matcher import search_glossary
from server.models.docs_config_model import GlossarySearchResponse
from server.models.glossary import DomainGlossary, GlossaryEntry
from server.services.glossary_store import categories, entries_by_category

router = APIRouter(tags=["glossary"])


@router.get("/glossary", response_model=DomainGlossary)
async def get_full_glossary() -> DomainGlossary:
    return get_glossary()


@router.get("/glossary/categories", response_model=list[str])
async def list_categories() -> list[str]:
    return categories(get_glossary())


@router.get("/glossary/categories/{category}", response_model=list[GlossaryEntry])
async def list_category_entries(category: str) -> list[GlossaryEntry]:
    entries = entries_by_category(get_glossary(), category)
    if not entries:
        raise HTTPException(status_code=404, detail=f"Unknown glossary category: {category}")
    return entries


@router.get("/glossary/search", response_model=GlossarySearchResponse)
async def search(
    q: str = Query(..., description="Free-text question or phrase"),
    threshold: float | None = Query(default=None, ge=0.0, le=1.0, description="Fuzzy match threshold"),
) -> GlossarySearchResponse:
    """Run the glossary matcher (defaults to glossary.search_threshold)."""
    t = threshold if threshold is not None else get_config().glossary.search_threshold
    return GlossarySearchResponse(query=q, threshold=t, matches=search_glossary(q, get_glossary(), t))
