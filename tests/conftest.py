"""Pytest fixtures for docs assistant tests."""

import os
from typing import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from server.api.deps import set_catalog, set_config, set_glossary
from server.main import app
from server.models.docs_config_model import DocsAssistantConfig
from server.models.catalog import ApiCatalog, ApiConfig, OperationInfo, RateLimits, TypeDetails
from server.models.glossary import DomainGlossary, GlossaryEntry, GlossaryExample
from server.services.catalog_store import OperationCatalog


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def make_operation(name: str, *, category: str = "other", op_type: str = "query", **kwargs) -> OperationInfo:
    return OperationInfo(
        name=name,
        type=op_type,
        category=category,
        description=kwargs.pop("description", f"{name} operation"),
        return_type=kwargs.pop("return_type", f"{name[:1].upper()}{name[1:]}Result!"),
        **kwargs,
    )


@pytest.fixture
def test_glossary() -> DomainGlossary:
    """Small glossary with no accidental word overlap with the scenario questions."""
    return DomainGlossary(
        version="test-1",
        last_updated="2026-01-01",
        terms=[
            GlossaryEntry(
                term="weekly performance report",
                aliases=["weekly report", "performance report"],
                description="Week-over-week delivery for a campaign order.",
                related_operations=["pacingDataObjectsConnection"],
                related_types=["PacingDataObject"],
                category="analytics",
                examples=[
                    GlossaryExample(
                        business_question="Show me the weekly performance report",
                        technical_query="query { pacingDataObjectsConnection { edges { node { date } } } }",
                        variables={"first": 7},
                    )
                ],
            ),
            GlossaryEntry(
                term="active campaigns",
                aliases=["running campaigns", "live campaigns"],
                description="Campaigns currently delivering.",
                related_operations=["campaignsConnection", "campaigns"],
                related_types=["Campaign", "CampaignStatus"],
                category="campaigns",
            ),
            GlossaryEntry(
                term="return on ad spend",
                aliases=["roas"],
                description="Revenue divided by spend.",
                related_operations=["attributionEventsConnection"],
                related_types=["AttributionEvent"],
                category="analytics",
            ),
        ],
    )


@pytest.fixture
def test_catalog() -> OperationCatalog:
    return OperationCatalog(
        ApiCatalog(
            config=ApiConfig(
                title="Test GraphQL API",
                description="Test API for the docs assistant.",
                base_url="https://api.test/graphql",
                rate_limits=RateLimits(requests_per_minute=60),
            ),
            operations=[
                make_operation("authSignIn", category="auth", op_type="mutation", return_type="AuthPayload!"),
                make_operation("campaigns", category="campaigns", return_type="[Campaign!]!"),
                make_operation("campaignsConnection", category="campaigns", return_type="CampaignConnection!"),
                make_operation("orgs", category="organizations", return_type="[Organization!]!"),
                make_operation(
                    "pacingDataObjectsConnection",
                    category="analytics",
                    return_type="PacingDataObjectConnection!",
                    example_query="query { pacingDataObjectsConnection { totalCount } }",
                ),
            ],
            types=[
                TypeDetails(name="Campaign", kind="OBJECT", fields=[{"name": "id", "type": "ID!"}]),
                TypeDetails(name="CampaignStatus", kind="ENUM", enum_values=["LIVE", "PAUSED"]),
                TypeDetails(name="PacingDataObject", kind="OBJECT", fields=[{"name": "date", "type": "DateTime!"}]),
            ],
        )
    )


@pytest.fixture
def test_config(tmp_path) -> DocsAssistantConfig:
    """Config with every model provider disabled and the query log under tmp_path."""
    cfg = DocsAssistantConfig()
    cfg.chat.openrouter.enabled = False
    cfg.tracing.query_log_path = str(tmp_path / "queries.jsonl")
    return cfg


@pytest.fixture
def no_provider_keys() -> Iterator[None]:
    old_openai = os.environ.pop("OPENAI_API_KEY", None)
    old_openrouter = os.environ.pop("OPENROUTER_API_KEY", None)
    try:
        yield
    finally:
        if old_openai is not None:
            os.environ["OPENAI_API_KEY"] = old_openai
        if old_openrouter is not None:
            os.environ["OPENROUTER_API_KEY"] = old_openrouter


@pytest.fixture
def api_fixtures(test_config, test_glossary, test_catalog) -> Iterator[None]:
    """Inject test config/glossary/catalog into the API dependency holders."""
    set_config(test_config)
    set_glossary(test_glossary)
    set_catalog(test_catalog)
    try:
        yield
    finally:
        set_config(None)
        set_glossary(None)
        set_catalog(None)
