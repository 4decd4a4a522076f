import pytest
import asyncio
import uuid
from types import SimpleNamespace
from httpx import AsyncClient, ASGITransport

from tourquote.main import app
from tourquote.db.session import get_db
from tourquote.api.quotes import get_catalog
from tourquote.core.security import create_access_token, get_current_user
from tourquote.core.config import settings
from tourquote.core.enums import CostBasis, ServiceCategory, UserRole
from tourquote.schemas.catalog import CatalogEntry
from tourquote.schemas.quote import PricingConfig
from tourquote.schemas.service import DetectedService
from tourquote.services.extractor import KeywordServiceExtractor, get_extractor


@pytest.fixture
def airport_pickup():
    return DetectedService(
        day=1,
        description="Airport pickup",
        category=ServiceCategory.TRANSPORTATION,
        location="Cairo",
        cost_basis=CostBasis.PER_GROUP,
        quantity=1,
    )


@pytest.fixture
def cairo_pickup_entry():
    return CatalogEntry(
        id=1,
        service_name="Cairo Airport Pickup",
        category="transport",
        location="Cairo",
        cost_basis=CostBasis.PER_GROUP,
        unit_price=20,
        currency="EUR",
    )


@pytest.fixture
def sample_catalog(cairo_pickup_entry):
    return [
        cairo_pickup_entry,
        CatalogEntry(
            id=2,
            service_name="Egyptologist guide full day",
            category="guide",
            location="Cairo",
            cost_basis=CostBasis.PER_DAY,
            unit_price=45,
        ),
        CatalogEntry(
            id=3,
            service_name="Pyramids of Giza entrance ticket",
            category="entrance fees",
            location="Giza",
            cost_basis=CostBasis.PER_PERSON,
            unit_price=25,
        ),
        CatalogEntry(
            id=4,
            service_name="Lunch at local restaurant",
            category="meals",
            location="Giza",
            cost_basis=CostBasis.PER_PERSON,
            unit_price=15,
        ),
        CatalogEntry(
            id=5,
            service_name="Nile view hotel double room",
            category="hotel",
            location="Cairo",
            cost_basis=CostBasis.PER_NIGHT,
            unit_price=90,
        ),
    ]


@pytest.fixture
def default_config():
    return PricingConfig()


@pytest.fixture
def agent_user():
    return SimpleNamespace(id=1, username="agent_1", role=UserRole.AGENT)


@pytest.fixture
def admin_user():
    return SimpleNamespace(id=2, username="admin_1", role=UserRole.ADMIN)


async def _no_db():
    yield None


@pytest.fixture
async def test_client(sample_catalog, agent_user):
    """ASGI client with the database, catalog and caller stubbed out."""
    app.dependency_overrides[get_db] = _no_db
    app.dependency_overrides[get_catalog] = lambda: sample_catalog
    app.dependency_overrides[get_extractor] = lambda: KeywordServiceExtractor()
    app.dependency_overrides[get_current_user] = lambda: agent_user

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_token():
    return create_access_token("2", UserRole.ADMIN)


@pytest.fixture
def agent_token():
    return create_access_token("1", UserRole.AGENT)


@pytest.fixture
def valid_idempotency_key():
    return str(uuid.uuid4())


@pytest.fixture
def app_settings():
    """Return application settings"""
    return settings


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "matching: marks tests related to catalog matching"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to quotation totals"
    )
    config.addinivalue_line(
        "markers", "catalog: marks tests related to catalog import"
    )
    config.addinivalue_line(
        "markers", "webhooks: marks tests related to webhooks"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to handle asyncio tests
    """
    for item in items:
        if asyncio.iscoroutinefunction(item.function):
            item.add_marker(pytest.mark.asyncio)
