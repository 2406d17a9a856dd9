"""Pytest fixtures for model gateway tests."""

import os

# Set environment variables BEFORE importing any gateway module
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CONFIG_SOURCE"] = "database"
os.environ["MOCK_PROVIDERS"] = "true"

import pytest
import pytest_asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from model_gateway.main import app
from model_gateway.adapters.providers import MockAdapter, ProviderRegistry
from model_gateway.api.dependencies import get_providers
from model_gateway.db.models import Base
from model_gateway.db.session import get_db, get_session_factory
from model_gateway.domain.models import ProviderType


# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def mock_registry(adapter: MockAdapter | None = None) -> ProviderRegistry:
    """Registre où tous les fournisseurs sont simulés par le même adapter."""
    adapter = adapter or MockAdapter()
    return ProviderRegistry({provider: adapter for provider in ProviderType})


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def mock_provider() -> MockAdapter:
    """Adapter mock utilisé par le client HTTP de test."""
    return MockAdapter()


@pytest_asyncio.fixture(scope="function")
async def client(
    test_session: AsyncSession, mock_provider: MockAdapter
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with overridden database session and mock providers.

    No provider API is ever called.
    """

    async def override_get_db():
        yield test_session

    @asynccontextmanager
    async def shared_session_scope():
        yield test_session
        await test_session.flush()

    def override_get_providers():
        return mock_registry(mock_provider)

    # Apply overrides
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: shared_session_scope
    app.dependency_overrides[get_providers] = override_get_providers

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def use_providers() -> Callable[[MockAdapter], None]:
    """Remplace les fournisseurs du client de test par un autre adapter mock."""

    def _install(adapter: MockAdapter) -> None:
        app.dependency_overrides[get_providers] = lambda: mock_registry(adapter)

    return _install


@pytest.fixture
def sample_model_data():
    """Sample AI model data for tests."""
    return {
        "name": "GPT-4o mini",
        "provider": "openai",
        "description": "Fast general purpose model",
        "settings": {"model_name": "gpt-4o-mini", "temperature": 0.7, "max_tokens": 1024},
        "api_key": "sk-test",
        "confidence_threshold": 0.7,
    }


@pytest.fixture
def sample_rule_data():
    """Sample activation rule data for tests."""
    return {
        "name": "Support questions",
        "priority": 10,
        "query_type": "support",
        "conditions": [{"field": "plan", "operator": "equals", "value": "enterprise"}],
    }


@pytest.fixture
def sample_branding_data():
    """Sample branding preset data for tests."""
    return {
        "name": "Default theme",
        "colors": {"primary": "#2563eb", "background": "#ffffff"},
        "typography": {"font-family": "Inter, sans-serif"},
        "elements": {"border-radius": "8px"},
        "logo_url": "https://cdn.example.com/logo.png",
    }
