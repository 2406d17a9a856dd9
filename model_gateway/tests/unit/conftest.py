"""
Fixtures for unit tests.

Unit tests run against pure domain objects and in-memory adapters: no
database, no network, no FastAPI application.

IMPORTANT: environment variables are set BEFORE any gateway import so that
pydantic-settings validates a test configuration.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CONFIG_SOURCE", "database")
os.environ.setdefault("MOCK_PROVIDERS", "true")

import pytest

from model_gateway.adapters.in_memory import (
    InMemoryBrandingAdapter,
    InMemoryModelConfigAdapter,
    InMemoryUsageLogAdapter,
)
from model_gateway.domain.models import AIModel, ModelSettings, ProviderType


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend."""
    return "asyncio"


def make_model(model_id: int, **kwargs) -> AIModel:
    """Construit un AIModel de test (openai, actif, seuil 0.7 par défaut)."""
    kwargs.setdefault("name", f"model-{model_id}")
    kwargs.setdefault("provider", ProviderType.OPENAI)
    kwargs.setdefault("settings", ModelSettings(model_name=kwargs["name"]))
    return AIModel(id=model_id, **kwargs)


@pytest.fixture
def model_factory():
    return make_model


@pytest.fixture
def models() -> list[AIModel]:
    """Trois modèles: 1 (défaut) -> 2 -> 3."""
    return [
        make_model(1, is_default=True, fallback_model_id=2),
        make_model(2, provider=ProviderType.ANTHROPIC, fallback_model_id=3),
        make_model(3, provider=ProviderType.GEMINI),
    ]


@pytest.fixture
def config_repository(models) -> InMemoryModelConfigAdapter:
    return InMemoryModelConfigAdapter(models=models)


@pytest.fixture
def usage_log() -> InMemoryUsageLogAdapter:
    return InMemoryUsageLogAdapter()


@pytest.fixture
def branding_repository() -> InMemoryBrandingAdapter:
    return InMemoryBrandingAdapter()
