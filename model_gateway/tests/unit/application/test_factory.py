"""Tests unitaires pour le wiring selon settings.config_source."""

from contextlib import asynccontextmanager

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from model_gateway.adapters.http import AdminAPIConfigAdapter
from model_gateway.adapters.in_memory import InMemoryModelConfigAdapter, InMemoryUsageLogAdapter
from model_gateway.adapters.postgres import ModelConfigRepositoryAdapter, UsageLogAdapter
from model_gateway.adapters.providers import ProviderRegistry
from model_gateway.application import RouteChatCommand, RouteOutcome, factory
from model_gateway.core.config import settings
from model_gateway.domain.errors import ConfigurationError
from model_gateway.domain.models import (
    AIModel,
    ChatPrompt,
    ModelSettings,
    ProviderReply,
    ProviderType,
)
from model_gateway.ports.provider_client import ProviderClientPort


@pytest.fixture
def config_source(monkeypatch):
    def _set(value: str) -> None:
        monkeypatch.setattr(settings, "config_source", value)
        factory.reset_memory_stores()

    yield _set
    factory.reset_memory_stores()


def test_database_source(config_source):
    config_source("database")

    assert isinstance(factory.create_config_repository(), ModelConfigRepositoryAdapter)
    assert isinstance(factory.create_usage_log(), UsageLogAdapter)


def test_memory_source_is_shared(config_source):
    config_source("memory")

    repository = factory.create_config_repository()
    assert isinstance(repository, InMemoryModelConfigAdapter)
    assert factory.create_config_source() is repository
    assert isinstance(factory.create_usage_log(), InMemoryUsageLogAdapter)


def test_admin_api_source_is_read_only(config_source):
    config_source("admin_api")

    assert isinstance(factory.create_config_source(), AdminAPIConfigAdapter)
    with pytest.raises(ConfigurationError):
        factory.create_manage_models_use_case()


def test_route_chat_use_case_wiring(config_source):
    config_source("memory")

    use_case = factory.create_route_chat_request_use_case(enable_usage_log=False)

    assert use_case.usage_log is None
    assert use_case.cascade.max_depth == settings.max_cascade_depth


class SessionTracker:
    """Fabrique de sessions courtes qui compte les sessions ouvertes."""

    def __init__(self, engine):
        self.maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self.open = 0
        self.opened = 0

    @asynccontextmanager
    async def __call__(self):
        async with self.maker() as session:
            self.open += 1
            self.opened += 1
            try:
                yield session
                await session.commit()
            finally:
                self.open -= 1


class RecordingClient(ProviderClientPort):
    """Client qui note le nombre de sessions ouvertes pendant l'appel."""

    def __init__(self, tracker: SessionTracker):
        self.tracker = tracker
        self.open_during_call: list[int] = []

    @property
    def name(self) -> str:
        return "recording"

    def supports_provider(self, provider: ProviderType) -> bool:
        return True

    async def invoke(self, model: AIModel, prompt: ChatPrompt) -> ProviderReply:
        self.open_during_call.append(self.tracker.open)
        return ProviderReply(text="hello", tokens_in=3, tokens_out=5)


@pytest.mark.asyncio
async def test_route_chat_holds_no_session_during_provider_call(config_source, test_engine):
    config_source("database")
    tracker = SessionTracker(test_engine)
    await ModelConfigRepositoryAdapter(session_factory=tracker).create_model(
        AIModel(
            id=0,
            name="gpt-4o-mini",
            provider=ProviderType.OPENAI,
            settings=ModelSettings(model_name="gpt-4o-mini"),
        ),
        make_default=True,
    )
    client = RecordingClient(tracker)
    use_case = factory.create_route_chat_request_use_case(
        providers=ProviderRegistry({provider: client for provider in ProviderType}),
        enable_usage_log=True,
        session_factory=tracker,
    )

    result = await use_case.execute(
        RouteChatCommand(messages=[{"role": "user", "content": "Bonjour"}])
    )

    assert result.outcome == RouteOutcome.SUCCESS
    assert client.open_during_call == [0]
    assert tracker.open == 0
    entries = await UsageLogAdapter(session_factory=tracker).list_entries()
    assert len(entries) == 1
    assert entries[0].tokens_output == 5
