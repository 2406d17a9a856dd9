"""Tests unitaires pour TryModelUseCase (appel direct d'un modèle)."""

import pytest

from model_gateway.adapters.in_memory import InMemoryModelConfigAdapter
from model_gateway.adapters.providers import MockAdapter, ProviderRegistry
from model_gateway.application.engines.cascade import FallbackCascade
from model_gateway.application.use_cases.try_model import TryModelCommand, TryModelUseCase
from model_gateway.domain.errors import ConfigurationError, EntityNotFound
from model_gateway.domain.models import ProviderType


class SettingsRecorder(MockAdapter):
    """Mock qui garde les paramètres reçus à chaque appel."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.received = []

    async def invoke(self, model, prompt):
        self.received.append((model.settings, prompt))
        return await super().invoke(model, prompt)


def use_case_for(config_repository, client) -> TryModelUseCase:
    registry = ProviderRegistry({provider: client for provider in ProviderType})
    return TryModelUseCase(config_repository, FallbackCascade(registry, timeout_seconds=5, max_depth=0))


@pytest.mark.asyncio
async def test_calls_only_the_given_model(config_repository):
    mock = MockAdapter(confidence=0.9)

    result = await use_case_for(config_repository, mock).execute(
        TryModelCommand(model_id=2, message="Bonjour")
    )

    assert mock.calls == [2]
    assert result.success
    assert result.provider == "anthropic"
    assert result.response == "This is a mock response to: 'Bonjour'"
    assert result.tokens_input == 1
    assert result.tokens_output > 0
    assert result.confidence == 0.9
    assert result.met_threshold
    assert result.error is None
    assert result.response_time >= 0.0


@pytest.mark.asyncio
async def test_failure_does_not_fall_back(config_repository):
    mock = MockAdapter(failing_models={1})

    result = await use_case_for(config_repository, mock).execute(TryModelCommand(model_id=1))

    # Le modèle 1 a un fallback (2), jamais appelé
    assert mock.calls == [1]
    assert not result.success
    assert result.response is None
    assert result.error == "Simulated failure for model-1"
    assert result.error_kind == "server"


@pytest.mark.asyncio
async def test_low_confidence_is_reported_without_fallback(config_repository):
    mock = MockAdapter(confidence=0.2)

    result = await use_case_for(config_repository, mock).execute(TryModelCommand(model_id=1))

    assert mock.calls == [1]
    assert result.success
    assert not result.met_threshold


@pytest.mark.asyncio
async def test_inactive_model_can_be_tried(model_factory):
    repository = InMemoryModelConfigAdapter(models=[model_factory(7, active=False)])
    mock = MockAdapter()

    result = await use_case_for(repository, mock).execute(TryModelCommand(model_id=7))

    assert result.success
    assert mock.calls == [7]


@pytest.mark.asyncio
async def test_overrides_apply_to_the_call_only(config_repository):
    recorder = SettingsRecorder()

    await use_case_for(config_repository, recorder).execute(
        TryModelCommand(model_id=1, temperature=0.2, max_tokens=64, system_prompt="Sois bref")
    )

    call_settings, prompt = recorder.received[0]
    assert (call_settings.temperature, call_settings.max_tokens) == (0.2, 64)
    assert prompt.system_prompt == "Sois bref"
    stored = (await config_repository.load_snapshot()).get_model(1)
    assert (stored.settings.temperature, stored.settings.max_tokens) == (None, None)


@pytest.mark.asyncio
async def test_out_of_range_override_is_refused(config_repository):
    mock = MockAdapter()

    with pytest.raises(ConfigurationError) as exc_info:
        await use_case_for(config_repository, mock).execute(
            TryModelCommand(model_id=2, temperature=1.5)
        )

    assert "temperature must be within [0, 1] for anthropic" in exc_info.value.message
    assert mock.calls == []


@pytest.mark.asyncio
async def test_empty_message_is_refused(config_repository):
    with pytest.raises(ConfigurationError):
        await use_case_for(config_repository, MockAdapter()).execute(
            TryModelCommand(model_id=1, message="  ")
        )


@pytest.mark.asyncio
async def test_unknown_model(config_repository):
    with pytest.raises(EntityNotFound):
        await use_case_for(config_repository, MockAdapter()).execute(TryModelCommand(model_id=42))


@pytest.mark.asyncio
async def test_slow_model_times_out(config_repository):
    registry = ProviderRegistry({p: MockAdapter(latency=1.0) for p in ProviderType})
    use_case = TryModelUseCase(config_repository, FallbackCascade(registry, timeout_seconds=0.05))

    result = await use_case.execute(TryModelCommand(model_id=3))

    assert not result.success
    assert result.error_kind == "cascade_timeout"
