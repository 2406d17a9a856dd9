"""Tests unitaires hexagonaux pour RouteChatRequestUseCase.

Configuration et journal d'utilisation en mémoire, fournisseurs simulés
par MockAdapter: aucun accès base de données ou réseau.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from model_gateway.adapters.in_memory import InMemoryModelConfigAdapter
from model_gateway.adapters.providers import MockAdapter, ProviderRegistry
from model_gateway.application.engines.cascade import FallbackCascade
from model_gateway.application.use_cases.route_chat_request import (
    RouteChatCommand,
    RouteChatRequestUseCase,
    RouteOutcome,
)
from model_gateway.domain.errors import ConfigurationError, NoModelAvailable
from model_gateway.domain.models import (
    ModelActivationRule,
    ProviderType,
    SelectionReason,
    WidgetSettings,
)
from model_gateway.ports.model_config import ModelConfigSourcePort


class RecordingMockAdapter(MockAdapter):
    """MockAdapter qui conserve les prompts reçus."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.prompts = []

    async def invoke(self, model, prompt):
        self.prompts.append(prompt)
        return await super().invoke(model, prompt)


def build_use_case(config_source, provider: MockAdapter, usage_log=None, timeout=None):
    registry = ProviderRegistry({p: provider for p in ProviderType})
    return RouteChatRequestUseCase(
        config_source=config_source,
        cascade=FallbackCascade(registry, timeout_seconds=timeout, max_depth=5),
        usage_log=usage_log,
    )


def command(**kwargs) -> RouteChatCommand:
    kwargs.setdefault("messages", [{"role": "user", "content": "How do I reset my password?"}])
    return RouteChatCommand(**kwargs)


@pytest_asyncio.fixture
async def support_rule(config_repository):
    return await config_repository.create_rule(
        ModelActivationRule(id=0, model_id=2, name="Support", priority=10, query_type="support")
    )


class TestRouting:
    @pytest.mark.asyncio
    async def test_rule_selects_model_and_logs_usage(self, config_repository, usage_log):
        await config_repository.create_rule(
            ModelActivationRule(id=0, model_id=2, name="Support", priority=10, query_type="support")
        )
        provider = MockAdapter(confidence=0.9)
        use_case = build_use_case(config_repository, provider, usage_log)

        result = await use_case.execute(command(query_type="support", tenant_id=4))

        assert result.outcome == RouteOutcome.SUCCESS
        assert result.selection.reason == SelectionReason.RULE
        assert result.selection.model.id == 2
        assert result.response_text.startswith("This is a mock response")

        entries = await usage_log.list_entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.model_id == 2
        assert entry.success
        assert not entry.fallback_used
        assert entry.confidence_score == 0.9
        assert entry.tenant_id == 4
        assert entry.query_type == "support"
        assert entry.tokens_output > 0

    @pytest.mark.asyncio
    async def test_default_model_when_no_rule_matches(self, config_repository):
        use_case = build_use_case(config_repository, MockAdapter())

        result = await use_case.execute(command(query_type="billing"))

        assert result.selection.reason == SelectionReason.DEFAULT
        assert result.cascade.responding_model_id == 1

    @pytest.mark.asyncio
    async def test_fallback_is_logged_against_responding_model(self, config_repository, usage_log):
        use_case = build_use_case(
            config_repository, MockAdapter(failing_models={1}, confidence=0.8), usage_log
        )

        result = await use_case.execute(command())

        assert result.outcome == RouteOutcome.SUCCESS
        assert result.cascade.responding_model_id == 2
        entry = (await usage_log.list_entries())[0]
        assert entry.model_id == 2
        assert entry.fallback_used

    @pytest.mark.asyncio
    async def test_low_confidence_everywhere(self, config_repository, usage_log):
        use_case = build_use_case(config_repository, MockAdapter(confidence=0.5), usage_log)

        result = await use_case.execute(command())

        assert result.outcome == RouteOutcome.LOW_CONFIDENCE
        assert result.response_text is not None
        assert result.cascade.responding_model_id == 3
        assert (await usage_log.list_entries())[0].success

    @pytest.mark.asyncio
    async def test_provider_failure(self, config_repository, usage_log):
        use_case = build_use_case(
            config_repository, MockAdapter(failing_models={1, 2, 3}), usage_log
        )

        result = await use_case.execute(command())

        assert result.outcome == RouteOutcome.PROVIDER_FAILURE
        assert result.error_code == "PROVIDER_ERROR"
        assert result.response_text is None
        entry = (await usage_log.list_entries())[0]
        assert entry.model_id == 1
        assert not entry.success
        assert "Simulated failure" in entry.error_message

    @pytest.mark.asyncio
    async def test_timeout(self, config_repository):
        use_case = build_use_case(config_repository, MockAdapter(latency=1.0))

        result = await use_case.execute(command(timeout_seconds=0.05))

        assert result.outcome == RouteOutcome.TIMEOUT
        assert result.error_code == "CASCADE_TIMEOUT"

    @pytest.mark.asyncio
    async def test_cancelled(self, config_repository):
        cancel_event = asyncio.Event()
        cancel_event.set()
        use_case = build_use_case(config_repository, MockAdapter())

        result = await use_case.execute(command(), cancel_event=cancel_event)

        assert result.outcome == RouteOutcome.CANCELLED


class TestConfigurationProblems:
    @pytest.mark.asyncio
    async def test_no_model_available(self, model_factory, usage_log):
        repository = InMemoryModelConfigAdapter(models=[model_factory(1)])
        use_case = build_use_case(repository, MockAdapter(), usage_log)

        result = await use_case.execute(command())

        assert result.outcome == RouteOutcome.NO_MODEL_AVAILABLE
        assert result.error_code == "NO_MODEL_AVAILABLE"
        assert await usage_log.list_entries() == []

    @pytest.mark.asyncio
    async def test_unreadable_configuration(self):
        source = AsyncMock(spec=ModelConfigSourcePort)
        source.load_snapshot.side_effect = ConfigurationError("Admin API unavailable: boom")
        use_case = build_use_case(source, MockAdapter())

        result = await use_case.execute(command())

        assert result.outcome == RouteOutcome.CONFIGURATION_ERROR
        assert result.error_message == "Admin API unavailable: boom"

    @pytest.mark.asyncio
    async def test_usage_log_failure_does_not_fail_the_request(self, config_repository):
        usage_log = AsyncMock()
        usage_log.record.side_effect = RuntimeError("database is down")
        use_case = build_use_case(config_repository, MockAdapter(), usage_log)

        result = await use_case.execute(command())

        assert result.outcome == RouteOutcome.SUCCESS
        usage_log.record.assert_awaited_once()


class TestWidgets:
    @pytest.mark.asyncio
    async def test_pinned_model_overrides_rules(self, config_repository, support_rule):
        await config_repository.save_widget_settings(
            WidgetSettings(id=7, ai_model_id=3, system_prompt="Answer briefly.")
        )
        provider = RecordingMockAdapter()
        use_case = build_use_case(config_repository, provider)

        result = await use_case.execute(command(query_type="support", widget_id=7))

        assert result.selection.reason == SelectionReason.PINNED
        assert result.selection.model.id == 3
        assert provider.prompts[0].system_prompt == "Answer briefly."

    @pytest.mark.asyncio
    async def test_inactive_pinned_model_uses_rules(
        self, config_repository, support_rule, model_factory
    ):
        await config_repository.update_model(model_factory(3, active=False))
        await config_repository.save_widget_settings(
            WidgetSettings(id=7, ai_model_id=3, system_prompt="Answer briefly.")
        )
        provider = RecordingMockAdapter()
        use_case = build_use_case(config_repository, provider)

        result = await use_case.execute(command(query_type="support", widget_id=7))

        assert result.selection.reason == SelectionReason.RULE
        assert result.selection.model.id == 2
        assert provider.prompts[0].system_prompt == "Answer briefly."

    @pytest.mark.asyncio
    async def test_request_system_prompt_wins(self, config_repository):
        await config_repository.save_widget_settings(
            WidgetSettings(id=7, system_prompt="Answer briefly.")
        )
        provider = RecordingMockAdapter()
        use_case = build_use_case(config_repository, provider)

        await use_case.execute(command(widget_id=7, system_prompt="Answer in French."))

        assert provider.prompts[0].system_prompt == "Answer in French."

    @pytest.mark.asyncio
    async def test_unknown_widget_is_ignored(self, config_repository):
        use_case = build_use_case(config_repository, MockAdapter())

        result = await use_case.execute(command(widget_id=404))

        assert result.outcome == RouteOutcome.SUCCESS
        assert result.selection.reason == SelectionReason.DEFAULT


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview_does_not_call_providers(self, config_repository, support_rule):
        provider = MockAdapter()
        use_case = build_use_case(config_repository, provider)

        preview = await use_case.preview(command(query_type="support"))

        assert preview.selection.model.id == 2
        assert preview.selection.rule.id == support_rule.id
        assert preview.fallback_chain == [2, 3]
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_preview_raises_when_nothing_matches(self, model_factory):
        repository = InMemoryModelConfigAdapter(models=[model_factory(1)])
        use_case = build_use_case(repository, MockAdapter())

        with pytest.raises(NoModelAvailable):
            await use_case.preview(command())
