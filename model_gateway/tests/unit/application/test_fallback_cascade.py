"""Tests unitaires pour la cascade de fallback (invokeWithFallback).

Les fournisseurs sont remplacés par un client scripté: aucune
infrastructure réseau n'est utilisée.
"""

import asyncio

import pytest

from model_gateway.adapters.providers import MockAdapter, ProviderRegistry
from model_gateway.application.engines.cascade import FallbackCascade, better_reply, meets_threshold
from model_gateway.domain.errors import CascadeTimeout, ProviderError, ProviderErrorKind
from model_gateway.domain.models import (
    AIModel,
    ChatMessage,
    ChatPrompt,
    ProviderReply,
    ProviderType,
)
from model_gateway.ports.provider_client import ProviderClientPort


PROMPT = ChatPrompt(messages=[ChatMessage(role="user", content="Hello")])


class ScriptedClient(ProviderClientPort):
    """Client dont le comportement est fixé par modèle.

    Une action est une ProviderReply, une exception à lever, ou une
    coroutine function appelée à chaque invocation.
    """

    def __init__(self, script: dict | None = None):
        self.script = script or {}
        self.calls: list[int] = []

    @property
    def name(self) -> str:
        return "scripted"

    def supports_provider(self, provider: ProviderType) -> bool:
        return True

    async def invoke(self, model: AIModel, prompt: ChatPrompt) -> ProviderReply:
        self.calls.append(model.id)
        action = self.script.get(model.id, ProviderReply(text=f"reply from {model.id}"))
        if isinstance(action, Exception):
            raise action
        if callable(action):
            return await action()
        return action


def registry_for(client: ProviderClientPort) -> ProviderRegistry:
    return ProviderRegistry({provider: client for provider in ProviderType})


def failure(provider: str = "openai") -> ProviderError:
    return ProviderError(provider, "Internal error", kind=ProviderErrorKind.SERVER, status_code=500)


async def slow_reply() -> ProviderReply:
    await asyncio.sleep(5)
    return ProviderReply(text="too late")


class TestMeetsThreshold:
    def test_without_confidence(self):
        assert meets_threshold(ProviderReply(text="x"), 0.9)

    def test_with_confidence(self):
        assert meets_threshold(ProviderReply(text="x", confidence=0.7), 0.7)
        assert not meets_threshold(ProviderReply(text="x", confidence=0.69), 0.7)


class TestBetterReply:
    def test_first_reply_is_kept(self):
        assert better_reply(ProviderReply(text="x", confidence=0.1), None)

    def test_strictly_higher_confidence_wins(self):
        best = ProviderReply(text="a", confidence=0.5)
        assert better_reply(ProviderReply(text="b", confidence=0.6), best)
        assert not better_reply(ProviderReply(text="b", confidence=0.5), best)

    def test_missing_confidence_counts_as_full(self):
        assert better_reply(ProviderReply(text="b"), ProviderReply(text="a", confidence=0.9))
        assert not better_reply(ProviderReply(text="b", confidence=0.9), ProviderReply(text="a"))


class TestConfidenceGating:
    @pytest.mark.asyncio
    async def test_confident_reply_is_returned(self, models):
        client = ScriptedClient({1: ProviderReply(text="ok", confidence=0.8)})
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.succeeded
        assert result.responding_model_id == 1
        assert result.reply.text == "ok"
        assert not result.used_fallback
        assert client.calls == [1]

    @pytest.mark.asyncio
    async def test_low_confidence_moves_to_fallback(self, models):
        client = ScriptedClient(
            {
                1: ProviderReply(text="unsure", confidence=0.5),
                2: ProviderReply(text="sure", confidence=0.9),
            }
        )
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.responding_model_id == 2
        assert result.reply.text == "sure"
        assert result.used_fallback
        assert not result.below_threshold
        assert [a.met_threshold for a in result.attempts] == [False, True]

    @pytest.mark.asyncio
    async def test_reply_without_confidence_meets_threshold(self, models):
        client = ScriptedClient()
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.responding_model_id == 1
        assert result.attempts[0].confidence is None
        assert result.attempts[0].met_threshold

    @pytest.mark.asyncio
    async def test_exhausted_chain_returns_most_confident_success(self, models):
        client = ScriptedClient(
            {
                1: ProviderReply(text="first", confidence=0.4),
                2: failure("anthropic"),
                3: ProviderReply(text="third", confidence=0.3),
            }
        )
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.succeeded
        assert result.below_threshold
        assert result.responding_model_id == 1
        assert result.reply.text == "first"
        assert result.responding_attempt().confidence == 0.4
        assert len(result.attempts) == 3

    @pytest.mark.asyncio
    async def test_equal_confidence_keeps_earlier_reply(self, models):
        client = ScriptedClient(
            {
                1: ProviderReply(text="first", confidence=0.4),
                2: ProviderReply(text="second", confidence=0.4),
                3: ProviderReply(text="third", confidence=0.1),
            }
        )
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.responding_model_id == 1
        assert result.reply.text == "first"


class TestProviderFailures:
    @pytest.mark.asyncio
    async def test_failure_moves_to_fallback(self, models):
        client = ScriptedClient({1: failure()})
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.responding_model_id == 2
        first = result.attempts[0]
        assert not first.success
        assert first.error_kind == "server"
        assert "Internal error" in first.error

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_wrapped(self, models):
        client = ScriptedClient({1: RuntimeError("socket closed")})
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.responding_model_id == 2
        assert result.attempts[0].error_kind == "unknown"

    @pytest.mark.asyncio
    async def test_every_model_fails(self, models):
        client = ScriptedClient({1: failure(), 2: failure("anthropic"), 3: failure("gemini")})
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert not result.succeeded
        assert isinstance(result.error, ProviderError)
        assert result.error.provider == "gemini"
        assert client.calls == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_provider_without_client_counts_as_failure(self, models):
        client = ScriptedClient({1: failure()})
        registry = ProviderRegistry(
            {ProviderType.OPENAI: client, ProviderType.GEMINI: client}
        )
        cascade = FallbackCascade(registry)

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert [a.model_id for a in result.attempts] == [1, 2, 3]
        assert result.attempts[1].error_kind == "configuration_error"
        assert result.responding_model_id == 3

    @pytest.mark.asyncio
    async def test_mock_adapter_failing_models(self, models):
        mock = MockAdapter(failing_models={1, 2}, confidence=0.95)
        cascade = FallbackCascade(registry_for(mock))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.responding_model_id == 3
        assert mock.calls == [1, 2, 3]


class TestChainLimits:
    @pytest.mark.asyncio
    async def test_missing_fallback_is_a_configuration_error(self, model_factory):
        models = [model_factory(1, fallback_model_id=99)]
        client = ScriptedClient({1: failure()})
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert not result.succeeded
        assert result.configuration_errors == ["Model 1 falls back to missing model 99"]
        assert isinstance(result.error, ProviderError)

    @pytest.mark.asyncio
    async def test_inactive_fallback_is_not_called(self, model_factory):
        models = [model_factory(1, fallback_model_id=2), model_factory(2, active=False)]
        client = ScriptedClient({1: failure()})
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert client.calls == [1]
        assert result.configuration_errors == ["Model 1 falls back to inactive model 2"]

    @pytest.mark.asyncio
    async def test_cycle_stops_the_cascade(self, model_factory):
        models = [
            model_factory(1, fallback_model_id=2),
            model_factory(2, fallback_model_id=3),
            model_factory(3, fallback_model_id=1),
        ]
        client = ScriptedClient({1: failure(), 2: failure(), 3: failure()})
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert client.calls == [1, 2, 3]
        assert result.cycle_detected
        assert not result.succeeded

    @pytest.mark.asyncio
    async def test_cycle_returns_most_confident_reply(self, model_factory):
        models = [
            model_factory(1, fallback_model_id=2, confidence_threshold=0.8),
            model_factory(2, fallback_model_id=1, confidence_threshold=0.8),
        ]
        client = ScriptedClient(
            {
                1: ProviderReply(text="good", confidence=0.75),
                2: ProviderReply(text="bad", confidence=0.10),
            }
        )
        cascade = FallbackCascade(registry_for(client))

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert client.calls == [1, 2]
        assert result.cycle_detected
        assert result.below_threshold
        assert result.responding_model_id == 1
        assert result.reply.text == "good"

    @pytest.mark.asyncio
    async def test_max_depth(self, model_factory):
        models = [model_factory(i, fallback_model_id=i + 1) for i in range(1, 10)]
        client = ScriptedClient({i: failure() for i in range(1, 10)})
        cascade = FallbackCascade(registry_for(client), max_depth=5)

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        # selected model + 5 fallbacks
        assert client.calls == [1, 2, 3, 4, 5, 6]
        assert not result.succeeded

    @pytest.mark.asyncio
    async def test_zero_depth_disables_fallback(self, models):
        client = ScriptedClient({1: failure()})
        cascade = FallbackCascade(registry_for(client), max_depth=0)

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert client.calls == [1]


class TestTimeoutAndCancellation:
    @pytest.mark.asyncio
    async def test_budget_exhausted_without_reply(self, models):
        client = ScriptedClient({1: slow_reply})
        cascade = FallbackCascade(registry_for(client), timeout_seconds=0.05)

        result = await cascade.invoke_with_fallback(models[0], PROMPT, models)

        assert result.timed_out
        assert isinstance(result.error, CascadeTimeout)
        assert result.attempts[0].error_kind == "cascade_timeout"
        assert client.calls == [1]

    @pytest.mark.asyncio
    async def test_budget_exhausted_returns_most_confident_success(self, models):
        client = ScriptedClient(
            {
                1: ProviderReply(text="unsure", confidence=0.6),
                2: ProviderReply(text="guess", confidence=0.2),
                3: slow_reply,
            }
        )
        cascade = FallbackCascade(registry_for(client), timeout_seconds=30)

        result = await cascade.invoke_with_fallback(
            models[0], PROMPT, models, timeout_seconds=0.05
        )

        assert result.timed_out
        assert result.below_threshold
        assert client.calls == [1, 2, 3]
        assert result.responding_model_id == 1
        assert result.reply.text == "unsure"

    @pytest.mark.asyncio
    async def test_cancelled_before_first_attempt(self, models):
        client = ScriptedClient()
        cancel_event = asyncio.Event()
        cancel_event.set()

        result = await FallbackCascade(registry_for(client)).invoke_with_fallback(
            models[0], PROMPT, models, cancel_event=cancel_event
        )

        assert result.cancelled
        assert result.attempts == []
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_cancellation_stops_before_next_attempt(self, models):
        cancel_event = asyncio.Event()

        async def fail_and_cancel():
            cancel_event.set()
            raise failure()

        client = ScriptedClient({1: fail_and_cancel})
        result = await FallbackCascade(registry_for(client)).invoke_with_fallback(
            models[0], PROMPT, models, cancel_event=cancel_event
        )

        assert result.cancelled
        assert client.calls == [1]
        assert not result.succeeded
