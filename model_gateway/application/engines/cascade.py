"""
Fallback Cascade - invokeWithFallback

Features:
- Sequential invocation along the fallback_model_id chain
- Confidence gating against each model's confidence_threshold
- Visited-set cycle detection and a maximum number of fallback hops
- Wall-clock budget for the whole cascade (asyncio.wait_for)
- Cooperative cancellation through an asyncio.Event checked between attempts

Usage:
    cascade = FallbackCascade(registry, timeout_seconds=30, max_depth=5)
    result = await cascade.invoke_with_fallback(selected, prompt, snapshot.models)
"""

import asyncio
import logging
import time
from typing import Iterable, Optional, Protocol

from model_gateway.domain.errors import (
    CascadeTimeout,
    ConfigurationError,
    ModelGatewayError,
    ProviderError,
    ProviderErrorKind,
)
from model_gateway.domain.fallback import FallbackGraph, HopStatus
from model_gateway.domain.models import (
    AIModel,
    AttemptRecord,
    CascadeResult,
    ChatPrompt,
    ProviderReply,
    ProviderType,
)
from model_gateway.ports.provider_client import ProviderClientPort

logger = logging.getLogger(__name__)


class ProviderResolver(Protocol):
    def get(self, provider: ProviderType) -> Optional[ProviderClientPort]: ...


def meets_threshold(reply: ProviderReply, threshold: float) -> bool:
    """Une réponse sans score de confiance satisfait le seuil."""
    if reply.confidence is None:
        return True
    return reply.confidence >= threshold


def better_reply(candidate: ProviderReply, best: Optional[ProviderReply]) -> bool:
    """Vrai si candidate remplace best (confiance strictement supérieure).

    Une confiance absente vaut 1.0; à égalité la réponse antérieure est gardée.
    """
    if best is None:
        return True
    candidate_score = 1.0 if candidate.confidence is None else candidate.confidence
    best_score = 1.0 if best.confidence is None else best.confidence
    return candidate_score > best_score


class FallbackCascade:
    """
    Invokes a selected model and walks its fallback chain.

    Attempts run one after another, never twice on the same model. The
    result always carries the full attempt list; provider exceptions never
    escape (asyncio.CancelledError excepted).
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_DEPTH = 5

    def __init__(
        self,
        providers: ProviderResolver,
        timeout_seconds: Optional[float] = None,
        max_depth: Optional[int] = None,
    ):
        """
        Initialize the cascade.

        Args:
            providers: Resolver from ProviderType to client (ProviderRegistry)
            timeout_seconds: Wall-clock budget for the whole cascade
            max_depth: Maximum number of fallback hops after the first attempt
        """
        self.providers = providers
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else self.DEFAULT_TIMEOUT
        self.max_depth = max_depth if max_depth is not None else self.DEFAULT_MAX_DEPTH

    async def invoke_with_fallback(
        self,
        selected_model: AIModel,
        prompt: ChatPrompt,
        models: Iterable[AIModel] | FallbackGraph,
        cancel_event: Optional[asyncio.Event] = None,
        timeout_seconds: Optional[float] = None,
    ) -> CascadeResult:
        """
        Invoke selected_model, falling back on failure or low confidence.

        Args:
            selected_model: Model chosen by the selector
            prompt: Prompt sent to every attempted model
            models: Snapshot models (or a prebuilt FallbackGraph)
            cancel_event: Set by the caller to stop before the next attempt
            timeout_seconds: Override of the cascade budget

        Returns:
            CascadeResult with the final reply (if any) and every attempt
        """
        graph = models if isinstance(models, FallbackGraph) else FallbackGraph(models)
        loop = asyncio.get_running_loop()
        budget = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        deadline = loop.time() + budget

        result = CascadeResult(selected_model_id=selected_model.id)
        visited = {selected_model.id}
        current = selected_model
        best_success: Optional[tuple[AIModel, ProviderReply]] = None
        last_error: Optional[ModelGatewayError] = None

        while True:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Cascade cancelled before attempting model {current.id}")
                result.cancelled = True
                break

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"Cascade budget of {budget:.1f}s exhausted before model {current.id}")
                result.timed_out = True
                break

            attempt, reply, error = await self._attempt(current, prompt, remaining, loop, deadline)
            result.attempts.append(attempt)

            if reply is not None:
                if better_reply(reply, best_success[1] if best_success else None):
                    best_success = (current, reply)
                if attempt.met_threshold:
                    result.reply = reply
                    result.responding_model_id = current.id
                    return result
                logger.info(
                    f"Model {current.id} confidence {reply.confidence:.2f} below "
                    f"threshold {current.confidence_threshold:.2f}, trying fallback"
                )
            else:
                last_error = error
                if isinstance(error, CascadeTimeout):
                    result.timed_out = True
                    break

            if len(result.attempts) > self.max_depth:
                logger.warning(
                    f"Cascade from model {selected_model.id} reached the maximum of "
                    f"{self.max_depth} fallbacks"
                )
                break

            hop = graph.next_hop(current.id, visited)
            if hop.status == HopStatus.NONE:
                break
            if hop.status == HopStatus.CYCLE:
                logger.error(
                    f"Fallback cycle detected: model {current.id} falls back to "
                    f"already attempted model {hop.target_id}"
                )
                result.cycle_detected = True
                break
            if hop.status in (HopStatus.MISSING, HopStatus.INACTIVE):
                message = (
                    f"Model {current.id} falls back to {hop.status.value} model {hop.target_id}"
                )
                logger.error(message)
                result.configuration_errors.append(message)
                break

            visited.add(hop.model.id)
            current = hop.model

        if best_success is not None:
            model, reply = best_success
            result.reply = reply
            result.responding_model_id = model.id
            result.below_threshold = True
            logger.warning(
                f"No reply met its threshold, returning the most confident reply from model {model.id}"
            )
        elif result.timed_out:
            result.error = last_error if isinstance(last_error, CascadeTimeout) else CascadeTimeout(
                f"Cascade budget of {budget:.1f}s exhausted without a reply"
            )
        else:
            result.error = last_error
        return result

    async def invoke_once(
        self,
        model: AIModel,
        prompt: ChatPrompt,
        timeout_seconds: Optional[float] = None,
    ) -> tuple[AttemptRecord, Optional[ProviderReply], Optional[ModelGatewayError]]:
        """Invoke one model without selection, fallback or confidence gating."""
        loop = asyncio.get_running_loop()
        budget = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        return await self._attempt(model, prompt, budget, loop, loop.time() + budget)

    async def _attempt(
        self,
        model: AIModel,
        prompt: ChatPrompt,
        remaining: float,
        loop: asyncio.AbstractEventLoop,
        deadline: float,
    ) -> tuple[AttemptRecord, Optional[ProviderReply], Optional[ModelGatewayError]]:
        """Single invocation, never raises (except CancelledError)."""
        client = self.providers.get(model.provider)
        if client is None:
            error = ConfigurationError(
                f"No provider client registered for '{model.provider.value}'"
            )
            logger.error(f"Model {model.id}: {error.message}")
            return self._failed(model, 0.0, error), None, error

        start_time = time.perf_counter()
        try:
            reply = await asyncio.wait_for(client.invoke(model, prompt), timeout=remaining)
        except asyncio.TimeoutError:
            latency_ms = (time.perf_counter() - start_time) * 1000
            if loop.time() >= deadline:
                error = CascadeTimeout(f"Cascade budget exhausted while waiting for model {model.id}")
            else:
                error = ProviderError(
                    model.provider.value, "Request timed out", kind=ProviderErrorKind.TIMEOUT
                )
            logger.warning(f"Request timed out on model {model.id} ({model.provider.value})")
            return self._failed(model, latency_ms, error), None, error
        except ProviderError as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(f"Request failed on model {model.id} ({model.provider.value}): {e}")
            return self._failed(model, latency_ms, e), None, e
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            error = ProviderError(model.provider.value, str(e) or type(e).__name__)
            logger.warning(
                f"Request failed on model {model.id} ({model.provider.value}): "
                f"{type(e).__name__}: {e}"
            )
            return self._failed(model, latency_ms, error), None, error

        latency_ms = reply.latency_ms
        if latency_ms is None:
            latency_ms = (time.perf_counter() - start_time) * 1000
            reply.latency_ms = latency_ms

        met = meets_threshold(reply, model.confidence_threshold)
        logger.info(
            f"Request succeeded on model {model.id} ({model.provider.value}) "
            f"(latency: {latency_ms:.0f}ms)"
        )
        attempt = AttemptRecord(
            model_id=model.id,
            provider=model.provider.value,
            success=True,
            latency_ms=latency_ms,
            tokens_in=reply.tokens_in,
            tokens_out=reply.tokens_out,
            confidence=reply.confidence,
            met_threshold=met,
        )
        return attempt, reply, None

    @staticmethod
    def _failed(model: AIModel, latency_ms: float, error: ModelGatewayError) -> AttemptRecord:
        kind = error.kind.value if isinstance(error, ProviderError) else error.code.lower()
        return AttemptRecord(
            model_id=model.id,
            provider=model.provider.value,
            success=False,
            latency_ms=latency_ms,
            error=error.message,
            error_kind=kind,
        )
