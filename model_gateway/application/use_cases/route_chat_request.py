"""Route Chat Request Use Case.

Architecture Hexagonale: Use Case qui orchestre la sélection du modèle et
la cascade de fallback pour une requête de chat.

Flow:
1. Charger un instantané de configuration
2. Résoudre le widget (modèle épinglé, prompt système)
3. Sélectionner le modèle (règles, puis défaut)
4. Invoquer avec fallback
5. Enregistrer une entrée ModelUsageLog
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from model_gateway.application.engines.cascade import FallbackCascade
from model_gateway.domain.errors import ConfigurationError, NoModelAvailable
from model_gateway.domain.fallback import FallbackGraph
from model_gateway.domain.models import (
    CascadeResult,
    ChatMessage,
    ChatPrompt,
    ConfigSnapshot,
    RequestContext,
    SelectionReason,
    SelectionResult,
    UsageLogEntry,
)
from model_gateway.domain.selection import ModelSelector
from model_gateway.ports.model_config import ModelConfigSourcePort
from model_gateway.ports.usage_log import UsageLogPort

logger = logging.getLogger(__name__)


class RouteOutcome(str, Enum):
    """Résultat possible d'une requête routée."""

    SUCCESS = "success"
    LOW_CONFIDENCE = "low_confidence"
    PROVIDER_FAILURE = "provider_failure"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    NO_MODEL_AVAILABLE = "no_model_available"
    CONFIGURATION_ERROR = "configuration_error"


@dataclass
class RouteChatCommand:
    """Command pour router une requête de chat."""

    messages: list[dict[str, str]]
    query_type: str | None = None
    use_case: str | None = None
    tenant_id: int | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    widget_id: int | None = None
    system_prompt: str | None = None
    timeout_seconds: float | None = None

    def to_context(self) -> RequestContext:
        return RequestContext(
            query_type=self.query_type,
            use_case=self.use_case,
            tenant_id=self.tenant_id,
            attributes=dict(self.attributes),
        )


@dataclass
class RoutePreview:
    """Résultat d'une sélection à blanc."""

    selection: SelectionResult
    fallback_chain: list[int] = field(default_factory=list)


@dataclass
class RouteChatResult:
    """Résultat du routage d'une requête de chat."""

    outcome: RouteOutcome
    selection: SelectionResult | None = None
    cascade: CascadeResult | None = None
    error_message: str | None = None
    error_code: str | None = None

    @property
    def response_text(self) -> str | None:
        if self.cascade is None or self.cascade.reply is None:
            return None
        return self.cascade.reply.text


class RouteChatRequestUseCase:
    """Use Case: Sélectionner un modèle et l'invoquer avec fallback.

    Ne lève jamais d'exception métier: toute issue est un RouteOutcome.
    """

    def __init__(
        self,
        config_source: ModelConfigSourcePort,
        cascade: FallbackCascade,
        usage_log: UsageLogPort | None = None,
        selector: ModelSelector | None = None,
    ):
        self.config_source = config_source
        self.cascade = cascade
        self.usage_log = usage_log
        self.selector = selector or ModelSelector()

    async def preview(self, command: RouteChatCommand) -> RoutePreview:
        """Sélection à blanc (aucun appel fournisseur) et chaîne de fallback prévue.

        Raises:
            NoModelAvailable: aucune règle ne matche et aucun défaut actif
            ConfigurationError: la configuration n'a pas pu être chargée
        """
        snapshot = await self.config_source.load_snapshot()
        selection, _ = await self._select(command, snapshot)
        chain = FallbackGraph(snapshot.models).chain(selection.model.id, self.cascade.max_depth)
        return RoutePreview(selection=selection, fallback_chain=chain.model_ids)

    async def execute(
        self,
        command: RouteChatCommand,
        cancel_event: asyncio.Event | None = None,
    ) -> RouteChatResult:
        """Exécute le use case."""
        try:
            snapshot = await self.config_source.load_snapshot()
            selection, system_prompt = await self._select(command, snapshot)
        except NoModelAvailable as e:
            logger.error(f"No model available for context {command.to_context()}")
            return RouteChatResult(
                outcome=RouteOutcome.NO_MODEL_AVAILABLE,
                error_message=e.message,
                error_code=e.code,
            )
        except ConfigurationError as e:
            logger.error(f"Configuration error while routing request: {e.message}")
            return RouteChatResult(
                outcome=RouteOutcome.CONFIGURATION_ERROR,
                error_message=e.message,
                error_code=e.code,
            )

        prompt = ChatPrompt(
            messages=[ChatMessage(role=m["role"], content=m["content"]) for m in command.messages],
            system_prompt=system_prompt,
        )
        cascade = await self.cascade.invoke_with_fallback(
            selection.model,
            prompt,
            snapshot.models,
            cancel_event=cancel_event,
            timeout_seconds=command.timeout_seconds,
        )

        result = RouteChatResult(
            outcome=self._outcome(cascade),
            selection=selection,
            cascade=cascade,
        )
        if cascade.error is not None and cascade.reply is None:
            result.error_message = cascade.error.message
            result.error_code = cascade.error.code

        await self._record_usage(command, cascade)
        return result

    async def _select(
        self, command: RouteChatCommand, snapshot: ConfigSnapshot
    ) -> tuple[SelectionResult, str | None]:
        """Sélection, avec priorité au modèle épinglé par le widget."""
        system_prompt = command.system_prompt

        if command.widget_id is not None:
            widget = await self.config_source.get_widget_settings(command.widget_id)
            if widget is None:
                logger.warning(f"Unknown widget {command.widget_id}, using rule selection")
            else:
                system_prompt = system_prompt or widget.system_prompt
                pinned = snapshot.get_model(widget.ai_model_id)
                if pinned is not None and pinned.active:
                    logger.debug(f"Widget {widget.id} pins model {pinned.id}")
                    return SelectionResult(model=pinned, reason=SelectionReason.PINNED), system_prompt
                if widget.ai_model_id is not None:
                    logger.warning(
                        f"Widget {widget.id} pins model {widget.ai_model_id} which is "
                        "missing or inactive, using rule selection"
                    )

        return self.selector.select_from_snapshot(command.to_context(), snapshot), system_prompt

    def _outcome(self, cascade: CascadeResult) -> RouteOutcome:
        if cascade.reply is not None:
            return RouteOutcome.LOW_CONFIDENCE if cascade.below_threshold else RouteOutcome.SUCCESS
        if cascade.cancelled:
            return RouteOutcome.CANCELLED
        if cascade.timed_out:
            return RouteOutcome.TIMEOUT
        return RouteOutcome.PROVIDER_FAILURE

    async def _record_usage(self, command: RouteChatCommand, cascade: CascadeResult) -> None:
        """Une entrée par requête. Un échec d'écriture est journalisé, pas propagé."""
        if self.usage_log is None:
            return

        responding = cascade.responding_attempt()
        entry = UsageLogEntry(
            model_id=cascade.responding_model_id or cascade.selected_model_id,
            success=cascade.reply is not None,
            tokens_input=responding.tokens_in if responding else 0,
            tokens_output=responding.tokens_out if responding else 0,
            response_time=round(cascade.total_latency_ms / 1000, 3),
            confidence_score=cascade.reply.confidence if cascade.reply else None,
            fallback_used=cascade.used_fallback,
            error_message=None if cascade.reply else (cascade.error.message if cascade.error else None),
            tenant_id=command.tenant_id,
            widget_id=command.widget_id,
            query_type=command.query_type,
            use_case=command.use_case,
        )
        try:
            await self.usage_log.record(entry)
        except Exception as e:
            logger.error(f"Failed to record usage log for model {entry.model_id}: {e}")
