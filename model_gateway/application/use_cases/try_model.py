"""Try Model Use Case.

Architecture Hexagonale: appel direct d'un modèle depuis le dashboard, sans
sélection ni fallback, pour vérifier sa clé, ses paramètres et son fournisseur.
Les essais ne sont pas écrits dans le journal d'utilisation.
"""

import logging
from dataclasses import dataclass, replace

from model_gateway.application.engines.cascade import FallbackCascade
from model_gateway.domain.errors import ConfigurationError, EntityNotFound
from model_gateway.domain.models import AIModel, ChatMessage, ChatPrompt
from model_gateway.domain.validation import settings_errors
from model_gateway.ports.model_config import ModelConfigSourcePort

logger = logging.getLogger(__name__)

DEFAULT_TRY_MESSAGE = "Hello! Reply with a short greeting."


@dataclass
class TryModelCommand:
    """Commande d'essai d'un modèle.

    temperature et max_tokens remplacent ceux du modèle pour cet appel seulement.
    """

    model_id: int
    message: str = DEFAULT_TRY_MESSAGE
    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass
class TryModelResult:
    """Résultat d'un essai (response_time en secondes)."""

    model_id: int
    provider: str
    success: bool
    response: str | None
    response_time: float
    tokens_input: int = 0
    tokens_output: int = 0
    confidence: float | None = None
    met_threshold: bool = False
    error: str | None = None
    error_kind: str | None = None


class TryModelUseCase:
    """Use Case: Essai direct d'un modèle configuré."""

    def __init__(self, config_source: ModelConfigSourcePort, cascade: FallbackCascade):
        self.config_source = config_source
        self.cascade = cascade

    async def _model_for_call(self, command: TryModelCommand) -> AIModel:
        snapshot = await self.config_source.load_snapshot()
        model = snapshot.get_model(command.model_id)
        if model is None:
            raise EntityNotFound("AI model", command.model_id)

        overrides = {}
        if command.temperature is not None:
            overrides["temperature"] = command.temperature
        if command.max_tokens is not None:
            overrides["max_tokens"] = command.max_tokens
        if not overrides:
            return model

        call_settings = replace(model.settings, **overrides)
        errors = settings_errors(model.provider, call_settings)
        if errors:
            raise ConfigurationError("; ".join(errors))
        return replace(model, settings=call_settings)

    async def execute(self, command: TryModelCommand) -> TryModelResult:
        """Appelle le modèle une fois, même inactif.

        Un échec du fournisseur est rapporté dans le résultat, pas levé.

        Raises:
            EntityNotFound: modèle inconnu
            ConfigurationError: message vide ou paramètres hors bornes
        """
        if not command.message.strip():
            raise ConfigurationError("message is required")
        model = await self._model_for_call(command)

        prompt = ChatPrompt(
            messages=[ChatMessage(role="user", content=command.message)],
            system_prompt=command.system_prompt,
        )
        attempt, reply, error = await self.cascade.invoke_once(model, prompt)

        if error is not None:
            logger.info(f"Try of model {model.id} failed: {error.message}")
        return TryModelResult(
            model_id=model.id,
            provider=model.provider.value,
            success=reply is not None,
            response=reply.text if reply is not None else None,
            response_time=round(attempt.latency_ms / 1000, 3),
            tokens_input=attempt.tokens_in,
            tokens_output=attempt.tokens_out,
            confidence=attempt.confidence,
            met_threshold=attempt.met_threshold,
            error=attempt.error,
            error_kind=attempt.error_kind,
        )
