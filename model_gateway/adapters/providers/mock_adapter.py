"""Mock Adapter - Implémentation du port ProviderClientPort pour les tests.

Simule les réponses LLM sans appeler d'API externe. Utile pour les tests,
la commande `simulate chat` et le mode `mock_providers`.
"""

import asyncio
import time
from typing import Iterable, Mapping

from model_gateway.domain.errors import ProviderError, ProviderErrorKind
from model_gateway.domain.models import AIModel, ChatPrompt, ProviderReply, ProviderType
from model_gateway.ports.provider_client import ProviderClientPort


class MockAdapter(ProviderClientPort):
    """Adapter mock pour les tests.

    Les modèles sont identifiés par leur id ou par leur nom
    (settings.model_name, sinon name) dans failing_models et confidences.
    """

    DEFAULT_LATENCY = 0.0

    def __init__(
        self,
        latency: float | None = None,
        fixed_response: str | None = None,
        confidence: float | None = None,
        confidences: Mapping[int | str, float | None] | None = None,
        failing_models: Iterable[int | str] = (),
        providers: Iterable[ProviderType] | None = None,
    ):
        """Initialise l'adapter Mock.

        Args:
            latency: Latence simulée en secondes (défaut: 0)
            fixed_response: Réponse fixe à retourner (optionnel)
            confidence: Confiance retournée par défaut (None = pas de score)
            confidences: Confiance par modèle
            failing_models: Modèles qui échouent systématiquement
            providers: Fournisseurs simulés (défaut: tous)
        """
        self._latency = latency if latency is not None else self.DEFAULT_LATENCY
        self._fixed_response = fixed_response
        self._confidence = confidence
        self._confidences = dict(confidences or {})
        self._failing = set(failing_models)
        self._providers = set(providers) if providers is not None else set(ProviderType)
        self.calls: list[int] = []

    @property
    def name(self) -> str:
        return "mock"

    def supports_provider(self, provider: ProviderType) -> bool:
        return provider in self._providers

    async def invoke(self, model: AIModel, prompt: ChatPrompt) -> ProviderReply:
        """Retourne une réponse mock (ou échoue si le modèle est marqué)."""
        self.calls.append(model.id)
        start = time.perf_counter()

        # Simuler une latence réseau
        if self._latency > 0:
            await asyncio.sleep(self._latency)

        model_name = model.settings.model_name or model.name
        if model.id in self._failing or model_name in self._failing:
            raise ProviderError(
                model.provider.value,
                f"Simulated failure for {model_name}",
                kind=ProviderErrorKind.SERVER,
                status_code=500,
            )

        content = self._generate_response(prompt)
        return ProviderReply(
            text=content,
            tokens_in=self._estimate_tokens(" ".join(m.content for m in prompt.messages)),
            tokens_out=self._estimate_tokens(content),
            confidence=self._confidence_for(model, model_name),
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    def _confidence_for(self, model: AIModel, model_name: str) -> float | None:
        if model.id in self._confidences:
            return self._confidences[model.id]
        if model_name in self._confidences:
            return self._confidences[model_name]
        return self._confidence

    def _generate_response(self, prompt: ChatPrompt) -> str:
        if self._fixed_response:
            return self._fixed_response

        user_message = prompt.last_user_message
        if len(user_message) > 50:
            return f"This is a mock response to: '{user_message[:50]}...'"
        return f"This is a mock response to: '{user_message}'"

    def _estimate_tokens(self, text: str) -> int:
        return int(len(text.split()) * 1.3)  # Approximation: ~1.3 tokens par mot
