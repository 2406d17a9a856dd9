"""Provider Registry - Associe chaque ProviderType à son client."""

import logging

from model_gateway.adapters.providers.anthropic_adapter import AnthropicAdapter
from model_gateway.adapters.providers.cohere_adapter import CohereAdapter
from model_gateway.adapters.providers.gemini_adapter import GeminiAdapter
from model_gateway.adapters.providers.mock_adapter import MockAdapter
from model_gateway.adapters.providers.openai_compatible_adapter import OpenAICompatibleAdapter
from model_gateway.domain.models import ProviderType
from model_gateway.ports.provider_client import ProviderClientPort

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registre des clients fournisseurs."""

    def __init__(self, clients: dict[ProviderType, ProviderClientPort] | None = None):
        self._clients: dict[ProviderType, ProviderClientPort] = dict(clients or {})

    def register(self, provider: ProviderType, client: ProviderClientPort) -> None:
        if not client.supports_provider(provider):
            raise ValueError(f"Client '{client.name}' does not support provider {provider.value}")
        self._clients[provider] = client

    def get(self, provider: ProviderType) -> ProviderClientPort | None:
        return self._clients.get(provider)

    def providers(self) -> list[ProviderType]:
        return sorted(self._clients, key=lambda p: p.value)

    def __contains__(self, provider: ProviderType) -> bool:
        return provider in self._clients

    @classmethod
    def from_settings(cls, settings, transport=None) -> "ProviderRegistry":
        """Construit le registre à partir de la configuration.

        Avec settings.mock_providers, tous les fournisseurs sont simulés.
        """
        registry = cls()

        if settings.mock_providers:
            mock = MockAdapter()
            for provider in ProviderType:
                registry.register(provider, mock)
            logger.warning("mock_providers enabled: no provider API will be called")
            return registry

        timeout = settings.provider_timeout_seconds
        for provider in OpenAICompatibleAdapter.DEFAULT_BASE_URLS:
            registry.register(
                provider,
                OpenAICompatibleAdapter(
                    provider,
                    base_url=getattr(settings, f"{provider.value}_api_url"),
                    timeout=timeout,
                    transport=transport,
                ),
            )
        registry.register(
            ProviderType.ANTHROPIC,
            AnthropicAdapter(base_url=settings.anthropic_api_url, timeout=timeout, transport=transport),
        )
        registry.register(
            ProviderType.GEMINI,
            GeminiAdapter(base_url=settings.gemini_api_url, timeout=timeout, transport=transport),
        )
        registry.register(
            ProviderType.COHERE,
            CohereAdapter(base_url=settings.cohere_api_url, timeout=timeout, transport=transport),
        )
        return registry
