"""Provider Adapters - Clients httpx des fournisseurs LLM.

Architecture Hexagonale: ces adapters implémentent le port ProviderClientPort.
"""

from model_gateway.adapters.providers.openai_compatible_adapter import OpenAICompatibleAdapter
from model_gateway.adapters.providers.anthropic_adapter import AnthropicAdapter
from model_gateway.adapters.providers.gemini_adapter import GeminiAdapter
from model_gateway.adapters.providers.cohere_adapter import CohereAdapter
from model_gateway.adapters.providers.mock_adapter import MockAdapter
from model_gateway.adapters.providers.registry import ProviderRegistry


__all__ = [
    "OpenAICompatibleAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "CohereAdapter",
    "MockAdapter",
    "ProviderRegistry",
]
