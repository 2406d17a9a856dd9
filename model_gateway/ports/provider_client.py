"""Provider Client Port - Interface abstraite pour les fournisseurs LLM.

Architecture Hexagonale: Port (interface) que les Adapters implémentent.
Le moteur de sélection ne dépend que de cette interface.
"""

from abc import ABC, abstractmethod

from model_gateway.domain.models import AIModel, ChatPrompt, ProviderReply, ProviderType


class ProviderClientPort(ABC):
    """Interface abstraite pour les clients de fournisseurs LLM.

    Un adapter par famille d'API (OpenAI-compatible, Anthropic, Gemini, ...).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Nom du client."""
        pass

    @abstractmethod
    def supports_provider(self, provider: ProviderType) -> bool:
        """Vérifie si le client sait appeler ce type de fournisseur."""
        pass

    @abstractmethod
    async def invoke(self, model: AIModel, prompt: ChatPrompt) -> ProviderReply:
        """Appelle le modèle configuré.

        Args:
            model: Modèle configuré (provider, settings, api_key)
            prompt: Messages et prompt système

        Returns:
            ProviderReply (texte, tokens, confiance éventuelle)

        Raises:
            ProviderError: échec de l'appel (timeout, auth, rate limit, ...)
        """
        pass
