"""Anthropic Adapter - Implémentation du port ProviderClientPort.

Anthropic gère le prompt système séparément des messages.
"""

from model_gateway.adapters.providers.base import HTTPProviderAdapter
from model_gateway.domain.models import AIModel, ChatPrompt, ProviderReply, ProviderType


class AnthropicAdapter(HTTPProviderAdapter):
    """Adapter httpx pour l'API Anthropic Messages."""

    DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
    DEFAULT_MAX_TOKENS = 4096
    ANTHROPIC_VERSION = "2023-06-01"

    @property
    def name(self) -> str:
        return "anthropic"

    def supports_provider(self, provider: ProviderType) -> bool:
        return provider == ProviderType.ANTHROPIC

    async def _send(self, model: AIModel, prompt: ChatPrompt) -> dict:
        return await self._post_json(
            "/messages",
            headers=self._build_headers(model.api_key or ""),
            payload=self._build_payload(model, prompt),
        )

    def _build_headers(self, api_key: str) -> dict[str, str]:
        """Construit les headers HTTP pour Anthropic."""
        return {
            "x-api-key": api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def _build_payload(self, model: AIModel, prompt: ChatPrompt) -> dict:
        """Construit le payload de la requête pour Anthropic.

        Les messages "system" éventuels de l'historique sont fusionnés avec
        le prompt système.
        """
        system_parts = [prompt.system_prompt] if prompt.system_prompt else []
        messages = []
        for msg in prompt.messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                messages.append({"role": msg.role, "content": msg.content})

        settings = model.settings
        payload = {
            "model": self._model_name(model),
            "messages": messages,
            "max_tokens": settings.max_tokens or self.DEFAULT_MAX_TOKENS,
        }

        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        if settings.temperature is not None:
            payload["temperature"] = settings.temperature
        if settings.top_p is not None:
            payload["top_p"] = settings.top_p

        return payload

    def _parse_response(self, model: AIModel, data: dict) -> ProviderReply:
        # Extraire le contenu textuel des blocs
        content = "".join(
            block.get("text", "") for block in data["content"] if block.get("type") == "text"
        )
        usage = data.get("usage") or {}

        return ProviderReply(
            text=content,
            tokens_in=usage.get("input_tokens", 0),
            tokens_out=usage.get("output_tokens", 0),
        )
