"""Cohere Adapter - Implémentation du port ProviderClientPort (API chat v2)."""

from model_gateway.adapters.providers.base import HTTPProviderAdapter
from model_gateway.domain.models import AIModel, ChatPrompt, ProviderReply, ProviderType


class CohereAdapter(HTTPProviderAdapter):
    """Adapter httpx pour l'API Cohere chat v2."""

    DEFAULT_BASE_URL = "https://api.cohere.com/v2"

    @property
    def name(self) -> str:
        return "cohere"

    def supports_provider(self, provider: ProviderType) -> bool:
        return provider == ProviderType.COHERE

    async def _send(self, model: AIModel, prompt: ChatPrompt) -> dict:
        return await self._post_json(
            "/chat",
            headers={
                "Authorization": f"Bearer {model.api_key or ''}",
                "Content-Type": "application/json",
            },
            payload=self._build_payload(model, prompt),
        )

    def _build_payload(self, model: AIModel, prompt: ChatPrompt) -> dict:
        messages = []
        if prompt.system_prompt:
            messages.append({"role": "system", "content": prompt.system_prompt})
        messages.extend({"role": m.role, "content": m.content} for m in prompt.messages)

        payload = {"model": self._model_name(model), "messages": messages}

        settings = model.settings
        if settings.temperature is not None:
            payload["temperature"] = settings.temperature
        if settings.max_tokens is not None:
            payload["max_tokens"] = settings.max_tokens
        if settings.top_p is not None:
            payload["p"] = settings.top_p
        if settings.frequency_penalty is not None:
            payload["frequency_penalty"] = settings.frequency_penalty
        if settings.presence_penalty is not None:
            payload["presence_penalty"] = settings.presence_penalty

        return payload

    def _parse_response(self, model: AIModel, data: dict) -> ProviderReply:
        blocks = data["message"]["content"]
        usage = data.get("usage") or {}
        tokens = usage.get("tokens") or usage.get("billed_units") or {}

        return ProviderReply(
            text="".join(b.get("text", "") for b in blocks if b.get("type") == "text"),
            tokens_in=int(tokens.get("input_tokens", 0)),
            tokens_out=int(tokens.get("output_tokens", 0)),
        )
