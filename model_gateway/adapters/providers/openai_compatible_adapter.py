"""OpenAI-compatible Adapter - Implémentation du port ProviderClientPort.

Une seule implémentation pour toutes les API qui exposent
POST /chat/completions au format OpenAI: openai, grok, openrouter,
mistral, deepseek, huggingface (router) et les endpoints custom.
"""

from model_gateway.adapters.providers.base import HTTPProviderAdapter, confidence_from_logprobs
from model_gateway.domain.models import AIModel, ChatPrompt, ProviderReply, ProviderType


class OpenAICompatibleAdapter(HTTPProviderAdapter):
    """Adapter httpx pour les API au format OpenAI chat completions."""

    DEFAULT_BASE_URLS = {
        ProviderType.OPENAI: "https://api.openai.com/v1",
        ProviderType.GROK: "https://api.x.ai/v1",
        ProviderType.OPENROUTER: "https://openrouter.ai/api/v1",
        ProviderType.MISTRAL: "https://api.mistral.ai/v1",
        ProviderType.DEEPSEEK: "https://api.deepseek.com/v1",
        ProviderType.HUGGINGFACE: "https://router.huggingface.co/v1",
        ProviderType.CUSTOM: "http://localhost:11434/v1",
    }

    def __init__(
        self,
        provider: ProviderType = ProviderType.OPENAI,
        base_url: str | None = None,
        timeout: float | None = None,
        transport=None,
    ):
        if provider not in self.DEFAULT_BASE_URLS:
            raise ValueError(f"{provider.value} does not expose an OpenAI-compatible API")
        self._provider = provider
        super().__init__(
            base_url=base_url or self.DEFAULT_BASE_URLS[provider],
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return self._provider.value

    def supports_provider(self, provider: ProviderType) -> bool:
        return provider == self._provider

    async def _send(self, model: AIModel, prompt: ChatPrompt) -> dict:
        return await self._post_json(
            "/chat/completions",
            headers=self._build_headers(model.api_key),
            payload=self._build_payload(model, prompt),
        )

    def _build_headers(self, api_key: str | None) -> dict[str, str]:
        """Construit les headers HTTP (pas d'Authorization sans clé)."""
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _build_payload(self, model: AIModel, prompt: ChatPrompt) -> dict:
        """Construit le payload de la requête.

        Args:
            model: Modèle configuré
            prompt: Messages et prompt système

        Returns:
            Payload JSON pour l'API
        """
        messages = []
        if prompt.system_prompt:
            messages.append({"role": "system", "content": prompt.system_prompt})
        messages.extend({"role": m.role, "content": m.content} for m in prompt.messages)

        payload = {
            "model": self._model_name(model),
            "messages": messages,
        }

        settings = model.settings
        for key in ("temperature", "max_tokens", "top_p", "frequency_penalty", "presence_penalty"):
            value = getattr(settings, key)
            if value is not None:
                payload[key] = value
        if settings.logprobs:
            payload["logprobs"] = True

        return payload

    def _parse_response(self, model: AIModel, data: dict) -> ProviderReply:
        choice = data["choices"][0]
        usage = data.get("usage") or {}

        confidence = None
        logprobs = (choice.get("logprobs") or {}).get("content")
        if logprobs:
            confidence = confidence_from_logprobs([token.get("logprob") for token in logprobs])

        return ProviderReply(
            text=choice["message"]["content"] or "",
            tokens_in=usage.get("prompt_tokens", 0),
            tokens_out=usage.get("completion_tokens", 0),
            confidence=confidence,
        )
