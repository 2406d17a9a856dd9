"""Gemini Adapter - Implémentation du port ProviderClientPort.

API generateContent de Google: rôles "user" / "model", prompt système dans
systemInstruction, confiance lue depuis avgLogprobs quand elle est fournie.
"""

import math

from model_gateway.adapters.providers.base import HTTPProviderAdapter
from model_gateway.domain.models import AIModel, ChatPrompt, ProviderReply, ProviderType


class GeminiAdapter(HTTPProviderAdapter):
    """Adapter httpx pour l'API Gemini generateContent."""

    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    @property
    def name(self) -> str:
        return "gemini"

    def supports_provider(self, provider: ProviderType) -> bool:
        return provider == ProviderType.GEMINI

    async def _send(self, model: AIModel, prompt: ChatPrompt) -> dict:
        return await self._post_json(
            f"/models/{self._model_name(model)}:generateContent",
            headers={
                "x-goog-api-key": model.api_key or "",
                "Content-Type": "application/json",
            },
            payload=self._build_payload(model, prompt),
        )

    def _build_payload(self, model: AIModel, prompt: ChatPrompt) -> dict:
        contents = []
        system_parts = [prompt.system_prompt] if prompt.system_prompt else []
        for msg in prompt.messages:
            if msg.role == "system":
                system_parts.append(msg.content)
                continue
            role = "model" if msg.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": msg.content}]})

        payload: dict = {"contents": contents}
        if system_parts:
            payload["systemInstruction"] = {"parts": [{"text": "\n\n".join(system_parts)}]}

        settings = model.settings
        generation_config = {}
        if settings.temperature is not None:
            generation_config["temperature"] = settings.temperature
        if settings.max_tokens is not None:
            generation_config["maxOutputTokens"] = settings.max_tokens
        if settings.top_p is not None:
            generation_config["topP"] = settings.top_p
        if settings.frequency_penalty is not None:
            generation_config["frequencyPenalty"] = settings.frequency_penalty
        if settings.presence_penalty is not None:
            generation_config["presencePenalty"] = settings.presence_penalty
        if settings.logprobs:
            generation_config["responseLogprobs"] = True
        if generation_config:
            payload["generationConfig"] = generation_config

        return payload

    def _parse_response(self, model: AIModel, data: dict) -> ProviderReply:
        candidate = data["candidates"][0]
        parts = candidate.get("content", {}).get("parts", [])
        usage = data.get("usageMetadata") or {}

        confidence = None
        avg_logprobs = candidate.get("avgLogprobs")
        if avg_logprobs is not None:
            confidence = max(0.0, min(1.0, math.exp(avg_logprobs)))

        return ProviderReply(
            text="".join(part.get("text", "") for part in parts),
            tokens_in=usage.get("promptTokenCount", 0),
            tokens_out=usage.get("candidatesTokenCount", 0),
            confidence=confidence,
        )
