"""HTTP Provider Base - Socle commun des adapters httpx.

Traduit les erreurs httpx en ProviderError typées: le moteur de cascade ne
voit jamais d'exception httpx.
"""

import logging
import math
import time
from abc import abstractmethod

import httpx

from model_gateway.domain.errors import ProviderError, ProviderErrorKind
from model_gateway.domain.models import AIModel, ChatPrompt, ProviderReply
from model_gateway.ports.provider_client import ProviderClientPort

logger = logging.getLogger(__name__)


class HTTPProviderAdapter(ProviderClientPort):
    """Base des adapters qui appellent une API HTTP JSON."""

    DEFAULT_BASE_URL = ""
    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialise l'adapter.

        Args:
            base_url: URL de base de l'API
            timeout: Timeout des requêtes en secondes (défaut: 60.0)
            transport: Transport httpx (httpx.MockTransport dans les tests)
        """
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout or self.DEFAULT_TIMEOUT
        self._transport = transport

    async def invoke(self, model: AIModel, prompt: ChatPrompt) -> ProviderReply:
        start = time.perf_counter()
        data = await self._send(model, prompt)
        latency_ms = (time.perf_counter() - start) * 1000

        try:
            reply = self._parse_response(model, data)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(
                self.name,
                f"Malformed response: {e!r}",
                kind=ProviderErrorKind.UNKNOWN,
            )
        reply.latency_ms = latency_ms
        return reply

    @abstractmethod
    async def _send(self, model: AIModel, prompt: ChatPrompt) -> dict:
        """Envoie la requête et retourne le JSON décodé."""
        pass

    @abstractmethod
    def _parse_response(self, model: AIModel, data: dict) -> ProviderReply:
        """Parse la réponse JSON de l'API."""
        pass

    async def _post_json(
        self,
        path: str,
        headers: dict[str, str],
        payload: dict,
        params: dict[str, str] | None = None,
    ) -> dict:
        """POST JSON avec traduction des erreurs httpx.

        Raises:
            ProviderError: timeout, statut HTTP en erreur, erreur réseau, JSON invalide
        """
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json=payload, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            raise ProviderError(
                self.name, str(e) or "Request timed out", kind=ProviderErrorKind.TIMEOUT
            )
        except httpx.HTTPStatusError as e:
            raise ProviderError.from_status(
                self.name, e.response.status_code, _error_text(e.response)
            )
        except httpx.RequestError as e:
            raise ProviderError(
                self.name, str(e) or type(e).__name__, kind=ProviderErrorKind.NETWORK
            )
        except ValueError as e:
            raise ProviderError(self.name, f"Invalid JSON response: {e}")

    @staticmethod
    def _model_name(model: AIModel) -> str:
        return model.settings.model_name or model.name


def confidence_from_logprobs(logprobs: list[float]) -> float | None:
    """Confiance = exp(moyenne des log-probabilités), bornée à [0, 1]."""
    values = [lp for lp in logprobs if lp is not None]
    if not values:
        return None
    return max(0.0, min(1.0, math.exp(sum(values) / len(values))))


def _error_text(response: httpx.Response) -> str:
    """Extrait un message lisible d'une réponse en erreur."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase

    if isinstance(data, dict):
        error = data.get("error", data.get("message"))
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if error:
            return str(error)
    return str(data)[:500]
