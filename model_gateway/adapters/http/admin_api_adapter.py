"""Admin API Adapter - Lecture de la configuration depuis l'API du dashboard.

Architecture Hexagonale: Implémentation du ModelConfigSourcePort qui lit
GET /ai-models et GET /ai-models/{id}/rules (enveloppe {"data": ..., "success": true}).
"""

import asyncio
import logging
from typing import Any

import httpx

from model_gateway.domain.conditions import parse_conditions
from model_gateway.domain.errors import ConfigurationError
from model_gateway.domain.models import (
    AIModel,
    ConfigSnapshot,
    ModelActivationRule,
    ModelSettings,
    ProviderType,
    WidgetSettings,
)
from model_gateway.ports.model_config import ModelConfigSourcePort

logger = logging.getLogger(__name__)


def model_from_payload(data: dict[str, Any]) -> AIModel:
    """Convertit un AIModelData du dashboard en AIModel.

    Raises:
        ValueError: fournisseur inconnu ou champ obligatoire manquant
    """
    threshold = data.get("confidence_threshold")
    return AIModel(
        id=int(data["id"]),
        name=str(data.get("name") or ""),
        provider=ProviderType(data["provider"]),
        settings=ModelSettings.from_dict(data.get("settings")),
        description=data.get("description") or "",
        api_key=data.get("api_key") or None,
        active=bool(data.get("is_active", data.get("active", True))),
        is_default=bool(data.get("is_default", False)),
        fallback_model_id=(
            int(data["fallback_model_id"]) if data.get("fallback_model_id") is not None else None
        ),
        confidence_threshold=float(threshold) if threshold is not None else 0.7,
    )


def rule_from_payload(data: dict[str, Any], model_id: int | None = None) -> ModelActivationRule:
    """Convertit une règle du dashboard. Les conditions mal formées sont marquées, pas levées."""
    conditions, invalid_reason = parse_conditions(data.get("conditions"))
    tenant_id = data.get("tenant_id")
    return ModelActivationRule(
        id=int(data["id"]),
        model_id=int(data.get("ai_model_id") or data.get("model_id") or model_id),
        name=str(data.get("name") or ""),
        priority=int(data.get("priority", 1)),
        active=bool(data.get("is_active", data.get("active", True))),
        query_type=data.get("query_type") or None,
        use_case=data.get("use_case") or None,
        tenant_id=int(tenant_id) if tenant_id not in (None, "") else None,
        conditions=conditions,
        invalid_reason=invalid_reason,
    )


class AdminAPIConfigAdapter(ModelConfigSourcePort):
    """Source de configuration qui interroge l'API d'administration."""

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialise l'adapter.

        Args:
            base_url: URL de base de l'API (ex: http://admin.local/api)
            token: Jeton Bearer (optionnel)
            timeout: Timeout des requêtes en secondes (défaut: 10.0)
            transport: Transport httpx (httpx.MockTransport dans les tests)
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout or self.DEFAULT_TIMEOUT
        self._transport = transport

    def _build_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_data(self, client: httpx.AsyncClient, path: str) -> Any:
        """GET + déballage de l'enveloppe {"data": ...}."""
        response = await client.get(f"{self._base_url}{path}", headers=self._build_headers())
        response.raise_for_status()
        body = response.json()
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    async def load_snapshot(self) -> ConfigSnapshot:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                raw_models = await self._get_data(client, "/ai-models")
                models = []
                for item in raw_models or []:
                    try:
                        models.append(model_from_payload(item))
                    except (AttributeError, KeyError, TypeError, ValueError) as e:
                        logger.error(f"Ignoring malformed model from admin API: {e}")

                raw_rules = await asyncio.gather(
                    *(self._get_data(client, f"/ai-models/{m.id}/rules") for m in models)
                )
        except httpx.HTTPError as e:
            raise ConfigurationError(f"Admin API unavailable: {e}")
        except ValueError as e:
            raise ConfigurationError(f"Admin API returned invalid JSON: {e}")

        rules = []
        for model, items in zip(models, raw_rules):
            for item in items or []:
                try:
                    rule = rule_from_payload(item, model_id=model.id)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    logger.error(f"Ignoring malformed rule for model {model.id}: {e}")
                    continue
                if rule.invalid_reason:
                    logger.error(f"Rule {rule.id} ('{rule.name}') is malformed: {rule.invalid_reason}")
                rules.append(rule)

        defaults = sorted(m.id for m in models if m.is_default and m.active)
        snapshot = ConfigSnapshot(
            models=tuple(sorted(models, key=lambda m: m.id)),
            rules=tuple(sorted(rules, key=lambda r: r.id)),
            default_model_id=defaults[0] if defaults else None,
        )
        logger.debug(
            f"Loaded admin API snapshot: {len(snapshot.models)} models, {len(snapshot.rules)} rules"
        )
        return snapshot

    async def get_widget_settings(self, widget_id: int) -> WidgetSettings | None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                data = await self._get_data(client, f"/widgets/{widget_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise ConfigurationError(f"Admin API unavailable: {e}")
        except httpx.HTTPError as e:
            raise ConfigurationError(f"Admin API unavailable: {e}")
        except ValueError as e:
            raise ConfigurationError(f"Admin API returned invalid JSON: {e}")

        settings = data.get("settings") or {}
        ai_model_id = data.get("ai_model_id")
        return WidgetSettings(
            id=int(data.get("id", widget_id)),
            name=data.get("name") or "",
            ai_model_id=int(ai_model_id) if ai_model_id is not None else None,
            system_prompt=settings.get("systemPrompt") or data.get("system_prompt"),
            settings=settings,
        )
