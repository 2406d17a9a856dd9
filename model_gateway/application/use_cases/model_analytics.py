"""Model Analytics Use Case.

Architecture Hexagonale: agrégats du journal d'utilisation pour le dashboard
(taux de succès, taux de fallback, temps de réponse moyen).
"""

from datetime import datetime

from model_gateway.domain.analytics import (
    GROUP_KEYS,
    ModelUsageSummary,
    UsageBucket,
    group_usage,
    period_start,
    summarize_usage,
)
from model_gateway.domain.errors import ConfigurationError, EntityNotFound
from model_gateway.domain.models import AIModel, UsageLogEntry
from model_gateway.ports.model_config import ModelConfigSourcePort
from model_gateway.ports.usage_log import UsageLogPort

ALLOWED_PERIODS = ("day", "week", "month", "year", "all")


class ModelAnalyticsUseCase:
    """Use Case: Statistiques d'utilisation par modèle."""

    def __init__(self, usage_log: UsageLogPort, config_source: ModelConfigSourcePort):
        self.usage_log = usage_log
        self.config_source = config_source

    @staticmethod
    def _since(period: str, now: datetime | None = None) -> datetime | None:
        if period not in ALLOWED_PERIODS:
            raise ConfigurationError(
                f"Unknown period '{period}' (allowed: {', '.join(ALLOWED_PERIODS)})"
            )
        return period_start(period, now)

    async def summary(
        self,
        period: str = "month",
        model_id: int | None = None,
        now: datetime | None = None,
    ) -> list[ModelUsageSummary]:
        """Statistiques par modèle sur la période."""
        entries = await self.usage_log.list_entries(model_id=model_id, since=self._since(period, now))
        snapshot = await self.config_source.load_snapshot()
        return summarize_usage(entries, snapshot.models)

    async def model_detail(
        self,
        model_id: int,
        period: str = "month",
        group_by: str = "day",
        now: datetime | None = None,
    ) -> tuple[AIModel, list[UsageBucket]]:
        """Statistiques d'un modèle regroupées par jour, heure, query_type ou use_case.

        Raises:
            ConfigurationError: période ou regroupement inconnu
            EntityNotFound: modèle inconnu
        """
        if group_by not in GROUP_KEYS:
            raise ConfigurationError(
                f"Unknown group_by '{group_by}' (allowed: {', '.join(GROUP_KEYS)})"
            )
        since = self._since(period, now)

        snapshot = await self.config_source.load_snapshot()
        model = snapshot.get_model(model_id)
        if model is None:
            raise EntityNotFound("AI model", model_id)

        entries = await self.usage_log.list_entries(model_id=model_id, since=since)
        return model, group_usage(entries, group_by)

    async def recent_errors(
        self,
        model_id: int,
        period: str = "month",
        limit: int = 20,
        now: datetime | None = None,
    ) -> list[UsageLogEntry]:
        """Dernières requêtes en échec d'un modèle."""
        return await self.usage_log.list_entries(
            model_id=model_id,
            since=self._since(period, now),
            success=False,
            limit=limit,
        )
