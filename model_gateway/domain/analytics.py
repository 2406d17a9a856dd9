"""Usage Analytics - Pure business logic.

Agrégats calculés depuis les entrées ModelUsageLog: par modèle pour la vue
d'ensemble, par jour, heure, query_type ou use_case pour le détail d'un modèle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable

from model_gateway.domain.models import AIModel, UsageLogEntry

PERIODS = {
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


class _UsageRates:
    total_requests: int
    successful_requests: int
    fallback_requests: int

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return round(self.successful_requests / self.total_requests * 100, 2)

    @property
    def fallback_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return round(self.fallback_requests / self.total_requests * 100, 2)


@dataclass
class ModelUsageSummary(_UsageRates):
    model_id: int
    model_name: str
    provider: str
    total_requests: int = 0
    successful_requests: int = 0
    fallback_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    avg_response_time: float = 0.0
    avg_confidence_score: float | None = None


@dataclass
class UsageBucket(_UsageRates):
    """Agrégat d'un groupe (date ISO, heure 0-23, query_type ou use_case)."""

    key: str | int | None
    total_requests: int = 0
    successful_requests: int = 0
    fallback_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    avg_response_time: float = 0.0
    avg_confidence_score: float | None = None


def period_start(period: str, now: datetime | None = None) -> datetime | None:
    """Début de la période ("all" ou inconnu -> None)."""
    delta = PERIODS.get(period)
    if delta is None:
        return None
    return (now or datetime.now(timezone.utc)) - delta


def _stats(logs: list[UsageLogEntry]) -> dict[str, Any]:
    confidences = [e.confidence_score for e in logs if e.confidence_score is not None]
    return {
        "total_requests": len(logs),
        "successful_requests": sum(1 for e in logs if e.success),
        "fallback_requests": sum(1 for e in logs if e.fallback_used),
        "total_input_tokens": sum(e.tokens_input for e in logs),
        "total_output_tokens": sum(e.tokens_output for e in logs),
        "avg_response_time": round(sum(e.response_time for e in logs) / len(logs), 3),
        "avg_confidence_score": (
            round(sum(confidences) / len(confidences), 2) if confidences else None
        ),
    }


def summarize_usage(
    entries: Iterable[UsageLogEntry],
    models: Iterable[AIModel] = (),
) -> list[ModelUsageSummary]:
    """Agrège les entrées par modèle, triées par id de modèle."""
    names = {m.id: (m.name, m.provider.value) for m in models}
    grouped: dict[int, list[UsageLogEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.model_id, []).append(entry)

    summaries = []
    for model_id in sorted(grouped):
        name, provider = names.get(model_id, ("Unknown", "Unknown"))
        summaries.append(
            ModelUsageSummary(
                model_id=model_id,
                model_name=name,
                provider=provider,
                **_stats(grouped[model_id]),
            )
        )
    return summaries


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


GROUP_KEYS: dict[str, Callable[[UsageLogEntry], str | int | None]] = {
    "day": lambda e: _utc(e.created_at).date().isoformat(),
    "hour": lambda e: _utc(e.created_at).hour,
    "query_type": lambda e: e.query_type,
    "use_case": lambda e: e.use_case,
}

# day et hour sont chronologiques; query_type et use_case du plus utilisé au moins utilisé
CHRONOLOGICAL_GROUPS = ("day", "hour")


def group_usage(entries: Iterable[UsageLogEntry], group_by: str = "day") -> list[UsageBucket]:
    """Agrège les entrées d'un modèle par jour, heure (UTC), query_type ou use_case.

    Raises:
        KeyError: group_by inconnu
    """
    key_of = GROUP_KEYS[group_by]
    grouped: dict[str | int | None, list[UsageLogEntry]] = {}
    for entry in entries:
        grouped.setdefault(key_of(entry), []).append(entry)

    buckets = [UsageBucket(key=key, **_stats(logs)) for key, logs in grouped.items()]
    if group_by in CHRONOLOGICAL_GROUPS:
        buckets.sort(key=lambda b: b.key)
    else:
        # Groupe sans valeur (None) en dernier à égalité
        buckets.sort(key=lambda b: (-b.total_requests, b.key is None, str(b.key or "")))
    return buckets
