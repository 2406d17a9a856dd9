"""In-Memory Usage Log Adapter.

Architecture Hexagonale: Implémentation en mémoire du UsageLogPort.
"""

from datetime import datetime

from model_gateway.domain.models import UsageLogEntry
from model_gateway.ports.usage_log import UsageLogPort


class InMemoryUsageLogAdapter(UsageLogPort):
    """Journal d'utilisation en mémoire, borné à max_entries."""

    def __init__(self, max_entries: int = 10000):
        self._entries: list[UsageLogEntry] = []
        self._max_entries = max_entries

    async def record(self, entry: UsageLogEntry) -> None:
        self._entries.append(entry)
        if len(self._entries) > self._max_entries:
            self._entries = self._entries[-self._max_entries:]

    async def list_entries(
        self,
        model_id: int | None = None,
        since: datetime | None = None,
        success: bool | None = None,
        limit: int | None = None,
    ) -> list[UsageLogEntry]:
        entries = [
            e
            for e in reversed(self._entries)
            if (model_id is None or e.model_id == model_id)
            and (since is None or e.created_at >= since)
            and (success is None or e.success == success)
        ]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        if limit is not None:
            entries = entries[:limit]
        return entries

    def clear(self) -> None:
        self._entries.clear()
