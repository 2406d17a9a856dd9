"""Usage Log Port - Interface abstraite pour la trace d'utilisation des modèles.

Architecture Hexagonale: Port pour l'enregistrement et la lecture des
ModelUsageLog (analytics du dashboard).
"""

from abc import ABC, abstractmethod
from datetime import datetime

from model_gateway.domain.models import UsageLogEntry


class UsageLogPort(ABC):
    """Interface abstraite pour le journal d'utilisation."""

    @abstractmethod
    async def record(self, entry: UsageLogEntry) -> None:
        """Enregistre une entrée.

        Args:
            entry: Entrée à enregistrer
        """
        pass

    @abstractmethod
    async def list_entries(
        self,
        model_id: int | None = None,
        since: datetime | None = None,
        success: bool | None = None,
        limit: int | None = None,
    ) -> list[UsageLogEntry]:
        """Liste les entrées, les plus récentes d'abord.

        Args:
            model_id: Filtrer par modèle
            since: Filtrer à partir de cette date
            success: Filtrer par succès / échec
            limit: Nombre maximum d'entrées

        Returns:
            Liste des entrées correspondantes
        """
        pass
