"""Fallback Graph - Pure business logic.

AUCUNE dépendance externe. Logique pure.

La chaîne de fallback est un graphe explicite (liste d'adjacence indexée par
id de modèle). Tout parcours garde un ensemble de visités: un cycle est
détecté au lieu de boucler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from model_gateway.domain.errors import FallbackCycleError
from model_gateway.domain.models import AIModel


class HopStatus(str, Enum):
    """Issue de la résolution du prochain fallback."""

    OK = "ok"
    NONE = "none"  # pas de fallback configuré
    MISSING = "missing"  # le fallback pointe vers un modèle inconnu
    INACTIVE = "inactive"  # le fallback est désactivé
    CYCLE = "cycle"  # le fallback a déjà été visité


@dataclass(frozen=True)
class Hop:
    status: HopStatus
    model: AIModel | None = None
    target_id: int | None = None


@dataclass
class FallbackChain:
    """Chaîne résolue à partir d'un modèle."""

    models: list[AIModel] = field(default_factory=list)
    stop: HopStatus = HopStatus.NONE
    stop_target_id: int | None = None
    truncated: bool = False

    @property
    def model_ids(self) -> list[int]:
        return [m.id for m in self.models]


class FallbackGraph:
    """Graphe des fallbacks construit depuis un instantané de modèles."""

    def __init__(self, models: Iterable[AIModel]):
        self._models: dict[int, AIModel] = {m.id: m for m in models}
        self._edges: dict[int, int] = {
            m.id: m.fallback_model_id
            for m in self._models.values()
            if m.fallback_model_id is not None
        }

    def get(self, model_id: int) -> AIModel | None:
        return self._models.get(model_id)

    def next_hop(self, model_id: int, visited: set[int] | frozenset[int] = frozenset()) -> Hop:
        """Résout le fallback direct de model_id."""
        target_id = self._edges.get(model_id)
        if target_id is None:
            return Hop(HopStatus.NONE)
        if target_id in visited:
            return Hop(HopStatus.CYCLE, target_id=target_id)
        target = self._models.get(target_id)
        if target is None:
            return Hop(HopStatus.MISSING, target_id=target_id)
        if not target.active:
            return Hop(HopStatus.INACTIVE, model=target, target_id=target_id)
        return Hop(HopStatus.OK, model=target, target_id=target_id)

    def chain(self, start_id: int, max_depth: int = 5) -> FallbackChain:
        """Chaîne [start, fallback1, ...] limitée à max_depth sauts."""
        result = FallbackChain()
        start = self._models.get(start_id)
        if start is None:
            result.stop = HopStatus.MISSING
            result.stop_target_id = start_id
            return result

        result.models.append(start)
        visited = {start_id}
        current = start_id
        while True:
            hop = self.next_hop(current, visited)
            if hop.status != HopStatus.OK:
                result.stop = hop.status
                result.stop_target_id = hop.target_id
                return result
            if len(result.models) > max_depth:
                result.truncated = True
                result.stop_target_id = hop.target_id
                return result
            result.models.append(hop.model)
            visited.add(hop.model.id)
            current = hop.model.id

    def find_cycle(self, start_id: int) -> list[int] | None:
        """Retourne le cycle atteint depuis start_id (ex: [1, 2, 3, 1]) ou None."""
        path: list[int] = []
        position: dict[int, int] = {}
        current: int | None = start_id
        while current is not None:
            if current in position:
                return path[position[current]:] + [current]
            position[current] = len(path)
            path.append(current)
            current = self._edges.get(current)
        return None

    def cycles(self) -> list[list[int]]:
        """Tous les cycles distincts du graphe."""
        found: list[list[int]] = []
        seen: set[frozenset[int]] = set()
        for model_id in sorted(self._models):
            cycle = self.find_cycle(model_id)
            if cycle is None:
                continue
            key = frozenset(cycle)
            if key not in seen:
                seen.add(key)
                found.append(cycle)
        return found

    def would_create_cycle(self, model_id: int, fallback_model_id: int | None) -> list[int] | None:
        """Simule l'ajout de l'arête model_id -> fallback_model_id."""
        if fallback_model_id is None:
            return None
        if fallback_model_id == model_id:
            return [model_id, model_id]
        edges = dict(self._edges)
        edges[model_id] = fallback_model_id
        path = [model_id]
        current = fallback_model_id
        while current is not None:
            path.append(current)
            if current == model_id:
                return path
            if current in path[:-1]:
                # cycle pré-existant sans model_id, hors de notre responsabilité
                return None
            current = edges.get(current)
        return None

    def ensure_acyclic_edge(self, model_id: int, fallback_model_id: int | None) -> None:
        """Raises FallbackCycleError si l'arête fermerait un cycle."""
        cycle = self.would_create_cycle(model_id, fallback_model_id)
        if cycle is not None:
            raise FallbackCycleError(cycle)
