"""Default Pointers - Pure business logic.

AUCUNE dépendance externe. Logique pure.

Le "défaut" d'une collection n'est pas un booléen réparti sur les lignes:
c'est un pointeur unique (collection, scope) -> id. L'invariant "au plus un
défaut" est donc garanti par construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from model_gateway.domain.errors import DefaultModelConflict


AI_MODELS = "ai_models"
BRANDING_SETTINGS = "branding_settings"
GLOBAL_SCOPE = "global"


@dataclass(frozen=True)
class Candidate:
    """Élément éligible au statut de défaut."""

    id: int
    active: bool


class DefaultPointers:
    """Table des pointeurs de défaut, indexée par (collection, scope)."""

    def __init__(self, pointers: dict[tuple[str, str], int] | None = None):
        self._pointers: dict[tuple[str, str], int] = dict(pointers or {})

    def get(self, collection: str, scope: str = GLOBAL_SCOPE) -> int | None:
        return self._pointers.get((collection, scope))

    def is_default(self, collection: str, item_id: int, scope: str = GLOBAL_SCOPE) -> bool:
        return self._pointers.get((collection, scope)) == item_id

    def assign(self, collection: str, item_id: int, scope: str = GLOBAL_SCOPE) -> int | None:
        """Fait de item_id le défaut. Retourne l'ancien défaut."""
        previous = self._pointers.get((collection, scope))
        self._pointers[(collection, scope)] = item_id
        return previous

    def clear(self, collection: str, scope: str = GLOBAL_SCOPE) -> int | None:
        return self._pointers.pop((collection, scope), None)


def ensure_can_deactivate(
    pointers: DefaultPointers, collection: str, item_id: int, scope: str = GLOBAL_SCOPE
) -> None:
    """Refuse la désactivation du défaut courant."""
    if pointers.is_default(collection, item_id, scope):
        raise DefaultModelConflict(
            f"Item {item_id} is the default of '{collection}' and cannot be deactivated; "
            "assign another default first"
        )


def pick_promotion(candidates: Iterable[Candidate], excluded_id: int) -> int | None:
    """Choisit l'élément promu quand le défaut disparaît: le plus petit id actif."""
    eligible = sorted(c.id for c in candidates if c.active and c.id != excluded_id)
    return eligible[0] if eligible else None
