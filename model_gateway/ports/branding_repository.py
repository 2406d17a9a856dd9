"""Branding Repository Port - Interface abstraite pour les presets de branding.

Architecture Hexagonale: Port pour le stockage des BrandingSetting.
Le défaut est un pointeur par utilisateur.
"""

from abc import ABC, abstractmethod

from model_gateway.domain.models import BrandingSetting


class BrandingRepositoryPort(ABC):
    """Interface abstraite pour le repository de branding."""

    @abstractmethod
    async def list_settings(self, user_id: int) -> list[BrandingSetting]:
        """Presets d'un utilisateur (is_default dérivé du pointeur)."""
        pass

    @abstractmethod
    async def get_setting(self, setting_id: int, user_id: int) -> BrandingSetting | None:
        """Récupère un preset appartenant à l'utilisateur."""
        pass

    @abstractmethod
    async def create_setting(
        self, setting: BrandingSetting, make_default: bool = False
    ) -> BrandingSetting:
        """Crée un preset (l'id fourni est ignoré)."""
        pass

    @abstractmethod
    async def update_setting(
        self, setting: BrandingSetting, make_default: bool = False
    ) -> BrandingSetting:
        """Met à jour un preset."""
        pass

    @abstractmethod
    async def delete_setting(
        self, setting_id: int, user_id: int, promote_id: int | None = None
    ) -> bool:
        """Supprime un preset et déplace le pointeur de défaut si besoin."""
        pass

    @abstractmethod
    async def get_default_id(self, user_id: int) -> int | None:
        """ID du preset par défaut de l'utilisateur."""
        pass
