"""Manage Branding Use Case.

Architecture Hexagonale: Use Cases pour les presets de branding.
Même invariant que les modèles: un seul défaut par utilisateur, toujours actif.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any

from model_gateway.domain.branding import generate_css_variables, merged_settings
from model_gateway.domain.defaults import (
    BRANDING_SETTINGS,
    Candidate,
    DefaultPointers,
    ensure_can_deactivate,
    pick_promotion,
)
from model_gateway.domain.errors import ConfigurationError, DefaultModelConflict, EntityNotFound
from model_gateway.domain.models import BrandingSetting
from model_gateway.ports.branding_repository import BrandingRepositoryPort

logger = logging.getLogger(__name__)


@dataclass
class BrandingCommand:
    """Command pour créer ou mettre à jour un preset (None = inchangé en update)."""

    user_id: int
    name: str | None = None
    colors: dict[str, str] | None = None
    typography: dict[str, str] | None = None
    elements: dict[str, str] | None = None
    logo_url: str | None = None
    is_active: bool | None = None
    is_default: bool | None = None
    setting_id: int | None = None


class ManageBrandingUseCase:
    """Use Case: Gérer les presets de branding d'un utilisateur."""

    def __init__(self, repository: BrandingRepositoryPort):
        self.repository = repository

    async def _get_or_raise(self, setting_id: int, user_id: int) -> BrandingSetting:
        setting = await self.repository.get_setting(setting_id, user_id)
        if setting is None:
            raise EntityNotFound("Branding setting", setting_id)
        return setting

    async def _pointers(self, user_id: int) -> DefaultPointers:
        pointers = DefaultPointers()
        default_id = await self.repository.get_default_id(user_id)
        if default_id is not None:
            pointers.assign(BRANDING_SETTINGS, default_id, scope=str(user_id))
        return pointers

    async def list_settings(self, user_id: int) -> list[BrandingSetting]:
        return await self.repository.list_settings(user_id)

    async def get_setting(self, setting_id: int, user_id: int) -> BrandingSetting:
        return await self._get_or_raise(setting_id, user_id)

    async def get_default(self, user_id: int) -> BrandingSetting | None:
        default_id = await self.repository.get_default_id(user_id)
        if default_id is None:
            return None
        return await self.repository.get_setting(default_id, user_id)

    async def create_setting(self, command: BrandingCommand) -> BrandingSetting:
        """Crée un preset. Le premier preset actif devient le défaut."""
        name = (command.name or "").strip()
        if not name:
            raise ConfigurationError("name is required")
        is_active = command.is_active if command.is_active is not None else True
        if command.is_default and not is_active:
            raise DefaultModelConflict("An inactive branding setting cannot be the default")

        setting = BrandingSetting(
            id=0,  # Sera généré par le repository
            user_id=command.user_id,
            name=name,
            colors=command.colors or {},
            typography=command.typography or {},
            elements=command.elements or {},
            logo_url=command.logo_url,
            is_active=is_active,
        )
        make_default = bool(command.is_default)
        if not make_default and is_active:
            make_default = await self.repository.get_default_id(command.user_id) is None

        created = await self.repository.create_setting(setting, make_default=make_default)
        logger.info(f"Created branding setting {created.id} for user {command.user_id}")
        return created

    async def update_setting(self, command: BrandingCommand) -> BrandingSetting:
        """Met à jour un preset.

        Raises:
            EntityNotFound: preset inconnu
            DefaultModelConflict: désactivation ou retrait du défaut courant
        """
        existing = await self._get_or_raise(command.setting_id, command.user_id)

        changes: dict[str, Any] = {}
        for key in ("colors", "typography", "elements", "logo_url", "is_active"):
            value = getattr(command, key)
            if value is not None:
                changes[key] = value
        if command.name is not None:
            if not command.name.strip():
                raise ConfigurationError("name is required")
            changes["name"] = command.name.strip()
        updated = replace(existing, **changes)

        scope = str(command.user_id)
        pointers = await self._pointers(command.user_id)
        if not updated.is_active:
            if command.is_default:
                raise DefaultModelConflict("An inactive branding setting cannot be the default")
            ensure_can_deactivate(pointers, BRANDING_SETTINGS, updated.id, scope=scope)
        if command.is_default is False and pointers.is_default(BRANDING_SETTINGS, updated.id, scope=scope):
            raise DefaultModelConflict(
                f"Branding setting {updated.id} is the default; set another preset as default instead"
            )

        return await self.repository.update_setting(updated, make_default=bool(command.is_default))

    async def set_default(self, setting_id: int, user_id: int) -> BrandingSetting:
        setting = await self._get_or_raise(setting_id, user_id)
        if not setting.is_active:
            raise DefaultModelConflict(
                f"Branding setting {setting_id} is inactive and cannot be the default"
            )
        return await self.repository.update_setting(setting, make_default=True)

    async def delete_setting(self, setting_id: int, user_id: int) -> int | None:
        """Supprime un preset et promeut un autre preset actif si besoin.

        Returns:
            Le défaut de l'utilisateur après suppression
        """
        await self._get_or_raise(setting_id, user_id)
        default_id = await self.repository.get_default_id(user_id)

        promote_id = None
        if default_id == setting_id:
            settings = await self.repository.list_settings(user_id)
            promote_id = pick_promotion((Candidate(s.id, s.is_active) for s in settings), setting_id)

        await self.repository.delete_setting(setting_id, user_id, promote_id=promote_id)
        return promote_id if default_id == setting_id else default_id

    async def css_variables(
        self,
        setting_id: int,
        user_id: int,
        overrides: dict[str, dict[str, Any]] | None = None,
    ) -> str:
        """Variables CSS du preset, surcharges de widget appliquées."""
        setting = await self._get_or_raise(setting_id, user_id)
        return generate_css_variables(merged_settings(setting, overrides))
