"""In-Memory Branding Adapter.

Architecture Hexagonale: Implémentation en mémoire du BrandingRepositoryPort.
"""

from dataclasses import replace

from model_gateway.domain.defaults import BRANDING_SETTINGS, DefaultPointers
from model_gateway.domain.models import BrandingSetting
from model_gateway.ports.branding_repository import BrandingRepositoryPort


class InMemoryBrandingAdapter(BrandingRepositoryPort):
    """Presets de branding en mémoire, défaut par utilisateur."""

    def __init__(self):
        self._settings: dict[int, BrandingSetting] = {}
        self._pointers = DefaultPointers()
        self._next_id = 1

    def _with_default(self, setting: BrandingSetting) -> BrandingSetting:
        return replace(
            setting,
            is_default=self._pointers.is_default(
                BRANDING_SETTINGS, setting.id, scope=str(setting.user_id)
            ),
        )

    async def list_settings(self, user_id: int) -> list[BrandingSetting]:
        return [
            self._with_default(s)
            for s in sorted(self._settings.values(), key=lambda s: s.id)
            if s.user_id == user_id
        ]

    async def get_setting(self, setting_id: int, user_id: int) -> BrandingSetting | None:
        setting = self._settings.get(setting_id)
        if setting is None or setting.user_id != user_id:
            return None
        return self._with_default(setting)

    async def create_setting(
        self, setting: BrandingSetting, make_default: bool = False
    ) -> BrandingSetting:
        setting_id = self._next_id
        self._next_id += 1
        self._settings[setting_id] = replace(setting, id=setting_id, is_default=False)
        if make_default:
            self._pointers.assign(BRANDING_SETTINGS, setting_id, scope=str(setting.user_id))
        return self._with_default(self._settings[setting_id])

    async def update_setting(
        self, setting: BrandingSetting, make_default: bool = False
    ) -> BrandingSetting:
        self._settings[setting.id] = replace(setting, is_default=False)
        if make_default:
            self._pointers.assign(BRANDING_SETTINGS, setting.id, scope=str(setting.user_id))
        return self._with_default(self._settings[setting.id])

    async def delete_setting(
        self, setting_id: int, user_id: int, promote_id: int | None = None
    ) -> bool:
        setting = self._settings.get(setting_id)
        if setting is None or setting.user_id != user_id:
            return False
        del self._settings[setting_id]

        scope = str(user_id)
        if self._pointers.is_default(BRANDING_SETTINGS, setting_id, scope=scope):
            if promote_id is None:
                self._pointers.clear(BRANDING_SETTINGS, scope=scope)
            else:
                self._pointers.assign(BRANDING_SETTINGS, promote_id, scope=scope)
        return True

    async def get_default_id(self, user_id: int) -> int | None:
        return self._pointers.get(BRANDING_SETTINGS, scope=str(user_id))
