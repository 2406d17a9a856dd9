"""Branding Repository Adapter - Implémentation native SQLAlchemy.

Le preset par défaut de chaque utilisateur est un pointeur
(branding_settings, user_id) dans default_pointers.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from model_gateway.adapters.postgres.base import SessionScopedAdapter
from model_gateway.db.models import (
    BrandingSetting as DBBrandingSetting,
    DefaultPointer as DBDefaultPointer,
)
from model_gateway.domain.defaults import BRANDING_SETTINGS
from model_gateway.domain.models import BrandingSetting
from model_gateway.ports.branding_repository import BrandingRepositoryPort


class BrandingRepositoryAdapter(SessionScopedAdapter, BrandingRepositoryPort):
    """Adapter SQLAlchemy pour les presets de branding."""

    def _to_domain(self, row: DBBrandingSetting, default_id: int | None) -> BrandingSetting:
        return BrandingSetting(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            colors=row.colors or {},
            typography=row.typography or {},
            elements=row.elements or {},
            logo_url=row.logo_url,
            is_active=row.is_active,
            is_default=row.id == default_id,
        )

    def _from_domain(self, setting: BrandingSetting) -> dict:
        return {
            "user_id": setting.user_id,
            "name": setting.name,
            "colors": dict(setting.colors),
            "typography": dict(setting.typography),
            "elements": dict(setting.elements),
            "logo_url": setting.logo_url,
            "is_active": setting.is_active,
        }

    async def _pointer(self, session: AsyncSession, user_id: int) -> DBDefaultPointer | None:
        result = await session.execute(
            select(DBDefaultPointer).where(
                DBDefaultPointer.collection == BRANDING_SETTINGS,
                DBDefaultPointer.scope == str(user_id),
            )
        )
        return result.scalar_one_or_none()

    async def _read_default(self, session: AsyncSession, user_id: int) -> int | None:
        pointer = await self._pointer(session, user_id)
        return pointer.item_id if pointer else None

    async def _write_default(self, session: AsyncSession, user_id: int, item_id: int | None) -> None:
        pointer = await self._pointer(session, user_id)
        if item_id is None:
            if pointer:
                await session.delete(pointer)
        elif pointer:
            pointer.item_id = item_id
        else:
            session.add(
                DBDefaultPointer(collection=BRANDING_SETTINGS, scope=str(user_id), item_id=item_id)
            )
        await session.flush()

    async def list_settings(self, user_id: int) -> list[BrandingSetting]:
        async with self._get_session() as session:
            default_id = await self._read_default(session, user_id)
            result = await session.execute(
                select(DBBrandingSetting)
                .where(DBBrandingSetting.user_id == user_id)
                .order_by(DBBrandingSetting.id)
            )
            return [self._to_domain(row, default_id) for row in result.scalars().all()]

    async def get_setting(self, setting_id: int, user_id: int) -> BrandingSetting | None:
        async with self._get_session() as session:
            row = await session.get(DBBrandingSetting, setting_id)
            if not row or row.user_id != user_id:
                return None
            return self._to_domain(row, await self._read_default(session, user_id))

    async def create_setting(
        self, setting: BrandingSetting, make_default: bool = False
    ) -> BrandingSetting:
        async with self._get_session() as session:
            row = DBBrandingSetting(**self._from_domain(setting))
            session.add(row)
            await session.flush()  # Get the ID
            await session.refresh(row)

            if make_default:
                await self._write_default(session, setting.user_id, row.id)
            return self._to_domain(row, await self._read_default(session, setting.user_id))

    async def update_setting(
        self, setting: BrandingSetting, make_default: bool = False
    ) -> BrandingSetting:
        """Met à jour un preset.

        Raises:
            ValueError: Si le preset n'existe pas
        """
        async with self._get_session() as session:
            row = await session.get(DBBrandingSetting, setting.id)
            if not row:
                raise ValueError(f"Branding setting not found: {setting.id}")

            for key, value in self._from_domain(setting).items():
                setattr(row, key, value)
            await session.flush()
            await session.refresh(row)

            if make_default:
                await self._write_default(session, setting.user_id, row.id)
            return self._to_domain(row, await self._read_default(session, setting.user_id))

    async def delete_setting(
        self, setting_id: int, user_id: int, promote_id: int | None = None
    ) -> bool:
        async with self._get_session() as session:
            row = await session.get(DBBrandingSetting, setting_id)
            if not row or row.user_id != user_id:
                return False

            was_default = await self._read_default(session, user_id) == setting_id
            await session.delete(row)
            await session.flush()

            if was_default:
                await self._write_default(session, user_id, promote_id)
            return True

    async def get_default_id(self, user_id: int) -> int | None:
        async with self._get_session() as session:
            return await self._read_default(session, user_id)
