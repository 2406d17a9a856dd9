"""Model Config Repository Adapter - Implémentation native SQLAlchemy.

Architecture Hexagonale: Adapter qui implémente ModelConfigRepositoryPort
avec SQLAlchemy. Le défaut est stocké dans default_pointers.
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from model_gateway.adapters.postgres.base import SessionScopedAdapter
from model_gateway.db.models import (
    AIModel as DBAIModel,
    DefaultPointer as DBDefaultPointer,
    ModelActivationRule as DBRule,
    WidgetSetting as DBWidgetSetting,
)
from model_gateway.domain.conditions import parse_conditions
from model_gateway.domain.defaults import AI_MODELS, GLOBAL_SCOPE
from model_gateway.domain.models import (
    AIModel,
    ConfigSnapshot,
    ModelActivationRule,
    ModelSettings,
    ProviderType,
    WidgetSettings,
)
from model_gateway.ports.model_config import ModelConfigRepositoryPort

logger = logging.getLogger(__name__)


class ModelConfigRepositoryAdapter(SessionScopedAdapter, ModelConfigRepositoryPort):
    """Adapter SQLAlchemy pour la configuration des modèles."""

    # -------------------------------------------------------------------------
    # Conversions
    # -------------------------------------------------------------------------

    def _model_to_domain(self, db_model: DBAIModel, default_id: int | None) -> AIModel:
        """Convertit un modèle SQLAlchemy vers le domaine.

        Args:
            db_model: Ligne ai_models
            default_id: ID pointé comme défaut

        Returns:
            Entité domain AIModel
        """
        return AIModel(
            id=db_model.id,
            name=db_model.name,
            provider=ProviderType(db_model.provider),
            settings=ModelSettings.from_dict(db_model.settings),
            description=db_model.description or "",
            api_key=db_model.api_key,
            active=db_model.is_active,
            is_default=db_model.id == default_id,
            fallback_model_id=db_model.fallback_model_id,
            confidence_threshold=db_model.confidence_threshold,
        )

    def _model_from_domain(self, model: AIModel) -> dict:
        return {
            "name": model.name,
            "provider": model.provider.value,
            "description": model.description,
            "settings": model.settings.to_dict(),
            "is_active": model.active,
            "fallback_model_id": model.fallback_model_id,
            "confidence_threshold": model.confidence_threshold,
        }

    def _rule_to_domain(self, db_rule: DBRule) -> ModelActivationRule:
        conditions, invalid_reason = parse_conditions(db_rule.conditions)
        if invalid_reason:
            logger.error(f"Stored rule {db_rule.id} is malformed: {invalid_reason}")
        return ModelActivationRule(
            id=db_rule.id,
            model_id=db_rule.ai_model_id,
            name=db_rule.name,
            priority=db_rule.priority,
            active=db_rule.is_active,
            query_type=db_rule.query_type,
            use_case=db_rule.use_case,
            tenant_id=db_rule.tenant_id,
            conditions=conditions,
            invalid_reason=invalid_reason,
        )

    def _rule_from_domain(self, rule: ModelActivationRule) -> dict:
        return {
            "ai_model_id": rule.model_id,
            "name": rule.name,
            "priority": rule.priority,
            "is_active": rule.active,
            "query_type": rule.query_type,
            "use_case": rule.use_case,
            "tenant_id": rule.tenant_id,
            "conditions": [c.to_dict() for c in rule.conditions],
        }

    def _widget_to_domain(self, db_widget: DBWidgetSetting) -> WidgetSettings:
        return WidgetSettings(
            id=db_widget.id,
            name=db_widget.name,
            ai_model_id=db_widget.ai_model_id,
            system_prompt=db_widget.system_prompt,
            settings=db_widget.settings or {},
        )

    # -------------------------------------------------------------------------
    # Default pointer
    # -------------------------------------------------------------------------

    async def _read_pointer(self, session: AsyncSession) -> int | None:
        result = await session.execute(
            select(DBDefaultPointer.item_id).where(
                DBDefaultPointer.collection == AI_MODELS,
                DBDefaultPointer.scope == GLOBAL_SCOPE,
            )
        )
        return result.scalar_one_or_none()

    async def _write_pointer(self, session: AsyncSession, model_id: int | None) -> None:
        result = await session.execute(
            select(DBDefaultPointer).where(
                DBDefaultPointer.collection == AI_MODELS,
                DBDefaultPointer.scope == GLOBAL_SCOPE,
            )
        )
        pointer = result.scalar_one_or_none()

        if model_id is None:
            if pointer:
                await session.delete(pointer)
        elif pointer:
            pointer.item_id = model_id
        else:
            session.add(DBDefaultPointer(collection=AI_MODELS, scope=GLOBAL_SCOPE, item_id=model_id))
        await session.flush()

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    async def load_snapshot(self) -> ConfigSnapshot:
        async with self._get_session() as session:
            default_id = await self._read_pointer(session)
            db_models = (await session.execute(select(DBAIModel).order_by(DBAIModel.id))).scalars().all()
            db_rules = (await session.execute(select(DBRule).order_by(DBRule.id))).scalars().all()

            snapshot = ConfigSnapshot(
                models=tuple(self._model_to_domain(m, default_id) for m in db_models),
                rules=tuple(self._rule_to_domain(r) for r in db_rules),
                default_model_id=default_id,
            )
            logger.debug(
                f"Loaded snapshot from database: {len(snapshot.models)} models, "
                f"{len(snapshot.rules)} rules, default={default_id}"
            )
            return snapshot

    async def get_widget_settings(self, widget_id: int) -> WidgetSettings | None:
        async with self._get_session() as session:
            db_widget = await session.get(DBWidgetSetting, widget_id)
            return self._widget_to_domain(db_widget) if db_widget else None

    # -------------------------------------------------------------------------
    # Models
    # -------------------------------------------------------------------------

    async def list_models(self) -> list[AIModel]:
        async with self._get_session() as session:
            default_id = await self._read_pointer(session)
            result = await session.execute(select(DBAIModel).order_by(DBAIModel.id))
            return [self._model_to_domain(m, default_id) for m in result.scalars().all()]

    async def get_model(self, model_id: int) -> AIModel | None:
        async with self._get_session() as session:
            db_model = await session.get(DBAIModel, model_id)
            if not db_model:
                return None
            return self._model_to_domain(db_model, await self._read_pointer(session))

    async def create_model(self, model: AIModel, make_default: bool = False) -> AIModel:
        async with self._get_session() as session:
            db_model = DBAIModel(**self._model_from_domain(model), api_key=model.api_key)
            session.add(db_model)
            await session.flush()  # Get the ID
            await session.refresh(db_model)

            if make_default:
                await self._write_pointer(session, db_model.id)
            return self._model_to_domain(db_model, await self._read_pointer(session))

    async def update_model(self, model: AIModel, make_default: bool = False) -> AIModel:
        """Met à jour un modèle existant.

        Raises:
            ValueError: Si le modèle n'existe pas
        """
        async with self._get_session() as session:
            db_model = await session.get(DBAIModel, model.id)
            if not db_model:
                raise ValueError(f"AI model not found: {model.id}")

            for key, value in self._model_from_domain(model).items():
                setattr(db_model, key, value)
            if model.api_key is not None:
                db_model.api_key = model.api_key

            await session.flush()
            await session.refresh(db_model)

            if make_default:
                await self._write_pointer(session, db_model.id)
            return self._model_to_domain(db_model, await self._read_pointer(session))

    async def delete_model(self, model_id: int, promote_id: int | None = None) -> bool:
        async with self._get_session() as session:
            db_model = await session.get(DBAIModel, model_id)
            if not db_model:
                return False

            was_default = await self._read_pointer(session) == model_id

            await session.execute(delete(DBRule).where(DBRule.ai_model_id == model_id))
            await session.execute(
                update(DBAIModel)
                .where(DBAIModel.fallback_model_id == model_id)
                .values(fallback_model_id=None)
            )
            await session.execute(
                update(DBWidgetSetting)
                .where(DBWidgetSetting.ai_model_id == model_id)
                .values(ai_model_id=None)
            )
            await session.delete(db_model)
            await session.flush()

            if was_default:
                await self._write_pointer(session, promote_id)
            return True

    async def get_default_model_id(self) -> int | None:
        async with self._get_session() as session:
            return await self._read_pointer(session)

    async def set_default_model(self, model_id: int | None) -> None:
        async with self._get_session() as session:
            await self._write_pointer(session, model_id)

    # -------------------------------------------------------------------------
    # Activation rules
    # -------------------------------------------------------------------------

    async def list_rules(self, model_id: int) -> list[ModelActivationRule]:
        async with self._get_session() as session:
            result = await session.execute(
                select(DBRule)
                .where(DBRule.ai_model_id == model_id)
                .order_by(DBRule.priority, DBRule.id)
            )
            return [self._rule_to_domain(r) for r in result.scalars().all()]

    async def get_rule(self, model_id: int, rule_id: int) -> ModelActivationRule | None:
        async with self._get_session() as session:
            db_rule = await session.get(DBRule, rule_id)
            if not db_rule or db_rule.ai_model_id != model_id:
                return None
            return self._rule_to_domain(db_rule)

    async def create_rule(self, rule: ModelActivationRule) -> ModelActivationRule:
        async with self._get_session() as session:
            db_rule = DBRule(**self._rule_from_domain(rule))
            session.add(db_rule)
            await session.flush()  # Get the ID
            await session.refresh(db_rule)
            return self._rule_to_domain(db_rule)

    async def update_rule(self, rule: ModelActivationRule) -> ModelActivationRule:
        """Met à jour une règle existante.

        Raises:
            ValueError: Si la règle n'existe pas
        """
        async with self._get_session() as session:
            db_rule = await session.get(DBRule, rule.id)
            if not db_rule:
                raise ValueError(f"Activation rule not found: {rule.id}")

            for key, value in self._rule_from_domain(rule).items():
                setattr(db_rule, key, value)

            await session.flush()
            await session.refresh(db_rule)
            return self._rule_to_domain(db_rule)

    async def delete_rule(self, model_id: int, rule_id: int) -> bool:
        async with self._get_session() as session:
            db_rule = await session.get(DBRule, rule_id)
            if not db_rule or db_rule.ai_model_id != model_id:
                return False
            await session.delete(db_rule)
            return True

    # -------------------------------------------------------------------------
    # Widgets
    # -------------------------------------------------------------------------

    async def save_widget_settings(self, widget: WidgetSettings) -> WidgetSettings:
        async with self._get_session() as session:
            db_widget = await session.get(DBWidgetSetting, widget.id)
            if not db_widget:
                db_widget = DBWidgetSetting(id=widget.id)
                session.add(db_widget)

            db_widget.name = widget.name
            db_widget.ai_model_id = widget.ai_model_id
            db_widget.system_prompt = widget.system_prompt
            db_widget.settings = dict(widget.settings)

            await session.flush()
            await session.refresh(db_widget)
            return self._widget_to_domain(db_widget)
