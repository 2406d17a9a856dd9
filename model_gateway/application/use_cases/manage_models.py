"""Manage AI Models Use Case.

Architecture Hexagonale: Use Cases pour la gestion CRUD des modèles IA.

Invariants garantis ici (et non par l'API):
- un seul défaut, toujours actif
- chaînes de fallback acycliques, sans auto-référence
- confidence_threshold dans [0, 1], paramètres dans les bornes du fournisseur
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from model_gateway.domain.defaults import (
    AI_MODELS,
    Candidate,
    DefaultPointers,
    ensure_can_deactivate,
    pick_promotion,
)
from model_gateway.domain.errors import (
    ConfigurationError,
    DefaultModelConflict,
    EntityNotFound,
)
from model_gateway.domain.fallback import FallbackGraph
from model_gateway.domain.models import AIModel, ModelSettings, ProviderType
from model_gateway.domain.validation import ConfigIssue, validate_model, validate_snapshot
from model_gateway.ports.model_config import ModelConfigRepositoryPort

logger = logging.getLogger(__name__)

_UNSET: Any = object()


@dataclass
class AIModelDTO:
    """DTO pour les modèles (la clé API n'est jamais exposée)."""

    id: int
    name: str
    provider: str
    description: str
    settings: dict[str, Any]
    has_api_key: bool
    is_active: bool
    is_default: bool
    fallback_model_id: int | None
    confidence_threshold: float


@dataclass
class CreateModelCommand:
    """Command pour créer un modèle."""

    name: str
    provider: str
    settings: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    api_key: str | None = None
    is_active: bool = True
    is_default: bool = False
    fallback_model_id: int | None = None
    confidence_threshold: float = 0.7


@dataclass
class UpdateModelCommand:
    """Command pour mettre à jour un modèle (None = inchangé)."""

    model_id: int
    name: str | None = None
    provider: str | None = None
    settings: dict[str, Any] | None = None
    description: str | None = None
    api_key: str | None = None
    is_active: bool | None = None
    is_default: bool | None = None
    fallback_model_id: Any = _UNSET  # None efface le fallback
    confidence_threshold: float | None = None


class ManageModelsUseCase:
    """Use Case: Gérer les modèles IA (CRUD + défaut)."""

    def __init__(self, repository: ModelConfigRepositoryPort):
        self.repository = repository

    def _to_dto(self, model: AIModel) -> AIModelDTO:
        """Convertit un AIModel en DTO."""
        return AIModelDTO(
            id=model.id,
            name=model.name,
            provider=model.provider.value,
            description=model.description,
            settings=model.settings.to_dict(),
            has_api_key=model.has_api_key,
            is_active=model.active,
            is_default=model.is_default,
            fallback_model_id=model.fallback_model_id,
            confidence_threshold=model.confidence_threshold,
        )

    async def _get_or_raise(self, model_id: int) -> AIModel:
        model = await self.repository.get_model(model_id)
        if model is None:
            raise EntityNotFound("AI model", model_id)
        return model

    async def _check_fallback(self, model_id: int | None, fallback_model_id: int | None) -> None:
        """Le fallback doit exister et ne pas fermer de cycle."""
        if fallback_model_id is None:
            return
        if model_id is not None and fallback_model_id == model_id:
            raise ConfigurationError("A model cannot be its own fallback")
        models = await self.repository.list_models()
        if not any(m.id == fallback_model_id for m in models):
            raise ConfigurationError(f"Fallback model {fallback_model_id} does not exist")
        if model_id is not None:
            FallbackGraph(models).ensure_acyclic_edge(model_id, fallback_model_id)

    @staticmethod
    def _parse_provider(provider: str) -> ProviderType:
        try:
            return ProviderType(provider)
        except ValueError:
            allowed = ", ".join(p.value for p in ProviderType)
            raise ConfigurationError(f"Unknown provider '{provider}' (allowed: {allowed})")

    @staticmethod
    def _parse_settings(settings: dict[str, Any]) -> ModelSettings:
        try:
            return ModelSettings.from_dict(settings)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid model settings: {e}")

    @staticmethod
    def _validate(model: AIModel) -> None:
        if not model.name.strip():
            raise ConfigurationError("name is required")
        if len(model.name) > 255:
            raise ConfigurationError("name must be at most 255 characters")
        errors = validate_model(model)
        if errors:
            raise ConfigurationError("; ".join(errors))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_models(self) -> list[AIModelDTO]:
        """Liste les modèles."""
        return [self._to_dto(m) for m in await self.repository.list_models()]

    async def get_model(self, model_id: int) -> AIModelDTO:
        """Récupère un modèle par ID.

        Raises:
            EntityNotFound: modèle inconnu
        """
        return self._to_dto(await self._get_or_raise(model_id))

    async def validate_configuration(self) -> list[ConfigIssue]:
        """Contrôle de cohérence complet de la configuration."""
        return validate_snapshot(await self.repository.load_snapshot())

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def create_model(self, command: CreateModelCommand) -> AIModelDTO:
        """Crée un nouveau modèle.

        Le premier modèle actif devient le défaut s'il n'en existe aucun.
        """
        model = AIModel(
            id=0,  # Sera généré par le repository
            name=command.name,
            provider=self._parse_provider(command.provider),
            settings=self._parse_settings(command.settings),
            description=command.description or "",
            api_key=command.api_key or None,
            active=command.is_active,
            fallback_model_id=command.fallback_model_id,
            confidence_threshold=command.confidence_threshold,
        )
        self._validate(model)
        await self._check_fallback(None, command.fallback_model_id)

        if command.is_default and not command.is_active:
            raise DefaultModelConflict("An inactive model cannot be the default")

        make_default = command.is_default
        if not make_default and command.is_active:
            make_default = await self.repository.get_default_model_id() is None

        created = await self.repository.create_model(model, make_default=make_default)
        logger.info(
            f"Created AI model {created.id} ('{created.name}', {created.provider.value})"
            + (" as default" if make_default else "")
        )
        return self._to_dto(created)

    async def update_model(self, command: UpdateModelCommand) -> AIModelDTO:
        """Met à jour un modèle.

        Raises:
            EntityNotFound: modèle inconnu
            DefaultModelConflict: désactivation ou retrait du défaut courant
            FallbackCycleError: le nouveau fallback fermerait un cycle
        """
        existing = await self._get_or_raise(command.model_id)

        changes: dict[str, Any] = {}
        if command.name is not None:
            changes["name"] = command.name
        if command.provider is not None:
            changes["provider"] = self._parse_provider(command.provider)
        if command.settings is not None:
            changes["settings"] = self._parse_settings(command.settings)
        if command.description is not None:
            changes["description"] = command.description
        if command.is_active is not None:
            changes["active"] = command.is_active
        if command.fallback_model_id is not _UNSET:
            changes["fallback_model_id"] = command.fallback_model_id
        if command.confidence_threshold is not None:
            changes["confidence_threshold"] = command.confidence_threshold

        # api_key à None: clé existante conservée par le repository
        updated = replace(existing, api_key=command.api_key or None, **changes)
        self._validate(updated)

        if "fallback_model_id" in changes:
            await self._check_fallback(updated.id, updated.fallback_model_id)

        pointers = DefaultPointers()
        default_id = await self.repository.get_default_model_id()
        if default_id is not None:
            pointers.assign(AI_MODELS, default_id)

        if not updated.active:
            if command.is_default:
                raise DefaultModelConflict("An inactive model cannot be the default")
            ensure_can_deactivate(pointers, AI_MODELS, updated.id)

        if command.is_default is False and pointers.is_default(AI_MODELS, updated.id):
            raise DefaultModelConflict(
                f"Model {updated.id} is the default; set another model as default instead"
            )

        make_default = bool(command.is_default) and not pointers.is_default(AI_MODELS, updated.id)
        saved = await self.repository.update_model(updated, make_default=make_default)
        if make_default:
            logger.info(f"Model {saved.id} is now the default (previous: {default_id})")
        return self._to_dto(saved)

    async def set_default(self, model_id: int) -> AIModelDTO:
        """Fait d'un modèle actif le défaut.

        Raises:
            EntityNotFound: modèle inconnu
            DefaultModelConflict: modèle inactif
        """
        model = await self._get_or_raise(model_id)
        if not model.active:
            raise DefaultModelConflict(f"Model {model_id} is inactive and cannot be the default")

        previous = await self.repository.get_default_model_id()
        await self.repository.set_default_model(model_id)
        logger.info(f"Model {model_id} is now the default (previous: {previous})")
        return self._to_dto(replace(model, is_default=True))

    async def delete_model(self, model_id: int) -> int | None:
        """Supprime un modèle (règles et fallbacks entrants compris).

        Returns:
            Le modèle par défaut après suppression: le modèle promu si le
            modèle supprimé était le défaut, le défaut inchangé sinon, None
            s'il n'en reste aucun

        Raises:
            EntityNotFound: modèle inconnu
        """
        await self._get_or_raise(model_id)
        default_id = await self.repository.get_default_model_id()

        promote_id = None
        if default_id == model_id:
            models = await self.repository.list_models()
            promote_id = pick_promotion((Candidate(m.id, m.active) for m in models), model_id)
            if promote_id is None:
                logger.warning(f"Deleted default model {model_id}; no active model left to promote")
            else:
                logger.info(f"Deleted default model {model_id}; promoted model {promote_id}")

        await self.repository.delete_model(model_id, promote_id=promote_id)
        return promote_id if default_id == model_id else default_id
