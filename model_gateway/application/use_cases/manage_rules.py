"""Manage Activation Rules Use Case.

Architecture Hexagonale: Use Cases pour la gestion CRUD des règles
d'activation d'un modèle. Les conditions mal formées sont refusées ici.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from model_gateway.domain.errors import ConfigurationError, EntityNotFound
from model_gateway.domain.models import ModelActivationRule, RuleCondition
from model_gateway.ports.model_config import ModelConfigRepositoryPort

logger = logging.getLogger(__name__)


@dataclass
class RuleDTO:
    """DTO pour les règles d'activation."""

    id: int
    ai_model_id: int
    name: str
    priority: int
    is_active: bool
    query_type: str | None
    use_case: str | None
    tenant_id: int | None
    conditions: list[dict[str, Any]]
    invalid_reason: str | None = None


@dataclass
class RuleCommand:
    """Command pour créer ou remplacer une règle."""

    model_id: int
    name: str
    priority: int = 1
    is_active: bool = True
    query_type: str | None = None
    use_case: str | None = None
    tenant_id: int | None = None
    conditions: list[dict[str, Any]] = field(default_factory=list)
    rule_id: int | None = None


class ManageRulesUseCase:
    """Use Case: Gérer les règles d'activation d'un modèle."""

    def __init__(self, repository: ModelConfigRepositoryPort):
        self.repository = repository

    def _to_dto(self, rule: ModelActivationRule) -> RuleDTO:
        return RuleDTO(
            id=rule.id,
            ai_model_id=rule.model_id,
            name=rule.name,
            priority=rule.priority,
            is_active=rule.active,
            query_type=rule.query_type,
            use_case=rule.use_case,
            tenant_id=rule.tenant_id,
            conditions=[c.to_dict() for c in rule.conditions],
            invalid_reason=rule.invalid_reason,
        )

    async def _ensure_model(self, model_id: int) -> None:
        if await self.repository.get_model(model_id) is None:
            raise EntityNotFound("AI model", model_id)

    def _build(self, command: RuleCommand, rule_id: int = 0) -> ModelActivationRule:
        """Valide la commande et construit la règle.

        Raises:
            ConfigurationError: nom, priorité invalides
            InvalidRuleCondition: condition mal formée
        """
        name = (command.name or "").strip()
        if not name:
            raise ConfigurationError("name is required")
        if len(name) > 255:
            raise ConfigurationError("name must be at most 255 characters")
        if isinstance(command.priority, bool) or not isinstance(command.priority, int):
            raise ConfigurationError("priority must be an integer")
        if command.priority < 1:
            raise ConfigurationError("priority must be >= 1")

        conditions = tuple(RuleCondition.from_dict(c) for c in command.conditions or [])

        return ModelActivationRule(
            id=rule_id,
            model_id=command.model_id,
            name=name,
            priority=command.priority,
            active=command.is_active,
            query_type=command.query_type or None,
            use_case=command.use_case or None,
            tenant_id=command.tenant_id,
            conditions=conditions,
        )

    async def list_rules(self, model_id: int) -> list[RuleDTO]:
        """Liste les règles d'un modèle."""
        await self._ensure_model(model_id)
        return [self._to_dto(r) for r in await self.repository.list_rules(model_id)]

    async def create_rule(self, command: RuleCommand) -> RuleDTO:
        """Crée une règle pour un modèle existant."""
        await self._ensure_model(command.model_id)
        rule = self._build(command)
        created = await self.repository.create_rule(rule)
        logger.info(
            f"Created activation rule {created.id} ('{created.name}') for model {created.model_id}"
        )
        return self._to_dto(created)

    async def update_rule(self, command: RuleCommand) -> RuleDTO:
        """Remplace une règle existante.

        Raises:
            EntityNotFound: règle inconnue pour ce modèle
        """
        existing = await self.repository.get_rule(command.model_id, command.rule_id)
        if existing is None:
            raise EntityNotFound("Activation rule", command.rule_id)
        rule = self._build(command, rule_id=existing.id)
        return self._to_dto(await self.repository.update_rule(rule))

    async def delete_rule(self, model_id: int, rule_id: int) -> None:
        """Supprime une règle (le modèle n'est pas affecté).

        Raises:
            EntityNotFound: règle inconnue pour ce modèle
        """
        if not await self.repository.delete_rule(model_id, rule_id):
            raise EntityNotFound("Activation rule", rule_id)
