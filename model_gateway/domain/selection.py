"""Model Selection - Pure business logic.

AUCUNE dépendance externe. Logique pure.

Ordre de sélection:
1. Règles actives des modèles actifs qui matchent le contexte
2. Priorité la plus haute, puis id de règle le plus bas
3. Sinon, le modèle par défaut
4. Sinon, NoModelAvailable
"""

from __future__ import annotations

import logging
from typing import Iterable

from model_gateway.domain.conditions import evaluate_conditions
from model_gateway.domain.errors import NoModelAvailable
from model_gateway.domain.models import (
    AIModel,
    ConfigSnapshot,
    ModelActivationRule,
    RequestContext,
    SelectionReason,
    SelectionResult,
)

logger = logging.getLogger(__name__)


class ModelSelector:
    """Choisit le modèle qui traite une requête (selectModel)."""

    def rule_matches(self, rule: ModelActivationRule, context: RequestContext) -> bool:
        """Vérifie si une règle matche le contexte."""
        if rule.invalid_reason is not None:
            return False
        if rule.query_type is not None and rule.query_type != context.query_type:
            return False
        if rule.use_case is not None and rule.use_case != context.use_case:
            return False
        if rule.tenant_id is not None and rule.tenant_id != context.tenant_id:
            return False
        return evaluate_conditions(rule.conditions, context.attributes)

    def matching_rules(
        self,
        context: RequestContext,
        models: Iterable[AIModel],
        rules: Iterable[ModelActivationRule],
    ) -> list[ModelActivationRule]:
        """Règles candidates, triées de la meilleure à la moins bonne."""
        active_ids = {m.id for m in models if m.active}
        matched = []
        for rule in rules:
            if not rule.active or rule.model_id not in active_ids:
                continue
            if rule.invalid_reason is not None:
                logger.error(
                    f"Skipping activation rule {rule.id} ('{rule.name}'): {rule.invalid_reason}"
                )
                continue
            if self.rule_matches(rule, context):
                matched.append(rule)

        # Plus haute priorité d'abord, égalité -> plus petit id (le plus ancien)
        matched.sort(key=lambda r: (-r.priority, r.id))
        return matched

    def resolve_default(
        self,
        models: Iterable[AIModel],
        default_model_id: int | None = None,
    ) -> AIModel | None:
        """Retourne le modèle par défaut actif.

        Un pointeur explicite l'emporte sur les drapeaux is_default.
        """
        active = [m for m in models if m.active]

        if default_model_id is not None:
            pointed = next((m for m in active if m.id == default_model_id), None)
            if pointed is not None:
                return pointed
            logger.error(f"Default pointer targets model {default_model_id} which is not active")

        defaults = sorted((m for m in active if m.is_default), key=lambda m: m.id)
        if len(defaults) > 1:
            logger.warning(
                f"{len(defaults)} models flagged as default "
                f"({[m.id for m in defaults]}), using model {defaults[0].id}"
            )
        return defaults[0] if defaults else None

    def select(
        self,
        context: RequestContext,
        models: Iterable[AIModel],
        rules: Iterable[ModelActivationRule],
        default_model_id: int | None = None,
    ) -> SelectionResult:
        """Sélectionne le modèle pour le contexte donné.

        Raises:
            NoModelAvailable: aucune règle ne matche et aucun défaut actif
        """
        models = list(models)
        matched = self.matching_rules(context, models, rules)

        if matched:
            winner = matched[0]
            model = next(m for m in models if m.id == winner.model_id and m.active)
            logger.debug(
                f"Rule {winner.id} ('{winner.name}', priority {winner.priority}) "
                f"selected model {model.id}"
            )
            return SelectionResult(model=model, reason=SelectionReason.RULE, rule=winner)

        default = self.resolve_default(models, default_model_id)
        if default is None:
            raise NoModelAvailable()

        logger.debug(f"No rule matched, using default model {default.id}")
        return SelectionResult(model=default, reason=SelectionReason.DEFAULT)

    def select_from_snapshot(
        self, context: RequestContext, snapshot: ConfigSnapshot
    ) -> SelectionResult:
        return self.select(
            context,
            snapshot.models,
            snapshot.rules,
            default_model_id=snapshot.default_model_id,
        )


def select_model(
    context: RequestContext,
    models: Iterable[AIModel],
    rules: Iterable[ModelActivationRule],
    default_model_id: int | None = None,
) -> SelectionResult:
    """Raccourci fonctionnel pour ModelSelector().select()."""
    return ModelSelector().select(context, models, rules, default_model_id)
