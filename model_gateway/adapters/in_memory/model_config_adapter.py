"""In-Memory Model Config Adapter.

Architecture Hexagonale: Implémentation en mémoire du ModelConfigRepositoryPort.
Utilisée par config_source=memory, la commande `simulate` et les tests.
"""

import logging
from dataclasses import replace
from typing import Iterable

from model_gateway.domain.defaults import AI_MODELS, DefaultPointers
from model_gateway.domain.models import (
    AIModel,
    ConfigSnapshot,
    ModelActivationRule,
    WidgetSettings,
)
from model_gateway.ports.model_config import ModelConfigRepositoryPort

logger = logging.getLogger(__name__)


class InMemoryModelConfigAdapter(ModelConfigRepositoryPort):
    """Configuration des modèles stockée en mémoire.

    Les drapeaux is_default fournis au constructeur initialisent le pointeur
    de défaut (plus petit id marqué). Ensuite seul le pointeur fait foi.
    """

    def __init__(
        self,
        models: Iterable[AIModel] = (),
        rules: Iterable[ModelActivationRule] = (),
        widgets: Iterable[WidgetSettings] = (),
    ):
        models = list(models)
        self._models: dict[int, AIModel] = {m.id: replace(m, is_default=False) for m in models}
        self._rules: dict[int, ModelActivationRule] = {r.id: r for r in rules}
        self._widgets: dict[int, WidgetSettings] = {w.id: w for w in widgets}
        self._pointers = DefaultPointers()

        flagged = sorted(m.id for m in models if m.is_default)
        if flagged:
            self._pointers.assign(AI_MODELS, flagged[0])

        self._next_model_id = max(self._models, default=0) + 1
        self._next_rule_id = max(self._rules, default=0) + 1

    def _with_default(self, model: AIModel) -> AIModel:
        return replace(model, is_default=self._pointers.is_default(AI_MODELS, model.id))

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    async def load_snapshot(self) -> ConfigSnapshot:
        snapshot = ConfigSnapshot(
            models=tuple(self._with_default(self._models[i]) for i in sorted(self._models)),
            rules=tuple(self._rules[i] for i in sorted(self._rules)),
            default_model_id=self._pointers.get(AI_MODELS),
        )
        logger.debug(
            f"Loaded in-memory snapshot: {len(snapshot.models)} models, {len(snapshot.rules)} rules"
        )
        return snapshot

    async def get_widget_settings(self, widget_id: int) -> WidgetSettings | None:
        return self._widgets.get(widget_id)

    # -------------------------------------------------------------------------
    # Models
    # -------------------------------------------------------------------------

    async def list_models(self) -> list[AIModel]:
        return [self._with_default(self._models[i]) for i in sorted(self._models)]

    async def get_model(self, model_id: int) -> AIModel | None:
        model = self._models.get(model_id)
        return self._with_default(model) if model else None

    async def create_model(self, model: AIModel, make_default: bool = False) -> AIModel:
        model_id = self._next_model_id
        self._next_model_id += 1
        self._models[model_id] = replace(model, id=model_id, is_default=False)
        if make_default:
            self._pointers.assign(AI_MODELS, model_id)
        return self._with_default(self._models[model_id])

    async def update_model(self, model: AIModel, make_default: bool = False) -> AIModel:
        existing = self._models[model.id]
        api_key = model.api_key if model.api_key is not None else existing.api_key
        self._models[model.id] = replace(model, api_key=api_key, is_default=False)
        if make_default:
            self._pointers.assign(AI_MODELS, model.id)
        return self._with_default(self._models[model.id])

    async def delete_model(self, model_id: int, promote_id: int | None = None) -> bool:
        if model_id not in self._models:
            return False

        del self._models[model_id]
        self._rules = {i: r for i, r in self._rules.items() if r.model_id != model_id}
        for other_id, other in list(self._models.items()):
            if other.fallback_model_id == model_id:
                self._models[other_id] = replace(other, fallback_model_id=None)
        for widget_id, widget in list(self._widgets.items()):
            if widget.ai_model_id == model_id:
                self._widgets[widget_id] = replace(widget, ai_model_id=None)

        if self._pointers.is_default(AI_MODELS, model_id):
            if promote_id is None:
                self._pointers.clear(AI_MODELS)
            else:
                self._pointers.assign(AI_MODELS, promote_id)
        return True

    async def get_default_model_id(self) -> int | None:
        return self._pointers.get(AI_MODELS)

    async def set_default_model(self, model_id: int | None) -> None:
        if model_id is None:
            self._pointers.clear(AI_MODELS)
        else:
            self._pointers.assign(AI_MODELS, model_id)

    # -------------------------------------------------------------------------
    # Activation rules
    # -------------------------------------------------------------------------

    async def list_rules(self, model_id: int) -> list[ModelActivationRule]:
        rules = [r for r in self._rules.values() if r.model_id == model_id]
        return sorted(rules, key=lambda r: (r.priority, r.id))

    async def get_rule(self, model_id: int, rule_id: int) -> ModelActivationRule | None:
        rule = self._rules.get(rule_id)
        if rule is None or rule.model_id != model_id:
            return None
        return rule

    async def create_rule(self, rule: ModelActivationRule) -> ModelActivationRule:
        rule_id = self._next_rule_id
        self._next_rule_id += 1
        self._rules[rule_id] = replace(rule, id=rule_id)
        return self._rules[rule_id]

    async def update_rule(self, rule: ModelActivationRule) -> ModelActivationRule:
        if rule.id not in self._rules:
            raise KeyError(rule.id)
        self._rules[rule.id] = rule
        return rule

    async def delete_rule(self, model_id: int, rule_id: int) -> bool:
        rule = self._rules.get(rule_id)
        if rule is None or rule.model_id != model_id:
            return False
        del self._rules[rule_id]
        return True

    # -------------------------------------------------------------------------
    # Widgets
    # -------------------------------------------------------------------------

    async def save_widget_settings(self, widget: WidgetSettings) -> WidgetSettings:
        self._widgets[widget.id] = widget
        return widget
