"""Configuration Validation - Pure business logic.

Contrôles de cohérence d'un instantané de configuration, utilisés par la
commande `check config` et par l'API d'administration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from model_gateway.domain.fallback import FallbackGraph
from model_gateway.domain.models import AIModel, ConfigSnapshot, ModelSettings, ProviderType

# Fournisseurs dont la température est bornée à 1
_UNIT_TEMPERATURE_PROVIDERS = {ProviderType.ANTHROPIC, ProviderType.COHERE}


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ConfigIssue:
    severity: IssueSeverity
    code: str
    message: str
    model_id: int | None = None
    rule_id: int | None = None


def temperature_bounds(provider: ProviderType) -> tuple[float, float]:
    """Bornes de température acceptées par le fournisseur."""
    if provider in _UNIT_TEMPERATURE_PROVIDERS:
        return 0.0, 1.0
    return 0.0, 2.0


def settings_errors(provider: ProviderType, settings: ModelSettings) -> list[str]:
    """Liste des paramètres hors bornes."""
    errors = []
    low, high = temperature_bounds(provider)
    if settings.temperature is not None and not low <= settings.temperature <= high:
        errors.append(f"temperature must be within [{low:g}, {high:g}] for {provider.value}")
    if settings.max_tokens is not None and settings.max_tokens < 1:
        errors.append("max_tokens must be >= 1")
    if settings.top_p is not None and not 0.0 <= settings.top_p <= 1.0:
        errors.append("top_p must be within [0, 1]")
    for name in ("frequency_penalty", "presence_penalty"):
        value = getattr(settings, name)
        if value is not None and not -2.0 <= value <= 2.0:
            errors.append(f"{name} must be within [-2, 2]")
    return errors


def validate_model(model: AIModel) -> list[str]:
    errors = settings_errors(model.provider, model.settings)
    if not 0.0 <= model.confidence_threshold <= 1.0:
        errors.append("confidence_threshold must be within [0, 1]")
    if model.fallback_model_id == model.id:
        errors.append("a model cannot be its own fallback")
    return errors


def validate_snapshot(snapshot: ConfigSnapshot) -> list[ConfigIssue]:
    """Contrôle complet d'un instantané."""
    issues: list[ConfigIssue] = []
    by_id = snapshot.models_by_id()
    active = [m for m in snapshot.models if m.active]

    # Défaut
    if snapshot.default_model_id is not None:
        target = by_id.get(snapshot.default_model_id)
        if target is None or not target.active:
            issues.append(
                ConfigIssue(
                    IssueSeverity.ERROR,
                    "DEFAULT_INACTIVE",
                    f"Default pointer targets model {snapshot.default_model_id} which is missing or inactive",
                    model_id=snapshot.default_model_id,
                )
            )
    else:
        flagged = [m for m in active if m.is_default]
        if not flagged:
            issues.append(
                ConfigIssue(
                    IssueSeverity.ERROR if active else IssueSeverity.WARNING,
                    "NO_DEFAULT",
                    "No active default model: unmatched requests will fail with NoModelAvailable",
                )
            )
        elif len(flagged) > 1:
            issues.append(
                ConfigIssue(
                    IssueSeverity.WARNING,
                    "MULTIPLE_DEFAULTS",
                    f"Several models are flagged as default: {[m.id for m in flagged]}",
                )
            )

    # Modèles
    for model in snapshot.models:
        for message in validate_model(model):
            issues.append(ConfigIssue(IssueSeverity.ERROR, "INVALID_MODEL", message, model_id=model.id))

    # Fallbacks
    graph = FallbackGraph(snapshot.models)
    for cycle in graph.cycles():
        path = " -> ".join(str(i) for i in cycle)
        issues.append(
            ConfigIssue(
                IssueSeverity.ERROR,
                "FALLBACK_CYCLE",
                f"Fallback cycle: {path}",
                model_id=cycle[0],
            )
        )
    for model in snapshot.models:
        if model.fallback_model_id is None or model.fallback_model_id == model.id:
            continue
        target = by_id.get(model.fallback_model_id)
        if target is None:
            issues.append(
                ConfigIssue(
                    IssueSeverity.ERROR,
                    "FALLBACK_MISSING",
                    f"Model {model.id} falls back to unknown model {model.fallback_model_id}",
                    model_id=model.id,
                )
            )
        elif not target.active:
            issues.append(
                ConfigIssue(
                    IssueSeverity.WARNING,
                    "FALLBACK_INACTIVE",
                    f"Model {model.id} falls back to inactive model {target.id}",
                    model_id=model.id,
                )
            )

    # Règles
    for rule in snapshot.rules:
        if rule.model_id not in by_id:
            issues.append(
                ConfigIssue(
                    IssueSeverity.WARNING,
                    "RULE_ORPHAN",
                    f"Rule {rule.id} ('{rule.name}') targets unknown model {rule.model_id}",
                    rule_id=rule.id,
                )
            )
        if rule.invalid_reason is not None:
            issues.append(
                ConfigIssue(
                    IssueSeverity.ERROR,
                    "RULE_MALFORMED",
                    f"Rule {rule.id} ('{rule.name}'): {rule.invalid_reason}",
                    model_id=rule.model_id,
                    rule_id=rule.id,
                )
            )

    return issues
