"""Domain Layer - Logique métier pure.

Ce package contient:
- models.py: entités de configuration et DTOs d'invocation
- errors.py: hiérarchie d'exceptions
- conditions.py: évaluation des conditions de règles
- selection.py: sélection du modèle (selectModel)
- fallback.py: graphe des fallbacks
- defaults.py: pointeurs de défaut
- validation.py: contrôles de cohérence
- analytics.py: agrégats d'utilisation
- branding.py: fusion et variables CSS
"""

from model_gateway.domain.models import (
    AIModel,
    AttemptRecord,
    BrandingSetting,
    CascadeResult,
    ChatMessage,
    ChatPrompt,
    ConditionOperator,
    ConfigSnapshot,
    ModelActivationRule,
    ModelSettings,
    ProviderReply,
    ProviderType,
    RequestContext,
    RuleCondition,
    SelectionReason,
    SelectionResult,
    UsageLogEntry,
    WidgetSettings,
)
from model_gateway.domain.errors import (
    CascadeTimeout,
    ConfigurationError,
    DefaultModelConflict,
    EntityNotFound,
    FallbackCycleError,
    InvalidRuleCondition,
    ModelGatewayError,
    NoModelAvailable,
    ProviderError,
    ProviderErrorKind,
)
from model_gateway.domain.selection import ModelSelector, select_model
from model_gateway.domain.fallback import FallbackGraph, HopStatus

__all__ = [
    # Models
    "AIModel",
    "AttemptRecord",
    "BrandingSetting",
    "CascadeResult",
    "ChatMessage",
    "ChatPrompt",
    "ConditionOperator",
    "ConfigSnapshot",
    "ModelActivationRule",
    "ModelSettings",
    "ProviderReply",
    "ProviderType",
    "RequestContext",
    "RuleCondition",
    "SelectionReason",
    "SelectionResult",
    "UsageLogEntry",
    "WidgetSettings",
    # Errors
    "CascadeTimeout",
    "ConfigurationError",
    "DefaultModelConflict",
    "EntityNotFound",
    "FallbackCycleError",
    "InvalidRuleCondition",
    "ModelGatewayError",
    "NoModelAvailable",
    "ProviderError",
    "ProviderErrorKind",
    # Engine
    "ModelSelector",
    "select_model",
    "FallbackGraph",
    "HopStatus",
]
