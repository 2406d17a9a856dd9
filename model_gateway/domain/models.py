"""Domain Models - Pure Python, AUCUNE dépendance externe.

Ce module contient les entités métier pures.
INTERDIT: SQLAlchemy, Pydantic, imports de model_gateway.adapters/api/db
AUTORISÉ: dataclasses, enum, typing, datetime

Les entités de configuration sont immuables (frozen): un appel au moteur
travaille sur un instantané qui ne peut pas changer pendant l'appel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Union

from model_gateway.domain.errors import InvalidRuleCondition, ModelGatewayError


ConditionValue = Union[str, int, float]


# =============================================================================
# Enums
# =============================================================================


class ProviderType(str, Enum):
    """Fournisseurs LLM configurables depuis le dashboard."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    GROK = "grok"
    HUGGINGFACE = "huggingface"
    OPENROUTER = "openrouter"
    MISTRAL = "mistral"
    DEEPSEEK = "deepseek"
    COHERE = "cohere"
    CUSTOM = "custom"


class ConditionOperator(str, Enum):
    """Opérateurs autorisés dans une condition de règle."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class SelectionReason(str, Enum):
    """Pourquoi un modèle a été choisi."""

    RULE = "rule"
    DEFAULT = "default"
    PINNED = "pinned"


# =============================================================================
# Configuration Entities
# =============================================================================


@dataclass(frozen=True)
class ModelSettings:
    """Paramètres d'appel d'un modèle."""

    model_name: str = ""
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    logprobs: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ModelSettings":
        data = data or {}
        return cls(
            model_name=str(data.get("model_name") or ""),
            temperature=_optional_float(data.get("temperature")),
            max_tokens=_optional_int(data.get("max_tokens")),
            top_p=_optional_float(data.get("top_p")),
            frequency_penalty=_optional_float(data.get("frequency_penalty")),
            presence_penalty=_optional_float(data.get("presence_penalty")),
            logprobs=bool(data.get("logprobs", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "model_name": self.model_name,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
            "logprobs": self.logprobs,
        }


@dataclass(frozen=True)
class AIModel:
    """Modèle IA configuré."""

    id: int
    name: str
    provider: ProviderType
    settings: ModelSettings = field(default_factory=ModelSettings)
    description: str = ""
    api_key: str | None = field(default=None, repr=False)
    active: bool = True
    is_default: bool = False
    fallback_model_id: int | None = None
    confidence_threshold: float = 0.7

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class RuleCondition:
    """Condition {field, operator, value} d'une règle d'activation."""

    field: str
    operator: ConditionOperator
    value: ConditionValue

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuleCondition":
        """Construit une condition depuis le JSON du dashboard.

        Raises:
            InvalidRuleCondition: champ vide, opérateur inconnu ou valeur non scalaire
        """
        if not isinstance(data, Mapping):
            raise InvalidRuleCondition(f"Condition must be an object, got {type(data).__name__}")

        field_name = data.get("field")
        if not isinstance(field_name, str) or not field_name.strip():
            raise InvalidRuleCondition("Condition field is required")

        raw_operator = data.get("operator")
        try:
            operator = ConditionOperator(raw_operator)
        except ValueError:
            raise InvalidRuleCondition(f"Unknown condition operator: {raw_operator!r}")

        value = data.get("value")
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise InvalidRuleCondition(
                f"Condition value for '{field_name}' must be a string or a number"
            )

        return cls(field=field_name.strip(), operator=operator, value=value)

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": self.value}


@dataclass(frozen=True)
class ModelActivationRule:
    """Règle d'activation d'un modèle.

    query_type / use_case / tenant_id à None = joker.
    invalid_reason est renseigné quand les conditions stockées n'ont pas pu
    être lues: la règle ne matche alors jamais.
    """

    id: int
    model_id: int
    name: str
    priority: int = 1
    active: bool = True
    query_type: str | None = None
    use_case: str | None = None
    tenant_id: int | None = None
    conditions: tuple[RuleCondition, ...] = ()
    invalid_reason: str | None = None

    @property
    def is_wildcard(self) -> bool:
        return (
            self.query_type is None
            and self.use_case is None
            and self.tenant_id is None
            and not self.conditions
        )


@dataclass(frozen=True)
class WidgetSettings:
    """Réglages d'un widget utilisés par le moteur (modèle épinglé, prompt système)."""

    id: int
    name: str = ""
    ai_model_id: int | None = None
    system_prompt: str | None = None
    settings: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfigSnapshot:
    """Instantané immuable de la configuration pour un appel."""

    models: tuple[AIModel, ...] = ()
    rules: tuple[ModelActivationRule, ...] = ()
    default_model_id: int | None = None

    def get_model(self, model_id: int | None) -> AIModel | None:
        if model_id is None:
            return None
        return next((m for m in self.models if m.id == model_id), None)

    def models_by_id(self) -> dict[int, AIModel]:
        return {m.id: m for m in self.models}

    def rules_for(self, model_id: int) -> list[ModelActivationRule]:
        return [r for r in self.rules if r.model_id == model_id]


@dataclass(frozen=True)
class BrandingSetting:
    """Preset de branding (couleurs, typographie, éléments)."""

    id: int
    user_id: int
    name: str
    colors: Mapping[str, str] = field(default_factory=dict)
    typography: Mapping[str, str] = field(default_factory=dict)
    elements: Mapping[str, str] = field(default_factory=dict)
    logo_url: str | None = None
    is_active: bool = True
    is_default: bool = False


# =============================================================================
# Request / Invocation DTOs
# =============================================================================


@dataclass(frozen=True)
class RequestContext:
    """Contexte d'une requête de chat entrante."""

    query_type: str | None = None
    use_case: str | None = None
    tenant_id: int | None = None
    attributes: Mapping[str, ConditionValue] = field(default_factory=dict)


@dataclass
class ChatMessage:
    """Message de chat."""

    role: str
    content: str


@dataclass
class ChatPrompt:
    """Prompt envoyé au fournisseur."""

    messages: list[ChatMessage]
    system_prompt: str | None = None

    @property
    def last_user_message(self) -> str:
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return ""


@dataclass
class ProviderReply:
    """Réponse d'un fournisseur (ProviderClient.invoke)."""

    text: str
    tokens_in: int = 0
    tokens_out: int = 0
    confidence: float | None = None
    latency_ms: float | None = None


@dataclass(frozen=True)
class SelectionResult:
    """Résultat de selectModel."""

    model: AIModel
    reason: SelectionReason
    rule: ModelActivationRule | None = None


@dataclass
class AttemptRecord:
    """Une tentative d'appel dans la cascade."""

    model_id: int
    provider: str
    success: bool
    latency_ms: float
    tokens_in: int = 0
    tokens_out: int = 0
    confidence: float | None = None
    met_threshold: bool = False
    error: str | None = None
    error_kind: str | None = None


@dataclass
class CascadeResult:
    """Résultat de invokeWithFallback."""

    selected_model_id: int
    attempts: list[AttemptRecord] = field(default_factory=list)
    reply: ProviderReply | None = None
    responding_model_id: int | None = None
    below_threshold: bool = False
    error: ModelGatewayError | None = None
    timed_out: bool = False
    cancelled: bool = False
    cycle_detected: bool = False
    configuration_errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.reply is not None

    @property
    def used_fallback(self) -> bool:
        return len(self.attempts) > 1

    @property
    def total_tokens_in(self) -> int:
        return sum(a.tokens_in for a in self.attempts)

    @property
    def total_tokens_out(self) -> int:
        return sum(a.tokens_out for a in self.attempts)

    @property
    def total_latency_ms(self) -> float:
        return sum(a.latency_ms for a in self.attempts)

    def responding_attempt(self) -> AttemptRecord | None:
        if self.responding_model_id is None:
            return None
        for attempt in reversed(self.attempts):
            if attempt.model_id == self.responding_model_id and attempt.success:
                return attempt
        return None


# =============================================================================
# Usage Log
# =============================================================================


@dataclass
class UsageLogEntry:
    """Trace d'utilisation d'un modèle (une entrée par requête routée)."""

    model_id: int
    success: bool
    tokens_input: int = 0
    tokens_output: int = 0
    response_time: float = 0.0
    confidence_score: float | None = None
    fallback_used: bool = False
    error_message: str | None = None
    tenant_id: int | None = None
    widget_id: int | None = None
    query_type: str | None = None
    use_case: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# Helpers
# =============================================================================


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)
