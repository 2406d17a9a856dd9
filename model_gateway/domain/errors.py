"""Domain Errors - Hiérarchie d'exceptions du moteur de sélection.

AUCUNE dépendance externe.

Deux familles distinctes:
- ConfigurationError: la configuration (modèles, règles, fallbacks) est invalide
- ProviderError: le fournisseur LLM a échoué (timeout, auth, rate limit, ...)
"""

from __future__ import annotations

from enum import Enum


class ModelGatewayError(Exception):
    """Base de toutes les erreurs du gateway."""

    code = "MODEL_GATEWAY_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ModelGatewayError):
    """La configuration est invalide ou incomplète."""

    code = "CONFIGURATION_ERROR"


class NoModelAvailable(ConfigurationError):
    """Aucune règle ne correspond et aucun modèle par défaut n'est actif."""

    code = "NO_MODEL_AVAILABLE"

    def __init__(self, message: str = "No active model matched and no default model is configured"):
        super().__init__(message)


class FallbackCycleError(ConfigurationError):
    """La chaîne de fallback forme un cycle."""

    code = "FALLBACK_CYCLE"

    def __init__(self, cycle: list[int]):
        path = " -> ".join(str(model_id) for model_id in cycle)
        super().__init__(f"Fallback chain forms a cycle: {path}")
        self.cycle = cycle


class InvalidRuleCondition(ConfigurationError):
    """Une condition de règle est mal formée."""

    code = "INVALID_RULE_CONDITION"


class DefaultModelConflict(ConfigurationError):
    """Opération refusée car elle casserait l'invariant du défaut unique."""

    code = "DEFAULT_CONFLICT"


class EntityNotFound(ModelGatewayError):
    """Entité introuvable."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ProviderErrorKind(str, Enum):
    """Catégorie d'échec d'un fournisseur."""

    TIMEOUT = "timeout"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    BAD_REQUEST = "bad_request"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ProviderError(ModelGatewayError):
    """Échec d'appel à un fournisseur LLM. Déclenche la cascade de fallback."""

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        provider: str,
        raw_message: str,
        kind: ProviderErrorKind = ProviderErrorKind.UNKNOWN,
        status_code: int | None = None,
    ):
        super().__init__(f"{provider} failed ({kind.value}): {raw_message}")
        self.provider = provider
        self.raw_message = raw_message
        self.kind = kind
        self.status_code = status_code

    @classmethod
    def from_status(cls, provider: str, status_code: int, raw_message: str) -> "ProviderError":
        """Construit l'erreur à partir d'un code HTTP."""
        if status_code in (401, 403):
            kind = ProviderErrorKind.AUTH
        elif status_code == 429:
            kind = ProviderErrorKind.RATE_LIMIT
        elif status_code in (408, 504):
            kind = ProviderErrorKind.TIMEOUT
        elif status_code >= 500:
            kind = ProviderErrorKind.SERVER
        elif status_code >= 400:
            kind = ProviderErrorKind.BAD_REQUEST
        else:
            kind = ProviderErrorKind.UNKNOWN
        return cls(provider, raw_message, kind=kind, status_code=status_code)


class CascadeTimeout(ModelGatewayError):
    """Le budget temps de la cascade est épuisé sans réponse."""

    code = "CASCADE_TIMEOUT"
