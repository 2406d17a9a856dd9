"""Engines - exécution de la cascade de fallback."""

from .cascade import FallbackCascade, ProviderResolver, meets_threshold

__all__ = [
    "FallbackCascade",
    "ProviderResolver",
    "meets_threshold",
]
