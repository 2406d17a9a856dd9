"""Ports Layer - Interfaces abstraites (Architecture Hexagonale).

Les ports définissent les contrats que les adapters implémentent:
- ProviderClientPort: appel des fournisseurs LLM
- ModelConfigSourcePort / ModelConfigRepositoryPort: configuration des modèles
- UsageLogPort: journal d'utilisation
- BrandingRepositoryPort: presets de branding
"""

from model_gateway.ports.provider_client import ProviderClientPort
from model_gateway.ports.model_config import ModelConfigSourcePort, ModelConfigRepositoryPort
from model_gateway.ports.usage_log import UsageLogPort
from model_gateway.ports.branding_repository import BrandingRepositoryPort

__all__ = [
    "ProviderClientPort",
    "ModelConfigSourcePort",
    "ModelConfigRepositoryPort",
    "UsageLogPort",
    "BrandingRepositoryPort",
]
