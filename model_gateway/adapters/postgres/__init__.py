"""PostgreSQL Adapters - Implémentations SQLAlchemy des ports de stockage."""

from model_gateway.adapters.postgres.model_config_repository_adapter import (
    ModelConfigRepositoryAdapter,
)
from model_gateway.adapters.postgres.usage_log_adapter import UsageLogAdapter
from model_gateway.adapters.postgres.branding_repository_adapter import BrandingRepositoryAdapter

__all__ = [
    "ModelConfigRepositoryAdapter",
    "UsageLogAdapter",
    "BrandingRepositoryAdapter",
]
