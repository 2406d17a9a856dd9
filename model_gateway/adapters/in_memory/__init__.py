"""In-Memory Adapters - Implémentations en mémoire des ports de stockage."""

from model_gateway.adapters.in_memory.model_config_adapter import InMemoryModelConfigAdapter
from model_gateway.adapters.in_memory.usage_log_adapter import InMemoryUsageLogAdapter
from model_gateway.adapters.in_memory.branding_adapter import InMemoryBrandingAdapter

__all__ = [
    "InMemoryModelConfigAdapter",
    "InMemoryUsageLogAdapter",
    "InMemoryBrandingAdapter",
]
