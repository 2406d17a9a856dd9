"""Admin API endpoints for the model gateway."""

from model_gateway.api.admin import (
    analytics,
    branding,
    models,
)

__all__ = [
    "analytics",
    "branding",
    "models",
]
