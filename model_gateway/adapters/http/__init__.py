"""HTTP Adapters - Sources de configuration distantes."""

from model_gateway.adapters.http.admin_api_adapter import AdminAPIConfigAdapter

__all__ = ["AdminAPIConfigAdapter"]
