"""FastAPI dependencies: use cases câblés sur la session de la requête."""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from model_gateway.adapters.providers import ProviderRegistry
from model_gateway.api.errors import to_http_exception
from model_gateway.application import (
    ManageBrandingUseCase,
    ManageModelsUseCase,
    ManageRulesUseCase,
    ModelAnalyticsUseCase,
    RouteChatRequestUseCase,
    TryModelUseCase,
    create_manage_branding_use_case,
    create_manage_models_use_case,
    create_manage_rules_use_case,
    create_model_analytics_use_case,
    create_route_chat_request_use_case,
    create_try_model_use_case,
    get_provider_registry,
)
from model_gateway.adapters.postgres.base import SessionFactory
from model_gateway.db.session import get_db, get_session_factory
from model_gateway.domain.errors import ConfigurationError


def get_providers() -> ProviderRegistry:
    """Registre des clients fournisseurs (surchargé dans les tests)."""
    return get_provider_registry()


def get_current_user_id(
    x_user_id: Optional[int] = Header(None, description="Owner of branding presets"),
) -> int:
    """Utilisateur propriétaire des presets (1 pour un dashboard mono-utilisateur)."""
    return x_user_id if x_user_id is not None else 1


def get_route_chat_use_case(
    session_factory: SessionFactory = Depends(get_session_factory),
    providers: ProviderRegistry = Depends(get_providers),
) -> RouteChatRequestUseCase:
    # Pas de session de requête: la cascade ne doit pas garder de connexion
    return create_route_chat_request_use_case(session_factory=session_factory, providers=providers)


def get_models_use_case(db: AsyncSession = Depends(get_db)) -> ManageModelsUseCase:
    try:
        return create_manage_models_use_case(db)
    except ConfigurationError as e:
        raise to_http_exception(e)


def get_rules_use_case(db: AsyncSession = Depends(get_db)) -> ManageRulesUseCase:
    try:
        return create_manage_rules_use_case(db)
    except ConfigurationError as e:
        raise to_http_exception(e)


def get_branding_use_case(db: AsyncSession = Depends(get_db)) -> ManageBrandingUseCase:
    return create_manage_branding_use_case(db)


def get_analytics_use_case(db: AsyncSession = Depends(get_db)) -> ModelAnalyticsUseCase:
    return create_model_analytics_use_case(db)


def get_try_model_use_case(
    session_factory: SessionFactory = Depends(get_session_factory),
    providers: ProviderRegistry = Depends(get_providers),
) -> TryModelUseCase:
    return create_try_model_use_case(providers=providers, session_factory=session_factory)
