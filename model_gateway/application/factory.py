"""Factory - Dependency Injection / Wiring.

Architecture Hexagonale: Le Factory assemble les dépendances pour créer
les Use Cases avec leurs ports concrets (adapters).

La source de configuration est choisie par `settings.config_source`:
- database  : adapters SQLAlchemy (PostgreSQL, SQLite en test)
- memory    : adapters en mémoire partagés par le processus
- admin_api : lecture seule via l'API REST du dashboard
"""

import logging
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession

from model_gateway.core.config import settings
from model_gateway.adapters.http import AdminAPIConfigAdapter
from model_gateway.adapters.in_memory import (
    InMemoryBrandingAdapter,
    InMemoryModelConfigAdapter,
    InMemoryUsageLogAdapter,
)
from model_gateway.adapters.postgres import (
    BrandingRepositoryAdapter,
    ModelConfigRepositoryAdapter,
    UsageLogAdapter,
)
from model_gateway.adapters.postgres.base import SessionFactory
from model_gateway.adapters.providers import ProviderRegistry
from model_gateway.application.engines.cascade import FallbackCascade
from model_gateway.application.use_cases import (
    ManageBrandingUseCase,
    ManageModelsUseCase,
    ManageRulesUseCase,
    ModelAnalyticsUseCase,
    RouteChatRequestUseCase,
    TryModelUseCase,
)
from model_gateway.domain.errors import ConfigurationError
from model_gateway.ports.branding_repository import BrandingRepositoryPort
from model_gateway.ports.model_config import ModelConfigRepositoryPort, ModelConfigSourcePort
from model_gateway.ports.usage_log import UsageLogPort

logger = logging.getLogger(__name__)


# =============================================================================
# In-memory stores (config_source=memory)
# =============================================================================


class _MemoryStores:
    """Stores en mémoire partagés entre les requêtes du processus."""

    def __init__(self):
        self.config = InMemoryModelConfigAdapter()
        self.usage_log = InMemoryUsageLogAdapter()
        self.branding = InMemoryBrandingAdapter()


_memory_stores: _MemoryStores | None = None


def get_memory_stores() -> _MemoryStores:
    global _memory_stores
    if _memory_stores is None:
        _memory_stores = _MemoryStores()
    return _memory_stores


def reset_memory_stores() -> None:
    """Vide les stores en mémoire (tests)."""
    global _memory_stores
    _memory_stores = None


# =============================================================================
# Ports
# =============================================================================


def create_config_repository(
    session: AsyncSession | None = None,
    session_factory: SessionFactory | None = None,
) -> ModelConfigRepositoryPort:
    """Repository de configuration (écriture).

    Sans session, chaque opération SQL ouvre sa propre session via session_factory.

    Raises:
        ConfigurationError: config_source=admin_api (lecture seule)
    """
    if settings.config_source == "memory":
        return get_memory_stores().config
    if settings.config_source == "admin_api":
        raise ConfigurationError(
            f"Models are managed by the admin API at {settings.admin_api_url}; "
            "this gateway only reads them"
        )
    return ModelConfigRepositoryAdapter(session, session_factory)


def create_config_source(
    session: AsyncSession | None = None,
    session_factory: SessionFactory | None = None,
) -> ModelConfigSourcePort:
    """Source de configuration (lecture) pour le moteur de sélection."""
    if settings.config_source == "admin_api":
        return AdminAPIConfigAdapter(
            base_url=settings.admin_api_url,
            token=settings.admin_api_token or None,
        )
    return create_config_repository(session, session_factory)


def create_usage_log(
    session: AsyncSession | None = None,
    session_factory: SessionFactory | None = None,
) -> UsageLogPort:
    """Journal d'utilisation (en mémoire hors config_source=database)."""
    if settings.config_source == "database":
        return UsageLogAdapter(session, session_factory)
    return get_memory_stores().usage_log


def create_branding_repository(session: AsyncSession | None = None) -> BrandingRepositoryPort:
    if settings.config_source == "database":
        return BrandingRepositoryAdapter(session)
    return get_memory_stores().branding


@lru_cache()
def get_provider_registry() -> ProviderRegistry:
    """Registre des clients fournisseurs (un seul par processus)."""
    registry = ProviderRegistry.from_settings(settings)
    logger.info(
        f"Provider registry ready: {', '.join(p.value for p in registry.providers())}"
    )
    return registry


# =============================================================================
# Use Cases
# =============================================================================


def create_route_chat_request_use_case(
    session: AsyncSession | None = None,
    providers: ProviderRegistry | None = None,
    usage_log: UsageLogPort | None = None,
    enable_usage_log: bool | None = None,
    session_factory: SessionFactory | None = None,
) -> RouteChatRequestUseCase:
    """Factory pour créer le use case RouteChatRequest.

    Cette factory assemble toutes les dépendances:
    - Source de configuration (selon settings.config_source)
    - Cascade de fallback (budget et profondeur depuis les settings)
    - Journal d'utilisation (optionnel)

    Les appels fournisseurs peuvent durer tout le budget de la cascade: la
    route HTTP passe une session_factory plutôt qu'une session, pour que la
    lecture du snapshot et l'écriture du journal n'occupent chacune une
    connexion du pool que le temps de leur requête SQL.

    Args:
        session: Session SQLAlchemy partagée (tests, CLI)
        providers: Registre de clients (défaut: registre global)
        usage_log: Instance optionnelle de UsageLogPort (override enable_usage_log)
        enable_usage_log: Si None, suit settings.log_usage
        session_factory: Fabrique de sessions courtes (config_source=database)

    Returns:
        Instance du use case prête à l'emploi
    """
    if enable_usage_log is None:
        enable_usage_log = settings.log_usage
    if usage_log is None and enable_usage_log:
        usage_log = create_usage_log(session, session_factory)

    cascade = FallbackCascade(
        providers=providers or get_provider_registry(),
        timeout_seconds=settings.cascade_timeout_seconds,
        max_depth=settings.max_cascade_depth,
    )

    return RouteChatRequestUseCase(
        config_source=create_config_source(session, session_factory),
        cascade=cascade,
        usage_log=usage_log,
    )


def create_manage_models_use_case(session: AsyncSession | None = None) -> ManageModelsUseCase:
    """Factory pour créer le use case ManageModels."""
    return ManageModelsUseCase(repository=create_config_repository(session))


def create_manage_rules_use_case(session: AsyncSession | None = None) -> ManageRulesUseCase:
    """Factory pour créer le use case ManageRules."""
    return ManageRulesUseCase(repository=create_config_repository(session))


def create_manage_branding_use_case(session: AsyncSession | None = None) -> ManageBrandingUseCase:
    """Factory pour créer le use case ManageBranding."""
    return ManageBrandingUseCase(repository=create_branding_repository(session))


def create_model_analytics_use_case(session: AsyncSession | None = None) -> ModelAnalyticsUseCase:
    """Factory pour créer le use case ModelAnalytics."""
    return ModelAnalyticsUseCase(
        usage_log=create_usage_log(session),
        config_source=create_config_source(session),
    )


def create_try_model_use_case(
    providers: ProviderRegistry | None = None,
    session_factory: SessionFactory | None = None,
) -> TryModelUseCase:
    """Factory pour créer le use case TryModel (appel direct, sans fallback)."""
    cascade = FallbackCascade(
        providers=providers or get_provider_registry(),
        timeout_seconds=settings.provider_timeout_seconds,
        max_depth=0,
    )
    return TryModelUseCase(
        config_source=create_config_source(session_factory=session_factory),
        cascade=cascade,
    )
