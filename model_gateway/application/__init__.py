"""Application Layer - Use Cases and Orchestration.

Architecture Hexagonale: La couche Application orchestre les appels
entre le Domain (logique pure) et les Ports (interfaces).

Structure:
- engines/   : Cascade de fallback
- use_cases/ : Les cas d'utilisation de l'application
- factory.py : Wiring des dépendances (dependency injection)
"""

from model_gateway.application.use_cases import (
    # Chat
    RouteChatRequestUseCase,
    RouteChatCommand,
    RouteChatResult,
    RoutePreview,
    RouteOutcome,
    # Models
    ManageModelsUseCase,
    AIModelDTO,
    CreateModelCommand,
    UpdateModelCommand,
    # Rules
    ManageRulesUseCase,
    RuleDTO,
    RuleCommand,
    # Branding
    ManageBrandingUseCase,
    BrandingCommand,
    # Analytics
    ModelAnalyticsUseCase,
    # Try
    TryModelUseCase,
    TryModelCommand,
    TryModelResult,
)

from model_gateway.application.factory import (
    create_route_chat_request_use_case,
    create_manage_models_use_case,
    create_manage_rules_use_case,
    create_manage_branding_use_case,
    create_model_analytics_use_case,
    create_try_model_use_case,
    get_provider_registry,
)


__all__ = [
    # Chat Use Cases
    "RouteChatRequestUseCase",
    "RouteChatCommand",
    "RouteChatResult",
    "RoutePreview",
    "RouteOutcome",
    # Model Use Cases
    "ManageModelsUseCase",
    "AIModelDTO",
    "CreateModelCommand",
    "UpdateModelCommand",
    # Rule Use Cases
    "ManageRulesUseCase",
    "RuleDTO",
    "RuleCommand",
    # Branding Use Cases
    "ManageBrandingUseCase",
    "BrandingCommand",
    # Analytics Use Cases
    "ModelAnalyticsUseCase",
    # Try Use Cases
    "TryModelUseCase",
    "TryModelCommand",
    "TryModelResult",
    # Factory
    "create_route_chat_request_use_case",
    "create_manage_models_use_case",
    "create_manage_rules_use_case",
    "create_manage_branding_use_case",
    "create_model_analytics_use_case",
    "create_try_model_use_case",
    "get_provider_registry",
]
