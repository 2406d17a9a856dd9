"""Use Cases - Application Layer orchestration.

Architecture Hexagonale: Les Use Cases orchestrent les appels au Domain
et aux Ports pour implémenter les cas d'utilisation de l'application.
"""

from model_gateway.application.use_cases.route_chat_request import (
    RouteChatRequestUseCase,
    RouteChatCommand,
    RouteChatResult,
    RoutePreview,
    RouteOutcome,
)

from model_gateway.application.use_cases.manage_models import (
    ManageModelsUseCase,
    AIModelDTO,
    CreateModelCommand,
    UpdateModelCommand,
)

from model_gateway.application.use_cases.manage_rules import (
    ManageRulesUseCase,
    RuleDTO,
    RuleCommand,
)

from model_gateway.application.use_cases.manage_branding import (
    ManageBrandingUseCase,
    BrandingCommand,
)

from model_gateway.application.use_cases.model_analytics import ModelAnalyticsUseCase

from model_gateway.application.use_cases.try_model import (
    TryModelUseCase,
    TryModelCommand,
    TryModelResult,
)


__all__ = [
    # Chat
    "RouteChatRequestUseCase",
    "RouteChatCommand",
    "RouteChatResult",
    "RoutePreview",
    "RouteOutcome",
    # Models
    "ManageModelsUseCase",
    "AIModelDTO",
    "CreateModelCommand",
    "UpdateModelCommand",
    # Rules
    "ManageRulesUseCase",
    "RuleDTO",
    "RuleCommand",
    # Branding
    "ManageBrandingUseCase",
    "BrandingCommand",
    # Analytics
    "ModelAnalyticsUseCase",
    # Try
    "TryModelUseCase",
    "TryModelCommand",
    "TryModelResult",
]
