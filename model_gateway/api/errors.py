"""Conversion des erreurs du gateway en réponses HTTP.

Succès: {"data": ..., "success": true}
Erreur: {"detail": {"error": {"code": ..., "message": ...}}}
"""

from typing import Any

from fastapi import HTTPException

from model_gateway.domain.errors import (
    CascadeTimeout,
    ConfigurationError,
    DefaultModelConflict,
    EntityNotFound,
    ModelGatewayError,
    NoModelAvailable,
    ProviderError,
)


def envelope(data: Any) -> dict:
    """Enveloppe de succès de l'API admin."""
    return {"data": data, "success": True}


def error_detail(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def http_status_for(exc: ModelGatewayError) -> int:
    """Code HTTP d'une erreur du gateway (les sous-classes d'abord)."""
    if isinstance(exc, EntityNotFound):
        return 404
    if isinstance(exc, DefaultModelConflict):
        return 409
    if isinstance(exc, NoModelAvailable):
        return 503
    if isinstance(exc, ConfigurationError):
        return 422
    if isinstance(exc, CascadeTimeout):
        return 504
    if isinstance(exc, ProviderError):
        return 502
    return 500


def to_http_exception(exc: ModelGatewayError) -> HTTPException:
    return HTTPException(
        status_code=http_status_for(exc),
        detail=error_detail(exc.code, exc.message),
    )
