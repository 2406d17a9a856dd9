"""Chat API - routage d'une requête vers un modèle avec fallback.

Le use case ne lève pas d'exception: chaque RouteOutcome est converti ici
en réponse HTTP, au format {"detail": {"error": ...}}. Si le client se
déconnecte, la cascade s'arrête avant la tentative suivante.
"""

import asyncio
import contextlib
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from model_gateway.api.errors import error_detail
from model_gateway.application import (
    RouteChatCommand,
    RouteChatRequestUseCase,
    RouteChatResult,
    RouteOutcome,
)
from model_gateway.api.dependencies import get_route_chat_use_case
from model_gateway.domain.models import CascadeResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

DISCONNECT_POLL_SECONDS = 0.5

# Statut HTTP par issue d'échec
OUTCOME_STATUS = {
    RouteOutcome.NO_MODEL_AVAILABLE: 503,
    RouteOutcome.CONFIGURATION_ERROR: 422,
    RouteOutcome.PROVIDER_FAILURE: 502,
    RouteOutcome.TIMEOUT: 504,
    RouteOutcome.CANCELLED: 499,
}


# =============================================================================
# Request/Response Models
# =============================================================================


class ChatMessageIn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    """Requête de chat entrante (clés camelCase acceptées)."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessageIn] = Field(..., min_length=1)
    query_type: Optional[str] = Field(None, alias="queryType")
    use_case: Optional[str] = Field(None, alias="useCase")
    tenant_id: Optional[int] = Field(None, alias="tenantId")
    widget_id: Optional[int] = Field(None, alias="widgetId")
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    attributes: dict[str, Any] = Field(default_factory=dict)
    timeout_seconds: Optional[float] = Field(None, alias="timeoutSeconds", gt=0)

    def to_command(self) -> RouteChatCommand:
        return RouteChatCommand(
            messages=[{"role": m.role, "content": m.content} for m in self.messages],
            query_type=self.query_type,
            use_case=self.use_case,
            tenant_id=self.tenant_id,
            attributes=self.attributes,
            widget_id=self.widget_id,
            system_prompt=self.system_prompt,
            timeout_seconds=self.timeout_seconds,
        )


def build_metadata(result: RouteChatResult) -> dict[str, Any]:
    """Métadonnées de réponse: modèle répondant, tentatives, tokens."""
    cascade: CascadeResult | None = result.cascade
    if cascade is None:
        return {}

    responding = cascade.responding_attempt()
    return {
        "respondingModelId": cascade.responding_model_id,
        "selectedModelId": cascade.selected_model_id,
        "selectionReason": result.selection.reason.value if result.selection else None,
        "attempts": [
            {
                "modelId": a.model_id,
                "provider": a.provider,
                "success": a.success,
                "latencyMs": round(a.latency_ms, 2),
                "confidence": a.confidence,
                "metThreshold": a.met_threshold,
                "error": a.error,
                "errorKind": a.error_kind,
            }
            for a in cascade.attempts
        ],
        "usedFallback": cascade.used_fallback,
        "belowThreshold": cascade.below_threshold,
        "provider": responding.provider if responding else None,
        "response_time": round(cascade.total_latency_ms / 1000, 3),
        "tokens_input": responding.tokens_in if responding else 0,
        "tokens_output": responding.tokens_out if responding else 0,
        "cycleDetected": cascade.cycle_detected,
        "configurationErrors": list(cascade.configuration_errors),
    }


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling fallback cascade")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@contextlib.asynccontextmanager
async def watch_disconnect(request: Request):
    """Yield an event set when the client disconnects.

    The polling task is cancelled and awaited on exit.
    """
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        yield cancel_event
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher


# =============================================================================
# Endpoint
# =============================================================================


@router.post(
    "/chat",
    summary="Route a chat request",
    description="""
Selects a model from the activation rules (or the default model), invokes it
and follows the fallback chain on provider failure or low confidence.

- `widgetId`: the widget's pinned model and system prompt take precedence
- `attributes`: values matched by rule conditions
- `timeoutSeconds`: overrides the cascade time budget
""",
)
async def route_chat(
    body: ChatRequest,
    request: Request,
    use_case: RouteChatRequestUseCase = Depends(get_route_chat_use_case),
):
    """Route a chat request through the selection engine."""
    async with watch_disconnect(request) as cancel_event:
        result = await use_case.execute(body.to_command(), cancel_event=cancel_event)

    if result.outcome in (RouteOutcome.SUCCESS, RouteOutcome.LOW_CONFIDENCE):
        return {"response": result.response_text, "metadata": build_metadata(result)}

    status_code = OUTCOME_STATUS[result.outcome]
    detail = error_detail(
        result.error_code or result.outcome.value.upper(),
        result.error_message or result.outcome.value,
    )
    metadata = build_metadata(result)
    if metadata:
        detail["metadata"] = metadata
    # Pas d'exception ici: l'entrée ModelUsageLog de l'échec doit être commitée
    return JSONResponse(status_code=status_code, content={"detail": detail})
