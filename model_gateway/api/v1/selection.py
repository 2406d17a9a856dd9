"""Selection API - sélection à blanc, sans appel fournisseur."""

from fastapi import APIRouter, Depends

from model_gateway.api.dependencies import get_route_chat_use_case
from model_gateway.api.errors import to_http_exception
from model_gateway.api.v1.chat import ChatRequest
from model_gateway.application import RouteChatRequestUseCase
from model_gateway.domain.errors import ModelGatewayError

router = APIRouter(tags=["Chat"])


@router.post(
    "/select",
    summary="Preview model selection",
    description="Returns the model a chat request would be routed to, and its fallback chain.",
)
async def preview_selection(
    body: ChatRequest,
    use_case: RouteChatRequestUseCase = Depends(get_route_chat_use_case),
):
    try:
        preview = await use_case.preview(body.to_command())
    except ModelGatewayError as e:
        raise to_http_exception(e)

    selection = preview.selection
    return {
        "modelId": selection.model.id,
        "modelName": selection.model.name,
        "provider": selection.model.provider.value,
        "reason": selection.reason.value,
        "ruleId": selection.rule.id if selection.rule else None,
        "ruleName": selection.rule.name if selection.rule else None,
        "fallbackChain": preview.fallback_chain,
    }
