"""
AI Models Management API.

CRUD operations for AI models and their activation rules, served with the
admin dashboard envelope: {"data": ..., "success": true}.

The API key is write-only: responses only expose `has_api_key`.
"""

from dataclasses import asdict
from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from model_gateway.api.dependencies import (
    get_models_use_case,
    get_rules_use_case,
    get_try_model_use_case,
)
from model_gateway.api.errors import envelope, to_http_exception
from model_gateway.application import (
    CreateModelCommand,
    ManageModelsUseCase,
    ManageRulesUseCase,
    RuleCommand,
    TryModelCommand,
    TryModelUseCase,
    UpdateModelCommand,
)
from model_gateway.application.use_cases.try_model import DEFAULT_TRY_MESSAGE
from model_gateway.domain.errors import ModelGatewayError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai-models", tags=["Admin - Models"])


# === Pydantic Schemas ===


class ModelCreate(BaseModel):
    """Request to create a model."""

    name: str = Field(..., min_length=1, max_length=255)
    provider: str
    description: str = ""
    settings: dict[str, Any] = Field(default_factory=dict)
    api_key: Optional[str] = None
    is_active: bool = True
    is_default: bool = False
    fallback_model_id: Optional[int] = None
    confidence_threshold: float = Field(0.7, ge=0.0, le=1.0)


class ModelUpdate(BaseModel):
    """Request to update a model. Omitted fields are unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    provider: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[dict[str, Any]] = None
    api_key: Optional[str] = None  # None or "" keeps the stored key
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    fallback_model_id: Optional[int] = None  # explicit null clears the fallback
    confidence_threshold: Optional[float] = Field(None, ge=0.0, le=1.0)


class RulePayload(BaseModel):
    """Request to create or replace an activation rule."""

    name: str = Field(..., min_length=1, max_length=255)
    priority: int = Field(1, ge=1)
    is_active: bool = True
    query_type: Optional[str] = None
    use_case: Optional[str] = None
    tenant_id: Optional[int] = None
    conditions: list[dict[str, Any]] = Field(default_factory=list)

    def to_command(self, model_id: int, rule_id: Optional[int] = None) -> RuleCommand:
        return RuleCommand(model_id=model_id, rule_id=rule_id, **self.model_dump())


class ModelTryRequest(BaseModel):
    """Request to call one model directly. temperature and max_tokens apply to this call only."""

    message: str = Field(DEFAULT_TRY_MESSAGE, min_length=1)
    system_prompt: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


# === Models ===


@router.get("")
async def list_models(use_case: ManageModelsUseCase = Depends(get_models_use_case)):
    """List all AI models."""
    return envelope([asdict(m) for m in await use_case.list_models()])


@router.get("/validation")
async def validate_models(use_case: ManageModelsUseCase = Depends(get_models_use_case)):
    """Consistency check of models, rules and fallback chains."""
    issues = await use_case.validate_configuration()
    return envelope(
        [
            {
                "severity": issue.severity.value,
                "code": issue.code,
                "message": issue.message,
                "model_id": issue.model_id,
                "rule_id": issue.rule_id,
            }
            for issue in issues
        ]
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_model(
    data: ModelCreate,
    use_case: ManageModelsUseCase = Depends(get_models_use_case),
):
    """
    Create an AI model.

    The first active model becomes the default when none exists.
    """
    try:
        model = await use_case.create_model(CreateModelCommand(**data.model_dump()))
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(model))


@router.get("/{model_id}")
async def get_model(model_id: int, use_case: ManageModelsUseCase = Depends(get_models_use_case)):
    try:
        model = await use_case.get_model(model_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(model))


@router.put("/{model_id}")
async def update_model(
    model_id: int,
    data: ModelUpdate,
    use_case: ManageModelsUseCase = Depends(get_models_use_case),
):
    """
    Update an AI model.

    Deactivating the default model is refused with 409.
    A fallback that would close a cycle is refused with 422.
    """
    command = UpdateModelCommand(model_id=model_id, **data.model_dump(exclude_unset=True))
    try:
        model = await use_case.update_model(command)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(model))


@router.post("/{model_id}/default")
async def set_default_model(
    model_id: int,
    use_case: ManageModelsUseCase = Depends(get_models_use_case),
):
    """Make an active model the default."""
    try:
        model = await use_case.set_default(model_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(model))


@router.post("/{model_id}/test")
async def try_model(
    model_id: int,
    data: Optional[ModelTryRequest] = None,
    use_case: TryModelUseCase = Depends(get_try_model_use_case),
):
    """
    Call one model directly, without rule selection or fallback.

    Works on inactive models. A provider failure is reported with
    `success: false` and `metadata.error`, not as an HTTP error.
    Nothing is written to the usage log.
    """
    data = data or ModelTryRequest()
    try:
        result = await use_case.execute(TryModelCommand(model_id=model_id, **data.model_dump()))
    except ModelGatewayError as e:
        raise to_http_exception(e)

    metadata = {
        "provider": result.provider,
        "response_time": result.response_time,
        "tokens_input": result.tokens_input,
        "tokens_output": result.tokens_output,
        "confidence": result.confidence,
        "met_threshold": result.met_threshold,
    }
    if not result.success:
        metadata["error"] = result.error
        metadata["error_kind"] = result.error_kind
    return envelope({"response": result.response, "success": result.success, "metadata": metadata})


@router.delete("/{model_id}")
async def delete_model(
    model_id: int,
    use_case: ManageModelsUseCase = Depends(get_models_use_case),
):
    """
    Delete an AI model with its rules.

    Fallbacks pointing at it are cleared. If it was the default, the
    lowest-id active model is promoted.
    """
    try:
        default_model_id = await use_case.delete_model(model_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope({"id": model_id, "default_model_id": default_model_id})


# === Activation rules ===


@router.get("/{model_id}/rules")
async def list_rules(model_id: int, use_case: ManageRulesUseCase = Depends(get_rules_use_case)):
    try:
        rules = await use_case.list_rules(model_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope([asdict(r) for r in rules])


@router.post("/{model_id}/rules", status_code=status.HTTP_201_CREATED)
async def create_rule(
    model_id: int,
    data: RulePayload,
    use_case: ManageRulesUseCase = Depends(get_rules_use_case),
):
    """Create an activation rule. Malformed conditions are refused with 422."""
    try:
        rule = await use_case.create_rule(data.to_command(model_id))
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(rule))


@router.put("/{model_id}/rules/{rule_id}")
async def update_rule(
    model_id: int,
    rule_id: int,
    data: RulePayload,
    use_case: ManageRulesUseCase = Depends(get_rules_use_case),
):
    try:
        rule = await use_case.update_rule(data.to_command(model_id, rule_id))
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(rule))


@router.delete("/{model_id}/rules/{rule_id}")
async def delete_rule(
    model_id: int,
    rule_id: int,
    use_case: ManageRulesUseCase = Depends(get_rules_use_case),
):
    try:
        await use_case.delete_rule(model_id, rule_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope({"id": rule_id})
