"""
Branding Settings API.

Branding presets of the current user. Exactly one active preset per user is
the default; the widget reads it through `/default` and `/{id}/css`.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from model_gateway.api.dependencies import get_branding_use_case, get_current_user_id
from model_gateway.api.errors import envelope, to_http_exception
from model_gateway.application import BrandingCommand, ManageBrandingUseCase
from model_gateway.domain.errors import ModelGatewayError

router = APIRouter(prefix="/branding", tags=["Admin - Branding"])


class BrandingCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    colors: dict[str, str] = Field(default_factory=dict)
    typography: dict[str, str] = Field(default_factory=dict)
    elements: dict[str, str] = Field(default_factory=dict)
    logo_url: Optional[str] = None
    is_active: bool = True
    is_default: bool = False


class BrandingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    colors: Optional[dict[str, str]] = None
    typography: Optional[dict[str, str]] = None
    elements: Optional[dict[str, str]] = None
    logo_url: Optional[str] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


@router.get("")
async def list_branding(
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    return envelope([asdict(s) for s in await use_case.list_settings(user_id)])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_branding(
    data: BrandingCreate,
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    """Create a preset. The first active preset becomes the default."""
    try:
        setting = await use_case.create_setting(BrandingCommand(user_id=user_id, **data.model_dump()))
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(setting))


@router.get("/default")
async def get_default_branding(
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    """Default preset of the user (null when none exists)."""
    setting = await use_case.get_default(user_id)
    return envelope(asdict(setting) if setting else None)


@router.get("/{setting_id}")
async def get_branding(
    setting_id: int,
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    try:
        setting = await use_case.get_setting(setting_id, user_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(setting))


@router.put("/{setting_id}")
async def update_branding(
    setting_id: int,
    data: BrandingUpdate,
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    """Update a preset. Deactivating the default preset is refused with 409."""
    command = BrandingCommand(user_id=user_id, setting_id=setting_id, **data.model_dump(exclude_unset=True))
    try:
        setting = await use_case.update_setting(command)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(setting))


@router.post("/{setting_id}/default")
async def set_default_branding(
    setting_id: int,
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    try:
        setting = await use_case.set_default(setting_id, user_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope(asdict(setting))


@router.delete("/{setting_id}")
async def delete_branding(
    setting_id: int,
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    """Delete a preset. If it was the default, the lowest-id active preset is promoted."""
    try:
        default_id = await use_case.delete_setting(setting_id, user_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return envelope({"id": setting_id, "default_setting_id": default_id})


@router.get("/{setting_id}/css", response_class=PlainTextResponse)
async def branding_css(
    setting_id: int,
    user_id: int = Depends(get_current_user_id),
    use_case: ManageBrandingUseCase = Depends(get_branding_use_case),
):
    """CSS custom properties of a preset."""
    try:
        css = await use_case.css_variables(setting_id, user_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)
    return PlainTextResponse(css, media_type="text/css")
