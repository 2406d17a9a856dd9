"""SQLAlchemy models for the model gateway."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# ============================================================================
# AI Models
# ============================================================================


class AIModel(Base):
    """AI model configured from the admin dashboard."""

    __tablename__ = "ai_models"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    provider: Mapped[str] = mapped_column(String(50), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # model_name, temperature, max_tokens, top_p, penalties, logprobs
    settings: Mapped[dict] = mapped_column(JSON, default=dict)

    # Write-only secret, never serialized back by the API
    api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    fallback_model_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("ai_models.id", ondelete="SET NULL"), nullable=True
    )
    confidence_threshold: Mapped[float] = mapped_column(Float, default=0.7)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class ModelActivationRule(Base):
    """Activation rule routing requests to an AI model."""

    __tablename__ = "model_activation_rules"

    id: Mapped[int] = mapped_column(primary_key=True)
    ai_model_id: Mapped[int] = mapped_column(ForeignKey("ai_models.id", ondelete="CASCADE"))

    name: Mapped[str] = mapped_column(String(255))
    priority: Mapped[int] = mapped_column(Integer, default=1)  # Higher wins
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Null = wildcard
    query_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    use_case: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tenant_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # [{"field": "language", "operator": "equals", "value": "fr"}, ...]
    conditions: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    __table_args__ = (Index("ix_activation_rules_model_priority", "ai_model_id", "priority"),)


class DefaultPointer(Base):
    """Single source of truth for the default item of a collection."""

    __tablename__ = "default_pointers"

    id: Mapped[int] = mapped_column(primary_key=True)
    collection: Mapped[str] = mapped_column(String(50))
    scope: Mapped[str] = mapped_column(String(100), default="global")
    item_id: Mapped[int] = mapped_column(Integer)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("collection", "scope", name="uq_default_pointers_collection_scope"),
    )


# ============================================================================
# Usage
# ============================================================================


class ModelUsageLog(Base):
    """One entry per routed chat request."""

    __tablename__ = "model_usage_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    ai_model_id: Mapped[int] = mapped_column(Integer, index=True)

    # Context
    tenant_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    widget_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    query_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    use_case: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Outcome
    tokens_input: Mapped[int] = mapped_column(Integer, default=0)
    tokens_output: Mapped[int] = mapped_column(Integer, default=0)
    response_time: Mapped[float] = mapped_column(Float, default=0.0)  # seconds
    confidence_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fallback_used: Mapped[bool] = mapped_column(Boolean, default=False)
    success: Mapped[bool] = mapped_column(Boolean, default=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )

    __table_args__ = (Index("ix_usage_logs_model_date", "ai_model_id", "created_at"),)


# ============================================================================
# Branding & Widgets
# ============================================================================


class BrandingSetting(Base):
    """Branding preset owned by a dashboard user."""

    __tablename__ = "branding_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(255))
    colors: Mapped[dict] = mapped_column(JSON, default=dict)
    typography: Mapped[dict] = mapped_column(JSON, default=dict)
    elements: Mapped[dict] = mapped_column(JSON, default=dict)
    logo_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class WidgetSetting(Base):
    """Widget settings read by the engine (pinned model, system prompt)."""

    __tablename__ = "widget_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    ai_model_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("ai_models.id", ondelete="SET NULL"), nullable=True
    )
    system_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    settings: Mapped[dict] = mapped_column(JSON, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
