"""
Model Analytics API.

Per-model usage statistics computed from the usage log: request counts,
success rate, fallback rate, token totals and average response time.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from model_gateway.api.dependencies import get_analytics_use_case
from model_gateway.api.errors import envelope, to_http_exception
from model_gateway.application import ModelAnalyticsUseCase
from model_gateway.domain.errors import ModelGatewayError

router = APIRouter(prefix="/analytics", tags=["Admin - Analytics"])

PERIOD_DESCRIPTION = "day, week, month, year or all"


@router.get("/models")
async def model_usage(
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    model_id: Optional[int] = Query(None, description="Restrict to one model"),
    use_case: ModelAnalyticsUseCase = Depends(get_analytics_use_case),
):
    """Usage statistics per model over the period."""
    try:
        summaries = await use_case.summary(period=period, model_id=model_id)
    except ModelGatewayError as e:
        raise to_http_exception(e)

    return envelope(
        [
            {
                "model_id": s.model_id,
                "model_name": s.model_name,
                "provider": s.provider,
                "total_requests": s.total_requests,
                "successful_requests": s.successful_requests,
                "success_rate": s.success_rate,
                "fallback_requests": s.fallback_requests,
                "fallback_rate": s.fallback_rate,
                "total_input_tokens": s.total_input_tokens,
                "total_output_tokens": s.total_output_tokens,
                "avg_response_time": s.avg_response_time,
                "avg_confidence_score": s.avg_confidence_score,
            }
            for s in summaries
        ]
    )


@router.get("/models/{model_id}")
async def model_usage_detail(
    model_id: int,
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    group_by: str = Query("day", description="day, hour (UTC), query_type or use_case"),
    use_case: ModelAnalyticsUseCase = Depends(get_analytics_use_case),
):
    """Usage statistics of one model, grouped by day, hour, query type or use case."""
    try:
        model, buckets = await use_case.model_detail(model_id, period=period, group_by=group_by)
    except ModelGatewayError as e:
        raise to_http_exception(e)

    return envelope(
        {
            "model": {"id": model.id, "name": model.name, "provider": model.provider.value},
            "group_by": group_by,
            "period": period,
            "analytics": [
                {
                    group_by: b.key,
                    "total_requests": b.total_requests,
                    "successful_requests": b.successful_requests,
                    "success_rate": b.success_rate,
                    "fallback_requests": b.fallback_requests,
                    "fallback_rate": b.fallback_rate,
                    "total_input_tokens": b.total_input_tokens,
                    "total_output_tokens": b.total_output_tokens,
                    "avg_response_time": b.avg_response_time,
                    "avg_confidence_score": b.avg_confidence_score,
                }
                for b in buckets
            ],
        }
    )


@router.get("/models/{model_id}/errors")
async def model_errors(
    model_id: int,
    period: str = Query("month", description=PERIOD_DESCRIPTION),
    limit: int = Query(20, ge=1, le=200),
    use_case: ModelAnalyticsUseCase = Depends(get_analytics_use_case),
):
    """Most recent failed requests of a model."""
    try:
        entries = await use_case.recent_errors(model_id, period=period, limit=limit)
    except ModelGatewayError as e:
        raise to_http_exception(e)

    return envelope(
        [
            {
                "error_message": entry.error_message,
                "response_time": entry.response_time,
                "fallback_used": entry.fallback_used,
                "tenant_id": entry.tenant_id,
                "widget_id": entry.widget_id,
                "created_at": entry.created_at.isoformat(),
            }
            for entry in entries
        ]
    )
