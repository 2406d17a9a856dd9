"""Usage Log Adapter - Implémentation native SQLAlchemy du UsageLogPort."""

from datetime import datetime

from sqlalchemy import select

from model_gateway.adapters.postgres.base import SessionScopedAdapter, as_utc
from model_gateway.db.models import ModelUsageLog as DBUsageLog
from model_gateway.domain.models import UsageLogEntry
from model_gateway.ports.usage_log import UsageLogPort


class UsageLogAdapter(SessionScopedAdapter, UsageLogPort):
    """Journal d'utilisation stocké dans model_usage_logs."""

    def _to_domain(self, row: DBUsageLog) -> UsageLogEntry:
        return UsageLogEntry(
            model_id=row.ai_model_id,
            success=row.success,
            tokens_input=row.tokens_input,
            tokens_output=row.tokens_output,
            response_time=row.response_time,
            confidence_score=row.confidence_score,
            fallback_used=row.fallback_used,
            error_message=row.error_message,
            tenant_id=row.tenant_id,
            widget_id=row.widget_id,
            query_type=row.query_type,
            use_case=row.use_case,
            created_at=as_utc(row.created_at),
        )

    async def record(self, entry: UsageLogEntry) -> None:
        async with self._get_session() as session:
            session.add(
                DBUsageLog(
                    ai_model_id=entry.model_id,
                    tenant_id=entry.tenant_id,
                    widget_id=entry.widget_id,
                    query_type=entry.query_type,
                    use_case=entry.use_case,
                    tokens_input=entry.tokens_input,
                    tokens_output=entry.tokens_output,
                    response_time=entry.response_time,
                    confidence_score=entry.confidence_score,
                    fallback_used=entry.fallback_used,
                    success=entry.success,
                    error_message=entry.error_message,
                    created_at=entry.created_at,
                )
            )
            await session.flush()

    async def list_entries(
        self,
        model_id: int | None = None,
        since: datetime | None = None,
        success: bool | None = None,
        limit: int | None = None,
    ) -> list[UsageLogEntry]:
        query = select(DBUsageLog)
        if model_id is not None:
            query = query.where(DBUsageLog.ai_model_id == model_id)
        if since is not None:
            query = query.where(DBUsageLog.created_at >= since)
        if success is not None:
            query = query.where(DBUsageLog.success.is_(success))
        query = query.order_by(DBUsageLog.created_at.desc(), DBUsageLog.id.desc())
        if limit is not None:
            query = query.limit(limit)

        async with self._get_session() as session:
            result = await session.execute(query)
            return [self._to_domain(row) for row in result.scalars().all()]
