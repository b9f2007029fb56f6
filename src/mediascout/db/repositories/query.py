"""SQL-backed repositories for generated queries and performance logs."""

from uuid import UUID

from sqlalchemy import select

from mediascout.db.models.query import GeneratedQueryRecord, QueryPerformanceLogRecord
from mediascout.db.repositories.base import BaseRepository
from mediascout.query_generation.types import GeneratedQuery, QueryPerformanceLog


class SqlGeneratedQueryRepository(BaseRepository[GeneratedQueryRecord, UUID]):
    """Append-only store of accepted queries."""

    model = GeneratedQueryRecord

    async def create(self, record: GeneratedQuery) -> GeneratedQueryRecord:
        """Insert one accepted query."""
        row = GeneratedQueryRecord(
            query_id=record.query_id,
            search_id=record.search_id,
            batch_id=record.batch_id,
            query_text=record.query_text,
            query_type=record.query_type.value,
            source_template_id=record.source_template_id,
            scores=record.scores.to_dict(),
            query_metadata=dict(record.metadata),
            created_at=record.created_at,
        )
        return await self.add(row)

    async def get_for_batch(self, search_id: str, batch_id: str) -> list[GeneratedQueryRecord]:
        """Get the queries accepted in one batch, oldest first."""
        stmt = (
            select(GeneratedQueryRecord)
            .where(
                GeneratedQueryRecord.search_id == search_id,
                GeneratedQueryRecord.batch_id == batch_id,
            )
            .order_by(GeneratedQueryRecord.created_at, GeneratedQueryRecord.query_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class SqlPerformanceLogRepository(BaseRepository[QueryPerformanceLogRecord, UUID]):
    """Append-only store of batch metrics."""

    model = QueryPerformanceLogRecord

    async def create(self, record: QueryPerformanceLog) -> QueryPerformanceLogRecord:
        """Insert one performance log."""
        row = QueryPerformanceLogRecord(
            log_id=record.log_id,
            search_id=record.search_id,
            batch_id=record.batch_id,
            status=record.status.value,
            metrics=record.metrics.to_dict(),
            errors=list(record.errors),
            created_at=record.created_at,
        )
        return await self.add(row)

    async def get_for_search(self, search_id: str) -> list[QueryPerformanceLogRecord]:
        """Get every performance log for a search, oldest first."""
        stmt = (
            select(QueryPerformanceLogRecord)
            .where(QueryPerformanceLogRecord.search_id == search_id)
            .order_by(QueryPerformanceLogRecord.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
