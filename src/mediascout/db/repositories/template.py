"""SQL-backed template repository."""

from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError

from mediascout.core.exceptions import DuplicateTemplateError
from mediascout.db.models.query import QueryTemplateRecord
from mediascout.db.repositories.base import BaseRepository
from mediascout.query_generation.types import (
    SCOPED_DIMENSIONS,
    QueryCriteria,
    QueryTemplate,
    QueryTemplateType,
    TemplateCounters,
    TemplateStats,
)


def template_from_row(row: QueryTemplateRecord) -> QueryTemplate:
    """Convert a template row to the domain dataclass."""
    return QueryTemplate(
        template_id=row.template_id,
        name=row.name,
        template=row.template,
        template_type=QueryTemplateType(row.template_type),
        country=row.country,
        category=row.category,
        beat=row.beat,
        language=row.language,
        variables=dict(row.variables or {}),
        priority=row.priority,
        is_active=row.is_active,
        usage_count=row.usage_count,
        success_count=row.success_count,
        average_confidence=row.average_confidence,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlTemplateRepository(BaseRepository[QueryTemplateRecord, UUID]):
    """Template repository over the ``query_templates`` table."""

    model = QueryTemplateRecord

    async def find_active(self, criteria: QueryCriteria, *, limit: int = 100) -> list[QueryTemplate]:
        """Find active templates whose scope is compatible with the criteria.

        A scoped column matches when it is null or equals one of the
        requested values for its dimension (case-insensitive).

        Args:
            criteria: Requested search criteria
            limit: Maximum templates to return

        Returns:
            Templates ordered by priority desc, average confidence desc, name
        """
        stmt = select(QueryTemplateRecord).where(QueryTemplateRecord.is_active.is_(True))

        for dimension, attr in SCOPED_DIMENSIONS.items():
            column = getattr(QueryTemplateRecord, attr)
            values = [v.lower() for v in criteria.values_for(dimension)]
            if values:
                stmt = stmt.where(or_(column.is_(None), func.lower(column).in_(values)))
            else:
                stmt = stmt.where(column.is_(None))

        stmt = stmt.order_by(
            QueryTemplateRecord.priority.desc(),
            QueryTemplateRecord.average_confidence.desc(),
            QueryTemplateRecord.name.asc(),
        ).limit(limit)

        result = await self.db.execute(stmt)
        return [template_from_row(row) for row in result.scalars().all()]

    async def create(self, template: QueryTemplate) -> QueryTemplate:
        """Insert a template.

        Raises:
            DuplicateTemplateError: If the name is already taken
        """
        row = QueryTemplateRecord(
            template_id=template.template_id,
            name=template.name,
            template=template.template,
            template_type=template.template_type.value,
            country=template.country,
            category=template.category,
            beat=template.beat,
            language=template.language,
            variables=dict(template.variables),
            priority=template.priority,
            is_active=template.is_active,
            usage_count=template.usage_count,
            success_count=template.success_count,
            average_confidence=template.average_confidence,
        )
        try:
            row = await self.add(row)
        except IntegrityError:
            await self.db.rollback()
            if await self.exists_named(template.name):
                raise DuplicateTemplateError(
                    f"Query template name already exists: {template.name!r}"
                ) from None
            raise
        return template_from_row(row)

    async def exists_named(self, name: str) -> bool:
        """Whether a template with this name is stored."""
        stmt = select(QueryTemplateRecord.template_id).where(QueryTemplateRecord.name == name)
        return (await self.db.execute(stmt)).first() is not None

    async def record_outcome(
        self,
        template_id: UUID,
        accepted: bool,
        confidence: float,
        alpha: float,
    ) -> TemplateCounters:
        """Fold one batch outcome into the stored counters in a single UPDATE.

        The new values are computed from the row's current values, so
        concurrent batches each add their increment.

        Raises:
            LookupError: If the template does not exist
        """
        record = QueryTemplateRecord
        stmt = (
            update(record)
            .where(record.template_id == template_id)
            .values(
                usage_count=record.usage_count + 1,
                success_count=record.success_count + (1 if accepted else 0),
                average_confidence=record.average_confidence * (1 - alpha) + confidence * alpha,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            await self.db.rollback()
            raise LookupError(f"Query template not found: {template_id}")

        # Reload so a row already in the session reflects the new counters
        row = (
            await self.db.execute(
                select(record)
                .where(record.template_id == template_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        await self.db.commit()
        return TemplateCounters(
            usage_count=row.usage_count,
            success_count=row.success_count,
            average_confidence=row.average_confidence,
        )

    async def stats(self, *, top: int = 10) -> TemplateStats:
        """Totals, counts by type and the top-performing active templates."""
        record = QueryTemplateRecord
        total = await self.count()
        active = (
            await self.db.execute(select(func.count()).where(record.is_active.is_(True)))
        ).scalar() or 0
        by_type = {
            template_type: count
            for template_type, count in (
                await self.db.execute(
                    select(record.template_type, func.count()).group_by(record.template_type)
                )
            ).all()
        }
        top_rows = (
            await self.db.execute(
                select(record)
                .where(record.is_active.is_(True))
                .order_by(
                    record.success_count.desc(),
                    record.average_confidence.desc(),
                    record.name.asc(),
                )
                .limit(top)
            )
        ).scalars()
        return TemplateStats(
            total=total,
            active=active,
            by_type=by_type,
            top_performing=[template_from_row(row) for row in top_rows],
        )
