"""Contracts the query generation pipeline consumes.

The service is constructed with concrete implementations of these
protocols: the SQL repositories in ``mediascout.db.repositories`` in
production, in-memory fakes in tests.
"""

from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from .types import (
    GeneratedQuery,
    QueryCriteria,
    QueryPerformanceLog,
    QueryTemplate,
    TemplateCounters,
    TemplateStats,
)


@runtime_checkable
class TemplateRepository(Protocol):
    """Storage for query templates and their counters."""

    async def find_active(self, criteria: QueryCriteria) -> list[QueryTemplate]:
        """Find active templates whose scope is compatible with the criteria."""
        ...

    async def create(self, template: QueryTemplate) -> Any:
        """Insert a template.

        Raises:
            DuplicateTemplateError: If a template with the same name exists
        """
        ...

    async def record_outcome(
        self,
        template_id: UUID,
        accepted: bool,
        confidence: float,
        alpha: float,
    ) -> TemplateCounters:
        """Fold one batch outcome into a template's stored counters.

        Must read-modify-write atomically against concurrent callers:
        usage_count += 1, success_count += accepted, and
        average_confidence = average_confidence * (1 - alpha) + confidence * alpha.

        Raises:
            LookupError: If the template does not exist
        """
        ...

    async def count(self) -> int:
        """Count stored templates, active or not."""
        ...

    async def stats(self, *, top: int = 10) -> TemplateStats:
        """Totals, counts by type and the top-performing active templates."""
        ...


@runtime_checkable
class GeneratedQueryRepository(Protocol):
    """Append-only store of accepted queries."""

    async def create(self, record: GeneratedQuery) -> Any:
        """Insert one accepted query."""
        ...


@runtime_checkable
class PerformanceLogRepository(Protocol):
    """Append-only store of batch metrics."""

    async def create(self, record: QueryPerformanceLog) -> Any:
        """Insert one performance log."""
        ...


@runtime_checkable
class AIEnhancer(Protocol):
    """Best-effort generator of additional query variants.

    Implementations may raise any exception or exceed the timeout; the
    service discards the whole result in that case.

    Example implementation:
        class StaticEnhancer:
            async def enhance_query(self, original_query, criteria, timeout_ms):
                return [f"{original_query} press contact"]
    """

    async def enhance_query(
        self,
        original_query: str,
        criteria: QueryCriteria,
        timeout_ms: int,
    ) -> list[str]:
        """Generate query variants for the original query.

        Args:
            original_query: The user's free-text query
            criteria: Requested search criteria
            timeout_ms: Time budget for the call

        Returns:
            Query strings in the order the enhancer ranks them.
        """
        ...
