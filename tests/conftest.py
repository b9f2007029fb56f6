"""Pytest fixtures for MediaScout tests."""

import asyncio
from collections import Counter
from collections.abc import AsyncGenerator
from dataclasses import replace
from uuid import UUID

import pytest
import pytest_asyncio
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mediascout.core.exceptions import DuplicateTemplateError
from mediascout.db.models.base import Base
from mediascout.query_generation.config import QueryGenerationConfig
from mediascout.query_generation.template_store import apply_outcome
from mediascout.query_generation.types import (
    GeneratedQuery,
    QueryCriteria,
    QueryPerformanceLog,
    QueryTemplate,
    TemplateCounters,
    TemplateStats,
)

# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# In-memory collaborators
# =============================================================================


class InMemoryTemplateRepository:
    """Template repository backed by a dict.

    Reads return copies and every call yields to the event loop once, as
    the SQL repository does. Names are unique. Set ``fail_reads`` /
    ``fail_updates`` to simulate an unreachable store.
    """

    def __init__(self, templates: list[QueryTemplate] | None = None):
        self.templates: dict[UUID, QueryTemplate] = {t.template_id: t for t in templates or []}
        self.updates: list[tuple[UUID, TemplateCounters]] = []
        self.find_calls = 0
        self.fail_reads = False
        self.fail_updates = False

    async def find_active(self, criteria: QueryCriteria) -> list[QueryTemplate]:
        self.find_calls += 1
        await asyncio.sleep(0)
        if self.fail_reads:
            raise ConnectionError("template store unreachable")
        return [
            replace(t) for t in self.templates.values() if t.is_active and t.matches(criteria)
        ]

    async def create(self, template: QueryTemplate) -> QueryTemplate:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise ConnectionError("template store unreachable")
        if any(t.name == template.name for t in self.templates.values()):
            raise DuplicateTemplateError(f"Query template name already exists: {template.name!r}")
        self.templates[template.template_id] = template
        return template

    async def record_outcome(
        self, template_id: UUID, accepted: bool, confidence: float, alpha: float
    ) -> TemplateCounters:
        await asyncio.sleep(0)
        if self.fail_updates:
            raise ConnectionError("template store unreachable")
        template = self.templates.get(template_id)
        if template is None:
            raise LookupError(f"Query template not found: {template_id}")
        counters = apply_outcome(template, accepted, confidence, alpha)
        template.usage_count = counters.usage_count
        template.success_count = counters.success_count
        template.average_confidence = counters.average_confidence
        self.updates.append((template_id, counters))
        return counters

    async def count(self) -> int:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise ConnectionError("template store unreachable")
        return len(self.templates)

    async def stats(self, *, top: int = 10) -> TemplateStats:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise ConnectionError("template store unreachable")
        templates = list(self.templates.values())
        active = [t for t in templates if t.is_active]
        active.sort(key=lambda t: (-t.success_count, -t.average_confidence, t.name))
        return TemplateStats(
            total=len(templates),
            active=len(active),
            by_type=dict(Counter(t.template_type.value for t in templates)),
            top_performing=[replace(t) for t in active[:top]],
        )


class InMemoryRecordRepository:
    """Append-only repository for generated queries or performance logs."""

    def __init__(self):
        self.records: list = []
        self.fail = False
        self.fail_texts: set[str] = set()

    async def create(self, record: GeneratedQuery | QueryPerformanceLog):
        if self.fail or getattr(record, "query_text", None) in self.fail_texts:
            raise ConnectionError("write failed")
        self.records.append(record)
        return record


class StubEnhancer:
    """AI enhancer returning fixed queries."""

    def __init__(self, queries: list[str] | None = None):
        self.queries = queries or []
        self.calls = 0

    async def enhance_query(self, original_query, criteria, timeout_ms):
        self.calls += 1
        return list(self.queries)


class FailingEnhancer:
    """AI enhancer that always raises."""

    async def enhance_query(self, original_query, criteria, timeout_ms):
        raise RuntimeError("model unavailable")


@pytest.fixture
def template_repository_factory():
    """Factory for independent in-memory template repositories."""
    return InMemoryTemplateRepository


@pytest.fixture
def template_repository() -> InMemoryTemplateRepository:
    """Empty in-memory template repository."""
    return InMemoryTemplateRepository()


@pytest.fixture
def query_repository() -> InMemoryRecordRepository:
    """In-memory generated query repository."""
    return InMemoryRecordRepository()


@pytest.fixture
def log_repository() -> InMemoryRecordRepository:
    """In-memory performance log repository."""
    return InMemoryRecordRepository()


@pytest.fixture
def stub_enhancer() -> StubEnhancer:
    """AI enhancer returning two fixed variants."""
    return StubEnhancer(
        [
            "climate policy correspondent press contact",
            "environment desk editor newsroom email",
        ]
    )


@pytest.fixture
def failing_enhancer() -> FailingEnhancer:
    """AI enhancer that always fails."""
    return FailingEnhancer()


@pytest.fixture
def generation_config() -> QueryGenerationConfig:
    """Deterministic service config with a short AI timeout."""
    return QueryGenerationConfig.model_validate(
        {"ai": {"timeout_ms": 500}, "templates": {"cache_ttl_seconds": 0}}
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite engine with all tables."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()
