"""Integration tests for SQL repositories."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from mediascout.core.exceptions import DuplicateTemplateError
from mediascout.db.repositories import (
    ExtractedContactRepository,
    SqlGeneratedQueryRepository,
    SqlPerformanceLogRepository,
    SqlTemplateRepository,
)
from mediascout.extraction.types import ExtractedContact, SocialProfile, VerificationStatus
from mediascout.query_generation.types import (
    GeneratedQuery,
    GenerationMetrics,
    GenerationStatus,
    QueryCriteria,
    QueryPerformanceLog,
    QueryScores,
    QueryTemplate,
    QueryType,
    TemplateCounters,
)


async def _seed(repo: SqlTemplateRepository) -> dict[str, QueryTemplate]:
    templates = [
        QueryTemplate(name="base", template="{query} journalist", priority=100),
        QueryTemplate(name="uk", template="{query} UK journalist", priority=85, country="GB"),
        QueryTemplate(name="us", template="{query} US journalist", priority=85, country="US"),
        QueryTemplate(
            name="uk-tech",
            template="{query} UK tech",
            priority=90,
            country="GB",
            category="Technology",
        ),
        QueryTemplate(name="off", template="{query} off", priority=200, is_active=False),
    ]
    for template in templates:
        await repo.create(template)
    return {t.name: t for t in templates}


@pytest.mark.asyncio
async def test_template_create_and_count(db_session: AsyncSession):
    """Test templates are stored and counted."""
    repo = SqlTemplateRepository(db_session)

    created = await repo.create(
        QueryTemplate(name="base", template="{query} journalist", variables={"site": "bbc.co.uk"})
    )

    assert await repo.count() == 1
    assert created.variables == {"site": "bbc.co.uk"}
    assert created.created_at is not None


@pytest.mark.asyncio
async def test_find_active_unscoped(db_session: AsyncSession):
    """Test only unscoped active templates match empty criteria."""
    repo = SqlTemplateRepository(db_session)
    await _seed(repo)

    found = await repo.find_active(QueryCriteria())

    assert [t.name for t in found] == ["base"]


@pytest.mark.asyncio
async def test_find_active_scoped(db_session: AsyncSession):
    """Test scoped templates match requested values case-insensitively."""
    repo = SqlTemplateRepository(db_session)
    await _seed(repo)

    found = await repo.find_active(QueryCriteria(countries=["gb"], categories=["technology"]))

    assert [t.name for t in found] == ["base", "uk-tech", "uk"]


@pytest.mark.asyncio
async def test_find_active_requires_all_scoped_dimensions(db_session: AsyncSession):
    """Test a template scoped on an unrequested dimension is excluded."""
    repo = SqlTemplateRepository(db_session)
    await _seed(repo)

    found = await repo.find_active(QueryCriteria(countries=["GB", "US"]))

    assert [t.name for t in found] == ["base", "uk", "us"]


@pytest.mark.asyncio
async def test_template_record_outcome(db_session: AsyncSession):
    """Test an outcome is folded into the stored counters."""
    repo = SqlTemplateRepository(db_session)
    seeded = await _seed(repo)
    template_id = seeded["base"].template_id

    counters = await repo.record_outcome(template_id, True, 0.9, 0.5)

    assert counters == TemplateCounters(1, 1, pytest.approx(0.7))
    row = await repo.get(template_id)
    assert row.usage_count == 1
    assert row.success_count == 1
    assert row.average_confidence == pytest.approx(0.7)


@pytest.mark.asyncio
async def test_template_record_outcome_builds_on_stored_values(db_session: AsyncSession):
    """Test each outcome starts from the current row, not a caller snapshot."""
    repo = SqlTemplateRepository(db_session)
    seeded = await _seed(repo)
    template_id = seeded["base"].template_id

    await repo.record_outcome(template_id, True, 1.0, 0.5)
    counters = await repo.record_outcome(template_id, False, 0.0, 0.5)

    assert counters.usage_count == 2
    assert counters.success_count == 1
    assert counters.average_confidence == pytest.approx(0.375)


@pytest.mark.asyncio
async def test_template_record_outcome_missing(db_session: AsyncSession):
    """Test updating an unknown template raises LookupError."""
    repo = SqlTemplateRepository(db_session)

    with pytest.raises(LookupError):
        await repo.record_outcome(QueryTemplate(name="x", template="x").template_id, True, 0.5, 0.2)


@pytest.mark.asyncio
async def test_template_duplicate_name(db_session: AsyncSession):
    """Test a second template with the same name is rejected."""
    repo = SqlTemplateRepository(db_session)
    await repo.create(QueryTemplate(name="base", template="{query} journalist"))

    with pytest.raises(DuplicateTemplateError):
        await repo.create(QueryTemplate(name="base", template="{query} reporter"))

    assert await repo.count() == 1


@pytest.mark.asyncio
async def test_template_stats(db_session: AsyncSession):
    """Test totals, counts by type and top performers."""
    repo = SqlTemplateRepository(db_session)
    seeded = await _seed(repo)
    await repo.record_outcome(seeded["uk"].template_id, True, 0.9, 0.2)
    await repo.record_outcome(seeded["us"].template_id, True, 0.5, 0.2)
    await repo.record_outcome(seeded["off"].template_id, True, 1.0, 0.2)

    stats = await repo.stats(top=3)

    assert stats.total == 5
    assert stats.active == 4
    assert stats.by_type == {"base": 5}
    assert [t.name for t in stats.top_performing] == ["uk", "us", "base"]


@pytest.mark.asyncio
async def test_generated_queries_for_batch(db_session: AsyncSession):
    """Test generated queries are stored per batch."""
    repo = SqlGeneratedQueryRepository(db_session)
    for text in ("climate reporters uk", "climate journalists us"):
        await repo.create(
            GeneratedQuery(
                search_id="s1",
                batch_id="b1",
                query_text=text,
                query_type=QueryType.TEMPLATE,
                scores=QueryScores(relevance=0.7, overall=0.8),
                metadata={"ai_enhanced": False},
            )
        )
    await repo.create(
        GeneratedQuery(
            search_id="s1",
            batch_id="b2",
            query_text="other batch query",
            query_type=QueryType.AI_ENHANCED,
            scores=QueryScores(),
            metadata={"ai_enhanced": True},
        )
    )

    rows = await repo.get_for_batch("s1", "b1")

    assert sorted(r.query_text for r in rows) == ["climate journalists us", "climate reporters uk"]
    assert rows[0].scores["overall"] == 0.8
    assert rows[0].query_metadata == {"ai_enhanced": False}
    assert rows[0].source_template_id is None


@pytest.mark.asyncio
async def test_performance_log(db_session: AsyncSession):
    """Test performance logs store metrics and errors."""
    repo = SqlPerformanceLogRepository(db_session)

    await repo.create(
        QueryPerformanceLog(
            search_id="s1",
            batch_id="b1",
            status=GenerationStatus.COMPLETED,
            metrics=GenerationMetrics(total_generated=4, average_score=0.7),
            errors=["ai_enhancement: timed out"],
        )
    )

    logs = await repo.get_for_search("s1")

    assert len(logs) == 1
    assert logs[0].status == "completed"
    assert logs[0].metrics["total_generated"] == 4
    assert logs[0].errors == ["ai_enhancement: timed out"]


@pytest.mark.asyncio
async def test_contacts_round_trip_and_filters(db_session: AsyncSession):
    """Test contacts are stored and filtered by duplicate flag and confidence."""
    repo = ExtractedContactRepository(db_session)
    await repo.create(
        ExtractedContact(
            name="John Smith",
            source_url="https://www.nytimes.com/a",
            search_id="s1",
            email="john.smith@nytimes.com",
            social_profiles=[SocialProfile("twitter", "jsmith", verified=True)],
            confidence_score=0.95,
            verification_status=VerificationStatus.CONFIRMED,
        )
    )
    await repo.create(
        ExtractedContact(name="Jane Doe", source_url="https://bbc.co.uk/x", search_id="s1", confidence_score=0.5)
    )
    await repo.create(
        ExtractedContact(
            name="John Smith",
            source_url="https://www.nytimes.com/b",
            search_id="s1",
            confidence_score=0.9,
            is_duplicate=True,
            verification_status=None,
        )
    )

    contacts = await repo.get_for_search("s1")
    assert [c.name for c in contacts] == ["John Smith", "Jane Doe"]
    assert contacts[0].social_profiles[0].verified is True
    assert contacts[0].verification_status == VerificationStatus.CONFIRMED

    assert len(await repo.get_for_search("s1", include_duplicates=True)) == 3
    assert [c.name for c in await repo.get_for_search("s1", min_confidence=0.8)] == ["John Smith"]


@pytest.mark.asyncio
async def test_repositories_satisfy_storage_protocols(db_session: AsyncSession):
    """Test SQL repositories implement the pipeline's storage contracts."""
    from mediascout.query_generation.protocols import (
        GeneratedQueryRepository,
        PerformanceLogRepository,
        TemplateRepository,
    )

    assert isinstance(SqlTemplateRepository(db_session), TemplateRepository)
    assert isinstance(SqlGeneratedQueryRepository(db_session), GeneratedQueryRepository)
    assert isinstance(SqlPerformanceLogRepository(db_session), PerformanceLogRepository)
