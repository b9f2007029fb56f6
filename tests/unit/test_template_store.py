"""Unit tests for the template store."""

import asyncio

import pytest

from mediascout.core.exceptions import TemplateStoreError
from mediascout.query_generation.template_store import (
    TemplateOutcomeBatch,
    TemplateStore,
    apply_outcome,
    default_templates,
)
from mediascout.query_generation.types import QueryCriteria, QueryTemplate, QueryTemplateType


def _template(name: str, priority: int, average: float = 0.5, **scope) -> QueryTemplate:
    return QueryTemplate(
        name=name,
        template="{query} " + name,
        priority=priority,
        average_confidence=average,
        **scope,
    )


class TestDefaultTemplates:
    """Tests for the canonical template set."""

    def test_canonical_set(self):
        """Test the default set size and neutral starting confidence."""
        templates = default_templates()

        assert len(templates) == 16
        assert all(t.average_confidence == 0.5 for t in templates)
        assert all(t.usage_count == 0 for t in templates)
        assert len({t.name for t in templates}) == 16

    def test_scoped_templates(self):
        """Test country templates carry their scope."""
        by_name = {t.name: t for t in default_templates()}

        assert by_name["UK Media Search"].country == "GB"
        assert by_name["UK Media Search"].template_type == QueryTemplateType.COUNTRY_SPECIFIC
        assert by_name["Base Media Contact Search"].priority == 100


class TestApplyOutcome:
    """Tests for counter updates."""

    def test_accepted_outcome(self):
        """Test counters after an accepted outcome."""
        template = _template("t", 10, average=0.5)

        counters = apply_outcome(template, accepted=True, confidence=1.0, alpha=0.2)

        assert counters.usage_count == 1
        assert counters.success_count == 1
        assert counters.average_confidence == pytest.approx(0.6)

    def test_rejected_outcome(self):
        """Test rejected outcome counts usage only."""
        template = _template("t", 10, average=0.5)
        template.usage_count = 4
        template.success_count = 2

        counters = apply_outcome(template, accepted=False, confidence=0.0, alpha=0.2)

        assert counters.usage_count == 5
        assert counters.success_count == 2
        assert counters.average_confidence == pytest.approx(0.4)

    def test_confidence_clamped(self):
        """Test out-of-range confidence is clamped."""
        template = _template("t", 10, average=1.0)

        counters = apply_outcome(template, accepted=True, confidence=5.0, alpha=0.5)

        assert counters.average_confidence == 1.0


class TestTemplateOutcomeBatch:
    """Tests for staging outcomes."""

    def test_repeated_outcomes_fold(self):
        """Test repeated outcomes fold to one per template."""
        template = _template("t", 10)
        batch = TemplateOutcomeBatch(templates={template.template_id: template})

        batch.record_outcome(template.template_id, False, 0.3)
        batch.record_outcome(template.template_id, True, 0.7)
        batch.record_outcome(template.template_id, False, 0.5)

        outcome = batch.outcomes[template.template_id]
        assert len(batch) == 1
        assert outcome.accepted is True
        assert outcome.confidence == 0.7

    def test_unknown_template(self):
        """Test outcomes for templates outside the batch are rejected."""
        batch = TemplateOutcomeBatch(templates={})

        with pytest.raises(KeyError):
            batch.record_outcome(_template("t", 1).template_id, True, 0.5)


class TestTemplateStore:
    """Tests for TemplateStore."""

    @pytest.mark.asyncio
    async def test_seed_defaults_idempotent(self, template_repository):
        """Test seeding inserts once and then does nothing."""
        store = TemplateStore(template_repository)

        assert await store.seed_defaults() == 16
        assert await store.seed_defaults() == 0
        assert await template_repository.count() == 16

    @pytest.mark.asyncio
    async def test_seed_skipped_when_store_not_empty(self, template_repository):
        """Test a non-empty store is never seeded."""
        custom = _template("custom", 1)
        template_repository.templates[custom.template_id] = custom
        store = TemplateStore(template_repository)

        assert await store.seed_defaults() == 0
        assert await template_repository.count() == 1

    @pytest.mark.asyncio
    async def test_active_templates_ordering(self, template_repository):
        """Test ordering by priority, average confidence, then name."""
        for template in [
            _template("b", 50, 0.5),
            _template("a", 50, 0.5),
            _template("c", 50, 0.9),
            _template("d", 90, 0.1),
        ]:
            template_repository.templates[template.template_id] = template
        store = TemplateStore(template_repository)

        templates = await store.get_active_templates(QueryCriteria())

        assert [t.name for t in templates] == ["d", "c", "a", "b"]

    @pytest.mark.asyncio
    async def test_scope_and_active_filter(self, template_repository):
        """Test inactive and out-of-scope templates are excluded."""
        inactive = _template("inactive", 10)
        inactive.is_active = False
        for template in [
            _template("any", 10),
            _template("uk", 10, country="GB"),
            _template("us", 10, country="US"),
            inactive,
        ]:
            template_repository.templates[template.template_id] = template
        store = TemplateStore(template_repository)

        templates = await store.get_active_templates(QueryCriteria(countries=["gb"]))

        assert sorted(t.name for t in templates) == ["any", "uk"]

    @pytest.mark.asyncio
    async def test_cache_hit(self, template_repository):
        """Test cached lookups skip the repository."""
        store = TemplateStore(template_repository, cache_ttl_seconds=60)
        criteria = QueryCriteria(countries=["US"])

        await store.get_active_templates(criteria)
        await store.get_active_templates(criteria)
        assert template_repository.find_calls == 1

        await store.get_active_templates(criteria, use_cache=False)
        assert template_repository.find_calls == 2

    @pytest.mark.asyncio
    async def test_cache_disabled_with_zero_ttl(self, template_repository):
        """Test a zero TTL disables caching."""
        store = TemplateStore(template_repository, cache_ttl_seconds=0)

        await store.get_active_templates(QueryCriteria())
        await store.get_active_templates(QueryCriteria())

        assert template_repository.find_calls == 2

    @pytest.mark.asyncio
    async def test_unreachable_store(self, template_repository):
        """Test repository failures raise TemplateStoreError."""
        template_repository.fail_reads = True
        store = TemplateStore(template_repository)

        with pytest.raises(TemplateStoreError) as exc_info:
            await store.get_active_templates(QueryCriteria())
        assert exc_info.value.stage == "initializing"

        with pytest.raises(TemplateStoreError):
            await store.seed_defaults()

    @pytest.mark.asyncio
    async def test_flush_outcomes(self, template_repository):
        """Test one update per template and cache invalidation."""
        first = _template("first", 10, 0.5)
        second = _template("second", 5, 0.5)
        for template in (first, second):
            template_repository.templates[template.template_id] = template
        store = TemplateStore(template_repository, ema_alpha=0.5, cache_ttl_seconds=60)
        templates = await store.get_active_templates(QueryCriteria())

        batch = store.begin_outcomes(templates)
        batch.record_outcome(first.template_id, True, 0.9)
        batch.record_outcome(first.template_id, False, 0.1)
        written = await store.flush_outcomes(batch)

        assert list(written) == [first.template_id]
        assert written[first.template_id].usage_count == 1
        assert len(template_repository.updates) == 1
        assert first.usage_count == 1
        assert first.success_count == 1
        assert first.average_confidence == pytest.approx(0.7)
        assert second.usage_count == 0

        await store.get_active_templates(QueryCriteria())
        assert template_repository.find_calls == 2

    @pytest.mark.asyncio
    async def test_flush_failure(self, template_repository):
        """Test a failed counter write raises with the persistence stage."""
        template = _template("t", 10)
        template_repository.templates[template.template_id] = template
        template_repository.fail_updates = True
        store = TemplateStore(template_repository)

        batch = store.begin_outcomes([template])
        batch.record_outcome(template.template_id, True, 0.8)

        with pytest.raises(TemplateStoreError) as exc_info:
            await store.flush_outcomes(batch)
        assert exc_info.value.stage == "persistence"

    @pytest.mark.asyncio
    async def test_concurrent_flushes_accumulate(self, template_repository):
        """Test batches flushed from the same snapshot each add their outcome."""
        template = _template("t", 10, 0.5)
        template_repository.templates[template.template_id] = template
        store = TemplateStore(template_repository, ema_alpha=0.5)
        snapshot = await store.get_active_templates(QueryCriteria())

        first = store.begin_outcomes(snapshot)
        first.record_outcome(template.template_id, True, 1.0)
        second = store.begin_outcomes(snapshot)
        second.record_outcome(template.template_id, False, 0.0)
        await asyncio.gather(store.flush_outcomes(first), store.flush_outcomes(second))

        assert template.usage_count == 2
        assert template.success_count == 1
        assert len(template_repository.updates) == 2


class TestSeeding:
    """Tests for seed_defaults."""

    @pytest.mark.asyncio
    async def test_seeds_empty_store(self, template_repository):
        """Test the canonical set is inserted once."""
        store = TemplateStore(template_repository)

        assert await store.seed_defaults() == 16
        assert await store.seed_defaults() == 0
        assert await template_repository.count() == 16

    @pytest.mark.asyncio
    async def test_lost_seeding_race(self, template_repository_factory):
        """Test a name collision while seeding stops quietly."""

        class SeededElsewhere(template_repository_factory):
            async def count(self) -> int:
                return 0

        repository = SeededElsewhere(default_templates()[:1])
        store = TemplateStore(repository)

        assert await store.seed_defaults() == 0
        assert len(repository.templates) == 1


class TestTemplateStats:
    """Tests for get_template_stats."""

    @pytest.mark.asyncio
    async def test_stats(self, template_repository):
        """Test totals, counts by type and top performers."""
        strong = _template("strong", 10, 0.9)
        strong.success_count = 5
        steady = _template("steady", 10, 0.8)
        steady.success_count = 5
        weak = _template("weak", 10, 0.4)
        retired = _template("retired", 10, 0.9)
        retired.success_count = 9
        retired.is_active = False
        retired.template_type = QueryTemplateType.COMPOSITE
        for template in (weak, steady, strong, retired):
            template_repository.templates[template.template_id] = template
        store = TemplateStore(template_repository)

        stats = await store.get_template_stats(top=2)

        assert stats.total == 4
        assert stats.active == 3
        assert stats.by_type == {"base": 3, "composite": 1}
        assert [t.name for t in stats.top_performing] == ["strong", "steady"]
        assert stats.to_dict()["top_performing"][0]["success_count"] == 5

    @pytest.mark.asyncio
    async def test_stats_unreachable(self, template_repository):
        """Test read failures raise TemplateStoreError."""
        template_repository.fail_reads = True

        with pytest.raises(TemplateStoreError):
            await TemplateStore(template_repository).get_template_stats()
