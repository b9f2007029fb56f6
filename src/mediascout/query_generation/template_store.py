"""Template store: active-template lookup, seeding, counter updates and stats.

Counters are never written per query. A batch stages one outcome per
template in a ``TemplateOutcomeBatch`` and ``TemplateStore.flush_outcomes``
hands each to the repository, which folds it into the stored counters in
place so concurrent batches never overwrite each other.
"""

import time
from dataclasses import dataclass, field
from uuid import UUID

from mediascout.core.exceptions import DuplicateTemplateError, TemplateStoreError
from mediascout.core.logging import get_logger
from mediascout.utils.retry import NO_RETRY, RetryPolicy

from .protocols import TemplateRepository
from .types import (
    QueryCriteria,
    QueryTemplate,
    QueryTemplateType,
    TemplateCounters,
    TemplateStats,
)

logger = get_logger(__name__)


def _default(
    name: str,
    template: str,
    template_type: QueryTemplateType,
    priority: int,
    **scope: str,
) -> QueryTemplate:
    return QueryTemplate(
        name=name,
        template=template,
        template_type=template_type,
        priority=priority,
        average_confidence=0.5,
        **scope,
    )


def default_templates() -> list[QueryTemplate]:
    """Canonical template set inserted into an empty store."""
    return [
        # Base
        _default(
            "Base Media Contact Search",
            "{query} media contact journalist reporter",
            QueryTemplateType.BASE,
            100,
        ),
        _default("Beat Journalist Search", "{query} {beat} journalist reporter", QueryTemplateType.BASE, 90),
        _default(
            "Category Media Search",
            "{query} {category} media journalism",
            QueryTemplateType.BASE,
            90,
        ),
        _default(
            "Language Media Search",
            "{query} {language} language media journalist",
            QueryTemplateType.LANGUAGE_SPECIFIC,
            60,
        ),
        # Country
        _default(
            "UK Media Search",
            "{query} UK British media journalist reporter",
            QueryTemplateType.COUNTRY_SPECIFIC,
            85,
            country="GB",
        ),
        _default(
            "US Media Search",
            "{query} US American media journalist reporter",
            QueryTemplateType.COUNTRY_SPECIFIC,
            85,
            country="US",
        ),
        _default(
            "Canadian Media Search",
            "{query} Canada Canadian media journalist reporter",
            QueryTemplateType.COUNTRY_SPECIFIC,
            85,
            country="CA",
        ),
        # Category
        _default(
            "Technology Media Search",
            "{query} technology tech journalist reporter media",
            QueryTemplateType.CATEGORY_SPECIFIC,
            88,
            category="Technology",
        ),
        _default(
            "Business Media Search",
            "{query} business finance journalist reporter media",
            QueryTemplateType.CATEGORY_SPECIFIC,
            88,
            category="Business",
        ),
        _default(
            "Sports Media Search",
            "{query} sports journalist reporter media athletics",
            QueryTemplateType.CATEGORY_SPECIFIC,
            88,
            category="Sports",
        ),
        # Beat
        _default(
            "Politics Beat Search",
            "{query} politics government journalist reporter political",
            QueryTemplateType.BEAT_SPECIFIC,
            87,
            beat="Politics",
        ),
        _default(
            "Healthcare Beat Search",
            "{query} health medical journalist reporter healthcare",
            QueryTemplateType.BEAT_SPECIFIC,
            87,
            beat="Healthcare",
        ),
        _default(
            "Entertainment Beat Search",
            "{query} entertainment celebrity journalist reporter media",
            QueryTemplateType.BEAT_SPECIFIC,
            87,
            beat="Entertainment",
        ),
        # Composite
        _default(
            "Country-Category Search",
            "{query} {country} {category} media journalist reporter",
            QueryTemplateType.COMPOSITE,
            80,
        ),
        _default(
            "Multi-Criteria Search",
            "{query} {category} {beat} journalist reporter media",
            QueryTemplateType.COMPOSITE,
            75,
        ),
        _default(
            "Advanced Media Search",
            "{query} site:.com OR site:.org {categories} journalist reporter author contact",
            QueryTemplateType.COMPOSITE,
            70,
        ),
    ]


def apply_outcome(
    template: QueryTemplate,
    accepted: bool,
    confidence: float,
    alpha: float = 0.2,
) -> TemplateCounters:
    """Compute a template's counters after one batch outcome.

    This is the rule every ``TemplateRepository.record_outcome`` applies to
    the stored row. ``average_confidence`` follows an exponential moving
    average so the store keeps no per-use history.

    Args:
        template: Template with its current counters
        accepted: Whether any of its queries was accepted in the batch
        confidence: Best overall score among its candidates, 0.0 - 1.0
        alpha: Weight of the new observation

    Returns:
        New absolute counter values.
    """
    confidence = min(max(confidence, 0.0), 1.0)
    average = template.average_confidence * (1 - alpha) + confidence * alpha
    return TemplateCounters(
        usage_count=template.usage_count + 1,
        success_count=template.success_count + (1 if accepted else 0),
        average_confidence=min(max(average, 0.0), 1.0),
    )


@dataclass
class _Outcome:
    template: QueryTemplate
    accepted: bool
    confidence: float


@dataclass
class TemplateOutcomeBatch:
    """Outcomes staged during one generation batch."""

    templates: dict[UUID, QueryTemplate]
    outcomes: dict[UUID, _Outcome] = field(default_factory=dict)

    def record_outcome(self, template_id: UUID, accepted: bool, confidence: float) -> None:
        """Stage an outcome for a template.

        Repeated outcomes for the same template fold into one: accepted if
        any was accepted, with the highest confidence.
        """
        template = self.templates.get(template_id)
        if template is None:
            raise KeyError(f"Template not part of this batch: {template_id}")

        current = self.outcomes.get(template_id)
        if current is None:
            self.outcomes[template_id] = _Outcome(template, accepted, confidence)
        else:
            current.accepted = current.accepted or accepted
            current.confidence = max(current.confidence, confidence)

    def __len__(self) -> int:
        return len(self.outcomes)


class TemplateStore:
    """Access to query templates through a ``TemplateRepository``.

    Every repository failure surfaces as ``TemplateStoreError`` after the
    retry policy is exhausted.

    Example:
        ```python
        store = TemplateStore(SqlTemplateRepository(session))
        await store.seed_defaults()
        templates = await store.get_active_templates(criteria)
        ```
    """

    def __init__(
        self,
        repository: TemplateRepository,
        *,
        ema_alpha: float = 0.2,
        cache_ttl_seconds: int = 3600,
        max_templates: int = 100,
        retry_policy: RetryPolicy | None = None,
    ):
        self.repository = repository
        self.ema_alpha = ema_alpha
        self.cache_ttl_seconds = cache_ttl_seconds
        self.max_templates = max_templates
        self.retry_policy = retry_policy or NO_RETRY
        self._cache: dict[str, tuple[float, list[QueryTemplate]]] = {}

    async def get_active_templates(
        self,
        criteria: QueryCriteria,
        *,
        use_cache: bool = True,
    ) -> list[QueryTemplate]:
        """Get active templates applicable to the criteria.

        Returns:
            Templates ordered by priority desc, average confidence desc,
            then name ascending.

        Raises:
            TemplateStoreError: If the repository cannot be read.
        """
        key = criteria.cache_key()
        if use_cache and self.cache_ttl_seconds > 0:
            cached = self._cache.get(key)
            if cached is not None and cached[0] > time.monotonic():
                logger.debug("Template cache hit", cache_key=key, count=len(cached[1]))
                return list(cached[1])

        try:
            found = await self.retry_policy.run(
                lambda: self.repository.find_active(criteria), name="template_find_active"
            )
        except Exception as e:
            logger.error("Template lookup failed", error=str(e))
            raise TemplateStoreError(f"Failed to load templates: {e}", stage="initializing") from e

        # Repositories may over-return; the scope rule is enforced here too
        templates = [t for t in found if t.is_active and t.matches(criteria)]
        templates.sort(key=lambda t: (-t.priority, -t.average_confidence, t.name))
        templates = templates[: self.max_templates]

        if use_cache and self.cache_ttl_seconds > 0:
            self._cache[key] = (time.monotonic() + self.cache_ttl_seconds, templates)

        logger.debug("Templates loaded", cache_key=key, count=len(templates))
        return list(templates)

    async def seed_defaults(self) -> int:
        """Insert the canonical templates if the store is empty.

        Losing a seeding race to another process is not an error: the first
        name collision stops seeding and the winner's rows stand.

        Returns:
            Number of templates inserted (0 when already seeded).

        Raises:
            TemplateStoreError: If the repository cannot be read or written.
        """
        inserted = 0
        try:
            existing = await self.retry_policy.run(self.repository.count, name="template_count")
            if existing > 0:
                return 0

            for template in default_templates():
                await self.retry_policy.run(
                    lambda t=template: self.repository.create(t), name="template_create"
                )
                inserted += 1
        except DuplicateTemplateError as e:
            logger.info("Default templates seeded concurrently", inserted=inserted, error=str(e))
        except Exception as e:
            logger.error("Template seeding failed", error=str(e))
            raise TemplateStoreError(f"Failed to seed templates: {e}", stage="initializing") from e

        self.clear_cache()
        if inserted:
            logger.info("Default templates seeded", count=inserted)
        return inserted

    def begin_outcomes(self, templates: list[QueryTemplate]) -> TemplateOutcomeBatch:
        """Start staging outcomes for the templates used in a batch."""
        return TemplateOutcomeBatch(templates={t.template_id: t for t in templates})

    async def flush_outcomes(self, batch: TemplateOutcomeBatch) -> dict[UUID, TemplateCounters]:
        """Fold staged outcomes into the stored counters, one update per template.

        Returns:
            Counters after the update, keyed by template ID.

        Raises:
            TemplateStoreError: If any update fails.
        """
        written: dict[UUID, TemplateCounters] = {}
        for template_id, outcome in batch.outcomes.items():
            confidence = min(max(outcome.confidence, 0.0), 1.0)
            try:
                counters = await self.retry_policy.run(
                    lambda tid=template_id, o=outcome, c=confidence: self.repository.record_outcome(
                        tid, o.accepted, c, self.ema_alpha
                    ),
                    name="template_record_outcome",
                )
            except Exception as e:
                logger.error(
                    "Template counter update failed",
                    template_id=str(template_id),
                    error=str(e),
                )
                raise TemplateStoreError(
                    f"Failed to update template counters: {e}", stage="persistence"
                ) from e
            written[template_id] = counters

        if written:
            self.clear_cache()
        logger.debug("Template outcomes flushed", count=len(written))
        return written

    async def get_template_stats(self, *, top: int = 10) -> TemplateStats:
        """Summarize the store: totals, counts by type, top performers.

        Raises:
            TemplateStoreError: If the repository cannot be read.
        """
        try:
            stats = await self.retry_policy.run(
                lambda: self.repository.stats(top=top), name="template_stats"
            )
        except Exception as e:
            logger.error("Template stats failed", error=str(e))
            raise TemplateStoreError(f"Failed to read template stats: {e}") from e

        logger.debug("Template stats read", total=stats.total, active=stats.active)
        return stats

    def clear_cache(self) -> None:
        """Drop all cached template lookups."""
        self._cache.clear()
