"""Query scoring from template confidence, criteria coverage and length."""

import re
from functools import lru_cache

from mediascout.core.logging import get_logger

from .config import QueryScorerConfig
from .diversity import tokenize
from .types import QueryCriteria, QueryScores, QueryTemplate

logger = get_logger(__name__)

# Extra terms that count as reflecting a requested country
COUNTRY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "us": ("america", "usa", "united states", "american"),
    "gb": ("uk", "britain", "united kingdom", "british"),
    "ca": ("canada", "canadian"),
    "au": ("australia", "australian"),
    "de": ("germany", "german"),
    "fr": ("france", "french"),
}

LANGUAGE_SYNONYMS: dict[str, tuple[str, ...]] = {
    "en": ("english",),
    "fr": ("french", "français"),
    "de": ("german", "deutsch"),
    "es": ("spanish", "español"),
    "pt": ("portuguese", "português"),
    "ar": ("arabic",),
}

_SYNONYMS_BY_DIMENSION: dict[str, dict[str, tuple[str, ...]]] = {
    "countries": COUNTRY_SYNONYMS,
    "languages": LANGUAGE_SYNONYMS,
}


@lru_cache(maxsize=1024)
def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)")


def contains_term(text: str, term: str) -> bool:
    """Whether ``term`` appears in lowercased ``text`` as whole words."""
    term = term.lower().strip()
    return bool(term) and _term_pattern(term).search(text) is not None


class QueryScorer:
    """Scores candidate queries.

    ``overall`` is the weighted sum of three factors, each in [0, 1]:
    1. Template confidence: the source template's average confidence, or
       a configured default for queries without a template
    2. Criteria coverage: fraction of requested criteria dimensions
       reflected in the query text
    3. Length factor: 1.0 within the token range, scaled down outside it

    Example:
        ```python
        scorer = QueryScorer()
        scores = scorer.score("tech reporter UK", criteria, template)
        if scores.overall >= options.min_relevance_score:
            ...
        ```
    """

    def __init__(self, config: QueryScorerConfig | None = None):
        self.config = config or QueryScorerConfig()

    def score(
        self,
        query: str,
        criteria: QueryCriteria,
        template: QueryTemplate | None = None,
        original_query: str = "",
    ) -> QueryScores:
        """Score a query.

        Args:
            query: Candidate query text
            criteria: Requested search criteria
            template: Source template, None for AI-generated queries
            original_query: The user's query, used for relevance

        Returns:
            QueryScores with overall, relevance and the factor values.
            ``diversity`` is left at 1.0 for the selection stage to set.
        """
        weights = self.config.get_weights()

        template_confidence = (
            template.average_confidence
            if template is not None
            else self.config.default_template_confidence
        )
        coverage = self.criteria_coverage(query, criteria)
        length = self.length_factor(query)

        overall = (
            template_confidence * weights["template_confidence"]
            + coverage * weights["criteria_coverage"]
            + length * weights["length"]
        )

        return QueryScores(
            relevance=self.relevance(query, criteria, original_query, coverage),
            overall=min(max(overall, 0.0), 1.0),
            template_confidence=template_confidence,
            criteria_coverage=coverage,
            length_factor=length,
        )

    def criteria_coverage(self, query: str, criteria: QueryCriteria) -> float:
        """Fraction of requested dimensions reflected in the query.

        Returns 1.0 when no criteria were requested.
        """
        dimensions = criteria.requested_dimensions()
        if not dimensions:
            return 1.0
        text = query.lower()
        covered = sum(
            1 for dim in dimensions if self.dimension_reflected(text, dim, criteria.values_for(dim))
        )
        return covered / len(dimensions)

    def dimension_reflected(self, text: str, dimension: str, values: list[str]) -> bool:
        """Whether any value of a dimension (or a known synonym) is in ``text``."""
        synonyms = _SYNONYMS_BY_DIMENSION.get(dimension, {})
        for value in values:
            if contains_term(text, value):
                return True
            if any(contains_term(text, s) for s in synonyms.get(value.lower(), ())):
                return True
        return False

    def length_factor(self, query: str) -> float:
        """1.0 within [min_tokens, max_tokens], proportionally lower outside."""
        count = len(query.split())
        if count == 0:
            return 0.0
        if count < self.config.min_tokens:
            return count / self.config.min_tokens
        if count > self.config.max_tokens:
            return self.config.max_tokens / count
        return 1.0

    def relevance(
        self,
        query: str,
        criteria: QueryCriteria,
        original_query: str = "",
        coverage: float | None = None,
    ) -> float:
        """Average of criteria coverage and original-query term overlap."""
        if coverage is None:
            coverage = self.criteria_coverage(query, criteria)
        original_terms = tokenize(original_query)
        if not original_terms:
            return coverage
        overlap = len(original_terms & tokenize(query)) / len(original_terms)
        return (coverage + overlap) / 2

    def get_config(self) -> dict[str, object]:
        """Get the scoring configuration, weights included."""
        return {**self.config.model_dump(), "weights": self.config.get_weights()}


def create_query_scorer(config: QueryScorerConfig | None = None) -> QueryScorer:
    """Factory function to create a QueryScorer."""
    return QueryScorer(config=config)
