"""Unit tests for query generation types."""

import pytest

from mediascout.query_generation.types import (
    GeneratedQuery,
    GenerationMetrics,
    GenerationStatus,
    QueryCandidate,
    QueryCriteria,
    QueryGenerationRequest,
    QueryGenerationResult,
    QueryScores,
    QueryTemplate,
    QueryType,
)
from mediascout.utils.exceptions import ConfigurationError


class TestQueryCriteria:
    """Tests for QueryCriteria."""

    def test_normalizes_values(self):
        """Test values are stripped and deduplicated case-insensitively."""
        criteria = QueryCriteria(countries=[" US ", "us", "GB"], beats=["  ", "Climate  Policy"])

        assert criteria.countries == ["US", "GB"]
        assert criteria.beats == ["Climate Policy"]

    def test_none_becomes_empty(self):
        """Test null dimensions become empty lists."""
        criteria = QueryCriteria.model_validate({"categories": None})

        assert criteria.categories == []

    def test_unknown_dimension_rejected(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ValueError):
            QueryCriteria.model_validate({"regions": ["EU"]})

    def test_requested_dimensions(self):
        """Test requested dimensions keep canonical order."""
        criteria = QueryCriteria(outlets=["BBC"], categories=["Tech"])

        assert criteria.requested_dimensions() == ["categories", "outlets"]

    def test_cache_key(self):
        """Test cache key ignores case and order of scoped values."""
        a = QueryCriteria(countries=["US", "GB"])
        b = QueryCriteria(countries=["gb", "us"], topics=["ignored"])

        assert a.cache_key() == b.cache_key()
        assert QueryCriteria().cache_key() == "default"


class TestQueryGenerationRequest:
    """Tests for request validation."""

    def test_parse_valid(self):
        """Test a valid payload is parsed with defaults."""
        request = QueryGenerationRequest.parse(
            {"search_id": "s", "batch_id": "b", "original_query": "  climate   reporters "}
        )

        assert request.original_query == "climate reporters"
        assert request.options.max_queries == 10
        assert request.options.enable_ai_enhancement is True

    @pytest.mark.parametrize(
        "payload",
        [
            {"search_id": "s", "batch_id": "b", "original_query": "   "},
            {"search_id": "s", "batch_id": "b", "original_query": "x" * 501},
            {"search_id": "", "batch_id": "b", "original_query": "q"},
            {"search_id": "s", "batch_id": "b", "original_query": "q", "options": {"max_queries": 0}},
            {
                "search_id": "s",
                "batch_id": "b",
                "original_query": "q",
                "options": {"diversity_threshold": 1.5},
            },
        ],
    )
    def test_parse_invalid(self, payload):
        """Test invalid payloads raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            QueryGenerationRequest.parse(payload)


class TestQueryTemplate:
    """Tests for QueryTemplate scope matching."""

    def test_unscoped_matches_everything(self):
        """Test a template without scope matches any criteria."""
        template = QueryTemplate(name="t", template="{query}")

        assert template.matches(QueryCriteria())
        assert template.matches(QueryCriteria(countries=["FR"]))

    def test_scoped_match_is_case_insensitive(self):
        """Test scoped dimensions match requested values ignoring case."""
        template = QueryTemplate(name="t", template="{query}", country="GB", category="Technology")

        assert template.matches(QueryCriteria(countries=["gb"], categories=["technology"]))
        assert not template.matches(QueryCriteria(countries=["gb"]))
        assert not template.matches(QueryCriteria(countries=["US"], categories=["Technology"]))


class TestResultTypes:
    """Tests for candidate and result types."""

    def test_merge_key(self):
        """Test merge key orders by priority desc then insertion asc."""
        high = QueryCandidate("a b c", QueryType.TEMPLATE, insertion_index=5, source_priority=90)
        low = QueryCandidate("a b d", QueryType.AI_ENHANCED, insertion_index=0, source_priority=0)

        assert sorted([low, high], key=lambda c: c.merge_key) == [high, low]

    def test_result_to_dict_omits_empty_errors(self):
        """Test errors key appears only when there are errors."""
        query = GeneratedQuery(
            search_id="s",
            batch_id="b",
            query_text="climate reporters media",
            query_type=QueryType.TEMPLATE,
            scores=QueryScores(overall=0.8),
            metadata={"ai_enhanced": False},
        )
        result = QueryGenerationResult(
            search_id="s",
            batch_id="b",
            original_query="climate reporters",
            queries=[query],
            metrics=GenerationMetrics(total_generated=1),
        )

        data = result.to_dict()
        assert "errors" not in data
        assert data["status"] == "completed"
        assert data["queries"][0]["scores"]["overall"] == 0.8
        assert not result.is_degraded

        result.errors.append("ai_enhancement: timed out")
        assert result.to_dict()["errors"] == ["ai_enhancement: timed out"]
        assert result.is_degraded
        assert result.status == GenerationStatus.COMPLETED
