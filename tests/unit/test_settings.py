"""Unit tests for settings and query generation configuration."""

import pytest

from mediascout.config.settings import QueryGenerationSettings, Settings
from mediascout.query_generation.config import (
    AIConfig,
    QueryGenerationConfig,
    QueryScorerConfig,
    TemplateConfig,
    deep_merge,
)
from mediascout.utils.exceptions import ConfigurationError


class TestSettings:
    """Tests for environment-backed settings."""

    def test_defaults(self, monkeypatch):
        """Test default settings values."""
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.ENVIRONMENT == "development"
        assert settings.anthropic_api_key is None
        assert settings.query_generation.default_max_queries == 10
        assert settings.query_generation.template_ema_alpha == 0.2

    def test_nested_env_override(self, monkeypatch):
        """Test nested query generation settings from the environment."""
        monkeypatch.setenv("QUERY_GENERATION__AI_TIMEOUT_MS", "5000")
        monkeypatch.setenv("QUERY_GENERATION__AI_ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.query_generation.ai_timeout_ms == 5000
        assert settings.query_generation.ai_enabled is False


class TestQueryScorerConfig:
    """Tests for QueryScorerConfig."""

    def test_default_weights(self):
        """Test default weights sum to 1.0."""
        weights = QueryScorerConfig().get_weights()

        assert weights == {
            "template_confidence": 0.4,
            "criteria_coverage": 0.4,
            "length": 0.2,
        }
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_weights_must_sum_to_one(self):
        """Test invalid weight totals are rejected."""
        with pytest.raises(ValueError, match="sum to 1.0"):
            QueryScorerConfig(template_confidence_weight=0.9)

    def test_token_range_validated(self):
        """Test min_tokens may not exceed max_tokens."""
        with pytest.raises(ValueError, match="min_tokens"):
            QueryScorerConfig(min_tokens=30, max_tokens=20)


class TestQueryGenerationConfig:
    """Tests for QueryGenerationConfig."""

    def test_from_settings(self):
        """Test building the config from settings defaults."""
        qg = QueryGenerationSettings(ai_timeout_ms=1234, template_expansion_cap=2)

        config = QueryGenerationConfig.from_settings(qg)

        assert config.ai.timeout_ms == 1234
        assert config.templates.expansion_cap == 2

    def test_merged_deep_merges(self):
        """Test partial updates keep sibling values."""
        config = QueryGenerationConfig()

        merged = config.merged({"ai": {"timeout_ms": 100}})

        assert merged.ai.timeout_ms == 100
        assert merged.ai.temperature == config.ai.temperature
        assert merged.scoring == config.scoring
        assert config.ai.timeout_ms == 30000

    def test_merged_rejects_invalid_values(self):
        """Test invalid merged values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            QueryGenerationConfig().merged({"scoring": {"length_weight": 0.5}})

    def test_merged_rejects_unknown_keys(self):
        """Test unknown keys raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            QueryGenerationConfig().merged({"unknown": {"x": 1}})

    def test_sub_config_defaults(self):
        """Test sub-config defaults."""
        assert AIConfig().source_priority == 0
        assert TemplateConfig().ema_alpha == 0.2
        assert TemplateConfig().expansion_cap == 5


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_merge(self):
        """Test nested dicts merge recursively."""
        base = {"a": {"b": 1, "c": 2}, "d": 3}

        result = deep_merge(base, {"a": {"c": 5}})

        assert result == {"a": {"b": 1, "c": 5}, "d": 3}
        assert base["a"]["c"] == 2

    def test_scalar_replaces_dict(self):
        """Test non-dict values replace existing entries."""
        assert deep_merge({"a": {"b": 1}}, {"a": 1}) == {"a": 1}
