"""Effective configuration of the query generation service."""

import copy
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from mediascout.config.settings import QueryGenerationSettings, get_settings
from mediascout.utils.exceptions import ConfigurationError


class AIConfig(BaseModel):
    """AI enhancement settings."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    model: str = "claude-sonnet-4-20250514"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    timeout_ms: int = Field(default=30000, ge=1)
    # Ranked below template candidates at equal score
    source_priority: int = Field(default=0, ge=0)


class QueryScorerConfig(BaseModel):
    """Configuration for query scoring."""

    model_config = ConfigDict(extra="forbid")

    # Factor weights (must sum to 1.0)
    template_confidence_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    criteria_coverage_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    length_weight: float = Field(default=0.2, ge=0.0, le=1.0)

    # Token count range that earns the full length factor
    min_tokens: int = Field(default=3, ge=1)
    max_tokens: int = Field(default=20, ge=1)

    # Template confidence assumed for AI-generated queries
    default_template_confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_weights(self) -> "QueryScorerConfig":
        total = sum(self.get_weights().values())
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"scoring weights must sum to 1.0, got {total:.4f}")
        if self.min_tokens > self.max_tokens:
            raise ValueError("min_tokens must not exceed max_tokens")
        return self

    def get_weights(self) -> dict[str, float]:
        """Get all factor weights as a dictionary."""
        return {
            "template_confidence": self.template_confidence_weight,
            "criteria_coverage": self.criteria_coverage_weight,
            "length": self.length_weight,
        }


class TemplateConfig(BaseModel):
    """Template store and expansion settings."""

    model_config = ConfigDict(extra="forbid")

    ema_alpha: float = Field(default=0.2, gt=0.0, le=1.0)
    expansion_cap: int = Field(default=5, ge=1)
    cache_ttl_seconds: int = Field(default=3600, ge=0)
    max_templates: int = Field(default=100, ge=1)


class QueryGenerationConfig(BaseModel):
    """Effective configuration of a ``QueryGenerationService``."""

    model_config = ConfigDict(extra="forbid")

    ai: AIConfig = Field(default_factory=AIConfig)
    scoring: QueryScorerConfig = Field(default_factory=QueryScorerConfig)
    templates: TemplateConfig = Field(default_factory=TemplateConfig)

    @classmethod
    def from_settings(cls, settings: QueryGenerationSettings | None = None) -> "QueryGenerationConfig":
        """Build the config from environment defaults."""
        qg = settings or get_settings().query_generation
        return cls(
            ai=AIConfig(
                enabled=qg.ai_enabled,
                model=get_settings().anthropic_model,
                temperature=qg.ai_temperature,
                max_tokens=qg.ai_max_tokens,
                timeout_ms=qg.ai_timeout_ms,
            ),
            templates=TemplateConfig(
                ema_alpha=qg.template_ema_alpha,
                expansion_cap=qg.template_expansion_cap,
                cache_ttl_seconds=qg.template_cache_ttl_seconds,
            ),
        )

    def merged(self, partial: dict[str, Any]) -> "QueryGenerationConfig":
        """Return a new config with ``partial`` deep-merged over this one.

        Raises:
            ConfigurationError: If the merged config is invalid.
        """
        data = deep_merge(self.model_dump(), partial)
        try:
            return type(self).model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid query generation config: {e}") from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result
