"""Types for the query generation pipeline.

Request-boundary types (``QueryCriteria``, ``GenerationOptions``,
``QueryGenerationRequest``) are pydantic models validated on entry.
Pipeline and result types are plain dataclasses.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from uuid_utils.compat import uuid7

from mediascout.utils.exceptions import ConfigurationError


class QueryTemplateType(str, Enum):
    """Scope of a query template."""

    BASE = "base"
    CATEGORY_SPECIFIC = "category_specific"
    COUNTRY_SPECIFIC = "country_specific"
    BEAT_SPECIFIC = "beat_specific"
    LANGUAGE_SPECIFIC = "language_specific"
    COMPOSITE = "composite"


class QueryType(str, Enum):
    """How a generated query was produced."""

    TEMPLATE = "template"  # Literal template expansion
    AI_ENHANCED = "ai_enhanced"  # Variant returned by the AI enhancer


class GenerationStage(str, Enum):
    """Stages of one generation batch, in execution order."""

    INITIALIZING = "initializing"
    EXPANSION = "expansion"
    AI_ENHANCEMENT = "ai_enhancement"
    SCORING = "scoring"
    FILTERING = "filtering"
    DIVERSITY_SELECTION = "diversity_selection"
    PERSISTENCE = "persistence"
    COMPLETED = "completed"


class GenerationStatus(str, Enum):
    """Outcome of a generation batch."""

    COMPLETED = "completed"  # Possibly degraded; see errors
    FAILED = "failed"  # Only ever recorded in the performance log


# Criteria dimension -> template scoping attribute
SCOPED_DIMENSIONS: dict[str, str] = {
    "countries": "country",
    "categories": "category",
    "beats": "beat",
    "languages": "language",
}

CRITERIA_DIMENSIONS: tuple[str, ...] = (
    "categories",
    "beats",
    "countries",
    "languages",
    "topics",
    "outlets",
)


def _clean_values(values: list[str]) -> list[str]:
    """Strip values, drop blanks, dedupe case-insensitively keeping first."""
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        text = " ".join(str(value).split())
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        cleaned.append(text)
    return cleaned


class QueryCriteria(BaseModel):
    """Structured search criteria, one optional list per dimension."""

    model_config = ConfigDict(extra="forbid")

    categories: list[str] = Field(default_factory=list)
    beats: list[str] = Field(default_factory=list)
    countries: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    outlets: list[str] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("*")
    @classmethod
    def _normalize(cls, value: list[str]) -> list[str]:
        return _clean_values(value)

    def values_for(self, dimension: str) -> list[str]:
        """Get the values requested for a dimension."""
        return list(getattr(self, dimension))

    def requested_dimensions(self) -> list[str]:
        """Dimensions with at least one requested value, in canonical order."""
        return [dim for dim in CRITERIA_DIMENSIONS if getattr(self, dim)]

    def cache_key(self) -> str:
        """Stable key for template lookups scoped by this criteria."""
        parts = [",".join(sorted(v.lower() for v in getattr(self, dim))) for dim in SCOPED_DIMENSIONS]
        key = "|".join(parts)
        return key if key.strip("|") else "default"


class GenerationOptions(BaseModel):
    """Per-request pipeline options."""

    model_config = ConfigDict(extra="forbid")

    max_queries: int = Field(default=10, ge=1, le=100)
    diversity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    min_relevance_score: float = Field(default=0.3, ge=0.0, le=1.0)
    enable_ai_enhancement: bool = True
    fallback_strategies: list[str] = Field(default_factory=list)
    cache_enabled: bool = True
    priority: Literal["low", "medium", "high"] = "medium"


class QueryGenerationRequest(BaseModel):
    """A validated query generation request."""

    model_config = ConfigDict(extra="forbid")

    search_id: str = Field(min_length=1)
    batch_id: str = Field(min_length=1)
    original_query: str = Field(min_length=1, max_length=500)
    criteria: QueryCriteria = Field(default_factory=QueryCriteria)
    options: GenerationOptions = Field(default_factory=GenerationOptions)
    user_id: str | None = None

    @field_validator("original_query")
    @classmethod
    def _strip_query(cls, value: str) -> str:
        text = " ".join(value.split())
        if not text:
            raise ValueError("original_query must not be blank")
        return text

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "QueryGenerationRequest":
        """Validate a raw request payload.

        Raises:
            ConfigurationError: If the payload is invalid.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid query generation request: {e}") from e


@dataclass
class QueryTemplate:
    """A parametrized query-string skeleton with optional scope.

    A null scoping dimension means the template applies to every value of
    that dimension.
    """

    name: str
    template: str
    template_type: QueryTemplateType = QueryTemplateType.BASE
    template_id: UUID = field(default_factory=uuid7)

    # Scope
    country: str | None = None
    category: str | None = None
    beat: str | None = None
    language: str | None = None

    variables: dict[str, str] = field(default_factory=dict)
    priority: int = 0
    is_active: bool = True

    # Rolling performance counters
    usage_count: int = 0
    success_count: int = 0
    average_confidence: float = 0.5

    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def scope(self) -> dict[str, str | None]:
        """Scoping values keyed by criteria dimension."""
        return {dim: getattr(self, attr) for dim, attr in SCOPED_DIMENSIONS.items()}

    def matches(self, criteria: QueryCriteria) -> bool:
        """Whether every non-null scoping dimension matches the criteria."""
        for dim, value in self.scope().items():
            if value is None:
                continue
            requested = {v.lower() for v in criteria.values_for(dim)}
            if value.lower() not in requested:
                return False
        return True


@dataclass
class TemplateCounters:
    """New absolute counter values for a template after a batch."""

    usage_count: int
    success_count: int
    average_confidence: float


@dataclass
class TemplateStats:
    """Aggregate view of the template store."""

    total: int = 0
    active: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    # Active templates by success count desc, then average confidence desc
    top_performing: list[QueryTemplate] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "active": self.active,
            "by_type": dict(self.by_type),
            "top_performing": [
                {
                    "template_id": str(t.template_id),
                    "name": t.name,
                    "template_type": t.template_type.value,
                    "usage_count": t.usage_count,
                    "success_count": t.success_count,
                    "average_confidence": t.average_confidence,
                }
                for t in self.top_performing
            ],
        }


@dataclass
class QueryScores:
    """Scores attached to a generated query."""

    relevance: float = 0.0
    diversity: float = 1.0
    overall: float = 0.0

    # Component breakdown of the overall score
    template_confidence: float = 0.0
    criteria_coverage: float = 0.0
    length_factor: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization."""
        return {
            "relevance": self.relevance,
            "diversity": self.diversity,
            "overall": self.overall,
            "template_confidence": self.template_confidence,
            "criteria_coverage": self.criteria_coverage,
            "length_factor": self.length_factor,
        }


@dataclass
class QueryCandidate:
    """A candidate query moving through the pipeline before acceptance."""

    query_text: str
    query_type: QueryType
    insertion_index: int
    source_priority: int
    source_template: QueryTemplate | None = None
    ai_enhanced: bool = False
    scores: QueryScores = field(default_factory=QueryScores)

    @property
    def source_template_id(self) -> UUID | None:
        """ID of the template this candidate was expanded from."""
        return self.source_template.template_id if self.source_template else None

    @property
    def merge_key(self) -> tuple[int, int]:
        """Deterministic merge order: source priority desc, insertion index asc."""
        return (-self.source_priority, self.insertion_index)


@dataclass
class GeneratedQuery:
    """An accepted query, write-once per batch."""

    search_id: str
    batch_id: str
    query_text: str
    query_type: QueryType
    scores: QueryScores
    source_template_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    query_id: UUID = field(default_factory=uuid7)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def ai_enhanced(self) -> bool:
        """Whether the query came from the AI enhancer."""
        return bool(self.metadata.get("ai_enhanced", False))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "query_id": str(self.query_id),
            "search_id": self.search_id,
            "batch_id": self.batch_id,
            "query_text": self.query_text,
            "query_type": self.query_type.value,
            "source_template_id": str(self.source_template_id) if self.source_template_id else None,
            "scores": self.scores.to_dict(),
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class GenerationMetrics:
    """Metrics snapshot for one batch."""

    total_generated: int = 0
    average_score: float = 0.0
    diversity_score: float = 0.0
    processing_time_ms: float = 0.0
    coverage_by_criteria: dict[str, float] = field(default_factory=dict)

    # Candidate flow
    candidates_considered: int = 0
    duplicates_removed: int = 0
    below_min_score: int = 0
    rejected_for_similarity: int = 0
    low_coverage: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_generated": self.total_generated,
            "average_score": self.average_score,
            "diversity_score": self.diversity_score,
            "processing_time_ms": self.processing_time_ms,
            "coverage_by_criteria": dict(self.coverage_by_criteria),
            "candidates_considered": self.candidates_considered,
            "duplicates_removed": self.duplicates_removed,
            "below_min_score": self.below_min_score,
            "rejected_for_similarity": self.rejected_for_similarity,
            "low_coverage": self.low_coverage,
        }


@dataclass
class QueryPerformanceLog:
    """Audit record of one batch's metrics, write-once."""

    search_id: str
    batch_id: str
    status: GenerationStatus
    metrics: GenerationMetrics
    errors: list[str] = field(default_factory=list)
    log_id: UUID = field(default_factory=uuid7)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class QueryGenerationResult:
    """Result of a generation batch.

    ``status`` is "completed" even when the batch degraded (AI disabled or
    failed, a record could not be persisted); ``errors`` then lists the
    caveats. Fatal failures raise instead of returning a result.
    """

    search_id: str
    batch_id: str
    original_query: str
    queries: list[GeneratedQuery]
    metrics: GenerationMetrics
    status: GenerationStatus = GenerationStatus.COMPLETED
    errors: list[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        """Whether the batch completed with caveats."""
        return bool(self.errors)

    @property
    def query_texts(self) -> list[str]:
        """Accepted query strings in result order."""
        return [q.query_text for q in self.queries]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "search_id": self.search_id,
            "batch_id": self.batch_id,
            "original_query": self.original_query,
            "queries": [q.to_dict() for q in self.queries],
            "metrics": self.metrics.to_dict(),
            "status": self.status.value,
        }
        if self.errors:
            result["errors"] = list(self.errors)
        return result
