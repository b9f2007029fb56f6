"""Query generation: template expansion, AI enhancement, scoring and selection."""

from mediascout.models.base import parse_numbered_list

from .config import AIConfig, QueryGenerationConfig, QueryScorerConfig, TemplateConfig
from .diversity import batch_diversity, deduplicate, jaccard_similarity, select_diverse
from .enhancer import LLMQueryEnhancer
from .expander import QueryTemplateExpander, validate_query
from .protocols import (
    AIEnhancer,
    GeneratedQueryRepository,
    PerformanceLogRepository,
    TemplateRepository,
)
from .scoring import QueryScorer, create_query_scorer
from .service import QueryGenerationService, create_query_generation_service
from .template_store import (
    TemplateOutcomeBatch,
    TemplateStore,
    apply_outcome,
    default_templates,
)
from .types import (
    GeneratedQuery,
    GenerationMetrics,
    GenerationOptions,
    GenerationStage,
    GenerationStatus,
    QueryCandidate,
    QueryCriteria,
    QueryGenerationRequest,
    QueryGenerationResult,
    QueryPerformanceLog,
    QueryScores,
    QueryTemplate,
    QueryTemplateType,
    QueryType,
    TemplateCounters,
    TemplateStats,
)

__all__ = [
    # Config
    "AIConfig",
    "QueryGenerationConfig",
    "QueryScorerConfig",
    "TemplateConfig",
    # Types
    "GeneratedQuery",
    "GenerationMetrics",
    "GenerationOptions",
    "GenerationStage",
    "GenerationStatus",
    "QueryCandidate",
    "QueryCriteria",
    "QueryGenerationRequest",
    "QueryGenerationResult",
    "QueryPerformanceLog",
    "QueryScores",
    "QueryTemplate",
    "QueryTemplateType",
    "QueryType",
    "TemplateCounters",
    "TemplateStats",
    # Protocols
    "AIEnhancer",
    "GeneratedQueryRepository",
    "PerformanceLogRepository",
    "TemplateRepository",
    # Components
    "LLMQueryEnhancer",
    "QueryGenerationService",
    "QueryScorer",
    "QueryTemplateExpander",
    "TemplateOutcomeBatch",
    "TemplateStore",
    # Functions
    "apply_outcome",
    "batch_diversity",
    "create_query_generation_service",
    "create_query_scorer",
    "deduplicate",
    "default_templates",
    "jaccard_similarity",
    "parse_numbered_list",
    "select_diverse",
    "validate_query",
]
