"""Observability for MediaScout: Prometheus metrics."""

from .metrics import (
    MetricsConfig,
    MetricsManager,
    create_metrics_manager,
    get_metrics,
    observe_contact_score,
    observe_generation,
    record_ai_enhancement,
    record_generation_stage,
    record_query_candidates,
)

__all__ = [
    "MetricsConfig",
    "MetricsManager",
    "create_metrics_manager",
    "get_metrics",
    "observe_contact_score",
    "observe_generation",
    "record_ai_enhancement",
    "record_generation_stage",
    "record_query_candidates",
]
