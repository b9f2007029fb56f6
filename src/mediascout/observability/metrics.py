"""Prometheus metrics for MediaScout observability.

This module provides Prometheus metrics for monitoring:
- Query generation batches (duration, status, degraded runs)
- Pipeline stages (per-stage latency)
- Candidate flow (generated, filtered, accepted queries)
- AI enhancement calls (latency, failures)
- Contact scoring (confidence/quality score distribution)
"""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "MetricsConfig",
    "MetricsManager",
    "GENERATION_DURATION",
    "GENERATION_COUNT",
    "GENERATION_STAGE_DURATION",
    "QUERY_CANDIDATES",
    "AI_ENHANCEMENT_COUNT",
    "CONTACT_SCORE_DISTRIBUTION",
    "observe_generation",
    "record_generation_stage",
    "record_query_candidates",
    "record_ai_enhancement",
    "observe_contact_score",
    "get_metrics",
    "create_metrics_manager",
]


@dataclass
class MetricsConfig:
    """Configuration for Prometheus metrics.

    Attributes:
        enabled: Whether metrics collection is enabled.
        prefix: Prefix for all metric names.
    """

    enabled: bool = True
    prefix: str = "mediascout"

    @classmethod
    def from_env(cls) -> MetricsConfig:
        """Create configuration from environment variables."""
        return cls(
            enabled=os.getenv("METRICS_ENABLED", "true").lower() == "true",
            prefix=os.getenv("METRICS_PREFIX", "mediascout"),
        )


# Default configuration
_config = MetricsConfig()

# ============================================================================
# Query Generation Metrics
# ============================================================================

GENERATION_DURATION = Histogram(
    f"{_config.prefix}_query_generation_duration_seconds",
    "Time to complete a query generation batch",
    ["status"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

GENERATION_COUNT = Counter(
    f"{_config.prefix}_query_generation_batches_total",
    "Total query generation batches processed",
    ["status", "degraded"],
)

GENERATION_STAGE_DURATION = Histogram(
    f"{_config.prefix}_query_generation_stage_duration_seconds",
    "Duration of each query generation stage",
    ["stage"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0),
)

QUERY_CANDIDATES = Counter(
    f"{_config.prefix}_query_candidates_total",
    "Query candidates by pipeline outcome",
    ["outcome"],
)

AI_ENHANCEMENT_COUNT = Counter(
    f"{_config.prefix}_ai_enhancement_calls_total",
    "AI enhancement calls by outcome",
    ["outcome"],
)

# ============================================================================
# Contact Scoring Metrics
# ============================================================================

CONTACT_SCORE_DISTRIBUTION = Histogram(
    f"{_config.prefix}_contact_score",
    "Distribution of extracted contact scores",
    ["axis"],
    buckets=(0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0),
)


class MetricsManager:
    """Manages Prometheus metrics configuration and export."""

    def __init__(
        self,
        config: MetricsConfig | None = None,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """Initialize the metrics manager.

        Args:
            config: Metrics configuration.
            registry: Optional custom registry for testing.
        """
        self.config = config or MetricsConfig()
        self.registry = registry or REGISTRY

    def get_metrics(self) -> bytes:
        """Generate metrics output in Prometheus format."""
        return generate_latest(self.registry)


_metrics_manager: MetricsManager | None = None


def get_metrics_manager() -> MetricsManager:
    """Get the global metrics manager instance."""
    global _metrics_manager
    if _metrics_manager is None:
        _metrics_manager = MetricsManager(MetricsConfig.from_env())
    return _metrics_manager


def create_metrics_manager(
    config: MetricsConfig | None = None,
    registry: CollectorRegistry | None = None,
) -> MetricsManager:
    """Create and register a new metrics manager."""
    global _metrics_manager
    _metrics_manager = MetricsManager(config, registry)
    return _metrics_manager


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return get_metrics_manager().get_metrics()


def _enabled() -> bool:
    return get_metrics_manager().config.enabled


# ============================================================================
# Convenience Functions for Recording Metrics
# ============================================================================


@contextmanager
def observe_generation() -> Generator[dict[str, Any], None, None]:
    """Context manager for observing a generation batch.

    Yields:
        Context dict; set ``degraded`` to True when the batch completed
        with non-fatal errors.
    """
    context: dict[str, Any] = {"status": "completed", "degraded": False}
    start_time = time.perf_counter()

    try:
        yield context
    except Exception:
        context["status"] = "failed"
        raise
    finally:
        if _enabled():
            duration = time.perf_counter() - start_time
            status = context.get("status", "completed")
            GENERATION_DURATION.labels(status=status).observe(duration)
            GENERATION_COUNT.labels(
                status=status, degraded=str(bool(context.get("degraded"))).lower()
            ).inc()


def record_generation_stage(stage: str, duration_seconds: float) -> None:
    """Record the duration of a pipeline stage."""
    if _enabled():
        GENERATION_STAGE_DURATION.labels(stage=stage).observe(duration_seconds)


def record_query_candidates(outcome: str, count: int) -> None:
    """Record candidates reaching an outcome (generated, filtered, accepted...)."""
    if _enabled() and count > 0:
        QUERY_CANDIDATES.labels(outcome=outcome).inc(count)


def record_ai_enhancement(outcome: str) -> None:
    """Record an AI enhancement call outcome (success, failure, timeout, skipped)."""
    if _enabled():
        AI_ENHANCEMENT_COUNT.labels(outcome=outcome).inc()


def observe_contact_score(axis: str, score: float) -> None:
    """Record a contact score on one axis (confidence, quality, relevance)."""
    if _enabled():
        CONTACT_SCORE_DISTRIBUTION.labels(axis=axis).observe(score)
