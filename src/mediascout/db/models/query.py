"""Query generation tables: templates, generated queries, performance logs."""

from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, CreatedAtMixin, TimestampMixin


class QueryTemplateRecord(Base, TimestampMixin):
    """A stored query template with scope and rolling counters.

    Null scoping columns mean the template applies to every value of that
    dimension. Names are unique so concurrent seeding cannot duplicate the
    canonical set.
    """

    __tablename__ = "query_templates"

    template_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid7)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    template: Mapped[str] = mapped_column(Text, nullable=False)
    template_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Scope
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    beat: Mapped[str | None] = mapped_column(String(100), nullable=True)
    language: Mapped[str | None] = mapped_column(String(100), nullable=True)

    variables: Mapped[dict] = mapped_column(nullable=False, default=dict)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Counters, updated in place once per batch
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)

    __table_args__ = (
        UniqueConstraint("name"),
        CheckConstraint(
            "average_confidence >= 0 AND average_confidence <= 1",
            name="ck_query_templates_average_confidence",
        ),
        CheckConstraint(
            "usage_count >= success_count", name="ck_query_templates_usage_ge_success"
        ),
        Index("idx_query_templates_active_priority", "is_active", "priority"),
        Index("idx_query_templates_scope", "country", "category", "beat", "language"),
    )

    def __repr__(self) -> str:
        return f"<QueryTemplateRecord(id={self.template_id}, name={self.name!r})>"


class GeneratedQueryRecord(Base, CreatedAtMixin):
    """An accepted query from one batch. Write-once."""

    __tablename__ = "generated_queries"

    query_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid7)
    search_id: Mapped[str] = mapped_column(String(100), nullable=False)
    batch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    query_text: Mapped[str] = mapped_column(Text, nullable=False)
    query_type: Mapped[str] = mapped_column(String(50), nullable=False)
    # Null for AI-generated queries
    source_template_id: Mapped[UUID | None] = mapped_column(nullable=True)
    scores: Mapped[dict] = mapped_column(nullable=False)
    query_metadata: Mapped[dict] = mapped_column("metadata", nullable=False, default=dict)

    __table_args__ = (
        Index("idx_generated_queries_search_batch", "search_id", "batch_id"),
    )


class QueryPerformanceLogRecord(Base, CreatedAtMixin):
    """Metrics snapshot of one batch. Write-once."""

    __tablename__ = "query_performance_logs"

    log_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid7)
    search_id: Mapped[str] = mapped_column(String(100), nullable=False)
    batch_id: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    metrics: Mapped[dict] = mapped_column(nullable=False)
    errors: Mapped[list] = mapped_column(nullable=False, default=list)

    __table_args__ = (
        Index("idx_query_performance_logs_search_batch", "search_id", "batch_id"),
    )
