"""Query generation and contact scoring schema

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # Query templates
    op.create_table(
        "query_templates",
        sa.Column("template_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("template", sa.Text, nullable=False),
        sa.Column("template_type", sa.String(50), nullable=False),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("beat", sa.String(100), nullable=True),
        sa.Column("language", sa.String(100), nullable=True),
        sa.Column("variables", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("usage_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("success_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("average_confidence", sa.Float, nullable=False, server_default="0.5"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "average_confidence >= 0 AND average_confidence <= 1",
            name="ck_query_templates_average_confidence",
        ),
        sa.CheckConstraint(
            "usage_count >= success_count", name="ck_query_templates_usage_ge_success"
        ),
        sa.UniqueConstraint("name", name="uq_query_templates_name"),
    )
    op.create_index(
        "idx_query_templates_active_priority", "query_templates", ["is_active", "priority"]
    )
    op.create_index(
        "idx_query_templates_scope",
        "query_templates",
        ["country", "category", "beat", "language"],
    )

    # Generated queries (write-once audit)
    op.create_table(
        "generated_queries",
        sa.Column("query_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("search_id", sa.String(100), nullable=False),
        sa.Column("batch_id", sa.String(100), nullable=False),
        sa.Column("query_text", sa.Text, nullable=False),
        sa.Column("query_type", sa.String(50), nullable=False),
        sa.Column("source_template_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("scores", postgresql.JSONB, nullable=False),
        sa.Column("metadata", postgresql.JSONB, nullable=False, server_default="{}"),
        _timestamp("created_at"),
    )
    op.create_index(
        "idx_generated_queries_search_batch", "generated_queries", ["search_id", "batch_id"]
    )

    # Performance logs (write-once audit)
    op.create_table(
        "query_performance_logs",
        sa.Column("log_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("search_id", sa.String(100), nullable=False),
        sa.Column("batch_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("metrics", postgresql.JSONB, nullable=False),
        sa.Column("errors", postgresql.JSONB, nullable=False, server_default="[]"),
        _timestamp("created_at"),
    )
    op.create_index(
        "idx_query_performance_logs_search_batch",
        "query_performance_logs",
        ["search_id", "batch_id"],
    )

    # Extracted contacts
    op.create_table(
        "extracted_contacts",
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("extraction_id", sa.String(100), nullable=False),
        sa.Column("search_id", sa.String(100), nullable=False),
        sa.Column("source_url", sa.Text, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("social_profiles", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("confidence_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("quality_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("relevance_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("extraction_method", sa.String(50), nullable=False),
        sa.Column("verification_status", sa.String(50), nullable=False),
        sa.Column("is_duplicate", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("metadata", postgresql.JSONB, nullable=False, server_default="{}"),
        _timestamp("created_at"),
    )
    op.create_index("idx_extracted_contacts_search", "extracted_contacts", ["search_id"])
    op.create_index("idx_extracted_contacts_email", "extracted_contacts", ["email"])


def downgrade() -> None:
    op.drop_index("idx_extracted_contacts_email", table_name="extracted_contacts")
    op.drop_index("idx_extracted_contacts_search", table_name="extracted_contacts")
    op.drop_table("extracted_contacts")

    op.drop_index(
        "idx_query_performance_logs_search_batch", table_name="query_performance_logs"
    )
    op.drop_table("query_performance_logs")

    op.drop_index("idx_generated_queries_search_batch", table_name="generated_queries")
    op.drop_table("generated_queries")

    op.drop_index("idx_query_templates_scope", table_name="query_templates")
    op.drop_index("idx_query_templates_active_priority", table_name="query_templates")
    op.drop_table("query_templates")
