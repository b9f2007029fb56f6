"""Declarative base shared by the MediaScout tables.

Tables run unchanged on PostgreSQL and on the SQLite engine used in tests:
``UUID`` annotations map to ``Uuid`` (native on PostgreSQL, CHAR(32)
elsewhere) and ``dict``/``list`` annotations map to JSON, stored as JSONB
on PostgreSQL.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, MetaData, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

DOCUMENT = JSON().with_variant(JSONB(), "postgresql")

# Matches the names used in migrations/versions
NAMING_CONVENTION = {
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
}


class Base(DeclarativeBase):
    """Base class for MediaScout tables."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
    type_annotation_map = {
        UUID: Uuid(as_uuid=True),
        dict: DOCUMENT,
        list: DOCUMENT,
    }


class CreatedAtMixin:
    """Server-side creation timestamp for write-once rows."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class TimestampMixin(CreatedAtMixin):
    """Creation and last-update timestamps for mutable rows."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
