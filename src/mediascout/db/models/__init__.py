"""Database models."""

from .base import Base, CreatedAtMixin, TimestampMixin
from .contact import ExtractedContactRecord
from .query import GeneratedQueryRecord, QueryPerformanceLogRecord, QueryTemplateRecord

__all__ = [
    "Base",
    "CreatedAtMixin",
    "ExtractedContactRecord",
    "GeneratedQueryRecord",
    "QueryPerformanceLogRecord",
    "QueryTemplateRecord",
    "TimestampMixin",
]
