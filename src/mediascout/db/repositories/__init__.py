"""Repositories implementing the pipeline's storage contracts."""

from .base import BaseRepository
from .contact import ExtractedContactRepository
from .query import SqlGeneratedQueryRepository, SqlPerformanceLogRepository
from .template import SqlTemplateRepository

__all__ = [
    "BaseRepository",
    "ExtractedContactRepository",
    "SqlGeneratedQueryRepository",
    "SqlPerformanceLogRepository",
    "SqlTemplateRepository",
]
