"""Core services and utilities for MediaScout."""

from .exceptions import (
    ConfigurationError,
    DuplicateTemplateError,
    EnhancementError,
    PersistenceWriteError,
    QueryGenerationError,
    TemplateStoreError,
)
from .logging import LogContext, get_logger, setup_logging

__all__ = [
    # Exceptions
    "ConfigurationError",
    "DuplicateTemplateError",
    "EnhancementError",
    "PersistenceWriteError",
    "QueryGenerationError",
    "TemplateStoreError",
    # Logging
    "LogContext",
    "get_logger",
    "setup_logging",
]
