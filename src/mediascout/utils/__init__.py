"""Utility modules for MediaScout."""

from mediascout.utils.exceptions import (
    ConfigurationError,
    MediaScoutError,
    ModelError,
)
from mediascout.utils.retry import RetryPolicy

__all__ = [
    "ConfigurationError",
    "MediaScoutError",
    "ModelError",
    "RetryPolicy",
]
