"""Custom exceptions for MediaScout."""


class MediaScoutError(Exception):
    """Base exception for all MediaScout errors."""

    pass


class ConfigurationError(MediaScoutError):
    """Error in configuration, settings, or request options."""

    pass


class ModelError(MediaScoutError):
    """Error related to model operations."""

    pass
