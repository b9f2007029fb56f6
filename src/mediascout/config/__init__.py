"""Configuration module for MediaScout."""

from mediascout.config.settings import QueryGenerationSettings, Settings, get_settings

__all__ = ["QueryGenerationSettings", "Settings", "get_settings"]
