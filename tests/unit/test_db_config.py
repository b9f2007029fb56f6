"""Unit tests for database engine configuration."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.pool import NullPool

from mediascout.db import config as db_config


def _settings(**overrides) -> MagicMock:
    settings = MagicMock()
    settings.DATABASE_URL = "sqlite+aiosqlite:///:memory:"
    settings.ENVIRONMENT = "test"
    settings.DEBUG = False
    settings.DATABASE_POOL_SIZE = 5
    settings.DATABASE_MAX_OVERFLOW = 10
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


class TestCreateEngine:
    """Tests for create_engine."""

    @pytest.mark.asyncio
    async def test_sqlite_uses_null_pool(self):
        """Test SQLite engines do not pool connections."""
        with patch.object(db_config, "get_settings", return_value=_settings(ENVIRONMENT="development")):
            engine = db_config.create_engine()

        assert isinstance(engine.pool, NullPool)
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_url_override(self):
        """Test an explicit URL wins over settings."""
        with patch.object(db_config, "get_settings", return_value=_settings()):
            engine = db_config.create_engine("sqlite+aiosqlite:///:memory:")

        assert engine.url.drivername == "sqlite+aiosqlite"
        await engine.dispose()


class TestEngineLifecycle:
    """Tests for the lazily created process engine."""

    @pytest.mark.asyncio
    async def test_init_and_close(self):
        """Test connectivity check and disposal reset the globals."""
        with patch.object(db_config, "get_settings", return_value=_settings()):
            await db_config.close_db()
            await db_config.init_db()
            assert db_config.get_engine() is db_config.get_engine()

            async with db_config.get_async_session() as session:
                assert session is not None

            await db_config.close_db()

        assert db_config._engine is None
        assert db_config._session_factory is None
