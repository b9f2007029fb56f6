"""Database layer: async engine, ORM models and repositories."""

from .config import close_db, create_engine, get_async_session, get_engine, init_db

__all__ = [
    "close_db",
    "create_engine",
    "get_async_session",
    "get_engine",
    "init_db",
]
