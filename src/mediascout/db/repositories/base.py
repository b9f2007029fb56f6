"""Base repository with common async operations.

Usage:
    from mediascout.db.repositories.base import BaseRepository

    class TemplateRows(BaseRepository[QueryTemplateRecord, UUID]):
        pass

    repo = TemplateRows(db_session)
    row = await repo.get(template_id)
"""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mediascout.db.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)
PKType = TypeVar("PKType", bound=UUID | int | str)


class BaseRepository(Generic[ModelType, PKType]):
    """Generic repository for SQLAlchemy models.

    Subclasses expose the domain-facing contract and use these helpers
    for row access.

    Attributes:
        model: The model class
        db: The database session
    """

    model: type[ModelType]

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session
        """
        self.db = db

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args:
                first_arg = args[0]
                if isinstance(first_arg, type) and issubclass(first_arg, Base):
                    cls.model = first_arg
                    break

    async def get(self, pk: PKType) -> ModelType | None:
        """Get a single row by primary key."""
        return await self.db.get(self.model, pk)

    async def count(self) -> int:
        """Count total rows."""
        stmt = select(func.count(self._get_pk_column()))
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def add(self, obj: ModelType, *, commit: bool = True) -> ModelType:
        """Insert a row.

        Args:
            obj: Model instance to insert
            commit: Whether to commit the transaction

        Returns:
            The inserted instance
        """
        self.db.add(obj)
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()
        return obj

    def _get_pk_column(self):
        """Get the primary key column for this model.

        Raises:
            ValueError: If no primary key found
        """
        pk_cols = self.model.__mapper__.primary_key
        if not pk_cols:
            raise ValueError(f"No primary key found for {self.model.__name__}")
        return pk_cols[0]
