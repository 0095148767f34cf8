"""
Base CRUD operations for SQLAlchemy models.

Provides generic Create, Read, Update, Delete operations that can be
inherited and extended by model-specific CRUD classes.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Provides standard database operations that work with any SQLAlchemy model
    keyed by a single primary key column. Subclasses specify the model class
    and can override or extend these methods.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
        pk: Primary key column attribute
    """

    def __init__(self, model: type[ModelT], pk_name: str = "id") -> None:
        """
        Initialize CRUD with target model.

        Args:
            model: SQLAlchemy model class for database operations
            pk_name: Name of the primary key attribute
        """
        self.model = model
        self.pk = getattr(model, pk_name)

    async def create(self, session: AsyncSession, **kwargs: Any) -> ModelT:
        """
        Create a new record in the database.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance with generated defaults populated
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: str) -> ModelT | None:
        """
        Retrieve a single record by primary key.

        Args:
            session: Async database session
            id: Primary key value

        Returns:
            Model instance if found, None otherwise
        """
        return await session.get(self.model, id)

    async def get_all(
        self,
        session: AsyncSession,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[ModelT]:
        """
        Retrieve all records with optional pagination.

        Args:
            session: Async database session
            limit: Maximum number of records to return (None for all)
            offset: Number of records to skip

        Returns:
            Sequence of model instances
        """
        stmt = select(self.model).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_by_id(self, session: AsyncSession, id: str) -> bool:
        """
        Delete a record by primary key.

        Issued as a Core DELETE so database-level ON DELETE CASCADE applies.

        Args:
            session: Async database session
            id: Primary key value

        Returns:
            True if record was deleted, False if not found
        """
        stmt = delete(self.model).where(self.pk == id)
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def exists(self, session: AsyncSession, id: str) -> bool:
        """
        Check if a record exists by primary key.

        Args:
            session: Async database session
            id: Primary key value

        Returns:
            True if record exists, False otherwise
        """
        stmt = select(self.pk).where(self.pk == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())
