"""
Base repository with common CRUD operations.
All repositories should extend this class for database access.
"""
from typing import Generic, TypeVar, Type, Optional, List, Any

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Provides generic database operations that can be reused across all repositories.
    Repositories only flush; committing is the caller's unit of work.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance

        Example:
            ```python
            message = await message_repo.create(conversation_id=conv.id, content="hi", ...)
            ```
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def get(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_many(
        self,
        ids: List[str],
        order_by: Optional[Any] = None
    ) -> List[ModelType]:
        """
        Get multiple records by IDs.

        Args:
            ids: List of record IDs
            order_by: Optional SQLAlchemy order_by clause

        Returns:
            List of model instances
        """
        if not ids:
            return []

        query = select(self.model).where(self.model.id.in_(ids))

        if order_by is not None:
            query = query.order_by(order_by)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete(self, id: str) -> bool:
        """
        Delete a record by ID (hard delete).

        Args:
            id: Record ID

        Returns:
            True if deleted, False if not found
        """
        result = await self.db.execute(
            delete(self.model)
            .where(self.model.id == id)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
        return result.rowcount > 0

    async def count(self, **filters) -> int:
        """
        Count records matching filters.

        Example:
            ```python
            count = await message_repo.count(conversation_id=conv_id)
            ```
        """
        query = select(func.count()).select_from(self.model)

        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        result = await self.db.execute(query)
        return result.scalar()
