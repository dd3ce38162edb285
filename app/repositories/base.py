"""
Base repository with generic CRUD operations.

All entity-specific repositories inherit from this. Repositories are
stateless; the session is passed to every call and the caller owns the
transaction (repositories flush, services commit).
"""
from typing import Any, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import BaseModel

# Generic type for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing standard CRUD operations.

    Usage:
        class JobRepository(BaseRepository[Job]):
            def __init__(self):
                super().__init__(Job)
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get_by_id(
        self,
        db: AsyncSession,
        id: UUID,
    ) -> Optional[ModelType]:
        return await db.get(self.model, id)

    async def get_many(
        self,
        db: AsyncSession,
        *where: Any,
        skip: int = 0,
        limit: int = 100,
        order_by: Any = None,
    ) -> List[ModelType]:
        """Get multiple records matching the given criteria, paginated."""
        query = select(self.model).where(*where)
        query = query.order_by(order_by if order_by is not None else self.model.created_at.desc())
        query = query.offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count(
        self,
        db: AsyncSession,
        *where: Any,
    ) -> int:
        result = await db.execute(
            select(func.count()).select_from(self.model).where(*where)
        )
        return result.scalar() or 0

    async def create(
        self,
        db: AsyncSession,
        **kwargs: Any,
    ) -> ModelType:
        instance = self.model(**kwargs)
        db.add(instance)
        await db.flush()
        await db.refresh(instance)
        return instance

    async def update(
        self,
        db: AsyncSession,
        instance: ModelType,
        **kwargs: Any,
    ) -> ModelType:
        """Apply attribute changes; unknown keys are rejected."""
        for key, value in kwargs.items():
            if not hasattr(instance, key):
                raise AttributeError(f"{self.model.__name__} has no attribute {key!r}")
            setattr(instance, key, value)
        await db.flush()
        await db.refresh(instance)
        return instance

    async def soft_delete(
        self,
        db: AsyncSession,
        instance: ModelType,
    ) -> ModelType:
        """Soft delete by setting is_active = False."""
        instance.is_active = False
        await db.flush()
        return instance
