"""
Job repository - data access for Job entity.
"""
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.job import Job
from app.repositories.base import BaseRepository


class JobRepository(BaseRepository[Job]):
    def __init__(self):
        super().__init__(Job)

    @staticmethod
    def _with_details():
        return select(Job).options(
            selectinload(Job.company),
            selectinload(Job.skills),
        )

    async def get_with_details(
        self,
        db: AsyncSession,
        job_id: UUID,
    ) -> Optional[Job]:
        """Get a job with company and skills loaded (index projection input)."""
        result = await db.execute(self._with_details().where(Job.id == job_id))
        return result.scalar_one_or_none()

    async def get_many_with_details(
        self,
        db: AsyncSession,
        job_ids: Sequence[UUID],
    ) -> List[Job]:
        if not job_ids:
            return []
        result = await db.execute(self._with_details().where(Job.id.in_(job_ids)))
        return list(result.scalars().all())

    async def existing_ids(
        self,
        db: AsyncSession,
        job_ids: Sequence[UUID],
    ) -> set[UUID]:
        """Subset of job_ids that exist in the relational store."""
        if not job_ids:
            return set()
        result = await db.execute(select(Job.id).where(Job.id.in_(job_ids)))
        return set(result.scalars().all())

    async def list_active_with_details(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 500,
    ) -> List[Job]:
        """Active jobs in creation order, for batch reindexing."""
        result = await db.execute(
            self._with_details()
            .where(Job.is_active == True)
            .order_by(Job.created_at.asc(), Job.id.asc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
