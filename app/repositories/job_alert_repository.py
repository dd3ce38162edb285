"""
Job alert repository - data access for JobAlert entity.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, func, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.enums import AlertFrequency
from app.models.job_alert import JobAlert
from app.models.user import User
from app.repositories.base import BaseRepository


class JobAlertRepository(BaseRepository[JobAlert]):
    def __init__(self):
        super().__init__(JobAlert)

    async def find_for_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        *,
        include_inactive: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[List[JobAlert], int]:
        """Get a user's alerts, newest first, with the total count."""
        query = select(JobAlert).where(JobAlert.user_id == user_id)
        if not include_inactive:
            query = query.where(JobAlert.is_active == True)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(JobAlert.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def get_for_user(
        self,
        db: AsyncSession,
        alert_id: UUID,
        user_id: UUID,
    ) -> Optional[JobAlert]:
        """Get an active alert only if it belongs to the user."""
        result = await db.execute(
            select(JobAlert).where(
                JobAlert.id == alert_id,
                JobAlert.user_id == user_id,
                JobAlert.is_active == True,
            )
        )
        return result.scalar_one_or_none()

    async def get_with_user(
        self,
        db: AsyncSession,
        alert_id: UUID,
    ) -> Optional[JobAlert]:
        result = await db.execute(
            select(JobAlert)
            .options(selectinload(JobAlert.user))
            .where(JobAlert.id == alert_id)
        )
        return result.scalar_one_or_none()

    async def count_active_for_user(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        return await self.count(
            db,
            JobAlert.user_id == user_id,
            JobAlert.is_active == True,
        )

    async def find_due_ids(
        self,
        db: AsyncSession,
        frequency: AlertFrequency,
        cutoff: datetime,
    ) -> List[UUID]:
        """
        Ids of alerts due for a cycle: active, unpaused, owned by an active
        user, and never sent or last sent at or before `cutoff`.
        """
        result = await db.execute(
            select(JobAlert.id)
            .join(User, User.id == JobAlert.user_id)
            .where(
                JobAlert.frequency == frequency,
                JobAlert.is_active == True,
                JobAlert.is_paused == False,
                User.is_active == True,
                or_(JobAlert.last_sent_at.is_(None), JobAlert.last_sent_at <= cutoff),
            )
            .order_by(JobAlert.last_sent_at.asc().nulls_first(), JobAlert.id)
        )
        return list(result.scalars().all())

    async def advance_last_sent_at(
        self,
        db: AsyncSession,
        alert_id: UUID,
        sent_at: datetime,
    ) -> bool:
        """
        Move the watermark forward to `sent_at`. Never moves it backwards:
        returns False when the stored value is already at or past `sent_at`.
        """
        result = await db.execute(
            update(JobAlert)
            .where(
                JobAlert.id == alert_id,
                or_(JobAlert.last_sent_at.is_(None), JobAlert.last_sent_at < sent_at),
            )
            .values(last_sent_at=sent_at)
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()
        return result.rowcount > 0

    async def pause_alerts_for_inactive_users(
        self,
        db: AsyncSession,
    ) -> tuple[int, int]:
        """Pause every running alert owned by a deactivated user.

        Returns (alerts_paused, users_affected).
        """
        inactive_users = select(User.id).where(User.is_active == False)
        targets = await db.execute(
            select(JobAlert.id, JobAlert.user_id).where(
                JobAlert.user_id.in_(inactive_users),
                JobAlert.is_active == True,
                JobAlert.is_paused == False,
            )
        )
        rows = targets.all()
        if not rows:
            return 0, 0

        await db.execute(
            update(JobAlert)
            .where(JobAlert.id.in_([row.id for row in rows]))
            .values(is_paused=True)
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()
        return len(rows), len({row.user_id for row in rows})
