"""
Job alert match repository - the dedup ledger.

`insert_if_absent` is the race-breaker for concurrent scans of the same
alert: it relies on `uq_job_alert_match` and never raises on a duplicate.
"""
import uuid
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import UnsupportedDatabaseError
from app.models.base import utcnow
from app.models.job import Job
from app.models.job_alert_match import JobAlertMatch
from app.repositories.base import BaseRepository

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class JobAlertMatchRepository(BaseRepository[JobAlertMatch]):
    def __init__(self):
        super().__init__(JobAlertMatch)

    async def insert_if_absent(
        self,
        db: AsyncSession,
        *,
        job_alert_id: UUID,
        job_id: UUID,
        match_score: float,
        matched_at: Optional[datetime] = None,
    ) -> Optional[UUID]:
        """
        Record a match unless one exists for (alert, job).

        Returns the new row id, or None if the pair was already recorded.
        """
        dialect = db.get_bind().dialect.name
        try:
            insert = _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise UnsupportedDatabaseError(dialect, "insert-if-absent") from None

        now = utcnow()
        stmt = (
            insert(JobAlertMatch)
            .values(
                id=uuid.uuid4(),
                job_alert_id=job_alert_id,
                job_id=job_id,
                match_score=match_score,
                was_sent=False,
                matched_at=matched_at or now,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["job_alert_id", "job_id"])
            .returning(JobAlertMatch.id)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_unsent_for_alert(
        self,
        db: AsyncSession,
        job_alert_id: UUID,
        *,
        limit: int,
    ) -> List[JobAlertMatch]:
        """Highest-scoring unsent matches, with job and company loaded."""
        result = await db.execute(
            select(JobAlertMatch)
            .options(selectinload(JobAlertMatch.job).selectinload(Job.company))
            .where(
                JobAlertMatch.job_alert_id == job_alert_id,
                JobAlertMatch.was_sent == False,
            )
            .order_by(JobAlertMatch.match_score.desc(), JobAlertMatch.matched_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_unsent_for_alert(
        self,
        db: AsyncSession,
        job_alert_id: UUID,
    ) -> int:
        return await self.count(
            db,
            JobAlertMatch.job_alert_id == job_alert_id,
            JobAlertMatch.was_sent == False,
        )

    async def get_unsent_by_ids(
        self,
        db: AsyncSession,
        job_alert_id: UUID,
        match_ids: Sequence[UUID],
    ) -> List[JobAlertMatch]:
        if not match_ids:
            return []
        result = await db.execute(
            select(JobAlertMatch).where(
                JobAlertMatch.job_alert_id == job_alert_id,
                JobAlertMatch.id.in_(match_ids),
                JobAlertMatch.was_sent == False,
            )
        )
        return list(result.scalars().all())

    async def job_ids_posted_since(
        self,
        db: AsyncSession,
        job_alert_id: UUID,
        since: Optional[datetime],
    ) -> List[UUID]:
        """
        Recorded jobs for this alert posted at or after `since`.

        These are the jobs the next search window can still return: the
        ones sharing the watermark second, plus any posted while a scan
        was running. Older recorded jobs fall below the window on their own.
        """
        query = (
            select(JobAlertMatch.job_id)
            .join(Job, Job.id == JobAlertMatch.job_id)
            .where(JobAlertMatch.job_alert_id == job_alert_id)
        )
        if since is not None:
            query = query.where(Job.created_at >= since)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def mark_sent(
        self,
        db: AsyncSession,
        match_ids: Sequence[UUID],
        sent_at: datetime,
    ) -> int:
        """
        Flip was_sent for the given rows. Rows already sent are left alone,
        so the false -> true transition happens at most once per row.
        """
        if not match_ids:
            return 0
        result = await db.execute(
            update(JobAlertMatch)
            .where(
                JobAlertMatch.id.in_(match_ids),
                JobAlertMatch.was_sent == False,
            )
            .values(was_sent=True, sent_at=sent_at)
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()
        return result.rowcount
