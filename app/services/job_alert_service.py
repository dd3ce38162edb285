"""
Job alert service - business logic for managing a user's job alerts.

Validation happens here, synchronously, so a malformed alert never
reaches the background pipeline.
"""
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AlertLimitExceededException,
    AlertValidationException,
    JobAlertNotFoundException,
)
from app.core.logging import get_logger
from app.models.base import utcnow
from app.models.enums import AlertFrequency
from app.models.job_alert import JobAlert
from app.repositories.job_alert_repository import JobAlertRepository
from app.schemas.base import MessageResponse, PaginatedResponse
from app.schemas.job_alert import (
    MISSING_CRITERIA_MESSAGE,
    JobAlertCreate,
    JobAlertResponse,
    JobAlertUpdate,
    criteria_present,
)

logger = get_logger(__name__)


def _enum_values(values):
    if values is None:
        return None
    return [getattr(v, "value", v) for v in values]


class JobAlertService:
    """Create, list, edit, pause/resume and delete job alerts."""

    def __init__(self, max_active_alerts: Optional[int] = None):
        self.alert_repo = JobAlertRepository()
        self.max_active_alerts = max_active_alerts or settings.max_active_alerts_per_user

    async def create_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: JobAlertCreate,
    ) -> JobAlertResponse:
        self._require_criteria(
            data.search_query, data.city, data.state, data.skills, data.job_types, data.experience_levels
        )

        active = await self.alert_repo.count_active_for_user(db, user_id)
        if active >= self.max_active_alerts:
            raise AlertLimitExceededException(self.max_active_alerts)

        alert = await self.alert_repo.create(
            db,
            user_id=user_id,
            name=data.name.strip(),
            description=data.description,
            search_query=data.search_query,
            city=data.city,
            state=data.state,
            job_types=_enum_values(data.job_types),
            skills=data.skills,
            experience_levels=_enum_values(data.experience_levels),
            include_remote=data.include_remote,
            frequency=data.frequency,
            is_active=True,
            is_paused=False,
            last_sent_at=None,
        )
        await db.commit()

        logger.info("job_alert_created", alert_id=str(alert.id), user_id=str(user_id), frequency=alert.frequency.value)
        return JobAlertResponse.model_validate(alert)

    async def list_alerts(
        self,
        db: AsyncSession,
        user_id: UUID,
        *,
        page: int = 1,
        limit: int = 10,
    ) -> PaginatedResponse[JobAlertResponse]:
        alerts, total = await self.alert_repo.find_for_user(db, user_id, page=page, limit=limit)
        return PaginatedResponse[JobAlertResponse].build(
            [JobAlertResponse.model_validate(a) for a in alerts],
            total=total,
            page=page,
            limit=limit,
        )

    async def get_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        alert_id: UUID,
    ) -> JobAlertResponse:
        alert = await self._get_user_alert(db, user_id, alert_id)
        return JobAlertResponse.model_validate(alert)

    async def update_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        alert_id: UUID,
        data: JobAlertUpdate,
    ) -> JobAlertResponse:
        """
        Apply a partial update.

        Frequency changes move the watermark: a more frequent cadence pulls
        it back to at most one new window ago so the alert is picked up on
        the next run, a less frequent one restarts the window from now.
        """
        alert = await self._get_user_alert(db, user_id, alert_id)
        changes = data.model_dump(exclude_unset=True)

        for key in ("job_types", "experience_levels"):
            if key in changes:
                changes[key] = _enum_values(changes[key])
        if changes.get("name") is not None:
            changes["name"] = changes["name"].strip()
        elif "name" in changes:
            del changes["name"]
        if "include_remote" in changes and changes["include_remote"] is None:
            del changes["include_remote"]

        merged = {
            key: changes.get(key, getattr(alert, key))
            for key in ("search_query", "city", "state", "skills", "job_types", "experience_levels")
        }
        self._require_criteria(**merged)

        new_frequency = changes.pop("frequency", None)
        if new_frequency is not None and new_frequency != alert.frequency:
            changes["frequency"] = new_frequency
            changes["last_sent_at"] = self._watermark_after_frequency_change(alert.frequency, new_frequency, alert.last_sent_at)

        alert = await self.alert_repo.update(db, alert, **changes)
        await db.commit()

        logger.info("job_alert_updated", alert_id=str(alert.id), fields=sorted(changes))
        return JobAlertResponse.model_validate(alert)

    async def pause_alert(self, db: AsyncSession, user_id: UUID, alert_id: UUID) -> JobAlertResponse:
        return await self._set_paused(db, user_id, alert_id, True)

    async def resume_alert(self, db: AsyncSession, user_id: UUID, alert_id: UUID) -> JobAlertResponse:
        return await self._set_paused(db, user_id, alert_id, False)

    async def delete_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        alert_id: UUID,
    ) -> MessageResponse:
        """Soft-delete: the alert stops matching but its ledger is kept."""
        alert = await self._get_user_alert(db, user_id, alert_id)
        await self.alert_repo.soft_delete(db, alert)
        await db.commit()
        logger.info("job_alert_deleted", alert_id=str(alert_id), user_id=str(user_id))
        return MessageResponse(message="Job alert deleted")

    async def pause_alerts_for_inactive_users(self, db: AsyncSession) -> dict:
        paused, users = await self.alert_repo.pause_alerts_for_inactive_users(db)
        await db.commit()
        logger.info("inactive_user_alerts_paused", alerts_paused=paused, users_affected=users)
        return {"alerts_paused": paused, "users_affected": users}

    async def _set_paused(
        self,
        db: AsyncSession,
        user_id: UUID,
        alert_id: UUID,
        paused: bool,
    ) -> JobAlertResponse:
        alert = await self._get_user_alert(db, user_id, alert_id)
        if alert.is_paused != paused:
            alert = await self.alert_repo.update(db, alert, is_paused=paused)
            await db.commit()
            logger.info("job_alert_paused" if paused else "job_alert_resumed", alert_id=str(alert_id))
        return JobAlertResponse.model_validate(alert)

    async def _get_user_alert(self, db: AsyncSession, user_id: UUID, alert_id: UUID) -> JobAlert:
        """
        Fetch an alert ensuring it belongs to the requesting user.

        Someone else's alert and a missing one both read as 404, so alert
        ids cannot be probed.
        """
        alert = await self.alert_repo.get_for_user(db, alert_id, user_id)
        if alert is None:
            raise JobAlertNotFoundException()
        return alert

    @staticmethod
    def _require_criteria(search_query, city, state, skills, job_types, experience_levels) -> None:
        if not criteria_present(search_query, city, state, skills, job_types, experience_levels):
            raise AlertValidationException(MISSING_CRITERIA_MESSAGE)

    @staticmethod
    def _watermark_after_frequency_change(old: AlertFrequency, new: AlertFrequency, current):
        if new.is_more_frequent_than(old):
            # Due at the next run; reopens at most one new window of history
            if current is None:
                return None
            return min(current, utcnow() - timedelta(hours=new.window_hours))
        if old.is_more_frequent_than(new):
            return utcnow()
        return current
