"""Tests for job alert management rules."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.core.exceptions import (
    AlertLimitExceededException,
    AlertValidationException,
    JobAlertNotFoundException,
)
from app.models.enums import AlertFrequency
from app.models.job_alert import JobAlert
from app.schemas.job_alert import JobAlertCreate, JobAlertUpdate
from app.services.job_alert_service import JobAlertService
from tests.helpers import make_alert, make_user

LAST_SENT = datetime(2026, 10, 1, 8, tzinfo=timezone.utc)


@pytest.fixture
def service():
    return JobAlertService(max_active_alerts=3)


class TestCreate:
    async def test_create_stores_criteria(self, db, service):
        user = await make_user(db)

        created = await service.create_alert(
            db,
            user.id,
            JobAlertCreate(
                name="Remote React",
                skills=["react"],
                job_types=["full_time"],
                frequency=AlertFrequency.DAILY,
            ),
        )

        assert created.user_id == user.id
        assert created.job_types == ["full-time"]
        assert created.skills == ["react"]
        assert created.is_active and not created.is_paused
        assert created.last_sent_at is None

        stored = await db.get(JobAlert, created.id)
        assert stored.frequency == AlertFrequency.DAILY

    async def test_active_alert_cap(self, db, service):
        user = await make_user(db)
        for i in range(3):
            await make_alert(db, user, name=f"Alert {i}")

        with pytest.raises(AlertLimitExceededException):
            await service.create_alert(db, user.id, JobAlertCreate(name="One more", search_query="go"))

    async def test_deleted_alerts_do_not_count_toward_cap(self, db, service):
        user = await make_user(db)
        for i in range(3):
            await make_alert(db, user, name=f"Alert {i}", is_active=i != 0)

        created = await service.create_alert(db, user.id, JobAlertCreate(name="Fits", search_query="go"))
        assert created.is_active


class TestReadAndOwnership:
    async def test_list_is_paginated(self, db, service):
        user = await make_user(db)
        other = await make_user(db)
        for i in range(3):
            await make_alert(db, user, name=f"Alert {i}")
        await make_alert(db, other)

        page = await service.list_alerts(db, user.id, page=1, limit=2)

        assert page.total == 3
        assert page.pages == 2
        assert len(page.items) == 2
        assert all(a.user_id == user.id for a in page.items)

    async def test_other_users_alert_is_not_found(self, db, service):
        owner = await make_user(db)
        intruder = await make_user(db)
        alert = await make_alert(db, owner)

        with pytest.raises(JobAlertNotFoundException):
            await service.get_alert(db, intruder.id, alert.id)

    async def test_missing_alert_is_not_found(self, db, service):
        user = await make_user(db)
        with pytest.raises(JobAlertNotFoundException):
            await service.get_alert(db, user.id, uuid4())


class TestUpdate:
    async def test_partial_update_keeps_other_fields(self, db, service):
        user = await make_user(db)
        alert = await make_alert(db, user, city="Austin", skills=["python"])

        updated = await service.update_alert(db, user.id, alert.id, JobAlertUpdate(name="Renamed alert"))

        assert updated.name == "Renamed alert"
        assert updated.city == "Austin"
        assert updated.skills == ["python"]

    async def test_clearing_every_criterion_is_rejected(self, db, service):
        user = await make_user(db)
        alert = await make_alert(db, user, search_query="python")

        with pytest.raises(AlertValidationException):
            await service.update_alert(db, user.id, alert.id, JobAlertUpdate(search_query=""))

    async def test_more_frequent_cadence_reopens_one_window(self, db, service):
        user = await make_user(db)
        recent = datetime.now(timezone.utc) - timedelta(hours=2)
        alert = await make_alert(db, user, frequency=AlertFrequency.WEEKLY, last_sent_at=recent)
        before = datetime.now(timezone.utc)

        updated = await service.update_alert(
            db, user.id, alert.id, JobAlertUpdate(frequency=AlertFrequency.DAILY)
        )

        assert updated.frequency == AlertFrequency.DAILY
        after = datetime.now(timezone.utc)
        assert before - timedelta(hours=24) <= updated.last_sent_at <= after - timedelta(hours=24)

    async def test_more_frequent_cadence_keeps_older_watermark(self, db, service):
        user = await make_user(db)
        older = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(days=3)
        alert = await make_alert(db, user, frequency=AlertFrequency.WEEKLY, last_sent_at=older)

        updated = await service.update_alert(
            db, user.id, alert.id, JobAlertUpdate(frequency=AlertFrequency.DAILY)
        )

        assert updated.last_sent_at == older

    async def test_more_frequent_cadence_on_unsent_alert(self, db, service):
        user = await make_user(db)
        alert = await make_alert(db, user, frequency=AlertFrequency.MONTHLY)

        updated = await service.update_alert(
            db, user.id, alert.id, JobAlertUpdate(frequency=AlertFrequency.WEEKLY)
        )

        assert updated.last_sent_at is None

    async def test_less_frequent_cadence_restarts_window(self, db, service):
        user = await make_user(db)
        alert = await make_alert(db, user, frequency=AlertFrequency.DAILY, last_sent_at=LAST_SENT)
        before = datetime.now(timezone.utc)

        updated = await service.update_alert(
            db, user.id, alert.id, JobAlertUpdate(frequency=AlertFrequency.MONTHLY)
        )

        assert updated.last_sent_at >= before

    async def test_same_cadence_leaves_watermark(self, db, service):
        user = await make_user(db)
        alert = await make_alert(db, user, frequency=AlertFrequency.WEEKLY, last_sent_at=LAST_SENT)

        updated = await service.update_alert(
            db, user.id, alert.id, JobAlertUpdate(frequency=AlertFrequency.WEEKLY, city="Denver")
        )

        assert updated.last_sent_at == LAST_SENT
        assert updated.city == "Denver"


class TestLifecycle:
    async def test_pause_and_resume(self, db, service):
        user = await make_user(db)
        alert = await make_alert(db, user)

        assert (await service.pause_alert(db, user.id, alert.id)).is_paused is True
        assert (await service.resume_alert(db, user.id, alert.id)).is_paused is False

    async def test_delete_is_soft(self, db, service):
        user = await make_user(db)
        alert = await make_alert(db, user)

        await service.delete_alert(db, user.id, alert.id)

        stored = await db.get(JobAlert, alert.id)
        assert stored is not None
        assert stored.is_active is False
        listed = await service.list_alerts(db, user.id)
        assert listed.total == 0

    async def test_pause_alerts_for_inactive_users(self, db, service):
        active = await make_user(db)
        gone = await make_user(db, is_active=False)
        kept = await make_alert(db, active)
        first = await make_alert(db, gone)
        second = await make_alert(db, gone, name="Second")
        await make_alert(db, gone, name="Already paused", is_paused=True)

        result = await service.pause_alerts_for_inactive_users(db)

        assert result == {"alerts_paused": 2, "users_affected": 1}
        for alert in (first, second):
            await db.refresh(alert)
            assert alert.is_paused
        await db.refresh(kept)
        assert not kept.is_paused
