"""HTTP-level tests for the job alert and admin routes."""

from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_email_service, get_queue_service, get_search_client
from app.api.routes import health
from app.core.database import get_db
from app.core.security import create_access_token
from app.main import app
from app.services.alert_delivery_service import SCAN_ALERT_JOB
from app.workers.queue import EMAIL_QUEUE, JOB_ALERTS_QUEUE
from tests.helpers import make_alert, make_job, make_user

API = "/api/v1"


@pytest.fixture
async def client(session_maker, search, queue, email):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_search_client] = lambda: search
    app.dependency_overrides[get_queue_service] = lambda: queue
    app.dependency_overrides[get_email_service] = lambda: email

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
async def user(db):
    user = await make_user(db)
    await db.commit()
    return user


@pytest.fixture
async def admin(db):
    admin = await make_user(db, is_admin=True)
    await db.commit()
    return admin


ALERT_BODY = {
    "name": "Python jobs",
    "search_query": "python",
    "city": "Austin",
    "job_types": ["Full-Time"],
    "frequency": "daily",
}


class TestAuth:
    async def test_missing_token_is_rejected(self, client):
        response = await client.get(f"{API}/job-alerts/")

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHORIZED"

    async def test_garbage_token_is_rejected(self, client):
        response = await client.get(f"{API}/job-alerts/", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    async def test_deactivated_user_is_rejected(self, client, db):
        ghost = await make_user(db, is_active=False)
        await db.commit()

        response = await client.get(f"{API}/job-alerts/", headers=auth_headers(ghost))

        assert response.status_code == 401


class TestJobAlertRoutes:
    async def test_create_and_fetch(self, client, user):
        created = await client.post(f"{API}/job-alerts/", json=ALERT_BODY, headers=auth_headers(user))

        assert created.status_code == 201
        body = created.json()
        assert body["name"] == "Python jobs"
        assert body["job_types"] == ["full-time"]
        assert body["frequency"] == "daily"
        assert body["is_active"] is True
        assert body["is_paused"] is False
        assert body["last_sent_at"] is None

        fetched = await client.get(f"{API}/job-alerts/{body['id']}", headers=auth_headers(user))
        assert fetched.status_code == 200
        assert fetched.json()["id"] == body["id"]

    async def test_create_without_criteria_is_rejected(self, client, user):
        response = await client.post(
            f"{API}/job-alerts/",
            json={"name": "Anything", "search_query": "   "},
            headers=auth_headers(user),
        )

        assert response.status_code == 422

    async def test_list_is_paginated_and_scoped_to_user(self, client, db, user):
        other = await make_user(db)
        for _ in range(3):
            await make_alert(db, user)
        await make_alert(db, other)
        await db.commit()

        response = await client.get(f"{API}/job-alerts/?page=1&limit=2", headers=auth_headers(user))

        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["items"]) == 2
        assert {item["user_id"] for item in body["items"]} == {str(user.id)}

    async def test_other_users_alert_reads_as_not_found(self, client, db, user):
        other = await make_user(db)
        alert = await make_alert(db, other)
        await db.commit()

        response = await client.get(f"{API}/job-alerts/{alert.id}", headers=auth_headers(user))

        assert response.status_code == 404
        assert response.json()["error"] == "JOB_ALERT_NOT_FOUND"

    async def test_update_pause_resume_delete(self, client, db, user):
        alert = await make_alert(db, user)
        alert_id = str(alert.id)
        await db.commit()
        headers = auth_headers(user)

        updated = await client.put(f"{API}/job-alerts/{alert_id}", json={"name": "Renamed alert"}, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["name"] == "Renamed alert"
        assert updated.json()["search_query"] == "python"

        paused = await client.patch(f"{API}/job-alerts/{alert_id}/pause", headers=headers)
        assert paused.json()["is_paused"] is True

        resumed = await client.patch(f"{API}/job-alerts/{alert_id}/resume", headers=headers)
        assert resumed.json()["is_paused"] is False

        deleted = await client.delete(f"{API}/job-alerts/{alert_id}", headers=headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Job alert deleted"}

        gone = await client.get(f"{API}/job-alerts/{alert_id}", headers=headers)
        assert gone.status_code == 404

    async def test_update_cannot_clear_every_criterion(self, client, db, user):
        alert = await make_alert(db, user, search_query="python")
        await db.commit()

        response = await client.put(
            f"{API}/job-alerts/{alert.id}",
            json={"search_query": None},
            headers=auth_headers(user),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_ALERT_CRITERIA"


class TestAdminRoutes:
    async def test_non_admin_is_forbidden(self, client, user):
        response = await client.get(f"{API}/admin/queues", headers=auth_headers(user))

        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"

    async def test_run_frequency_enqueues_due_alerts(self, client, db, admin, queue):
        owner = await make_user(db)
        await make_alert(db, owner)
        await make_alert(db, owner)
        await db.commit()

        response = await client.post(f"{API}/admin/job-alerts/run/daily", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {"frequency": "daily", "alerts_enqueued": 2}
        assert len(queue.jobs_on(JOB_ALERTS_QUEUE)) == 2

    async def test_unknown_frequency_is_rejected(self, client, admin):
        response = await client.post(f"{API}/admin/job-alerts/run/hourly", headers=auth_headers(admin))

        assert response.status_code == 422

    async def test_scan_single_alert(self, client, admin, queue):
        alert_id = uuid4()

        response = await client.post(f"{API}/admin/job-alerts/{alert_id}/scan", headers=auth_headers(admin))

        assert response.status_code == 202
        assert response.json()["job_name"] == SCAN_ALERT_JOB
        handle, payload = queue.jobs_on(JOB_ALERTS_QUEUE)[0]
        assert payload["alertId"] == str(alert_id)

    async def test_queue_metrics_and_purge(self, client, admin, queue):
        await queue.add_job(EMAIL_QUEUE, "send-job-alert-notification", {})
        headers = auth_headers(admin)

        metrics = await client.get(f"{API}/admin/queues", headers=headers)
        assert metrics.json()["queues"][0] == {
            "queue": EMAIL_QUEUE,
            "waiting": 1,
            "active": 0,
            "scheduled": 0,
            "reserved": 0,
        }

        purged = await client.delete(f"{API}/admin/queues/{EMAIL_QUEUE}", headers=headers)
        assert purged.json() == {"queue": EMAIL_QUEUE, "purged": 1}

    async def test_purge_unknown_queue(self, client, admin):
        response = await client.delete(f"{API}/admin/queues/nope", headers=auth_headers(admin))

        assert response.status_code == 404
        assert response.json()["error"] == "QUEUE_NOT_FOUND"

    async def test_reindex_and_delete_by_title(self, client, db, admin, search):
        await make_job(db, title="Spam")
        await make_job(db, title="Real job")
        await db.commit()
        headers = auth_headers(admin)

        reindex = await client.post(f"{API}/admin/search/reindex?batch_size=1", headers=headers)
        assert reindex.json() == {"indexed": 2, "failed": 0, "failures": []}

        deleted = await client.delete(f"{API}/admin/search/documents", params={"title": "Spam"}, headers=headers)
        assert deleted.json() == {"message": "Deleted 1 documents"}
        assert [d["title"] for d in search.documents.values()] == ["Real job"]


class TestHealth:
    async def test_reports_each_dependency(self, client, search, monkeypatch):
        async def redis_up():
            return "healthy"

        monkeypatch.setattr(health, "check_redis", redis_up)

        response = await client.get(f"{API}/health")
        assert response.json()["status"] == "healthy"

        search.healthy = False
        response = await client.get(f"{API}/health")
        body = response.json()
        assert body["status"] == "degraded"
        assert body["checks"] == {"database": "healthy", "redis": "healthy", "search": "unhealthy"}
