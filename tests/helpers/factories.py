"""Async factories for ORM rows. Each flushes and returns the instance."""

import itertools
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import Company
from app.models.enums import AlertFrequency, EmailType
from app.models.job import Job
from app.models.job_alert import JobAlert
from app.models.job_skill import JobSkill
from app.models.user import User
from app.repositories.job_repository import JobRepository
from app.repositories.user_repository import UserRepository
from app.services.job_index_service import to_document

_seq = itertools.count(1)


async def make_user(db: AsyncSession, **overrides) -> User:
    n = next(_seq)
    fields = {
        "email": f"user{n}@example.com",
        "full_name": f"User {n}",
        "is_active": True,
        "is_admin": False,
    }
    fields.update(overrides)
    user = User(**fields)
    db.add(user)
    await db.flush()
    return user


async def make_company(db: AsyncSession, **overrides) -> Company:
    n = next(_seq)
    fields = {"name": f"Company {n}", "slug": f"company-{n}"}
    fields.update(overrides)
    company = Company(**fields)
    db.add(company)
    await db.flush()
    return company


async def make_job(
    db: AsyncSession,
    company: Optional[Company] = None,
    *,
    skills: tuple = (),
    created_at: Optional[datetime] = None,
    **overrides,
) -> Job:
    company = company or await make_company(db)
    fields = {
        "company_id": company.id,
        "title": "Backend Engineer",
        "description": "Build APIs.",
        "city": "Austin",
        "state": "TX",
        "country": "US",
        "is_remote": False,
        "job_type": "full-time",
        "experience_level": "mid",
        "is_active": True,
    }
    if created_at is not None:
        fields["created_at"] = created_at
    fields.update(overrides)
    job = Job(**fields)
    db.add(job)
    await db.flush()
    for skill in skills:
        db.add(JobSkill(job_id=job.id, skill_name=skill))
    await db.flush()
    return job


async def make_alert(db: AsyncSession, user: User, **overrides) -> JobAlert:
    fields = {
        "user": user,
        "name": "Python jobs",
        "search_query": "python",
        "include_remote": True,
        "frequency": AlertFrequency.DAILY,
        "is_active": True,
        "is_paused": False,
    }
    fields.update(overrides)
    alert = JobAlert(**fields)
    db.add(alert)
    await db.flush()
    return alert


async def set_preference(db: AsyncSession, user: User, email_type: EmailType, enabled: bool) -> None:
    await UserRepository().set_email_preference(db, user.id, email_type, enabled)


async def index_jobs(db: AsyncSession, search, *jobs: Job, text_match: int = 100) -> None:
    """Put jobs into a FakeSearchIndex the way the index worker would."""
    repo = JobRepository()
    for job in jobs:
        loaded = await repo.get_with_details(db, job.id)
        search.add(to_document(loaded), text_match=text_match)
