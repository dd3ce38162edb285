"""
Seed script - populates the database with sample data for development.

Usage:
    python -m scripts.seed

Creates a dev user and an admin, a handful of companies and jobs, and a
few job alerts, then pushes every active job into the search index so
alerts have something to match. Prints access tokens for both users
(login lives in the account service, not here).

This script is IDEMPOTENT - running it twice won't create duplicates.
It checks for existing data before inserting.
"""
import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.core.database import async_session_maker, close_db, init_db
from app.core.exceptions import SearchIndexError
from app.core.security import create_access_token
from app.models.company import Company
from app.models.email_preference import EmailPreference
from app.models.enums import AlertFrequency, ExperienceLevel, JobType
from app.models.job import Job
from app.models.job_alert import JobAlert
from app.models.job_skill import JobSkill
from app.models.user import User
from app.search.client import SearchIndexClient
from app.services.job_index_service import JobIndexService


# ─── Users ─────────────────────────────────────────────────────

TEST_USER = {
    "email": "dev@example.com",
    "full_name": "Dev User",
}

ADMIN_USER = {
    "email": "admin@example.com",
    "full_name": "Admin User",
    "is_admin": True,
}


# ─── Companies ─────────────────────────────────────────────────

COMPANIES = [
    {
        "name": "Acme Cloud",
        "slug": "acme-cloud",
        "website_url": "https://acme.example.com",
    },
    {
        "name": "Northwind Analytics",
        "slug": "northwind",
        "website_url": "https://northwind.example.com",
    },
    {
        "name": "Globex Health",
        "slug": "globex-health",
        "website_url": "https://globex.example.com",
    },
]


# ─── Sample Jobs ───────────────────────────────────────────────

SAMPLE_JOBS = [
    {
        "company_slug": "acme-cloud",
        "title": "Senior Backend Engineer",
        "description": "Build and operate Python services behind our public API.",
        "city": "Austin",
        "state": "TX",
        "country": "US",
        "is_remote": False,
        "job_type": JobType.FULL_TIME,
        "experience_level": ExperienceLevel.SENIOR,
        "skills": ["Python", "PostgreSQL", "Kubernetes"],
    },
    {
        "company_slug": "acme-cloud",
        "title": "Frontend Developer",
        "description": "Own the dashboard UI, from design system to performance.",
        "city": "Austin",
        "state": "TX",
        "country": "US",
        "is_remote": True,
        "job_type": JobType.FULL_TIME,
        "experience_level": ExperienceLevel.MID,
        "skills": ["React", "TypeScript"],
    },
    {
        "company_slug": "northwind",
        "title": "Data Engineer",
        "description": "Design batch and streaming pipelines feeding our warehouse.",
        "city": "Denver",
        "state": "CO",
        "country": "US",
        "is_remote": True,
        "job_type": JobType.CONTRACT,
        "experience_level": ExperienceLevel.MID,
        "skills": ["Python", "Airflow", "SQL"],
    },
    {
        "company_slug": "globex-health",
        "title": "Software Engineering Intern",
        "description": "Twelve week internship on the patient scheduling team.",
        "city": "Boston",
        "state": "MA",
        "country": "US",
        "is_remote": False,
        "job_type": JobType.INTERNSHIP,
        "experience_level": ExperienceLevel.ENTRY,
        "skills": ["Java", "Git"],
    },
]


# ─── Job Alerts (for the test user) ───────────────────────────

JOB_ALERTS = [
    {
        "name": "Python backend in Texas",
        "search_query": "python",
        "city": "Austin",
        "state": "TX",
        "include_remote": True,
        "frequency": AlertFrequency.DAILY,
    },
    {
        "name": "Remote data roles",
        "skills": ["Python", "SQL"],
        "job_types": [JobType.CONTRACT.value, JobType.FULL_TIME.value],
        "frequency": AlertFrequency.WEEKLY,
    },
]


async def _get_or_create_user(db, data: dict) -> User:
    existing = (await db.execute(select(User).where(User.email == data["email"]))).scalar_one_or_none()
    if existing:
        return existing
    user = User(**data)
    db.add(user)
    await db.flush()
    db.add(EmailPreference(user_id=user.id))
    print(f"  Created user: {data['email']}")
    return user


async def seed():
    print("Seeding database...")

    await init_db()
    print("  Tables created")

    async with async_session_maker() as db:

        # ── Users ──────────────────────────────────────────
        test_user = await _get_or_create_user(db, TEST_USER)
        admin_user = await _get_or_create_user(db, ADMIN_USER)

        # ── Companies ──────────────────────────────────────
        existing = await db.execute(select(Company).limit(1))
        if existing.scalar_one_or_none():
            print("  Companies already exist, skipping...")
        else:
            db.add_all([Company(**c) for c in COMPANIES])
            await db.flush()
            print(f"  Created {len(COMPANIES)} companies")

        result = await db.execute(select(Company))
        company_map = {c.slug: c for c in result.scalars().all()}

        # ── Jobs ───────────────────────────────────────────
        existing = await db.execute(select(Job).limit(1))
        if existing.scalar_one_or_none():
            print("  Jobs already exist, skipping...")
        else:
            now = datetime.now(timezone.utc)
            for i, job_data in enumerate(SAMPLE_JOBS):
                data = dict(job_data)
                company = company_map[data.pop("company_slug")]
                skills = data.pop("skills")
                job = Job(
                    company_id=company.id,
                    job_type=data.pop("job_type").value,
                    experience_level=data.pop("experience_level").value,
                    apply_url=f"https://jobs.example.com/{company.slug}/{i}",
                    # Stagger creation so recency scoring has something to rank
                    created_at=now - timedelta(days=i),
                    **data,
                )
                db.add(job)
                await db.flush()
                db.add_all([JobSkill(job_id=job.id, skill_name=s) for s in skills])
            print(f"  Created {len(SAMPLE_JOBS)} jobs")

        # ── Job Alerts ─────────────────────────────────────
        existing = await db.execute(select(JobAlert).where(JobAlert.user_id == test_user.id).limit(1))
        if existing.scalar_one_or_none():
            print("  Job alerts already exist, skipping...")
        else:
            db.add_all([JobAlert(user_id=test_user.id, **a) for a in JOB_ALERTS])
            print(f"  Created {len(JOB_ALERTS)} job alerts")

        await db.commit()

        # ── Search index ───────────────────────────────────
        try:
            report = await JobIndexService(SearchIndexClient.from_settings()).reindex_all(db)
            print(f"  Indexed {report.indexed} jobs ({report.failed} failed)")
        except SearchIndexError as e:
            print(f"  WARNING: search index unavailable, skipping reindex ({e})")

    await close_db()

    print("\nDone! Access tokens:")
    print(f"  {TEST_USER['email']}: {create_access_token({'sub': str(test_user.id)})}")
    print(f"  {ADMIN_USER['email']}: {create_access_token({'sub': str(admin_user.id)})}")


if __name__ == "__main__":
    asyncio.run(seed())
