"""
Shared fixtures.

Settings are read at import time, so the environment is prepared before
anything under `app` is imported.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_STORAGE_URL"] = "memory://"
os.environ["FRONTEND_URL"] = "https://jobs.example.com"

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  register mappers
from app.core.database import Base
from app.services.alert_delivery_service import AlertDeliveryService
from app.services.job_matching_service import JobMatchingService
from tests.helpers import FakeEmailService, FakeQueue, FakeSearchIndex


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def search():
    return FakeSearchIndex()


@pytest.fixture
def queue():
    return FakeQueue()


@pytest.fixture
def email():
    return FakeEmailService()


@pytest.fixture
def matcher(search):
    return JobMatchingService(search)


@pytest.fixture
def delivery(matcher, queue, email):
    return AlertDeliveryService(matcher, queue, email)
