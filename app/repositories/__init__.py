"""
Repository layer - data access abstraction.

Repositories handle all database queries, keeping SQL/ORM logic
out of the service and route layers.
"""
from app.repositories.base import BaseRepository
from app.repositories.user_repository import UserRepository
from app.repositories.job_repository import JobRepository
from app.repositories.job_alert_repository import JobAlertRepository
from app.repositories.job_alert_match_repository import JobAlertMatchRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "JobRepository",
    "JobAlertRepository",
    "JobAlertMatchRepository",
]
