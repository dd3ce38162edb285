"""
Database models for the job alert pipeline.

All models use UUID primary keys and include created_at/updated_at timestamps.
"""
from app.models.base import BaseModel, TimestampMixin, UUIDMixin
from app.models.enums import AlertFrequency, EmailType, ExperienceLevel, JobType
from app.models.company import Company
from app.models.job import Job
from app.models.job_skill import JobSkill
from app.models.user import User
from app.models.email_preference import EmailPreference
from app.models.job_alert import JobAlert
from app.models.job_alert_match import JobAlertMatch

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    "AlertFrequency",
    "EmailType",
    "ExperienceLevel",
    "JobType",
    "Company",
    "Job",
    "JobSkill",
    "User",
    "EmailPreference",
    "JobAlert",
    "JobAlertMatch",
]
