"""
Job alert schemas.

The create schema enforces the alert invariant: at least one of search
query, city, state, skills, job types or experience levels must be given.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from app.models.enums import AlertFrequency, ExperienceLevel, JobType
from app.schemas.base import BaseSchema, IDSchema, TimestampSchema

NAME_PATTERN = r"^[a-zA-Z0-9\s-]+$"
MISSING_CRITERIA_MESSAGE = (
    "At least one of search query, location, skills, experience level "
    "or employment types must be provided."
)


def _clean_str_list(values: Optional[List[str]]) -> Optional[List[str]]:
    """Strip entries, drop blanks and duplicates (order kept)."""
    if values is None:
        return None
    seen: dict[str, None] = {}
    for value in values:
        cleaned = value.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def criteria_present(
    search_query: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    skills: Optional[List] = None,
    job_types: Optional[List] = None,
    experience_levels: Optional[List] = None,
) -> bool:
    has_query = bool(search_query and search_query.strip())
    has_location = bool((city and city.strip()) or (state and state.strip()))
    return has_query or has_location or bool(skills) or bool(job_types) or bool(experience_levels)


class JobAlertCriteria(BaseSchema):
    """Fields shared by create and update."""

    search_query: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    job_types: Optional[List[JobType]] = None
    skills: Optional[List[str]] = Field(default=None, max_length=20)
    experience_levels: Optional[List[ExperienceLevel]] = None

    @field_validator("job_types", mode="before")
    @classmethod
    def normalize_job_types(cls, v):
        if v is None:
            return v
        return [JobType.normalize(item) if isinstance(item, str) else item for item in v]

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v):
        return _clean_str_list(v)

    @field_validator("search_query", "city", "state")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return v
        return v.strip() or None


class JobAlertCreate(JobAlertCriteria):
    name: str = Field(min_length=3, max_length=100, pattern=NAME_PATTERN)
    description: Optional[str] = Field(default=None, max_length=1000)
    include_remote: bool = True
    frequency: AlertFrequency = AlertFrequency.WEEKLY

    @model_validator(mode="after")
    def require_criteria(self) -> "JobAlertCreate":
        if not criteria_present(
            self.search_query,
            self.city,
            self.state,
            self.skills,
            self.job_types,
            self.experience_levels,
        ):
            raise ValueError(MISSING_CRITERIA_MESSAGE)
        return self


class JobAlertUpdate(JobAlertCriteria):
    """
    Partial update. Only fields present in the request are applied; the
    service re-checks the criteria invariant on the merged result.
    """

    name: Optional[str] = Field(default=None, min_length=3, max_length=100, pattern=NAME_PATTERN)
    description: Optional[str] = Field(default=None, max_length=1000)
    include_remote: Optional[bool] = None
    frequency: Optional[AlertFrequency] = None


class JobAlertResponse(IDSchema, TimestampSchema):
    user_id: UUID
    name: str
    description: Optional[str] = None
    search_query: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    job_types: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    experience_levels: Optional[List[str]] = None
    include_remote: bool
    is_active: bool
    is_paused: bool
    frequency: AlertFrequency
    last_sent_at: Optional[datetime] = None


class JobAlertMatchResponse(IDSchema):
    job_alert_id: UUID
    job_id: UUID
    match_score: float
    was_sent: bool
    matched_at: datetime
    sent_at: Optional[datetime] = None
