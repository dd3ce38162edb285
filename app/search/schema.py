"""
Jobs collection schema and the index document projection.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings


def jobs_collection_schema(name: Optional[str] = None) -> dict[str, Any]:
    """Typesense collection definition for job documents."""
    return {
        "name": name or settings.jobs_collection,
        "fields": [
            {"name": "id", "type": "string"},
            {"name": "title", "type": "string", "sort": True},
            {"name": "company", "type": "string"},
            {"name": "description", "type": "string"},
            {"name": "city", "type": "string", "optional": True, "facet": True},
            {"name": "state", "type": "string", "optional": True, "facet": True},
            {"name": "country", "type": "string", "optional": True, "facet": True},
            {"name": "isRemote", "type": "bool", "facet": True},
            {"name": "isActive", "type": "bool", "facet": True},
            {"name": "experience", "type": "string", "optional": True, "facet": True},
            {"name": "jobType", "type": "string", "optional": True, "facet": True},
            {"name": "skills", "type": "string[]", "facet": True},
            {"name": "createdAt", "type": "int64", "sort": True},
        ],
        "default_sorting_field": "createdAt",
    }


def to_epoch_seconds(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def from_epoch_seconds(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class JobSearchDocument(BaseModel):
    """
    Denormalized, index-resident projection of a job.

    Field names follow the collection schema (camelCase), which is also
    the key style used inside `filter_by` expressions.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    company: str
    description: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    is_remote: bool = Field(default=False, alias="isRemote")
    is_active: bool = Field(default=True, alias="isActive")
    experience: Optional[str] = None
    job_type: Optional[str] = Field(default=None, alias="jobType")
    skills: list[str] = Field(default_factory=list)
    created_at: int = Field(alias="createdAt")

    def to_index(self) -> dict[str, Any]:
        """Payload for the index: camelCase keys, unset optionals dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)
