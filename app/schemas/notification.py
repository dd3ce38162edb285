"""
Queue payload contracts.

Payloads cross the broker as JSON, so they are validated on the consumer
side; a payload that fails validation can never succeed on retry.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelPayload(BaseModel):
    """Wire format uses camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MatchedJob(CamelPayload):
    id: UUID
    title: str
    company: str
    location: str
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    description: str = ""


class AlertMatchItem(CamelPayload):
    job: MatchedJob
    match_score: float


class JobAlertEmailPayload(CamelPayload):
    """
    Body of a `send-job-alert-notification` job on the email queue.

    `match_ids` are the ledger rows this email covers; only rows still
    unsent at delivery time are marked sent. `scan_started_at` becomes the
    alert's new watermark when `advance_watermark` is set.
    """

    user_id: UUID
    email: EmailStr
    full_name: Optional[str] = None
    alert_id: UUID
    alert_name: str = Field(min_length=1)
    matches: List[AlertMatchItem] = Field(min_length=1)
    total_matches: int = Field(ge=0)
    match_ids: List[UUID] = Field(min_length=1)
    scan_started_at: datetime
    advance_watermark: bool = True


class AlertScanPayload(CamelPayload):
    """Body of a `scan-alert` job: one alert, one cycle."""

    alert_id: UUID
    scan_started_at: Optional[datetime] = None


class FrequencyBatchPayload(CamelPayload):
    frequency: str


class IndexJobPayload(CamelPayload):
    """Body of `index`, `update` and `delete` jobs on the index queue."""

    job_id: UUID
    fields: Optional[dict] = None
