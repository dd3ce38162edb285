"""
JobAlertMatch model - the dedup ledger of (alert, job) matches.
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import Boolean, Float, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, UTCDateTime, utcnow

if TYPE_CHECKING:
    from app.models.job_alert import JobAlert
    from app.models.job import Job


class JobAlertMatch(BaseModel):
    """
    Job alert match entity.

    One row per (alert, job) pair, enforced by `uq_job_alert_match`. That
    constraint is what stops two overlapping scans from notifying twice:
    rows are inserted with ON CONFLICT DO NOTHING and `was_sent` only
    flips false -> true once the email has gone out.
    """

    __tablename__ = "job_alert_matches"

    __table_args__ = (
        UniqueConstraint("job_alert_id", "job_id", name="uq_job_alert_match"),
        Index("ix_job_alert_matches_alert_sent", "job_alert_id", "was_sent"),
    )

    job_alert_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_alerts.id", ondelete="CASCADE"),
        nullable=False,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    match_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    was_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    matched_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    # Relationships
    job_alert: Mapped["JobAlert"] = relationship("JobAlert", back_populates="matches")
    job: Mapped["Job"] = relationship("Job", back_populates="alert_matches")

    def __repr__(self) -> str:
        return f"<JobAlertMatch alert_id={self.job_alert_id} job_id={self.job_id} sent={self.was_sent}>"
