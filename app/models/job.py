"""
Job model - the authoritative job posting record.

The search index holds a derived projection of each row (see
app.search.schema.JobSearchDocument); this table is the source of truth.
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional, List
from sqlalchemy import String, Boolean, Text, Integer, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, UTCDateTime

if TYPE_CHECKING:
    from app.models.company import Company
    from app.models.job_skill import JobSkill
    from app.models.job_alert_match import JobAlertMatch


class Job(BaseModel):
    """Job posting entity."""

    __tablename__ = "jobs"

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("companies.id"),
        nullable=False,
        index=True,
    )

    # Core fields
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Location
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_remote: Mapped[bool] = mapped_column(Boolean, default=False)

    # Classification (values from app.models.enums)
    job_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    experience_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Application
    apply_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Salary (optional)
    salary_min: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    salary_max: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    salary_currency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    expires_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Relationships
    company: Mapped["Company"] = relationship("Company", back_populates="jobs")
    skills: Mapped[List["JobSkill"]] = relationship(
        "JobSkill",
        back_populates="job",
        cascade="all, delete-orphan",
    )
    alert_matches: Mapped[List["JobAlertMatch"]] = relationship(
        "JobAlertMatch",
        back_populates="job",
        cascade="all, delete-orphan",
    )

    @property
    def location_label(self) -> str:
        """Human-readable location for emails ("Austin, TX" / "Remote")."""
        parts = [p for p in (self.city, self.state, self.country) if p]
        label = ", ".join(parts)
        if self.is_remote:
            return f"{label} (Remote)" if label else "Remote"
        return label or "Not specified"

    def __repr__(self) -> str:
        return f"<Job {self.title} at {self.company_id}>"
