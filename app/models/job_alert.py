"""
JobAlert model - a user's standing search subscription.
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional, List
from sqlalchemy import JSON, Boolean, Enum, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, UTCDateTime
from app.models.enums import AlertFrequency

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.job_alert_match import JobAlertMatch


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
StringList = JSON().with_variant(JSONB(), "postgresql")


class JobAlert(BaseModel):
    """
    Job alert entity.

    Criteria columns are all optional but at least one must be set; the
    schemas layer enforces that on create and update. `last_sent_at` is the
    watermark: only jobs created at or after it are searched for.
    """

    __tablename__ = "job_alerts"

    __table_args__ = (
        Index("ix_job_alerts_due", "frequency", "is_active", "is_paused"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Criteria
    search_query: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    job_types: Mapped[Optional[List[str]]] = mapped_column(StringList, nullable=True)
    skills: Mapped[Optional[List[str]]] = mapped_column(StringList, nullable=True)
    experience_levels: Mapped[Optional[List[str]]] = mapped_column(StringList, nullable=True)
    include_remote: Mapped[bool] = mapped_column(Boolean, default=True)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # Cadence
    frequency: Mapped[AlertFrequency] = mapped_column(
        Enum(
            AlertFrequency,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=AlertFrequency.WEEKLY,
        nullable=False,
    )
    last_sent_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="job_alerts")
    matches: Mapped[List["JobAlertMatch"]] = relationship(
        "JobAlertMatch",
        back_populates="job_alert",
        cascade="all, delete-orphan",
    )

    @property
    def has_criteria(self) -> bool:
        return bool(
            (self.search_query and self.search_query.strip())
            or (self.city and self.city.strip())
            or (self.state and self.state.strip())
            or self.skills
            or self.job_types
            or self.experience_levels
        )

    def __repr__(self) -> str:
        return f"<JobAlert {self.name} user_id={self.user_id}>"
