"""
User model - the account owning job alerts.

Credentials live with the account service; this table only carries what
the alert pipeline needs to address and gate notifications.
"""
from datetime import datetime
from typing import TYPE_CHECKING, Optional, List
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, UTCDateTime

if TYPE_CHECKING:
    from app.models.email_preference import EmailPreference
    from app.models.job_alert import JobAlert


class User(BaseModel):
    """
    User entity.

    Deactivated users (is_active=False) keep their alerts, but the weekly
    maintenance task pauses them.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    last_seen_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    # Relationships
    email_preference: Mapped[Optional["EmailPreference"]] = relationship(
        "EmailPreference",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    job_alerts: Mapped[List["JobAlert"]] = relationship(
        "JobAlert",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
