"""
EmailPreference model - per-user opt-in flags for each email category.
"""
import secrets
import uuid
from typing import TYPE_CHECKING
from sqlalchemy import Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel
from app.models.enums import EmailType

if TYPE_CHECKING:
    from app.models.user import User


class EmailPreference(BaseModel):
    """
    Email preference entity (one row per user).

    A user without a row receives every category except marketing.
    """

    __tablename__ = "email_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    job_match_notifications: Mapped[bool] = mapped_column(Boolean, default=True)
    application_status_notifications: Mapped[bool] = mapped_column(Boolean, default=True)
    weekly_job_digest: Mapped[bool] = mapped_column(Boolean, default=True)
    marketing_emails: Mapped[bool] = mapped_column(Boolean, default=False)
    account_security_alerts: Mapped[bool] = mapped_column(Boolean, default=True)

    # Used by one-click unsubscribe links
    unsubscribe_token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        default=lambda: secrets.token_urlsafe(32),
    )

    user: Mapped["User"] = relationship("User", back_populates="email_preference")

    def allows(self, email_type: EmailType) -> bool:
        return bool(getattr(self, email_type.value))

    def __repr__(self) -> str:
        return f"<EmailPreference user_id={self.user_id}>"
