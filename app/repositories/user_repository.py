"""
User repository - data access for User and EmailPreference.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.email_preference import EmailPreference
from app.models.enums import EmailType
from app.models.user import User
from app.repositories.base import BaseRepository

# Defaults for users who never saved preferences
_DEFAULT_ALLOWED = {email_type: email_type is not EmailType.MARKETING_EMAILS for email_type in EmailType}


class UserRepository(BaseRepository[User]):
    def __init__(self):
        super().__init__(User)

    async def get_active_by_id(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> Optional[User]:
        result = await db.execute(
            select(User).where(
                User.id == user_id,
                User.is_active == True,
            )
        )
        return result.scalar_one_or_none()

    async def get_with_preference(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> Optional[User]:
        result = await db.execute(
            select(User)
            .options(selectinload(User.email_preference))
            .where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def can_send_email_type(
        self,
        db: AsyncSession,
        user_id: UUID,
        email_type: EmailType,
    ) -> bool:
        """
        Whether the user accepts this category of email.

        No preference row means the defaults apply (everything but marketing).
        """
        result = await db.execute(
            select(EmailPreference).where(EmailPreference.user_id == user_id)
        )
        preference = result.scalar_one_or_none()
        if preference is None:
            return _DEFAULT_ALLOWED[email_type]
        return preference.allows(email_type)

    async def set_email_preference(
        self,
        db: AsyncSession,
        user_id: UUID,
        email_type: EmailType,
        enabled: bool,
    ) -> EmailPreference:
        result = await db.execute(
            select(EmailPreference).where(EmailPreference.user_id == user_id)
        )
        preference = result.scalar_one_or_none()
        if preference is None:
            preference = EmailPreference(user_id=user_id)
            db.add(preference)
        setattr(preference, email_type.value, enabled)
        await db.flush()
        return preference
