"""
API dependencies for dependency injection.
"""
from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import (
    ForbiddenException,
    InvalidTokenException,
    UnauthorizedException,
)
from app.core.security import decode_token, is_access_token
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.search.client import SearchIndexClient
from app.services.alert_delivery_service import AlertDeliveryService
from app.services.email_service import EmailService
from app.services.job_alert_service import JobAlertService
from app.services.job_index_service import JobIndexService
from app.services.job_matching_service import JobMatchingService
from app.workers.queue import QueueService


# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get the current authenticated user.

    Raises:
        UnauthorizedException: If no token provided
        InvalidTokenException: If token is invalid, expired or names an
            unknown or deactivated user
    """
    if not credentials:
        raise UnauthorizedException("Authentication required")

    payload = decode_token(credentials.credentials)
    if not payload or not is_access_token(payload):
        raise InvalidTokenException()

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise InvalidTokenException() from None

    user = await UserRepository().get_active_by_id(db, user_id)
    if not user:
        raise InvalidTokenException()

    # Per-user rate limit key
    request.state.current_user = user
    return user


async def get_admin_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Get current user, ensuring they are an admin.

    Raises:
        ForbiddenException: If user is not an admin
    """
    if not current_user.is_admin:
        raise ForbiddenException("Admin access required")
    return current_user


# Shared clients. Tests swap them with app.dependency_overrides.


@lru_cache()
def get_search_client() -> SearchIndexClient:
    return SearchIndexClient.from_settings()


@lru_cache()
def get_queue_service() -> QueueService:
    return QueueService()


@lru_cache()
def get_email_service() -> EmailService:
    return EmailService()


def get_job_alert_service() -> JobAlertService:
    return JobAlertService()


def get_job_index_service(
    search: SearchIndexClient = Depends(get_search_client),
    queue: QueueService = Depends(get_queue_service),
) -> JobIndexService:
    return JobIndexService(search, queue)


def get_alert_delivery_service(
    search: SearchIndexClient = Depends(get_search_client),
    queue: QueueService = Depends(get_queue_service),
    email: EmailService = Depends(get_email_service),
) -> AlertDeliveryService:
    return AlertDeliveryService(JobMatchingService(search), queue, email)
