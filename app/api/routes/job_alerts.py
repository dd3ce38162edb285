"""
Job alert routes.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_job_alert_service
from app.core.database import get_db
from app.core.rate_limit import RATE_ALERT_WRITE, limiter
from app.models.user import User
from app.schemas.base import MessageResponse, PaginatedResponse
from app.schemas.job_alert import JobAlertCreate, JobAlertResponse, JobAlertUpdate
from app.services.job_alert_service import JobAlertService

router = APIRouter(prefix="/job-alerts", tags=["job-alerts"])


@router.post("/", response_model=JobAlertResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_ALERT_WRITE)
async def create_job_alert(
    request: Request,
    data: JobAlertCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: JobAlertService = Depends(get_job_alert_service),
):
    """
    Create a job alert.

    At least one matching criterion is required. New alerts are picked up
    by the next scheduled run for their frequency.
    """
    return await service.create_alert(db, current_user.id, data)


@router.get("/", response_model=PaginatedResponse[JobAlertResponse])
async def list_job_alerts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: JobAlertService = Depends(get_job_alert_service),
):
    """List the current user's alerts, newest first."""
    return await service.list_alerts(db, current_user.id, page=page, limit=limit)


@router.get("/{alert_id}", response_model=JobAlertResponse)
async def get_job_alert(
    alert_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: JobAlertService = Depends(get_job_alert_service),
):
    return await service.get_alert(db, current_user.id, alert_id)


@router.put("/{alert_id}", response_model=JobAlertResponse)
@limiter.limit(RATE_ALERT_WRITE)
async def update_job_alert(
    request: Request,
    alert_id: UUID,
    data: JobAlertUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: JobAlertService = Depends(get_job_alert_service),
):
    """Partially update an alert. Omitted fields keep their value."""
    return await service.update_alert(db, current_user.id, alert_id, data)


@router.patch("/{alert_id}/pause", response_model=JobAlertResponse)
async def pause_job_alert(
    alert_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: JobAlertService = Depends(get_job_alert_service),
):
    return await service.pause_alert(db, current_user.id, alert_id)


@router.patch("/{alert_id}/resume", response_model=JobAlertResponse)
async def resume_job_alert(
    alert_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: JobAlertService = Depends(get_job_alert_service),
):
    return await service.resume_alert(db, current_user.id, alert_id)


@router.delete("/{alert_id}", response_model=MessageResponse)
async def delete_job_alert(
    alert_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: JobAlertService = Depends(get_job_alert_service),
):
    """Delete an alert. Matches already sent are kept for history."""
    return await service.delete_alert(db, current_user.id, alert_id)
