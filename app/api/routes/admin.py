"""
Admin routes - alert pipeline and search index maintenance.

Everything here is operator-only: queue purges and reindexing are never
reachable from user request paths.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    get_admin_user,
    get_alert_delivery_service,
    get_job_index_service,
    get_queue_service,
)
from app.core.database import get_db
from app.core.exceptions import QueueNotFoundException
from app.core.rate_limit import RATE_ADMIN, limiter
from app.models.enums import AlertFrequency
from app.models.user import User
from app.schemas.base import MessageResponse
from app.schemas.notification import AlertScanPayload
from app.schemas.queue import (
    EnqueuedJobResponse,
    FrequencyScanResponse,
    PurgeQueueResponse,
    QueueMetricsListResponse,
    QueueMetricsResponse,
    ReindexFailure,
    ReindexResponse,
)
from app.services.alert_delivery_service import SCAN_ALERT_JOB, AlertDeliveryService
from app.services.job_index_service import JobIndexService
from app.workers.queue import JOB_ALERTS_QUEUE, QueueService, UnknownQueueError

router = APIRouter(prefix="/admin", tags=["admin"])


# ── Alert pipeline ────────────────────────────────────────────────────────────


@router.post("/job-alerts/run/{frequency}", response_model=FrequencyScanResponse)
async def run_frequency_batch(
    frequency: AlertFrequency,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    service: AlertDeliveryService = Depends(get_alert_delivery_service),
):
    """Enqueue a scan for every alert of this frequency that is due now."""
    handles = await service.dispatch_frequency_batch(db, frequency)
    return FrequencyScanResponse(frequency=frequency.value, alerts_enqueued=len(handles))


@router.post(
    "/job-alerts/{alert_id}/scan",
    response_model=EnqueuedJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def scan_job_alert(
    alert_id: UUID,
    admin: User = Depends(get_admin_user),
    queue: QueueService = Depends(get_queue_service),
):
    """Enqueue one matching cycle for a single alert, regardless of schedule."""
    handle = await queue.add_job(JOB_ALERTS_QUEUE, SCAN_ALERT_JOB, AlertScanPayload(alert_id=alert_id).to_wire())
    return EnqueuedJobResponse(queue=handle.queue, job_name=handle.name, job_id=handle.id)


# ── Queues ────────────────────────────────────────────────────────────────────


@router.get("/queues", response_model=QueueMetricsListResponse)
async def get_queue_metrics(
    admin: User = Depends(get_admin_user),
    queue: QueueService = Depends(get_queue_service),
):
    snapshot = await queue.get_metrics()
    return QueueMetricsListResponse(
        queues=[
            QueueMetricsResponse(
                queue=m.queue,
                waiting=m.waiting,
                active=m.active,
                scheduled=m.scheduled,
                reserved=m.reserved,
            )
            for m in snapshot.queues
        ],
        workers_online=snapshot.workers_online,
    )


@router.delete("/queues/{queue_name}", response_model=PurgeQueueResponse)
@limiter.limit(RATE_ADMIN)
async def obliterate_queue(
    request: Request,
    queue_name: str,
    admin: User = Depends(get_admin_user),
    queue: QueueService = Depends(get_queue_service),
):
    """Drop every waiting job on a queue."""
    try:
        purged = await queue.obliterate_queue(queue_name)
    except UnknownQueueError as e:
        raise QueueNotFoundException(e.queue_name) from e
    return PurgeQueueResponse(queue=queue_name, purged=purged)


# ── Search index ──────────────────────────────────────────────────────────────


@router.post("/search/reindex", response_model=ReindexResponse)
@limiter.limit(RATE_ADMIN)
async def reindex_jobs(
    request: Request,
    batch_size: int = Query(500, ge=1, le=5000),
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
    service: JobIndexService = Depends(get_job_index_service),
):
    """Rebuild the index from the jobs table. Failed documents are reported, not fatal."""
    report = await service.reindex_all(db, batch_size=batch_size)
    return ReindexResponse(
        indexed=report.indexed,
        failed=report.failed,
        failures=[ReindexFailure(document_id=f.document_id, error=f.error) for f in report.failures],
    )


@router.delete("/search/documents", response_model=MessageResponse)
async def delete_documents_by_title(
    title: str = Query(..., min_length=1),
    admin: User = Depends(get_admin_user),
    service: JobIndexService = Depends(get_job_index_service),
):
    """Remove index documents by exact title (cleanup of test or spam postings)."""
    deleted = await service.delete_by_title(title)
    return MessageResponse(message=f"Deleted {deleted} documents")
