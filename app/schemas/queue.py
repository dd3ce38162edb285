"""
Admin/maintenance response schemas.
"""
from typing import Dict, List, Optional

from app.schemas.base import BaseSchema


class EnqueuedJobResponse(BaseSchema):
    queue: str
    job_name: str
    job_id: str


class FrequencyScanResponse(BaseSchema):
    frequency: str
    alerts_enqueued: int


class QueueMetricsResponse(BaseSchema):
    queue: str
    waiting: int
    active: int
    scheduled: int
    reserved: int


class QueueMetricsListResponse(BaseSchema):
    queues: List[QueueMetricsResponse]
    workers_online: int


class PurgeQueueResponse(BaseSchema):
    queue: str
    purged: int


class ReindexFailure(BaseSchema):
    document_id: Optional[str] = None
    error: Optional[str] = None


class ReindexResponse(BaseSchema):
    indexed: int
    failed: int
    failures: List[ReindexFailure] = []


class HealthResponse(BaseSchema):
    status: str
    timestamp: str
    checks: Dict[str, str]
