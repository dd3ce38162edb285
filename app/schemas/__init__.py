"""
Pydantic schemas for API validation and serialization.
"""
from app.schemas.base import (
    BaseSchema,
    PaginatedResponse,
    MessageResponse,
    ErrorResponse,
)
from app.schemas.job_alert import (
    JobAlertCreate,
    JobAlertUpdate,
    JobAlertResponse,
    JobAlertMatchResponse,
)
from app.schemas.notification import (
    AlertMatchItem,
    AlertScanPayload,
    IndexJobPayload,
    JobAlertEmailPayload,
    MatchedJob,
)
from app.schemas.queue import (
    EnqueuedJobResponse,
    FrequencyScanResponse,
    QueueMetricsListResponse,
    QueueMetricsResponse,
    PurgeQueueResponse,
    ReindexResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "PaginatedResponse",
    "MessageResponse",
    "ErrorResponse",
    # Job alerts
    "JobAlertCreate",
    "JobAlertUpdate",
    "JobAlertResponse",
    "JobAlertMatchResponse",
    # Queue payloads
    "AlertMatchItem",
    "AlertScanPayload",
    "IndexJobPayload",
    "JobAlertEmailPayload",
    "MatchedJob",
    # Admin
    "EnqueuedJobResponse",
    "FrequencyScanResponse",
    "QueueMetricsListResponse",
    "QueueMetricsResponse",
    "PurgeQueueResponse",
    "ReindexResponse",
]
