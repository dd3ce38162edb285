"""
Named-queue facade over Celery.

Producers call `QueueService.add_job(queue, job_name, payload)`. Each named
queue has one consumer task that receives `(job_name, payload)` and
dispatches on the job name, so queues fail independently: a stuck email
queue never blocks index writes.

Run one worker per queue to get per-queue concurrency, e.g.
    celery -A app.workers.celery_app worker -Q email -c 5
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from celery import Celery
from kombu.exceptions import ChannelError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

JOB_INDEX_QUEUE = "job_index"
EMAIL_QUEUE = "email"
JOB_ALERTS_QUEUE = "job_alerts"


@dataclass(frozen=True)
class QueueSpec:
    name: str
    task: str
    concurrency: int
    rate_limit: Optional[str] = None


QUEUES: dict[str, QueueSpec] = {
    JOB_INDEX_QUEUE: QueueSpec(JOB_INDEX_QUEUE, "app.workers.tasks.process_index_job", 5, "50/m"),
    EMAIL_QUEUE: QueueSpec(EMAIL_QUEUE, "app.workers.tasks.process_email_job", 5, "100/m"),
    JOB_ALERTS_QUEUE: QueueSpec(JOB_ALERTS_QUEUE, "app.workers.tasks.process_alert_job", settings.worker_concurrency),
}


class UnknownQueueError(ValueError):
    def __init__(self, queue_name: str):
        super().__init__(f"Unknown queue: {queue_name}")
        self.queue_name = queue_name


def get_queue_spec(queue_name: str) -> QueueSpec:
    try:
        return QUEUES[queue_name]
    except KeyError:
        raise UnknownQueueError(queue_name) from None


@dataclass
class JobOptions:
    job_id: Optional[str] = None
    delay_seconds: Optional[float] = None
    priority: Optional[int] = None


@dataclass
class JobHandle:
    id: str
    queue: str
    name: str


@dataclass
class QueueMetrics:
    queue: str
    waiting: int = 0
    active: int = 0
    scheduled: int = 0
    reserved: int = 0


@dataclass
class QueueSnapshot:
    queues: list[QueueMetrics] = field(default_factory=list)
    workers_online: int = 0


def _count_for_queue(by_worker: Optional[dict], queue_name: str) -> int:
    count = 0
    for tasks in (by_worker or {}).values():
        for task in tasks:
            # scheduled entries wrap the request under "request"
            request = task.get("request", task)
            routing_key = (request.get("delivery_info") or {}).get("routing_key")
            if routing_key == queue_name:
                count += 1
    return count


class QueueService:
    """Producer-side handle on the named queues."""

    def __init__(self, app: Optional[Celery] = None):
        if app is None:
            from app.workers.celery_app import celery_app as app
        self.app = app

    async def add_job(
        self,
        queue_name: str,
        job_name: str,
        payload: dict[str, Any],
        options: Optional[JobOptions] = None,
    ) -> JobHandle:
        spec = get_queue_spec(queue_name)
        options = options or JobOptions()

        result = await asyncio.to_thread(
            self.app.send_task,
            spec.task,
            args=[job_name, payload],
            queue=spec.name,
            task_id=options.job_id,
            countdown=options.delay_seconds,
            priority=options.priority,
        )
        logger.debug("job_enqueued", queue=spec.name, job_name=job_name, job_id=result.id)
        return JobHandle(id=result.id, queue=spec.name, name=job_name)

    async def get_metrics(self) -> QueueSnapshot:
        return await asyncio.to_thread(self._collect_metrics)

    def _collect_metrics(self) -> QueueSnapshot:
        inspect = self.app.control.inspect(timeout=1.0)
        active = inspect.active()
        scheduled = inspect.scheduled()
        reserved = inspect.reserved()

        snapshot = QueueSnapshot(workers_online=len(active or {}))
        with self.app.connection_for_read() as conn:
            channel = conn.default_channel
            for name in QUEUES:
                snapshot.queues.append(
                    QueueMetrics(
                        queue=name,
                        waiting=self._waiting(channel, name),
                        active=_count_for_queue(active, name),
                        scheduled=_count_for_queue(scheduled, name),
                        reserved=_count_for_queue(reserved, name),
                    )
                )
        return snapshot

    @staticmethod
    def _waiting(channel, queue_name: str) -> int:
        try:
            _, message_count, _ = channel.queue_declare(queue=queue_name, passive=True)
        except ChannelError:
            # Never declared: nothing has been published to it yet
            return 0
        return message_count

    async def obliterate_queue(self, queue_name: str) -> int:
        """Drop every waiting message on the queue. Admin/test use only."""
        spec = get_queue_spec(queue_name)
        purged = await asyncio.to_thread(self._purge, spec.name)
        logger.warning("queue_obliterated", queue=spec.name, purged=purged)
        return purged

    def _purge(self, queue_name: str) -> int:
        with self.app.connection_for_write() as conn:
            return conn.default_channel.queue_purge(queue_name) or 0
