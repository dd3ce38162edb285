"""
Celery application configuration.

This module sets up the Celery app with Redis as broker and backend,
and routes each consumer task to its named queue.
"""
from celery import Celery
from celery.signals import worker_process_init

from app.core.config import settings
from app.core.logging import setup_logging
from app.workers.queue import QUEUES

# Create Celery app
celery_app = Celery(
    "job_alerts",
    broker=settings.redis_url,
    backend=settings.result_backend_url,
    include=["app.workers.tasks", "app.workers.scheduler"],
)

# Configure Celery
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task settings
    task_track_started=True,
    task_time_limit=settings.task_time_limit,
    task_soft_time_limit=settings.task_soft_time_limit,

    # Routing: one queue per consumer
    task_default_queue="job_alerts",
    task_routes={spec.task: {"queue": spec.name} for spec in QUEUES.values()},
    task_annotations={
        spec.task: {"rate_limit": spec.rate_limit}
        for spec in QUEUES.values()
        if spec.rate_limit
    },

    # Worker settings
    worker_prefetch_multiplier=1,
    task_acks_late=True,  # Ack after completion so a crashed worker's job is redelivered
    task_reject_on_worker_lost=True,
    worker_concurrency=settings.worker_concurrency,

    # Result settings (bounded retention of finished jobs)
    result_expires=settings.queue_result_expires,
)


@worker_process_init.connect
def _configure_worker_logging(**_kwargs):
    setup_logging()

