"""
Celery tasks for background processing.

ARCHITECTURE RULE: Same as routes, tasks are thin entry points.
They do exactly 3 things:
  1. Create a DB session (since we're outside FastAPI's request cycle)
  2. Call a service method
  3. Return the result

Each named queue has one consumer task taking `(job_name, payload)`.
Transient failures (index, SMTP, database connectivity) are retried with
exponential backoff; malformed payloads fail immediately.
"""
import asyncio

from celery import Task
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.core.exceptions import (
    EmailDeliveryError,
    InvalidJobPayloadError,
    SearchIndexError,
)
from app.core.logging import bind_task_context, get_logger
from app.models.enums import AlertFrequency
from app.schemas.notification import AlertScanPayload, FrequencyBatchPayload
from app.services.alert_delivery_service import (
    PAUSE_INACTIVE_USER_ALERTS_JOB,
    RUN_FREQUENCY_BATCH_JOB,
    SCAN_ALERT_JOB,
    SEND_NOTIFICATION_JOB,
)
from app.workers.celery_app import celery_app
from app.workers.context import get_worker_context

logger = get_logger(__name__)


def run_async(coro_factory):
    """
    Helper to run async code in sync Celery tasks.

    Celery workers are synchronous. Our services are async (because
    SQLAlchemy async requires it). This bridge creates an event loop,
    runs the coroutine, tears down loop-bound resources and closes it.
    """
    context = get_worker_context()
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro_factory(context))
    finally:
        if context.teardown is not None:
            loop.run_until_complete(context.teardown())
        loop.close()


class PipelineTask(Task):
    """Base task: backoff retries for transient errors, loud final failure."""

    autoretry_for = (SearchIndexError, EmailDeliveryError, OperationalError, ConnectionError)
    retry_backoff = settings.queue_backoff_base_seconds
    retry_backoff_max = settings.queue_backoff_max_seconds
    retry_jitter = True
    max_retries = settings.queue_default_attempts - 1

    def before_start(self, task_id, args, kwargs):
        job_name = args[0] if args else None
        bind_task_context(task_id, self.name, job_name=job_name, attempt=self.request.retries + 1)

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning("task_retrying", attempt=self.request.retries + 1, error=str(exc))

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        if isinstance(exc, InvalidJobPayloadError):
            logger.error("task_payload_rejected", error=str(exc))
        else:
            logger.error(
                "task_retries_exhausted",
                attempts=self.request.retries + 1,
                error=str(exc),
                exc_info=exc,
            )


# ── Index queue ───────────────────────────────────────────────────────────────


@celery_app.task(bind=True, base=PipelineTask, name="app.workers.tasks.process_index_job")
def process_index_job(self, job_name: str, payload: dict):
    """Apply an `index` / `update` / `delete` job to the search index."""
    return run_async(lambda ctx: _process_index_job(ctx, job_name, payload))


async def _process_index_job(ctx, job_name: str, payload: dict):
    async with ctx.session_maker() as db:
        return await ctx.index_service().process(db, job_name, payload)


# ── Email queue ───────────────────────────────────────────────────────────────


@celery_app.task(bind=True, base=PipelineTask, name="app.workers.tasks.process_email_job")
def process_email_job(self, job_name: str, payload: dict):
    """Send a job alert email and mark its matches as sent."""
    return run_async(lambda ctx: _process_email_job(ctx, job_name, payload))


async def _process_email_job(ctx, job_name: str, payload: dict):
    if job_name != SEND_NOTIFICATION_JOB:
        raise InvalidJobPayloadError(f"Unknown email job name: {job_name}")

    async with ctx.session_maker() as db:
        outcome = await ctx.delivery_service().deliver_notification(db, payload)
        return {
            "alert_id": str(outcome.alert_id),
            "sent": outcome.sent,
            "marked": outcome.marked,
            "reason": outcome.reason,
        }


# ── Job alerts queue ──────────────────────────────────────────────────────────


@celery_app.task(bind=True, base=PipelineTask, name="app.workers.tasks.process_alert_job")
def process_alert_job(self, job_name: str, payload: dict):
    """
    Alert pipeline jobs:
      - scan-alert: one matching cycle for one alert
      - run-frequency-batch: fan out scan-alert jobs for a frequency
      - pause-inactive-user-alerts: weekly maintenance
    """
    return run_async(lambda ctx: _process_alert_job(ctx, job_name, payload))


async def _process_alert_job(ctx, job_name: str, payload: dict):
    if job_name == SCAN_ALERT_JOB:
        scan = _validate(AlertScanPayload, payload)
        async with ctx.session_maker() as db:
            outcome = await ctx.delivery_service().scan_alert(db, scan.alert_id, scan.scan_started_at)
        return {
            "alert_id": str(outcome.alert_id),
            "status": outcome.status.value,
            "reason": outcome.reason,
            "new_matches": outcome.new_matches,
        }

    if job_name == RUN_FREQUENCY_BATCH_JOB:
        batch = _validate(FrequencyBatchPayload, payload)
        try:
            frequency = AlertFrequency(batch.frequency)
        except ValueError as e:
            raise InvalidJobPayloadError(f"Unknown frequency: {batch.frequency}") from e
        async with ctx.session_maker() as db:
            handles = await ctx.delivery_service().dispatch_frequency_batch(db, frequency)
        return {"frequency": frequency.value, "alerts_enqueued": len(handles)}

    if job_name == PAUSE_INACTIVE_USER_ALERTS_JOB:
        async with ctx.session_maker() as db:
            return await ctx.alert_service().pause_alerts_for_inactive_users(db)

    raise InvalidJobPayloadError(f"Unknown job alert job name: {job_name}")


def _validate(model, payload: dict):
    try:
        return model.model_validate(payload)
    except ValueError as e:
        raise InvalidJobPayloadError(f"Invalid {model.__name__}: {e}") from e

