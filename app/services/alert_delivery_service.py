"""
Alert delivery service - the dedup ledger and per-cycle orchestration.

One alert cycle runs strictly in this order:

    search -> record matches (insert-if-absent) -> enqueue email
           -> [email worker] send -> mark sent -> advance watermark

Guarantees:
- a (alert, job) pair is recorded once (`uq_job_alert_match`);
- `was_sent` flips false -> true at most once, and only after the email
  collaborator reported success;
- the watermark (`last_sent_at`) only moves forward and never after a
  failed search. A complete window moves it to the time the scan started,
  once the email went out. A window cut short by the match cap moves it
  to the newest recorded job straight away, in the same commit as the
  ledger rows, so the next cycle picks up where this one stopped.

Delivery is at-least-once: a crash between sending and marking resends on
the next attempt. Unsent rows stay eligible and are picked up by later
cycles.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidJobPayloadError
from app.core.logging import get_logger
from app.models.base import utcnow
from app.models.enums import AlertFrequency, EmailType
from app.models.job_alert import JobAlert
from app.models.job_alert_match import JobAlertMatch
from app.repositories.job_alert_match_repository import JobAlertMatchRepository
from app.repositories.job_alert_repository import JobAlertRepository
from app.repositories.job_repository import JobRepository
from app.repositories.user_repository import UserRepository
from app.schemas.notification import (
    AlertMatchItem,
    AlertScanPayload,
    JobAlertEmailPayload,
    MatchedJob,
)
from app.services.email_service import EmailService
from app.services.job_matching_service import JobMatchingService, skip_reason
from app.workers.queue import EMAIL_QUEUE, JOB_ALERTS_QUEUE, JobHandle, QueueService

logger = get_logger(__name__)

SEND_NOTIFICATION_JOB = "send-job-alert-notification"
SCAN_ALERT_JOB = "scan-alert"
RUN_FREQUENCY_BATCH_JOB = "run-frequency-batch"
PAUSE_INACTIVE_USER_ALERTS_JOB = "pause-inactive-user-alerts"

# Slack for scheduler jitter: yesterday's 08:00:05 scan is still due at 08:00 today
DUE_GRACE = timedelta(hours=1)


class ScanStatus(str, enum.Enum):
    NOT_FOUND = "not_found"
    SKIPPED = "skipped"
    NO_MATCHES = "no_matches"
    SUPPRESSED = "suppressed"
    ENQUEUED = "enqueued"


@dataclass
class ScanOutcome:
    alert_id: UUID
    status: ScanStatus
    reason: Optional[str] = None
    found: int = 0
    new_matches: int = 0
    pending: int = 0
    truncated: bool = False
    job_id: Optional[str] = None


@dataclass
class DeliveryOutcome:
    alert_id: UUID
    sent: bool
    marked: int = 0
    reason: Optional[str] = None


def _to_match_item(match: JobAlertMatch) -> AlertMatchItem:
    job = match.job
    return AlertMatchItem(
        job=MatchedJob(
            id=job.id,
            title=job.title,
            company=job.company.name if job.company else "",
            location=job.location_label,
            job_type=job.job_type,
            experience_level=job.experience_level,
            description=job.description or "",
        ),
        match_score=match.match_score,
    )


class AlertDeliveryService:
    def __init__(
        self,
        matcher: JobMatchingService,
        queue: QueueService,
        email_service: EmailService,
        *,
        email_match_limit: Optional[int] = None,
    ):
        self.matcher = matcher
        self.queue = queue
        self.email_service = email_service
        self.email_match_limit = email_match_limit or settings.alert_email_match_limit
        self.alert_repo = JobAlertRepository()
        self.match_repo = JobAlertMatchRepository()
        self.job_repo = JobRepository()
        self.user_repo = UserRepository()

    # Scheduling

    async def dispatch_frequency_batch(
        self,
        db: AsyncSession,
        frequency: AlertFrequency,
        now: Optional[datetime] = None,
    ) -> list[JobHandle]:
        """Enqueue one scan job per alert of this frequency that is due."""
        now = now or utcnow()
        cutoff = now - timedelta(hours=frequency.window_hours) + DUE_GRACE
        alert_ids = await self.alert_repo.find_due_ids(db, frequency, cutoff)

        handles = []
        for alert_id in alert_ids:
            handles.append(
                await self.queue.add_job(
                    JOB_ALERTS_QUEUE,
                    SCAN_ALERT_JOB,
                    AlertScanPayload(alert_id=alert_id).to_wire(),
                )
            )
        logger.info("frequency_batch_dispatched", frequency=frequency.value, alerts=len(handles))
        return handles

    # Matching and recording

    async def scan_alert(
        self,
        db: AsyncSession,
        alert_id: UUID,
        scan_started_at: Optional[datetime] = None,
    ) -> ScanOutcome:
        """Run one matching cycle for one alert and enqueue its email."""
        started = scan_started_at or utcnow()
        log = logger.bind(alert_id=str(alert_id))

        alert = await self.alert_repo.get_with_user(db, alert_id)
        if alert is None:
            log.warning("alert_scan_missing")
            return ScanOutcome(alert_id, ScanStatus.NOT_FOUND)

        reason = skip_reason(alert)
        if reason:
            log.info("alert_skipped", reason=reason)
            return ScanOutcome(alert_id, ScanStatus.SKIPPED, reason=reason)

        log.info("alert_scan_started", last_sent_at=alert.last_sent_at.isoformat() if alert.last_sent_at else None)

        already_recorded = await self.match_repo.job_ids_posted_since(db, alert.id, alert.last_sent_at)
        result = await self.matcher.find_matches(alert, exclude_job_ids=already_recorded, now=started)

        new_matches = await self._record_matches(db, alert, result.matches)
        if result.truncated and result.resume_from is not None:
            # Recorded rows stay unsent and are emailed regardless of the window
            await self.alert_repo.advance_last_sent_at(db, alert.id, result.resume_from)
            log.info("alert_window_resumed", resume_from=result.resume_from.isoformat())
        await db.commit()

        outcome = ScanOutcome(
            alert_id,
            ScanStatus.NO_MATCHES,
            found=result.found,
            new_matches=new_matches,
            truncated=result.truncated,
        )
        # A truncated window already moved to its resume point above
        advance = not result.truncated

        if not await self.user_repo.can_send_email_type(db, alert.user_id, EmailType.JOB_MATCH_NOTIFICATIONS):
            log.info("email_suppressed_by_preference", user_id=str(alert.user_id), new_matches=new_matches)
            if advance:
                await self._advance_watermark(db, alert.id, started)
            outcome.status = ScanStatus.SUPPRESSED
            return outcome

        pending = await self.match_repo.get_unsent_for_alert(db, alert.id, limit=self.email_match_limit)
        if not pending:
            log.info("alert_no_new_matches", found=result.found)
            if advance:
                await self._advance_watermark(db, alert.id, started)
            return outcome

        total_unsent = await self.match_repo.count_unsent_for_alert(db, alert.id)
        payload = self._build_payload(alert, pending, total_unsent, started, advance)
        handle = await self.queue.add_job(EMAIL_QUEUE, SEND_NOTIFICATION_JOB, payload.to_wire())

        log.info("alert_notification_enqueued", job_id=handle.id, listed=len(pending), total_unsent=total_unsent)
        outcome.status = ScanStatus.ENQUEUED
        outcome.pending = total_unsent
        outcome.job_id = handle.id
        return outcome

    async def _record_matches(self, db: AsyncSession, alert: JobAlert, matches) -> int:
        # The index can briefly hold jobs the database no longer has
        known = await self.job_repo.existing_ids(db, [m.job_id for m in matches])

        recorded = 0
        for match in matches:
            if match.job_id not in known:
                logger.info("match_skipped_stale_document", alert_id=str(alert.id), job_id=str(match.job_id))
                continue
            row_id = await self.match_repo.insert_if_absent(
                db,
                job_alert_id=alert.id,
                job_id=match.job_id,
                match_score=match.score,
            )
            if row_id is not None:
                recorded += 1
                logger.debug("match_recorded", alert_id=str(alert.id), job_id=str(match.job_id), score=match.score)
        return recorded

    def _build_payload(
        self,
        alert: JobAlert,
        pending: list[JobAlertMatch],
        total_unsent: int,
        started: datetime,
        advance: bool,
    ) -> JobAlertEmailPayload:
        return JobAlertEmailPayload(
            user_id=alert.user_id,
            email=alert.user.email,
            full_name=alert.user.full_name,
            alert_id=alert.id,
            alert_name=alert.name,
            matches=[_to_match_item(m) for m in pending],
            total_matches=total_unsent,
            match_ids=[m.id for m in pending],
            scan_started_at=started,
            advance_watermark=advance,
        )

    # Delivery

    async def deliver_notification(self, db: AsyncSession, raw_payload: dict[str, Any]) -> DeliveryOutcome:
        """
        Send one alert email and settle the ledger.

        EmailDeliveryError propagates with every row still unsent, so a
        retried job (or the next cycle) sends them again.
        """
        try:
            payload = JobAlertEmailPayload.model_validate(raw_payload)
        except ValidationError as e:
            raise InvalidJobPayloadError(f"Invalid job alert email payload: {e}") from e

        log = logger.bind(alert_id=str(payload.alert_id), user_id=str(payload.user_id))

        pending = await self.match_repo.get_unsent_by_ids(db, payload.alert_id, payload.match_ids)
        if not pending:
            log.info("notification_already_sent")
            return DeliveryOutcome(payload.alert_id, sent=False, reason="already_sent")

        if not await self.user_repo.can_send_email_type(db, payload.user_id, EmailType.JOB_MATCH_NOTIFICATIONS):
            log.info("email_suppressed_by_preference", stage="delivery")
            return DeliveryOutcome(payload.alert_id, sent=False, reason="suppressed")

        pending_jobs = {m.job_id for m in pending}
        to_send = payload.model_copy(
            update={"matches": [item for item in payload.matches if item.job.id in pending_jobs]}
        )

        await self.email_service.send_job_alert_notification(to_send)

        marked = await self.match_repo.mark_sent(db, [m.id for m in pending], utcnow())
        if payload.advance_watermark:
            await self.alert_repo.advance_last_sent_at(db, payload.alert_id, payload.scan_started_at)
        await db.commit()

        log.info("notification_delivered", marked_sent=marked, advanced=payload.advance_watermark)
        return DeliveryOutcome(payload.alert_id, sent=True, marked=marked)

    async def _advance_watermark(self, db: AsyncSession, alert_id: UUID, started: datetime) -> None:
        moved = await self.alert_repo.advance_last_sent_at(db, alert_id, started)
        await db.commit()
        logger.debug("alert_watermark_advanced" if moved else "alert_watermark_unchanged", alert_id=str(alert_id))
