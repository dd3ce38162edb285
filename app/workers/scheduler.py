"""
Celery Beat scheduler configuration.

Periodic jobs are ordinary jobs on the job_alerts queue:
- Daily alerts: every day at 08:00 UTC
- Weekly alerts: Mondays at 08:00 UTC
- Monthly alerts: the 1st at 08:00 UTC
- Pause alerts of deactivated users: Sundays at 02:00 UTC

Each frequency run only fans out one scan-alert job per due alert; the
scans themselves run in parallel on the alert workers.
"""
from celery.schedules import crontab

from app.models.enums import AlertFrequency
from app.services.alert_delivery_service import PAUSE_INACTIVE_USER_ALERTS_JOB, RUN_FREQUENCY_BATCH_JOB
from app.workers.celery_app import celery_app
from app.workers.queue import JOB_ALERTS_QUEUE, QUEUES

ALERT_TASK = QUEUES[JOB_ALERTS_QUEUE].task

FREQUENCY_SCHEDULES = {
    AlertFrequency.DAILY: crontab(hour=8, minute=0),
    AlertFrequency.WEEKLY: crontab(hour=8, minute=0, day_of_week="mon"),
    AlertFrequency.MONTHLY: crontab(hour=8, minute=0, day_of_month=1),
}


def _frequency_entry(frequency: AlertFrequency) -> dict:
    return {
        "task": ALERT_TASK,
        "schedule": FREQUENCY_SCHEDULES[frequency],
        "args": (RUN_FREQUENCY_BATCH_JOB, {"frequency": frequency.value}),
        "options": {"queue": JOB_ALERTS_QUEUE},
    }


# ─── Periodic Task Schedule ────────────────────────────────────

celery_app.conf.beat_schedule = {
    **{f"job-alerts-{f.value}": _frequency_entry(f) for f in AlertFrequency},
    "pause-inactive-user-alerts": {
        "task": ALERT_TASK,
        "schedule": crontab(hour=2, minute=0, day_of_week="sun"),
        "args": (PAUSE_INACTIVE_USER_ALERTS_JOB, {}),
        "options": {"queue": JOB_ALERTS_QUEUE},
    },
}
