"""
Canonical enumerations shared by models, schemas and search filters.

Values are stored and indexed as their `.value` strings.
"""
from enum import Enum
from typing import Optional


class JobType(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    VOLUNTEER = "volunteer"
    INTERNSHIP = "internship"

    @classmethod
    def normalize(cls, value: str) -> str:
        """
        Map legacy underscore spellings onto the canonical value.

        'full_time' -> 'full-time'. Unknown values pass through unchanged
        so a stale stored criterion never crashes a scan.
        """
        candidate = value.strip().lower().replace("_", "-")
        try:
            return cls(candidate).value
        except ValueError:
            return value


class ExperienceLevel(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"


class AlertFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def window_hours(self) -> int:
        """Minimum spacing between two notification cycles."""
        return _FREQUENCY_WINDOW_HOURS[self]

    def is_more_frequent_than(self, other: Optional["AlertFrequency"]) -> bool:
        if other is None:
            return False
        return self.window_hours < other.window_hours


_FREQUENCY_WINDOW_HOURS = {
    AlertFrequency.DAILY: 24,
    AlertFrequency.WEEKLY: 24 * 7,
    AlertFrequency.MONTHLY: 24 * 30,
}


class EmailType(str, Enum):
    JOB_MATCH_NOTIFICATIONS = "job_match_notifications"
    APPLICATION_STATUS_NOTIFICATIONS = "application_status_notifications"
    WEEKLY_JOB_DIGEST = "weekly_job_digest"
    MARKETING_EMAILS = "marketing_emails"
    ACCOUNT_SECURITY_ALERTS = "account_security_alerts"
