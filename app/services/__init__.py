"""
Service layer - business logic and orchestration.

Services contain the application's business logic, coordinate between
repositories, and handle cross-cutting concerns.

RULE: Routes and tasks call services. Services call repositories. Never the reverse.
"""
from app.services.email_service import EmailService
from app.services.job_alert_service import JobAlertService
from app.services.job_matching_service import JobMatchingService
from app.services.alert_delivery_service import AlertDeliveryService
from app.services.job_index_service import JobIndexService

__all__ = [
    "EmailService",
    "JobAlertService",
    "JobMatchingService",
    "AlertDeliveryService",
    "JobIndexService",
]
