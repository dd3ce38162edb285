"""
Collaborators shared by every task in a worker process.

The search client, queue producer and email sender are built once per
process and handed to services explicitly. Tests install their own
context with `set_worker_context`.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.search.client import SearchIndexClient
from app.services.alert_delivery_service import AlertDeliveryService
from app.services.email_service import EmailService
from app.services.job_alert_service import JobAlertService
from app.services.job_index_service import JobIndexService
from app.services.job_matching_service import JobMatchingService
from app.workers.queue import QueueService


@dataclass
class WorkerContext:
    session_maker: async_sessionmaker
    search: SearchIndexClient
    queue: QueueService
    email: EmailService
    # Called at the end of every task, inside the task's event loop
    teardown: Optional[Callable[[], Awaitable[None]]] = None

    def delivery_service(self) -> AlertDeliveryService:
        return AlertDeliveryService(JobMatchingService(self.search), self.queue, self.email)

    def index_service(self) -> JobIndexService:
        return JobIndexService(self.search, self.queue)

    def alert_service(self) -> JobAlertService:
        return JobAlertService()


_context: Optional[WorkerContext] = None


def _default_context() -> WorkerContext:
    from app.core.database import async_session_maker, engine

    return WorkerContext(
        session_maker=async_session_maker,
        search=SearchIndexClient.from_settings(),
        queue=QueueService(),
        email=EmailService(),
        # Pooled connections are bound to the loop that opened them
        teardown=engine.dispose,
    )


def get_worker_context() -> WorkerContext:
    global _context
    if _context is None:
        _context = _default_context()
    return _context


def set_worker_context(context: Optional[WorkerContext]) -> None:
    global _context
    _context = context
