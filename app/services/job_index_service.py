"""
Job index service - keeps the search index in step with the jobs table.

Request paths never write to the index directly: job create/update/delete
hooks enqueue `index` / `update` / `delete` jobs on the index queue, and
the index worker applies them here with retries.
"""
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidJobPayloadError
from app.core.logging import get_logger
from app.models.job import Job
from app.repositories.job_repository import JobRepository
from app.schemas.notification import IndexJobPayload
from app.search.client import IndexResult, SearchIndexClient
from app.search.schema import JobSearchDocument, to_epoch_seconds
from app.workers.queue import JOB_INDEX_QUEUE, JobHandle, QueueService

logger = get_logger(__name__)

INDEX_JOB = "index"
UPDATE_JOB = "update"
DELETE_JOB = "delete"


def to_document(job: Job) -> JobSearchDocument:
    """Project a job (with company and skills loaded) into its index document."""
    return JobSearchDocument(
        id=str(job.id),
        title=job.title,
        company=job.company.name if job.company else "",
        description=job.description or "",
        city=job.city,
        state=job.state,
        country=job.country,
        is_remote=bool(job.is_remote),
        is_active=bool(job.is_active),
        experience=job.experience_level,
        job_type=job.job_type,
        skills=[s.skill_name for s in job.skills],
        created_at=to_epoch_seconds(job.created_at),
    )


@dataclass
class ReindexReport:
    indexed: int = 0
    failed: int = 0
    failures: list[IndexResult] = field(default_factory=list)


class JobIndexService:
    def __init__(self, search: SearchIndexClient, queue: Optional[QueueService] = None):
        self.search = search
        self.queue = queue
        self.job_repo = JobRepository()

    # Producer hooks

    async def enqueue_index(self, job_id: UUID) -> JobHandle:
        return await self._enqueue(INDEX_JOB, IndexJobPayload(job_id=job_id))

    async def enqueue_update(self, job_id: UUID, fields: Optional[dict[str, Any]] = None) -> JobHandle:
        return await self._enqueue(UPDATE_JOB, IndexJobPayload(job_id=job_id, fields=fields))

    async def enqueue_delete(self, job_id: UUID) -> JobHandle:
        return await self._enqueue(DELETE_JOB, IndexJobPayload(job_id=job_id))

    async def _enqueue(self, job_name: str, payload: IndexJobPayload) -> JobHandle:
        if self.queue is None:
            raise RuntimeError("JobIndexService was built without a queue")
        handle = await self.queue.add_job(JOB_INDEX_QUEUE, job_name, payload.to_wire())
        logger.debug("index_job_enqueued", job_name=job_name, job_id=str(payload.job_id))
        return handle

    # Consumer

    async def process(self, db: AsyncSession, job_name: str, raw_payload: dict[str, Any]) -> dict:
        """Apply one index-queue job. SearchIndexError propagates for retry."""
        try:
            payload = IndexJobPayload.model_validate(raw_payload)
        except ValidationError as e:
            raise InvalidJobPayloadError(f"Invalid index payload: {e}") from e

        job_id = str(payload.job_id)

        if job_name == DELETE_JOB:
            deleted = await self.search.delete(job_id)
            logger.info("job_document_deleted", job_id=job_id, existed=deleted)
            return {"job_id": job_id, "action": DELETE_JOB, "deleted": deleted}

        if job_name == UPDATE_JOB and payload.fields:
            await self.search.update(job_id, payload.fields)
            logger.info("job_document_updated", job_id=job_id, fields=sorted(payload.fields))
            return {"job_id": job_id, "action": UPDATE_JOB}

        if job_name not in (INDEX_JOB, UPDATE_JOB):
            raise InvalidJobPayloadError(f"Unknown index job name: {job_name}")

        job = await self.job_repo.get_with_details(db, payload.job_id)
        if job is None:
            # Deleted before the worker got to it; nothing to index
            logger.info("job_document_skipped_missing", job_id=job_id)
            return {"job_id": job_id, "action": job_name, "skipped": True}

        await self.search.index_document(to_document(job))
        logger.info("job_document_indexed", job_id=job_id, action=job_name)
        return {"job_id": job_id, "action": job_name}

    # Maintenance

    async def reindex_all(self, db: AsyncSession, batch_size: int = 500) -> ReindexReport:
        """Bulk upsert every active job. Failed documents do not stop the run."""
        await self.search.ensure_collection()

        report = ReindexReport()
        skip = 0
        while True:
            jobs = await self.job_repo.list_active_with_details(db, skip=skip, limit=batch_size)
            if not jobs:
                break

            results = await self.search.index_many([to_document(j) for j in jobs])
            for result in results:
                if result.success:
                    report.indexed += 1
                else:
                    report.failed += 1
                    report.failures.append(result)
                    logger.warning("index_write_failed", job_id=result.document_id, error=result.error)

            skip += batch_size

        logger.info("reindex_completed", indexed=report.indexed, failed=report.failed)
        return report

    async def delete_by_title(self, title: str) -> int:
        deleted = await self.search.delete_by_title(title)
        logger.info("job_documents_deleted_by_title", title=title, deleted=deleted)
        return deleted
