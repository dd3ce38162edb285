"""In-memory stand-ins for the search index, queue and email collaborators."""

import itertools
from datetime import datetime
from typing import Any, Iterable, Optional

from typesense.exceptions import ObjectNotFound

from app.core.exceptions import EmailDeliveryError, SearchIndexError
from app.schemas.notification import JobAlertEmailPayload
from app.search.client import MATCH_ALL, IndexResult, SearchHit, SearchResults
from app.search.schema import JobSearchDocument, to_epoch_seconds
from app.workers.queue import JobHandle, QueueMetrics, QueueSnapshot, get_queue_spec


class FakeSearchIndex:
    """
    Implements the SearchIndexClient surface over a dict of documents.

    Filter strings are recorded, not evaluated: tests index exactly the
    documents they expect to match. The time watermark, exclusions, the
    active flag and the page limit are honoured, and alert hits come back
    oldest first.
    """

    def __init__(self):
        self.documents: dict[str, dict[str, Any]] = {}
        self.text_match: dict[str, int] = {}
        self.alert_searches: list[dict[str, Any]] = []
        self.updates: list[tuple[str, dict]] = []
        self.fail_with: Optional[Exception] = None
        self.rejected_ids: set[str] = set()
        self.healthy = True
        self.collection_created = False

    def add(self, doc, text_match: int = 100) -> None:
        payload = doc.to_index() if isinstance(doc, JobSearchDocument) else dict(doc)
        self.documents[str(payload["id"])] = payload
        self.text_match[str(payload["id"])] = text_match

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def ensure_collection(self) -> bool:
        self._check()
        created = not self.collection_created
        self.collection_created = True
        return created

    async def health(self) -> bool:
        return self.healthy

    async def index_document(self, doc) -> dict:
        self._check()
        self.add(doc)
        return doc.to_index() if isinstance(doc, JobSearchDocument) else doc

    async def index_many(self, docs: Iterable) -> list[IndexResult]:
        self._check()
        results = []
        for doc in docs:
            payload = doc.to_index() if isinstance(doc, JobSearchDocument) else doc
            doc_id = str(payload["id"])
            if doc_id in self.rejected_ids:
                results.append(IndexResult(success=False, document_id=doc_id, error="rejected"))
                continue
            self.add(payload)
            results.append(IndexResult(success=True, document_id=doc_id))
        return results

    async def retrieve(self, job_id: str) -> Optional[dict]:
        self._check()
        return self.documents.get(str(job_id))

    async def update(self, job_id: str, fields: dict) -> dict:
        self._check()
        if str(job_id) not in self.documents:
            raise SearchIndexError(f"document {job_id} not indexed yet")
        self.documents[str(job_id)].update(fields)
        self.updates.append((str(job_id), fields))
        return self.documents[str(job_id)]

    async def delete(self, job_id: str) -> bool:
        self._check()
        return self.documents.pop(str(job_id), None) is not None

    async def delete_by_title(self, title: str) -> int:
        self._check()
        doomed = [k for k, d in self.documents.items() if d.get("title") == title]
        for key in doomed:
            del self.documents[key]
        return len(doomed)

    async def search_for_alert(
        self,
        search_query: Optional[str],
        filter_by: str,
        last_sent_at: Optional[datetime],
        limit: int,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> SearchResults:
        q = (search_query or "").strip() or MATCH_ALL
        excluded = set(exclude_ids or [])
        self.alert_searches.append(
            {
                "q": q,
                "filter_by": filter_by,
                "last_sent_at": last_sent_at,
                "limit": limit,
                "exclude_ids": excluded,
            }
        )
        self._check()

        since = to_epoch_seconds(last_sent_at) if last_sent_at else None
        candidates = [
            d
            for d in self.documents.values()
            if d.get("isActive", True)
            and d["id"] not in excluded
            and (since is None or d["createdAt"] >= since)
        ]
        candidates.sort(key=lambda d: d["createdAt"])

        hits = [
            SearchHit(document=d, text_match=0 if q == MATCH_ALL else self.text_match.get(d["id"], 100))
            for d in candidates[:limit]
        ]
        return SearchResults(hits=hits, found=len(candidates), page=1, query=q)


class FakeQueue:
    """Records jobs instead of publishing them."""

    def __init__(self):
        self.jobs: list[JobHandle] = []
        self.payloads: list[dict[str, Any]] = []
        self.purged: list[str] = []
        self._ids = itertools.count(1)

    async def add_job(self, queue_name: str, job_name: str, payload: dict, options=None) -> JobHandle:
        spec = get_queue_spec(queue_name)
        handle = JobHandle(id=f"job-{next(self._ids)}", queue=spec.name, name=job_name)
        self.jobs.append(handle)
        self.payloads.append(payload)
        return handle

    def jobs_on(self, queue_name: str) -> list[tuple[JobHandle, dict]]:
        return [(h, p) for h, p in zip(self.jobs, self.payloads) if h.queue == queue_name]

    async def get_metrics(self) -> QueueSnapshot:
        names = sorted({h.queue for h in self.jobs})
        return QueueSnapshot(
            queues=[QueueMetrics(queue=n, waiting=len(self.jobs_on(n))) for n in names],
            workers_online=0,
        )

    async def obliterate_queue(self, queue_name: str) -> int:
        spec = get_queue_spec(queue_name)
        waiting = self.jobs_on(spec.name)
        keep = [(h, p) for h, p in zip(self.jobs, self.payloads) if h.queue != spec.name]
        self.jobs = [h for h, _ in keep]
        self.payloads = [p for _, p in keep]
        self.purged.append(spec.name)
        return len(waiting)


class FakeEmailService:
    """Captures alert emails; can be told to fail the next N sends."""

    def __init__(self, fail_times: int = 0):
        self.sent: list[JobAlertEmailPayload] = []
        self.fail_times = fail_times
        self.attempts = 0

    async def send_job_alert_notification(self, payload: JobAlertEmailPayload) -> None:
        self.attempts += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise EmailDeliveryError("SMTP delivery failed: connection refused")
        self.sent.append(payload)


# ── Typesense client double ───────────────────────────────────────────────────


class _Document:
    def __init__(self, store: "_Documents", doc_id: str):
        self.store = store
        self.doc_id = doc_id

    def retrieve(self):
        self.store.calls.append(("retrieve", self.doc_id))
        if self.doc_id not in self.store.docs:
            raise ObjectNotFound("Not Found")
        return self.store.docs[self.doc_id]

    def update(self, fields):
        self.store.calls.append(("update", self.doc_id, fields))
        if self.doc_id not in self.store.docs:
            raise ObjectNotFound("Not Found")
        self.store.docs[self.doc_id].update(fields)
        return self.store.docs[self.doc_id]

    def delete(self):
        self.store.calls.append(("delete", self.doc_id))
        if self.doc_id not in self.store.docs:
            raise ObjectNotFound("Not Found")
        return self.store.docs.pop(self.doc_id)


class _Documents:
    def __init__(self, owner: "FakeTypesenseClient"):
        self.owner = owner
        self.docs: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.search_response: dict[str, Any] = {"hits": [], "found": 0, "page": 1}
        self.import_response: Optional[list[dict]] = None

    def __getitem__(self, doc_id: str) -> _Document:
        return _Document(self, doc_id)

    def upsert(self, document):
        self.owner.raise_if_failing()
        self.calls.append(("upsert", document))
        self.docs[str(document["id"])] = dict(document)
        return document

    def import_(self, documents, params):
        self.owner.raise_if_failing()
        self.calls.append(("import", documents, params))
        if self.import_response is not None:
            return self.import_response
        for doc in documents:
            self.docs[str(doc["id"])] = dict(doc)
        return [{"success": True} for _ in documents]

    def delete(self, params):
        self.calls.append(("delete_by_query", params))
        return {"num_deleted": 2}

    def search(self, params):
        self.owner.raise_if_failing()
        self.calls.append(("search", params))
        return self.search_response


class _Collection:
    def __init__(self, owner: "FakeTypesenseClient", name: str):
        self.owner = owner
        self.name = name
        self.documents = owner.documents

    def retrieve(self):
        self.owner.raise_if_failing()
        if self.name not in self.owner.schemas:
            raise ObjectNotFound("Not Found")
        return self.owner.schemas[self.name]


class _Collections:
    def __init__(self, owner: "FakeTypesenseClient"):
        self.owner = owner

    def __getitem__(self, name: str) -> _Collection:
        return _Collection(self.owner, name)

    def create(self, schema):
        self.owner.raise_if_failing()
        self.owner.schemas[schema["name"]] = schema
        return schema


class _MultiSearch:
    def __init__(self, owner: "FakeTypesenseClient"):
        self.owner = owner
        self.response: Optional[dict[str, Any]] = None

    def perform(self, search_queries, common_params):
        self.owner.raise_if_failing()
        self.owner.documents.calls.append(("multi_search", search_queries, common_params))
        if self.response is not None:
            return self.response
        return {"results": [self.owner.documents.search_response for _ in search_queries["searches"]]}


class _Operations:
    def __init__(self, owner: "FakeTypesenseClient"):
        self.owner = owner

    def is_healthy(self):
        self.owner.raise_if_failing()
        return True


class FakeTypesenseClient:
    """Mimics the parts of `typesense.Client` the search client touches."""

    def __init__(self):
        self.schemas: dict[str, dict] = {}
        self.documents = _Documents(self)
        self.collections = _Collections(self)
        self.operations = _Operations(self)
        self.multi_search = _MultiSearch(self)
        self.failure: Optional[Exception] = None

    def raise_if_failing(self) -> None:
        if self.failure is not None:
            raise self.failure
