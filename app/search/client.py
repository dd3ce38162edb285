"""
Search index client for the jobs collection.

Wraps the synchronous Typesense client. Every call runs in a worker
thread so the event loop never blocks on HTTP, and every client failure
surfaces as SearchIndexError so callers (queue tasks) can retry.
"""
import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

import typesense
from typesense.exceptions import ObjectAlreadyExists, ObjectNotFound, TypesenseClientError

from app.core.config import settings
from app.core.exceptions import SearchIndexError
from app.core.logging import get_logger
from app.search.schema import JobSearchDocument, jobs_collection_schema, to_epoch_seconds

logger = get_logger(__name__)

# Title weighted highest, then description/skills, then company
ALERT_QUERY_BY = "title,description,skills,company"
ALERT_QUERY_BY_WEIGHTS = "3,2,2,1"
SEARCH_QUERY_BY = "title,skills,jobType,description,city,state,country"
MATCH_ALL = "*"

Document = Union[JobSearchDocument, dict[str, Any]]


class SortBy(str, Enum):
    RELEVANCE = "relevance"
    DATE = "date"
    TITLE = "title"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


_SORT_FIELDS = {
    SortBy.DATE: "createdAt",
    SortBy.TITLE: "title",
}


@dataclass
class SearchHit:
    document: dict[str, Any]
    text_match: int = 0

    @property
    def job_id(self) -> str:
        return str(self.document["id"])

    @property
    def created_at(self) -> Optional[int]:
        return self.document.get("createdAt")


@dataclass
class SearchResults:
    hits: list[SearchHit] = field(default_factory=list)
    found: int = 0
    page: int = 1
    query: str = MATCH_ALL

    @property
    def is_match_all(self) -> bool:
        return self.query.strip() in ("", MATCH_ALL)

    @classmethod
    def from_response(cls, response: dict[str, Any], query: str) -> "SearchResults":
        return cls(
            hits=[
                SearchHit(document=hit["document"], text_match=hit.get("text_match", 0) or 0)
                for hit in response.get("hits", [])
            ],
            found=response.get("found", 0),
            page=response.get("page", 1),
            query=query,
        )


@dataclass
class IndexResult:
    """Outcome of one document in a bulk import."""

    success: bool
    document_id: Optional[str] = None
    error: Optional[str] = None


def build_typesense_client() -> typesense.Client:
    """Construct the process-wide Typesense client from settings."""
    return typesense.Client(
        {
            "api_key": settings.typesense_api_key,
            "nodes": settings.typesense_nodes,
            "connection_timeout_seconds": settings.typesense_connection_timeout_seconds,
        }
    )


def resolve_sort(query: str, sort_by: Optional[SortBy], direction: SortDirection) -> Optional[str]:
    """
    Translate a sort choice into a `sort_by` parameter.

    Returns None for relevance so the engine's text-match ranking applies.
    With no explicit choice: relevance when there is query text, newest
    first when there is not.
    """
    has_text = query.strip() not in ("", MATCH_ALL)
    if sort_by is None:
        sort_by = SortBy.RELEVANCE if has_text else SortBy.DATE
    if sort_by is SortBy.RELEVANCE:
        return None
    return f"{_SORT_FIELDS[sort_by]}:{direction.value}"


def _and(*clauses: Optional[str]) -> str:
    present = [c for c in clauses if c]
    if len(present) == 1:
        return present[0]
    return " && ".join(f"({c})" if " || " in c else c for c in present)


class SearchIndexClient:
    """Async facade over one Typesense collection."""

    def __init__(self, client: Any, collection: Optional[str] = None):
        self._client = client
        self.collection = collection or settings.jobs_collection

    @classmethod
    def from_settings(cls) -> "SearchIndexClient":
        return cls(build_typesense_client(), settings.jobs_collection)

    @property
    def _documents(self):
        return self._client.collections[self.collection].documents

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except (ObjectNotFound, ObjectAlreadyExists):
            raise
        except (TypesenseClientError, OSError) as e:
            logger.warning(
                "search_index_error",
                operation=operation,
                collection=self.collection,
                error=str(e),
            )
            raise SearchIndexError(f"{operation} failed: {e}") from e

    # Collection management

    async def ensure_collection(self) -> bool:
        """Create the collection if missing. Returns True if it was created."""
        try:
            await self._call(
                "retrieve_collection",
                self._client.collections[self.collection].retrieve,
            )
            return False
        except ObjectNotFound:
            pass

        try:
            await self._call(
                "create_collection",
                self._client.collections.create,
                jobs_collection_schema(self.collection),
            )
        except ObjectAlreadyExists:
            # Another worker won the race
            return False
        logger.info("search_collection_created", collection=self.collection)
        return True

    async def health(self) -> bool:
        try:
            result = await asyncio.to_thread(self._client.operations.is_healthy)
        except (TypesenseClientError, OSError):
            return False
        return bool(result)

    # Documents

    async def index_document(self, doc: Document) -> dict[str, Any]:
        payload = doc.to_index() if isinstance(doc, JobSearchDocument) else doc
        return await self._call("index_document", self._documents.upsert, payload)

    async def index_many(self, docs: Iterable[Document]) -> list[IndexResult]:
        """
        Bulk upsert. A rejected document does not abort the batch; each
        document gets its own IndexResult.
        """
        payloads = [d.to_index() if isinstance(d, JobSearchDocument) else d for d in docs]
        if not payloads:
            return []

        raw = await self._call(
            "index_many",
            self._documents.import_,
            payloads,
            {"action": "upsert"},
        )

        results = []
        for payload, item in itertools.zip_longest(payloads, raw or []):
            if payload is None:
                break
            if item is None:
                item = {"success": False, "error": "no result returned for document"}
            ok = bool(item.get("success"))
            results.append(
                IndexResult(
                    success=ok,
                    document_id=str(payload.get("id")) if payload.get("id") is not None else None,
                    error=None if ok else item.get("error", "unknown error"),
                )
            )

        failed = sum(1 for r in results if not r.success)
        if failed:
            logger.warning("index_batch_partial_failure", total=len(results), failed=failed)
        return results

    async def retrieve(self, job_id: str) -> Optional[dict[str, Any]]:
        try:
            return await self._call("retrieve_document", self._documents[str(job_id)].retrieve)
        except ObjectNotFound:
            return None

    async def update(self, job_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        # Not-found is a real failure here: the upsert it depends on has not landed yet
        try:
            return await self._call("update_document", self._documents[str(job_id)].update, fields)
        except ObjectNotFound as e:
            raise SearchIndexError(f"document {job_id} not indexed yet") from e

    async def delete(self, job_id: str) -> bool:
        """Delete one document. Returns False if it was already gone."""
        try:
            await self._call("delete_document", self._documents[str(job_id)].delete)
        except ObjectNotFound:
            return False
        return True

    async def delete_by_title(self, title: str) -> int:
        """Delete every document with exactly this title. Returns the count."""
        escaped = title.replace("`", "")
        result = await self._call(
            "delete_by_title",
            self._documents.delete,
            {"filter_by": f"title:=`{escaped}`"},
        )
        return int(result.get("num_deleted", 0))

    # Queries

    async def search(
        self,
        query: Optional[str] = None,
        filter_by: Optional[str] = None,
        sort_by: Optional[SortBy] = None,
        sort_direction: SortDirection = SortDirection.DESC,
        page: int = 1,
        limit: int = 10,
        offset: Optional[int] = None,
    ) -> SearchResults:
        q = query or MATCH_ALL
        params: dict[str, Any] = {"q": q, "query_by": SEARCH_QUERY_BY}
        if filter_by:
            params["filter_by"] = filter_by

        sort = resolve_sort(q, sort_by, sort_direction)
        if sort:
            params["sort_by"] = sort

        if offset is not None:
            params["offset"] = offset
            params["limit"] = limit
        else:
            params["page"] = page
            params["per_page"] = limit

        response = await self._call("search", self._documents.search, params)
        return SearchResults.from_response(response, q)

    async def search_for_alert(
        self,
        search_query: Optional[str],
        filter_by: str,
        last_sent_at: Optional[datetime],
        limit: int,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> SearchResults:
        """
        Search for an alert cycle.

        Only active jobs created at or after `last_sent_at` are returned,
        oldest first, so a page cut short by `limit` is always a prefix of
        the window and the caller can resume after its newest hit.
        `exclude_ids` drops jobs the alert already recorded inside the window.

        Sent through multi-search so the filter travels in the request
        body rather than the query string.
        """
        q = (search_query or "").strip() or MATCH_ALL

        since = f"createdAt:>={to_epoch_seconds(last_sent_at)}" if last_sent_at else None
        excluded = [str(i) for i in (exclude_ids or [])]
        not_in = f"id:!=[{', '.join(excluded)}]" if excluded else None
        filter_expr = _and(filter_by, since, not_in, "isActive:true")

        params = {
            "collection": self.collection,
            "q": q,
            "query_by": ALERT_QUERY_BY,
            "query_by_weights": ALERT_QUERY_BY_WEIGHTS,
            "filter_by": filter_expr,
            "sort_by": "createdAt:asc",
            "per_page": limit,
            "page": 1,
            "num_typos": 1,
            "prefix": "true",
        }
        logger.debug("alert_search", q=q, filter_by=filter_expr, limit=limit, excluded=len(excluded))

        response = await self._call(
            "search_for_alert",
            self._client.multi_search.perform,
            {"searches": [params]},
            {},
        )
        result = (response.get("results") or [{}])[0]
        if "error" in result:
            logger.warning(
                "search_index_error",
                operation="search_for_alert",
                collection=self.collection,
                error=result["error"],
                code=result.get("code"),
            )
            raise SearchIndexError(f"search_for_alert failed: {result['error']}")
        return SearchResults.from_response(result, q)
