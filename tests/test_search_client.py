"""Unit tests for the search index client, against a Typesense double."""

import uuid
from datetime import datetime, timezone

import pytest
from typesense.exceptions import ServiceUnavailable

from app.core.exceptions import SearchIndexError
from app.search.client import (
    ALERT_QUERY_BY,
    ALERT_QUERY_BY_WEIGHTS,
    SearchIndexClient,
    SortBy,
    SortDirection,
    resolve_sort,
)
from app.search.schema import JobSearchDocument
from tests.helpers import FakeTypesenseClient


@pytest.fixture
def typesense_client():
    return FakeTypesenseClient()


@pytest.fixture
def client(typesense_client):
    return SearchIndexClient(typesense_client, "jobs")


def search_params(typesense_client):
    calls = [c for c in typesense_client.documents.calls if c[0] == "search"]
    assert calls, "no search was issued"
    return calls[-1][1]


def alert_search_params(typesense_client):
    calls = [c for c in typesense_client.documents.calls if c[0] == "multi_search"]
    assert calls, "no alert search was issued"
    [params] = calls[-1][1]["searches"]
    return params


def make_document(**overrides):
    fields = {
        "id": "job-1",
        "title": "Backend Engineer",
        "company": "Acme",
        "is_remote": True,
        "job_type": "full-time",
        "skills": ["python"],
        "created_at": 1_700_000_000,
    }
    fields.update(overrides)
    return JobSearchDocument(**fields)


class TestSearchForAlert:
    async def test_builds_time_bounded_filter(self, client, typesense_client):
        last_sent = datetime(2026, 1, 1, tzinfo=timezone.utc)

        await client.search_for_alert("python", "skills:python", last_sent, 50)

        params = alert_search_params(typesense_client)
        assert params["collection"] == "jobs"
        assert params["q"] == "python"
        assert params["query_by"] == ALERT_QUERY_BY
        assert params["query_by_weights"] == ALERT_QUERY_BY_WEIGHTS
        assert params["filter_by"] == f"skills:python && createdAt:>={int(last_sent.timestamp())} && isActive:true"
        assert params["per_page"] == 50
        assert params["page"] == 1
        assert params["sort_by"] == "createdAt:asc"

    async def test_first_run_has_no_time_bound(self, client, typesense_client):
        await client.search_for_alert(None, "", None, 50)

        params = alert_search_params(typesense_client)
        assert params["q"] == "*"
        assert params["filter_by"] == "isActive:true"
        assert params["sort_by"] == "createdAt:asc"

    async def test_excluded_ids_are_filtered_out(self, client, typesense_client):
        await client.search_for_alert("python", "", None, 10, exclude_ids=["a", "b"])

        assert alert_search_params(typesense_client)["filter_by"] == "id:!=[a, b] && isActive:true"

    async def test_long_exclusion_list_travels_in_request_body(self, client, typesense_client):
        excluded = [str(uuid.uuid4()) for _ in range(200)]

        await client.search_for_alert("python", "", None, 10, exclude_ids=excluded)

        params = alert_search_params(typesense_client)
        assert len(params["filter_by"]) > 4000
        assert all(job_id in params["filter_by"] for job_id in excluded)
        # Nothing went through the query-string search endpoint
        assert not [c for c in typesense_client.documents.calls if c[0] == "search"]

    async def test_remote_disjunction_is_grouped(self, client, typesense_client):
        await client.search_for_alert(None, "(city:Austin) || isRemote:true", None, 10)

        assert alert_search_params(typesense_client)["filter_by"] == "((city:Austin) || isRemote:true) && isActive:true"

    async def test_results_are_parsed(self, client, typesense_client):
        typesense_client.documents.search_response = {
            "found": 3,
            "page": 1,
            "hits": [
                {"document": {"id": "j1", "createdAt": 5}, "text_match": 500},
                {"document": {"id": "j2", "createdAt": 10}, "text_match": 250},
            ],
        }

        results = await client.search_for_alert("python", "", None, 2)

        assert results.found == 3
        assert [h.job_id for h in results.hits] == ["j1", "j2"]
        assert results.hits[0].text_match == 500
        assert results.hits[1].created_at == 10
        assert not results.is_match_all

    async def test_rejected_search_raises_search_index_error(self, client, typesense_client):
        typesense_client.multi_search.response = {
            "results": [{"code": 400, "error": "Could not parse the filter query."}]
        }

        with pytest.raises(SearchIndexError, match="Could not parse"):
            await client.search_for_alert("python", "", None, 10)

    async def test_outage_raises_search_index_error(self, client, typesense_client):
        typesense_client.failure = ServiceUnavailable("down")

        with pytest.raises(SearchIndexError):
            await client.search_for_alert("python", "", None, 10)


class TestGeneralSearch:
    async def test_text_query_sorts_by_relevance(self, client, typesense_client):
        await client.search("engineer", filter_by="isRemote:true", limit=20, page=2)

        params = search_params(typesense_client)
        assert "sort_by" not in params
        assert params["filter_by"] == "isRemote:true"
        assert params["per_page"] == 20
        assert params["page"] == 2

    async def test_match_all_sorts_newest_first(self, client, typesense_client):
        await client.search()

        assert search_params(typesense_client)["sort_by"] == "createdAt:desc"

    async def test_offset_pagination(self, client, typesense_client):
        await client.search("x", offset=40, limit=20)

        params = search_params(typesense_client)
        assert params["offset"] == 40
        assert params["limit"] == 20
        assert "page" not in params

    def test_resolve_sort(self):
        assert resolve_sort("*", None, SortDirection.DESC) == "createdAt:desc"
        assert resolve_sort("dev", None, SortDirection.DESC) is None
        assert resolve_sort("dev", SortBy.TITLE, SortDirection.ASC) == "title:asc"


class TestDocuments:
    async def test_index_document_upserts_camel_case(self, client, typesense_client):
        await client.index_document(make_document())

        stored = typesense_client.documents.docs["job-1"]
        assert stored["isRemote"] is True
        assert stored["jobType"] == "full-time"
        assert stored["createdAt"] == 1_700_000_000
        assert "city" not in stored

    async def test_index_many_reports_each_document(self, client, typesense_client):
        typesense_client.documents.import_response = [
            {"success": True},
            {"success": False, "error": "Field `createdAt` must be an int64."},
        ]

        results = await client.index_many([make_document(id="a"), make_document(id="b")])

        assert [r.success for r in results] == [True, False]
        assert results[1].document_id == "b"
        assert "createdAt" in results[1].error
        assert typesense_client.documents.calls[-1][2] == {"action": "upsert"}

    async def test_index_many_reports_documents_missing_from_response(self, client, typesense_client):
        typesense_client.documents.import_response = [{"success": True}]

        results = await client.index_many([make_document(id="a"), make_document(id="b"), make_document(id="c")])

        assert [r.document_id for r in results] == ["a", "b", "c"]
        assert [r.success for r in results] == [True, False, False]
        assert results[2].error == "no result returned for document"

    async def test_index_many_empty_is_noop(self, client, typesense_client):
        assert await client.index_many([]) == []
        assert typesense_client.documents.calls == []

    async def test_retrieve_missing_returns_none(self, client):
        assert await client.retrieve("nope") is None

    async def test_update_missing_document_is_retryable(self, client):
        with pytest.raises(SearchIndexError):
            await client.update("nope", {"isActive": False})

    async def test_update_existing(self, client, typesense_client):
        await client.index_document(make_document())

        await client.update("job-1", {"isActive": False})

        assert typesense_client.documents.docs["job-1"]["isActive"] is False

    async def test_delete(self, client):
        await client.index_document(make_document())

        assert await client.delete("job-1") is True
        assert await client.delete("job-1") is False

    async def test_delete_by_title(self, client, typesense_client):
        deleted = await client.delete_by_title("Spam `Job`")

        assert deleted == 2
        assert typesense_client.documents.calls[-1] == ("delete_by_query", {"filter_by": "title:=`Spam Job`"})


class TestCollection:
    async def test_ensure_collection_creates_once(self, client, typesense_client):
        assert await client.ensure_collection() is True
        assert await client.ensure_collection() is False

        schema = typesense_client.schemas["jobs"]
        assert schema["default_sorting_field"] == "createdAt"
        fields = {f["name"]: f for f in schema["fields"]}
        assert fields["skills"]["type"] == "string[]"
        assert fields["createdAt"]["sort"] is True

    async def test_health(self, client, typesense_client):
        assert await client.health() is True
        typesense_client.failure = ServiceUnavailable("down")
        assert await client.health() is False
