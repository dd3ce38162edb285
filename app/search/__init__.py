"""
Full-text job search: filter construction and the index client.
"""
from app.search.client import (
    IndexResult,
    SearchHit,
    SearchIndexClient,
    SearchResults,
    SortBy,
    SortDirection,
)
from app.search.query_builder import FilterQueryBuilder
from app.search.schema import JobSearchDocument, jobs_collection_schema

__all__ = [
    "FilterQueryBuilder",
    "IndexResult",
    "JobSearchDocument",
    "SearchHit",
    "SearchIndexClient",
    "SearchResults",
    "SortBy",
    "SortDirection",
    "jobs_collection_schema",
]
