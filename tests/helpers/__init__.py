"""Test doubles and data factories shared by the test suite."""

from .factories import index_jobs, make_alert, make_company, make_job, make_user, set_preference
from .fakes import FakeEmailService, FakeQueue, FakeSearchIndex, FakeTypesenseClient

__all__ = [
    "FakeEmailService",
    "FakeQueue",
    "FakeSearchIndex",
    "FakeTypesenseClient",
    "index_jobs",
    "make_alert",
    "make_company",
    "make_job",
    "make_user",
    "set_preference",
]
