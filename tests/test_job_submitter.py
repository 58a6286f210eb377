"""Tests for core.job_submitter.JobSubmitter."""

from unittest.mock import MagicMock

import pytest

from core.errors import JobRejected, UnsupportedResourceKind
from core.graphql_queries import BULK_RUN_MUTATION, PRODUCTS_BULK_QUERY
from core.job_submitter import JobSubmitter
from core.models import JobStatus, ResourceKind


def _run_response(operation=None, user_errors=None):
    return {
        "bulkOperationRunQuery": {
            "bulkOperation": operation,
            "userErrors": user_errors or [],
        }
    }


def test_submit_returns_submitted_job():
    client = MagicMock()
    client.execute_graphql.return_value = _run_response(
        {"id": "gid://shopify/BulkOperation/1", "status": "CREATED", "errorCode": None}
    )
    job = JobSubmitter(client).submit(ResourceKind.PRODUCT)

    assert job.id == "gid://shopify/BulkOperation/1"
    assert job.kind is ResourceKind.PRODUCT
    assert job.status is JobStatus.SUBMITTED
    assert job.result_location is None
    client.execute_graphql.assert_called_once_with(BULK_RUN_MUTATION, {"query": PRODUCTS_BULK_QUERY})


def test_submit_already_running():
    client = MagicMock()
    client.execute_graphql.return_value = _run_response(
        {"id": "gid://shopify/BulkOperation/2", "status": "RUNNING"}
    )
    job = JobSubmitter(client).submit(ResourceKind.ORDER)
    assert job.status is JobStatus.RUNNING


def test_user_errors_reject_job():
    client = MagicMock()
    client.execute_graphql.return_value = _run_response(
        None,
        [{"field": ["query"], "message": "A bulk query operation for this app and shop is already in progress"}],
    )
    with pytest.raises(JobRejected) as exc_info:
        JobSubmitter(client).submit(ResourceKind.CUSTOMER)
    assert "already in progress" in exc_info.value.reason
    assert exc_info.value.reason.startswith("query: ")


def test_user_error_without_field():
    client = MagicMock()
    client.execute_graphql.return_value = _run_response(None, [{"field": None, "message": "Invalid query"}])
    with pytest.raises(JobRejected) as exc_info:
        JobSubmitter(client).submit(ResourceKind.ORDER)
    assert exc_info.value.reason == "Invalid query"


def test_missing_operation_rejects_job():
    client = MagicMock()
    client.execute_graphql.return_value = _run_response(None)
    with pytest.raises(JobRejected):
        JobSubmitter(client).submit(ResourceKind.ORDER)


def test_unsupported_kind_never_calls_api():
    client = MagicMock()
    with pytest.raises(UnsupportedResourceKind):
        JobSubmitter(client).submit("collections")
    client.execute_graphql.assert_not_called()
