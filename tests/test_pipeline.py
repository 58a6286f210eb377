"""Tests for core.pipeline: per-kind pipelines and the batch runner.

A small scripted fake stands in for ShopifyGraphQLClient. It answers the run
mutation and the status query per kind and serves the JSONL fixtures, so the
whole submit/poll/download/reconcile/format path runs without HTTP.
"""

import os
import threading
from unittest.mock import MagicMock

import pytest

from core.errors import Cancelled, JobFailed, RecordParseError
from core.graphql_queries import BULK_RUN_MUTATION, BULK_STATUS_QUERY
from core.models import CanonicalRecord, ResourceKind
from core.pipeline import (
    BulkExtractionPipeline,
    KindOutcome,
    PaginatedExtractionPipeline,
    run_kinds,
)
from core.resources import query_for

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def _fixture_lines(name):
    with open(os.path.join(FIXTURES_DIR, name)) as f:
        return f.read().split("\n")


class ScriptedBulkClient:
    """Answers bulk job calls per kind from a script of status sequences."""

    def __init__(self, script):
        # script: kind -> (list of (status, errorCode), fixture name or None)
        self.script = script
        self.jobs = {}
        self.polls = {}

    def execute_graphql(self, query, variables=None):
        if query == BULK_RUN_MUTATION:
            kind = next(k for k in self.script if query_for(k) == variables["query"])
            job_id = f"gid://shopify/BulkOperation/{kind.value}"
            self.jobs[job_id] = kind
            self.polls[job_id] = list(self.script[kind][0])
            return {"bulkOperationRunQuery": {
                "bulkOperation": {"id": job_id, "status": "CREATED"},
                "userErrors": [],
            }}
        if query == BULK_STATUS_QUERY:
            job_id = variables["id"]
            kind = self.jobs[job_id]
            status, error_code = self.polls[job_id].pop(0)
            fixture = self.script[kind][1]
            url = f"https://storage.example.com/{fixture}" if status == "COMPLETED" and fixture else None
            return {"node": {"id": job_id, "status": status, "url": url, "errorCode": error_code}}
        raise AssertionError(f"unexpected query: {query[:40]}")

    def stream_lines(self, url):
        return iter(_fixture_lines(url.rsplit("/", 1)[1]))


def _bulk_pipeline(client, kind, **kwargs):
    return BulkExtractionPipeline(client, kind, poll_interval=0, max_attempts=5, **kwargs)


def test_bulk_products_end_to_end():
    client = ScriptedBulkClient({
        ResourceKind.PRODUCT: ([("RUNNING", None), ("COMPLETED", None)], "products_result.jsonl"),
    })
    pipeline = _bulk_pipeline(client, ResourceKind.PRODUCT)
    records = pipeline.run()

    assert [r.title for r in records] == ["Hat", "Shirt", "Unknown"]
    shirt = records[1]
    assert shirt.embedding_text == (
        "Product: Shirt. Created at: 2024-01-05T10:00:00Z. Variants: "
        "id: gid://shopify/ProductVariant/11, title: Small, price: 10.00, "
        "id: gid://shopify/ProductVariant/12, title: Large, price: 12.00."
    )
    assert pipeline.job.result_location.endswith("products_result.jsonl")
    assert pipeline.skipped_lines == []


def test_bulk_orders_end_to_end():
    client = ScriptedBulkClient({
        ResourceKind.ORDER: ([("COMPLETED", None)], "orders_result.jsonl"),
    })
    records = _bulk_pipeline(client, ResourceKind.ORDER).run()
    assert [r.embedding_text for r in records] == [
        "Order: #1001. Created at: 2024-03-01T12:00:00Z. Total Price: 42.50.",
        "Order: #1002. Created at: 2024-03-02T09:15:00Z. Total Price: N/A.",
    ]


def test_bulk_empty_export():
    client = ScriptedBulkClient({ResourceKind.CUSTOMER: ([("COMPLETED", None)], None)})
    assert _bulk_pipeline(client, ResourceKind.CUSTOMER).run() == []


def test_bulk_malformed_abort_and_skip():
    script = {ResourceKind.ORDER: ([("COMPLETED", None)], "malformed_result.jsonl")}

    with pytest.raises(RecordParseError):
        _bulk_pipeline(ScriptedBulkClient(script), ResourceKind.ORDER).run()

    pipeline = _bulk_pipeline(ScriptedBulkClient(script), ResourceKind.ORDER, policy="skip")
    records = pipeline.run()
    assert len(records) == 2
    assert pipeline.skipped_lines == [2, 3]


def test_run_kinds_isolates_failed_kind():
    client = ScriptedBulkClient({
        ResourceKind.PRODUCT: ([("RUNNING", None), ("COMPLETED", None)], "products_result.jsonl"),
        ResourceKind.ORDER: ([("RUNNING", None), ("FAILED", "INTERNAL_ERROR")], None),
        ResourceKind.CUSTOMER: ([("COMPLETED", None)], "customers_result.jsonl"),
    })
    outcomes = run_kinds(
        [ResourceKind.PRODUCT, ResourceKind.ORDER, ResourceKind.CUSTOMER],
        lambda kind: _bulk_pipeline(client, kind),
    )

    assert list(outcomes) == [ResourceKind.PRODUCT, ResourceKind.ORDER, ResourceKind.CUSTOMER]
    assert outcomes[ResourceKind.PRODUCT].success is True
    assert len(outcomes[ResourceKind.PRODUCT].records) == 3

    failed = outcomes[ResourceKind.ORDER]
    assert failed.success is False
    assert failed.error_type == JobFailed.__name__
    assert "INTERNAL_ERROR" in failed.error
    assert failed.records == []

    assert outcomes[ResourceKind.CUSTOMER].success is True
    assert [r.title for r in outcomes[ResourceKind.CUSTOMER].records] == ["Ada Lovelace", "Alan Turing"]


def test_run_kinds_records_skipped_lines():
    client = ScriptedBulkClient({ResourceKind.ORDER: ([("COMPLETED", None)], "malformed_result.jsonl")})
    outcomes = run_kinds([ResourceKind.ORDER], lambda kind: _bulk_pipeline(client, kind, policy="skip"))
    assert outcomes[ResourceKind.ORDER].skipped_lines == [2, 3]
    assert outcomes[ResourceKind.ORDER].to_dict()["skipped_lines"] == [2, 3]


def test_run_kinds_pipeline_construction_failure():
    def make_pipeline(kind):
        raise ValueError("bad page size")

    outcomes = run_kinds([ResourceKind.ORDER], make_pipeline)
    assert outcomes[ResourceKind.ORDER].error_type == "ValueError"


def test_paginated_pipeline_matches_bulk_shape():
    client = MagicMock()
    client.execute_graphql.return_value = {"products": {
        "edges": [{"cursor": "c1", "node": {
            "__typename": "Product",
            "id": "P1",
            "title": "Shirt",
            "createdAt": "t0",
            "variants": {"edges": [
                {"node": {"__typename": "ProductVariant", "id": "V1", "title": "Small", "price": "10"}},
                {"node": {"__typename": "ProductVariant", "id": "V2", "title": "Large", "price": "12"}},
            ]},
        }}],
        "pageInfo": {"hasNextPage": False, "endCursor": "c1"},
    }}
    pipeline = PaginatedExtractionPipeline(client, ResourceKind.PRODUCT, page_size=10)
    records = pipeline.run()

    assert records == [CanonicalRecord(
        id="P1",
        title="Shirt",
        created_at="t0",
        embedding_text="Product: Shirt. Created at: t0. Variants: "
                       "id: V1, title: Small, price: 10, id: V2, title: Large, price: 12.",
    )]
    assert pipeline.stagnated is False


def test_outcome_to_dict_includes_error():
    outcome = KindOutcome(kind=ResourceKind.ORDER, error="boom", error_type="NetworkError")
    data = outcome.to_dict()
    assert data["kind"] == "orders"
    assert data["success"] is False
    assert data["error"] == "boom"
    assert data["error_type"] == "NetworkError"


def test_cancelled_run_submits_no_jobs():
    client = MagicMock()
    cancel_event = threading.Event()
    cancel_event.set()

    outcomes = run_kinds(
        [ResourceKind.PRODUCT, ResourceKind.ORDER, ResourceKind.CUSTOMER],
        lambda kind: _bulk_pipeline(client, kind, cancel_event=cancel_event),
    )

    assert [o.error_type for o in outcomes.values()] == [Cancelled.__name__] * 3
    client.execute_graphql.assert_not_called()


def test_cancel_during_first_kind_stops_later_submissions():
    cancel_event = threading.Event()
    client = ScriptedBulkClient({
        ResourceKind.ORDER: ([("RUNNING", None), ("RUNNING", None)], None),
        ResourceKind.CUSTOMER: ([("COMPLETED", None)], "customers_result.jsonl"),
    })
    original = client.execute_graphql

    def execute_and_cancel(query, variables=None):
        data = original(query, variables)
        if query == BULK_STATUS_QUERY:
            cancel_event.set()
        return data

    client.execute_graphql = execute_and_cancel
    outcomes = run_kinds(
        [ResourceKind.ORDER, ResourceKind.CUSTOMER],
        lambda kind: _bulk_pipeline(client, kind, cancel_event=cancel_event),
    )

    assert outcomes[ResourceKind.ORDER].error_type == Cancelled.__name__
    assert outcomes[ResourceKind.CUSTOMER].error_type == Cancelled.__name__
    assert list(client.jobs.values()) == [ResourceKind.ORDER]
