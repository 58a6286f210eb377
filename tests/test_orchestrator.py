"""Tests for core.orchestrator.ExtractionOrchestrator."""

import json
import os
from unittest.mock import MagicMock, patch

from core.models import CanonicalRecord, ResourceKind
from core.pipeline import KindOutcome
from core.result_reader import MalformedLinePolicy


_BASE_ENV = {
    "SHOPIFY_STORE_URL": "https://example.myshopify.com",
    "SHOPIFY_ACCESS_TOKEN": "shpat_test",
    "RESOURCE_KINDS": "products,orders,customers",
    "EXTRACTION_MODE": "bulk",
    "PAGE_SIZE": "50",
    "POLL_INTERVAL_SECONDS": "0",
    "MAX_POLL_ATTEMPTS": "5",
    "MALFORMED_LINE_POLICY": "abort",
    "SAVE_JSON": "true",
    "DEBUG": "false",
    "OUTPUT_RETENTION_DAYS": "0",
}


def _make_orchestrator(env_overrides=None, output_dir="/tmp/shopify_bulk_test_output"):
    env = dict(_BASE_ENV, OUTPUT_DIR=str(output_dir))
    if env_overrides:
        env.update(env_overrides)

    with patch.dict(os.environ, env, clear=True):
        from core.orchestrator import ExtractionOrchestrator
        orchestrator = ExtractionOrchestrator(env_file="/nonexistent/.env")
    return orchestrator


def test_loads_settings_from_environment():
    orch = _make_orchestrator()
    assert orch.kinds == [ResourceKind.PRODUCT, ResourceKind.ORDER, ResourceKind.CUSTOMER]
    assert orch.mode == "bulk"
    assert orch.page_size == 50
    assert orch.poll_interval == 0.0
    assert orch.max_poll_attempts == 5
    assert orch.poll_timeout is None
    assert orch.malformed_line_policy is MalformedLinePolicy.ABORT
    assert orch.save_json is True
    assert orch.debug is False


def test_defaults_apply_when_unset():
    with patch.dict(os.environ, {}, clear=True):
        from core.orchestrator import ExtractionOrchestrator
        orch = ExtractionOrchestrator(env_file="/nonexistent/.env")
    assert orch.api_version == "2024-10"
    assert orch.max_poll_attempts == 200
    assert orch.validate_config() is False


def test_validate_config_valid():
    assert _make_orchestrator().validate_config() is True


def test_validate_config_missing_store_url():
    orch = _make_orchestrator(env_overrides={"SHOPIFY_STORE_URL": ""})
    assert orch.validate_config() is False


def test_validate_config_missing_token():
    orch = _make_orchestrator(env_overrides={"SHOPIFY_ACCESS_TOKEN": ""})
    assert orch.validate_config() is False


def test_validate_config_unknown_kind():
    orch = _make_orchestrator(env_overrides={"RESOURCE_KINDS": "products,collections"})
    assert orch.kinds == [ResourceKind.PRODUCT]
    assert orch.validate_config() is False


def test_validate_config_bad_numbers():
    assert _make_orchestrator(env_overrides={"PAGE_SIZE": "lots"}).validate_config() is False
    assert _make_orchestrator(env_overrides={"PAGE_SIZE": "500"}).validate_config() is False
    assert _make_orchestrator(env_overrides={"MAX_POLL_ATTEMPTS": "0"}).validate_config() is False


def test_validate_config_bad_mode_and_policy():
    assert _make_orchestrator(env_overrides={"EXTRACTION_MODE": "stream"}).validate_config() is False
    assert _make_orchestrator(env_overrides={"MALFORMED_LINE_POLICY": "ignore"}).validate_config() is False


def test_set_kinds_dedupes():
    orch = _make_orchestrator()
    orch.set_kinds("orders, ORDERS ,customers")
    assert orch.kinds == [ResourceKind.ORDER, ResourceKind.CUSTOMER]


def test_make_pipeline_follows_mode():
    from core.pipeline import BulkExtractionPipeline, PaginatedExtractionPipeline

    orch = _make_orchestrator(env_overrides={"MALFORMED_LINE_POLICY": "skip"})
    bulk = orch.make_pipeline(MagicMock(), ResourceKind.ORDER)
    assert isinstance(bulk, BulkExtractionPipeline)
    assert bulk.reader.policy is MalformedLinePolicy.SKIP
    assert bulk.max_attempts == 5

    orch.mode = "paginated"
    paginated = orch.make_pipeline(MagicMock(), ResourceKind.ORDER)
    assert isinstance(paginated, PaginatedExtractionPipeline)
    assert paginated.page_size == 50


def test_run_saves_records_per_successful_kind(tmp_path):
    orch = _make_orchestrator(output_dir=tmp_path)
    outcomes = {
        ResourceKind.PRODUCT: KindOutcome(
            kind=ResourceKind.PRODUCT,
            success=True,
            records=[CanonicalRecord("P1", "Shirt", "t0", "Product: Shirt. Created at: t0. Variants: .")],
        ),
        ResourceKind.ORDER: KindOutcome(
            kind=ResourceKind.ORDER, error="Bulk job failed: INTERNAL_ERROR", error_type="JobFailed",
        ),
    }
    with patch("core.orchestrator.run_kinds", return_value=outcomes) as mock_run_kinds, \
         patch("core.orchestrator.ShopifyGraphQLClient", return_value=MagicMock()):
        results = orch.run()

    mock_run_kinds.assert_called_once()
    assert results["success"] is False
    assert results["kinds"]["products"]["record_count"] == 1
    assert results["kinds"]["orders"]["error_type"] == "JobFailed"
    assert set(results["record_paths"]) == {"products"}

    with open(results["record_paths"]["products"]) as f:
        saved = json.load(f)
    assert saved == [{
        "id": "P1",
        "title": "Shirt",
        "createdAt": "t0",
        "embeddingText": "Product: Shirt. Created at: t0. Variants: .",
    }]

    with open(os.path.join(orch.output_manager.current_dir, "extraction_results.json")) as f:
        metadata = json.load(f)
    assert metadata["connector"] == "shopify-bulk"
    assert metadata["kinds"]["orders"]["success"] is False
    assert "outcomes" not in metadata


def test_run_without_saving_records(tmp_path):
    orch = _make_orchestrator(env_overrides={"SAVE_JSON": "false"}, output_dir=tmp_path)
    outcomes = {ResourceKind.ORDER: KindOutcome(kind=ResourceKind.ORDER, success=True)}
    with patch("core.orchestrator.run_kinds", return_value=outcomes), \
         patch("core.orchestrator.ShopifyGraphQLClient", return_value=MagicMock()):
        results = orch.run()

    assert results["success"] is True
    assert "record_paths" not in results
    assert os.listdir(orch.output_manager.current_dir) == ["extraction_results.json"]


def test_print_summary(capsys):
    orch = _make_orchestrator()
    orch.print_summary({
        "success": False,
        "kinds": {
            "products": {"success": True, "record_count": 3, "skipped_lines": [4], "stagnated": False},
            "orders": {"success": False, "error_type": "JobFailed", "error": "Bulk job failed: INTERNAL_ERROR"},
        },
    })
    out = capsys.readouterr().out
    assert "Status: FAILED" in out
    assert "products: 3 records (1 malformed lines skipped)" in out
    assert "orders: FAILED - JobFailed" in out
