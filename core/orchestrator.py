"""
Extraction Orchestrator — Run coordination for Shopify bulk data extraction.

This module ties configuration, the API client, the per-kind pipelines and the
output directory together into one run:

  Step 1: CLIENT SETUP
      Builds a ShopifyGraphQLClient from the store URL and the access token
      supplied by the auth provider (read from the environment; this module
      never stores or refreshes credentials).

  Step 2: EXTRACTION (per resource kind)
      Runs a BulkExtractionPipeline (submit, poll, download, reconcile,
      format) or, in paginated mode, a PaginatedExtractionPipeline for every
      configured kind. Kinds run one after another; a failing kind is recorded
      and the remaining kinds still run.

  Step 3: SAVE OUTPUT
      Writes {kind}_records.json for each successful kind and
      extraction_results.json with the run metadata into a timestamped
      output directory.

Configuration:
    All settings are loaded from environment variables (typically via .env file).
    Required: SHOPIFY_STORE_URL, SHOPIFY_ACCESS_TOKEN.
    See config/settings.py for defaults.

Typical usage:
    orchestrator = ExtractionOrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from config import DEFAULT_SETTINGS

from .errors import UnsupportedResourceKind
from .models import ResourceKind
from .output_manager import OutputManager
from .paginated_fetcher import MAX_PAGE_SIZE
from .pipeline import BulkExtractionPipeline, PaginatedExtractionPipeline, run_kinds
from .result_reader import MalformedLinePolicy
from .shopify_client import ShopifyGraphQLClient

EXTRACTION_MODES = ("bulk", "paginated")


def _setting(name: str) -> str:
    return os.getenv(name, str(DEFAULT_SETTINGS[name]))


def _flag(name: str) -> bool:
    return _setting(name).strip().lower() == "true"


class ExtractionOrchestrator:
    """Orchestrates extraction of every configured resource kind.

    Attributes:
        store_url: Base URL of the store (e.g., "https://example.myshopify.com").
        access_token: Admin API access token (opaque; only handed to the client).
        api_version: Admin API version used in the endpoint URL.
        kinds: Resource kinds to extract, in order.
        mode: "bulk" or "paginated".
        page_size: Nodes per page in paginated mode.
        poll_interval: Seconds between bulk job status queries.
        max_poll_attempts: Status queries before PollTimeout.
        poll_timeout: Wall-clock polling cap in seconds (None = no cap).
        malformed_line_policy: ABORT or SKIP for bad result lines.
        request_timeout: Per-request HTTP timeout in seconds.
        save_json: Whether to write records to disk.
        debug: Whether to enable verbose output.
        output_manager: Handles timestamped output directories and cleanup.
    """

    def __init__(self, env_file: str = "./.env"):
        """Initialize the orchestrator by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        self._config_errors: List[str] = []

        # Store connection (required)
        self.store_url = os.getenv("SHOPIFY_STORE_URL", "")
        self.access_token = os.getenv("SHOPIFY_ACCESS_TOKEN", "")
        self.api_version = _setting("SHOPIFY_API_VERSION")

        self.provider_name = _setting("PROVIDER_NAME")

        # What to extract and how
        self.kinds = self._parse_kinds(_setting("RESOURCE_KINDS"))
        self.mode = _setting("EXTRACTION_MODE").strip().lower()
        self.page_size = self._parse_number("PAGE_SIZE", int)
        self.poll_interval = self._parse_number("POLL_INTERVAL_SECONDS", float)
        self.max_poll_attempts = self._parse_number("MAX_POLL_ATTEMPTS", int)
        self.poll_timeout = self._parse_number("POLL_TIMEOUT_SECONDS", float) or None
        self.request_timeout = self._parse_number("REQUEST_TIMEOUT", float)
        try:
            self.malformed_line_policy = MalformedLinePolicy.parse(_setting("MALFORMED_LINE_POLICY"))
        except ValueError as e:
            self._config_errors.append(str(e))
            self.malformed_line_policy = MalformedLinePolicy.ABORT

        # Processing options
        self.save_json = _flag("SAVE_JSON")
        self.debug = _flag("DEBUG")

        # Output directory and how many days to keep old runs
        output_dir = _setting("OUTPUT_DIR")
        retention_days = self._parse_number("OUTPUT_RETENTION_DAYS", int) or 0
        self.output_manager = OutputManager(output_dir, self.provider_name, retention_days)

    def _parse_kinds(self, text: str) -> List[ResourceKind]:
        kinds = []
        for name in text.split(","):
            if not name.strip():
                continue
            try:
                kind = ResourceKind.parse(name)
            except UnsupportedResourceKind as e:
                self._config_errors.append(str(e))
                continue
            if kind not in kinds:
                kinds.append(kind)
        return kinds

    def _parse_number(self, name: str, cast):
        raw = _setting(name)
        try:
            return cast(raw)
        except ValueError:
            self._config_errors.append(f"{name} must be a number, got {raw!r}")
            return cast(DEFAULT_SETTINGS[name])

    def set_kinds(self, text: str):
        """Replace the configured kinds from a comma-separated CLI value."""
        self.kinds = self._parse_kinds(text)

    def validate_config(self) -> bool:
        """Validate that all required configuration values are present and sane.

        Returns:
            True if the configuration is usable, False otherwise.
            Prints specific error messages for each problem found.
        """
        errors = list(self._config_errors)
        if not self.store_url:
            errors.append("SHOPIFY_STORE_URL is required")
        if not self.access_token:
            errors.append("SHOPIFY_ACCESS_TOKEN is required")
        if not self.kinds:
            errors.append("RESOURCE_KINDS must name at least one of: "
                          + ", ".join(k.value for k in ResourceKind))
        if self.mode not in EXTRACTION_MODES:
            errors.append(f"EXTRACTION_MODE must be one of {EXTRACTION_MODES}, got {self.mode!r}")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            errors.append(f"PAGE_SIZE must be between 1 and {MAX_PAGE_SIZE}")
        if self.max_poll_attempts < 1:
            errors.append("MAX_POLL_ATTEMPTS must be at least 1")
        if self.poll_interval < 0:
            errors.append("POLL_INTERVAL_SECONDS must not be negative")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def build_client(self) -> ShopifyGraphQLClient:
        return ShopifyGraphQLClient(
            self.store_url,
            self.access_token,
            api_version=self.api_version,
            timeout=self.request_timeout,
            debug=self.debug,
        )

    def make_pipeline(self, client, kind: ResourceKind,
                      cancel_event: Optional[threading.Event] = None):
        """Build the pipeline for one kind according to the configured mode."""
        if self.mode == "paginated":
            return PaginatedExtractionPipeline(client, kind, self.page_size, self.debug)
        return BulkExtractionPipeline(
            client,
            kind,
            poll_interval=self.poll_interval,
            max_attempts=self.max_poll_attempts,
            poll_timeout=self.poll_timeout,
            policy=self.malformed_line_policy,
            cancel_event=cancel_event,
            debug=self.debug,
        )

    def run(self, cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        """Execute the extraction for every configured kind.

        Args:
            cancel_event: Optional event; setting it stops the kind currently
                          polling with Cancelled. Later kinds fail with Cancelled
                          without submitting a bulk job.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - connector: "shopify-bulk"
                - config: Store URL, mode and kinds
                - success: True if every kind succeeded
                - kinds: Per-kind outcome dicts (success, record_count, error, ...)
                - record_paths: Paths of saved record files (if save_json=True)
                - error: Error message of a failure outside any kind
        """
        results: Dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "connector": "shopify-bulk",
            "config": {
                "store_url": self.store_url,
                "api_version": self.api_version,
                "mode": self.mode,
                "kinds": [k.value for k in self.kinds],
                "malformed_line_policy": self.malformed_line_policy.value,
            },
            "success": False,
        }
        outcomes = {}

        try:
            # Step 1: Build the API client around the supplied access token
            print(f"\n{'='*60}")
            print("STEP 1: CLIENT SETUP")
            print("="*60)
            client = self.build_client()
            print(f"  Endpoint: {client.graphql_url}")

            # Step 2: Extract each kind; failures are isolated per kind
            print(f"\n{'='*60}")
            print(f"STEP 2: {self.mode.upper()} EXTRACTION")
            print("="*60)
            outcomes = run_kinds(
                self.kinds,
                lambda kind: self.make_pipeline(client, kind, cancel_event),
                debug=self.debug,
            )
            results["kinds"] = {kind.value: o.to_dict() for kind, o in outcomes.items()}
            results["success"] = all(o.success for o in outcomes.values())

            # Step 3: Save canonical records to a timestamped directory
            print(f"\n{'='*60}")
            print("STEP 3: SAVE OUTPUT")
            print("="*60)
            self.output_manager.start_run()

            if self.save_json:
                record_paths = {}
                for kind, outcome in outcomes.items():
                    if not outcome.success:
                        continue
                    path = self.output_manager.write_records(kind, outcome.records)
                    record_paths[kind.value] = path
                    print(f"  Saved {len(outcome.records)} {kind.value}: {path}")
                results["record_paths"] = record_paths

        except Exception as e:
            results["error"] = str(e)
            print(f"\n  ERROR: {e}")
            if self.debug:
                import traceback
                traceback.print_exc()

        results["completed_at"] = datetime.now(timezone.utc).isoformat()
        results["outcomes"] = outcomes

        # Save run metadata alongside the records
        if self.output_manager.current_dir:
            metadata = {k: v for k, v in results.items() if k != "outcomes"}
            results_path = self.output_manager.write_results(metadata)
            print(f"\n  Results saved to: {results_path}")

        return results

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary.

        Args:
            results: The dict returned by run().
        """
        print(f"\n{'='*60}")
        print("EXTRACTION COMPLETE")
        print("="*60)
        print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")

        for kind, summary in results.get("kinds", {}).items():
            if summary.get("success"):
                line = f"{kind}: {summary.get('record_count', 0)} records"
                if summary.get("skipped_lines"):
                    line += f" ({len(summary['skipped_lines'])} malformed lines skipped)"
                if summary.get("stagnated"):
                    line += " (pagination stopped early: cursor stagnated)"
            else:
                line = f"{kind}: FAILED - {summary.get('error_type')}: {summary.get('error')}"
            print(line)

        if results.get("error"):
            print(f"Error: {results['error']}")
