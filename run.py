#!/usr/bin/env python3
"""
Shopify Bulk Extractor — Entry Point.

This is the main script that users run to extract products, orders and
customers from a Shopify store and turn them into canonical, embedding-ready
records. It reads configuration from a .env file, runs one pipeline per
resource kind, and saves structured JSON output.

For each kind, the bulk pipeline (BulkExtractionPipeline):
  1. Submits a bulk export job for the kind's query
  2. Polls the job until it completes (bounded by MAX_POLL_ATTEMPTS)
  3. Downloads and decodes the JSONL result
  4. Reconciles child records (variants) under their parents
  5. Formats each entity as a canonical record with embedding text

In paginated mode, steps 1-3 are replaced by cursor-paginated queries.

Usage:
    python run.py                          # Extract all configured kinds
    python run.py --kinds products,orders  # Only some kinds
    python run.py --mode paginated         # Small stores: skip the export job
    python run.py --skip-malformed         # Drop bad result lines instead of failing
    python run.py --debug                  # Verbose output
    python run.py --version                # Show version
    python run.py --env /path              # Use alternate .env file
"""

import argparse
import logging
import sys
from pathlib import Path

from core import ExtractionOrchestrator, MalformedLinePolicy

# Read version from the repo-root VERSION file (e.g., "0.1.0").
VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def main():
    """Parse CLI arguments and run the extraction."""
    parser = argparse.ArgumentParser(
        description="Shopify Bulk Extractor - Export store data as embedding-ready records"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--kinds", "-k", help="Comma-separated kinds: products,orders,customers")
    parser.add_argument("--mode", choices=["bulk", "paginated"], help="Extraction mode")
    parser.add_argument("--page-size", type=int, help="Page size for paginated mode")
    parser.add_argument("--skip-malformed", action="store_true",
                        help="Skip malformed result lines instead of failing the kind")
    parser.add_argument("--no-save", action="store_true", help="Do not write records to disk")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"shopify-bulk-extractor {VERSION}")
        sys.exit(0)

    # Enable debug logging for the HTTP stack if --debug flag is set
    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s'
        )
        logging.getLogger('urllib3').setLevel(logging.DEBUG)

    # Initialize the orchestrator (loads .env and builds internal config)
    orchestrator = ExtractionOrchestrator(env_file=args.env)

    # Apply CLI overrides on top of .env values
    if args.debug:
        orchestrator.debug = True
    if args.kinds:
        orchestrator.set_kinds(args.kinds)
    if args.mode:
        orchestrator.mode = args.mode
    if args.page_size:
        orchestrator.page_size = args.page_size
    if args.skip_malformed:
        orchestrator.malformed_line_policy = MalformedLinePolicy.SKIP
    if args.no_save:
        orchestrator.save_json = False

    # Print header
    print(f"\n{'='*60}")
    print(f"SHOPIFY BULK EXTRACTOR v{VERSION}")
    print("="*60)
    print(f"Store: {orchestrator.store_url}")
    print(f"Mode: {orchestrator.mode}")
    print(f"Kinds: {', '.join(k.value for k in orchestrator.kinds)}")

    # Validate required configuration before proceeding
    if not orchestrator.validate_config():
        sys.exit(1)

    # Cleanup old output folders based on retention policy
    if orchestrator.output_manager.retention_days > 0:
        deleted = orchestrator.output_manager.prune_expired(orchestrator.debug)
        if deleted > 0:
            print(f"Cleaned up {deleted} old output folder(s)")

    try:
        results = orchestrator.run()
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)

    # Print final summary
    orchestrator.print_summary(results)

    # Exit with error code if any kind failed
    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
