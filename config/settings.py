"""
Settings — Default configuration values for the Shopify bulk extractor.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when environment variables are not set. The actual configuration
is loaded from .env at runtime; these defaults ensure the extractor works out of
the box against a typical store.

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --kinds, --mode, --page-size, --skip-malformed, --no-save)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  PROVIDER_NAME           Label used in output folder naming (e.g., "Shopify_Bulk")
  SHOPIFY_API_VERSION     Admin API version segment of the GraphQL endpoint URL
  RESOURCE_KINDS          Comma-separated kinds to extract: products,orders,customers
  EXTRACTION_MODE         "bulk" (async export job) or "paginated" (cursor queries)
  PAGE_SIZE               Items per page in paginated mode (1-250)
  POLL_INTERVAL_SECONDS   Wait between bulk job status queries
  MAX_POLL_ATTEMPTS       Status queries before giving up with PollTimeout
  POLL_TIMEOUT_SECONDS    Wall-clock cap on polling (0 = only MAX_POLL_ATTEMPTS applies)
  MALFORMED_LINE_POLICY   "abort" fails the kind on a bad result line, "skip" drops it
  REQUEST_TIMEOUT         Per-request HTTP timeout in seconds
  OUTPUT_DIR              Where to write extraction output (default: ./output)
  OUTPUT_RETENTION_DAYS   How many days to keep old output folders (0 = keep forever)
  SAVE_JSON               Whether to write canonical records to disk (default: True)
  DEBUG                   Whether to print verbose output (default: False)
"""

PROVIDER_NAME = "Shopify_Bulk"

DEFAULT_SETTINGS = {
    "PROVIDER_NAME": PROVIDER_NAME,
    "SHOPIFY_API_VERSION": "2024-10",
    "RESOURCE_KINDS": "products,orders,customers",
    "EXTRACTION_MODE": "bulk",
    "PAGE_SIZE": 50,
    "POLL_INTERVAL_SECONDS": 3.0,
    "MAX_POLL_ATTEMPTS": 200,
    "POLL_TIMEOUT_SECONDS": 0,
    "MALFORMED_LINE_POLICY": "abort",
    "REQUEST_TIMEOUT": 30,
    "OUTPUT_DIR": "./output",
    "OUTPUT_RETENTION_DAYS": 30,
    "SAVE_JSON": True,
    "DEBUG": False,
}
