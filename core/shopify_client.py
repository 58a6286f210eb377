"""
Shopify API Client — Handles all HTTP communication with the store.

This module is the only place that talks to the network. It exposes the two
transport operations the pipeline needs:

  1. GraphQL Admin API — Used for bulk job submission, bulk job status, and
     the paginated queries. Every call is a POST to:
         {store_url}/admin/api/{api_version}/graphql.json

  2. Result download — A plain GET of the signed URL a completed bulk job
     returns. The URL carries its own signature, so the access token is NOT
     sent with it.

Authentication:
    Session acquisition is out of scope. The caller hands in an access token
    (from the app's OAuth install flow, or a custom-app Admin API token) and
    the client attaches it as the X-Shopify-Access-Token header. The client
    never reads or stores credentials anywhere else.

Error mapping:
    requests exceptions and non-2xx statuses -> NetworkError (no retry)
    A GraphQL "errors" array in the body      -> GraphQLError

Pipeline context:
    Used by JobSubmitter, JobPoller, ResultStreamReader and PaginatedFetcher.
"""

from typing import Any, Dict, Iterator, Optional

import requests

from .errors import GraphQLError, NetworkError

# Bytes read per network chunk when streaming a bulk result file
RESULT_CHUNK_SIZE = 64 * 1024


class ShopifyGraphQLClient:
    """Client for the Shopify Admin GraphQL API and bulk result downloads.

    Manages a requests.Session with the access token header set once at
    construction. All GraphQL calls go through this single session.

    Attributes:
        store_url: Base URL of the store (trailing slash stripped).
        api_version: Admin API version, e.g. "2024-10".
        timeout: Per-request timeout in seconds.
        debug: If True, print verbose request/response details.
    """

    def __init__(self, store_url: str, access_token: str, api_version: str = "2024-10",
                 timeout: float = 30, debug: bool = False):
        """Initialize the client.

        Args:
            store_url: Base URL (e.g., "https://example.myshopify.com").
            access_token: Admin API access token supplied by the auth provider.
            api_version: Admin API version segment of the endpoint URL.
            timeout: Per-request timeout in seconds.
            debug: Enable verbose output.
        """
        self.store_url = store_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self.debug = debug
        self._session = requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": access_token,
        })

    @property
    def graphql_url(self) -> str:
        return f"{self.store_url}/admin/api/{self.api_version}/graphql.json"

    def execute_graphql(self, query: str, variables: Optional[Dict] = None) -> Dict[str, Any]:
        """Execute a GraphQL query or mutation against the Admin API.

        Args:
            query: The GraphQL document.
            variables: Optional dict of GraphQL variables.

        Returns:
            The "data" portion of the GraphQL response (a dict).

        Raises:
            NetworkError: If the HTTP request fails or returns a non-2xx status.
            GraphQLError: If the GraphQL response contains errors.
        """
        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        if self.debug:
            print(f"  Executing GraphQL query ({len(query)} chars)")

        try:
            response = self._session.post(self.graphql_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            raise NetworkError(e) from e
        except ValueError as e:
            # Body was not JSON (e.g. an HTML error page behind a proxy)
            raise NetworkError(e) from e

        if result.get("errors"):
            messages = [e.get("message", str(e)) for e in result["errors"]]
            raise GraphQLError(messages)

        return result.get("data") or {}

    def stream_lines(self, url: str) -> Iterator[bytes]:
        """Stream a bulk result file line by line.

        The response is read incrementally so multi-gigabyte exports are never
        held in memory at once. Every physical line is yielded, blank ones
        included, so callers can report accurate line numbers.

        Lines are split on b"\\n" only. JSONL escapes newlines inside strings,
        but U+2028, U+2029 and U+0085 may appear raw, so text-mode splitting
        would cut records apart. A trailing b"\\r" is dropped. Lines stay
        undecoded bytes: the payload is UTF-8 whatever Content-Type says, and
        the reader decodes each line so a bad one is reported by line number.

        Args:
            url: The signed result URL from a COMPLETED bulk job.

        Yields:
            Each line of the payload as bytes, without the line terminator.

        Raises:
            NetworkError: If the download fails at any point.
        """
        if self.debug:
            print(f"  Downloading bulk result: {url[:80]}")

        try:
            with requests.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                pending = b""
                for chunk in response.iter_content(chunk_size=RESULT_CHUNK_SIZE):
                    lines = (pending + chunk).split(b"\n")
                    pending = lines.pop()
                    for line in lines:
                        yield _strip_cr(line)
                if pending:
                    yield _strip_cr(pending)
        except requests.RequestException as e:
            raise NetworkError(e) from e


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line
