"""
Paginated Fetcher — Cursor-paginated extraction for small datasets.

An alternative to the bulk export path: page through the kind's connection
with first/after until the data runs out. No job, no polling, no download.

Loop, per page:
  1. Request up to page_size nodes after the current cursor.
  2. Accumulate the returned nodes.
  3. Stop if the page was short (fewer than page_size nodes), if pageInfo says
     there is no next page, or if the new endCursor is missing or repeats the
     current or previous cursor (stagnation guard).
  4. Otherwise advance: previous_cursor = cursor, cursor = endCursor.

Stagnation is not an error. It ends the loop, sets `stagnated`, and prints a
warning; what was accumulated so far is returned.

Nested connections (product variants) come back inline in each node. They are
flattened into child RawRecords with parent_id set, so the Reconciler and
RecordFormatter treat paginated and bulk output identically. Only top-level
nodes count against page_size.

Pipeline context:
    Replaces JobSubmitter/JobPoller/ResultStreamReader in
    PaginatedExtractionPipeline.
"""

from typing import Any, Dict, List, Optional

from .errors import RecordParseError
from .models import Page, RawRecord, ResourceKind
from .resources import strategy_for
from .result_reader import record_from_node

MAX_PAGE_SIZE = 250


class PaginatedFetcher:
    """Fetches every node of one resource kind through cursor pagination.

    Attributes:
        client: Anything with execute_graphql(query, variables).
        kind: The resource kind to page through.
        pages_fetched: Number of page requests made by the last fetch_all().
        stagnated: True if the last fetch_all() stopped on the stagnation guard.
    """

    def __init__(self, client, kind: ResourceKind, debug: bool = False):
        self.client = client
        self.kind = kind
        self.strategy = strategy_for(kind)
        self.debug = debug
        self.pages_fetched = 0
        self.stagnated = False

    def fetch_all(self, page_size: int) -> List[RawRecord]:
        """Fetch all pages and return the accumulated records.

        Args:
            page_size: Nodes per request, 1 to 250.

        Returns:
            Top-level records and their flattened children, in page order.

        Raises:
            ValueError: If page_size is out of range.
            NetworkError, GraphQLError: From the client.
        """
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        self.pages_fetched = 0
        self.stagnated = False
        records: List[RawRecord] = []
        cursor: Optional[str] = None
        previous_cursor: Optional[str] = None

        while True:
            page = self.fetch_page(cursor, page_size)
            self.pages_fetched += 1
            records.extend(page.items)
            records.extend(page.children)

            if self.debug:
                print(f"  Page {self.pages_fetched}: {len(page.items)} {self.kind.value} "
                      f"(has next: {page.has_next})")

            if len(page.items) < page_size or not page.has_next:
                break

            if (page.cursor is None or page.cursor == cursor
                    or (previous_cursor is not None and page.cursor == previous_cursor)):
                self.stagnated = True
                print(f"  Warning: {self.kind.value} cursor stopped advancing at "
                      f"{page.cursor!r}; ending pagination after {self.pages_fetched} page(s)")
                break

            previous_cursor = cursor
            cursor = page.cursor

        return records

    def fetch_page(self, cursor: Optional[str], page_size: int) -> Page:
        """Request one page after cursor and decode it."""
        variables = {"first": page_size, "after": cursor}
        data = self.client.execute_graphql(self.strategy.page_query, variables)
        connection = data.get(self.strategy.root_field) or {}

        items: List[RawRecord] = []
        children: List[RawRecord] = []
        for position, edge in enumerate(connection.get("edges") or [], start=1):
            node = dict(edge.get("node") or {})
            nested = node.pop(self.strategy.child_connection, None) if self.strategy.groups_children else None
            try:
                record = record_from_node(node)
            except ValueError as e:
                raise RecordParseError(position, f"page node: {e}") from e
            items.append(record)
            children.extend(self._flatten_children(nested, record.id, position))

        page_info = connection.get("pageInfo") or {}
        return Page(
            cursor=page_info.get("endCursor"),
            items=items,
            has_next=bool(page_info.get("hasNextPage")),
            children=children,
        )

    def _flatten_children(self, connection: Optional[Dict[str, Any]], parent_id: str,
                          position: int) -> List[RawRecord]:
        if not connection:
            return []
        children = []
        for edge in connection.get("edges") or []:
            if not edge.get("node"):
                continue
            try:
                children.append(record_from_node(dict(edge["node"]), parent_id=parent_id))
            except ValueError as e:
                raise RecordParseError(position, f"child of {parent_id}: {e}") from e
        return children
