"""
Result Stream Reader — Decodes a completed bulk job's JSONL payload.

A bulk result file holds one JSON object per line. Top-level nodes and nested
connection nodes are both emitted as lines; nested ones carry "__parentId":

    {"__typename":"Product","id":"gid://shopify/Product/1","title":"Shirt","createdAt":"..."}
    {"__typename":"ProductVariant","id":"gid://shopify/ProductVariant/7","title":"Small","price":"10.00","__parentId":"gid://shopify/Product/1"}

Each line becomes a RawRecord: "id", "__parentId" and "__typename" are lifted
into typed attributes and the full decoded object is kept as `fields`. Records
come out in file order, which says nothing about parents preceding children.

Malformed lines:
    A line is malformed if it is not valid UTF-8 JSON, is not a JSON object,
    or has no string "id". What happens next is the MalformedLinePolicy:
      ABORT  raise RecordParseError with the 1-based line number (default)
      SKIP   drop the line, remember its number in skipped_lines, continue

Pipeline context:
    Third step of BulkExtractionPipeline. Output goes to the Reconciler.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import RecordParseError
from .models import RawRecord

PARENT_ID_FIELD = "__parentId"
TYPENAME_FIELD = "__typename"


class MalformedLinePolicy(Enum):
    ABORT = "abort"
    SKIP = "skip"

    @classmethod
    def parse(cls, value) -> "MalformedLinePolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown malformed line policy: {value!r} (expected 'abort' or 'skip')")


def record_from_node(node: Dict[str, Any], parent_id: Optional[str] = None) -> RawRecord:
    """Build a RawRecord from a decoded node dict.

    Args:
        node: The decoded object; must contain a string "id".
        parent_id: Explicit parent id, overriding any "__parentId" in node.

    Raises:
        ValueError: If the node has no string id.
    """
    record_id = node.get("id")
    if not isinstance(record_id, str) or not record_id:
        raise ValueError("record has no string 'id'")
    return RawRecord(
        id=record_id,
        parent_id=parent_id if parent_id is not None else node.get(PARENT_ID_FIELD),
        typename=node.get(TYPENAME_FIELD),
        fields=node,
    )


def decode_line(line: Union[str, bytes], line_number: int) -> RawRecord:
    """Decode one JSONL line into a RawRecord.

    Bytes are decoded as UTF-8.

    Raises:
        RecordParseError: If the line is not UTF-8, or not a JSON object with
            a string id.
    """
    try:
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        node = json.loads(line)
    except ValueError as e:
        raise RecordParseError(line_number, str(e)) from e

    if not isinstance(node, dict):
        raise RecordParseError(line_number, f"expected a JSON object, got {type(node).__name__}")

    try:
        return record_from_node(node)
    except ValueError as e:
        raise RecordParseError(line_number, str(e)) from e


class ResultStreamReader:
    """Downloads and decodes bulk result payloads.

    Attributes:
        client: Anything with stream_lines(url) yielding lines as bytes or text.
        policy: What to do with a malformed line.
        skipped_lines: Line numbers dropped by the last fetch_records() call.
    """

    def __init__(self, client, policy=MalformedLinePolicy.ABORT, debug: bool = False):
        self.client = client
        self.policy = MalformedLinePolicy.parse(policy)
        self.debug = debug
        self.skipped_lines: List[int] = []

    def fetch_records(self, location: Optional[str]) -> List[RawRecord]:
        """Fetch the payload at location and decode every non-blank line.

        Args:
            location: The result URL of a COMPLETED job. None means the export
                      matched nothing; no download happens.

        Returns:
            RawRecords in file order.

        Raises:
            RecordParseError: On a malformed line under the ABORT policy.
            NetworkError: If the download fails.
        """
        self.skipped_lines = []
        if not location:
            return []

        records = []
        for line_number, line in enumerate(self.client.stream_lines(location), start=1):
            if not line or not line.strip():
                continue
            try:
                records.append(decode_line(line, line_number))
            except RecordParseError as e:
                if self.policy is MalformedLinePolicy.ABORT:
                    raise
                self.skipped_lines.append(line_number)
                if self.debug:
                    print(f"  Skipping malformed line: {e}")

        if self.debug:
            print(f"  Decoded {len(records)} records ({len(self.skipped_lines)} skipped)")

        return records
