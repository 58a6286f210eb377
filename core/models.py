"""
Data Model — Types shared by every stage of the extraction pipeline.

  ResourceKind      The three exportable resources (products, orders, customers).
  JobStatus         Lifecycle of a bulk export job, plus the mapping from the
                    upstream BulkOperation status vocabulary.
  BulkJob           One export job; only JobSubmitter creates it and only
                    JobPoller moves it forward.
  RawRecord         One decoded line of the JSONL payload (or one node of a page).
  ReconciledEntity  A top-level entity with its child records attached.
  CanonicalRecord   The flattened, embedding-ready output unit.
  Page              One response of the paginated query.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import InvalidJobTransition, UnsupportedResourceKind


class ResourceKind(Enum):
    PRODUCT = "products"
    ORDER = "orders"
    CUSTOMER = "customers"

    @classmethod
    def parse(cls, value) -> "ResourceKind":
        """Resolve "products", "PRODUCT", or a ResourceKind to a ResourceKind.

        Raises:
            UnsupportedResourceKind: For anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            for kind in cls:
                if text.lower() == kind.value or text.upper() == kind.name:
                    return kind
        raise UnsupportedResourceKind(value)


class JobStatus(Enum):
    SUBMITTED = "SUBMITTED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    @classmethod
    def from_upstream(cls, status: Optional[str]) -> "JobStatus":
        """Map a BulkOperationStatus value onto the four-state lifecycle."""
        return _UPSTREAM_STATUS.get((status or "").upper(), cls.RUNNING)


_UPSTREAM_STATUS = {
    "CREATED": JobStatus.SUBMITTED,
    "RUNNING": JobStatus.RUNNING,
    "CANCELING": JobStatus.RUNNING,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
    "CANCELED": JobStatus.FAILED,
    "EXPIRED": JobStatus.FAILED,
}

_ALLOWED_TRANSITIONS = {
    JobStatus.SUBMITTED: {JobStatus.SUBMITTED, JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.RUNNING: {JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


@dataclass
class BulkJob:
    id: str
    kind: ResourceKind
    status: JobStatus = JobStatus.SUBMITTED
    result_location: Optional[str] = None
    error_code: Optional[str] = None
    object_count: Optional[int] = None

    def transition(self, status: JobStatus, result_location: Optional[str] = None,
                   error_code: Optional[str] = None, object_count: Optional[int] = None):
        """Move the job to a new status, enforcing the monotonic lifecycle.

        Raises:
            InvalidJobTransition: If the job is terminal or would move backwards.
        """
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransition(self.status, status)
        self.status = status
        if result_location is not None:
            self.result_location = result_location
        if error_code is not None:
            self.error_code = error_code
        if object_count is not None:
            self.object_count = object_count


@dataclass
class RawRecord:
    id: str
    parent_id: Optional[str] = None
    typename: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default=None):
        return self.fields.get(key, default)


PLACEHOLDER_TITLE = "Unknown"


@dataclass
class ReconciledEntity:
    id: str
    title: str = PLACEHOLDER_TITLE
    created_at: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)
    children: List[RawRecord] = field(default_factory=list)
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls, entity_id: str) -> "ReconciledEntity":
        return cls(id=entity_id, is_placeholder=True)


@dataclass(frozen=True)
class CanonicalRecord:
    id: str
    title: str
    created_at: str
    embedding_text: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at,
            "embeddingText": self.embedding_text,
        }


@dataclass
class Page:
    cursor: Optional[str]
    items: List[RawRecord] = field(default_factory=list)
    has_next: bool = False
    children: List[RawRecord] = field(default_factory=list)
