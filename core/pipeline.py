"""
Extraction Pipelines — One resource kind, end to end.

BulkExtractionPipeline runs the asynchronous export path:

  Step 1: SUBMIT      JobSubmitter.submit(kind)            -> BulkJob (SUBMITTED)
  Step 2: POLL        JobPoller.await_completion(job, ...) -> BulkJob (COMPLETED)
  Step 3: DOWNLOAD    ResultStreamReader.fetch_records(url) -> [RawRecord]
  Step 4: RECONCILE   Reconciler.reconcile(records, kind)  -> {id: ReconciledEntity}
  Step 5: FORMAT      RecordFormatter.format_all(...)      -> [CanonicalRecord]

PaginatedExtractionPipeline replaces steps 1-3 with PaginatedFetcher.fetch_all()
and shares steps 4-5, so both produce the same CanonicalRecord shape.

Each pipeline instance owns its own job/page state, so separate kinds never
share anything mutable. run_kinds() drives several kinds one after another and
records a KindOutcome per kind: a failure in one kind is captured and the next
kind still runs.

Pipeline context:
    Built by ExtractionOrchestrator from configuration; usable on its own with
    any client exposing execute_graphql() and stream_lines().
"""

import threading
import traceback
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .errors import Cancelled
from .job_poller import JobPoller
from .job_submitter import JobSubmitter
from .models import BulkJob, CanonicalRecord, ResourceKind
from .paginated_fetcher import PaginatedFetcher
from .reconciler import Reconciler
from .record_formatter import RecordFormatter
from .result_reader import MalformedLinePolicy, ResultStreamReader


@dataclass
class KindOutcome:
    """The result of extracting one resource kind."""
    kind: ResourceKind
    success: bool = False
    records: List[CanonicalRecord] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    skipped_lines: List[int] = field(default_factory=list)
    stagnated: bool = False

    def to_dict(self) -> Dict:
        result = {
            "kind": self.kind.value,
            "success": self.success,
            "record_count": len(self.records),
            "skipped_lines": list(self.skipped_lines),
            "stagnated": self.stagnated,
        }
        if self.error:
            result["error"] = self.error
            result["error_type"] = self.error_type
        return result


class BulkExtractionPipeline:
    """Submit, poll, download, reconcile and format one resource kind.

    Attributes:
        job: The BulkJob of the last run (None before run()).
        skipped_lines: Malformed lines dropped by the last run (SKIP policy).
    """

    def __init__(self, client, kind: ResourceKind, poll_interval: float = 3.0,
                 max_attempts: int = 200, poll_timeout: Optional[float] = None,
                 policy=MalformedLinePolicy.ABORT,
                 cancel_event: Optional[threading.Event] = None, debug: bool = False):
        self.client = client
        self.kind = kind
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.poll_timeout = poll_timeout
        self.cancel_event = cancel_event
        self.debug = debug
        self.submitter = JobSubmitter(client, debug)
        self.poller = JobPoller(client, debug)
        self.reader = ResultStreamReader(client, policy, debug)
        self.reconciler = Reconciler(debug)
        self.formatter = RecordFormatter()
        self.job: Optional[BulkJob] = None
        self.skipped_lines: List[int] = []

    def run(self) -> List[CanonicalRecord]:
        """Run the full bulk path for this kind.

        Raises:
            ExtractionError: Any failure of a step; nothing is retried.
        """
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise Cancelled(f"{self.kind.value} extraction cancelled before submission")

        self.job = self.submitter.submit(self.kind)
        print(f"  [{self.kind.value}] Bulk job submitted: {self.job.id}")

        self.poller.await_completion(
            self.job,
            poll_interval=self.poll_interval,
            max_attempts=self.max_attempts,
            cancel_event=self.cancel_event,
            timeout=self.poll_timeout,
        )
        print(f"  [{self.kind.value}] Bulk job completed ({self.job.object_count or 0} objects)")

        raw_records = self.reader.fetch_records(self.job.result_location)
        self.skipped_lines = list(self.reader.skipped_lines)
        print(f"  [{self.kind.value}] Raw records: {len(raw_records)}")
        if self.skipped_lines:
            print(f"  [{self.kind.value}] Warning: skipped {len(self.skipped_lines)} malformed line(s)")

        entities = self.reconciler.reconcile(raw_records, self.kind)
        records = self.formatter.format_all(entities, self.kind)
        print(f"  [{self.kind.value}] Canonical records: {len(records)}")
        return records


class PaginatedExtractionPipeline:
    """Page through one resource kind, then reconcile and format.

    Attributes:
        stagnated: True if the last run ended on the stagnation guard.
    """

    def __init__(self, client, kind: ResourceKind, page_size: int = 50, debug: bool = False):
        self.client = client
        self.kind = kind
        self.page_size = page_size
        self.debug = debug
        self.fetcher = PaginatedFetcher(client, kind, debug)
        self.reconciler = Reconciler(debug)
        self.formatter = RecordFormatter()

    @property
    def stagnated(self) -> bool:
        return self.fetcher.stagnated

    def run(self) -> List[CanonicalRecord]:
        raw_records = self.fetcher.fetch_all(self.page_size)
        print(f"  [{self.kind.value}] Fetched {len(raw_records)} raw records "
              f"in {self.fetcher.pages_fetched} page(s)")

        entities = self.reconciler.reconcile(raw_records, self.kind)
        records = self.formatter.format_all(entities, self.kind)
        print(f"  [{self.kind.value}] Canonical records: {len(records)}")
        return records


def run_kinds(kinds: Iterable[ResourceKind], make_pipeline: Callable,
              debug: bool = False) -> "OrderedDict[ResourceKind, KindOutcome]":
    """Extract several kinds in sequence, isolating failures per kind.

    Args:
        kinds: The kinds to extract, in order.
        make_pipeline: Called with a kind; returns an object with run().
        debug: If True, print tracebacks of failed kinds.

    Returns:
        An OrderedDict of kind -> KindOutcome, one entry per requested kind.
    """
    outcomes: "OrderedDict[ResourceKind, KindOutcome]" = OrderedDict()
    for kind in kinds:
        outcome = KindOutcome(kind=kind)
        pipeline = None
        try:
            pipeline = make_pipeline(kind)
            outcome.records = pipeline.run()
            outcome.success = True
        except Exception as e:
            outcome.error = str(e)
            outcome.error_type = type(e).__name__
            print(f"  [{kind.value}] ERROR ({outcome.error_type}): {e}")
            if debug:
                traceback.print_exc()

        if pipeline is not None:
            outcome.skipped_lines = list(getattr(pipeline, "skipped_lines", []))
            outcome.stagnated = bool(getattr(pipeline, "stagnated", False))
        outcomes[kind] = outcome

    return outcomes
