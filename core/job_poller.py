"""
Job Poller — Waits for a bulk export job to reach a terminal state.

There is no push notification for bulk jobs, so completion is detected by
querying the job's status on a fixed interval. The loop is bounded three ways:

  max_attempts   Hard cap on status queries; exhausting it raises PollTimeout.
  timeout        Optional wall-clock cap in seconds; also raises PollTimeout.
  cancel_event   A threading.Event the caller can set from another thread.
                 It is checked before every status query and is the wait
                 primitive itself, so a cancel during the sleep returns at
                 once and raises Cancelled instead of leaving a wait behind.

Status transitions are applied through BulkJob.transition(), so a misbehaving
upstream that reports a job moving backwards surfaces as InvalidJobTransition.

Pipeline context:
    Second step of BulkExtractionPipeline, between JobSubmitter and
    ResultStreamReader.
"""

import threading
import time
from typing import Optional

from .errors import Cancelled, JobFailed, PollTimeout
from .graphql_queries import BULK_STATUS_QUERY
from .models import BulkJob, JobStatus


class JobPoller:
    """Polls bulk job status through a ShopifyGraphQLClient.

    Attributes:
        client: Anything with execute_graphql(query, variables).
        clock: Monotonic time source, replaceable in tests.
        debug: If True, print every status observed.
    """

    def __init__(self, client, debug: bool = False, clock=time.monotonic):
        self.client = client
        self.debug = debug
        self.clock = clock

    def await_completion(self, job: BulkJob, poll_interval: float, max_attempts: int,
                         cancel_event: Optional[threading.Event] = None,
                         timeout: Optional[float] = None) -> BulkJob:
        """Block until the job completes, fails, times out, or is cancelled.

        Args:
            job: The job returned by JobSubmitter; updated in place.
            poll_interval: Seconds to wait between status queries.
            max_attempts: Maximum number of status queries.
            cancel_event: Optional event that aborts the wait when set.
            timeout: Optional wall-clock limit in seconds (None or 0 = no limit).

        Returns:
            The same job, now COMPLETED, with result_location set (None when
            the export matched no objects).

        Raises:
            JobFailed: If the job ends FAILED.
            PollTimeout: If max_attempts or timeout is exhausted first.
            Cancelled: If cancel_event is set.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        if job.status is JobStatus.COMPLETED:
            return job
        if job.status is JobStatus.FAILED:
            raise JobFailed(job.error_code)

        cancel_event = cancel_event or threading.Event()
        deadline = self.clock() + timeout if timeout else None

        for attempt in range(1, max_attempts + 1):
            if cancel_event.is_set():
                raise Cancelled(f"Polling for {job.id} cancelled after {attempt - 1} poll(s)")

            self._refresh(job)

            if self.debug:
                print(f"  Poll {attempt}/{max_attempts}: {job.id} is {job.status.name}")

            if job.status is JobStatus.COMPLETED:
                return job
            if job.status is JobStatus.FAILED:
                raise JobFailed(job.error_code)

            if attempt == max_attempts:
                break

            wait = poll_interval
            if deadline is not None:
                remaining = deadline - self.clock()
                if remaining <= 0:
                    raise PollTimeout(attempt, f"exceeded {timeout}s")
                wait = min(wait, remaining)

            if cancel_event.wait(wait):
                raise Cancelled(f"Polling for {job.id} cancelled after {attempt} poll(s)")

            if deadline is not None and self.clock() >= deadline:
                raise PollTimeout(attempt, f"exceeded {timeout}s")

        raise PollTimeout(max_attempts)

    def _refresh(self, job: BulkJob):
        """Query the job's status once and apply it to the job."""
        data = self.client.execute_graphql(BULK_STATUS_QUERY, {"id": job.id})
        operation = data.get("node")
        if not operation:
            job.transition(JobStatus.FAILED, error_code="NOT_FOUND")
            return

        upstream_status = operation.get("status")
        status = JobStatus.from_upstream(upstream_status)
        error_code = operation.get("errorCode")
        if status is JobStatus.FAILED and not error_code:
            error_code = upstream_status

        object_count = operation.get("objectCount")
        job.transition(
            status,
            result_location=operation.get("url") if status is JobStatus.COMPLETED else None,
            error_code=error_code,
            object_count=int(object_count) if object_count is not None else None,
        )
