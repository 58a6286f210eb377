"""
Extraction Errors — The failure taxonomy of the extraction pipeline.

Every error raised by a pipeline step derives from ExtractionError, so the batch
runner can catch one type per resource kind, record the outcome, and move on to
the next kind. Transport-level failures from requests are wrapped in
NetworkError at the client boundary; nothing in the pipeline retries them.

Pagination stagnation is deliberately absent here: it ends the page loop
gracefully and is reported through PaginatedFetcher.stagnated.
"""

from typing import List, Optional


class ExtractionError(Exception):
    """Base class for all pipeline failures."""


class UnsupportedResourceKind(ExtractionError, ValueError):
    """Raised when a value does not name one of the supported resource kinds."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Unsupported resource kind: {kind!r}")


class JobRejected(ExtractionError):
    """The bulk export mutation came back with user errors."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Bulk job rejected: {reason}")


class JobFailed(ExtractionError):
    """The bulk job reached the FAILED state upstream."""

    def __init__(self, error_code: Optional[str]):
        self.error_code = error_code
        super().__init__(f"Bulk job failed: {error_code or 'unknown error'}")


class PollTimeout(ExtractionError):
    """Polling gave up before the job reached a terminal state."""

    def __init__(self, attempts: int, reason: str = "max attempts reached"):
        self.attempts = attempts
        super().__init__(f"Bulk job did not finish after {attempts} poll(s): {reason}")


class Cancelled(ExtractionError):
    """The caller signalled cancellation while the pipeline was waiting."""

    def __init__(self, message: str = "Extraction cancelled"):
        super().__init__(message)


class RecordParseError(ExtractionError):
    """A line of the result payload could not be decoded into a record."""

    def __init__(self, line_number: int, detail: str = ""):
        self.line_number = line_number
        message = f"Malformed record on line {line_number}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NetworkError(ExtractionError):
    """An HTTP call failed (connection error, timeout, or non-2xx status)."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class GraphQLError(ExtractionError):
    """The GraphQL response carried a top-level "errors" array."""

    def __init__(self, messages: List[str]):
        self.messages = messages
        super().__init__(f"GraphQL errors: {'; '.join(messages)}")


class InvalidJobTransition(ExtractionError):
    """A BulkJob status change would violate the monotonic lifecycle."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move bulk job from {current.name} to {requested.name}")
