"""
Job Submitter — Starts a bulk export job for one resource kind.

Wraps the kind's export query in bulkOperationRunQuery and checks the answer.
The store accepts at most one running bulk query per shop, so a second
submission while another export is active comes back as a user error and is
surfaced as JobRejected rather than being queued.

Pipeline context:
    First step of BulkExtractionPipeline. The returned BulkJob is handed to
    JobPoller.
"""

from .errors import JobRejected
from .graphql_queries import BULK_RUN_MUTATION
from .models import BulkJob, JobStatus, ResourceKind
from .resources import query_for


class JobSubmitter:
    """Submits bulk export jobs through a ShopifyGraphQLClient."""

    def __init__(self, client, debug: bool = False):
        self.client = client
        self.debug = debug

    def submit(self, kind: ResourceKind) -> BulkJob:
        """Submit the export job for a resource kind.

        Args:
            kind: The resource to export.

        Returns:
            A BulkJob in SUBMITTED (or RUNNING) state carrying the upstream id.

        Raises:
            UnsupportedResourceKind: If kind is not a ResourceKind.
            JobRejected: If the mutation returned user errors or no job.
            NetworkError, GraphQLError: From the client.
        """
        query = query_for(kind)
        data = self.client.execute_graphql(BULK_RUN_MUTATION, {"query": query})

        run_result = data.get("bulkOperationRunQuery") or {}
        user_errors = run_result.get("userErrors") or []
        if user_errors:
            reason = "; ".join(_describe_user_error(e) for e in user_errors)
            raise JobRejected(reason)

        operation = run_result.get("bulkOperation")
        if not operation or not operation.get("id"):
            raise JobRejected("no bulk operation returned")

        job = BulkJob(id=operation["id"], kind=kind)
        upstream = JobStatus.from_upstream(operation.get("status"))
        if upstream is not JobStatus.SUBMITTED:
            job.transition(upstream, error_code=operation.get("errorCode"))

        if self.debug:
            print(f"  Submitted bulk job {job.id} for {kind.value} ({operation.get('status')})")

        return job


def _describe_user_error(error) -> str:
    field = error.get("field")
    message = error.get("message", str(error))
    if field:
        path = ".".join(str(part) for part in field) if isinstance(field, list) else str(field)
        return f"{path}: {message}"
    return message
