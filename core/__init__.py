"""
Core package — The extraction pipeline modules.

This package contains all the modules that implement the extraction pipeline.
Each module handles one concern:

  orchestrator.py       Run coordination, configuration and output (Steps 1-3)
  pipeline.py           Per-kind bulk and paginated pipelines, batch runner
  shopify_client.py     HTTP communication with the store
  graphql_queries.py    GraphQL query and mutation definitions
  resources.py          Per-kind strategy table (queries, grouping, templates)
  job_submitter.py      Start a bulk export job
  job_poller.py         Wait for the job to finish (bounded, cancellable)
  result_reader.py      Download and decode the JSONL result
  reconciler.py         Group child records under their parents
  record_formatter.py   Render canonical, embedding-ready records
  paginated_fetcher.py  Cursor-paginated alternate path
  output_manager.py     Timestamped output directories
  models.py, errors.py  Data model and error taxonomy
"""

from .errors import (
    ExtractionError,
    UnsupportedResourceKind,
    JobRejected,
    JobFailed,
    PollTimeout,
    Cancelled,
    RecordParseError,
    NetworkError,
    GraphQLError,
    InvalidJobTransition,
)
from .models import (
    ResourceKind,
    JobStatus,
    BulkJob,
    RawRecord,
    ReconciledEntity,
    CanonicalRecord,
    Page,
)
from .resources import RESOURCE_STRATEGIES, query_for, strategy_for
from .shopify_client import ShopifyGraphQLClient
from .job_submitter import JobSubmitter
from .job_poller import JobPoller
from .result_reader import MalformedLinePolicy, ResultStreamReader
from .reconciler import Reconciler
from .record_formatter import RecordFormatter
from .paginated_fetcher import PaginatedFetcher
from .pipeline import BulkExtractionPipeline, PaginatedExtractionPipeline, KindOutcome, run_kinds
from .output_manager import OutputManager
from .orchestrator import ExtractionOrchestrator
