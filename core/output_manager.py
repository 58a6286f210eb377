"""
Output Manager — Per-run output folders for extracted records.

Each extraction run writes into its own folder under OUTPUT_DIR, named
YYYYMMDD_HHMM_{provider_name} (e.g., "20260220_1430_Shopify_Bulk"):

  - {kind}_records.json:     Canonical records of each successful kind
  - extraction_results.json: Run metadata, per-kind outcomes, errors

Folders older than OUTPUT_RETENTION_DAYS are pruned at the start of a run
(run.py, before the new folder exists). retention_days=0 keeps everything.

Pipeline context:
    The orchestrator calls start_run() in Step 3 (Save Output), then
    write_records() per successful kind and write_results() once.
"""

import json
import os
import re
import shutil
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from .models import CanonicalRecord, ResourceKind

RESULTS_FILENAME = "extraction_results.json"

_FOLDER_STAMP = "%Y%m%d_%H%M"
_FOLDER_PATTERN = re.compile(r'^(\d{8}_\d{4})_')


def _folder_time(folder_name: str) -> Optional[datetime]:
    """Timestamp encoded in a run folder name, or None for any other name."""
    match = _FOLDER_PATTERN.match(folder_name)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), _FOLDER_STAMP)
    except ValueError:
        return None


class OutputManager:
    """Owns the output folder of one extraction run.

    Attributes:
        base_dir: Root output directory (default: ./output).
        provider_name: Folder name suffix (non-alphanumerics become "_").
        retention_days: Prune run folders older than this (0 = keep forever).
        current_dir: This run's folder (None until start_run()).
    """

    def __init__(self, base_dir: str, provider_name: str, retention_days: int = 30):
        self.base_dir = base_dir
        self.provider_name = provider_name
        self.retention_days = retention_days
        self.current_dir: Optional[str] = None
        self._started = datetime.now()

    @property
    def folder_name(self) -> str:
        suffix = re.sub(r'[^0-9A-Za-z_-]', '_', self.provider_name)
        return f"{self._started.strftime(_FOLDER_STAMP)}_{suffix}"

    def start_run(self) -> str:
        """Create this run's folder (idempotent) and return its path."""
        self.current_dir = os.path.join(self.base_dir, self.folder_name)
        os.makedirs(self.current_dir, exist_ok=True)
        return self.current_dir

    def write_records(self, kind: ResourceKind, records: Iterable[CanonicalRecord]) -> str:
        """Save one kind's canonical records as {kind}_records.json."""
        return self._write_json(f"{kind.value}_records.json", [r.to_dict() for r in records])

    def write_results(self, results: Any) -> str:
        """Save the run metadata as extraction_results.json."""
        return self._write_json(RESULTS_FILENAME, results)

    def _write_json(self, filename: str, payload: Any) -> str:
        if not self.current_dir:
            raise RuntimeError("No run folder yet; call start_run() first")
        path = os.path.join(self.current_dir, filename)
        with open(path, "w") as f:
            json.dump(payload, f, indent=2, default=str)
        return path

    def prune_expired(self, debug: bool = False) -> int:
        """Delete run folders older than retention_days.

        Entries that are not run folders are never touched.

        Returns:
            The number of folders deleted.
        """
        if self.retention_days <= 0 or not os.path.isdir(self.base_dir):
            return 0

        cutoff = datetime.now() - timedelta(days=self.retention_days)
        deleted = 0
        for name in sorted(os.listdir(self.base_dir)):
            path = os.path.join(self.base_dir, name)
            stamp = _folder_time(name)
            if stamp is None or stamp >= cutoff or not os.path.isdir(path):
                continue
            try:
                shutil.rmtree(path)
            except OSError as e:
                print(f"  Warning: could not delete old output folder {name}: {e}")
                continue
            deleted += 1
            if debug:
                print(f"  Deleted old output folder: {name}")
        return deleted
