"""Sync metrics: thread-safe counters of synchronization runs."""

import threading
import time
import datetime
from typing import Optional


class SyncMetrics:
    """Collects outcome counts and totals across synchronization runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._runs: dict = {}
        self._records_fetched: int = 0
        self._documents_submitted: int = 0
        self._skipped_ticks: int = 0
        self._total_run_time_ms: float = 0.0
        self._max_run_time_ms: float = 0.0
        self._last_outcome: Optional[str] = None
        self._last_run_at: Optional[str] = None
        self._start_time = time.monotonic()

    def record_run(self, outcome: str, records: int, documents: int, elapsed_ms: float) -> None:
        """Record one finished run.

        Args:
            outcome: Outcome name, e.g. "committed" or "not_committed".
            records: Number of records fetched from the store.
            documents: Number of documents Solr accepted (0 when submission failed).
            elapsed_ms: Wall time of the run, in milliseconds.
        """
        with self._lock:
            self._runs[outcome] = self._runs.get(outcome, 0) + 1
            self._records_fetched += records
            self._documents_submitted += documents
            self._total_run_time_ms += elapsed_ms
            self._max_run_time_ms = max(self._max_run_time_ms, elapsed_ms)
            self._last_outcome = outcome
            self._last_run_at = datetime.datetime.now(datetime.timezone.utc).isoformat()

    def record_skip(self) -> None:
        """Record a tick dropped because a run was still in progress."""
        with self._lock:
            self._skipped_ticks += 1

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all counters."""
        with self._lock:
            total_runs = sum(self._runs.values())
            return {
                "runs": dict(self._runs),
                "total_runs": total_runs,
                "records_fetched": self._records_fetched,
                "documents_submitted": self._documents_submitted,
                "skipped_ticks": self._skipped_ticks,
                "avg_run_time_ms": self._total_run_time_ms / total_runs if total_runs else 0.0,
                "max_run_time_ms": self._max_run_time_ms,
                "last_outcome": self._last_outcome,
                "last_run_at": self._last_run_at,
                "uptime_seconds": time.monotonic() - self._start_time,
            }
