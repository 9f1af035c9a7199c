"""Sync service: one pass of fetch, map, submit and mark-indexed."""

import enum
import logging
import time
from typing import Optional

from logsync.errors import StoreWriteError
from logsync.metrics import SyncMetrics

logger = logging.getLogger(__name__)


class SyncOutcome(enum.Enum):
    EMPTY = "empty"
    COMMITTED = "committed"
    COMMIT_FAILED = "commit_failed"
    NOT_COMMITTED = "not_committed"
    ERROR = "error"


class SyncService:
    """Moves one batch of unindexed records from the store into the index.

    Records are marked indexed only after the submitter reports success,
    and then as a whole batch. A failed submission leaves the store alone
    so the same records come back on the next run.
    """

    def __init__(self, store, mapper, submitter, metrics: Optional[SyncMetrics] = None):
        self._store = store
        self._mapper = mapper
        self._submitter = submitter
        self._metrics = metrics or SyncMetrics()

    @property
    def metrics(self) -> SyncMetrics:
        return self._metrics

    def run_once(self) -> SyncOutcome:
        """Run one synchronization pass. Never raises."""
        logger.info("synchronization started")
        start = time.monotonic()
        counts = {"records": 0, "documents": 0}

        try:
            outcome = self._run(counts)
        except Exception:
            logger.exception("synchronization failed with an unexpected error")
            outcome = SyncOutcome.ERROR

        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_run(outcome.value, counts["records"], counts["documents"], elapsed_ms)
        return outcome

    def _run(self, counts: dict) -> SyncOutcome:
        records = self._store.fetch_unindexed_batch()
        if not records:
            logger.info("synchronization ended: 'no documents to index'")
            return SyncOutcome.EMPTY
        counts["records"] = len(records)

        documents = self._mapper.map(records)

        if not self._submitter.submit(documents):
            logger.info("Unsuccessful synchronization, not marking %d logs indexed", len(records))
            logger.info('synchronization ended: "unsuccessfully"')
            return SyncOutcome.NOT_COMMITTED
        counts["documents"] = len(documents)

        ids = {record.id for record in records}
        try:
            updated = self._store.mark_indexed(ids)
        except StoreWriteError as exc:
            logger.error("Documents indexed but store not updated, will resubmit next run: %s", exc)
            logger.info('synchronization ended: "successfully" (store update failed)')
            return SyncOutcome.COMMIT_FAILED

        pending = ids.difference(updated)
        if pending:
            logger.warning("%d logs not confirmed as indexed, pending for next run", len(pending))
            logger.info('synchronization ended: "successfully" (store update incomplete)')
            return SyncOutcome.COMMIT_FAILED

        logger.info('synchronization ended: "successfully"')
        return SyncOutcome.COMMITTED
