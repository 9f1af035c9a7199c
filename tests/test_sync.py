"""Tests for the sync service run-once procedure."""

from unittest.mock import MagicMock

import psycopg
import requests

from logsync.errors import StoreWriteError
from logsync.mapper import build_mapper
from logsync.store import LogStoreClient
from logsync.submitter import SolrSubmitter
from logsync.sync import SyncOutcome, SyncService


class TestSuccessfulRun:
    def test_scenario_marks_every_fetched_record(self, service, store, submitter):
        assert service.run_once() is SyncOutcome.COMMITTED

        docs = submitter.submit.call_args[0][0]
        assert [len(d.data_exact) for d in docs] == [5, 10, 2]
        # record 3 has an empty payload and no documents, but is still marked
        store.mark_indexed.assert_called_once_with({1, 2, 3})

    def test_mark_receives_set_without_duplicates(self, store, submitter, metrics, record_factory):
        store.fetch_unindexed_batch.return_value = [record_factory(i, "z" * 35) for i in (4, 5)]
        service = SyncService(store, build_mapper(10), submitter, metrics)
        service.run_once()
        assert len(submitter.submit.call_args[0][0]) == 8
        ids = store.mark_indexed.call_args[0][0]
        assert ids == {4, 5}

    def test_unfragmented_run(self, store, submitter, metrics):
        service = SyncService(store, build_mapper(None), submitter, metrics)
        assert service.run_once() is SyncOutcome.COMMITTED
        assert len(submitter.submit.call_args[0][0]) == 3

    def test_metrics_recorded(self, service, metrics):
        service.run_once()
        snap = metrics.snapshot()
        assert snap["runs"] == {"committed": 1}
        assert snap["records_fetched"] == 3
        assert snap["documents_submitted"] == 3
        assert snap["last_outcome"] == "committed"


class TestEmptyStore:
    def test_no_records_is_noop(self, service, store, submitter):
        store.fetch_unindexed_batch.return_value = []
        assert service.run_once() is SyncOutcome.EMPTY
        submitter.submit.assert_not_called()
        store.mark_indexed.assert_not_called()

    def test_repeated_runs_stay_noop(self, service, store, submitter):
        store.fetch_unindexed_batch.return_value = []
        for _ in range(3):
            service.run_once()
        submitter.submit.assert_not_called()
        store.mark_indexed.assert_not_called()

    def test_store_read_failure_logs_no_documents(self, service, store, submitter, caplog):
        # the store client turns a query error into an empty batch
        store.fetch_unindexed_batch.return_value = []
        store.last_error = RuntimeError("connection refused")
        caplog.set_level("INFO")
        service.run_once()
        assert "no documents to index" in caplog.text
        submitter.submit.assert_not_called()


class TestFailedSubmission:
    def test_failed_submit_never_marks(self, service, store, submitter, caplog):
        submitter.submit.return_value = False
        caplog.set_level("INFO")
        assert service.run_once() is SyncOutcome.NOT_COMMITTED
        store.mark_indexed.assert_not_called()
        assert "unsuccessfully" in caplog.text

    def test_failed_submit_counts_no_documents(self, service, submitter, metrics):
        submitter.submit.return_value = False
        service.run_once()
        snap = metrics.snapshot()
        assert snap["records_fetched"] == 3
        assert snap["documents_submitted"] == 0

    def test_submit_exception_contained(self, service, store, submitter):
        submitter.submit.side_effect = RuntimeError("unexpected")
        assert service.run_once() is SyncOutcome.ERROR
        store.mark_indexed.assert_not_called()


class TestCommitFailures:
    def test_store_write_error_reported_not_raised(self, service, store):
        store.mark_indexed.side_effect = StoreWriteError("disk full")
        assert service.run_once() is SyncOutcome.COMMIT_FAILED

    def test_partial_confirmation_is_commit_failed(self, service, store):
        store.mark_indexed.side_effect = lambda ids: [1, 2]
        assert service.run_once() is SyncOutcome.COMMIT_FAILED

    def test_fetch_exception_contained(self, submitter, metrics):
        store = MagicMock()
        store.fetch_unindexed_batch.side_effect = RuntimeError("pool closed")
        service = SyncService(store, build_mapper(10), submitter, metrics)
        assert service.run_once() is SyncOutcome.ERROR
        assert metrics.snapshot()["runs"] == {"error": 1}


class TestWithStoreClient:
    def test_query_error_means_no_http_call(self, submitter, metrics, caplog):
        conn = MagicMock()
        conn.execute.side_effect = psycopg.OperationalError("connection refused")
        pool = MagicMock()
        pool.connection.return_value.__enter__.return_value = conn
        store = LogStoreClient(pool)

        caplog.set_level("INFO")
        service = SyncService(store, build_mapper(10), submitter, metrics)
        assert service.run_once() is SyncOutcome.EMPTY
        assert "no documents to index" in caplog.text
        assert store.last_error is not None
        submitter.submit.assert_not_called()


class TestWithSubmitter:
    def test_http_500_leaves_records_unmarked(self, store, metrics, caplog):
        response = requests.Response()
        response.status_code = 500
        response._content = b'{"error": {"msg": "Server Error", "code": 500}}'
        session = MagicMock()
        session.post.return_value = response
        submitter = SolrSubmitter("http://solr:8983/solr/logs/update", "solr", "pw", session=session)

        caplog.set_level("INFO")
        service = SyncService(store, build_mapper(10), submitter, metrics)
        assert service.run_once() is SyncOutcome.NOT_COMMITTED
        assert "unsuccessfully" in caplog.text
        store.mark_indexed.assert_not_called()
