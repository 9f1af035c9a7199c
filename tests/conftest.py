import datetime
from unittest.mock import MagicMock

import pytest

from logsync.mapper import build_mapper
from logsync.metrics import SyncMetrics
from logsync.models import LogRecord
from logsync.sync import SyncService


def make_record(record_id, data="GET /index.html 200", **kwargs):
    return LogRecord(
        id=record_id,
        timestamp=kwargs.pop(
            "timestamp", datetime.datetime(2024, 1, 15, 10, 30, 0, tzinfo=datetime.timezone.utc)
        ),
        data=data,
        source=kwargs.pop("source", "syslog"),
        hostname=kwargs.pop("hostname", "web-01"),
        appname=kwargs.pop("appname", "nginx"),
        **kwargs,
    )


@pytest.fixture
def records():
    return [make_record(1, "a" * 5), make_record(2, "b" * 12), make_record(3, "")]


@pytest.fixture
def store(records):
    fake = MagicMock()
    fake.fetch_unindexed_batch.return_value = records
    fake.mark_indexed.side_effect = lambda ids: sorted(ids)
    return fake


@pytest.fixture
def submitter():
    fake = MagicMock()
    fake.submit.return_value = True
    return fake


@pytest.fixture
def metrics():
    return SyncMetrics()


@pytest.fixture
def service(store, submitter, metrics):
    return SyncService(store, build_mapper(10), submitter, metrics)


@pytest.fixture
def record_factory():
    return make_record
