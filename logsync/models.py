"""Log record and index document models."""

import datetime
from dataclasses import dataclass, asdict
from typing import Optional


@dataclass(frozen=True)
class LogRecord:
    id: int
    timestamp: datetime.datetime
    data: str = ""
    source: str = ""
    hostname: str = ""
    appname: str = ""
    is_indexed: bool = False


@dataclass(frozen=True)
class IndexDocument:
    id: str
    timestamp: str
    data: str
    source: str
    hostname: str
    appname: str
    data_exact: Optional[str] = None
    group_id: Optional[str] = None


def format_timestamp(value: datetime.datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision and a Z suffix.

    Naive datetimes (as returned for ``timestamp without time zone``
    columns) are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    utc = value.astimezone(datetime.timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def document_to_dict(doc: IndexDocument) -> dict:
    """Convert an IndexDocument to the JSON shape Solr ingests, dropping unset fields."""
    return {key: value for key, value in asdict(doc).items() if value is not None}
