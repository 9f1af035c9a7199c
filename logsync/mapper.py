"""Document mapper: turns log records into Solr documents, optionally fragmenting payloads."""

import uuid
from typing import Iterator, Optional, Sequence

from logsync.models import IndexDocument, LogRecord, format_timestamp


def iter_fragments(text: str, limit: int) -> Iterator[str]:
    """Yield contiguous slices of *text*, each at most *limit* characters.

    Slices start at offset 0 and step by *limit*, so together they cover the
    whole text with no gaps or overlaps. An empty text yields nothing.
    """
    if limit <= 0:
        raise ValueError(f"Fragment limit must be positive, got {limit}")
    for start in range(0, len(text), limit):
        yield text[start:start + limit]


def _base_fields(record: LogRecord) -> dict:
    return {
        "id": str(record.id),
        "timestamp": format_timestamp(record.timestamp),
        "data": record.data,
        "source": record.source,
        "hostname": record.hostname,
        "appname": record.appname,
    }


class SingleDocumentMapper:
    """One document per record, without fragment fields."""

    def map(self, records: Sequence[LogRecord]) -> list[IndexDocument]:
        return [IndexDocument(**_base_fields(record)) for record in records]


class FragmentingMapper:
    """One document per payload fragment, all fragments of a record sharing a group id.

    A record with an empty payload produces no documents. It is still part
    of the fetched batch and gets marked indexed with the rest of it.
    """

    def __init__(self, limit: int):
        if limit <= 0:
            raise ValueError(f"Fragment limit must be positive, got {limit}")
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def map(self, records: Sequence[LogRecord]) -> list[IndexDocument]:
        documents: list[IndexDocument] = []
        for record in records:
            group_id = uuid.uuid4().hex
            fields = _base_fields(record)
            for fragment in iter_fragments(record.data or "", self._limit):
                documents.append(
                    IndexDocument(**fields, data_exact=fragment, group_id=group_id)
                )
        return documents


def build_mapper(fragment_size: Optional[int]):
    """Pick the mapping strategy once, from the configured fragment size."""
    if fragment_size is None:
        return SingleDocumentMapper()
    return FragmentingMapper(fragment_size)


def map_to_documents(records: Sequence[LogRecord], fragment_limit: int) -> list[IndexDocument]:
    """Map records to fragmented documents with the given limit."""
    return FragmentingMapper(fragment_limit).map(records)
