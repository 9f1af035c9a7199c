"""PostgreSQL log store: fetches unindexed records and flips their indexed flag."""

import logging
from typing import Iterable, Optional

import psycopg
from psycopg import sql
from psycopg_pool import ConnectionPool

from logsync.errors import StoreWriteError
from logsync.models import LogRecord

logger = logging.getLogger(__name__)

BATCH_LIMIT = 2000

_SELECT_UNINDEXED = """
    SELECT l.id, l.timestamp, l.data, l.source, l.hostname, l.appname
    FROM {table} l
    WHERE l.isindexed = false
    ORDER BY l.id
    LIMIT %s
"""

_MARK_INDEXED = """
    UPDATE {table}
    SET isindexed = true
    WHERE id = ANY(%s)
    RETURNING id
"""


def create_pool(database_url: str, min_size: int = 1, max_size: int = 2) -> ConnectionPool:
    """Open a connection pool for the log store."""
    logger.info("Opening connection pool (min_size=%d, max_size=%d)", min_size, max_size)
    return ConnectionPool(
        conninfo=database_url,
        min_size=min_size,
        max_size=max_size,
        open=True,
    )


def _id_range(ids) -> tuple:
    if not ids:
        return "<empty ids>", "<empty ids>"
    return ids[0], ids[-1]


class LogStoreClient:
    """Reads and updates the log table through a psycopg connection pool."""

    def __init__(self, pool: ConnectionPool, table: str = "smartia_logs",
                 batch_limit: int = BATCH_LIMIT):
        self._pool = pool
        self._table = sql.Identifier(table)
        self._batch_limit = batch_limit
        self.last_error: Optional[Exception] = None

    def fetch_unindexed_batch(self) -> list[LogRecord]:
        """Return up to batch_limit unindexed records, ascending by id.

        A failing query returns an empty list like an empty table does; the
        error is logged and kept on ``last_error`` until the next good fetch.
        """
        query = sql.SQL(_SELECT_UNINDEXED).format(table=self._table)
        try:
            with self._pool.connection() as conn:
                rows = conn.execute(query, (self._batch_limit,)).fetchall()
        except psycopg.Error as exc:
            self.last_error = exc
            logger.error("fetch_unindexed_batch: query failed: %s", exc)
            return []

        self.last_error = None
        if not rows:
            logger.info("fetch_unindexed_batch: no unindexed logs found")
            return []

        return [
            LogRecord(
                id=row[0],
                timestamp=row[1],
                data=row[2] or "",
                source=row[3] or "",
                hostname=row[4] or "",
                appname=row[5] or "",
            )
            for row in rows
        ]

    def mark_indexed(self, ids: Iterable[int]) -> list[int]:
        """Set isindexed = true for exactly *ids* and return the confirmed ids.

        Raises StoreWriteError when the update cannot be executed or
        committed. Zero confirmed rows is returned as an empty list.
        """
        id_list = sorted(set(ids))
        first, last = _id_range(id_list)
        logger.info('mark_indexed: %d logs, from "%s" to "%s"', len(id_list), first, last)

        if not id_list:
            return []

        query = sql.SQL(_MARK_INDEXED).format(table=self._table)
        try:
            with self._pool.connection() as conn:
                rows = conn.execute(query, (id_list,)).fetchall()
        except psycopg.Error as exc:
            logger.error('mark_indexed: update from "%s" to "%s" failed: %s', first, last, exc)
            raise StoreWriteError(f"Failed to mark {len(id_list)} logs indexed: {exc}") from exc

        updated = [row[0] for row in rows]
        if not updated:
            logger.warning('mark_indexed: no rows updated for ids from "%s" to "%s"', first, last)
        else:
            logger.info('mark_indexed: updated %d logs, from "%s" to "%s"', len(updated), first, last)
        return updated

    def close(self):
        """Close the underlying connection pool."""
        self._pool.close()
