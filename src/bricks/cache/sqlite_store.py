"""SQLite-backed store of temporally versioned cache entries.

Each ``(kind, key)`` partition is a log of non-overlapping validity
intervals. ``put`` is a read-modify-write inside one ``BEGIN IMMEDIATE``
transaction: entries the new interval overlaps are deleted and whatever part
of them lies outside the new interval is re-inserted, then the new entry is
inserted. Writers to the same database serialize on SQLite's write lock and
are retried on lock conflicts; readers are never blocked (WAL).
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import TYPE_CHECKING

from tenacity import RetryCallState, retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from bricks.domain.cache_entry import CacheEntry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from bricks.db.pool import ConnectionPool

logger = logging.getLogger(__name__)


def _is_lock_conflict(exc: BaseException) -> bool:
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return "locked" in message or "busy" in message


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning("Retrying cache write (attempt %d): %s", retry_state.attempt_number, retry_state.outcome)


_retry_on_conflict = retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential_jitter(initial=0.05, max=1),
    retry=retry_if_exception(_is_lock_conflict),
    before_sleep=_log_retry,
    reraise=True,
)


@contextmanager
def _immediate_transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Take SQLite's write lock up front so the read-modify-write cannot interleave."""
    old_isolation = conn.isolation_level
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
    finally:
        conn.isolation_level = old_isolation


class SqliteCacheStore:
    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def get(self, kind: str, key: bytes, at: float) -> CacheEntry | None:
        """Return the entry whose interval contains ``at``."""
        with self._pool.connection() as conn:
            row = conn.execute(
                "SELECT * FROM caches WHERE kind = ? AND key = ?"
                " AND valid_from <= ? AND (valid_to IS NULL OR ? < valid_to)"
                " ORDER BY valid_from DESC LIMIT 1",
                (kind, key, at, at),
            ).fetchone()
        return self._row_to_entry(row) if row is not None else None

    def entries(self, kind: str, key: bytes) -> list[CacheEntry]:
        """All entries for a partition, ordered by ``valid_from``."""
        with self._pool.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM caches WHERE kind = ? AND key = ? ORDER BY valid_from",
                (kind, key),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    @_retry_on_conflict
    def put(self, entry: CacheEntry, *, computed_at: float | None = None) -> bool:
        """Write ``entry`` as authoritative over its interval.

        ``computed_at`` marks a value derived from raw rows read at that time.
        Such a write is refused (returns False) when the partition was
        invalidated after ``computed_at``, since its inputs have since changed.
        Writes without it are always stored.
        """
        if entry.valid_to is not None and entry.valid_to <= entry.valid_from:
            raise ValueError(f"Empty validity interval [{entry.valid_from}, {entry.valid_to})")
        with self._pool.connection() as conn, _immediate_transaction(conn):
            if computed_at is not None:
                watermark = self._watermark(conn, entry.kind, entry.key)
                if watermark is not None and computed_at < watermark:
                    logger.debug(
                        "Rejected stale %s entry (computed_at=%s < invalidated_at=%s)",
                        entry.kind,
                        computed_at,
                        watermark,
                    )
                    return False
            for old in self._overlapping(conn, entry.kind, entry.key, entry.valid_from, entry.valid_to):
                self._delete(conn, old)
                if old.valid_from < entry.valid_from:
                    self._insert(conn, old.kind, old.key, old.value, old.valid_from, entry.valid_from)
                if entry.valid_to is not None and (old.valid_to is None or old.valid_to > entry.valid_to):
                    self._insert(conn, old.kind, old.key, old.value, entry.valid_to, old.valid_to)
            self._insert(conn, entry.kind, entry.key, entry.value, entry.valid_from, entry.valid_to)
        return True

    @_retry_on_conflict
    def supersede(self, kind: str, key: bytes, at: float) -> int:
        """End the entry valid at ``at``, drop entries starting at or after it, and
        refuse later writes of values computed before ``at``.

        Returns the number of entries truncated or dropped.
        """
        with self._pool.connection() as conn, _immediate_transaction(conn):
            conn.execute(
                """INSERT INTO cache_invalidations (kind, key, invalidated_at) VALUES (?, ?, ?)
                   ON CONFLICT(kind, key) DO UPDATE
                   SET invalidated_at = MAX(invalidated_at, excluded.invalidated_at)""",
                (kind, key, at),
            )
            truncated = conn.execute(
                "UPDATE caches SET valid_to = ? WHERE kind = ? AND key = ?"
                " AND valid_from < ? AND (valid_to IS NULL OR valid_to > ?)",
                (at, kind, key, at, at),
            ).rowcount
            dropped = conn.execute(
                "DELETE FROM caches WHERE kind = ? AND key = ? AND valid_from >= ?",
                (kind, key, at),
            ).rowcount
            return truncated + dropped

    @_retry_on_conflict
    def evict_before(self, cutoff: float) -> int:
        """Delete entries that stopped being valid at or before ``cutoff``."""
        with self._pool.connection() as conn, _immediate_transaction(conn):
            cursor = conn.execute("DELETE FROM caches WHERE valid_to IS NOT NULL AND valid_to <= ?", (cutoff,))
            evicted = cursor.rowcount
        logger.info("Evicted %d cache entries ending before %s", evicted, cutoff)
        return evicted

    @staticmethod
    def _watermark(conn: sqlite3.Connection, kind: str, key: bytes) -> float | None:
        row = conn.execute(
            "SELECT invalidated_at FROM cache_invalidations WHERE kind = ? AND key = ?",
            (kind, key),
        ).fetchone()
        return row["invalidated_at"] if row is not None else None

    def _overlapping(
        self,
        conn: sqlite3.Connection,
        kind: str,
        key: bytes,
        valid_from: float,
        valid_to: float | None,
    ) -> list[CacheEntry]:
        sql = "SELECT * FROM caches WHERE kind = ? AND key = ? AND (valid_to IS NULL OR valid_to > ?)"
        params: list[object] = [kind, key, valid_from]
        if valid_to is not None:
            sql += " AND valid_from < ?"
            params.append(valid_to)
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _delete(conn: sqlite3.Connection, entry: CacheEntry) -> None:
        conn.execute(
            "DELETE FROM caches WHERE kind = ? AND key = ? AND valid_from = ?",
            (entry.kind, entry.key, entry.valid_from),
        )

    @staticmethod
    def _insert(
        conn: sqlite3.Connection,
        kind: str,
        key: bytes,
        value: bytes,
        valid_from: float,
        valid_to: float | None,
    ) -> None:
        conn.execute(
            "INSERT INTO caches (kind, key, value, valid_from, valid_to) VALUES (?, ?, ?, ?, ?)",
            (kind, key, value, valid_from, valid_to),
        )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
        return CacheEntry(
            kind=row["kind"],
            key=bytes(row["key"]),
            value=bytes(row["value"]),
            valid_from=row["valid_from"],
            valid_to=row["valid_to"],
        )
