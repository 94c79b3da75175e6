import logging
import queue
import sqlite3
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from bricks.db.connection import create_connection

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Thread-safe pool of SQLite connections backed by a queue.

    Each thread holds at most one connection at a time: a ``connection()`` or
    ``transaction()`` block opened while the thread already holds one reuses
    it. Repositories check out a connection per call, so calls made inside a
    caller's ``transaction()`` join that transaction.
    """

    def __init__(self, path: str | Path, *, size: int = 5) -> None:
        if str(path) == ":memory:":
            raise ValueError("ConnectionPool needs a database file; in-memory databases are per-connection")
        logger.debug("Creating connection pool: path=%s size=%d", path, size)
        self._closed = False
        self._local = threading.local()
        self._all_conns: list[sqlite3.Connection] = []
        self._pool: queue.Queue[sqlite3.Connection] = queue.Queue(maxsize=size)
        for _ in range(size):
            conn = create_connection(path, check_same_thread=False)
            self._all_conns.append(conn)
            self._pool.put(conn)

    def get(self, *, timeout: float | None = None) -> sqlite3.Connection:
        """Check out a connection from the pool.

        Raises RuntimeError if pool is closed.
        Raises TimeoutError if no connection is available within timeout.
        """
        if self._closed:
            raise RuntimeError("Connection pool is closed")
        try:
            return self._pool.get(timeout=timeout)
        except queue.Empty:
            logger.warning("Connection pool exhausted")
            raise TimeoutError("No connection available in pool") from None

    def release(self, conn: sqlite3.Connection) -> None:
        """Return a connection to the pool."""
        if not self._closed:
            self._pool.put(conn)
        else:
            conn.close()

    @property
    def held(self) -> sqlite3.Connection | None:
        """The connection the calling thread currently has checked out, if any."""
        return getattr(self._local, "conn", None)

    @contextmanager
    def connection(self, *, timeout: float | None = None) -> Generator[sqlite3.Connection]:
        """Check out a connection for the calling thread, or reuse the one it holds.

        The outermost block rolls back anything left uncommitted and returns
        the connection to the pool.
        """
        held = self.held
        if held is not None:
            yield held
            return
        conn = self.get(timeout=timeout)
        self._local.conn = conn
        try:
            yield conn
        finally:
            self._local.conn = None
            if conn.in_transaction:
                conn.rollback()
            self.release(conn)

    @contextmanager
    def transaction(self, *, timeout: float | None = None) -> Generator[sqlite3.Connection]:
        """Commit on success, roll back on error; nested blocks join the outermost."""
        if getattr(self._local, "transaction", False):
            with self.connection(timeout=timeout) as conn:
                yield conn
            return
        with self.connection(timeout=timeout) as conn:
            self._local.transaction = True
            try:
                yield conn
                conn.commit()
            except BaseException:
                conn.rollback()
                raise
            finally:
                self._local.transaction = False

    def close_all(self) -> None:
        """Close all connections, including checked-out ones."""
        logger.debug("Closing %d connections", len(self._all_conns))
        self._closed = True
        for conn in self._all_conns:
            conn.close()
        while not self._pool.empty():
            try:
                self._pool.get_nowait()
            except queue.Empty:
                break
