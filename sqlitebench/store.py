from __future__ import annotations

import collections
import contextlib
import logging
import os
import sqlite3
import tempfile
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from .workload import DATA_LEN, SEED_COUNT, TABLE_NAME, rand_string

if TYPE_CHECKING:
    from .benchmarks.config import TrialConfig

LOGGER = logging.getLogger("sqlitebench.store")

BUSY_TIMEOUT_MS = 10_000
SIDECAR_SUFFIXES: tuple[str, ...] = ("", "-wal", "-shm", "-journal")


class BenchmarkError(Exception):
    """Base class for errors that abort a benchmark run."""


class StoreError(BenchmarkError):
    """Raised when the backing store cannot be opened, initialised or seeded."""


class _Waiter:
    """A blocked caller; a released connection is handed to it directly."""

    __slots__ = ("ready", "conn")

    def __init__(self) -> None:
        self.ready = threading.Event()
        self.conn: sqlite3.Connection | None = None


class ConnectionPool:
    """Lends SQLite connections to worker threads.

    ``max_open`` caps the number of simultaneously open connections; callers
    block until one is returned when the cap is reached. ``0`` means no cap,
    so every concurrent caller gets its own connection. A returned connection
    goes to the longest waiting caller before it is ever made idle again.
    """

    def __init__(self, path: Path, sync: str, wal: bool, max_open: int = 0) -> None:
        if max_open < 0:
            raise ValueError("max_open must be >= 0")
        self._path = path
        self._sync = sync
        self._wal = wal
        self._max_open = max_open

        self._lock = threading.Lock()
        self._idle: collections.deque[sqlite3.Connection] = collections.deque()
        self._waiters: collections.deque[_Waiter] = collections.deque()
        self._all: list[sqlite3.Connection] = []
        # Opened connections plus slots reserved by opens still in progress.
        self._slots = 0
        self._closed = False

    @property
    def max_open(self) -> int:
        return self._max_open

    @property
    def open_count(self) -> int:
        with self._lock:
            return len(self._all)

    @contextlib.contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._acquire()
        try:
            yield conn
        finally:
            self._release(conn)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            conns = list(self._all)
            self._all.clear()
            self._idle.clear()
            waiters = list(self._waiters)
            self._waiters.clear()
        for waiter in waiters:
            waiter.ready.set()
        for conn in conns:
            conn.close()

    def _acquire(self) -> sqlite3.Connection:
        while True:
            with self._lock:
                if self._closed:
                    raise StoreError("connection pool is closed")
                if self._idle:
                    return self._idle.pop()
                if self._max_open == 0 or self._slots < self._max_open:
                    self._slots += 1
                    waiter = None
                else:
                    waiter = _Waiter()
                    self._waiters.append(waiter)

            if waiter is None:
                return self._open_reserved()

            waiter.ready.wait()
            if waiter.conn is not None:
                return waiter.conn
            # Woken empty-handed: the pool closed or a failed open gave its slot back.

    def _release(self, conn: sqlite3.Connection) -> None:
        with self._lock:
            if self._closed:
                conn.close()
                return
            if not self._waiters:
                self._idle.append(conn)
                return
            waiter = self._waiters.popleft()
            waiter.conn = conn
        waiter.ready.set()

    def _open_reserved(self) -> sqlite3.Connection:
        try:
            conn = self._open()
        except BaseException:
            with self._lock:
                self._slots -= 1
                waiter = self._waiters.popleft() if self._waiters else None
            if waiter is not None:
                waiter.ready.set()
            raise

        with self._lock:
            if not self._closed:
                self._all.append(conn)
                return conn
        conn.close()
        raise StoreError("connection pool is closed")

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._path,
            timeout=BUSY_TIMEOUT_MS / 1000.0,
            isolation_level=None,
            check_same_thread=False,
        )
        try:
            conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
            conn.execute(f"PRAGMA synchronous = {self._sync}")
            if self._wal:
                conn.execute("PRAGMA journal_mode = WAL")
        except sqlite3.Error:
            conn.close()
            raise
        LOGGER.debug("opened connection to %s", self._path)
        return conn


class StoreHandle:
    """An open benchmark database: its file path plus the pool serving it."""

    def __init__(self, path: Path, pool: ConnectionPool) -> None:
        self.path = path
        self.pool = pool
        self._closed = False

    def connection(self) -> contextlib.AbstractContextManager[sqlite3.Connection]:
        return self.pool.connection()

    def create_schema(self) -> None:
        with self.connection() as conn:
            conn.execute(
                f"CREATE TABLE {TABLE_NAME} (id INTEGER NOT NULL PRIMARY KEY, name TEXT)"
            )

    def seed(self, count: int = SEED_COUNT) -> None:
        """Insert ``count`` random rows in a single transaction."""
        with self.connection() as conn:
            conn.execute("BEGIN")
            try:
                conn.executemany(
                    f"INSERT INTO {TABLE_NAME}(name) VALUES (?)",
                    ((rand_string(DATA_LEN),) for _ in range(count)),
                )
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def row_count(self) -> int:
        with self.connection() as conn:
            (count,) = conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()
        return count

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.pool.close()
        for suffix in SIDECAR_SUFFIXES:
            with contextlib.suppress(FileNotFoundError):
                os.remove(f"{self.path}{suffix}")
        LOGGER.debug("removed store %s", self.path)

    def __enter__(self) -> StoreHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_store(
    config: TrialConfig,
    directory: str | os.PathLike[str] | None = None,
    seed_count: int = SEED_COUNT,
) -> StoreHandle:
    """Create a fresh, seeded database for one trial of ``config``."""
    base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    path = base / f"{rand_string(10)}.db"

    pool = ConnectionPool(path, sync=config.sync, wal=config.wal, max_open=config.conns)
    store = StoreHandle(path, pool)
    try:
        store.create_schema()
        store.seed(seed_count)
    except sqlite3.Error as exc:
        store.close()
        raise StoreError(f"failed to initialise store {path}: {exc}") from exc

    LOGGER.info(
        "opened store %s (wal=%s sync=%s conns=%d, %d seed rows)",
        path,
        config.wal,
        config.sync,
        config.conns,
        seed_count,
    )
    return store


__all__ = [
    "BUSY_TIMEOUT_MS",
    "TABLE_NAME",
    "BenchmarkError",
    "StoreError",
    "ConnectionPool",
    "StoreHandle",
    "open_store",
]
