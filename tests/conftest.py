from __future__ import annotations

import threading

import pytest

from sqlitebench.benchmarks.config import TrialConfig
from sqlitebench.store import open_store

SMALL_SEED = 1_000


class OverlapLock:
    """Lock that records how many holders it ever had at the same time."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._guard = threading.Lock()
        self.holders = 0
        self.max_holders = 0
        self.acquisitions = 0

    def __enter__(self) -> "OverlapLock":
        self._lock.acquire()
        with self._guard:
            self.holders += 1
            self.acquisitions += 1
            self.max_holders = max(self.max_holders, self.holders)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        with self._guard:
            self.holders -= 1
        self._lock.release()


@pytest.fixture
def make_store(tmp_path):
    stores = []

    def factory(config: TrialConfig | None = None, seed_count: int = SMALL_SEED):
        store = open_store(
            config or TrialConfig(wal=True, readers=1),
            directory=tmp_path,
            seed_count=seed_count,
        )
        stores.append(store)
        return store

    yield factory
    for store in stores:
        store.close()
