from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, ContextManager, NamedTuple

from ..store import BenchmarkError, StoreHandle
from ..workload import DATA_LEN, rand_string, read_once, write_once
from .config import TrialConfig

LOGGER = logging.getLogger("sqlitebench.trial")

READER = "reader"
WRITER = "writer"


class WorkloadError(BenchmarkError):
    """Raised when a read or write fails during a trial."""

    def __init__(self, worker: str, cause: BaseException) -> None:
        super().__init__(f"{worker}: {cause}")
        self.worker = worker


class TrialStartError(BenchmarkError):
    """Raised when the workers of a trial could not be started and released."""


class TrialCounts(NamedTuple):
    reads: int
    writes: int


@dataclass
class _Worker:
    name: str
    role: str
    unit: Callable[[], object]
    count: int = 0


class TrialDriver:
    """Runs one timed trial of concurrent readers and writers against a store.

    Workers wait on a shared barrier, are released together, and loop until a
    timer sets the cancellation event. Each worker keeps a private counter; the
    totals are summed only after every worker has been joined.
    """

    def __init__(
        self,
        config: TrialConfig,
        store: StoreHandle,
        duration_s: float,
        read_fn: Callable[[StoreHandle], object] = read_once,
        write_fn: Callable[[StoreHandle, str], object] = write_once,
        lock_factory: Callable[[], ContextManager] = threading.Lock,
    ) -> None:
        if duration_s <= 0:
            raise ValueError("duration_s must be > 0")
        self._config = config
        self._store = store
        self._duration_s = duration_s
        self._read_fn = read_fn
        self._write_fn = write_fn
        # Scoped to this trial; only writers ever see it.
        self._write_lock = lock_factory() if config.mutex else None

        self._cancel = threading.Event()
        self._timer: threading.Timer | None = None
        self._errors: list[tuple[str, Exception]] = []
        self._start_errors: list[Exception] = []
        self._errors_lock = threading.Lock()
        self._workers = self._build_workers()
        self._barrier = threading.Barrier(len(self._workers) + 1, action=self._arm_cancellation)
        self._started_at: float | None = None
        self.elapsed_s = 0.0

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    def run(self) -> TrialCounts:
        LOGGER.debug("starting trial %s with %d workers", self._config, len(self._workers))
        threads: list[threading.Thread] = []
        try:
            for worker in self._workers:
                thread = threading.Thread(
                    target=self._run_worker,
                    args=(worker,),
                    name=worker.name,
                )
                thread.start()
                threads.append(thread)
        except BaseException:
            self._barrier.abort()
            self._join(threads)
            raise

        start_error: Exception | None = None
        try:
            self._barrier.wait()
        except Exception as exc:  # noqa: BLE001
            # Broken barrier, or the cancellation timer could not be armed.
            start_error = exc
            self._barrier.abort()

        self._join(threads)
        if self._started_at is not None:
            self.elapsed_s = time.monotonic() - self._started_at

        if self._start_errors:
            start_error = self._start_errors[0]
        if start_error is not None:
            LOGGER.error("trial failed to start: %s", start_error)
            raise TrialStartError(f"trial failed to start: {start_error}") from start_error

        if self._errors:
            worker, cause = self._errors[0]
            LOGGER.error("trial aborted after %.3fs: %s: %s", self.elapsed_s, worker, cause)
            raise WorkloadError(worker, cause) from cause

        counts = TrialCounts(
            reads=sum(w.count for w in self._workers if w.role == READER),
            writes=sum(w.count for w in self._workers if w.role == WRITER),
        )
        LOGGER.info(
            "trial finished in %.3fs: reads=%d writes=%d",
            self.elapsed_s,
            counts.reads,
            counts.writes,
        )
        return counts

    def _join(self, threads: list[threading.Thread]) -> None:
        for thread in threads:
            thread.join()
        if self._timer is not None:
            self._timer.cancel()

    def _build_workers(self) -> list[_Worker]:
        workers = [
            _Worker(name=f"{READER}-{idx}", role=READER, unit=self._read_unit)
            for idx in range(self._config.readers)
        ]
        workers.extend(
            _Worker(name=f"{WRITER}-{idx}", role=WRITER, unit=self._write_unit)
            for idx in range(self._config.writers)
        )
        return workers

    def _arm_cancellation(self) -> None:
        self._timer = threading.Timer(self._duration_s, self._cancel.set)
        self._timer.daemon = True
        self._started_at = time.monotonic()
        self._timer.start()

    def _run_worker(self, worker: _Worker) -> None:
        try:
            self._barrier.wait()
        except threading.BrokenBarrierError:
            return
        except Exception as exc:  # noqa: BLE001
            # This worker ran the barrier action and it failed.
            with self._errors_lock:
                self._start_errors.append(exc)
            return

        try:
            while not self._cancel.is_set():
                worker.unit()
                worker.count += 1
        except Exception as exc:  # noqa: BLE001
            with self._errors_lock:
                self._errors.append((worker.name, exc))
            self._cancel.set()

    def _read_unit(self) -> None:
        self._read_fn(self._store)

    def _write_unit(self) -> None:
        payload = rand_string(DATA_LEN)
        if self._write_lock is None:
            self._write_fn(self._store, payload)
            return
        with self._write_lock:
            self._write_fn(self._store, payload)


def run_trial(config: TrialConfig, store: StoreHandle, duration_s: float) -> TrialCounts:
    """Run ``config`` against ``store`` for ``duration_s`` seconds."""
    return TrialDriver(config, store, duration_s).run()


__all__ = [
    "TrialCounts",
    "TrialDriver",
    "TrialStartError",
    "WorkloadError",
    "run_trial",
]
