from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

SYNC_LEVELS: tuple[str, ...] = ("OFF", "NORMAL", "FULL")


@dataclass(frozen=True)
class Section:
    """Heading inside a trial plan. Printed, never executed."""

    label: str

    def __post_init__(self) -> None:
        if not self.label:
            raise ValueError("Section label must not be empty")


@dataclass(frozen=True)
class TrialConfig:
    """Single timed trial: SQLite options plus the worker population."""

    wal: bool = False
    sync: str = "NORMAL"
    conns: int = 0
    readers: int = 0
    writers: int = 0
    mutex: bool = False

    def __post_init__(self) -> None:
        sync = self.sync.upper()
        if sync not in SYNC_LEVELS:
            raise ValueError(f"sync must be one of {', '.join(SYNC_LEVELS)}, got {self.sync!r}")
        object.__setattr__(self, "sync", sync)
        if self.conns < 0:
            raise ValueError("conns must be >= 0")
        if self.readers < 0 or self.writers < 0:
            raise ValueError("readers and writers must be >= 0")
        if self.readers + self.writers < 1:
            raise ValueError("TrialConfig needs at least one reader or writer")

    @property
    def workers(self) -> int:
        return self.readers + self.writers

    def __str__(self) -> str:
        return (
            f"readers={self.readers:<3d} writers={self.writers:<3d} "
            f"WAL={_yes_no(self.wal)} sync={self.sync} conns={self.conns} "
            f"mutex={_yes_no(self.mutex)}"
        )


PlanEntry = Union[Section, TrialConfig]


@dataclass
class TrialPlan:
    """Ordered trials, with optional section headings between them."""

    entries: list[PlanEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def trials(self) -> list[TrialConfig]:
        return [entry for entry in self.entries if isinstance(entry, TrialConfig)]


def default_trial_plan() -> TrialPlan:
    """Return the default contention suite."""

    entries: list[PlanEntry] = [
        Section("Read only"),
        TrialConfig(wal=True, readers=1, sync="NORMAL", conns=1),
        TrialConfig(wal=True, readers=1, sync="NORMAL", conns=0),
        TrialConfig(wal=True, readers=10, sync="NORMAL", conns=1),
        TrialConfig(wal=True, readers=10, sync="NORMAL", conns=0),
        TrialConfig(wal=True, readers=100, sync="NORMAL", conns=0),
        TrialConfig(wal=True, readers=100, sync="NORMAL", conns=1),
        TrialConfig(wal=True, readers=100, sync="NORMAL", conns=2),
        Section("Write only"),
        TrialConfig(wal=False, writers=100, sync="NORMAL", conns=0),
        TrialConfig(wal=True, writers=100, sync="FULL", conns=0),
        TrialConfig(wal=True, writers=1, sync="NORMAL", conns=1),
        TrialConfig(wal=True, writers=1, sync="NORMAL", conns=0),
        TrialConfig(wal=True, writers=10, sync="NORMAL", conns=1),
        TrialConfig(wal=True, writers=10, sync="NORMAL", conns=0),
        TrialConfig(wal=True, writers=100, sync="NORMAL", conns=1),
        TrialConfig(wal=True, writers=100, sync="NORMAL", conns=0),
        TrialConfig(wal=True, writers=100, sync="NORMAL", conns=1, mutex=True),
        TrialConfig(wal=True, writers=100, sync="NORMAL", conns=0, mutex=True),
    ]

    # Mixed workloads sweep pool size and the writer mutex for each ratio.
    for label, readers, writers in (("Read Heavy", 100, 10), ("Write Heavy", 10, 100)):
        entries.append(Section(label))
        entries.extend(
            TrialConfig(
                wal=True,
                readers=readers,
                writers=writers,
                sync="NORMAL",
                conns=conns,
                mutex=mutex,
            )
            for mutex in (False, True)
            for conns in (1, 0)
        )

    return TrialPlan(entries=entries)


def _yes_no(value: bool) -> str:
    return "Y" if value else "N"
