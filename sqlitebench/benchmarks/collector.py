from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TextIO

import pandas as pd

from .config import Section, TrialConfig

LOGGER = logging.getLogger("sqlitebench.report")

RESULTS_BANNER = "Results are in reads/writes per second"
DESCRIPTION_WIDTH = 57

RESULT_COLUMNS = [
    "section",
    "description",
    "wal",
    "sync",
    "conns",
    "readers",
    "writers",
    "mutex",
    "reads",
    "writes",
    "duration_s",
    "elapsed_s",
    "read_rate",
    "write_rate",
    "total_rate",
]


@dataclass(frozen=True)
class TrialResult:
    config: TrialConfig
    reads: int
    writes: int
    duration_s: int
    elapsed_s: float

    @property
    def read_rate(self) -> int:
        return self.reads // self.duration_s

    @property
    def write_rate(self) -> int:
        return self.writes // self.duration_s

    @property
    def total_rate(self) -> int:
        return (self.reads + self.writes) // self.duration_s


def format_section(section: Section) -> str:
    return f"\n=={section.label}=="


def format_result(result: TrialResult) -> str:
    description = str(result.config)
    return (
        f"{description:<{DESCRIPTION_WIDTH}} |   read:{result.read_rate:7d}, "
        f"write:{result.write_rate:7d}, total:{result.total_rate:7d}"
    )


class ResultReporter:
    """Prints trial results as they arrive and keeps them for the final table."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._section: str | None = None
        self._rows: list[dict[str, Any]] = []

    def banner(self) -> None:
        self._write(RESULTS_BANNER)

    def section(self, section: Section) -> None:
        self._section = section.label
        self._write(format_section(section))

    def record(self, result: TrialResult) -> None:
        config = result.config
        row = {
            "section": self._section,
            "description": str(config),
            "wal": config.wal,
            "sync": config.sync,
            "conns": config.conns,
            "readers": config.readers,
            "writers": config.writers,
            "mutex": config.mutex,
            "reads": result.reads,
            "writes": result.writes,
            "duration_s": result.duration_s,
            "elapsed_s": result.elapsed_s,
            "read_rate": result.read_rate,
            "write_rate": result.write_rate,
            "total_rate": result.total_rate,
        }
        self._rows.append(row)
        self._write(format_result(result))

    def build_dataframe(self) -> pd.DataFrame:
        if not self._rows:
            return pd.DataFrame(columns=RESULT_COLUMNS)
        return pd.DataFrame(self._rows, columns=RESULT_COLUMNS)

    def write_csv(self, output_dir: Path) -> Path:
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / "results.csv"
        df = self.build_dataframe()
        df.to_csv(path, index=False)
        LOGGER.info("Saved %d results to %s", len(df), path)
        return path

    def _write(self, line: str) -> None:
        print(line, file=self._stream, flush=True)


__all__ = [
    "RESULTS_BANNER",
    "RESULT_COLUMNS",
    "TrialResult",
    "ResultReporter",
    "format_result",
    "format_section",
]
