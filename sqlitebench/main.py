from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, TextIO

from .benchmarks.collector import ResultReporter, TrialResult
from .benchmarks.config import Section, TrialConfig, TrialPlan, default_trial_plan
from .benchmarks.trial import TrialDriver
from .store import BenchmarkError, StoreHandle, open_store

LOGGER = logging.getLogger("sqlitebench")

DEFAULT_LOG_LEVEL = "WARNING"


def positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {parsed}")
    return parsed


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sqlitebench",
        description="Measure concurrent SQLite read/write throughput across configurations",
    )
    parser.add_argument(
        "-t",
        "--duration",
        type=positive_int,
        default=1,
        help="per test duration in seconds (default: 1)",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run_plan(
    plan: TrialPlan,
    duration_s: int,
    reporter: ResultReporter,
    store_factory: Callable[[TrialConfig], StoreHandle] | None = None,
    driver_factory: Callable[[TrialConfig, StoreHandle, float], TrialDriver] | None = None,
) -> None:
    """Execute every trial in ``plan`` in order, printing sections as they come.

    The first error stops the plan; nothing is reported for the failing trial.
    """
    store_factory = store_factory or open_store
    driver_factory = driver_factory or TrialDriver

    reporter.banner()
    for entry in plan:
        if isinstance(entry, Section):
            reporter.section(entry)
            continue

        LOGGER.info("Running trial %s for %ds", entry, duration_s)
        with store_factory(entry) as store:
            driver = driver_factory(entry, store, duration_s)
            counts = driver.run()
        reporter.record(
            TrialResult(
                config=entry,
                reads=counts.reads,
                writes=counts.writes,
                duration_s=duration_s,
                elapsed_s=driver.elapsed_s,
            )
        )


def write_artifacts(reporter: ResultReporter, output_dir: Path) -> None:
    # Charts pull in matplotlib, only pay for it when artefacts are requested.
    from .benchmarks.charts import render_section_charts

    reporter.write_csv(output_dir)
    render_section_charts(reporter.build_dataframe(), output_dir)


def run(
    argv: list[str] | None = None,
    plan: TrialPlan | None = None,
    stdout: TextIO | None = None,
) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    env = os.environ
    setup_logging(env.get("SQLITEBENCH_LOG_LEVEL", DEFAULT_LOG_LEVEL))
    output_dir_value = env.get("SQLITEBENCH_OUTPUT_DIR")

    reporter = ResultReporter(stdout or sys.stdout)
    try:
        run_plan(plan if plan is not None else default_trial_plan(), args.duration, reporter)
    except BenchmarkError as exc:
        LOGGER.debug("benchmark aborted", exc_info=True)
        print(f"fatal: {exc}", file=sys.stderr)
        return 1

    if output_dir_value:
        write_artifacts(reporter, Path(output_dir_value))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
