"""
Concurrent SQLite throughput benchmark.

Runs a table of trials, each spinning up reader and writer threads against a
freshly seeded database file, and reports reads and writes per second for
every journal mode, synchronous level, pool size and writer-mutex combination.
"""

from .benchmarks import Section, TrialConfig, TrialPlan, default_trial_plan, run_trial
from .store import open_store

__all__ = [
    "Section",
    "TrialConfig",
    "TrialPlan",
    "default_trial_plan",
    "open_store",
    "run_trial",
]
