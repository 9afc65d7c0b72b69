"""
Trial harness for the SQLite benchmark.

This package holds the configuration table, the timed trial driver that runs
readers and writers against one store, and the reporting of their throughput.
"""

from .config import Section, TrialConfig, TrialPlan, default_trial_plan
from .trial import TrialCounts, TrialDriver, TrialStartError, WorkloadError, run_trial

__all__ = [
    "Section",
    "TrialConfig",
    "TrialPlan",
    "default_trial_plan",
    "TrialCounts",
    "TrialDriver",
    "TrialStartError",
    "WorkloadError",
    "run_trial",
]
