from __future__ import annotations

import dataclasses

import pytest

from sqlitebench.benchmarks.config import Section, TrialConfig, TrialPlan, default_trial_plan


def test_description_matches_output_format():
    config = TrialConfig(wal=True, sync="normal", conns=2, readers=10, writers=100, mutex=True)

    assert str(config) == "readers=10  writers=100 WAL=Y sync=NORMAL conns=2 mutex=Y"


def test_sync_is_normalised_to_upper_case():
    assert TrialConfig(readers=1, sync="full").sync == "FULL"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"readers": 0, "writers": 0},
        {"readers": -1, "writers": 2},
        {"readers": 1, "conns": -1},
        {"readers": 1, "sync": "EXTRA"},
    ],
)
def test_invalid_configs_are_rejected(kwargs):
    with pytest.raises(ValueError):
        TrialConfig(**kwargs)


def test_config_is_immutable():
    config = TrialConfig(readers=1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.readers = 2


def test_section_requires_label():
    with pytest.raises(ValueError):
        Section("")


def test_default_plan_layout():
    plan = default_trial_plan()

    sections = [entry.label for entry in plan if isinstance(entry, Section)]
    assert sections == ["Read only", "Write only", "Read Heavy", "Write Heavy"]
    assert len(plan.trials()) == 25
    assert all(config.workers >= 1 for config in plan.trials())


def test_default_plan_mixed_sections():
    entries = list(default_trial_plan())
    start = entries.index(Section("Read Heavy"))

    assert entries[start + 1 : start + 5] == [
        TrialConfig(wal=True, readers=100, writers=10, sync="NORMAL", conns=1),
        TrialConfig(wal=True, readers=100, writers=10, sync="NORMAL", conns=0),
        TrialConfig(wal=True, readers=100, writers=10, sync="NORMAL", conns=1, mutex=True),
        TrialConfig(wal=True, readers=100, writers=10, sync="NORMAL", conns=0, mutex=True),
    ]


def test_plan_iterates_in_order():
    entries = [Section("A"), TrialConfig(readers=1), Section("B"), TrialConfig(writers=1)]
    plan = TrialPlan(entries=entries)

    assert list(plan) == entries
    assert plan.trials() == [TrialConfig(readers=1), TrialConfig(writers=1)]
