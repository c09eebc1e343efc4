"""Tests for the synthetic log source."""

import random

import pytest

from effort_engine.core.effort_analyzer import analyze
from effort_engine.services.synthetic_logs import (
    ACTIVITY_MIX,
    LOG_TYPE_API_GATEWAY,
    LOG_TYPE_ERROR,
    SyntheticLogSource,
)

NOW_MS = 1_700_000_000_000


def _source(**kwargs):
    return SyntheticLogSource(clock=lambda: NOW_MS, **kwargs)


def test_same_arguments_same_events():
    first = _source(effort_level=3, seed=11).fetch("client-1", 24)
    second = _source(effort_level=3, seed=11).fetch("client-1", 24)

    assert first == second


@pytest.mark.parametrize("level", [-1, 6])
def test_effort_level_out_of_range(level):
    with pytest.raises(ValueError, match="effort_level"):
        SyntheticLogSource(effort_level=level)


def test_activity_mix_size_and_window():
    events = _source().fetch("client-1", 24)

    assert len(events) == sum(ACTIVITY_MIX.values())
    assert all(NOW_MS - 24 * 3_600_000 < e.timestamp <= NOW_MS for e in events)
    assert [e.timestamp for e in events] == sorted(e.timestamp for e in events)


def test_activity_logs_carry_subject_and_fields():
    events = _source().fetch("client-9", 24)

    assert all(e.fields.get("user_id") == "client-9" for e in events)
    assert any(e.fields.get("path") == "/api/users" for e in events)


def test_sample_logs_unknown_type():
    with pytest.raises(ValueError, match="Unsupported log type"):
        _source().sample_logs("client-1", "kernel", 1, NOW_MS, random.Random(0))


def test_sample_logs_types():
    source = _source()
    rng = random.Random(0)

    api = source.sample_logs("client-1", LOG_TYPE_API_GATEWAY, 3, NOW_MS, rng)
    errors = source.sample_logs("client-1", LOG_TYPE_ERROR, 2, NOW_MS, rng)

    assert len(api) == 3
    assert '"path":"/api/users"' in api[0]
    assert all("[ERROR]" in line for line in errors)


def test_high_effort_session_ends_now():
    events = _source(effort_level=2).fetch("client-1", 24)

    assert events[-1].timestamp == NOW_MS
    assert len({e.timestamp for e in events}) == len(events)


def test_higher_level_means_higher_effort():
    low = analyze(_source(effort_level=1).fetch("client-1", 24))
    high = analyze(_source(effort_level=5).fetch("client-1", 24))

    assert high.effort_score > low.effort_score
    assert high.high_effort is True
    assert high.repeated_click_count > 0
    assert high.channel_switch_count >= 2
