from datetime import date

import pytest

from rp_tracker.schemas import SetEntry
from rp_tracker.workout_log import build_workout_log


def test_build_workout_log_summarizes_sets():
    sets = [
        SetEntry(weight=60, reps=8, rir=2),
        SetEntry(weight=62.5, reps=7, rir=1),
        SetEntry(weight=62.5, reps=6, rir=1),
    ]
    log = build_workout_log(
        "bench", date(2026, 2, 1), sets, fatigue=3, soreness=2, pump=4, performance=5
    )
    assert log.sets == 3
    assert log.avg_reps == 7
    assert log.weight == 62.5
    assert log.avg_rir == pytest.approx(1.3)
    assert (log.fatigue, log.soreness, log.pump, log.performance) == (3, 2, 4, 5)


def test_missing_rir_and_ratings_use_defaults():
    sets = [SetEntry(weight=40, reps=10), SetEntry(weight=40, reps=9, rir=2)]
    log = build_workout_log("row", date(2026, 2, 1), sets)
    assert log.avg_rir == pytest.approx(2.5)
    assert log.avg_reps == 10  # 9.5 rounds up
    assert (log.fatigue, log.soreness, log.pump, log.performance) == (2, 2, 3, 3)


def test_zero_rir_is_kept():
    log = build_workout_log("row", date(2026, 2, 1), [SetEntry(weight=40, reps=5, rir=0)])
    assert log.avg_rir == 0


def test_empty_sets_rejected():
    with pytest.raises(ValueError):
        build_workout_log("row", date(2026, 2, 1), [])


def test_log_is_immutable():
    log = build_workout_log("row", date(2026, 2, 1), [SetEntry(weight=40, reps=5)])
    with pytest.raises(Exception):
        log.sets = 4  # type: ignore[misc]
