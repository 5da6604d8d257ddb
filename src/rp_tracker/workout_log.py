"""Build engine-ready workout logs from raw set entries."""

import math
from collections.abc import Sequence
from datetime import date

from .schemas import SetEntry, WorkoutLog

DEFAULT_RIR = 3.0
DEFAULT_FATIGUE = 2
DEFAULT_SORENESS = 2
DEFAULT_PUMP = 3
DEFAULT_PERFORMANCE = 3


def _round_half_up(value: float, ndigits: int = 0) -> float:
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def build_workout_log(
    exercise_id: str,
    session_date: date,
    sets: Sequence[SetEntry],
    fatigue: int | None = None,
    soreness: int | None = None,
    pump: int | None = None,
    performance: int | None = None,
) -> WorkoutLog:
    """
    Summarize one session of an exercise.

    Sets without a recorded RIR count as RIR 3. Missing session ratings fall
    back to neutral values (fatigue and soreness 2, pump and performance 3).
    """
    if not sets:
        raise ValueError(f"cannot build a workout log for {exercise_id} without sets")

    avg_reps = sum(s.reps for s in sets) / len(sets)
    avg_rir = sum(DEFAULT_RIR if s.rir is None else s.rir for s in sets) / len(sets)

    return WorkoutLog(
        exercise_id=exercise_id,
        date=session_date,
        sets=len(sets),
        avg_reps=int(_round_half_up(avg_reps)),
        weight=max(s.weight for s in sets),
        avg_rir=_round_half_up(avg_rir, 1),
        fatigue=fatigue if fatigue is not None else DEFAULT_FATIGUE,
        soreness=soreness if soreness is not None else DEFAULT_SORENESS,
        pump=pump if pump is not None else DEFAULT_PUMP,
        performance=performance if performance is not None else DEFAULT_PERFORMANCE,
    )
