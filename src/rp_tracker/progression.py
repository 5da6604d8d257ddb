"""Progression logic for RP-style mesocycles."""

import logging
import math
from collections.abc import Sequence
from datetime import UTC, datetime

from .categories import base_rest_seconds, base_weight
from .schemas import (
    Exercise,
    ExerciseCategory,
    MesocyclePhase,
    MesocycleSettings,
    ProgressionRecommendation,
    ProgressionState,
    ProgressionType,
    VolumeLandmark,
    WorkoutLog,
)

logger = logging.getLogger(__name__)

TREND_WINDOW = 3
FATIGUE_WEIGHTS = (0.5, 0.3, 0.2)
FATIGUE_WEIGHT_TAIL = 0.1
DEFAULT_ROLLING_FATIGUE = 2.0

# (mev, mav, mrv, deload_frequency_weeks, weight_increment)
CATEGORY_DEFAULTS: dict[ExerciseCategory, tuple[int, int, int, int, float]] = {
    ExerciseCategory.LEGS: (4, 8, 12, 4, 5.0),
    ExerciseCategory.PUSH: (3, 6, 10, 4, 2.5),
    ExerciseCategory.PULL: (3, 6, 10, 4, 2.5),
    ExerciseCategory.CORE: (2, 4, 6, 6, 2.5),
}

# Absolute set counts used to reclassify the volume landmark after a session.
MRV_SET_COUNT = 8
MAV_SET_COUNT = 5

REST_ADJUSTMENT = {
    ProgressionType.WEIGHT: 30,
    ProgressionType.VOLUME: 15,
    ProgressionType.DELOAD: -15,
    ProgressionType.MAINTAIN: 0,
}


def round_half(value: float) -> float:
    """Round to the nearest 0.5, halves going up."""
    return math.floor(value * 2 + 0.5) / 2


def get_rest_time(progression_type: ProgressionType, exercise_name: str) -> int:
    return base_rest_seconds(exercise_name) + REST_ADJUSTMENT[progression_type]


def calculate_rolling_fatigue(logs: Sequence[WorkoutLog]) -> float:
    """
    Weighted blend of fatigue + soreness over the most recent sessions.

    ``logs`` is chronological; the newest of the last three carries weight 0.5,
    then 0.3 and 0.2.
    """
    if not logs:
        return DEFAULT_ROLLING_FATIGUE
    weighted_sum = 0.0
    total_weight = 0.0
    for i, log in enumerate(reversed(logs[-TREND_WINDOW:])):
        weight = FATIGUE_WEIGHTS[i] if i < len(FATIGUE_WEIGHTS) else FATIGUE_WEIGHT_TAIL
        weighted_sum += (log.fatigue + log.soreness) * weight
        total_weight += weight
    return weighted_sum / total_weight


def determine_mesocycle_phase(current_week: int, settings: MesocycleSettings) -> MesocyclePhase:
    position = current_week % (settings.deload_frequency_weeks + 1)
    if position == 0:
        return MesocyclePhase.DELOAD
    if position <= 2:
        return MesocyclePhase.ACCUMULATION
    if position <= 4:
        return MesocyclePhase.INTENSIFICATION
    return MesocyclePhase.RESET


def should_deload(
    logs: Sequence[WorkoutLog], state: ProgressionState, settings: MesocycleSettings
) -> bool:
    if len(logs) < 2:
        return False
    recent = logs[-TREND_WINDOW:]

    rir_exhausted = all(log.avg_rir <= 0 for log in recent)
    sustained_fatigue = all(log.fatigue >= 4 or log.soreness >= 4 for log in recent[-2:])
    performance_decline = (
        len(recent) >= TREND_WINDOW and recent[-1].performance < recent[0].performance - 1
    )
    block_complete = state.consecutive_weeks_progressing >= settings.deload_frequency_weeks
    at_mrv = state.volume_landmark == VolumeLandmark.MRV

    logger.debug(
        "Checking deload: exercise=%s rir_exhausted=%s fatigue=%s decline=%s "
        "block_complete=%s at_mrv=%s",
        state.exercise_id,
        rir_exhausted,
        sustained_fatigue,
        performance_decline,
        block_complete,
        at_mrv,
    )
    return rir_exhausted or sustained_fatigue or performance_decline or block_complete or at_mrv


def determine_progression_type(
    latest: WorkoutLog, state: ProgressionState, settings: MesocycleSettings
) -> ProgressionType:
    fatigue_high = latest.fatigue >= 4 or latest.soreness >= 4
    performance_good = latest.performance >= 4

    if fatigue_high:
        return ProgressionType.DELOAD if latest.avg_rir <= 0 else ProgressionType.MAINTAIN
    if performance_good and latest.avg_rir > 3:
        # Too easy: push intensity
        return ProgressionType.WEIGHT
    if performance_good and 1 <= latest.avg_rir <= 2:
        if state.previous_sets < settings.mav_sets:
            return ProgressionType.VOLUME
        return ProgressionType.WEIGHT
    if latest.avg_rir <= 0:
        if state.consecutive_weeks_progressing >= 2:
            return ProgressionType.DELOAD
        return ProgressionType.MAINTAIN
    return ProgressionType.MAINTAIN


def _deload_reasoning(log: WorkoutLog) -> str:
    reasons = []
    if log.avg_rir <= 0:
        reasons.append("RIR at zero - approaching failure")
    if log.fatigue >= 4:
        reasons.append("high fatigue levels")
    if log.soreness >= 4:
        reasons.append("high soreness levels")
    if log.performance <= 2:
        reasons.append("declining performance")
    if not reasons:
        reasons.append("scheduled deload for recovery")
    return f"Deload recommended due to: {', '.join(reasons)}."


def _beginner_recommendation(
    exercise_id: str, exercise_name: str, settings: MesocycleSettings
) -> ProgressionRecommendation:
    return ProgressionRecommendation(
        exercise_id=exercise_id,
        exercise_name=exercise_name,
        recommended_sets=settings.mev_sets,
        recommended_weight=base_weight(exercise_name),
        target_rir=3,
        target_reps=8,
        rest_time=90,
        progression_type=ProgressionType.MAINTAIN,
        confidence=0.8,
        reasoning="Starting recommendation for new exercise",
        deload_week=False,
        mesocycle_phase=MesocyclePhase.ACCUMULATION,
    )


def _deload_recommendation(
    exercise_id: str, exercise_name: str, latest: WorkoutLog
) -> ProgressionRecommendation:
    return ProgressionRecommendation(
        exercise_id=exercise_id,
        exercise_name=exercise_name,
        recommended_sets=max(1, math.floor(latest.sets * 0.5)),
        recommended_weight=round_half(latest.weight * 0.7),
        target_rir=4,
        target_reps=latest.avg_reps,
        rest_time=get_rest_time(ProgressionType.DELOAD, exercise_name),
        progression_type=ProgressionType.DELOAD,
        confidence=0.95,
        reasoning=_deload_reasoning(latest),
        deload_week=True,
        mesocycle_phase=MesocyclePhase.DELOAD,
    )


def _progression_recommendation(
    exercise_id: str,
    exercise_name: str,
    latest: WorkoutLog,
    state: ProgressionState,
    settings: MesocycleSettings,
    progression_type: ProgressionType,
) -> ProgressionRecommendation:
    sets = latest.sets
    weight = latest.weight
    target_rir = 2

    if progression_type == ProgressionType.WEIGHT:
        weight = round_half(latest.weight + settings.weight_increment)
        reasoning = (
            f"Good recovery and high RIR ({latest.avg_rir:g}). "
            f"Increasing weight by {settings.weight_increment:g}kg."
        )
        confidence = 0.9
    elif progression_type == ProgressionType.VOLUME:
        sets = min(latest.sets + 1, settings.mav_sets)
        reasoning = (
            f"Good performance in RIR range ({latest.avg_rir:g}). "
            "Adding one set for volume progression."
        )
        confidence = 0.85
    elif progression_type == ProgressionType.DELOAD:
        # Zero RIR without a deload trigger: hold the load, flag the type only
        reasoning = ""
        confidence = 0.8
    else:
        reasoning = (
            f"Maintaining current load. RIR: {latest.avg_rir:g}, Fatigue: {latest.fatigue}"
        )
        confidence = 0.75

    if state.volume_landmark == VolumeLandmark.MRV:
        target_rir = max(1, target_rir - 1)
    elif state.volume_landmark == VolumeLandmark.MEV:
        target_rir = min(3, target_rir + 1)

    return ProgressionRecommendation(
        exercise_id=exercise_id,
        exercise_name=exercise_name,
        recommended_sets=sets,
        recommended_weight=weight,
        target_rir=target_rir,
        target_reps=latest.avg_reps,
        rest_time=get_rest_time(progression_type, exercise_name),
        progression_type=progression_type,
        confidence=confidence,
        reasoning=reasoning,
        deload_week=False,
        mesocycle_phase=determine_mesocycle_phase(state.current_mesocycle_week, settings),
    )


def generate_recommendation(
    exercise_id: str,
    exercise_name: str,
    logs: Sequence[WorkoutLog],
    state: ProgressionState,
    settings: MesocycleSettings,
) -> ProgressionRecommendation:
    """
    Recommend the next session for one exercise.

    ``logs`` must be ordered oldest to newest and may be empty. ``state`` and
    ``settings`` are the exercise's current records; both are required.
    """
    if state is None or settings is None:
        raise ValueError(f"progression state and settings are required for {exercise_id}")

    if not logs:
        logger.debug("No history for %s, using beginner recommendation", exercise_id)
        return _beginner_recommendation(exercise_id, exercise_name, settings)

    latest = logs[-1]
    if should_deload(logs, state, settings):
        return _deload_recommendation(exercise_id, exercise_name, latest)

    progression_type = determine_progression_type(latest, state, settings)
    logger.debug(
        "Progression for %s: type=%s rir=%s fatigue=%s soreness=%s performance=%s",
        exercise_id,
        progression_type.value,
        latest.avg_rir,
        latest.fatigue,
        latest.soreness,
        latest.performance,
    )
    return _progression_recommendation(
        exercise_id, exercise_name, latest, state, settings, progression_type
    )


def classify_volume_landmark(
    sets: int, settings: MesocycleSettings | None = None
) -> VolumeLandmark:
    """
    Landmark for a session's set count.

    Without ``settings`` the fixed absolute thresholds apply (8+ sets MRV, 5+
    MAV); with them the exercise's own mav/mrv thresholds are used.
    """
    mrv, mav = (
        (settings.mrv_sets, settings.mav_sets) if settings else (MRV_SET_COUNT, MAV_SET_COUNT)
    )
    if sets >= mrv:
        return VolumeLandmark.MRV
    if sets >= mav:
        return VolumeLandmark.MAV
    return VolumeLandmark.MEV


def update_progression_state(
    current_state: ProgressionState,
    new_log: WorkoutLog,
    recommendation: ProgressionRecommendation,
    settings: MesocycleSettings | None = None,
) -> ProgressionState:
    """
    Fold a completed session into the next state record.

    The rolling fatigue score is recomputed from ``new_log`` alone, so it can
    differ from the three-session blend used when the recommendation was made.
    """
    changes: dict = {
        "previous_sets": new_log.sets,
        "previous_weight": new_log.weight,
        "previous_rir_avg": new_log.avg_rir,
        "rolling_fatigue_score": calculate_rolling_fatigue([new_log]),
        "updated_at": datetime.now(UTC),
    }
    if recommendation.deload_week:
        changes.update(
            current_mesocycle_week=1,
            consecutive_weeks_progressing=0,
            last_deload_date=new_log.date,
            volume_landmark=VolumeLandmark.MEV,
        )
    else:
        progressing = current_state.consecutive_weeks_progressing
        if recommendation.progression_type != ProgressionType.MAINTAIN:
            progressing += 1
        changes.update(
            current_mesocycle_week=current_state.current_mesocycle_week + 1,
            consecutive_weeks_progressing=progressing,
            volume_landmark=classify_volume_landmark(new_log.sets, settings),
        )
    logger.debug(
        "Updated state for %s: week=%s landmark=%s progressing=%s",
        current_state.exercise_id,
        changes["current_mesocycle_week"],
        changes["volume_landmark"].value,
        changes["consecutive_weeks_progressing"],
    )
    return current_state.model_copy(update=changes)


def get_default_mesocycle_settings(exercise: Exercise) -> MesocycleSettings:
    mev, mav, mrv, deload_weeks, increment = CATEGORY_DEFAULTS.get(
        exercise.category, CATEGORY_DEFAULTS[ExerciseCategory.PUSH]
    )
    return MesocycleSettings(
        exercise_id=exercise.id,
        mev_sets=mev,
        mav_sets=mav,
        mrv_sets=mrv,
        deload_frequency_weeks=deload_weeks,
        target_rir_range=(1, 3),
        weight_increment=increment,
    )
