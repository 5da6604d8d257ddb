from datetime import date

import pytest

from rp_tracker.progression import (
    calculate_rolling_fatigue,
    classify_volume_landmark,
    generate_recommendation,
    update_progression_state,
)
from rp_tracker.schemas import (
    MesocycleSettings,
    ProgressionState,
    ProgressionType,
    VolumeLandmark,
    WorkoutLog,
)

SETTINGS = MesocycleSettings(
    exercise_id="row",
    mev_sets=3,
    mav_sets=6,
    mrv_sets=10,
    deload_frequency_weeks=4,
    weight_increment=2.5,
)


def make_log(day: int, **overrides) -> WorkoutLog:
    fields = {
        "exercise_id": "row",
        "date": date(2026, 3, day),
        "sets": 4,
        "avg_reps": 10,
        "weight": 60.0,
        "avg_rir": 2.0,
        "fatigue": 2,
        "soreness": 3,
        "pump": 4,
        "performance": 4,
    }
    fields.update(overrides)
    return WorkoutLog(**fields)


def recommend(logs, state):
    return generate_recommendation("row", "Barbell Row", logs, state, SETTINGS)


def test_progressing_session_advances_week():
    state = ProgressionState.initial("row")
    log = make_log(2)
    rec = recommend([log], state)
    assert rec.progression_type == ProgressionType.VOLUME

    updated = update_progression_state(state, log, rec)
    assert updated.current_mesocycle_week == 2
    assert updated.consecutive_weeks_progressing == 1
    assert updated.previous_sets == 4
    assert updated.previous_weight == 60.0
    assert updated.previous_rir_avg == 2.0
    assert updated.volume_landmark == VolumeLandmark.MEV
    assert updated.updated_at >= state.updated_at
    # The input record is left untouched
    assert state.current_mesocycle_week == 1
    assert state.previous_weight == 0


def test_maintain_does_not_count_as_progressing():
    state = ProgressionState.initial("row").model_copy(
        update={"consecutive_weeks_progressing": 2}
    )
    log = make_log(2, performance=3, avg_rir=3)
    rec = recommend([log], state)
    assert rec.progression_type == ProgressionType.MAINTAIN

    updated = update_progression_state(state, log, rec)
    assert updated.current_mesocycle_week == 2
    assert updated.consecutive_weeks_progressing == 2


def test_deload_resets_mesocycle():
    state = ProgressionState.initial("row").model_copy(
        update={
            "current_mesocycle_week": 5,
            "consecutive_weeks_progressing": 4,
            "volume_landmark": VolumeLandmark.MAV,
        }
    )
    logs = [make_log(2), make_log(9)]
    rec = recommend(logs, state)
    assert rec.deload_week

    deload_log = make_log(16, sets=2, weight=42.0)
    updated = update_progression_state(state, deload_log, rec)
    assert updated.current_mesocycle_week == 1
    assert updated.consecutive_weeks_progressing == 0
    assert updated.volume_landmark == VolumeLandmark.MEV
    assert updated.last_deload_date == date(2026, 3, 16)
    assert updated.previous_weight == 42.0


@pytest.mark.parametrize(
    "sets,landmark",
    [
        (3, VolumeLandmark.MEV),
        (5, VolumeLandmark.MAV),
        (7, VolumeLandmark.MAV),
        (8, VolumeLandmark.MRV),
    ],
)
def test_landmark_uses_absolute_set_counts(sets, landmark):
    state = ProgressionState.initial("row")
    log = make_log(2, sets=sets, performance=3, avg_rir=3)
    updated = update_progression_state(state, log, recommend([log], state))
    assert updated.volume_landmark == landmark


def test_landmark_can_follow_exercise_settings():
    # Absolute thresholds would call 6 sets MAV and 9 sets MRV; these settings do not.
    wide = SETTINGS.model_copy(update={"mav_sets": 7, "mrv_sets": 12})
    assert classify_volume_landmark(6, wide) == VolumeLandmark.MEV
    assert classify_volume_landmark(9, wide) == VolumeLandmark.MAV
    assert classify_volume_landmark(12, wide) == VolumeLandmark.MRV

    state = ProgressionState.initial("row")
    log = make_log(2, sets=9, performance=3, avg_rir=3)
    rec = recommend([log], state)
    assert update_progression_state(state, log, rec).volume_landmark == VolumeLandmark.MRV
    assert (
        update_progression_state(state, log, rec, settings=wide).volume_landmark
        == VolumeLandmark.MAV
    )


def test_stored_rolling_fatigue_only_reflects_newest_session():
    # The recommendation blends the trailing window, the stored score does not.
    logs = [
        make_log(2, fatigue=1, soreness=1),
        make_log(9, fatigue=1, soreness=1),
        make_log(16, fatigue=3, soreness=3),
    ]
    state = ProgressionState.initial("row")
    rec = recommend(logs, state)
    updated = update_progression_state(state, logs[-1], rec)

    assert updated.rolling_fatigue_score == pytest.approx(6.0)
    assert calculate_rolling_fatigue(logs) == pytest.approx(4.0)
    assert updated.rolling_fatigue_score != pytest.approx(calculate_rolling_fatigue(logs))


def test_deload_type_without_trigger_keeps_mesocycle_running():
    state = ProgressionState.initial("row").model_copy(
        update={"current_mesocycle_week": 3, "consecutive_weeks_progressing": 1}
    )
    log = make_log(2, sets=4, weight=50.0, avg_rir=0, fatigue=5)
    rec = recommend([log], state)
    assert rec.progression_type == ProgressionType.DELOAD
    assert not rec.deload_week

    updated = update_progression_state(state, log, rec)
    assert updated.current_mesocycle_week == 4
    assert updated.consecutive_weeks_progressing == 2
    assert updated.last_deload_date is None
