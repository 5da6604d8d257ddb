"""
Records read and written by the progression engine.

``WorkoutLog`` is immutable once built. ``ProgressionState`` and
``MesocycleSettings`` are the per-exercise records the caller persists; the
engine returns updated copies rather than mutating them.
"""

import enum
from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ExerciseCategory(str, enum.Enum):
    PUSH = "push"
    PULL = "pull"
    LEGS = "legs"
    CORE = "core"


class VolumeLandmark(str, enum.Enum):
    """Set-count landmarks: minimum effective, maximum adaptive, maximum recoverable."""

    MEV = "MEV"
    MAV = "MAV"
    MRV = "MRV"


class ProgressionType(str, enum.Enum):
    WEIGHT = "weight"
    VOLUME = "volume"
    DELOAD = "deload"
    MAINTAIN = "maintain"


class MesocyclePhase(str, enum.Enum):
    ACCUMULATION = "accumulation"
    INTENSIFICATION = "intensification"
    DELOAD = "deload"
    RESET = "reset"


class Exercise(BaseModel):
    id: str
    name: str
    category: ExerciseCategory
    muscle_groups: list[str] = Field(default_factory=list)


class SetEntry(BaseModel):
    """A single performed set as entered by the user."""

    weight: float = Field(..., ge=0)
    reps: int = Field(..., ge=0)
    rir: float | None = Field(None, ge=0)


class WorkoutLog(BaseModel):
    """One completed session of one exercise."""

    model_config = ConfigDict(frozen=True)

    exercise_id: str
    date: date
    sets: int
    avg_reps: int
    weight: float
    avg_rir: float
    fatigue: int
    soreness: int
    pump: int
    performance: int


def _now() -> datetime:
    return datetime.now(UTC)


class ProgressionState(BaseModel):
    """Where the lifter is within the current mesocycle for one exercise."""

    exercise_id: str
    current_mesocycle_week: int = Field(1, ge=1)
    previous_sets: int = 3
    previous_weight: float = 0.0
    previous_rir_avg: float = 3.0
    rolling_fatigue_score: float = 2.0
    consecutive_weeks_progressing: int = 0
    last_deload_date: date | None = None
    volume_landmark: VolumeLandmark = VolumeLandmark.MEV
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @classmethod
    def initial(cls, exercise_id: str) -> "ProgressionState":
        """Default state for an exercise that has just started being tracked."""
        return cls(exercise_id=exercise_id)


class MesocycleSettings(BaseModel):
    exercise_id: str
    mev_sets: int = Field(..., ge=1)
    mav_sets: int = Field(..., ge=1)
    mrv_sets: int = Field(..., ge=1)
    deload_frequency_weeks: int = Field(..., ge=1)
    target_rir_range: tuple[int, int] = (1, 3)
    weight_increment: float = Field(..., gt=0)

    @model_validator(mode="after")
    def _check_landmark_order(self) -> "MesocycleSettings":
        if not self.mev_sets <= self.mav_sets <= self.mrv_sets:
            raise ValueError("volume landmarks must satisfy mev_sets <= mav_sets <= mrv_sets")
        low, high = self.target_rir_range
        if low > high:
            raise ValueError("target_rir_range must be [min, max]")
        return self


class ProgressionRecommendation(BaseModel):
    exercise_id: str
    exercise_name: str
    recommended_sets: int
    recommended_weight: float
    target_rir: int
    target_reps: int
    rest_time: int
    progression_type: ProgressionType
    confidence: float
    reasoning: str
    deload_week: bool
    mesocycle_phase: MesocyclePhase
