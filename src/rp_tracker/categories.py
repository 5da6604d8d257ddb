"""
Best-effort exercise-name heuristics.

Exercise names are matched case-insensitively against ordered keyword tables;
the first keyword contained in the name wins. These are defaults for rest times
and starting weights, not a classifier anyone should rely on for correctness.
"""

from .schemas import ExerciseCategory

# Order matters: "leg press" is not matched by the legs keywords and falls to push.
REST_KEYWORDS: tuple[tuple[str, ExerciseCategory], ...] = (
    ("squat", ExerciseCategory.LEGS),
    ("deadlift", ExerciseCategory.LEGS),
    ("lunge", ExerciseCategory.LEGS),
    ("bench", ExerciseCategory.PUSH),
    ("press", ExerciseCategory.PUSH),
    ("dip", ExerciseCategory.PUSH),
    ("pull", ExerciseCategory.PULL),
    ("row", ExerciseCategory.PULL),
    ("plank", ExerciseCategory.CORE),
    ("crunch", ExerciseCategory.CORE),
)

BASE_REST_SECONDS: dict[ExerciseCategory, int] = {
    ExerciseCategory.LEGS: 120,
    ExerciseCategory.PUSH: 90,
    ExerciseCategory.PULL: 90,
    ExerciseCategory.CORE: 60,
}

# Starting weights for the first session of an exercise; bodyweight moves start at 0.
BASE_WEIGHT_KEYWORDS: tuple[tuple[str, float], ...] = (
    ("bench", 20.0),
    ("press", 15.0),
    ("squat", 30.0),
    ("deadlift", 40.0),
    ("row", 20.0),
    ("pullup", 0.0),
    ("dip", 0.0),
)

DEFAULT_BASE_WEIGHT = 20.0


def infer_category(exercise_name: str) -> ExerciseCategory:
    """Guess an exercise's category from its name, defaulting to push."""
    key = exercise_name.lower()
    for keyword, category in REST_KEYWORDS:
        if keyword in key:
            return category
    return ExerciseCategory.PUSH


def base_rest_seconds(exercise_name: str) -> int:
    return BASE_REST_SECONDS[infer_category(exercise_name)]


def base_weight(exercise_name: str) -> float:
    key = exercise_name.lower()
    for keyword, weight in BASE_WEIGHT_KEYWORDS:
        if keyword in key:
            return weight
    return DEFAULT_BASE_WEIGHT
