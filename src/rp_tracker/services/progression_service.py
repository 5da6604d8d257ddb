"""
Service for tracking exercises and running the recommend/log/update cycle.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

from .. import progression
from ..config import SETTINGS
from ..db import repo
from ..schemas import (
    Exercise,
    MesocycleSettings,
    ProgressionRecommendation,
    ProgressionState,
    SetEntry,
    WorkoutLog,
)
from ..workout_log import build_workout_log

logger = logging.getLogger(__name__)


class ExerciseNotTracked(LookupError):
    """Raised when an exercise has no stored progression state or settings."""

    def __init__(self, exercise_id: str, missing: str = "exercise"):
        super().__init__(f"No {missing} found for exercise {exercise_id}")
        self.exercise_id = exercise_id
        self.missing = missing


class ExerciseAlreadyTracked(ValueError):
    """Raised when starting to track an exercise id that is already stored."""

    def __init__(self, exercise_id: str):
        super().__init__(f"Exercise {exercise_id} already tracked")
        self.exercise_id = exercise_id


class ProgressionService:
    """
    Owns persistence around the pure progression engine.

    Reads and writes for one exercise are serialized with a per-exercise lock
    so two concurrent logs cannot both build on the same state snapshot.
    """

    def __init__(self, history_limit: int | None = None) -> None:
        self.history_limit = history_limit or SETTINGS.LOG_HISTORY_LIMIT
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, exercise_id: str) -> asyncio.Lock:
        lock = self._locks.get(exercise_id)
        if lock is None:
            lock = self._locks[exercise_id] = asyncio.Lock()
        return lock

    async def _load(
        self, exercise_id: str
    ) -> tuple[Exercise, ProgressionState, MesocycleSettings]:
        exercise = await repo.get_exercise(exercise_id)
        if exercise is None:
            raise ExerciseNotTracked(exercise_id)
        state = await repo.get_progression_state(exercise_id)
        if state is None:
            raise ExerciseNotTracked(exercise_id, "progression state")
        settings = await repo.get_mesocycle_settings(exercise_id)
        if settings is None:
            raise ExerciseNotTracked(exercise_id, "mesocycle settings")
        return exercise, state, settings

    async def initialize_exercise(
        self, exercise: Exercise
    ) -> tuple[ProgressionState, MesocycleSettings]:
        """
        Start tracking an exercise with the default state and category settings.
        Raises ``ExerciseAlreadyTracked`` rather than resetting an existing one.
        """
        state = ProgressionState.initial(exercise.id)
        settings = progression.get_default_mesocycle_settings(exercise)
        async with self._lock(exercise.id):
            if await repo.get_exercise(exercise.id) is not None:
                raise ExerciseAlreadyTracked(exercise.id)
            await repo.create_exercise(exercise, state, settings)
        logger.info(
            "Tracking exercise %s (%s, %s)", exercise.id, exercise.name, exercise.category.value
        )
        return state, settings

    async def get_recommendation(self, exercise_id: str) -> ProgressionRecommendation:
        exercise, state, settings = await self._load(exercise_id)
        logs = await repo.get_exercise_logs(exercise_id, limit=self.history_limit)
        return progression.generate_recommendation(
            exercise.id, exercise.name, logs, state, settings
        )

    async def log_workout(
        self,
        exercise_id: str,
        session_date: date,
        sets: Sequence[SetEntry],
        fatigue: int | None = None,
        soreness: int | None = None,
        pump: int | None = None,
        performance: int | None = None,
    ) -> tuple[WorkoutLog, ProgressionState, ProgressionRecommendation]:
        """
        Record a completed session and advance the exercise's progression state.

        The state is folded with the recommendation that was in effect for this
        session, i.e. the one computed from the history before it. It is not
        rebuilt from the new log alone, so multi-session deload triggers still
        reset the mesocycle. Returns the stored log, the new state and the
        recommendation for the next session.
        """
        async with self._lock(exercise_id):
            exercise, state, settings = await self._load(exercise_id)
            history = await repo.get_exercise_logs(exercise_id, limit=self.history_limit)
            prescribed = progression.generate_recommendation(
                exercise.id, exercise.name, history, state, settings
            )

            log = build_workout_log(
                exercise_id,
                session_date,
                sets,
                fatigue=fatigue,
                soreness=soreness,
                pump=pump,
                performance=performance,
            )
            new_state = progression.update_progression_state(
                state,
                log,
                prescribed,
                settings=settings if SETTINGS.FF_SETTINGS_LANDMARKS else None,
            )
            await repo.add_workout_log(log, new_state)

            logs = [*history, log][-self.history_limit :]
            upcoming = progression.generate_recommendation(
                exercise.id, exercise.name, logs, new_state, settings
            )
        logger.info(
            "Logged %s: %d sets @ %s, week %d (%s), next=%s",
            exercise_id,
            log.sets,
            log.weight,
            new_state.current_mesocycle_week,
            new_state.volume_landmark.value,
            upcoming.progression_type.value,
        )
        return log, new_state, upcoming

    async def get_logs(self, exercise_id: str, limit: int | None = None) -> list[WorkoutLog]:
        if await repo.get_exercise(exercise_id) is None:
            raise ExerciseNotTracked(exercise_id)
        return await repo.get_exercise_logs(exercise_id, limit=limit or self.history_limit)

    async def get_settings(self, exercise_id: str) -> MesocycleSettings:
        settings = await repo.get_mesocycle_settings(exercise_id)
        if settings is None:
            raise ExerciseNotTracked(exercise_id, "mesocycle settings")
        return settings

    async def update_settings(self, exercise_id: str, **changes: Any) -> MesocycleSettings:
        """
        Apply a partial update to an exercise's mesocycle settings.
        Raises ``pydantic.ValidationError`` if the result is inconsistent.
        """
        async with self._lock(exercise_id):
            current = await self.get_settings(exercise_id)
            updates = {k: v for k, v in changes.items() if v is not None}
            updated = MesocycleSettings.model_validate({**current.model_dump(), **updates})
            await repo.save_mesocycle_settings(updated)
        logger.info("Updated mesocycle settings for %s: %s", exercise_id, sorted(updates))
        return updated

    async def progression_overview(self) -> list[dict[str, Any]]:
        """Summary of where every tracked exercise sits in its mesocycle."""
        rows = []
        for state in await repo.list_progression_states():
            rows.append(
                {
                    "exercise_id": state.exercise_id,
                    "logged_sessions": await repo.count_exercise_logs(state.exercise_id),
                    "current_week": state.current_mesocycle_week,
                    "volume_landmark": state.volume_landmark.value,
                    "rolling_fatigue": state.rolling_fatigue_score,
                    "weeks_progressing": state.consecutive_weeks_progressing,
                    "last_deload": state.last_deload_date,
                }
            )
        return rows
