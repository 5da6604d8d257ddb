"""
Async SQLAlchemy repository for RP Tracker database operations.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import SETTINGS
from ..schemas import Exercise, MesocycleSettings, ProgressionState, WorkoutLog
from .models import Base, ExerciseRow, MesocycleSettingsRow, ProgressionStateRow, WorkoutLogRow

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session: async_sessionmaker[AsyncSession] | None = None

# Type variable for the retry decorator
F = TypeVar("F", bound=Callable[..., Any])

_CONNECTION_ERROR_KEYWORDS = (
    "connection",
    "server closed",
    "connection closed",
    "operationalerror",
    "timeout",
)


def retry_on_connection_error(max_retries: int = 3, delay: float = 0.1):
    """
    Decorator to retry database operations on connection errors.
    Useful for handling transient connection issues.
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        async def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return await fn(*args, **kwargs)
                except Exception as e:
                    transient = any(k in str(e).lower() for k in _CONNECTION_ERROR_KEYWORDS)
                    if not transient or attempt == max_retries - 1:
                        raise
                    # Exponential backoff
                    wait_time = delay * (2**attempt)
                    logger.warning(
                        "Database connection error on attempt %d/%d, retrying in %.2fs: %s",
                        attempt + 1,
                        max_retries,
                        wait_time,
                        e,
                    )
                    await asyncio.sleep(wait_time)
            raise RuntimeError("Retry mechanism failed unexpectedly")

        return wrapper  # type: ignore

    return decorator


def _prepare_url(url: str) -> tuple[str, dict]:
    """Return sanitized DB URL and connect args.

    Extracts common SSL query parameters and passes them as ``connect_args``.
    ``ssl=false`` becomes ``sslmode=disable``.
    """

    url_obj = make_url(url)
    query = dict(url_obj.query)
    connect_args: dict[str, object] = {}

    # SSL normalization
    sslmode = query.pop("sslmode", None)
    ssl_val = query.pop("ssl", None)
    if ssl_val is not None:
        sslmode = "disable" if str(ssl_val).lower() in {"0", "false", "off", "no"} else "require"
    if sslmode:
        if url_obj.drivername.startswith("postgresql+asyncpg"):
            connect_args["ssl"] = sslmode
        else:
            connect_args["sslmode"] = sslmode

    # PgBouncer-friendly settings by driver
    if url_obj.drivername.startswith("postgresql+asyncpg"):
        connect_args.setdefault("statement_cache_size", 0)

    url_obj = url_obj.set(query=query)
    return url_obj.render_as_string(hide_password=False), connect_args


async def init_db() -> None:
    """
    Initialize the async database engine and sessionmaker, and create tables if needed.
    """
    global _engine, _session
    if _engine:
        return
    if not SETTINGS.DATABASE_URL:
        logger.error("DATABASE_URL is required for DB initialization.")
        raise RuntimeError("DATABASE_URL is required")
    db_url, connect_args = _prepare_url(SETTINGS.DATABASE_URL)
    engine_kwargs: dict[str, Any] = {"echo": False, "connect_args": connect_args}
    if not make_url(db_url).drivername.startswith("sqlite"):
        engine_kwargs.update(
            pool_pre_ping=True,
            pool_recycle=3600,  # Recycle connections every hour
            pool_timeout=30,
            max_overflow=10,
            pool_size=20,
        )
    _engine = create_async_engine(db_url, **engine_kwargs)
    _session = async_sessionmaker(_engine, expire_on_commit=False)
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized (%s)", make_url(db_url).drivername)


def get_session() -> async_sessionmaker[AsyncSession]:
    """
    Get the async sessionmaker. Raises if DB is not initialized.
    """
    if not _session:
        raise RuntimeError("DB not initialized; call init_db() first")
    return _session


async def close_db() -> None:
    """Dispose of the database engine and reset session state."""

    global _engine, _session
    if _engine:
        await _engine.dispose()
    _engine = None
    _session = None


# ---- row <-> record conversion ----------------------------------------------


def _exercise_from_row(row: ExerciseRow) -> Exercise:
    return Exercise(
        id=row.id, name=row.name, category=row.category, muscle_groups=list(row.muscle_groups)
    )


def _log_from_row(row: WorkoutLogRow) -> WorkoutLog:
    return WorkoutLog(
        exercise_id=row.exercise_id,
        date=row.session_date,
        sets=row.sets,
        avg_reps=row.avg_reps,
        weight=row.weight,
        avg_rir=row.avg_rir,
        fatigue=row.fatigue,
        soreness=row.soreness,
        pump=row.pump,
        performance=row.performance,
    )


def _state_from_row(row: ProgressionStateRow) -> ProgressionState:
    return ProgressionState(
        exercise_id=row.exercise_id,
        current_mesocycle_week=row.current_mesocycle_week,
        previous_sets=row.previous_sets,
        previous_weight=row.previous_weight,
        previous_rir_avg=row.previous_rir_avg,
        rolling_fatigue_score=row.rolling_fatigue_score,
        consecutive_weeks_progressing=row.consecutive_weeks_progressing,
        last_deload_date=row.last_deload_date,
        volume_landmark=row.volume_landmark,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _settings_from_row(row: MesocycleSettingsRow) -> MesocycleSettings:
    return MesocycleSettings(
        exercise_id=row.exercise_id,
        mev_sets=row.mev_sets,
        mav_sets=row.mav_sets,
        mrv_sets=row.mrv_sets,
        deload_frequency_weeks=row.deload_frequency_weeks,
        target_rir_range=(row.target_rir_min, row.target_rir_max),
        weight_increment=row.weight_increment,
    )


def _apply_state(row: ProgressionStateRow, state: ProgressionState) -> None:
    row.current_mesocycle_week = state.current_mesocycle_week
    row.previous_sets = state.previous_sets
    row.previous_weight = state.previous_weight
    row.previous_rir_avg = state.previous_rir_avg
    row.rolling_fatigue_score = state.rolling_fatigue_score
    row.consecutive_weeks_progressing = state.consecutive_weeks_progressing
    row.last_deload_date = state.last_deload_date
    row.volume_landmark = state.volume_landmark
    row.updated_at = state.updated_at


def _apply_settings(row: MesocycleSettingsRow, settings: MesocycleSettings) -> None:
    row.mev_sets = settings.mev_sets
    row.mav_sets = settings.mav_sets
    row.mrv_sets = settings.mrv_sets
    row.deload_frequency_weeks = settings.deload_frequency_weeks
    row.target_rir_min, row.target_rir_max = settings.target_rir_range
    row.weight_increment = settings.weight_increment


# ---- exercises ---------------------------------------------------------------


async def create_exercise(
    exercise: Exercise, state: ProgressionState, settings: MesocycleSettings
) -> Exercise:
    """
    Insert an exercise together with its initial progression state and settings
    in a single transaction. Existing state and settings are replaced.
    """
    sessmaker = get_session()
    async with sessmaker() as s:
        row = await s.get(ExerciseRow, exercise.id)
        if row is None:
            row = ExerciseRow(id=exercise.id)
            s.add(row)
        row.name = exercise.name
        row.category = exercise.category
        row.muscle_groups = list(exercise.muscle_groups)

        state_row = await s.get(ProgressionStateRow, exercise.id)
        if state_row is None:
            state_row = ProgressionStateRow(exercise_id=exercise.id, created_at=state.created_at)
            s.add(state_row)
        _apply_state(state_row, state)

        settings_row = await s.get(MesocycleSettingsRow, exercise.id)
        if settings_row is None:
            settings_row = MesocycleSettingsRow(exercise_id=exercise.id)
            s.add(settings_row)
        _apply_settings(settings_row, settings)

        await s.commit()
        return exercise


@retry_on_connection_error(max_retries=3, delay=0.1)
async def get_exercise(exercise_id: str) -> Exercise | None:
    sessmaker = get_session()
    async with sessmaker() as s:
        row = await s.get(ExerciseRow, exercise_id)
        return _exercise_from_row(row) if row else None


@retry_on_connection_error(max_retries=3, delay=0.1)
async def list_exercises() -> list[Exercise]:
    sessmaker = get_session()
    async with sessmaker() as s:
        res = await s.execute(select(ExerciseRow).order_by(ExerciseRow.name))
        return [_exercise_from_row(row) for row in res.scalars().all()]


# ---- progression state / settings --------------------------------------------


@retry_on_connection_error(max_retries=3, delay=0.1)
async def get_progression_state(exercise_id: str) -> ProgressionState | None:
    sessmaker = get_session()
    async with sessmaker() as s:
        row = await s.get(ProgressionStateRow, exercise_id)
        return _state_from_row(row) if row else None


@retry_on_connection_error(max_retries=3, delay=0.1)
async def list_progression_states() -> list[ProgressionState]:
    sessmaker = get_session()
    async with sessmaker() as s:
        res = await s.execute(
            select(ProgressionStateRow).order_by(ProgressionStateRow.exercise_id)
        )
        return [_state_from_row(row) for row in res.scalars().all()]


@retry_on_connection_error(max_retries=3, delay=0.1)
async def get_mesocycle_settings(exercise_id: str) -> MesocycleSettings | None:
    sessmaker = get_session()
    async with sessmaker() as s:
        row = await s.get(MesocycleSettingsRow, exercise_id)
        return _settings_from_row(row) if row else None


async def save_mesocycle_settings(settings: MesocycleSettings) -> None:
    """Insert or update the mesocycle settings for an exercise."""
    sessmaker = get_session()
    async with sessmaker() as s:
        row = await s.get(MesocycleSettingsRow, settings.exercise_id)
        if row is None:
            row = MesocycleSettingsRow(exercise_id=settings.exercise_id)
            s.add(row)
        _apply_settings(row, settings)
        await s.commit()


# ---- workout logs ------------------------------------------------------------


async def add_workout_log(log: WorkoutLog, state: ProgressionState | None = None) -> int:
    """
    Append a workout log. When ``state`` is given it is saved in the same
    transaction so the log and the state it produced never diverge.
    Returns the new log id.
    """
    sessmaker = get_session()
    async with sessmaker() as s:
        row = WorkoutLogRow(
            exercise_id=log.exercise_id,
            session_date=log.date,
            sets=log.sets,
            avg_reps=log.avg_reps,
            weight=log.weight,
            avg_rir=log.avg_rir,
            fatigue=log.fatigue,
            soreness=log.soreness,
            pump=log.pump,
            performance=log.performance,
        )
        s.add(row)
        if state is not None:
            state_row = await s.get(ProgressionStateRow, state.exercise_id)
            if state_row is None:
                state_row = ProgressionStateRow(
                    exercise_id=state.exercise_id, created_at=state.created_at
                )
                s.add(state_row)
            _apply_state(state_row, state)
        await s.commit()
        await s.refresh(row)
        return row.id


@retry_on_connection_error(max_retries=3, delay=0.1)
async def get_exercise_logs(exercise_id: str, limit: int = 10) -> list[WorkoutLog]:
    """
    Return the ``limit`` most recent logs for an exercise, oldest first.
    """
    sessmaker = get_session()
    async with sessmaker() as s:
        res = await s.execute(
            select(WorkoutLogRow)
            .where(WorkoutLogRow.exercise_id == exercise_id)
            .order_by(WorkoutLogRow.session_date.desc(), WorkoutLogRow.id.desc())
            .limit(limit)
        )
        rows = list(res.scalars().all())
        rows.reverse()
        return [_log_from_row(row) for row in rows]


@retry_on_connection_error(max_retries=3, delay=0.1)
async def count_exercise_logs(exercise_id: str) -> int:
    sessmaker = get_session()
    async with sessmaker() as s:
        res = await s.execute(
            select(func.count(WorkoutLogRow.id)).where(WorkoutLogRow.exercise_id == exercise_id)
        )
        return res.scalar() or 0
