"""
SQLAlchemy ORM models for RP Tracker database tables.
"""

from __future__ import annotations

from datetime import UTC, date, datetime

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    text,
)
from sqlalchemy import (
    Enum as SAEnum,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ..schemas import ExerciseCategory, VolumeLandmark


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ExerciseRow(Base):
    """A trainable movement tracked by the progression engine."""

    __tablename__ = "exercises"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), index=True)
    category: Mapped[ExerciseCategory] = mapped_column(
        SAEnum(
            ExerciseCategory,
            name="exercise_category",
            native_enum=False,  # SQLite has no native enums
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
    )
    muscle_groups: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    logs: Mapped[list[WorkoutLogRow]] = relationship(
        "WorkoutLogRow", back_populates="exercise", cascade="all, delete-orphan"
    )
    state: Mapped[ProgressionStateRow | None] = relationship(
        "ProgressionStateRow", uselist=False, cascade="all, delete-orphan"
    )
    settings: Mapped[MesocycleSettingsRow | None] = relationship(
        "MesocycleSettingsRow", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ExerciseRow id={self.id} name={self.name} category={self.category.value}>"


class WorkoutLogRow(Base):
    """Summary of one completed session of one exercise."""

    __tablename__ = "workout_logs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    exercise_id: Mapped[str] = mapped_column(ForeignKey("exercises.id"), index=True)
    session_date: Mapped[date] = mapped_column("date", Date, index=True)
    sets: Mapped[int] = mapped_column(Integer)
    avg_reps: Mapped[int] = mapped_column(Integer)
    weight: Mapped[float] = mapped_column(Float)
    avg_rir: Mapped[float] = mapped_column(Float)
    fatigue: Mapped[int] = mapped_column(Integer)
    soreness: Mapped[int] = mapped_column(Integer)
    pump: Mapped[int] = mapped_column(Integer)
    performance: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    exercise: Mapped[ExerciseRow] = relationship("ExerciseRow", back_populates="logs")

    def __repr__(self) -> str:
        return (
            f"<WorkoutLogRow id={self.id} exercise_id={self.exercise_id} "
            f"date={self.session_date} sets={self.sets} weight={self.weight}>"
        )


class ProgressionStateRow(Base):
    """Persisted mesocycle position for one exercise."""

    __tablename__ = "progression_states"
    exercise_id: Mapped[str] = mapped_column(ForeignKey("exercises.id"), primary_key=True)
    current_mesocycle_week: Mapped[int] = mapped_column(Integer, default=1)
    previous_sets: Mapped[int] = mapped_column(Integer, default=3)
    previous_weight: Mapped[float] = mapped_column(Float, default=0.0)
    previous_rir_avg: Mapped[float] = mapped_column(Float, default=3.0)
    rolling_fatigue_score: Mapped[float] = mapped_column(Float, default=2.0)
    consecutive_weeks_progressing: Mapped[int] = mapped_column(Integer, default=0)
    last_deload_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    volume_landmark: Mapped[VolumeLandmark] = mapped_column(
        SAEnum(
            VolumeLandmark,
            name="volume_landmark",
            native_enum=False,
            create_constraint=True,
            validate_strings=True,
        ),
        default=VolumeLandmark.MEV,
        server_default=text("'MEV'"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<ProgressionStateRow exercise_id={self.exercise_id} "
            f"week={self.current_mesocycle_week} landmark={self.volume_landmark.value}>"
        )


class MesocycleSettingsRow(Base):
    """Volume thresholds and deload cadence for one exercise."""

    __tablename__ = "mesocycle_settings"
    exercise_id: Mapped[str] = mapped_column(ForeignKey("exercises.id"), primary_key=True)
    mev_sets: Mapped[int] = mapped_column(Integer)
    mav_sets: Mapped[int] = mapped_column(Integer)
    mrv_sets: Mapped[int] = mapped_column(Integer)
    deload_frequency_weeks: Mapped[int] = mapped_column(Integer)
    target_rir_min: Mapped[int] = mapped_column(Integer, default=1)
    target_rir_max: Mapped[int] = mapped_column(Integer, default=3)
    weight_increment: Mapped[float] = mapped_column(Float)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<MesocycleSettingsRow exercise_id={self.exercise_id} "
            f"mev={self.mev_sets} mav={self.mav_sets} mrv={self.mrv_sets}>"
        )
