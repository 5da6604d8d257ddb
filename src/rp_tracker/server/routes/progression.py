"""
Progression recommendation and workout logging API routes for RP Tracker.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError

from ...schemas import (
    MesocycleSettings,
    ProgressionRecommendation,
    ProgressionState,
    SetEntry,
    WorkoutLog,
)
from ...services import ExerciseNotTracked
from ..dependencies import progression_service

router = APIRouter()


class WorkoutLogRequest(BaseModel):
    session_date: date | None = Field(None, alias="date", description="Defaults to today")
    sets: list[SetEntry] = Field(..., min_length=1)
    fatigue: int | None = Field(None, ge=1, le=5)
    soreness: int | None = Field(None, ge=1, le=5)
    pump: int | None = Field(None, ge=1, le=5)
    performance: int | None = Field(None, ge=1, le=5)


class WorkoutLogResponse(BaseModel):
    log: WorkoutLog
    state: ProgressionState
    next_recommendation: ProgressionRecommendation


class SettingsUpdateRequest(BaseModel):
    mev_sets: int | None = Field(None, ge=1)
    mav_sets: int | None = Field(None, ge=1)
    mrv_sets: int | None = Field(None, ge=1)
    deload_frequency_weeks: int | None = Field(None, ge=1)
    target_rir_range: tuple[int, int] | None = None
    weight_increment: float | None = Field(None, gt=0)


def _not_found(err: ExerciseNotTracked) -> HTTPException:
    return HTTPException(status_code=404, detail=str(err))


@router.get("/progression/overview")
async def progression_overview() -> dict:
    items = await progression_service.progression_overview()
    return {"ok": True, "items": items, "total": len(items)}


@router.get("/progression/{exercise_id}/recommendation")
async def get_recommendation(exercise_id: str) -> ProgressionRecommendation:
    """Recommend sets, weight, RIR, reps and rest for the next session."""
    try:
        return await progression_service.get_recommendation(exercise_id)
    except ExerciseNotTracked as err:
        raise _not_found(err) from err


@router.post("/progression/{exercise_id}/log")
async def log_workout(exercise_id: str, req: WorkoutLogRequest) -> WorkoutLogResponse:
    """Record a completed session and advance the mesocycle state."""
    try:
        log, state, upcoming = await progression_service.log_workout(
            exercise_id,
            req.session_date or date.today(),
            req.sets,
            fatigue=req.fatigue,
            soreness=req.soreness,
            pump=req.pump,
            performance=req.performance,
        )
    except ExerciseNotTracked as err:
        raise _not_found(err) from err
    return WorkoutLogResponse(log=log, state=state, next_recommendation=upcoming)


@router.get("/progression/{exercise_id}/logs")
async def get_logs(
    exercise_id: str, limit: int = Query(10, ge=1, le=100, description="Most recent sessions")
) -> dict:
    try:
        logs = await progression_service.get_logs(exercise_id, limit=limit)
    except ExerciseNotTracked as err:
        raise _not_found(err) from err
    return {"ok": True, "items": [log.model_dump(mode="json") for log in logs], "total": len(logs)}


@router.get("/progression/{exercise_id}/settings")
async def get_settings(exercise_id: str) -> MesocycleSettings:
    try:
        return await progression_service.get_settings(exercise_id)
    except ExerciseNotTracked as err:
        raise _not_found(err) from err


@router.patch("/progression/{exercise_id}/settings")
async def update_settings(exercise_id: str, req: SettingsUpdateRequest) -> MesocycleSettings:
    try:
        return await progression_service.update_settings(
            exercise_id, **req.model_dump(exclude_none=True)
        )
    except ExerciseNotTracked as err:
        raise _not_found(err) from err
    except ValidationError as err:
        logging.info("Rejected settings update for %s: %s", exercise_id, err)
        detail = [{"loc": e["loc"], "msg": e["msg"]} for e in err.errors()]
        raise HTTPException(status_code=422, detail=detail) from err
