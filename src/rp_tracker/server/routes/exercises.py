"""
Exercise tracking API routes for RP Tracker.
"""

from __future__ import annotations

import logging
import re
import uuid

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ...db import repo
from ...schemas import Exercise, ExerciseCategory, MesocycleSettings, ProgressionState
from ...services import ExerciseAlreadyTracked
from ..dependencies import progression_service

router = APIRouter()


class ExerciseCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    category: ExerciseCategory
    muscle_groups: list[str] = Field(default_factory=list)
    id: str | None = Field(None, max_length=64, description="Defaults to a slug of the name")


class ExerciseResponse(BaseModel):
    exercise: Exercise
    state: ProgressionState | None = None
    settings: MesocycleSettings | None = None


def _slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or uuid.uuid4().hex[:12]


@router.post("/exercises", status_code=201)
async def create_exercise(req: ExerciseCreateRequest) -> ExerciseResponse:
    """Start tracking an exercise with default state and category settings."""
    exercise = Exercise(
        id=req.id or _slug(req.name),
        name=req.name.strip(),
        category=req.category,
        muscle_groups=req.muscle_groups,
    )
    try:
        state, settings = await progression_service.initialize_exercise(exercise)
    except ExerciseAlreadyTracked as err:
        raise HTTPException(status_code=409, detail=str(err)) from err
    return ExerciseResponse(exercise=exercise, state=state, settings=settings)


@router.get("/exercises")
async def list_exercises() -> dict:
    items = await repo.list_exercises()
    return {"ok": True, "items": [e.model_dump(mode="json") for e in items], "total": len(items)}


@router.get("/exercises/{exercise_id}")
async def get_exercise(exercise_id: str) -> ExerciseResponse:
    exercise = await repo.get_exercise(exercise_id)
    if exercise is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    try:
        state = await repo.get_progression_state(exercise_id)
        settings = await repo.get_mesocycle_settings(exercise_id)
    except Exception as err:
        logging.exception("Failed to load progression data for %s", exercise_id)
        raise HTTPException(status_code=500, detail="Failed to load progression data") from err
    return ExerciseResponse(exercise=exercise, state=state, settings=settings)
