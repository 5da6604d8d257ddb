#!/usr/bin/env python3
"""
Reset the local development database.
Drops every table, recreates the schema and, with ``--seed``, starts tracking
a handful of common lifts with their default mesocycle settings.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Local development always targets the SQLite file next to the repo
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./local_dev.db")

from rp_tracker.db import repo
from rp_tracker.db.models import Base
from rp_tracker.schemas import Exercise, ExerciseCategory
from rp_tracker.services import ProgressionService

SEED_EXERCISES = [
    Exercise(
        id="bench-press",
        name="Bench Press",
        category=ExerciseCategory.PUSH,
        muscle_groups=["chest", "triceps"],
    ),
    Exercise(
        id="back-squat",
        name="Back Squat",
        category=ExerciseCategory.LEGS,
        muscle_groups=["quads", "glutes"],
    ),
    Exercise(
        id="barbell-row",
        name="Barbell Row",
        category=ExerciseCategory.PULL,
        muscle_groups=["lats", "upper back"],
    ),
    Exercise(id="plank", name="Plank", category=ExerciseCategory.CORE, muscle_groups=["abs"]),
]


async def reset_database(seed: bool) -> None:
    """Drop and recreate all tables, then optionally seed exercises."""
    print("🔄 Resetting database...")
    await repo.init_db()

    engine = repo._engine
    if not engine:
        print("❌ Failed to initialize database engine")
        return

    async with engine.begin() as conn:
        print("🗑️  Dropping all tables...")
        await conn.run_sync(Base.metadata.drop_all)
        print("🏗️  Creating tables from models...")
        await conn.run_sync(Base.metadata.create_all)

    print("📊 Tables created:")
    for table in Base.metadata.sorted_tables:
        print(f"   - {table.name}")

    if seed:
        service = ProgressionService()
        for exercise in SEED_EXERCISES:
            _, settings = await service.initialize_exercise(exercise)
            print(
                f"🏋️  {exercise.name}: MEV {settings.mev_sets} / MAV {settings.mav_sets} / "
                f"MRV {settings.mrv_sets}, +{settings.weight_increment:g}kg"
            )

    await repo.close_db()
    print("✅ Database reset complete!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="track a few default exercises")
    args = parser.parse_args()
    asyncio.run(reset_database(args.seed))
