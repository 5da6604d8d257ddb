"""
Services layer for RP Tracker business logic.
"""

from .progression_service import ExerciseAlreadyTracked, ExerciseNotTracked, ProgressionService

__all__ = ["ExerciseAlreadyTracked", "ExerciseNotTracked", "ProgressionService"]
