"""Shared service instances for API routes."""

from ..services import ProgressionService

# One instance per process so per-exercise write locks are shared by all routes.
progression_service = ProgressionService()
