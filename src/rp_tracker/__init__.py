"""RP Tracker - adaptive workout progression and mesocycle tracking."""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("rp-tracker")
except importlib.metadata.PackageNotFoundError:
    __version__ = "unknown"
