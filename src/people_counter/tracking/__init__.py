"""
Tracking module.

Track identity across frames: the store, the associator and the janitor.
Counting is NOT done here. See ``algorithms.counting``.
"""

from .store import TrackStore, TrackNotFoundError
from .associator import Association, Associator
from .janitor import Janitor, wall_clock_ms

__all__ = [
    "Association",
    "Associator",
    "Janitor",
    "TrackNotFoundError",
    "TrackStore",
    "wall_clock_ms",
]
