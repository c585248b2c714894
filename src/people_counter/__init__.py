"""
People crossing counter.

Counts distinct people crossing a video frame left-to-right and
right-to-left from a stream of per-frame detections.
"""

from .models import (
    CountState,
    CrossingEvent,
    Detection,
    Direction,
    EngineConfig,
    Side,
    TrackState,
)
from .pipeline import CrossingCountEngine, FrameResult

__version__ = "0.1.0"

__all__ = [
    "CountState",
    "CrossingCountEngine",
    "CrossingEvent",
    "Detection",
    "Direction",
    "EngineConfig",
    "FrameResult",
    "Side",
    "TrackState",
]
