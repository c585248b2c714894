"""
Typed models for the people crossing counter.
"""

from .detection import BoundingBox, Detection, InvalidDetectionError, parse_detection
from .track import Direction, Side, Track, TrackState
from .count_state import CountState, CrossingEvent
from .config import (
    AssociationConfig,
    Config,
    CrossingLine,
    DetectorConfig,
    EngineConfig,
)

__all__ = [
    # Detection
    "BoundingBox",
    "Detection",
    "InvalidDetectionError",
    "parse_detection",
    # Tracking
    "Direction",
    "Side",
    "Track",
    "TrackState",
    # Counting
    "CountState",
    "CrossingEvent",
    # Config
    "AssociationConfig",
    "Config",
    "CrossingLine",
    "DetectorConfig",
    "EngineConfig",
]
