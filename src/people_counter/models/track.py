"""
Track models for per-person tracking state.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Optional, Tuple

from .detection import BoundingBox


class Side(str, Enum):
    """Horizontal zone of the frame a track was last seen in."""
    UNKNOWN = "unknown"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Direction(str, Enum):
    """Direction of a completed crossing."""
    LEFT_TO_RIGHT = "left_to_right"
    RIGHT_TO_LEFT = "right_to_left"


# (x, y, timestamp_ms)
Position = Tuple[float, float, float]


@dataclass
class Track:
    """
    A tracked person across video frames.

    Owned by TrackStore; other components mutate it only inside the store's
    transaction.

    Attributes:
        track_id: Unique identifier, never reused.
        bbox: Most recent bounding box.
        first_seen: Timestamp (ms) of creation.
        last_seen: Timestamp (ms) of the most recent association.
        confidence: Highest detection confidence seen over the lifetime.
        positions: Recent centers as (x, y, timestamp), newest last. Bounded
                   by the store's position_history_limit.
        hits: Number of detections associated with this track.
        crossed: Whether this track has been counted. Never reverts.
        direction: Crossing direction, set together with ``crossed``.
        has_entered_left: Track has been seen in the left zone.
        has_entered_right: Track has been seen in the right zone.
        last_side: Most recent non-center zone (or CENTER/UNKNOWN at birth).
    """
    track_id: int
    bbox: BoundingBox
    first_seen: float
    last_seen: float
    confidence: float
    positions: Deque[Position] = field(default_factory=deque)
    hits: int = 1
    crossed: bool = False
    direction: Optional[Direction] = None
    has_entered_left: bool = False
    has_entered_right: bool = False
    last_side: Side = Side.UNKNOWN

    @property
    def center(self) -> Tuple[float, float]:
        """Center of the most recent bounding box."""
        return self.bbox.center

    @property
    def last_position(self) -> Tuple[float, float]:
        """Most recent recorded center (x, y)."""
        if self.positions:
            x, y, _ = self.positions[-1]
            return (x, y)
        return self.center

    def age_ms(self, now: float) -> float:
        """Milliseconds since this track was created."""
        return now - self.first_seen

    def idle_ms(self, now: float) -> float:
        """Milliseconds since this track was last matched."""
        return now - self.last_seen


@dataclass(frozen=True)
class TrackState:
    """
    Immutable snapshot of a tracked person (for observers and renderers).
    """
    track_id: int
    bbox: Tuple[float, float, float, float]
    center: Tuple[float, float]
    last_seen: float
    confidence: float
    crossed: bool
    direction: Optional[Direction]
    last_side: Side
    has_entered_left: bool
    has_entered_right: bool
    positions: Tuple[Position, ...] = ()

    @classmethod
    def from_track(cls, track: Track) -> "TrackState":
        """Create immutable snapshot from a Track."""
        return cls(
            track_id=track.track_id,
            bbox=track.bbox.as_xywh(),
            center=track.center,
            last_seen=track.last_seen,
            confidence=track.confidence,
            crossed=track.crossed,
            direction=track.direction,
            last_side=track.last_side,
            has_entered_left=track.has_entered_left,
            has_entered_right=track.has_entered_right,
            positions=tuple(track.positions),
        )
