"""
Count models for directional crossing counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .track import Direction, Side


@dataclass(frozen=True)
class CountState:
    """
    Immutable snapshot of the running crossing counters.

    Attributes:
        left_to_right: People counted moving left to right.
        right_to_left: People counted moving right to left.
        total: Sum of both directions.
    """
    left_to_right: int = 0
    right_to_left: int = 0
    total: int = 0

    def __post_init__(self):
        assert self.total == self.left_to_right + self.right_to_left, (
            f"count invariant broken: {self.left_to_right} + {self.right_to_left} != {self.total}"
        )

    def with_crossing(self, direction: Direction) -> "CountState":
        """Return a new state with one more crossing in ``direction``."""
        l2r = self.left_to_right + (1 if direction == Direction.LEFT_TO_RIGHT else 0)
        r2l = self.right_to_left + (1 if direction == Direction.RIGHT_TO_LEFT else 0)
        return CountState(left_to_right=l2r, right_to_left=r2l, total=l2r + r2l)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "left_to_right": self.left_to_right,
            "right_to_left": self.right_to_left,
            "total": self.total,
        }


@dataclass(frozen=True)
class CrossingEvent:
    """
    A crossing event emitted when a track has visited both sides of the frame.

    Attributes:
        track_id: ID of the track that crossed.
        direction: Resolved crossing direction.
        timestamp: Frame timestamp (ms) of the crossing.
        previous_side: Side the track was on before this transition.
        center_x: Horizontal center of the track at the crossing.
        from_fallback: True when the side history was ambiguous and the
            direction was taken from the last movement instead.
    """
    track_id: int
    direction: Direction
    timestamp: float
    previous_side: Optional[Side]
    center_x: float
    from_fallback: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "track_id": self.track_id,
            "direction": self.direction.value,
            "timestamp": self.timestamp,
            "previous_side": self.previous_side.value if self.previous_side else None,
            "center_x": self.center_x,
            "from_fallback": self.from_fallback,
        }
