"""
Screen-crossing evaluation.

The frame is split into three vertical zones:

    LEFT   | CENTER | RIGHT
           ^        ^
    center - margin   center + margin      (margin = width * side_margin_fraction)

A track is counted once it has been seen clearly on both the left and the
right zone. It does not need to be observed in the middle of the crossing,
so detector gaps around the boundary are tolerated. The CENTER zone never
changes a track's side state.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from people_counter.models.count_state import CrossingEvent
from people_counter.models.track import Direction, Side, Track
from .aggregator import CountAggregator


def classify_side(center_x: float, canvas_width: float, side_margin_fraction: float = 0.1) -> Side:
    """Return which zone ``center_x`` falls in for a frame of ``canvas_width``."""
    screen_center = canvas_width / 2
    margin = canvas_width * side_margin_fraction
    if center_x < screen_center - margin:
        return Side.LEFT
    if center_x > screen_center + margin:
        return Side.RIGHT
    return Side.CENTER


class CrossingEvaluator:
    """
    Per-track side state machine.

    States: side history (sticky left/right flags plus ``last_side``), then
    the terminal ``crossed`` state. A crossed track is never evaluated again.
    Crossings are written to the CountAggregator as they happen.
    """

    def __init__(self, aggregator: CountAggregator, side_margin_fraction: float = 0.1):
        self.aggregator = aggregator
        self.side_margin_fraction = side_margin_fraction

    def side_of(self, center_x: float, canvas_width: float) -> Side:
        return classify_side(center_x, canvas_width, self.side_margin_fraction)

    def evaluate(
        self,
        track: Track,
        center: Tuple[float, float],
        last_position: Tuple[float, float],
        canvas_width: float,
        now: float,
    ) -> Optional[CrossingEvent]:
        """
        Advance a track's side state with its new center.

        Args:
            track: Track already updated for this frame.
            center: The track's new center (x, y).
            last_position: The track's center before this frame's update.
            canvas_width: Frame width in pixels.
            now: Frame timestamp in milliseconds.

        Returns:
            A CrossingEvent if this update completed a crossing, else None.
        """
        if track.crossed:
            return None

        center_x = center[0]
        current_side = self.side_of(center_x, canvas_width)
        if current_side == Side.CENTER or current_side == track.last_side:
            return None

        previous_side = track.last_side
        track.last_side = current_side
        if current_side == Side.LEFT:
            track.has_entered_left = True
        else:
            track.has_entered_right = True
        logging.debug(
            f"Track #{track.track_id} moved {previous_side.value} -> {current_side.value}"
        )

        if not (track.has_entered_left and track.has_entered_right):
            return None

        from_fallback = False
        if previous_side == Side.LEFT and current_side == Side.RIGHT:
            direction = Direction.LEFT_TO_RIGHT
        elif previous_side == Side.RIGHT and current_side == Side.LEFT:
            direction = Direction.RIGHT_TO_LEFT
        else:
            # Side history does not say; use the last movement
            from_fallback = True
            if center_x > last_position[0]:
                direction = Direction.LEFT_TO_RIGHT
            else:
                direction = Direction.RIGHT_TO_LEFT

        track.crossed = True
        track.direction = direction

        state = self.aggregator.apply_crossing(direction)
        logging.info(
            f"Track #{track.track_id} crossed {direction.value}"
            f"{' (fallback)' if from_fallback else ''}: "
            f"left_to_right={state.left_to_right}, right_to_left={state.right_to_left}, "
            f"total={state.total}"
        )

        return CrossingEvent(
            track_id=track.track_id,
            direction=direction,
            timestamp=now,
            previous_side=previous_side,
            center_x=center_x,
            from_fallback=from_fallback,
        )
