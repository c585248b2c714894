"""
Track store.

Single owner of the identity -> Track mapping. Frame updates, janitor
sweeps and resets all run inside ``transaction()`` so none of them ever sees
another one half done.
"""

from __future__ import annotations

import itertools
import threading
from collections import deque
from contextlib import contextmanager
from typing import Dict, Iterator, List

from people_counter.models.detection import Detection
from people_counter.models.track import Side, Track


class TrackNotFoundError(KeyError):
    """Raised when a track id is not (or no longer) in the store."""


class TrackStore:
    """
    Keyed in-memory store of tracked people.

    Track ids come from a counter that is never rewound, so an id is never
    handed out twice, even across ``clear()``.
    """

    def __init__(self, position_history_limit: int = 30):
        """
        Initialize the track store.

        Args:
            position_history_limit: Maximum number of centers kept per track;
                                    the oldest is dropped first.
        """
        self.position_history_limit = position_history_limit
        self._tracks: Dict[int, Track] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator["TrackStore"]:
        """Hold the store lock for a full logical operation."""
        with self._lock:
            yield self

    def create(self, detection: Detection, now: float, side: Side = Side.UNKNOWN) -> int:
        """
        Create a new track from an unmatched detection.

        The sticky side flags are seeded from ``side`` so a person first seen
        on one side is credited with having entered it.
        """
        cx, cy = detection.center
        with self._lock:
            track_id = next(self._ids)
            track = Track(
                track_id=track_id,
                bbox=detection.bbox,
                first_seen=now,
                last_seen=now,
                confidence=detection.confidence,
                positions=deque([(cx, cy, now)], maxlen=self.position_history_limit),
                has_entered_left=side == Side.LEFT,
                has_entered_right=side == Side.RIGHT,
                last_side=side,
            )
            self._tracks[track_id] = track
        return track_id

    def update(self, track_id: int, detection: Detection, now: float) -> Track:
        """Apply a matched detection to an existing track."""
        cx, cy = detection.center
        with self._lock:
            track = self.get(track_id)
            track.positions.append((cx, cy, now))
            track.bbox = detection.bbox
            track.last_seen = now
            track.confidence = max(track.confidence, detection.confidence)
            track.hits += 1
        return track

    def get(self, track_id: int) -> Track:
        with self._lock:
            try:
                return self._tracks[track_id]
            except KeyError:
                raise TrackNotFoundError(track_id) from None

    def iterate(self) -> List[Track]:
        """Return the current tracks in creation order."""
        with self._lock:
            return list(self._tracks.values())

    def remove(self, track_id: int) -> Track:
        with self._lock:
            try:
                return self._tracks.pop(track_id)
            except KeyError:
                raise TrackNotFoundError(track_id) from None

    def clear(self) -> int:
        """Drop every track. Returns how many were removed."""
        with self._lock:
            removed = len(self._tracks)
            self._tracks.clear()
        return removed

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._tracks
