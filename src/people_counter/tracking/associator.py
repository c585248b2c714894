"""
Detection-to-track association.

Matches the person detections of one frame to existing tracks using a
weighted center-distance score, and creates tracks for whatever is left.

Score for a (detection, track) pair:

    score = distance * (1 + size_weight * size_diff) * (1 + time_weight * time_factor)

where ``distance`` is the Euclidean distance between centers, ``size_diff``
is the relative area difference (relative to the detection's area) and
``time_factor`` is the track's idle time normalized to [0, 1]. A track is
only a candidate when ``distance < max(width, height) * match_distance_factor``
of the detection box.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from people_counter.models.config import AssociationConfig
from people_counter.models.detection import Detection
from people_counter.models.track import Side, Track
from .store import TrackStore


@dataclass(frozen=True)
class Association:
    """
    Result of associating one detection in a frame.

    Attributes:
        track_id: Track that received the detection.
        created: True when a new track was created for it.
        center: Detection center applied to the track.
        previous_position: Track center before this update (the detection's
                           own center for a new track).
    """
    track_id: int
    created: bool
    center: Tuple[float, float]
    previous_position: Tuple[float, float]


class Associator:
    """
    Associates detections with tracks held in a TrackStore.

    Two modes:
    - one-to-one (default): every eligible pair is scored and pairs are
      taken greedily by ascending score, so a track receives at most one
      detection per frame.
    - independent: each detection, in order, picks its best track among all
      tracks present at that moment. Two detections can then land on the
      same track.
    """

    def __init__(self, config: Optional[AssociationConfig] = None):
        self.config = config or AssociationConfig()

    def score_matrix(
        self,
        detections: Sequence[Detection],
        tracks: Sequence[Track],
        now: float,
    ) -> np.ndarray:
        """
        Score every (detection, track) pair.

        Returns:
            Array of shape (len(detections), len(tracks)); ineligible pairs
            are ``inf``.
        """
        if not detections or not tracks:
            return np.full((len(detections), len(tracks)), np.inf)

        cfg = self.config
        det_centers = np.array([d.center for d in detections], dtype=float)
        det_areas = np.array([d.area for d in detections], dtype=float)
        det_extent = np.array([max(d.bbox.width, d.bbox.height) for d in detections], dtype=float)

        trk_centers = np.array([t.center for t in tracks], dtype=float)
        trk_areas = np.array([t.bbox.area for t in tracks], dtype=float)
        trk_idle = np.array([now - t.last_seen for t in tracks], dtype=float)

        deltas = det_centers[:, None, :] - trk_centers[None, :, :]
        distance = np.hypot(deltas[..., 0], deltas[..., 1])
        size_diff = np.abs(det_areas[:, None] - trk_areas[None, :]) / det_areas[:, None]
        time_factor = np.minimum(1.0, trk_idle / cfg.time_normalizer_ms)[None, :]

        scores = (
            distance
            * (1.0 + cfg.size_weight * size_diff)
            * (1.0 + cfg.time_weight * time_factor)
        )
        threshold = det_extent[:, None] * cfg.match_distance_factor
        return np.where(distance < threshold, scores, np.inf)

    def find_best_track(
        self,
        detection: Detection,
        tracks: Sequence[Track],
        now: float,
    ) -> Optional[int]:
        """Return the id of the lowest-score eligible track, or None."""
        if not tracks:
            return None
        row = self.score_matrix([detection], tracks, now)[0]
        best = int(np.argmin(row))
        if not np.isfinite(row[best]):
            return None
        return tracks[best].track_id

    def assign(
        self,
        detections: Sequence[Detection],
        tracks: Sequence[Track],
        now: float,
    ) -> Tuple[List[Tuple[int, int]], List[int]]:
        """
        Greedy one-to-one assignment by ascending score.

        Returns:
            (matches, unmatched) where matches is a list of
            (detection_index, track_id) and unmatched lists detection indices
            with no track.
        """
        scores = self.score_matrix(detections, tracks, now)
        matches: List[Tuple[int, int]] = []
        used_dets = set()
        used_tracks = set()

        if scores.size:
            # Stable sort keeps detection order, then track creation order, on ties
            order = np.argsort(scores, axis=None, kind="stable")
            for flat in order:
                det_idx, trk_idx = np.unravel_index(flat, scores.shape)
                if not np.isfinite(scores[det_idx, trk_idx]):
                    break
                if det_idx in used_dets or trk_idx in used_tracks:
                    continue
                used_dets.add(int(det_idx))
                used_tracks.add(int(trk_idx))
                matches.append((int(det_idx), tracks[trk_idx].track_id))

        unmatched = [i for i in range(len(detections)) if i not in used_dets]
        return matches, unmatched

    def associate(
        self,
        detections: Sequence[Detection],
        store: TrackStore,
        now: float,
        side_of: Callable[[float], Side],
    ) -> List[Association]:
        """
        Apply one frame of detections to the store.

        Must be called inside ``store.transaction()``.

        Args:
            detections: Filtered person detections for the frame.
            store: Track store to read and update.
            now: Frame timestamp in milliseconds.
            side_of: Maps a center x coordinate to its Side, used to seed
                     the side state of new tracks.

        Returns:
            One Association per detection, in the order they were applied.
        """
        if self.config.one_to_one:
            return self._associate_one_to_one(detections, store, now, side_of)
        return self._associate_independent(detections, store, now, side_of)

    def _associate_one_to_one(self, detections, store, now, side_of) -> List[Association]:
        matches, unmatched = self.assign(detections, store.iterate(), now)
        results: List[Association] = []

        for det_idx, track_id in sorted(matches):
            results.append(self._update(store, track_id, detections[det_idx], now))

        for det_idx in unmatched:
            results.append(self._create(store, detections[det_idx], now, side_of))

        return results

    def _associate_independent(self, detections, store, now, side_of) -> List[Association]:
        results: List[Association] = []
        for detection in detections:
            track_id = self.find_best_track(detection, store.iterate(), now)
            if track_id is not None:
                results.append(self._update(store, track_id, detection, now))
            else:
                results.append(self._create(store, detection, now, side_of))
        return results

    def _update(self, store: TrackStore, track_id: int, detection: Detection, now: float) -> Association:
        previous = store.get(track_id).last_position
        store.update(track_id, detection, now)
        return Association(
            track_id=track_id,
            created=False,
            center=detection.center,
            previous_position=previous,
        )

    def _create(self, store: TrackStore, detection: Detection, now: float, side_of) -> Association:
        center = detection.center
        side = side_of(center[0])
        track_id = store.create(detection, now, side)
        logging.debug(f"New track #{track_id} at ({center[0]:.1f}, {center[1]:.1f}) side={side.value}")
        return Association(
            track_id=track_id,
            created=True,
            center=center,
            previous_position=center,
        )
