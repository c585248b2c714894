"""
Crossing count engine.

Entry point of the core: takes one frame's worth of detections at a time and
runs validation -> filtering -> association -> crossing evaluation, then
emits a count snapshot to every listener.

The engine is frame-driven and never schedules detection itself. The only
autonomous actor is the janitor, which sweeps stale tracks on its own
period. Frame processing, janitor sweeps and ``reset()`` are serialized on
the track store's transaction lock. Listeners are called after that lock is
released: first one snapshot per crossing, then the routine snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from people_counter.algorithms.counting import CountAggregator, CountListener, CrossingEvaluator
from people_counter.detection import DetectionFilter
from people_counter.models.config import CrossingLine, EngineConfig
from people_counter.models.count_state import CountState, CrossingEvent
from people_counter.models.detection import (
    Detection,
    DetectionLike,
    InvalidDetectionError,
    parse_detection,
)
from people_counter.models.track import TrackState
from people_counter.tracking import Associator, Janitor, TrackStore, wall_clock_ms

CrossingListener = Callable[[CrossingEvent], None]


@dataclass
class EngineStats:
    """Runtime statistics for the engine."""
    frames_processed: int = 0
    frames_skipped: int = 0
    detections_rejected: int = 0
    tracks_created: int = 0
    tracks_evicted: int = 0
    crossings: int = 0
    last_frame_time: Optional[float] = None


@dataclass(frozen=True)
class FrameResult:
    """
    Outcome of one processed frame.

    Attributes:
        timestamp: Frame timestamp in milliseconds.
        counts: Count snapshot after the frame.
        crossings: Crossings completed during the frame.
        updated_ids: Ids of existing tracks matched this frame.
        created_ids: Ids of tracks created this frame.
    """
    timestamp: float
    counts: CountState
    crossings: Tuple[CrossingEvent, ...] = ()
    updated_ids: Tuple[int, ...] = ()
    created_ids: Tuple[int, ...] = ()


class CrossingCountEngine:
    """
    Counts people crossing the frame left-to-right and right-to-left.

    Example:
        engine = CrossingCountEngine(EngineConfig())
        engine.add_listener(lambda counts: print(counts.to_dict()))
        with engine:  # starts/stops the janitor
            for detections in feed:
                engine.process_frame(detections, canvas_width=640, canvas_height=480)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration.
            clock: Returns "now" in milliseconds; used when ``process_frame``
                   gets no explicit timestamp and by the janitor thread.
                   Feed explicit timestamps and a matching clock together.
        """
        self.config = config or EngineConfig()
        self._clock = clock or wall_clock_ms

        self.stats = EngineStats()
        self.store = TrackStore(position_history_limit=self.config.position_history_limit)
        self.detection_filter = DetectionFilter(
            min_confidence=self.config.min_tracking_confidence,
            label=self.config.person_label,
        )
        self.associator = Associator(self.config.association)
        self.aggregator = CountAggregator()
        self.evaluator = CrossingEvaluator(
            self.aggregator,
            side_margin_fraction=self.config.side_margin_fraction,
        )
        self.janitor = Janitor(
            self.store,
            staleness_ms=self.config.staleness_ms,
            interval_ms=self.config.cleanup_interval_ms,
            clock=self._clock,
            on_evict=self._on_evict,
        )

        self._crossing_listeners: List[CrossingListener] = []
        self._crossing_line = self.config.crossing_line
        self._canvas_size = (self.config.canvas_width, self.config.canvas_height)

        logging.info("Crossing count engine initialized")

    # Observers

    def add_listener(self, listener: CountListener) -> None:
        """Register a count-changed callback receiving CountState."""
        self.aggregator.add_listener(listener)

    def remove_listener(self, listener: CountListener) -> None:
        self.aggregator.remove_listener(listener)

    def add_crossing_listener(self, listener: CrossingListener) -> None:
        """Register a callback receiving each CrossingEvent."""
        if listener not in self._crossing_listeners:
            self._crossing_listeners.append(listener)

    def remove_crossing_listener(self, listener: CrossingListener) -> None:
        if listener in self._crossing_listeners:
            self._crossing_listeners.remove(listener)

    # Frame processing

    def process_frame(
        self,
        detections: Iterable[DetectionLike],
        canvas_width: Optional[int] = None,
        canvas_height: Optional[int] = None,
        now: Optional[float] = None,
    ) -> Optional[FrameResult]:
        """
        Process one frame of detections.

        Args:
            detections: Detection objects or COCO-SSD style dicts. Invalid
                        records are skipped individually.
            canvas_width: Frame width in pixels (config default if omitted).
            canvas_height: Frame height in pixels (config default if omitted).
            now: Frame timestamp in milliseconds (engine clock if omitted).

        Returns:
            FrameResult, or None when the frame was dropped by the rate gate.
        """
        with self.store.transaction():
            result, notifications = self._process(detections, canvas_width, canvas_height, now)

        # Listeners run after the store lock is released, so they may call
        # reset(), tracks() or sweep() from any thread.
        for event, state in notifications:
            self.aggregator.notify(state)
            self._notify_crossing(event)
        if result is not None:
            self.aggregator.notify()
        return result

    def _process(
        self,
        detections: Iterable[DetectionLike],
        canvas_width: Optional[int],
        canvas_height: Optional[int],
        now: Optional[float],
    ) -> Tuple[Optional[FrameResult], List[Tuple[CrossingEvent, CountState]]]:
        """Frame body. Must run inside ``store.transaction()``."""
        if now is None:
            now = self._clock()

        last = self.stats.last_frame_time
        if last is not None and now - last < self.config.detection_interval_ms:
            self.stats.frames_skipped += 1
            return None, []
        self.stats.last_frame_time = now
        self.stats.frames_processed += 1

        width = canvas_width if canvas_width and canvas_width > 0 else self.config.canvas_width
        height = canvas_height if canvas_height and canvas_height > 0 else self.config.canvas_height
        self._canvas_size = (width, height)

        people = self.detection_filter.apply(self._parse(detections))

        associations = self.associator.associate(
            people,
            self.store,
            now,
            side_of=lambda cx: self.evaluator.side_of(cx, width),
        )

        # (event, counts right after that crossing)
        notifications: List[Tuple[CrossingEvent, CountState]] = []
        updated: List[int] = []
        created: List[int] = []
        for assoc in associations:
            if assoc.created:
                created.append(assoc.track_id)
                self.stats.tracks_created += 1
            else:
                updated.append(assoc.track_id)

            track = self.store.get(assoc.track_id)
            event = self.evaluator.evaluate(
                track,
                assoc.center,
                assoc.previous_position,
                width,
                now,
            )
            if event is not None:
                self.stats.crossings += 1
                notifications.append((event, self.aggregator.snapshot()))

        counts = self.aggregator.snapshot()
        if self.stats.frames_processed % 30 == 0:
            logging.debug(
                f"[TRACK] frame={self.stats.frames_processed} "
                f"tracks={len(self.store)} counts={counts.to_dict()}"
            )

        result = FrameResult(
            timestamp=now,
            counts=counts,
            crossings=tuple(event for event, _ in notifications),
            updated_ids=tuple(updated),
            created_ids=tuple(created),
        )
        return result, notifications

    def _parse(self, detections: Iterable[DetectionLike]) -> List[Detection]:
        parsed: List[Detection] = []
        for record in detections or ():
            try:
                parsed.append(parse_detection(record))
            except InvalidDetectionError as e:
                self.stats.detections_rejected += 1
                logging.warning(f"Skipping malformed detection: {e}")
        return parsed

    def _notify_crossing(self, event: CrossingEvent) -> None:
        for listener in list(self._crossing_listeners):
            try:
                listener(event)
            except Exception as e:
                logging.warning(f"Crossing listener error: {e}")

    def _on_evict(self, track_ids: List[int]) -> None:
        # Called from the janitor thread; stats are guarded by the store lock
        with self.store.transaction():
            self.stats.tracks_evicted += len(track_ids)

    # Control

    def reset(self) -> CountState:
        """
        Zero the counts and forget every tracked identity.

        Runs as a full barrier against frame processing and janitor sweeps.
        Listeners receive the zeroed CountState.
        """
        with self.store.transaction():
            removed = self.store.clear()
            counts = self.aggregator.reset()
        logging.info(f"Counts reset ({removed} track(s) cleared)")
        self.aggregator.notify(counts)
        return counts

    def sweep(self, now: Optional[float] = None) -> List[int]:
        """Run one janitor sweep synchronously."""
        return self.janitor.sweep(now)

    def start(self) -> bool:
        """Start the periodic janitor."""
        return self.janitor.start()

    def stop(self) -> None:
        """Stop the periodic janitor."""
        self.janitor.stop()

    def __enter__(self) -> "CrossingCountEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # Read-only views

    def snapshot(self) -> CountState:
        return self.aggregator.snapshot()

    def tracks(self) -> List[TrackState]:
        """Immutable snapshots of every live track."""
        with self.store.transaction():
            return [TrackState.from_track(t) for t in self.store.iterate()]

    @property
    def canvas_size(self) -> Tuple[int, int]:
        """(width, height) of the most recently processed frame."""
        return self._canvas_size

    @property
    def crossing_line(self) -> CrossingLine:
        """Line endpoints for renderers. Not used for counting."""
        return self._crossing_line

    def set_crossing_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self._crossing_line = CrossingLine(x1=x1, y1=y1, x2=x2, y2=y2)
        logging.info(f"Crossing line set: ({x1}, {y1}) - ({x2}, {y2})")


def create_engine_from_config(
    config: dict,
    clock: Optional[Callable[[], float]] = None,
) -> CrossingCountEngine:
    """
    Factory function to create a CrossingCountEngine from a config dict.

    Args:
        config: Full application config dict (uses the ``engine`` section).
        clock: Optional millisecond clock.
    """
    engine_cfg = EngineConfig.from_dict(config.get("engine", {}) or {})
    return CrossingCountEngine(engine_cfg, clock=clock)
