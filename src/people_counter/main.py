"""
Command-line runner: count people crossing a video or camera feed.

Reads frames with OpenCV, runs the configured detector on each one and feeds
the detections to the crossing count engine. Count changes are logged.

Usage:
    people-counter --config config/config.yaml --source video.mp4

Arguments:
    --config: Path to configuration file
    --source: Video file path or camera index
    --model: Override detector.model from the config
    --max-frames: Stop after this many frames
"""

import argparse
import logging
import sys
from typing import Optional

import cv2

from people_counter.config import ConfigError, load_config, validate_config
from people_counter.inference.backend import Detector
from people_counter.models.config import Config, DetectorConfig
from people_counter.models.count_state import CountState
from people_counter.ops.logging import setup_logging
from people_counter.pipeline.engine import CrossingCountEngine
from people_counter.tracking.janitor import wall_clock_ms


def _parse_source(source: str):
    """Camera index for digit strings, else a path/URL."""
    return int(source) if source.isdigit() else source


def create_detector(cfg: DetectorConfig) -> Detector:
    from people_counter.inference.cpu_backend import UltralyticsPersonDetector
    return UltralyticsPersonDetector(cfg)


class CountLogger:
    """Count listener that logs only when the counts actually change."""

    def __init__(self):
        self.last: Optional[CountState] = None

    def __call__(self, counts: CountState) -> None:
        if counts != self.last:
            logging.info(
                f"Counts: left_to_right={counts.left_to_right}, "
                f"right_to_left={counts.right_to_left}, total={counts.total}"
            )
        self.last = counts


def run(
    cap: "cv2.VideoCapture",
    detector: Detector,
    engine: CrossingCountEngine,
    use_video_clock: bool,
    max_frames: Optional[int] = None,
    clock_state: Optional[dict] = None,
) -> CountState:
    """
    Feed frames from ``cap`` through ``detector`` into ``engine``.

    For video files the frame position (ms) is used as the timestamp so the
    rate gate and staleness window follow video time, not wall time. Stale
    tracks are then swept from this loop every ``cleanup_interval_ms`` of
    video time instead of by the wall-clock janitor thread.
    """
    frame_count = 0
    consecutive_failures = 0
    last_sweep: Optional[float] = None
    if not use_video_clock:
        engine.start()
    try:
        while max_frames is None or frame_count < max_frames:
            ret, frame = cap.read()
            if not ret:
                if use_video_clock:
                    break
                consecutive_failures += 1
                if consecutive_failures >= 10:
                    logging.error(f"Too many consecutive frame read failures ({consecutive_failures}), stopping")
                    break
                logging.warning(f"Failed to read frame ({consecutive_failures}/10), continuing...")
                continue
            consecutive_failures = 0
            frame_count += 1

            now = cap.get(cv2.CAP_PROP_POS_MSEC) if use_video_clock else wall_clock_ms()
            if clock_state is not None:
                clock_state["now"] = now

            if use_video_clock:
                if last_sweep is None:
                    last_sweep = now
                elif now - last_sweep >= engine.config.cleanup_interval_ms:
                    engine.sweep(now)
                    last_sweep = now

            try:
                detections = detector.detect(frame)
            except Exception as e:
                logging.error(f"Detection failed on frame {frame_count}: {e}")
                continue

            height, width = frame.shape[:2]
            engine.process_frame(detections, canvas_width=width, canvas_height=height, now=now)
    finally:
        engine.stop()

    counts = engine.snapshot()
    logging.info(
        f"Finished after {frame_count} frames: processed={engine.stats.frames_processed}, "
        f"skipped={engine.stats.frames_skipped}, total={counts.total}"
    )
    return counts


def main(argv=None) -> int:
    """Main application function."""
    parser = argparse.ArgumentParser(description="People crossing counter")
    parser.add_argument("--config", type=str, default="config/config.yaml",
                        help="Path to configuration file")
    parser.add_argument("--source", type=str, required=True,
                        help="Video file path or camera index")
    parser.add_argument("--model", type=str, default=None,
                        help="Detector model (overrides detector.model)")
    parser.add_argument("--max-frames", type=int, default=None,
                        help="Stop after this many frames")
    args = parser.parse_args(argv)

    try:
        raw = load_config(args.config)
    except ConfigError as e:
        logging.error(str(e))
        return 1

    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    config = Config.from_dict(raw)
    if args.model:
        config.detector.model = args.model
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting people crossing counter")

    source = _parse_source(args.source)
    use_video_clock = not isinstance(source, int)

    clock_state = {"now": 0.0}
    clock = (lambda: clock_state["now"]) if use_video_clock else wall_clock_ms
    engine = CrossingCountEngine(config.engine, clock=clock)
    engine.add_listener(CountLogger())

    try:
        detector = create_detector(config.detector)
    except ImportError as e:
        logging.error(str(e))
        return 1

    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        logging.error(f"Could not open source: {args.source}")
        return 1

    try:
        run(cap, detector, engine, use_video_clock, args.max_frames, clock_state)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        cap.release()
        logging.info("People crossing counter stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
