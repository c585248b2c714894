"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from people_counter.models.config import EngineConfig  # noqa: E402
from people_counter.pipeline.engine import CrossingCountEngine  # noqa: E402


class FakeClock:
    """Millisecond clock driven by the test."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine_config():
    """Engine config with the observed defaults on a 640x480 canvas."""
    return EngineConfig(canvas_width=640, canvas_height=480)


@pytest.fixture
def engine(engine_config, clock):
    """Engine wired to the fake clock; janitor thread not started."""
    return CrossingCountEngine(engine_config, clock=clock)


@pytest.fixture
def counts_log(engine):
    """List receiving every CountState notification from ``engine``."""
    received = []
    engine.add_listener(received.append)
    return received


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "engine": {
            "min_tracking_confidence": 0.15,
            "position_history_limit": 30,
            "detection_interval_ms": 30,
            "cleanup_interval_ms": 2000,
            "staleness_ms": 3000,
            "canvas_width": 640,
            "canvas_height": 480,
            "side_margin_fraction": 0.1,
        },
        "detector": {
            "model": "yolov8n.pt",
            "conf_threshold": 0.15,
            "iou_threshold": 0.45,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
