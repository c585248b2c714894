"""
Pipeline module for the people crossing counter.

The engine orchestrates the per-frame flow:
- Detection validation and filtering
- Association with existing tracks
- Crossing evaluation and counting
- Count notifications
"""

from .engine import (
    CrossingCountEngine,
    CrossingListener,
    EngineStats,
    FrameResult,
    create_engine_from_config,
)

__all__ = [
    "CrossingCountEngine",
    "CrossingListener",
    "EngineStats",
    "FrameResult",
    "create_engine_from_config",
]
