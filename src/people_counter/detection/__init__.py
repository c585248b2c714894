"""
Detection module.

Turns raw detector output into the person detections the tracker consumes.
"""

from .filter import DetectionFilter

__all__ = ["DetectionFilter"]
