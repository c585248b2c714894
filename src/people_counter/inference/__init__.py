"""
Detector backends.

The YOLO backend is imported lazily so the core runs without Ultralytics.
"""

from .backend import Detector

__all__ = ["Detector"]
