"""
Detection filter.

Keeps only confident person detections. Everything else the detector
reports (other classes, weak boxes) never reaches the tracker.
"""

from __future__ import annotations

from typing import Iterable, List

from people_counter.models.detection import Detection


class DetectionFilter:
    """
    Filters raw detections down to the ones worth tracking.

    A detection survives when its class label equals ``label`` and its
    confidence is strictly greater than ``min_confidence``.
    """

    def __init__(self, min_confidence: float = 0.15, label: str = "person"):
        self.min_confidence = min_confidence
        self.label = label

    def accepts(self, detection: Detection) -> bool:
        return detection.class_name == self.label and detection.confidence > self.min_confidence

    def apply(self, detections: Iterable[Detection]) -> List[Detection]:
        """Return the detections that pass the filter, in input order."""
        return [d for d in detections if self.accepts(d)]
