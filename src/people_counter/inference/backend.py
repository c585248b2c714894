"""
Detector interface.

Backends return pixel-space detections in the original frame coordinate
system. The engine never looks a detector up on its own; callers inject one.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from people_counter.models.detection import Detection


class Detector(Protocol):
    def detect(self, frame: np.ndarray) -> List[Detection]:
        ...
