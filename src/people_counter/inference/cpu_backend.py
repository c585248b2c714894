"""
CPU inference backend.

Uses Ultralytics if installed (``pip install people-crossing-counter[yolo]``).
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np

from people_counter.models.config import DetectorConfig
from people_counter.models.detection import BoundingBox, Detection
from .backend import Detector


def _to_numpy(value) -> np.ndarray:
    return value.cpu().numpy() if hasattr(value, "cpu") else np.asarray(value)


class UltralyticsPersonDetector(Detector):
    def __init__(self, cfg: DetectorConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with "
                "`pip install people-crossing-counter[yolo]`."
            ) from e

        self._model = YOLO(cfg.model)
        logging.info(f"Loaded detector model: {cfg.model}")

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=list(self.cfg.classes) if self.cfg.classes is not None else None,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = _to_numpy(boxes.xyxy)
        conf = _to_numpy(boxes.conf)
        cls = _to_numpy(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            out.append(
                Detection(
                    bbox=BoundingBox(x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2)),
                    confidence=float(c),
                    class_name=names.get(class_id) or str(class_id),
                    class_id=class_id,
                )
            )

        return out
