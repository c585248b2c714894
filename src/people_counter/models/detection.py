"""
Detection models for object detection results.

Detections arrive from the detector as loosely typed records (for example the
COCO-SSD shape ``{"class": "person", "score": 0.87, "bbox": [x, y, w, h]}``).
They are validated here, one record at a time, before the tracker sees them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union


class InvalidDetectionError(ValueError):
    """Raised when a detection record cannot be turned into a Detection."""


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in source-image pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    def as_xywh(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x1, self.y1, self.width, self.height)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        """Create from (x, y, width, height) format."""
        return cls(x1=x, y1=y, x2=x + w, y2=y + h)


@dataclass(frozen=True)
class Detection:
    """
    A single detection from an object detector.

    Attributes:
        bbox: Bounding box in pixel coordinates.
        confidence: Detection confidence score (0-1).
        class_name: Class label reported by the detector (e.g. "person").
        class_id: Optional numeric class ID from the detector.
    """
    bbox: BoundingBox
    confidence: float
    class_name: str
    class_id: Optional[int] = None

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    @property
    def area(self) -> float:
        return self.bbox.area

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        w: float,
        h: float,
        confidence: float,
        class_name: str = "person",
        class_id: Optional[int] = None,
    ) -> "Detection":
        """Create a validated Detection from x, y, width, height."""
        return parse_detection(
            {"bbox": [x, y, w, h], "score": confidence, "class": class_name, "class_id": class_id}
        )

    @classmethod
    def centered(
        cls,
        cx: float,
        cy: float,
        w: float = 60.0,
        h: float = 160.0,
        confidence: float = 0.9,
        class_name: str = "person",
    ) -> "Detection":
        """Create a Detection whose box is centered on (cx, cy)."""
        return cls.from_xywh(cx - w / 2, cy - h / 2, w, h, confidence, class_name)

    def to_dict(self) -> dict:
        """Convert to the COCO-SSD style dictionary."""
        return {
            "class": self.class_name,
            "score": self.confidence,
            "bbox": list(self.bbox.as_xywh()),
        }


DetectionLike = Union[Detection, Mapping[str, Any]]


def _finite_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidDetectionError(f"{name} must be a number, got bool")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidDetectionError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(number):
        raise InvalidDetectionError(f"{name} must be finite, got {value!r}")
    return number


def _first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def parse_detection(record: DetectionLike) -> Detection:
    """
    Validate a detection record and return a Detection.

    Accepts an existing Detection (re-validated) or a mapping with:
    - ``bbox``: [x, y, width, height]
    - ``score`` or ``confidence``: float in [0, 1]
    - ``class``, ``class_name`` or ``label``: class label string
    - ``class_id`` (optional)

    Raises:
        InvalidDetectionError: If a required field is missing or a value is
            not a finite number, the box has no area, or the confidence is
            outside [0, 1].
    """
    if isinstance(record, Detection):
        record = {
            "bbox": record.bbox.as_xywh(),
            "score": record.confidence,
            "class": record.class_name,
            "class_id": record.class_id,
        }
    if not isinstance(record, Mapping):
        raise InvalidDetectionError(f"detection must be a mapping, got {type(record).__name__}")

    class_name = _first_present(record, ("class", "class_name", "label"))
    if not isinstance(class_name, str) or not class_name:
        raise InvalidDetectionError("detection is missing a class label")

    raw_conf = _first_present(record, ("score", "confidence"))
    if raw_conf is None:
        raise InvalidDetectionError("detection is missing a confidence score")
    confidence = _finite_float(raw_conf, "confidence")
    if not 0.0 <= confidence <= 1.0:
        raise InvalidDetectionError(f"confidence must be within [0, 1], got {confidence}")

    raw_bbox = record.get("bbox")
    if raw_bbox is None or isinstance(raw_bbox, (str, bytes)):
        raise InvalidDetectionError("detection is missing a bbox")
    try:
        values = list(raw_bbox)
    except TypeError as e:
        raise InvalidDetectionError(f"bbox must be a sequence, got {raw_bbox!r}") from e
    if len(values) != 4:
        raise InvalidDetectionError(f"bbox must have 4 values, got {len(values)}")
    x, y, w, h = (_finite_float(v, name) for v, name in zip(values, ("x", "y", "width", "height")))
    if w <= 0 or h <= 0:
        raise InvalidDetectionError(f"bbox must have positive size, got {w}x{h}")

    class_id = record.get("class_id")
    return Detection(
        bbox=BoundingBox.from_xywh(x, y, w, h),
        confidence=confidence,
        class_name=class_name,
        class_id=int(class_id) if class_id is not None else None,
    )
