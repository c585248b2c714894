"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union


@dataclass
class CrossingLine:
    """
    Crossing line endpoints in pixels.

    Only used for drawing. Counting always splits the frame into
    left/center/right zones by x coordinate.
    """
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    @classmethod
    def from_value(cls, value: Union[None, Sequence[Any], Dict[str, Any]]) -> "CrossingLine":
        """Adapter: Create from [[x1, y1], [x2, y2]], [x1, y1, x2, y2] or a dict."""
        if not value:
            return cls()
        if isinstance(value, dict):
            return cls(
                x1=float(value.get("x1", 0)),
                y1=float(value.get("y1", 0)),
                x2=float(value.get("x2", 0)),
                y2=float(value.get("y2", 0)),
            )
        if len(value) == 2:
            (x1, y1), (x2, y2) = value
        else:
            x1, y1, x2, y2 = value
        return cls(x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2))

    def to_list(self) -> List[List[float]]:
        return [[self.x1, self.y1], [self.x2, self.y2]]


@dataclass
class AssociationConfig:
    """
    Detection-to-track matching parameters.

    Attributes:
        one_to_one: Assign each track to at most one detection per frame
                    (greedy by ascending score). When False every detection
                    independently picks its best track.
        match_distance_factor: A track is a candidate only if its distance is
                               below max(width, height) * this factor.
        size_weight: Weight of the relative area difference in the score.
        time_weight: Weight of the time-since-seen factor in the score.
        time_normalizer_ms: Idle time at which the time factor saturates.
    """
    one_to_one: bool = True
    match_distance_factor: float = 1.5
    size_weight: float = 0.3
    time_weight: float = 0.3
    time_normalizer_ms: float = 1000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AssociationConfig":
        return cls(
            one_to_one=bool(d.get("one_to_one", True)),
            match_distance_factor=float(d.get("match_distance_factor", 1.5)),
            size_weight=float(d.get("size_weight", 0.3)),
            time_weight=float(d.get("time_weight", 0.3)),
            time_normalizer_ms=float(d.get("time_normalizer_ms", 1000.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "one_to_one": self.one_to_one,
            "match_distance_factor": self.match_distance_factor,
            "size_weight": self.size_weight,
            "time_weight": self.time_weight,
            "time_normalizer_ms": self.time_normalizer_ms,
        }


@dataclass
class EngineConfig:
    """
    Tracking and crossing-count engine configuration.

    Attributes:
        min_tracking_confidence: Detections at or below this score are ignored.
        position_history_limit: Max centers kept per track.
        detection_interval_ms: Minimum spacing between processed frames.
        cleanup_interval_ms: Janitor sweep period.
        staleness_ms: Tracks unseen for longer than this are evicted.
        canvas_width: Default frame width when a frame does not supply one.
        canvas_height: Default frame height when a frame does not supply one.
        side_margin_fraction: Half-width of the neutral center zone as a
                              fraction of the frame width.
        person_label: Class label kept by the detection filter.
        association: Matching parameters.
        crossing_line: Cosmetic line endpoints for renderers.
    """
    min_tracking_confidence: float = 0.15
    position_history_limit: int = 30
    detection_interval_ms: float = 30.0
    cleanup_interval_ms: float = 2000.0
    staleness_ms: float = 3000.0
    canvas_width: int = 640
    canvas_height: int = 480
    side_margin_fraction: float = 0.1
    person_label: str = "person"
    association: AssociationConfig = field(default_factory=AssociationConfig)
    crossing_line: CrossingLine = field(default_factory=CrossingLine)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EngineConfig":
        """Adapter: Create from the ``engine`` config section."""
        return cls(
            min_tracking_confidence=float(d.get("min_tracking_confidence", 0.15)),
            position_history_limit=int(d.get("position_history_limit", 30)),
            detection_interval_ms=float(d.get("detection_interval_ms", 30.0)),
            cleanup_interval_ms=float(d.get("cleanup_interval_ms", 2000.0)),
            staleness_ms=float(d.get("staleness_ms", 3000.0)),
            canvas_width=int(d.get("canvas_width", 640)),
            canvas_height=int(d.get("canvas_height", 480)),
            side_margin_fraction=float(d.get("side_margin_fraction", 0.1)),
            person_label=d.get("person_label", "person"),
            association=AssociationConfig.from_dict(d.get("association", {}) or {}),
            crossing_line=CrossingLine.from_value(d.get("crossing_line")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_tracking_confidence": self.min_tracking_confidence,
            "position_history_limit": self.position_history_limit,
            "detection_interval_ms": self.detection_interval_ms,
            "cleanup_interval_ms": self.cleanup_interval_ms,
            "staleness_ms": self.staleness_ms,
            "canvas_width": self.canvas_width,
            "canvas_height": self.canvas_height,
            "side_margin_fraction": self.side_margin_fraction,
            "person_label": self.person_label,
            "association": self.association.to_dict(),
            "crossing_line": self.crossing_line.to_list(),
        }


@dataclass
class DetectorConfig:
    """YOLO detector configuration."""
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.15
    iou_threshold: float = 0.45
    classes: Optional[List[int]] = field(default_factory=lambda: [0])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=float(d.get("conf_threshold", 0.15)),
            iou_threshold=float(d.get("iou_threshold", 0.45)),
            classes=d.get("classes", [0]),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }
        if self.classes is not None:
            d["classes"] = self.classes
        return d


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    engine: EngineConfig = field(default_factory=EngineConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    log_path: str = "logs/people_counter.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            engine=EngineConfig.from_dict(d.get("engine", {}) or {}),
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            log_path=d.get("log_path", "logs/people_counter.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "engine": self.engine.to_dict(),
            "detector": self.detector.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
