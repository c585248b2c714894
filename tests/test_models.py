"""
Tests for typed models and detection validation.
"""

import math
from collections import deque

import pytest

from people_counter.models.config import AssociationConfig, Config, CrossingLine, EngineConfig
from people_counter.models.count_state import CountState, CrossingEvent
from people_counter.models.detection import (
    BoundingBox,
    Detection,
    InvalidDetectionError,
    parse_detection,
)
from people_counter.models.track import Direction, Side, Track, TrackState


class TestBoundingBox:
    def test_properties(self):
        bbox = BoundingBox.from_xywh(x=100, y=100, w=100, h=50)
        assert bbox.width == 100
        assert bbox.height == 50
        assert bbox.center == (150.0, 125.0)
        assert bbox.area == 5000

    def test_tuples(self):
        bbox = BoundingBox(x1=10.5, y1=20.5, x2=30.5, y2=40.5)
        assert bbox.as_tuple() == (10.5, 20.5, 30.5, 40.5)
        assert bbox.as_xywh() == (10.5, 20.5, 20.0, 20.0)
        assert bbox.as_int_tuple() == (10, 20, 30, 40)


class TestParseDetection:
    def test_coco_ssd_record(self):
        det = parse_detection({"class": "person", "score": 0.87, "bbox": [10, 20, 30, 40]})
        assert det.class_name == "person"
        assert det.confidence == 0.87
        assert det.bbox.as_xywh() == (10.0, 20.0, 30.0, 40.0)
        assert det.center == (25.0, 40.0)

    def test_alternate_keys(self):
        det = parse_detection({"class_name": "person", "confidence": 0.5, "bbox": (0, 0, 10, 10), "class_id": 0})
        assert det.class_name == "person"
        assert det.class_id == 0

    def test_detection_instance_revalidated(self):
        det = Detection.centered(100, 100)
        assert parse_detection(det) == det

    @pytest.mark.parametrize("record", [
        {"score": 0.9, "bbox": [0, 0, 10, 10]},
        {"class": "person", "bbox": [0, 0, 10, 10]},
        {"class": "person", "score": 0.9},
        {"class": "person", "score": 0.9, "bbox": [0, 0, 10]},
        {"class": "person", "score": 0.9, "bbox": "0,0,10,10"},
        {"class": "person", "score": 0.9, "bbox": [0, 0, math.nan, 10]},
        {"class": "person", "score": 0.9, "bbox": [0, math.inf, 10, 10]},
        {"class": "person", "score": 0.9, "bbox": [0, 0, 0, 10]},
        {"class": "person", "score": 0.9, "bbox": [0, 0, "wide", 10]},
        {"class": "person", "score": 1.5, "bbox": [0, 0, 10, 10]},
        {"class": "person", "score": math.nan, "bbox": [0, 0, 10, 10]},
        {"class": "", "score": 0.9, "bbox": [0, 0, 10, 10]},
        None,
        [0, 0, 10, 10],
    ])
    def test_malformed_records_rejected(self, record):
        with pytest.raises(InvalidDetectionError):
            parse_detection(record)

    def test_invalid_detection_error_is_value_error(self):
        assert issubclass(InvalidDetectionError, ValueError)

    def test_to_dict(self):
        det = Detection.from_xywh(1, 2, 3, 4, confidence=0.6)
        assert det.to_dict() == {"class": "person", "score": 0.6, "bbox": [1.0, 2.0, 3.0, 4.0]}


class TestCountState:
    def test_defaults_zero(self):
        state = CountState()
        assert (state.left_to_right, state.right_to_left, state.total) == (0, 0, 0)

    def test_with_crossing(self):
        state = CountState().with_crossing(Direction.LEFT_TO_RIGHT).with_crossing(Direction.RIGHT_TO_LEFT)
        state = state.with_crossing(Direction.LEFT_TO_RIGHT)
        assert state.to_dict() == {"left_to_right": 2, "right_to_left": 1, "total": 3}

    def test_broken_invariant_asserts(self):
        with pytest.raises(AssertionError):
            CountState(left_to_right=1, right_to_left=1, total=3)

    def test_immutable(self):
        state = CountState()
        with pytest.raises(Exception):
            state.total = 5


class TestTrackModels:
    def _track(self):
        det = Detection.centered(50, 240, w=100, h=240)
        return Track(
            track_id=7,
            bbox=det.bbox,
            first_seen=1000.0,
            last_seen=1500.0,
            confidence=0.8,
            positions=deque([(50.0, 240.0, 1000.0)], maxlen=30),
            has_entered_left=True,
            last_side=Side.LEFT,
        )

    def test_track_helpers(self):
        track = self._track()
        assert track.center == (50.0, 240.0)
        assert track.last_position == (50.0, 240.0)
        assert track.age_ms(2000.0) == 1000.0
        assert track.idle_ms(2000.0) == 500.0

    def test_default_positions_unbounded(self):
        det = Detection.centered(50, 240)
        track = Track(track_id=1, bbox=det.bbox, first_seen=0.0, last_seen=0.0, confidence=0.9)
        assert track.positions.maxlen is None
        assert track.last_position == (50.0, 240.0)

    def test_track_state_snapshot(self):
        track = self._track()
        state = TrackState.from_track(track)
        assert state.track_id == 7
        assert state.bbox == (0.0, 120.0, 100.0, 240.0)
        assert state.last_side == Side.LEFT
        assert state.positions == ((50.0, 240.0, 1000.0),)

        # Snapshot does not follow later mutation
        track.positions.append((60.0, 240.0, 1100.0))
        assert len(state.positions) == 1

    def test_crossing_event_to_dict(self):
        event = CrossingEvent(
            track_id=1,
            direction=Direction.RIGHT_TO_LEFT,
            timestamp=10.0,
            previous_side=Side.RIGHT,
            center_x=12.5,
        )
        assert event.to_dict()["direction"] == "right_to_left"
        assert event.to_dict()["previous_side"] == "right"


class TestConfigModels:
    def test_engine_defaults_match_observed_values(self):
        cfg = EngineConfig()
        assert cfg.min_tracking_confidence == 0.15
        assert cfg.position_history_limit == 30
        assert cfg.detection_interval_ms == 30
        assert cfg.cleanup_interval_ms == 2000
        assert cfg.staleness_ms == 3000
        assert cfg.side_margin_fraction == 0.1
        assert cfg.association.one_to_one is True

    def test_from_dict_round_trip(self, valid_config):
        cfg = Config.from_dict(valid_config)
        assert cfg.engine.canvas_width == 640
        assert cfg.detector.model == "yolov8n.pt"
        assert Config.from_dict(cfg.to_dict()) == cfg

    def test_association_from_dict(self):
        cfg = AssociationConfig.from_dict({"one_to_one": False, "size_weight": 0.5})
        assert cfg.one_to_one is False
        assert cfg.size_weight == 0.5
        assert cfg.time_weight == 0.3

    @pytest.mark.parametrize("value,expected", [
        (None, CrossingLine()),
        ([[320, 0], [320, 480]], CrossingLine(320, 0, 320, 480)),
        ([1, 2, 3, 4], CrossingLine(1, 2, 3, 4)),
        ({"x1": 5, "y2": 9}, CrossingLine(5, 0, 0, 9)),
    ])
    def test_crossing_line_from_value(self, value, expected):
        assert CrossingLine.from_value(value) == expected
