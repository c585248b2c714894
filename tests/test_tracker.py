"""
Tests for the track store and detection association.
"""

import pytest

from people_counter.models.config import AssociationConfig
from people_counter.models.detection import Detection
from people_counter.models.track import Side
from people_counter.tracking import Associator, TrackNotFoundError, TrackStore


def _person(cx, cy=240, w=100, h=240, confidence=0.9):
    return Detection.centered(cx, cy, w=w, h=h, confidence=confidence)


def _unknown_side(cx):
    return Side.UNKNOWN


class TestTrackStore:
    def test_create_seeds_track(self):
        store = TrackStore()
        track_id = store.create(_person(50), now=100.0, side=Side.LEFT)
        track = store.get(track_id)

        assert track.first_seen == 100.0
        assert track.last_seen == 100.0
        assert list(track.positions) == [(50.0, 240.0, 100.0)]
        assert track.has_entered_left is True
        assert track.has_entered_right is False
        assert track.last_side == Side.LEFT
        assert track.crossed is False
        assert track.hits == 1

    def test_center_birth_sets_no_flags(self):
        store = TrackStore()
        track = store.get(store.create(_person(320), now=0.0, side=Side.CENTER))
        assert not track.has_entered_left
        assert not track.has_entered_right
        assert track.last_side == Side.CENTER

    def test_ids_are_unique_and_increasing(self):
        store = TrackStore()
        ids = [store.create(_person(x), now=0.0) for x in (10, 20, 30)]
        assert ids == [1, 2, 3]

    def test_ids_not_reused_after_clear(self):
        store = TrackStore()
        first = store.create(_person(10), now=0.0)
        assert store.clear() == 1
        assert len(store) == 0
        second = store.create(_person(10), now=0.0)
        assert second > first

    def test_update(self):
        store = TrackStore()
        track_id = store.create(_person(50, confidence=0.8), now=0.0)
        track = store.update(track_id, _person(60, confidence=0.4), now=100.0)

        assert track.last_seen == 100.0
        assert track.confidence == 0.8
        assert track.center == (60.0, 240.0)
        assert track.positions[-1] == (60.0, 240.0, 100.0)
        assert track.hits == 2

    def test_history_bounded(self):
        store = TrackStore(position_history_limit=30)
        track_id = store.create(_person(0), now=0.0)
        for i in range(1, 40):
            store.update(track_id, _person(i), now=float(i))

        positions = store.get(track_id).positions
        assert len(positions) == 30
        assert positions[0][0] == 10.0
        assert positions[-1][0] == 39.0

    def test_missing_track(self):
        store = TrackStore()
        with pytest.raises(TrackNotFoundError):
            store.get(99)
        with pytest.raises(TrackNotFoundError):
            store.remove(99)

    def test_remove(self):
        store = TrackStore()
        track_id = store.create(_person(10), now=0.0)
        removed = store.remove(track_id)
        assert removed.track_id == track_id
        assert track_id not in store

    def test_transaction_is_reentrant(self):
        store = TrackStore()
        with store.transaction():
            with store.transaction():
                store.create(_person(10), now=0.0)
        assert len(store) == 1


class TestScoring:
    def _track(self, store):
        # Center (100, 100), 100x100, last seen at t=0
        return store.get(store.create(Detection.centered(100, 100, w=100, h=100), now=0.0))

    def test_score_formula(self):
        store = TrackStore()
        track = self._track(store)
        det = Detection.centered(130, 140, w=100, h=100)

        scores = Associator().score_matrix([det], [track], now=500.0)

        # distance 50, no size difference, time factor 0.5
        assert scores[0, 0] == pytest.approx(57.5)

    def test_score_size_term(self):
        store = TrackStore()
        track = self._track(store)
        det = Detection.centered(130, 140, w=100, h=200)

        scores = Associator().score_matrix([det], [track], now=500.0)

        # size difference relative to the detection area: 10000 / 20000
        assert scores[0, 0] == pytest.approx(66.125)

    def test_time_factor_saturates(self):
        store = TrackStore()
        track = self._track(store)
        det = Detection.centered(130, 140, w=100, h=100)

        late = Associator().score_matrix([det], [track], now=5000.0)
        assert late[0, 0] == pytest.approx(50 * 1.3)

    def test_eligibility_threshold(self):
        store = TrackStore()
        track = self._track(store)
        associator = Associator()

        # max(w, h) * 1.5 = 150
        near = Detection.centered(249, 100, w=100, h=100)
        far = Detection.centered(250, 100, w=100, h=100)

        assert associator.find_best_track(near, [track], now=0.0) == track.track_id
        assert associator.find_best_track(far, [track], now=0.0) is None

    def test_best_track_is_lowest_score(self):
        store = TrackStore()
        a = store.create(_person(100), now=0.0)
        b = store.create(_person(200), now=0.0)
        associator = Associator()

        assert associator.find_best_track(_person(180), store.iterate(), now=10.0) == b
        assert associator.find_best_track(_person(120), store.iterate(), now=10.0) == a

    def test_empty_inputs(self):
        associator = Associator()
        assert associator.score_matrix([], [], now=0.0).shape == (0, 0)
        assert associator.find_best_track(_person(10), [], now=0.0) is None


class TestAssociation:
    def test_unmatched_detection_creates_track(self):
        store = TrackStore()
        results = Associator().associate([_person(50)], store, 0.0, lambda cx: Side.LEFT)

        assert len(results) == 1
        assert results[0].created is True
        assert results[0].previous_position == results[0].center
        assert store.get(results[0].track_id).last_side == Side.LEFT

    def test_match_reports_previous_position(self):
        store = TrackStore()
        track_id = store.create(_person(50), now=0.0)

        results = Associator().associate([_person(80)], store, 100.0, _unknown_side)

        assert results[0].track_id == track_id
        assert results[0].created is False
        assert results[0].previous_position == (50.0, 240.0)
        assert results[0].center == (80.0, 240.0)

    def test_one_to_one_gives_each_detection_its_own_track(self):
        store = TrackStore()
        store.create(_person(100), now=0.0)

        associator = Associator(AssociationConfig(one_to_one=True))
        results = associator.associate([_person(110), _person(130)], store, 100.0, _unknown_side)

        assert len(store) == 2
        assert [r.created for r in results] == [False, True]
        assert store.get(1).center == (110.0, 240.0)

    def test_independent_mode_can_merge_detections(self):
        store = TrackStore()
        store.create(_person(100), now=0.0)

        associator = Associator(AssociationConfig(one_to_one=False))
        results = associator.associate([_person(110), _person(130)], store, 100.0, _unknown_side)

        assert len(store) == 1
        assert {r.track_id for r in results} == {1}
        assert store.get(1).hits == 3
        assert store.get(1).center == (130.0, 240.0)

    def test_one_to_one_prefers_lowest_score_pair(self):
        store = TrackStore()
        left = store.create(_person(100), now=0.0)
        right = store.create(_person(300), now=0.0)

        # Listed in reverse order; each still lands on its nearest track
        dets = [_person(290), _person(105)]
        matches, unmatched = Associator().assign(dets, store.iterate(), now=50.0)

        assert sorted(matches) == [(0, right), (1, left)]
        assert unmatched == []

    def test_assign_leaves_ineligible_unmatched(self):
        store = TrackStore()
        store.create(_person(100), now=0.0)

        matches, unmatched = Associator().assign([_person(600)], store.iterate(), now=0.0)

        assert matches == []
        assert unmatched == [0]
