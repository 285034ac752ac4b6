"""Tests for IoU and greedy class-gated track association."""

from __future__ import annotations

import pytest

from contracts import Box, Detection
from track.association import TrackAssociator, iou
from track.tracker import Track, TrackIdSource


def _det(x: float, y: float, w: float = 100.0, h: float = 100.0, class_id: int = 0, score: float = 0.9) -> Detection:
    return Detection(class_id=class_id, score=score, box=Box(x=x, y=y, w=w, h=h))


def _track(track_id: int, box: Box, class_id: int = 0, score: float = 0.5, last_seen: float = 0.0) -> Track:
    return Track(
        track_id=track_id,
        class_id=class_id,
        score=score,
        last_seen=last_seen,
        target=box,
        display=box,
    )


class TestIou:
    def test_identical_boxes(self):
        box = Box(x=10.0, y=10.0, w=50.0, h=40.0)
        assert iou(box, box) == pytest.approx(1.0)

    def test_disjoint_boxes(self):
        assert iou(Box(0.0, 0.0, 10.0, 10.0), Box(20.0, 20.0, 10.0, 10.0)) == 0.0

    def test_touching_edges_do_not_overlap(self):
        assert iou(Box(0.0, 0.0, 10.0, 10.0), Box(10.0, 0.0, 10.0, 10.0)) == 0.0

    def test_half_overlap(self):
        # Intersection 50, union 150.
        assert iou(Box(0.0, 0.0, 10.0, 10.0), Box(5.0, 0.0, 10.0, 10.0)) == pytest.approx(1.0 / 3.0)

    def test_empty_union_is_zero(self):
        assert iou(Box(5.0, 5.0, 0.0, 0.0), Box(5.0, 5.0, 0.0, 0.0)) == 0.0


class TestTrackAssociator:
    def setup_method(self):
        self.associator = TrackAssociator()
        self.ids = TrackIdSource()

    def test_disjoint_detections_create_distinct_tracks(self):
        detections = [_det(0, 0), _det(300, 0), _det(600, 0)]

        result = self.associator.associate([], detections, now=1.0, id_source=self.ids)

        assert result.created_ids == [1, 2, 3]
        assert len({t.track_id for t in result.tracks}) == 3
        assert all(t.display == t.target for t in result.tracks)

    def test_overlapping_detection_keeps_identity(self):
        first = self.associator.associate([], [_det(100, 100)], now=1.0, id_source=self.ids)
        second = self.associator.associate(first.tracks, [_det(110, 100)], now=1.08, id_source=self.ids)

        assert second.matched_ids == [1]
        assert second.created_ids == []
        (track,) = second.tracks
        assert track.target == Box(x=110.0, y=100.0, w=100.0, h=100.0)
        assert track.last_seen == pytest.approx(1.08)

    def test_match_does_not_move_display_box(self):
        first = self.associator.associate([], [_det(100, 100)], now=1.0, id_source=self.ids)
        second = self.associator.associate(first.tracks, [_det(120, 100)], now=1.1, id_source=self.ids)

        assert second.tracks[0].display == Box(x=100.0, y=100.0, w=100.0, h=100.0)

    def test_class_mismatch_creates_new_track(self):
        first = self.associator.associate([], [_det(100, 100, class_id=0)], now=1.0, id_source=self.ids)
        second = self.associator.associate(
            first.tracks, [_det(100, 100, class_id=1)], now=1.1, id_source=self.ids
        )

        assert second.matched_ids == []
        assert second.created_ids == [2]
        assert {t.class_id for t in second.tracks} == {0, 1}

    def test_score_blend(self):
        tracks = [_track(1, Box(100.0, 100.0, 100.0, 100.0), score=0.9)]

        result = self.associator.associate(tracks, [_det(100, 100, score=0.8)], now=1.0, id_source=self.ids)

        assert result.tracks[0].score == pytest.approx(0.87)

    def test_low_iou_spawns_new_track(self):
        # IoU of these two boxes is 1/7, below the 0.3 threshold.
        tracks = [_track(1, Box(0.0, 0.0, 100.0, 100.0))]

        result = self.associator.associate(tracks, [_det(75, 0)], now=1.0, id_source=self.ids)

        assert result.matched_ids == []
        assert len(result.tracks) == 2

    def test_degenerate_detection_is_rejected(self):
        detections = [_det(0, 0, w=0.0), _det(50, 50, h=-5.0)]

        result = self.associator.associate([], detections, now=1.0, id_source=self.ids)

        assert result.rejected == 2
        assert result.tracks == []

    def test_each_track_matches_at_most_once_per_batch(self):
        tracks = [_track(1, Box(100.0, 100.0, 100.0, 100.0))]

        result = self.associator.associate(
            tracks, [_det(100, 100), _det(105, 100)], now=1.0, id_source=self.ids
        )

        assert result.matched_ids == [1]
        assert len(result.created_ids) == 1
        assert len(result.tracks) == 2

    def test_tie_goes_to_first_track(self):
        # Both tracks overlap the detection by the same amount.
        tracks = [
            _track(1, Box(50.0, 0.0, 100.0, 100.0)),
            _track(2, Box(-50.0, 0.0, 100.0, 100.0)),
        ]

        result = self.associator.associate(tracks, [_det(0, 0)], now=1.0, id_source=self.ids)

        assert result.matched_ids == [1]

    def test_unmatched_tracks_are_left_alone(self):
        stale = _track(7, Box(900.0, 900.0, 50.0, 50.0), score=0.6, last_seen=0.5)

        result = self.associator.associate([stale], [_det(0, 0)], now=1.0, id_source=self.ids)

        kept = next(t for t in result.tracks if t.track_id == 7)
        assert kept.last_seen == 0.5
        assert kept.score == 0.6

    def test_invalid_score_weight(self):
        with pytest.raises(ValueError):
            TrackAssociator(score_weight=1.5)
