"""
Tests for IoU and non-max suppression.
"""

import pytest

from algorithms.geometry import iou
from algorithms.suppression import non_max_suppression
from models.detection import BoundingBox, Detection


def _det(x, y, w=50, h=50, confidence=0.9, class_id=0):
    return Detection(x=x, y=y, width=w, height=h, confidence=confidence, class_id=class_id)


class TestIoU:
    def test_identical_boxes(self):
        box = BoundingBox(10, 20, 110, 70)
        assert iou(box, box) == pytest.approx(1.0)

    def test_disjoint_boxes(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(100, 100, 110, 110)
        assert iou(a, b) == 0.0

    def test_touching_edges_do_not_overlap(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(10, 0, 20, 10)
        assert iou(a, b) == 0.0

    def test_partial_overlap(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(5, 0, 15, 10)
        # intersection 50, union 150
        assert iou(a, b) == pytest.approx(1 / 3)

    def test_symmetric(self):
        a = BoundingBox(0, 0, 40, 30)
        b = BoundingBox(10, 5, 60, 45)
        assert iou(a, b) == pytest.approx(iou(b, a))

    def test_contained_box(self):
        outer = BoundingBox(0, 0, 100, 100)
        inner = BoundingBox(25, 25, 75, 75)
        assert iou(outer, inner) == pytest.approx(0.25)

    def test_zero_area_box(self):
        a = BoundingBox(5, 5, 5, 5)
        assert iou(a, a) == 0.0


class TestNonMaxSuppression:
    def test_empty(self):
        assert non_max_suppression([]) == []

    def test_identical_geometry_keeps_higher_confidence(self):
        low = _det(100, 100, confidence=0.7)
        high = _det(100, 100, confidence=0.9)
        kept = non_max_suppression([low, high], iou_threshold=0.45)
        assert kept == [high]

    def test_far_apart_both_survive(self):
        a = _det(100, 100, confidence=0.8)
        b = _det(500, 500, confidence=0.9)
        kept = non_max_suppression([a, b], iou_threshold=0.45)
        assert kept == [b, a]

    def test_overlap_below_threshold_survives(self):
        a = _det(100, 100, confidence=0.9)
        # 50x50 boxes offset by 30px: IoU = 20*50 / (2*2500 - 1000) = 0.25
        b = _det(130, 100, confidence=0.8)
        assert len(non_max_suppression([a, b], iou_threshold=0.45)) == 2
        assert non_max_suppression([a, b], iou_threshold=0.2) == [a]

    def test_confidence_ties_keep_input_order(self):
        first = _det(100, 100, confidence=0.8)
        second = _det(100, 100, confidence=0.8)
        kept = non_max_suppression([first, second], iou_threshold=0.45)
        assert len(kept) == 1
        assert kept[0] is first

    def test_chain_suppression_is_greedy(self):
        a = _det(100, 100, confidence=0.9)
        b = _det(110, 100, confidence=0.8)  # overlaps a heavily
        c = _det(300, 300, confidence=0.7)
        assert non_max_suppression([c, b, a], iou_threshold=0.45) == [a, c]

    def test_class_agnostic_by_default(self):
        a = _det(100, 100, confidence=0.9, class_id=0)
        b = _det(100, 100, confidence=0.8, class_id=1)
        assert non_max_suppression([a, b]) == [a]

    def test_per_class(self):
        a = _det(100, 100, confidence=0.9, class_id=0)
        b = _det(100, 100, confidence=0.8, class_id=1)
        c = _det(100, 100, confidence=0.7, class_id=0)
        assert non_max_suppression([a, b, c], per_class=True) == [a, b]
