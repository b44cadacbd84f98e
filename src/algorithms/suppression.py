"""
Non-max suppression for a single frame's candidate detections.
"""

from __future__ import annotations

from typing import List, Sequence

from models.detection import Detection
from .geometry import iou


def non_max_suppression(
    detections: Sequence[Detection],
    iou_threshold: float = 0.45,
    per_class: bool = False,
) -> List[Detection]:
    """
    Greedy non-max suppression.

    Candidates are sorted by confidence (descending, stable so equal
    scores keep anchor order). The best remaining candidate is kept and
    every remaining candidate overlapping it by more than
    ``iou_threshold`` is discarded, until none remain.

    Args:
        detections: Unsorted candidates from one frame.
        iou_threshold: Overlap above which a candidate is suppressed.
        per_class: Only suppress candidates sharing the kept box's class_id.
            Off by default, so overlap is judged on geometry alone.

    Returns:
        Kept detections, highest confidence first.
    """
    if not detections:
        return []

    remaining = sorted(detections, key=lambda d: d.confidence, reverse=True)
    keep: List[Detection] = []

    while remaining:
        top = remaining.pop(0)
        keep.append(top)
        top_box = top.bbox

        remaining = [
            d for d in remaining
            if (per_class and d.class_id != top.class_id)
            or iou(top_box, d.bbox) <= iou_threshold
        ]

    return keep
