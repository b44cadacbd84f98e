"""
Geometry utilities.

Shared helpers for suppression and temporal matching.
"""

from __future__ import annotations

from models.detection import BoundingBox


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """
    Calculate Intersection over Union (IoU) between two bounding boxes.

    Args:
        a: First bounding box.
        b: Second bounding box.

    Returns:
        IoU value between 0 and 1. Disjoint or edge-touching boxes, and
        boxes with no area, give 0.
    """
    left = max(a.x1, b.x1)
    top = max(a.y1, b.y1)
    right = min(a.x2, b.x2)
    bottom = min(a.y2, b.y2)

    w = right - left
    h = bottom - top
    if w <= 0 or h <= 0:
        return 0.0

    intersection = w * h
    union = a.area + b.area - intersection
    if union <= 0:
        return 0.0

    return intersection / union
