"""
Geometric algorithms used by the detection pipeline.

- iou: Intersection over Union of two boxes
- non_max_suppression: greedy per-frame de-duplication
"""

from .geometry import iou
from .suppression import non_max_suppression

__all__ = [
    "iou",
    "non_max_suppression",
]
