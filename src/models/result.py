"""
Per-frame result snapshot handed to renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .detection import Detection


@dataclass(frozen=True)
class FrameResult:
    """
    Immutable outcome of one processed frame.

    Attributes:
        visible: Whether the cover/blur should be shown.
        detections: Smoothed detections that passed the runtime threshold.
        image_width: Width of the image the detections are expressed in.
        image_height: Height of the image the detections are expressed in.
        frame_index: Index of the source frame.
        inference_ms: Time spent in the inference call.
        generation: Pipeline generation that produced this result.
    """
    visible: bool
    detections: Tuple[Detection, ...]
    image_width: int
    image_height: int
    frame_index: int = 0
    inference_ms: float = 0.0
    generation: int = 0

    @property
    def has_detections(self) -> bool:
        return len(self.detections) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "visible": self.visible,
            "detections": [d.to_dict() for d in self.detections],
            "image_width": self.image_width,
            "image_height": self.image_height,
            "frame_index": self.frame_index,
            "inference_ms": self.inference_ms,
        }
