"""
Detection models for restricted-content detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned bounding box in pixel coordinates.

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

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "BoundingBox":
        """Create from center (cx, cy, width, height) format."""
        return cls(x1=cx - w / 2, y1=cy - h / 2, x2=cx + w / 2, y2=cy + h / 2)


@dataclass(frozen=True)
class Detection:
    """
    A single detection in image pixel coordinates.

    Geometry is stored as center/size; the bounding box is always derived
    from those four fields and never stored on its own.

    Attributes:
        x: Center x coordinate.
        y: Center y coordinate.
        width: Box width.
        height: Box height.
        confidence: Detection confidence score (0-1).
        class_id: Class ID from the model output.
        class_name: Human-readable class name.
    """
    x: float
    y: float
    width: float
    height: float
    confidence: float
    class_id: int = 0
    class_name: str = "restricted"

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox.from_center(self.x, self.y, self.width, self.height)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def with_geometry(self, x: float, y: float, width: float, height: float) -> "Detection":
        """Return a copy with new center/size, keeping score and class."""
        return Detection(
            x=x,
            y=y,
            width=width,
            height=height,
            confidence=self.confidence,
            class_id=self.class_id,
            class_name=self.class_name,
        )

    def lerp_towards(self, other: "Detection", alpha: float) -> "Detection":
        """
        Move this detection's geometry towards ``other`` by ``alpha``.

        Each of x, y, width and height becomes ``old + alpha * (new - old)``.
        Confidence and class are taken from ``other`` unsmoothed.
        """
        return Detection(
            x=_lerp(self.x, other.x, alpha),
            y=_lerp(self.y, other.y, alpha),
            width=_lerp(self.width, other.width, alpha),
            height=_lerp(self.height, other.height, alpha),
            confidence=other.confidence,
            class_id=other.class_id,
            class_name=other.class_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for renderers and logs."""
        x1, y1, x2, y2 = self.bbox.as_tuple()
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "bbox": [x1, y1, x2, y2],
            "confidence": self.confidence,
            "class_id": self.class_id,
            "class_name": self.class_name,
        }

    def __str__(self) -> str:
        return (
            f"Detection(center=({int(self.x)}, {int(self.y)}), "
            f"size=({int(self.width)}x{int(self.height)}), "
            f"conf={self.confidence:.3f}, class={self.class_name})"
        )


def _lerp(start: float, end: float, fraction: float) -> float:
    return start + (end - start) * fraction


def detections_to_dicts(detections: List[Detection]) -> List[Dict[str, Any]]:
    """Adapter: Convert a list of detections to plain dicts."""
    return [d.to_dict() for d in detections]
