"""
FrameData model for captured screen frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


SUPPORTED_CHANNEL_ORDERS = ("RGBA", "RGB", "BGR", "BGRA")


@dataclass
class FrameData:
    """
    Metadata and payload for a captured frame.

    Screen capture APIs often hand out a flat buffer whose rows are
    padded past ``width * channels``; ``row_stride`` carries that padding
    so preprocessing can strip it.

    Attributes:
        pixels: Raw pixel data, either (H, W, C) or a padded buffer.
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when frame was captured.
        channel_order: Channel layout of ``pixels``.
        row_stride: Bytes per row if rows are padded, else None.
        frame_index: Sequential frame number since start.
        source: Identifier for the frame source.
    """
    pixels: np.ndarray
    width: int
    height: int
    timestamp: float
    channel_order: str = "RGBA"
    row_stride: Optional[int] = None
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        channel_order: str = "BGR",
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a dense (H, W, C) numpy array."""
        h, w = frame.shape[:2]
        return cls(
            pixels=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            channel_order=channel_order,
            frame_index=frame_index,
            source=source,
        )

    @property
    def channels(self) -> int:
        return len(self.channel_order)

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
