"""
Frame sources for the command-line runner.

The pipeline is push-based and never pulls frames. A source replays a
recording or reads a capture device at a steady rate so the pipeline's
admission gate sees the same cadence it would on a live screen.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Identifier attached to every frame (e.g., "screen", "replay").
        fps: Delivery rate in frames per second. None = as fast as the source reads.
        max_frames: Stop after this many frames. None = until exhausted.
    """
    source_id: str = "default"
    fps: Optional[float] = None
    max_frames: Optional[int] = None


class ObservationSource(ABC):
    """
    Paced producer of FrameData.

    Subclasses implement ``open``, ``_read_frame`` and ``close``;
    ``read`` adds pacing and the frame limit on top.

    Example:
        with OpenCVSource(config) as source:
            for frame_data in source:
                pipeline.submit(frame_data)
    """

    def __init__(self, config: ObservationConfig, sleep: Callable[[float], None] = time.sleep):
        self._config = config
        self._is_open = False
        self._frame_index = 0
        self._sleep = sleep
        self._last_delivery: Optional[float] = None

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames delivered since open."""
        return self._frame_index

    @property
    def frame_period(self) -> float:
        """Seconds between deliveries, 0 when unpaced."""
        fps = self._config.fps
        return 1.0 / fps if fps else 0.0

    @abstractmethod
    def open(self) -> None:
        """
        Open the source.

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def _read_frame(self) -> Optional[FrameData]:
        """Read one frame from the underlying device, None when exhausted."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call multiple times."""

    def read(self) -> Optional[FrameData]:
        """Return the next frame, or None when exhausted or the limit is reached."""
        if not self._is_open:
            return None
        limit = self._config.max_frames
        if limit is not None and self._frame_index >= limit:
            return None

        self._pace()
        frame_data = self._read_frame()
        if frame_data is not None:
            self._frame_index = frame_data.frame_index
        return frame_data

    def _pace(self) -> None:
        period = self.frame_period
        if not period:
            return
        now = time.monotonic()
        if self._last_delivery is not None:
            delay = period - (now - self._last_delivery)
            if delay > 0:
                self._sleep(delay)
        self._last_delivery = time.monotonic()

    def _reset_position(self) -> None:
        self._frame_index = 0
        self._last_delivery = None

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data
