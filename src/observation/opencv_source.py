"""
OpenCV-based frame source.

Supports:
- Screen recordings and other video files (device_id as file path)
- Local capture devices (device_id as int, e.g., 0)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2

from models.config import SourceConfig
from models.frame import FrameData
from .base import ObservationSource, ObservationConfig


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based sources.

    Attributes:
        device_id: Capture index (int) or file path (str).
        realtime: For files without an explicit fps, replay at the file's
            own frame rate instead of as fast as frames decode.
    """
    device_id: Union[int, str] = 0
    realtime: bool = True

    @classmethod
    def from_source_config(cls, source_cfg: SourceConfig, source_id: str = "replay") -> "OpenCVSourceConfig":
        """Adapter: Create from the typed source config."""
        return cls(
            source_id=source_id,
            fps=source_cfg.fps,
            max_frames=source_cfg.max_frames,
            device_id=source_cfg.device_id,
            realtime=source_cfg.realtime,
        )


class OpenCVSource(ObservationSource):
    """
    Wraps cv2.VideoCapture to deliver BGR frames as FrameData objects.

    Example:
        config = OpenCVSourceConfig(device_id="recording.mp4")
        with OpenCVSource(config) as source:
            for frame_data in source:
                pipeline.submit(frame_data)
    """

    def __init__(self, config: OpenCVSourceConfig, **kwargs):
        super().__init__(config, **kwargs)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._native_fps: float = 0.0

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    @property
    def frame_period(self) -> float:
        if self._opencv_config.fps:
            return 1.0 / self._opencv_config.fps
        if self.is_file and self._opencv_config.realtime and self._native_fps > 0:
            return 1.0 / self._native_fps
        return 0.0

    def open(self) -> None:
        if self._is_open:
            return

        if isinstance(self.device_id, str) and not self.is_file:
            raise RuntimeError(f"Video file not found: {self.device_id}")

        self._cap = cv2.VideoCapture(self.device_id)
        if not self._cap.isOpened():
            self._cap = None
            raise RuntimeError(f"Failed to open source {self.device_id}")

        self._native_fps = self._cap.get(cv2.CAP_PROP_FPS) or 0.0
        self._is_open = True
        self._reset_position()

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, device={self.device_id}, "
            f"native_fps={self._native_fps:.1f}, period={self.frame_period * 1000:.0f}ms"
        )

    def _read_frame(self) -> Optional[FrameData]:
        if self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info("End of video file reached")
            else:
                logging.warning("Failed to read frame from capture device")
            return None

        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            channel_order="BGR",
            frame_index=self._frame_index + 1,
            source=self.source_id,
        )

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"OpenCVSource closed: source_id={self.source_id}, frames={self._frame_index}")

    def get_video_info(self) -> Dict[str, Any]:
        """Resolution, rate and length of the opened source."""
        if self._cap is None or not self._cap.isOpened():
            return {}

        return {
            "width": int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            "height": int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            "fps": self._native_fps,
            "frame_count": int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT)) if self.is_file else None,
        }
