"""
Decoder for raw YOLOv8-style detection output.

The model emits one tensor laid out as ``num_features`` parallel channels
of length ``num_anchors``:

- channels 0-3: center x, center y, width, height, normalized to [0, 1]
  relative to the model's square input
- channels 4..: one confidence score per class

Normalized geometry is scaled by the *original* image size, not the model
input size, so boxes land on the captured frame directly.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from models.config import DecoderConfig
from models.detection import Detection
from models.exceptions import ConfigurationError


BOX_CHANNELS = 4

# Frames between detailed debug logs
LOG_EVERY_N_FRAMES = 30


class DetectionDecoder:
    """
    Turns one raw output tensor into candidate detections.

    Shape problems are configuration errors raised here at construction.
    ``decode`` itself never raises; an empty list is a valid outcome.

    Example:
        decoder = DetectionDecoder.from_output_shape((1, 5, 5376), DecoderConfig())
        candidates = decoder.decode(output, image_width=1080, image_height=2400)
    """

    def __init__(self, num_features: int, num_anchors: int, config: Optional[DecoderConfig] = None):
        """
        Initialize the decoder.

        Args:
            num_features: Channels per anchor (4 box channels + classes).
            num_anchors: Number of anchors in the model output grid.
            config: Thresholds and class metadata.

        Raises:
            ConfigurationError: If the shape or config cannot be decoded.
        """
        self.config = config or DecoderConfig()

        if num_features < BOX_CHANNELS + 1:
            raise ConfigurationError(
                f"Model output needs at least {BOX_CHANNELS + 1} features "
                f"(4 box channels + 1 class), got {num_features}"
            )
        if num_anchors < 1:
            raise ConfigurationError(f"Model output has no anchors (num_anchors={num_anchors})")
        if not 0.0 <= self.config.conf_threshold <= 1.0:
            raise ConfigurationError(
                f"decoder.conf_threshold must be within [0, 1], got {self.config.conf_threshold}"
            )
        if self.config.min_box_px < 0:
            raise ConfigurationError("decoder.min_box_px must be non-negative")
        if not 0.0 < self.config.max_box_fraction <= 1.0:
            raise ConfigurationError("decoder.max_box_fraction must be within (0, 1]")

        self.num_features = num_features
        self.num_anchors = num_anchors
        self.num_classes = num_features - BOX_CHANNELS

        names = list(self.config.class_names or [])
        if names and len(names) < self.num_classes:
            raise ConfigurationError(
                f"Model has {self.num_classes} classes but only {len(names)} class names configured"
            )
        self.class_names = names or [f"class_{i}" for i in range(self.num_classes)]
        self._full_frame_ids = np.asarray(self.config.full_frame_class_ids, dtype=np.int64)

        self._frame_count = 0

        logging.info(
            f"Decoder initialized: features={num_features}, anchors={num_anchors}, "
            f"classes={self.num_classes}, threshold={self.config.conf_threshold}"
        )

    @classmethod
    def from_output_shape(
        cls,
        shape: Sequence[int],
        config: Optional[DecoderConfig] = None,
    ) -> "DetectionDecoder":
        """
        Create a decoder from a model output shape.

        Accepts ``(features, anchors)`` or ``(1, features, anchors)``.
        """
        dims = [int(d) for d in shape]
        if len(dims) == 3 and dims[0] == 1:
            dims = dims[1:]
        if len(dims) != 2:
            raise ConfigurationError(
                f"Expected output shape [1, features, anchors], got {list(shape)}"
            )
        return cls(dims[0], dims[1], config)

    @property
    def output_shape(self):
        return (self.num_features, self.num_anchors)

    def decode(self, output: np.ndarray, image_width: int, image_height: int) -> List[Detection]:
        """
        Decode a raw output tensor into detections in image pixel space.

        Args:
            output: Raw model output, (features, anchors) or (1, features, anchors).
            image_width: Width of the image the frame was resized from.
            image_height: Height of the image the frame was resized from.

        Returns:
            Surviving detections in anchor order.
        """
        self._frame_count += 1
        log_details = self._frame_count % LOG_EVERY_N_FRAMES == 0

        out = np.asarray(output, dtype=np.float32)
        while out.ndim > 2 and out.shape[0] == 1:
            out = out[0]
        if out.shape != self.output_shape:
            logging.warning(
                f"Unexpected output shape {out.shape}, expected {self.output_shape}; skipping frame"
            )
            return []
        if image_width <= 0 or image_height <= 0:
            logging.warning(f"Invalid image size {image_width}x{image_height}; skipping frame")
            return []

        cfg = self.config

        if self.num_classes == 1:
            scores = out[BOX_CHANNELS]
            class_ids = np.zeros(self.num_anchors, dtype=np.int64)
        else:
            class_scores = out[BOX_CHANNELS:]
            class_ids = np.argmax(class_scores, axis=0)
            scores = class_scores[class_ids, np.arange(self.num_anchors)]

        confident = np.isfinite(scores) & (scores >= cfg.conf_threshold)

        centers_x = out[0] * image_width
        centers_y = out[1] * image_height
        widths = out[2] * image_width
        heights = out[3] * image_height

        big_enough = (widths >= cfg.min_box_px) & (heights >= cfg.min_box_px)

        too_large = (widths > image_width * cfg.max_box_fraction) | (
            heights > image_height * cfg.max_box_fraction
        )
        if self._full_frame_ids.size:
            too_large &= ~np.isin(class_ids, self._full_frame_ids)

        tol = cfg.bounds_tolerance_px
        in_bounds = (
            (centers_x - widths / 2 >= -tol)
            & (centers_y - heights / 2 >= -tol)
            & (centers_x + widths / 2 <= image_width + tol)
            & (centers_y + heights / 2 <= image_height + tol)
        )

        keep = confident & big_enough & ~too_large & in_bounds

        if log_details:
            logging.debug(
                f"Decode frame {self._frame_count}: image={image_width}x{image_height}, "
                f"confident={int(confident.sum())}, "
                f"too_small={int((confident & ~big_enough).sum())}, "
                f"too_large={int((confident & too_large).sum())}, "
                f"out_of_bounds={int((confident & ~in_bounds).sum())}, "
                f"kept={int(keep.sum())}"
            )

        detections: List[Detection] = []
        for i in np.flatnonzero(keep):
            class_id = int(class_ids[i])
            detections.append(
                Detection(
                    x=float(centers_x[i]),
                    y=float(centers_y[i]),
                    width=float(widths[i]),
                    height=float(heights[i]),
                    confidence=min(1.0, float(scores[i])),
                    class_id=class_id,
                    class_name=self.class_names[class_id],
                )
            )
        return detections
