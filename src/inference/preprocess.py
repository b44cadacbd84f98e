"""
Frame preprocessing for inference.

Turns a pushed FrameData into the dense RGB grid and the normalized
model input batch. Anything that cannot be interpreted raises
MalformedFrameError so the pipeline can drop and count the frame.
"""

from __future__ import annotations

import cv2
import numpy as np

from models.exceptions import MalformedFrameError
from models.frame import FrameData, SUPPORTED_CHANNEL_ORDERS


_TO_RGB = {
    "RGBA": cv2.COLOR_RGBA2RGB,
    "BGRA": cv2.COLOR_BGRA2RGB,
    "BGR": cv2.COLOR_BGR2RGB,
}


def frame_to_rgb(frame: FrameData) -> np.ndarray:
    """
    Convert a frame into a dense (H, W, 3) uint8 RGB array.

    Handles both dense (H, W, C) arrays and padded row buffers as
    produced by screen capture (``row_stride`` bytes per row).

    Raises:
        MalformedFrameError: If the buffer does not match the declared layout.
    """
    if frame.pixels is None:
        raise MalformedFrameError("Frame has no pixel buffer")
    if frame.channel_order not in SUPPORTED_CHANNEL_ORDERS:
        raise MalformedFrameError(f"Unsupported channel order: {frame.channel_order}")

    w, h = _as_dimension(frame.width, "width"), _as_dimension(frame.height, "height")
    c = frame.channels
    if w <= 0 or h <= 0:
        raise MalformedFrameError(f"Invalid frame size {w}x{h}")

    pixels = np.asarray(frame.pixels)
    if pixels.dtype != np.uint8:
        raise MalformedFrameError(f"Expected uint8 pixels, got {pixels.dtype}")

    if pixels.ndim == 3 and pixels.shape == (h, w, c):
        grid = pixels
    elif frame.row_stride is not None:
        grid = _unpad_rows(pixels.reshape(-1), w, h, c, _as_dimension(frame.row_stride, "row_stride"))
    elif pixels.size == w * h * c:
        grid = pixels.reshape(h, w, c)
    else:
        raise MalformedFrameError(
            f"Buffer of {pixels.size} values does not match {w}x{h}x{c} ({frame.channel_order})"
        )

    grid = np.ascontiguousarray(grid)
    code = _TO_RGB.get(frame.channel_order)
    if code is None:
        return grid
    return cv2.cvtColor(grid, code)


def _as_dimension(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedFrameError(f"Frame {name} is not an integer: {value!r}") from e


def _unpad_rows(buf: np.ndarray, w: int, h: int, c: int, row_stride: int) -> np.ndarray:
    row_bytes = w * c
    if row_stride < row_bytes:
        raise MalformedFrameError(f"row_stride {row_stride} is smaller than row size {row_bytes}")

    # The last row may be delivered without its padding
    needed = row_stride * (h - 1) + row_bytes
    if buf.size < needed:
        raise MalformedFrameError(
            f"Buffer of {buf.size} bytes too small for {h} rows of stride {row_stride}"
        )
    if buf.size < row_stride * h:
        buf = np.concatenate([buf, np.zeros(row_stride * h - buf.size, dtype=buf.dtype)])

    rows = buf[: row_stride * h].reshape(h, row_stride)
    return rows[:, :row_bytes].reshape(h, w, c)


def scale_for_detection(rgb: np.ndarray, scale: float) -> np.ndarray:
    """Downscale a frame before inference; scale >= 1 leaves it untouched."""
    if scale >= 1.0:
        return rgb
    if scale <= 0.0:
        raise ValueError(f"scale must be positive, got {scale}")
    h, w = rgb.shape[:2]
    target = (max(1, int(w * scale)), max(1, int(h * scale)))
    return cv2.resize(rgb, target, interpolation=cv2.INTER_LINEAR)


def to_model_input(rgb: np.ndarray, input_size: int) -> np.ndarray:
    """
    Resize to the model's square input and normalize.

    Returns:
        float32 array of shape (1, input_size, input_size, 3) in [0, 1].
    """
    resized = cv2.resize(rgb, (input_size, input_size), interpolation=cv2.INTER_LINEAR)
    batch = resized.astype(np.float32) / 255.0
    return batch[np.newaxis, ...]
