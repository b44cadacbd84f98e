"""
Detect stage: frame -> model input -> raw output -> suppressed detections.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from algorithms.suppression import non_max_suppression
from detection.decoder import DetectionDecoder
from inference.backend import InferenceEngine
from inference.preprocess import frame_to_rgb, scale_for_detection, to_model_input
from models.config import DecoderConfig, SuppressionConfig
from models.detection import Detection
from models.exceptions import ConfigurationError, TransientInferenceError
from models.frame import FrameData


@dataclass(frozen=True)
class DetectOutput:
    """
    Detections for one frame plus the image they are expressed in.

    Attributes:
        detections: Suppressed detections, highest confidence first.
        image_width: Width of the (possibly downscaled) detection image.
        image_height: Height of the (possibly downscaled) detection image.
        inference_ms: Duration of the engine call.
    """
    detections: Tuple[Detection, ...]
    image_width: int
    image_height: int
    inference_ms: float


class DetectStage:
    """
    Pipeline stage that runs the model and post-processes its output.

    This stage:
    - Converts the frame to RGB and optionally downscales it
    - Resizes/normalizes to the model's input square
    - Runs the inference engine (the only blocking call)
    - Decodes and suppresses the raw output

    Errors are raised for the caller to classify:
    MalformedFrameError from preprocessing, TransientInferenceError from
    the engine. Decoding itself never raises.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        decoder_config: Optional[DecoderConfig] = None,
        suppression_config: Optional[SuppressionConfig] = None,
        detection_scale: float = 1.0,
        clock: Callable[[], float] = time.perf_counter,
    ):
        if not 0.0 < detection_scale <= 1.0:
            raise ConfigurationError(f"detection_scale must be within (0, 1], got {detection_scale}")
        self.suppression_config = suppression_config or SuppressionConfig()
        if not 0.0 <= self.suppression_config.iou_threshold <= 1.0:
            raise ConfigurationError("suppression.iou_threshold must be within [0, 1]")

        self.engine = engine
        self.decoder = DetectionDecoder.from_output_shape(engine.output_shape, decoder_config)
        self.detection_scale = detection_scale
        self._clock = clock

    def process(self, frame: FrameData) -> DetectOutput:
        rgb = frame_to_rgb(frame)
        rgb = scale_for_detection(rgb, self.detection_scale)
        image_h, image_w = rgb.shape[:2]
        batch = to_model_input(rgb, self.engine.input_size)

        start = self._clock()
        try:
            output = self.engine.run(batch)
        except TransientInferenceError:
            raise
        except Exception as e:
            raise TransientInferenceError(f"Inference failed: {e}") from e
        inference_ms = (self._clock() - start) * 1000.0

        candidates = self.decoder.decode(output, image_w, image_h)
        detections: List[Detection] = non_max_suppression(
            candidates,
            iou_threshold=self.suppression_config.iou_threshold,
            per_class=self.suppression_config.per_class,
        )
        return DetectOutput(
            detections=tuple(detections),
            image_width=image_w,
            image_height=image_h,
            inference_ms=inference_ms,
        )
