"""
ONNX Runtime inference engine.

Runs a YOLOv8-style detection export on the CPU. onnxruntime is an
optional dependency, installed with the ``onnx`` extra.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from models.exceptions import ConfigurationError, TransientInferenceError
from .backend import InferenceEngine


@dataclass(frozen=True)
class OnnxEngineConfig:
    model: str
    num_threads: int = 4


class OnnxRuntimeEngine(InferenceEngine):
    def __init__(self, cfg: OnnxEngineConfig):
        self.cfg = cfg
        try:
            import onnxruntime as ort  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ConfigurationError(
                "onnxruntime is not installed. Install with `pip install screenguard[onnx]`."
            ) from e

        if not os.path.exists(cfg.model):
            raise ConfigurationError(f"Model not found: {cfg.model}")

        try:
            options = ort.SessionOptions()
            options.intra_op_num_threads = cfg.num_threads
            options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
            self._session = ort.InferenceSession(
                cfg.model,
                sess_options=options,
                providers=["CPUExecutionProvider"],
            )
        except Exception as e:
            raise ConfigurationError(f"Failed to load model {cfg.model}: {e}") from e

        model_input = self._session.get_inputs()[0]
        self._input_name = model_input.name
        in_shape = list(model_input.shape)
        if len(in_shape) != 4:
            raise ConfigurationError(f"Expected a 4-D image input, got {in_shape}")

        # [1, 3, S, S] exports want channels first; [1, S, S, 3] channels last
        self._channels_first = in_shape[1] == 3
        size = in_shape[2] if self._channels_first else in_shape[1]
        if not isinstance(size, int) or size <= 0:
            raise ConfigurationError(f"Model input size must be static, got {in_shape}")
        self._input_size = size

        out_shape = list(self._session.get_outputs()[0].shape)
        if not all(isinstance(d, int) and d > 0 for d in out_shape):
            raise ConfigurationError(f"Model output shape must be static, got {out_shape}")
        self._output_shape = tuple(out_shape)

        logging.info(
            f"Model loaded - Input: {in_shape}, Output: {out_shape}, "
            f"threads={cfg.num_threads}"
        )

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return self._output_shape

    def run(self, batch: np.ndarray) -> np.ndarray:
        if self._session is None:
            raise TransientInferenceError("Engine is closed")
        if self._channels_first:
            batch = np.ascontiguousarray(batch.transpose(0, 3, 1, 2))
        try:
            outputs = self._session.run(None, {self._input_name: batch})
        except Exception as e:
            raise TransientInferenceError(f"ONNX Runtime inference failed: {e}") from e
        return outputs[0]

    def close(self) -> None:
        self._session = None
        logging.info("ONNX Runtime engine closed")
