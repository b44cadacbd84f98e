"""
Inference engine interface.

An engine takes one fixed-size, normalized pixel batch and returns the
raw model output tensor. Decoding happens elsewhere.
"""

from __future__ import annotations

from typing import Callable, Protocol, Sequence, Tuple

import numpy as np

from models.exceptions import ConfigurationError, TransientInferenceError


class InferenceEngine(Protocol):
    @property
    def input_size(self) -> int:
        ...

    @property
    def output_shape(self) -> Tuple[int, ...]:
        ...

    def run(self, batch: np.ndarray) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


class CallableEngine:
    """
    Adapts a plain ``fn(batch) -> tensor`` into an InferenceEngine.

    Useful for tests and for runtimes that are driven from elsewhere.
    Any exception raised by ``fn`` surfaces as TransientInferenceError.
    """

    def __init__(
        self,
        fn: Callable[[np.ndarray], np.ndarray],
        input_size: int,
        output_shape: Sequence[int],
    ):
        if input_size <= 0:
            raise ConfigurationError(f"input_size must be positive, got {input_size}")
        if not output_shape:
            raise ConfigurationError("output_shape must not be empty")
        self._fn = fn
        self._input_size = int(input_size)
        self._output_shape = tuple(int(d) for d in output_shape)

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return self._output_shape

    def run(self, batch: np.ndarray) -> np.ndarray:
        try:
            return np.asarray(self._fn(batch))
        except TransientInferenceError:
            raise
        except Exception as e:
            raise TransientInferenceError(f"Inference call failed: {e}") from e

    def close(self) -> None:
        self._fn = None
