"""
Test doubles for the engine, executor and clock.
"""

import threading
from concurrent.futures import Executor, Future
from typing import Callable, List, Optional, Sequence

import numpy as np

from models.frame import FrameData


def make_output(anchors: Sequence[Sequence[float]], num_classes: int = 1) -> np.ndarray:
    """
    Build a (1, 4 + num_classes, len(anchors)) model output.

    Each anchor is (cx, cy, w, h, score_0, ..., score_n) in normalized units.
    """
    out = np.zeros((4 + num_classes, len(anchors)), dtype=np.float32)
    for i, anchor in enumerate(anchors):
        out[:, i] = anchor
    return out[np.newaxis, ...]


def blank_frame(width: int = 200, height: int = 200, frame_index: int = 0) -> FrameData:
    return FrameData.from_numpy(
        np.zeros((height, width, 3), dtype=np.uint8),
        timestamp=0.0,
        channel_order="RGB",
        frame_index=frame_index,
    )


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Queues submitted work until run_pending() is called."""

    def __init__(self):
        self._queue: List[tuple] = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self._queue.append((future, fn, args, kwargs))
        return future

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_pending(self) -> None:
        queue, self._queue = self._queue, []
        for future, fn, args, kwargs in queue:
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


class ScriptedEngine:
    """
    Inference engine returning scripted outputs.

    ``outputs`` is consumed one per call (the last one repeats). An entry
    that is an Exception instance is raised instead of returned.
    """

    def __init__(
        self,
        outputs: Sequence,
        num_anchors: int = 1,
        num_classes: int = 1,
        input_size: int = 32,
        on_run: Optional[Callable[[], None]] = None,
    ):
        self._outputs = list(outputs)
        self._input_size = input_size
        self._output_shape = (1, 4 + num_classes, num_anchors)
        self._on_run = on_run
        self._lock = threading.Lock()
        self.calls = 0
        self.batches: List[np.ndarray] = []
        self.closed = False

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def output_shape(self):
        return self._output_shape

    def run(self, batch: np.ndarray) -> np.ndarray:
        with self._lock:
            index = min(self.calls, len(self._outputs) - 1)
            self.calls += 1
            self.batches.append(batch)
        if self._on_run is not None:
            self._on_run()
        output = self._outputs[index]
        if isinstance(output, Exception):
            raise output
        return output

    def close(self) -> None:
        self.closed = True


# Normalized anchors used across pipeline tests
DETECTED = make_output([(0.5, 0.5, 0.2, 0.2, 0.95)])
CLEAN = make_output([(0.5, 0.5, 0.2, 0.2, 0.05)])
