"""
Runtime statistics for the frame pipeline.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque


@dataclass
class PipelineStats:
    """
    Counters for one capture session.

    Attributes:
        frames_seen: Frames admitted and converted for inference.
        frames_with_detections: Processed frames with qualifying detections.
        slow_frames: Frames whose inference exceeded max_inference_ms.
        throttled_frames: Frames dropped by the minimum interval gate.
        busy_frames: Frames dropped because an inference was in flight.
        malformed_frames: Frames dropped because the buffer was unusable.
        inference_errors: Frames whose inference call failed.
        stale_results: Results discarded because the pipeline was stopped.
        visibility_activations: Hidden -> visible transitions.
        inference_times_ms: Most recent inference durations (oldest evicted).
    """
    frames_seen: int = 0
    frames_with_detections: int = 0
    slow_frames: int = 0
    throttled_frames: int = 0
    busy_frames: int = 0
    malformed_frames: int = 0
    inference_errors: int = 0
    stale_results: int = 0
    visibility_activations: int = 0
    inference_times_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=10))
    last_stats_log_time: float = field(default_factory=time.monotonic)

    @classmethod
    def with_window(cls, window: int) -> "PipelineStats":
        return cls(inference_times_ms=deque(maxlen=max(1, window)))

    def record_inference(self, duration_ms: float) -> None:
        self.inference_times_ms.append(duration_ms)

    @property
    def average_inference_ms(self) -> float:
        if not self.inference_times_ms:
            return 0.0
        return sum(self.inference_times_ms) / len(self.inference_times_ms)

    @property
    def detection_rate(self) -> float:
        """Percentage of processed frames that had detections."""
        if self.frames_seen == 0:
            return 0.0
        return self.frames_with_detections / self.frames_seen * 100
