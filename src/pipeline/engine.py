"""
Pipeline engine for the screen guard.

Frames are pushed in from a capture callback at whatever rate the
platform delivers them. The engine admits at most one frame at a time
into inference, throttled to a minimum interval, and turns the smoothed
detections into a debounced show/hide signal for the renderer.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Tuple

from models.config import Config, PipelineConfig
from models.detection import Detection
from models.exceptions import ConfigurationError, MalformedFrameError, TransientInferenceError
from models.frame import FrameData
from models.result import FrameResult
from inference.backend import InferenceEngine
from tracking.tracker import DetectionSmoother
from pipeline.stages.detect import DetectOutput, DetectStage
from pipeline.stages.visibility import VisibilityStateMachine
from pipeline.stats import PipelineStats


VisibilityListener = Callable[[bool], None]
ResultListener = Callable[[FrameResult], None]
Dispatcher = Callable[[Callable[[], None]], None]

# Log every Nth slow frame
SLOW_FRAME_LOG_EVERY = 5


def _call_inline(fn: Callable[[], None]) -> None:
    fn()


class FramePipeline:
    """
    Frame-throttled, single-inflight detection pipeline.

    This engine:
    - Drops frames arriving sooner than ``min_interval_ms`` after the last
      accepted one, or while an inference is still running (no queue)
    - Runs detect -> smooth -> threshold -> hysteresis on a worker
    - Emits a visibility event only on transitions, and a FrameResult
      snapshot on every processed frame
    - Never lets a per-frame error escape; failures are counted in stats

    Stopping bumps a generation counter, so a result from an inference
    admitted before ``stop()`` is discarded instead of touching the
    tracker of a stopped (or restarted) session.

    Example:
        pipeline = create_pipeline_from_config(config, engine)
        pipeline.add_visibility_listener(overlay.set_visible)
        pipeline.start()
        for frame in frames:
            pipeline.submit(frame)
        pipeline.stop()
    """

    def __init__(
        self,
        detect_stage: DetectStage,
        smoother: DetectionSmoother,
        config: Optional[PipelineConfig] = None,
        executor: Optional[Executor] = None,
        dispatcher: Optional[Dispatcher] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the pipeline.

        Args:
            detect_stage: Stage running inference, decoding and suppression.
            smoother: Temporal smoother owning the track state.
            config: Pipeline configuration.
            executor: Worker to run frames on. Defaults to a private
                single-thread pool created on start().
            dispatcher: Called with a zero-arg function that delivers
                listener callbacks; use it to marshal onto a UI thread.
            clock: Monotonic clock in seconds.
        """
        self.config = config or PipelineConfig()
        if not 0.0 <= self.config.confidence_threshold <= 1.0:
            raise ConfigurationError("pipeline.confidence_threshold must be within [0, 1]")
        if self.config.min_interval_ms < 0:
            raise ConfigurationError("pipeline.min_interval_ms must be non-negative")

        self._detect = detect_stage
        self._smoother = smoother
        self._visibility = VisibilityStateMachine(self.config.clean_frames_threshold)
        self._dispatcher = dispatcher or _call_inline
        self._clock = clock

        self._executor = executor
        self._owns_executor = executor is None

        self._lock = threading.Lock()
        self._running = False
        self._in_flight = False
        self._generation = 0
        self._last_accepted: Optional[float] = None
        self._pending: Optional[Future] = None
        self._confidence_threshold = self.config.confidence_threshold
        self._latest_result: Optional[FrameResult] = None
        # Marks the thread currently running _process for this pipeline
        self._worker_state = threading.local()

        self._visibility_listeners: List[VisibilityListener] = []
        self._result_listeners: List[ResultListener] = []

        self.stats = PipelineStats.with_window(self.config.inference_window)

    def add_visibility_listener(self, callback: VisibilityListener) -> None:
        """
        Add a callback fired when the cover should be shown or hidden.

        Args:
            callback: Function taking the new visibility (bool).
        """
        self._visibility_listeners.append(callback)

    def add_result_listener(self, callback: ResultListener) -> None:
        """
        Add a callback fired after every processed frame.

        Args:
            callback: Function taking the frame's FrameResult snapshot.
        """
        self._result_listeners.append(callback)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def visible(self) -> bool:
        with self._lock:
            return self._visibility.visible

    @property
    def latest_result(self) -> Optional[FrameResult]:
        with self._lock:
            return self._latest_result

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    def set_confidence_threshold(self, value: float) -> None:
        """Change detection sensitivity without reloading the model."""
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"confidence threshold must be within [0, 1], got {value}")
        with self._lock:
            self._confidence_threshold = value
        logging.info(f"Confidence threshold set to {value}")

    def start(self) -> None:
        """Start accepting frames for a new capture session."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._in_flight = False
            self._generation += 1
            self._last_accepted = None
            self._latest_result = None
            self._smoother.reset()
            self._visibility.reset()
            self.stats = PipelineStats.with_window(self.config.inference_window)
            self.stats.last_stats_log_time = self._clock()
            if self._owns_executor and self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="screenguard-inference"
                )

        logging.info(
            f"Pipeline started: generation={self._generation}, "
            f"threshold={self._confidence_threshold}, "
            f"min_interval={self.config.min_interval_ms}ms, "
            f"clean_frames={self.config.clean_frames_threshold}"
        )

    def submit(self, frame: FrameData) -> bool:
        """
        Offer a frame to the pipeline.

        Never blocks on inference and never raises for per-frame problems.

        Returns:
            True if the frame was admitted, False if it was dropped.
        """
        now = self._clock()
        with self._lock:
            if not self._running:
                return False
            if (
                self._last_accepted is not None
                and (now - self._last_accepted) * 1000.0 < self.config.min_interval_ms
            ):
                self.stats.throttled_frames += 1
                return False
            if self._in_flight:
                self.stats.busy_frames += 1
                return False
            self._in_flight = True
            self._last_accepted = now
            generation = self._generation
            executor = self._executor

        try:
            self._pending = executor.submit(self._process, frame, generation, now)
        except RuntimeError as e:
            # Executor shut down between admission and submit
            logging.warning(f"Frame {frame.frame_index} not scheduled: {e}")
            self._release(generation)
            return False
        return True

    def stop(self, wait_for_inflight: bool = True) -> None:
        """
        Stop the session.

        No new frames are admitted. A running inference either finishes
        (``wait_for_inflight``) or is abandoned; its result is discarded
        either way. Track and hysteresis state are cleared.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            self._in_flight = False
            was_visible = self._visibility.visible
            self._smoother.reset()
            self._visibility.reset()
            self._latest_result = None
            pending = self._pending
            self._pending = None
            executor = self._executor if self._owns_executor else None
            if executor is not None:
                self._executor = None
            stats = self.stats

        # A listener may call stop() from the worker, which cannot join itself
        on_worker = getattr(self._worker_state, "active", False)
        try:
            if executor is not None:
                executor.shutdown(wait=wait_for_inflight and not on_worker)
            elif wait_for_inflight and pending is not None and not on_worker:
                wait([pending])
        finally:
            if was_visible:
                self._deliver(None, False)

            self._log_stats(stats, final=True)
            logging.info("Pipeline stopped")

    def __enter__(self) -> "FramePipeline":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def _process(self, frame: FrameData, generation: int, admitted_at: float) -> None:
        """Worker: one admitted frame, end to end."""
        self._worker_state.active = True
        try:
            output: Optional[DetectOutput] = None
            try:
                output = self._detect.process(frame)
            except MalformedFrameError as e:
                with self._lock:
                    if generation == self._generation:
                        self.stats.malformed_frames += 1
                logging.warning(f"Dropping malformed frame {frame.frame_index}: {e}")
                return
            except TransientInferenceError as e:
                logging.error(f"Inference error on frame {frame.frame_index}: {e}")
            except Exception as e:
                logging.error(f"Frame processing error on frame {frame.frame_index}: {e}")

            applied = self._apply(frame, output, generation)
            if applied is None:
                return
            result, transition = applied

            if transition is True:
                response_ms = (self._clock() - admitted_at) * 1000.0
                logging.warning(
                    f"Restricted content detected! Response: {response_ms:.0f}ms "
                    f"(inference: {result.inference_ms:.0f}ms)"
                )
                for i, det in enumerate(result.detections[:2]):
                    logging.debug(f"  [{i}]: {det.class_name} {int(det.confidence * 100)}%")
            elif transition is False:
                logging.info(
                    f"Clean for {self.config.clean_frames_threshold} frames - hiding cover"
                )

            self._deliver(result, transition, generation)
        finally:
            self._worker_state.active = False
            self._release(generation)

    def _apply(
        self,
        frame: FrameData,
        output: Optional[DetectOutput],
        generation: int,
    ) -> Optional[Tuple[FrameResult, Optional[bool]]]:
        """Feed one frame's detections through smoothing and hysteresis."""
        with self._lock:
            if not self._running or generation != self._generation:
                self.stats.stale_results += 1
                logging.debug(f"Discarding stale result for frame {frame.frame_index}")
                return None

            stats = self.stats
            stats.frames_seen += 1

            if output is not None:
                detections = output.detections
                image_w, image_h = output.image_width, output.image_height
                inference_ms = output.inference_ms
                stats.record_inference(inference_ms)
                if inference_ms > self.config.max_inference_ms:
                    stats.slow_frames += 1
                    if stats.slow_frames % SLOW_FRAME_LOG_EVERY == 0:
                        logging.warning(f"Slow inference: {inference_ms:.0f}ms")
            else:
                stats.inference_errors += 1
                detections = ()
                scale = self._detect.detection_scale
                image_w = max(1, int(frame.width * scale))
                image_h = max(1, int(frame.height * scale))
                inference_ms = 0.0

            smoothed = self._smoother.update(detections)
            threshold = self._confidence_threshold
            qualifying: Tuple[Detection, ...] = tuple(
                d for d in smoothed if d.confidence >= threshold
            )
            if qualifying:
                stats.frames_with_detections += 1

            transition = self._visibility.update(bool(qualifying))
            if transition is True:
                stats.visibility_activations += 1

            result = FrameResult(
                visible=self._visibility.visible,
                detections=qualifying,
                image_width=image_w,
                image_height=image_h,
                frame_index=frame.frame_index,
                inference_ms=inference_ms,
                generation=generation,
            )
            self._latest_result = result

            now = self._clock()
            log_due = now - stats.last_stats_log_time >= self.config.stats_log_interval
            if log_due:
                stats.last_stats_log_time = now
                clean = self._visibility.consecutive_clean_frames

        if log_due:
            self._log_stats(stats, clean_frames=clean)

        return result, transition

    def _release(self, generation: int) -> None:
        with self._lock:
            if generation == self._generation:
                self._in_flight = False

    def _deliver(
        self,
        result: Optional[FrameResult],
        transition: Optional[bool],
        generation: Optional[int] = None,
    ) -> None:
        """
        Hand listener callbacks to the dispatcher.

        With a ``generation``, delivery stops as soon as the session that
        produced it has been stopped, even between two callbacks. stop()
        passes None so its closing hide always goes out.
        """
        visibility_listeners = list(self._visibility_listeners)
        result_listeners = list(self._result_listeners)

        def current() -> bool:
            if generation is None:
                return True
            with self._lock:
                if generation == self._generation:
                    return True
            logging.debug(f"Discarding stale delivery from generation {generation}")
            return False

        def emit() -> None:
            if transition is not None:
                for callback in visibility_listeners:
                    if not current():
                        return
                    try:
                        callback(transition)
                    except Exception as e:
                        logging.warning(f"Visibility listener error: {e}")
            if result is not None:
                for callback in result_listeners:
                    if not current():
                        return
                    try:
                        callback(result)
                    except Exception as e:
                        logging.warning(f"Result listener error: {e}")

        try:
            self._dispatcher(emit)
        except Exception as e:
            logging.warning(f"Dispatcher error: {e}")

    def _log_stats(self, stats: PipelineStats, clean_frames: Optional[int] = None, final: bool = False) -> None:
        label = "Final statistics" if final else "Pipeline stats"
        message = (
            f"{label}: frames={stats.frames_seen} ({stats.slow_frames} slow), "
            f"detections={stats.frames_with_detections} ({stats.detection_rate:.1f}%), "
            f"avg_inference={stats.average_inference_ms:.0f}ms, "
            f"dropped={stats.throttled_frames + stats.busy_frames}, "
            f"malformed={stats.malformed_frames}, errors={stats.inference_errors}"
        )
        if clean_frames is not None:
            message += f", clean_counter={clean_frames}"
        logging.info(message)


def create_pipeline_from_config(
    config: Config,
    engine: InferenceEngine,
    executor: Optional[Executor] = None,
    dispatcher: Optional[Dispatcher] = None,
    clock: Callable[[], float] = time.monotonic,
) -> FramePipeline:
    """
    Factory function to create a FramePipeline from a typed Config.

    Args:
        config: Full application config.
        engine: Loaded inference engine.
        executor: Optional worker executor (defaults to a private thread).
        dispatcher: Optional listener dispatcher (defaults to inline).
        clock: Monotonic clock in seconds.

    Raises:
        ConfigurationError: If the engine's output shape or any setting is invalid.
    """
    detect_stage = DetectStage(
        engine,
        decoder_config=config.decoder,
        suppression_config=config.suppression,
        detection_scale=config.pipeline.detection_scale,
        clock=clock,
    )
    smoother = DetectionSmoother.from_config(config.tracking)
    return FramePipeline(
        detect_stage,
        smoother,
        config=config.pipeline,
        executor=executor,
        dispatcher=dispatcher,
        clock=clock,
    )
